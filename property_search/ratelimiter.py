import logging
from typing import Optional

import redis

from .config import Settings

logger = logging.getLogger(__name__)

DEFAULT_MAX = 30
DEFAULT_WINDOW = 60  # seconds


class RequestLimiter:
    """Fixed-window request counter per client, kept in Redis.

    Fails open: if Redis is unreachable every request is allowed.
    """

    def __init__(self, client: Optional[redis.Redis], max_requests: int = DEFAULT_MAX, window_seconds: int = DEFAULT_WINDOW):
        self.client = client
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    @staticmethod
    def _key(client_id: str) -> str:
        return f"ratelimit:search:{client_id}"

    def allow_request(self, client_id: str) -> bool:
        if not self.client:
            return True

        key = self._key(client_id)
        with self.client.pipeline() as pipe:
            try:
                pipe.multi()
                pipe.incr(key, 1)
                pipe.expire(key, self.window_seconds)
                count = pipe.execute()[0]
            except redis.exceptions.RedisError as e:
                logger.warning("Redis error in allow_request: %s", e)
                return True

        return count <= self.max_requests

    def time_until_reset(self, client_id: str) -> float:
        if not self.client:
            return 0.0
        try:
            ttl = self.client.ttl(self._key(client_id))
            return float(ttl) if ttl > 0 else 0.0
        except redis.exceptions.RedisError as e:
            logger.warning("Redis error in time_until_reset: %s", e)
            return 0.0


def build_limiter(settings: Settings) -> Optional[RequestLimiter]:
    """Connect to Redis when REDIS_HOST is configured; otherwise limiting is off."""
    if not settings.redis_host:
        return None
    client = redis.Redis(host=settings.redis_host, port=settings.redis_port, db=0, decode_responses=True)
    try:
        client.ping()
        logger.info("Connected to Redis at %s:%s", settings.redis_host, settings.redis_port)
    except redis.exceptions.ConnectionError as e:
        logger.warning("Could not connect to Redis: %s. Rate limiting will not work.", e)
        client = None
    return RequestLimiter(client, settings.rate_limit_max, settings.rate_limit_window)
