import logging
import time
from typing import Callable, List, Optional

import openai
from openai import OpenAI

from .config import OPENAI_KEY_NAME, DEFAULT_EMBEDDING_MODEL, require_credential
from .exceptions import (
    ProviderAuthError,
    ProviderError,
    RateLimitError,
    looks_like_auth_failure,
    looks_like_rate_limit,
)

logger = logging.getLogger(__name__)

PROVIDER = "openai"


def classify_openai_error(exc: Exception) -> ProviderError:
    """Map an OpenAI SDK exception onto our provider error taxonomy."""
    message = str(exc)
    status = getattr(exc, "status_code", None)
    if isinstance(exc, openai.RateLimitError) or status == 429:
        return RateLimitError(f"OpenAI rate limit: {message}", provider=PROVIDER)
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)) or status in (401, 403):
        return ProviderAuthError(f"OpenAI rejected the API key: {message}", provider=PROVIDER, key=OPENAI_KEY_NAME)
    if status is None:
        # no HTTP status to go on, e.g. wrapped or connection errors
        if looks_like_rate_limit(message):
            return RateLimitError(f"OpenAI rate limit: {message}", provider=PROVIDER)
        if looks_like_auth_failure(message):
            return ProviderAuthError(f"OpenAI rejected the API key: {message}", provider=PROVIDER, key=OPENAI_KEY_NAME)
    return ProviderError(f"OpenAI request failed: {message}", provider=PROVIDER)


class EmbeddingClient:
    """
    Text -> vector through the OpenAI embeddings endpoint.

    The SDK's own retries are switched off; this class is the only retry layer.
    HTTP 429 is retried up to ``max_attempts`` times with exponential backoff
    capped at ``max_backoff`` seconds, then RateLimitError is raised for the
    caller to fall back on. Any other failure is raised immediately.
    """

    def __init__(
        self,
        model: str = DEFAULT_EMBEDDING_MODEL,
        max_attempts: int = 3,
        max_backoff: float = 10.0,
        timeout: float = 10.0,
        client: Optional[OpenAI] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.model = model
        self.max_attempts = max(1, max_attempts)
        self.max_backoff = max_backoff
        self.timeout = timeout
        self._client = client
        self._client_key: Optional[str] = None
        self._sleep = sleep

    def _get_client(self) -> OpenAI:
        if self._client is not None and self._client_key is None:
            # injected client
            return self._client
        api_key = require_credential(OPENAI_KEY_NAME)
        if self._client is None or self._client_key != api_key:
            self._client = OpenAI(api_key=api_key, timeout=self.timeout, max_retries=0)
            self._client_key = api_key
        return self._client

    def backoff(self, attempt: int) -> float:
        return min(2.0 ** attempt, self.max_backoff)

    @staticmethod
    def _parse(resp) -> List[float]:
        try:
            return [float(v) for v in resp.data[0].embedding]
        except (AttributeError, IndexError, TypeError, ValueError) as exc:
            raise ProviderError(f"Malformed OpenAI embedding response: {exc!r}", provider=PROVIDER) from exc

    def embed(self, text: str) -> List[float]:
        client = self._get_client()
        for attempt in range(1, self.max_attempts + 1):
            try:
                resp = client.embeddings.create(model=self.model, input=[text])
                return self._parse(resp)
            except openai.APIError as exc:
                err = classify_openai_error(exc)
                if not isinstance(err, RateLimitError) or attempt == self.max_attempts:
                    raise err from exc
                delay = self.backoff(attempt)
                logger.warning("Embedding rate limited (attempt %d/%d); retrying in %.1fs",
                               attempt, self.max_attempts, delay)
                self._sleep(delay)
        raise RateLimitError("OpenAI rate limit: retries exhausted", provider=PROVIDER)
