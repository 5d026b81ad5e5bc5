import os
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from .exceptions import ConfigError, MissingCredentialError

load_dotenv()

OPENAI_KEY_NAME = "OPENAI_API_KEY"
PINECONE_KEY_NAME = "PINECONE_API_KEY"

DEFAULT_EMBEDDING_MODEL = "text-embedding-ada-002"
DEFAULT_INDEX_NAME = "property-listings-index"
DEFAULT_CSV_PATH = "semantic_property_listings.csv"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid {name}: {raw!r}") from exc


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid {name}: {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once at startup.

    API keys are not part of this object. They are looked up per request
    through ``require_credential``.
    """

    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    index_name: str = DEFAULT_INDEX_NAME
    index_host: Optional[str] = None
    csv_path: str = DEFAULT_CSV_PATH
    top_k: int = 20
    embedding_max_attempts: int = 3
    embedding_max_backoff: float = 10.0
    request_timeout: float = 10.0
    api_prefix: str = "/api"
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    production: bool = True
    trace_path: Optional[str] = None
    redis_host: Optional[str] = None
    redis_port: int = 6379
    rate_limit_max: int = 30
    rate_limit_window: int = 60


def load_settings() -> Settings:
    origins = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()]
    top_k = _int_env("SEARCH_TOP_K", 20)
    if top_k <= 0:
        raise ConfigError("SEARCH_TOP_K must be positive")
    attempts = _int_env("EMBEDDING_MAX_ATTEMPTS", 3)
    if attempts <= 0:
        raise ConfigError("EMBEDDING_MAX_ATTEMPTS must be positive")

    return Settings(
        embedding_model=os.getenv("EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL),
        index_name=os.getenv("PINECONE_INDEX_NAME", DEFAULT_INDEX_NAME),
        index_host=os.getenv("PINECONE_INDEX_HOST") or None,
        csv_path=os.getenv("PROPERTY_CSV_PATH", DEFAULT_CSV_PATH),
        top_k=top_k,
        embedding_max_attempts=attempts,
        embedding_max_backoff=_float_env("EMBEDDING_MAX_BACKOFF", 10.0),
        request_timeout=_float_env("REQUEST_TIMEOUT", 10.0),
        api_prefix=os.getenv("API_PREFIX", "/api").rstrip("/"),
        allowed_origins=origins or ["*"],
        production=os.getenv("FLASK_ENV", "production").lower() == "production",
        trace_path=os.getenv("TRACE_PATH") or None,
        redis_host=os.getenv("REDIS_HOST") or None,
        redis_port=_int_env("REDIS_PORT", 6379),
        rate_limit_max=_int_env("RATE_LIMIT_MAX", 30),
        rate_limit_window=_int_env("RATE_LIMIT_WINDOW", 60),
    )


def require_credential(name: str) -> str:
    """Return the named API key from the environment or raise MissingCredentialError."""
    value = os.getenv(name, "").strip()
    if not value:
        raise MissingCredentialError(name)
    return value


def configure_logging(level: Optional[str] = None):
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )
