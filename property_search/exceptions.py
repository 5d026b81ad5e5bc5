import re


class PropertySearchError(Exception):
    """Base exception for the property search service."""


class ConfigError(PropertySearchError):
    """Raised when configuration is missing or invalid."""


class MissingCredentialError(ConfigError):
    """Raised when a provider API key is not set."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"{key} is not set")


class ValidationError(PropertySearchError):
    """Raised when a request body fails validation."""


class ProviderError(PropertySearchError):
    """Raised when an external provider (OpenAI/Pinecone) fails."""

    def __init__(self, message: str, provider: str = "unknown"):
        self.provider = provider
        super().__init__(message)


class ProviderAuthError(ProviderError):
    """Raised when a provider rejects our credentials."""

    def __init__(self, message: str, provider: str, key: str):
        self.key = key
        super().__init__(message, provider=provider)


class RateLimitError(ProviderError):
    """Raised when a provider answers HTTP 429."""


AUTH_RE = re.compile(
    r"\b(?:401|403)\b|invalid api key|incorrect api key|unauthori[sz]ed|authentication|permission denied",
    re.IGNORECASE,
)
RATE_LIMIT_RE = re.compile(r"\b429\b|rate limit|too many requests", re.IGNORECASE)


def looks_like_auth_failure(message: str) -> bool:
    """Message-only check, for errors that carry no HTTP status."""
    return bool(AUTH_RE.search(message or ""))


def looks_like_rate_limit(message: str) -> bool:
    return bool(RATE_LIMIT_RE.search(message or ""))
