"""
PaperInsight Custom Exceptions

This module defines all custom exceptions used throughout PaperInsight.
Exceptions are organized by layer/responsibility.
"""

from typing import Any


class PaperInsightError(Exception):
    """Base exception for all PaperInsight errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(PaperInsightError):
    """Error in system configuration."""

    pass


class MissingAPIKeyError(ConfigurationError):
    """Required API key is missing."""

    def __init__(self, key_name: str):
        super().__init__(f"Missing required API key: {key_name}", {"key_name": key_name})


# =============================================================================
# TRANSPORT ERRORS
# =============================================================================


class TransportError(PaperInsightError):
    """Remote call failed: non-2xx status after retries, or network unreachable."""

    def __init__(self, message: str, endpoint: str | None = None, status_code: int | None = None):
        super().__init__(message, {"endpoint": endpoint, "status_code": status_code})
        self.endpoint = endpoint
        self.status_code = status_code


class RateLimitError(TransportError):
    """HTTP 429 persisted past the retry ceiling."""

    def __init__(self, endpoint: str | None = None, attempts: int | None = None):
        super().__init__(
            f"Rate limit exceeded after {attempts} attempts", endpoint=endpoint, status_code=429
        )
        self.details["attempts"] = attempts
        self.attempts = attempts


# =============================================================================
# RESPONSE ERRORS
# =============================================================================


class MalformedResponseError(PaperInsightError):
    """Model output could not be parsed into the expected structure."""

    def __init__(self, message: str, raw_text: str):
        super().__init__(message, {"raw_text": raw_text[:200]})
        self.raw_text = raw_text


class DecodingError(PaperInsightError):
    """Inline binary payload (audio) was not valid base64."""

    pass
