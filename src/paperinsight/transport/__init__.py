"""
PaperInsight Transport Layer

HTTP delivery with rate-limit backoff.
"""

from paperinsight.transport.backoff import (
    DEFAULT_MAX_RETRIES,
    RATE_LIMIT_STATUS,
    BackoffTransport,
)

__all__ = [
    "BackoffTransport",
    "DEFAULT_MAX_RETRIES",
    "RATE_LIMIT_STATUS",
]
