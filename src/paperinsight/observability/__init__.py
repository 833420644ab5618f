"""
PaperInsight Observability Layer

Tracing and logging setup.
"""

from paperinsight.observability.log_config import JsonFormatter, configure_logging
from paperinsight.observability.tracer import (
    Span,
    SpanKind,
    SpanStatus,
    Tracer,
    get_tracer,
    reset_tracers,
)

__all__ = [
    # Tracer
    "Tracer",
    "Span",
    "SpanKind",
    "SpanStatus",
    "get_tracer",
    "reset_tracers",
    # Logging
    "JsonFormatter",
    "configure_logging",
]
