"""
PaperInsight Tracer

Lightweight spans around remote calls and session operations.
"""

import json
import logging
import time
import uuid
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Generator

from paperinsight.config import get_settings

logger = logging.getLogger(__name__)

# Finished spans kept in memory per tracer; older ones are dropped.
MAX_RETAINED_SPANS = 1000


class SpanKind(str, Enum):
    """Span types for categorization."""

    INTERNAL = "internal"
    CLIENT = "client"  # Calls to the generative service


class SpanStatus(str, Enum):
    """Span completion status."""

    UNSET = "unset"
    OK = "ok"
    ERROR = "error"


@dataclass
class Span:
    """Unit of traced work."""

    trace_id: str
    span_id: str
    name: str
    kind: SpanKind = SpanKind.INTERNAL
    start_time: float = field(default_factory=time.time)
    end_time: float | None = None
    status: SpanStatus = SpanStatus.UNSET
    status_message: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float | None:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time) * 1000

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def set_status(self, status: SpanStatus, message: str | None = None) -> None:
        self.status = status
        self.status_message = message

    def end(self) -> None:
        if self.end_time is None:
            self.end_time = time.time()

    def to_dict(self) -> dict[str, Any]:
        return {
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "name": self.name,
            "kind": self.kind.value,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration_ms": self.duration_ms,
            "status": self.status.value,
            "status_message": self.status_message,
            "attributes": self.attributes,
        }


class Tracer:
    """
    Records spans for one component.

    Usage:
        tracer = get_tracer("paperinsight.llm")

        with tracer.span("generate_text", kind=SpanKind.CLIENT) as span:
            span.set_attribute("model", model)
            ...
    """

    def __init__(
        self,
        name: str,
        export_path: Path | None = None,
        max_spans: int = MAX_RETAINED_SPANS,
    ) -> None:
        self._name = name
        self._trace_id = uuid.uuid4().hex[:16]
        self._export_path = export_path
        self._spans: deque[Span] = deque(maxlen=max_spans)

    @property
    def trace_id(self) -> str:
        return self._trace_id

    @contextmanager
    def span(
        self,
        name: str,
        kind: SpanKind = SpanKind.INTERNAL,
        attributes: dict[str, Any] | None = None,
    ) -> Generator[Span, None, None]:
        """Open a span; exceptions mark it as failed and propagate."""
        span = Span(
            trace_id=self._trace_id,
            span_id=uuid.uuid4().hex[:16],
            name=f"{self._name}.{name}",
            kind=kind,
            attributes=attributes or {},
        )
        try:
            yield span
            if span.status == SpanStatus.UNSET:
                span.set_status(SpanStatus.OK)
        except BaseException as e:
            span.set_status(SpanStatus.ERROR, f"{type(e).__name__}: {e}")
            raise
        finally:
            span.end()
            self._spans.append(span)
            logger.debug(
                "span %s %s in %.1f ms", span.name, span.status.value, span.duration_ms or 0.0
            )
            if self._export_path:
                self._export_span(span)

    def _export_span(self, span: Span) -> None:
        """Append span to this tracer's JSONL file."""
        if self._export_path is None:
            return
        self._export_path.mkdir(parents=True, exist_ok=True)
        with open(self._export_path / f"trace_{self._trace_id}.jsonl", "a") as f:
            f.write(json.dumps(span.to_dict(), ensure_ascii=False) + "\n")

    def get_spans(self) -> list[Span]:
        return list(self._spans)


_tracers: dict[str, Tracer] = {}


def get_tracer(name: str) -> Tracer:
    """Get or create a tracer by name."""
    if name not in _tracers:
        features = get_settings().features
        export_path = features.trace_path if features.debug else None
        _tracers[name] = Tracer(name, export_path)
    return _tracers[name]


def reset_tracers() -> None:
    """Reset all tracers (for testing)."""
    _tracers.clear()
