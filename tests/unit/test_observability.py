"""
Unit Tests for Tracing and Logging Setup
"""

import json
import logging

import pytest

from paperinsight.config import LoggingSettings
from paperinsight.observability import (
    JsonFormatter,
    SpanKind,
    SpanStatus,
    Tracer,
    configure_logging,
    get_tracer,
)


class TestTracer:
    def test_successful_span(self):
        tracer = Tracer("test")
        with tracer.span("op", kind=SpanKind.CLIENT, attributes={"model": "m"}) as span:
            span.set_attribute("bytes", 10)

        (recorded,) = tracer.get_spans()
        assert recorded.name == "test.op"
        assert recorded.status == SpanStatus.OK
        assert recorded.attributes == {"model": "m", "bytes": 10}
        assert recorded.duration_ms is not None

    def test_failed_span_reraises(self):
        tracer = Tracer("test")
        with pytest.raises(RuntimeError):
            with tracer.span("op"):
                raise RuntimeError("boom")

        (recorded,) = tracer.get_spans()
        assert recorded.status == SpanStatus.ERROR
        assert "RuntimeError: boom" in recorded.status_message

    def test_export_jsonl(self, tmp_path):
        tracer = Tracer("test", export_path=tmp_path)
        with tracer.span("op"):
            pass

        lines = (tmp_path / f"trace_{tracer.trace_id}.jsonl").read_text().splitlines()
        assert json.loads(lines[0])["name"] == "test.op"

    def test_retained_spans_are_capped(self):
        tracer = Tracer("test", max_spans=3)
        for i in range(5):
            with tracer.span(f"op{i}"):
                pass

        assert [s.name for s in tracer.get_spans()] == ["test.op2", "test.op3", "test.op4"]

    def test_get_tracer_is_cached(self):
        assert get_tracer("a") is get_tracer("a")
        assert get_tracer("a") is not get_tracer("b")


class TestLogging:
    def test_json_formatter(self):
        record = logging.LogRecord(
            "paperinsight.x", logging.INFO, __file__, 1, "hi %s", ("あ",), None
        )
        entry = json.loads(JsonFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "paperinsight.x"
        assert entry["message"] == "hi あ"

    def test_configure_logging_installs_one_handler(self):
        settings = LoggingSettings(_env_file=None, LOG_LEVEL="WARNING", LOG_FORMAT="json")
        configure_logging(settings)
        configure_logging(settings)

        package_logger = logging.getLogger("paperinsight")
        assert len(package_logger.handlers) == 1
        assert isinstance(package_logger.handlers[0].formatter, JsonFormatter)
        assert package_logger.level == logging.WARNING

        package_logger.handlers.clear()
        package_logger.propagate = True
        package_logger.setLevel(logging.NOTSET)
