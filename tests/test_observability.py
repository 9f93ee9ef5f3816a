"""
Tests for observability components (metrics and logging).
"""

import json
import logging
import sys

from gitbrief.observability.logging import JSONFormatter, log_context, log_fields
from gitbrief.observability.metrics import (
    collection_runs_counter,
    metrics_registry,
    render_metrics,
)


def make_record(message: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="gitbrief.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )


class TestJSONFormatter:
    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(make_record("collecting")))

        assert data["level"] == "INFO"
        assert data["logger"] == "gitbrief.test"
        assert data["message"] == "collecting"
        assert "context" not in data

    def test_includes_log_context(self):
        with log_context(run_id="abc123", date="2024-01-17"):
            data = json.loads(JSONFormatter().format(make_record()))

        assert data["context"] == {"run_id": "abc123", "date": "2024-01-17"}

    def test_exception_info(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))
        assert data["exception"]["type"] == "ValueError"
        assert data["exception"]["message"] == "boom"


def test_log_context_nests_and_resets():
    with log_context(run_id="outer"):
        with log_context(repo="acme/rocket"):
            assert log_fields.get() == {"run_id": "outer", "repo": "acme/rocket"}
        assert log_fields.get() == {"run_id": "outer"}
    assert log_fields.get() == {}


def test_render_metrics():
    before = metrics_registry.get_sample_value("collection_runs_total", {"status": "completed"}) or 0.0
    collection_runs_counter.labels(status="completed").inc()

    payload, content_type = render_metrics()

    assert content_type.startswith("text/plain")
    assert b"collection_runs_total" in payload
    after = metrics_registry.get_sample_value("collection_runs_total", {"status": "completed"})
    assert after == before + 1
