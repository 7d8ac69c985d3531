"""Tests for structured logging configuration."""

from __future__ import annotations

import io
import json
import logging
import sys

from planner.logging_config import JSONFormatter, log_context, setup_logging


def _record(msg: str = "hello %s", args=("world",), level=logging.INFO, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="test", level=level, pathname="test.py", lineno=1, msg=msg, args=args, exc_info=exc_info
    )


def test_json_formatter_outputs_valid_json():
    parsed = json.loads(JSONFormatter().format(_record()))
    assert parsed["message"] == "hello world"
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "test"
    assert "timestamp" in parsed
    assert "context" not in parsed


def test_json_formatter_includes_exception():
    try:
        raise ValueError("test error")
    except ValueError:
        exc_info = sys.exc_info()
    parsed = json.loads(JSONFormatter().format(_record("fail", (), logging.ERROR, exc_info)))
    assert parsed["exception"]["type"] == "ValueError"
    assert parsed["exception"]["message"] == "test error"


def test_log_context_prefixes_and_drops_none():
    assert log_context(session_id="s1", workout_id=None, count=2) == {"ctx_session_id": "s1", "ctx_count": 2}


def test_json_formatter_emits_context():
    record = _record("session_skipped", ())
    for key, value in log_context(session_id="s1", next_date="2024-01-02").items():
        setattr(record, key, value)
    parsed = json.loads(JSONFormatter().format(record))
    assert parsed["context"] == {"ctx_session_id": "s1", "ctx_next_date": "2024-01-02"}


def test_json_formatter_uses_record_time_in_utc_millis():
    record = _record()
    record.created = 1704067200.5
    assert json.loads(JSONFormatter().format(record))["timestamp"] == "2024-01-01T00:00:00.500Z"


def test_setup_logging_installs_json_handler(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    stream = io.StringIO()

    assert setup_logging("debug", stream=stream) is True
    assert root.level == logging.DEBUG
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    logging.getLogger("planner.services.schedule").info("schedule_generated", extra=log_context(inserted=2))
    parsed = json.loads(stream.getvalue().strip())
    assert parsed["message"] == "schedule_generated"
    assert parsed["context"] == {"ctx_inserted": 2}


def test_setup_logging_idempotent():
    root = logging.getLogger()
    initial_count = len(root.handlers)
    setup_logging()
    setup_logging()
    # Should not add duplicate handlers
    assert len(root.handlers) <= initial_count + 1
