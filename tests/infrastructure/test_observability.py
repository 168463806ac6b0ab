"""Structured logging tests — JSONFormatter output."""

import json
import logging

from workflow_model.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "workflow_model.test", logging.WARNING, __file__, 1, "denied %s", ("alice",), None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_core_fields():
    payload = json.loads(JSONFormatter().format(_record()))
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "workflow_model.test"
    assert payload["message"] == "denied alice"
    assert "timestamp" in payload


def test_json_formatter_surfaces_extra_fields():
    payload = json.loads(JSONFormatter().format(
        _record(entity_type="submission", instance_id="s-1", action="read", unrelated="x"),
    ))
    assert payload["entity_type"] == "submission"
    assert payload["instance_id"] == "s-1"
    assert payload["action"] == "read"
    assert "unrelated" not in payload


def test_setup_logging_is_idempotent():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        first = setup_logging("INFO", "json")
        second = setup_logging("DEBUG", "text")
        assert first not in root.handlers
        assert second in root.handlers
        assert root.level == logging.DEBUG
        assert not isinstance(second.formatter, JSONFormatter)
    finally:
        root.removeHandler(second)
        root.handlers[:] = before
        root.setLevel(level)
