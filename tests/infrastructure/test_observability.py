"""Structured Logging — verifies transaction fields surface in both formats."""

import json
import logging

from movr.infrastructure.observability import (
    ConsoleFormatter, JSONFormatter, setup_logging,
)


def _record(**extra):
    record = logging.LogRecord(
        "movr.services.rides", logging.WARNING, __file__, 1,
        "Serialization conflict", None, None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_transaction_fields():
    line = JSONFormatter().format(
        _record(city="seattle", operation="start_ride", attempt=3, sqlstate="40001"),
    )
    data = json.loads(line)
    assert data["level"] == "WARNING"
    assert data["message"] == "Serialization conflict"
    assert data["city"] == "seattle"
    assert data["attempt"] == 3
    assert data["sqlstate"] == "40001"


def test_json_formatter_omits_absent_fields():
    data = json.loads(JSONFormatter().format(_record()))
    assert "city" not in data
    assert "sqlstate" not in data


def test_console_formatter_appends_key_values():
    line = ConsoleFormatter().format(_record(operation="end_ride"))
    assert line.endswith("operation=end_ride")


def test_setup_logging_is_idempotent():
    before = len(logging.root.handlers)
    setup_logging("DEBUG", "console")
    setup_logging("INFO", "json")
    movr_handlers = [h for h in logging.root.handlers if h.get_name() == "movr"]
    assert len(movr_handlers) == 1
    assert len(logging.root.handlers) <= before + 1
    logging.root.removeHandler(movr_handlers[0])
