"""Tests for structured JSON logging."""
from __future__ import annotations

import json
import logging
import sys

from src.shared.logging import JSONFormatter, setup_logging, trace_id_var


def _record(message: str = "hello %s", args=("world",), **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="src.analyzer.test", level=logging.INFO, pathname=__file__,
        lineno=1, msg=message, args=args, exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_core_fields(self):
        entry = json.loads(JSONFormatter(service_name="svc").format(_record()))
        assert entry["message"] == "hello world"
        assert entry["level"] == "INFO"
        assert entry["service_name"] == "svc"
        assert entry["logger"] == "src.analyzer.test"
        assert "timestamp" in entry

    def test_trace_id_from_context(self):
        token = trace_id_var.set("trace-1")
        try:
            entry = json.loads(JSONFormatter().format(_record()))
        finally:
            trace_id_var.reset(token)
        assert entry["trace_id"] == "trace-1"

    def test_context_merged(self):
        record = _record(context={"processes": 2, "message": "ignored"})
        entry = json.loads(JSONFormatter().format(record))
        assert entry["processes"] == 2
        assert entry["message"] == "hello world"

    def test_exception_included(self):
        try:
            raise ValueError("bad value")
        except ValueError:
            record = _record(exc_info=sys.exc_info())
        entry = json.loads(JSONFormatter().format(record))
        assert entry["exception"] == "bad value"


class TestSetupLogging:
    def test_configures_service_and_package_loggers(self):
        logger = setup_logging("analyzer-test", "debug")
        assert logger.name == "analyzer-test"
        assert logger.level == logging.DEBUG
        for name in ("analyzer-test", "src"):
            handlers = logging.getLogger(name).handlers
            assert len(handlers) == 1
            assert isinstance(handlers[0].formatter, JSONFormatter)

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging("analyzer-test")
        setup_logging("analyzer-test")
        assert len(logging.getLogger("analyzer-test").handlers) == 1

    def test_unknown_level_falls_back_to_info(self):
        assert setup_logging("analyzer-test", "chatty").level == logging.INFO
