"""Tests for structured logging helpers."""

import json
import logging

from todo_sync.logging_utils import (
    StructuredJsonFormatter,
    SyncLoggerAdapter,
    configure_structured_logging,
    get_sync_logger,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("todo_sync.engine", logging.WARNING, __file__, 1, "upload %s failed", ("a.png",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredJsonFormatter:
    """Tests for StructuredJsonFormatter."""

    def test_formats_single_line_json(self):
        output = StructuredJsonFormatter().format(_record())

        data = json.loads(output)
        assert "\n" not in output
        assert data["level"] == "WARNING"
        assert data["logger"] == "todo_sync.engine"
        assert data["message"] == "upload a.png failed"
        assert "timestamp" in data

    def test_includes_extra_fields(self):
        data = json.loads(StructuredJsonFormatter().format(_record(blob_key="a.png", obj=object())))

        assert data["blob_key"] == "a.png"
        assert data["obj"].startswith("<object")


class TestLoggerHelpers:
    """Tests for logger helpers."""

    def test_get_sync_logger_name(self):
        assert get_sync_logger("cosmos").name == "todo_sync.cosmos"

    def test_adapter_adds_context(self, caplog):
        adapter = SyncLoggerAdapter(get_sync_logger("test"), {"record_id": "abc"})

        with caplog.at_level(logging.INFO, logger="todo_sync.test"):
            adapter.info("deleted")

        assert caplog.records[0].record_id == "abc"

    def test_configure_replaces_handlers_and_quiets_azure(self):
        logger = configure_structured_logging(logging.DEBUG, logger_name="todo_sync.configured")
        try:
            assert len(logger.handlers) == 1
            assert isinstance(logger.handlers[0].formatter, StructuredJsonFormatter)
            assert logging.getLogger("azure").level == logging.WARNING
        finally:
            logger.handlers.clear()
