"""
Structured JSON logging utilities for cloud environments.

Emits single-line JSON log records that Azure Log Analytics and
similar collectors can ingest without parsing rules.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message",
}

# Azure SDK loggers that log every HTTP request at INFO
NOISY_LOGGERS = (
    "azure",
    "azure.core.pipeline.policies.http_logging_policy",
    "azure.identity",
    "azure.cosmos",
    "azure.storage.blob",
)


class StructuredJsonFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Fields: timestamp (UTC ISO 8601), level, logger, message, exception
    (when present) and any values passed through ``extra``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                log_obj[key] = value
            except (TypeError, ValueError):
                log_obj[key] = str(value)

        return json.dumps(log_obj, default=str)


def configure_structured_logging(
    level: int = logging.INFO,
    logger_name: str | None = None,
    quiet_azure: bool = True,
) -> logging.Logger:
    """
    Configure structured JSON logging.

    Args:
        level: Logging level (default: INFO)
        logger_name: Specific logger to configure (default: root logger)
        quiet_azure: Raise Azure SDK loggers to WARNING

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredJsonFormatter())

    logger.addHandler(handler)
    logger.setLevel(level)

    if quiet_azure:
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger


def get_sync_logger(name: str) -> logging.Logger:
    """
    Get a logger for sync components with consistent naming.

    Args:
        name: Component name (e.g., 'engine', 'cosmos')

    Returns:
        Logger instance named 'todo_sync.{name}'
    """
    return logging.getLogger(f"todo_sync.{name}")


class SyncLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that attaches record context (record_id, blob_key, ...)
    to every message.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs
