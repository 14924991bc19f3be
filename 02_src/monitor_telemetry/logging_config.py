"""Structured logging configuration for Monitor Telemetry.

Only the ``monitor_telemetry`` logger is configured; applications embedding
the library keep control of the root logger.
"""

import json
import logging
import logging.config
import logging.handlers
import os
from datetime import datetime, timezone
from pathlib import Path

PACKAGE_LOGGER = "monitor_telemetry"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class JSONFormatter(logging.Formatter):
    """One JSON object per line, stamped with the record's creation time."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        context = getattr(record, "context", None)
        if context is not None:
            entry["context"] = context

        # repr covers values json cannot encode, e.g. datetimes in context
        return json.dumps(entry, default=repr)


def _file_handler(log_file: str) -> dict:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "filename": log_file,
        "maxBytes": LOG_FILE_MAX_BYTES,
        "backupCount": LOG_FILE_BACKUPS,
        "formatter": "json",
        "encoding": "utf-8",
    }


def setup_logging(log_level: str | None = None, log_file: str | None = None) -> None:
    """Send package logs as JSON to stdout and, when log_file is given, a rotating file.

    log_level falls back to TELEMETRY_LOG_LEVEL, then INFO.
    """
    level = (log_level or os.getenv("TELEMETRY_LOG_LEVEL") or "INFO").upper()

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        },
    }
    if log_file:
        handlers["file"] = _file_handler(log_file)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": JSONFormatter}},
            "handlers": handlers,
            "loggers": {
                PACKAGE_LOGGER: {
                    "level": level,
                    "handlers": list(handlers),
                    "propagate": False,
                },
            },
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Logger for a module of this package."""
    return logging.getLogger(name)
