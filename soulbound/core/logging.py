"""Logging configuration.

Provides JSON-formatted logging for the credential registry. Audit records
carry their structured fields through ``extra`` and are copied into the
JSON payload.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

# Structured fields copied from the LogRecord when present
STRUCTURED_FIELDS = ("type", "principal", "action", "status", "resource", "details")


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record):
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k in STRUCTURED_FIELDS:
            if hasattr(record, k):
                payload[k] = getattr(record, k)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(
    log_file: Optional[str] = None,
    log_level: Optional[str] = None,
) -> None:
    """Configure root logging with the JSON formatter.

    Args:
        log_file: Optional path to an append-mode log file. Defaults to the
            SBT_LOG_FILE env var; no file handler when unset.
        log_level: Log level. Defaults to SBT_LOG_LEVEL env var or 'INFO'.
    """
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JsonFormatter())
    handlers: list[logging.Handler] = [console_handler]

    log_file = log_file or os.getenv("SBT_LOG_FILE")
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(JsonFormatter())
        handlers.append(file_handler)

    root = logging.getLogger()
    log_level = (log_level or os.getenv("SBT_LOG_LEVEL", "INFO")).upper()
    root.setLevel(getattr(logging, log_level, logging.INFO))
    root.handlers = handlers
