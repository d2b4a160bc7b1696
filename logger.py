# Structured JSON logger shared by the API modules.
# Every log line is a single JSON object.

import json
import logging
import os
from datetime import datetime, timezone


class StructuredFormatter(logging.Formatter):
    """
    Formats every log line as a JSON object.
    Attach extra fields via: logger.info("msg", extra={"order_id": "..."})
    """
    EXTRA_FIELDS = ("order_id", "status", "image", "kind")

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "ts":      datetime.now(timezone.utc).isoformat(),
            "level":   record.levelname,
            "service": record.name,
            "message": record.getMessage(),
        }
        for key in self.EXTRA_FIELDS:
            if hasattr(record, key):
                log[key] = getattr(record, key)

        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)

        return json.dumps(log, ensure_ascii=False, default=str)


def get_logger(name: str) -> logging.Logger:
    """
    Returns a structured logger for the given module.
    Call this once per module:  logger = get_logger(__name__)
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

        level = os.getenv("LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, level, logging.INFO))

    return logger
