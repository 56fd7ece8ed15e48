"""Logging configuration.

Every module logs through ``logging.getLogger(__name__)`` under the
``ledgerkit`` namespace; ``setup_logging`` decides where that goes.
"""

import json
import logging
from datetime import datetime, UTC

ROOT_LOGGER = "ledgerkit"
TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "account_id": getattr(record, "account_id", None),
            "transaction_id": getattr(record, "transaction_id", None),
            "operation": getattr(record, "operation", None),
        }
        log_entry = {k: v for k, v in log_entry.items() if v is not None}

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "WARNING", fmt: str = "text") -> logging.Logger:
    """Install a stderr handler on the ``ledgerkit`` logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: "json" for structured output, anything else for plain text

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(ROOT_LOGGER)

    # Remove existing handlers to avoid duplicates on repeated CLI invocations
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    if fmt.lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    return logger
