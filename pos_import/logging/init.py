from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from typing import Any

"""Console logging for the import CLI.

One "pos_import" logger writes 'LABEL message' lines to stdout, where LABEL
is DEBUG|INFO|WARN|ERROR|SUMMARY. SUMMARY (level 25) carries the single
key=value line a run ends with; log_summary() takes either the finished
text or the fields, so callers never format the label themselves.
Module loggers (logging.getLogger(__name__)) propagate into it.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LABEL",
    "SUMMARY_LEVEL",
    "get_logger",
    "log_summary",
    "render_fields",
    "reset_logging",
    "set_debug",
    "setup_logging",
]

LOGGER_NAME = "pos_import"
SUMMARY_LEVEL = 25
SUMMARY_LABEL = "SUMMARY"

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: SUMMARY_LABEL,
    }

    def format(self, record: logging.LogRecord) -> str:
        level_label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        return f"{level_label} {record.getMessage()}"


def render_fields(fields: Mapping[str, Any]) -> str:
    """'key=value' pairs joined by single spaces, in the mapping's order.

    >>> render_fields({"type": "stock", "rows": 3})
    'type=stock rows=3'
    """
    return " ".join(f"{key}={value}" for key, value in fields.items())


def setup_logging() -> logging.Logger:
    """Configure the stdout logger once; later calls return the same logger."""
    global _logger

    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, SUMMARY_LABEL)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    if _logger is None:
        return setup_logging()
    return _logger


def set_debug(logger: logging.Logger) -> None:
    """--debug: let DEBUG records (row-level traces, store calls) through."""
    for h in logger.handlers:
        h.setLevel(logging.DEBUG)
    logger.setLevel(logging.DEBUG)


def log_summary(message: str | Mapping[str, Any]) -> None:
    """Emit the run's SUMMARY line from text or from ordered fields."""
    if not isinstance(message, str):
        message = render_fields(message)
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Forget the configured logger (tests)."""
    global _logger
    _logger = None
