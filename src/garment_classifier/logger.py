"""Structured JSON logging module.

This module provides JSON-formatted logging with classification context
tracking. Every classify() call binds a fresh classification id so that the
decode, preprocessing and inference lines of one request can be grouped.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any

# Context variable for per-request classification ID tracking
classification_id_var: ContextVar[str | None] = ContextVar(
    "classification_id", default=None
)

EXTRA_FIELDS: tuple[str, ...] = (
    "model_name",
    "role",
    "latency_ms",
    "label",
    "score",
    "input_shape",
)

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Formats log records as JSON objects with standardized fields:
    - timestamp: ISO format timestamp
    - level: Log level (INFO, WARNING, ERROR, etc.)
    - logger: Logger name
    - message: Log message
    - classification_id: Optional request context ID
    - model_name, role, latency_ms, label, score, input_shape: Optional extras
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON string representation
        """
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        classification_id = classification_id_var.get()
        if classification_id:
            log_data["classification_id"] = classification_id

        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def new_classification_id() -> str:
    """Bind and return a fresh classification ID for the current context."""
    classification_id = uuid.uuid4().hex[:12]
    classification_id_var.set(classification_id)
    return classification_id


def setup_logging(log_level: str = "INFO", fmt: str = "json") -> None:
    """Setup logging for the application.

    Configures the root logger with a single stdout handler using either
    the JSON formatter or a plain text format.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        fmt: "json" or "text"

    Raises:
        ValueError: If fmt or log_level is not recognized
    """
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    elif fmt == "text":
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%H:%M:%S"))
    else:
        raise ValueError(f"Unknown log format: {fmt} (expected 'json' or 'text')")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
