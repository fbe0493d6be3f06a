"""
Tests for structured logging.
"""

import json
import logging
import sys

import pytest

from garment_classifier.logger import (
    JSONFormatter,
    classification_id_var,
    new_classification_id,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(message: str = "Classified as Blue Shirt", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="garment_classifier.classifier",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_standard_fields(self) -> None:
        token = classification_id_var.set(None)
        try:
            data = json.loads(JSONFormatter().format(make_record()))
        finally:
            classification_id_var.reset(token)

        assert data["level"] == "INFO"
        assert data["logger"] == "garment_classifier.classifier"
        assert data["message"] == "Classified as Blue Shirt"
        assert "timestamp" in data
        assert "classification_id" not in data

    def test_extra_fields(self) -> None:
        record = make_record(role="color", latency_ms=3.5, input_shape=[1, 24, 24, 3])

        data = json.loads(JSONFormatter().format(record))

        assert data["role"] == "color"
        assert data["latency_ms"] == 3.5
        assert data["input_shape"] == [1, 24, 24, 3]
        assert "label" not in data

    def test_unknown_extra_ignored(self) -> None:
        data = json.loads(JSONFormatter().format(make_record(request_path="/x")))

        assert "request_path" not in data

    def test_classification_id(self) -> None:
        token = classification_id_var.set(None)
        try:
            classification_id = new_classification_id()
            data = json.loads(JSONFormatter().format(make_record()))
        finally:
            classification_id_var.reset(token)

        assert len(classification_id) == 12
        assert data["classification_id"] == classification_id

    def test_exception(self) -> None:
        try:
            raise RuntimeError("session crashed")
        except RuntimeError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert "session crashed" in data["exception"]


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_json_handler(self, restore_root_logger: logging.Logger) -> None:
        setup_logging("DEBUG", "json")

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)

    def test_text_handler(self, restore_root_logger: logging.Logger) -> None:
        setup_logging("warning", "text")

        assert restore_root_logger.level == logging.WARNING
        assert not isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)

    def test_unknown_level(self, restore_root_logger: logging.Logger) -> None:
        with pytest.raises(ValueError, match="log level"):
            setup_logging("LOUD")

    def test_unknown_format(self, restore_root_logger: logging.Logger) -> None:
        with pytest.raises(ValueError, match="log format"):
            setup_logging("INFO", "xml")
