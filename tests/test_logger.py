"""
Unit Tests for Logging Setup
"""

import json
import logging
import sys

import pytest

from imagesort.logger import JSONFormatter, setup_logging


def _record(msg: str = "Moved a.jpg", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="imagesort.organizer",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_standard_fields(self) -> None:
        """Output should be JSON with the standard fields."""
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "imagesort.organizer"
        assert data["message"] == "Moved a.jpg"
        assert "timestamp" in data

    def test_extra_fields(self) -> None:
        """Per-image extras should be included when present."""
        data = json.loads(JSONFormatter().format(_record(image="a.jpg", label="cat")))

        assert data["image"] == "a.jpg"
        assert data["label"] == "cat"
        assert "destination" not in data

    def test_exception_info(self) -> None:
        """Exception text should be included."""
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: boom" in data["exception"]


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_handler(self) -> None:
        """JSON format should install a JSONFormatter."""
        setup_logging("DEBUG", "json")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_text_handler(self) -> None:
        """Text format should use a plain formatter."""
        setup_logging("warning", "text")

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_invalid_level(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            setup_logging("LOUD")

    def test_invalid_format(self) -> None:
        with pytest.raises(ValueError, match="Unknown log format"):
            setup_logging("INFO", "xml")
