"""Tests for logging configuration."""

import json
import logging
import sys

import pytest

from quizgen.logging_config import JSONFormatter, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    """Restore root logger handlers after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


class TestJSONFormatter:
    """Test suite for JSONFormatter."""

    def test_structured_fields(self):
        """Test that extra fields end up in the JSON entry."""
        record = logging.LogRecord(
            "quizgen.generation", logging.INFO, __file__, 10, "attempt %d", (2,), None
        )
        record.domain = "mathematics"
        record.attempt = 2

        entry = json.loads(JSONFormatter().format(record))

        assert entry["message"] == "attempt 2"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "quizgen.generation"
        assert entry["domain"] == "mathematics"
        assert entry["attempt"] == 2
        assert "source" not in entry

    def test_errors_carry_source_and_exception(self):
        """Test source location and traceback on error records."""
        try:
            raise ValueError("bad")
        except ValueError:
            record = logging.LogRecord(
                "quizgen", logging.ERROR, __file__, 42, "failed", (), sys.exc_info()
            )

        entry = json.loads(JSONFormatter().format(record))

        assert entry["source"].endswith(":42")
        assert "ValueError: bad" in entry["exception"]


class TestSetupLogging:
    """Test suite for setup_logging."""

    def test_console_only(self):
        """Test the default console configuration."""
        setup_logging(log_level="DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_file_logging(self, tmp_path):
        """Test that file logging writes JSON lines."""
        log_file = tmp_path / "logs" / "quizgen.log"
        setup_logging(log_level="INFO", log_file=str(log_file), enable_file_logging=True)

        logging.getLogger("quizgen.test").info("hello file")
        for handler in logging.getLogger().handlers:
            handler.flush()

        line = log_file.read_text().strip().splitlines()[-1]
        assert json.loads(line)["message"] == "hello file"

    def test_unknown_level_falls_back_to_info(self):
        """Test that an unknown level name means INFO."""
        setup_logging(log_level="LOUD")
        assert logging.getLogger().level == logging.INFO
