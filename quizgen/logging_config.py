"""
Centralized logging configuration with structured logging support.
"""
import json
import logging
import logging.config
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for production logging.

    Produces structured log entries with consistent fields for log aggregation.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_entry: Dict[str, Any] = {
            "timestamp": timestamp.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Structured fields passed via ``extra=``
        for field in ("domain", "attempt", "provider", "state"):
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.levelno >= logging.ERROR:
            log_entry["source"] = f"{record.pathname}:{record.lineno}"

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    enable_file_logging: bool = False,
    json_format: bool = False,
) -> None:
    """
    Configure logging for the question generation service.

    Args:
        log_level: Level name (DEBUG, INFO, ...)
        log_file: Path of the log file, used when file logging is enabled
        enable_file_logging: Also write logs to ``log_file``
        json_format: Emit JSON lines on the console instead of plain text
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "json" if json_format else "default",
            # stdout carries command output
            "stream": sys.stderr,
        },
    }

    if enable_file_logging and log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "level": level,
            "formatter": "json",
            "filename": log_file,
            "encoding": "utf-8",
        }

    logging_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": JSONFormatter,
            },
        },
        "handlers": handlers,
        "root": {
            "level": level,
            "handlers": list(handlers.keys()),
        },
        "loggers": {
            # Quiet down noisy client libraries
            "httpx": {"level": logging.WARNING},
            "httpcore": {"level": logging.WARNING},
            "openai": {"level": logging.WARNING},
        },
    }

    logging.config.dictConfig(logging_config)
