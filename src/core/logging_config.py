"""
Structured Logging Configuration for InvoiceStream
==================================================

Provides plain or JSON-formatted logging. JSON output suits log aggregation
systems (ELK, CloudWatch, etc.); plain output is the default for local runs.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging.

    Outputs log records as JSON objects with consistent fields
    for easy parsing and analysis.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data["extra"] = record.extra_data

        return json.dumps(log_data, default=str)


class ContextFormatter(logging.Formatter):
    """Plain-text formatter that appends the ContextLogger context as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extra = getattr(record, "extra_data", None)
        if extra:
            pairs = " ".join(f"{key}={value}" for key, value in extra.items())
            message = f"{message} | {pairs}"
        return message


class ContextLogger:
    """
    Logger wrapper that attaches context to every message.

    Usage:
        logger = get_logger(__name__)
        logger.info("Processing document", extra={"file": "a.pdf", "index": 0})

        doc_logger = logger.bind(file="a.pdf", index=0)
        doc_logger.info("Pass 1 complete")  # carries file and index
    """

    def __init__(self, logger: logging.Logger, context: dict[str, Any] | None = None):
        self._logger = logger
        self._context = dict(context or {})

    def bind(self, **context: Any) -> "ContextLogger":
        """Return a logger whose messages always carry ``context``."""
        return ContextLogger(self._logger, {**self._context, **context})

    def _log(self, level: int, message: str, extra: dict[str, Any] | None = None, **kwargs):
        merged = {**self._context, **(extra or {})}
        if merged:
            kwargs["extra"] = {"extra_data": merged}
        # Report the caller, not this wrapper
        kwargs.setdefault("stacklevel", 3)
        self._logger.log(level, message, **kwargs)

    def debug(self, message: str, extra: dict[str, Any] | None = None, **kwargs):
        self._log(logging.DEBUG, message, extra, **kwargs)

    def info(self, message: str, extra: dict[str, Any] | None = None, **kwargs):
        self._log(logging.INFO, message, extra, **kwargs)

    def warning(self, message: str, extra: dict[str, Any] | None = None, **kwargs):
        self._log(logging.WARNING, message, extra, **kwargs)

    def error(self, message: str, extra: dict[str, Any] | None = None, **kwargs):
        self._log(logging.ERROR, message, extra, **kwargs)

    def exception(self, message: str, extra: dict[str, Any] | None = None, **kwargs):
        kwargs["exc_info"] = True
        self._log(logging.ERROR, message, extra, **kwargs)


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None
) -> None:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: If True, use JSON formatting; otherwise, use plain text
        log_file: Optional file path for log output (always JSON)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    if json_format:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(ContextFormatter(
            "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
        ))
    root_logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> ContextLogger:
    """
    Get a context-aware logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        ContextLogger instance
    """
    return ContextLogger(logging.getLogger(name))
