"""Centralized logging configuration for the client.

This module provides:
- Logger setup with a console handler (plain text or structured JSON)
- Retry context propagation via contextvars
- Helper functions for getting configured loggers
- Error message sanitization for secure logging
"""

import logging
import re
import sys
from collections.abc import Mapping
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from typing import Any

from pythonjsonlogger.json import JsonFormatter

from carmen_cloud.core.config import get_settings

# Patterns for sensitive data sanitization
_CREDENTIAL_PATTERNS = [
    re.compile(r"(password|secret|token|api[_-]?key|auth)[=:]\s*\S+", re.IGNORECASE),
    re.compile(r"Bearer\s+\S+", re.IGNORECASE),
]

# Correlation values of the logical call whose attempt is currently running
_retry_context: ContextVar[Mapping[str, Any] | None] = ContextVar("retry_context", default=None)

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def get_retry_context() -> Mapping[str, Any] | None:
    """Get the retry correlation values bound to the current attempt."""
    return _retry_context.get()


def bind_retry_context(values: Mapping[str, Any] | None) -> Token[Mapping[str, Any] | None]:
    """Bind retry correlation values for the duration of an attempt."""
    return _retry_context.set(values)


def unbind_retry_context(token: Token[Mapping[str, Any] | None]) -> None:
    """Restore the retry correlation values that were active before ``bind``."""
    _retry_context.reset(token)


class ContextFilter(logging.Filter):
    """Filter that adds the active retry context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add retry_context to the log record."""
        context = get_retry_context()
        record.retry_context = dict(context) if context else None  # type: ignore[attr-defined]
        return True


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with ISO timestamp and extra fields."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        """Add custom fields to the JSON log record."""
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(UTC).isoformat()
        log_record["level"] = record.levelname
        log_record["component"] = record.name

        if getattr(record, "retry_context", None):
            log_record["retry_context"] = record.retry_context  # type: ignore[attr-defined]
        else:
            log_record.pop("retry_context", None)


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Configure logging for the ``carmen_cloud`` logger hierarchy.

    Only the package logger is touched, so applications embedding the client
    keep control of the root logger.

    Args:
        level: Log level name; defaults to ``settings.log_level``
        json_output: Emit JSON lines; defaults to ``settings.log_json``
    """
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    use_json = settings.log_json if json_output is None else json_output

    package_logger = logging.getLogger("carmen_cloud")
    package_logger.setLevel(log_level)
    package_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(ContextFilter())
    if use_json:
        handler.setFormatter(CustomJsonFormatter("%(message)s"))
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    package_logger.addHandler(handler)

    # Reduce noise from the HTTP stack
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    package_logger.debug(f"Logging configured: level={level_name}, json={use_json}")


def sanitize_error(error: BaseException | str, max_length: int = 500) -> str:
    """Sanitize error message for secure logging.

    Removes credentials/tokens/API keys and truncates long messages.

    Args:
        error: The exception (or raw message) to sanitize
        max_length: Maximum length of the sanitized message (default 500)

    Returns:
        Sanitized error message safe for logging
    """
    msg = str(error)

    for pattern in _CREDENTIAL_PATTERNS:
        msg = pattern.sub("[REDACTED]", msg)

    if len(msg) > max_length:
        msg = msg[:max_length] + "...[truncated]"

    return msg


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
