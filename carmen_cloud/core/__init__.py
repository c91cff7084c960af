"""Core infrastructure components."""

from carmen_cloud.core.config import Settings, get_settings
from carmen_cloud.core.exceptions import ClientError, ConfigurationError, ErrorKind
from carmen_cloud.core.logging import get_logger, get_retry_context, setup_logging
from carmen_cloud.core.retry import (
    BackoffStrategy,
    RetryContext,
    RetryPolicy,
    default_retry,
    is_retryable_default,
)

__all__ = [
    "BackoffStrategy",
    "ClientError",
    "ConfigurationError",
    "ErrorKind",
    "RetryContext",
    "RetryPolicy",
    "Settings",
    "default_retry",
    "get_logger",
    "get_retry_context",
    "get_settings",
    "is_retryable_default",
    "setup_logging",
]
