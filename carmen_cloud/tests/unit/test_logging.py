"""Unit tests for logging configuration and client metrics."""

import json
import logging

import pytest
from prometheus_client import REGISTRY

from carmen_cloud.core.logging import (
    ContextFilter,
    CustomJsonFormatter,
    bind_retry_context,
    get_logger,
    sanitize_error,
    setup_logging,
    unbind_retry_context,
)
from carmen_cloud.core.metrics import (
    get_metrics_response,
    record_client_error,
    record_request_outcome,
)


@pytest.fixture
def package_logger():
    """Restore the package logger after a test reconfigures it."""
    logger = logging.getLogger("carmen_cloud")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


def make_record(message: str = "dispatching") -> logging.LogRecord:
    return logging.LogRecord(
        name="carmen_cloud.services.recognition_client",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )


class TestSanitizeError:
    """Credential redaction and truncation."""

    @pytest.mark.parametrize(
        "text",
        [
            "request failed: api_key=abc123",
            "request failed: X-Api-Key: abc123",
            "Authorization header Bearer abc123",
        ],
    )
    def test_credentials_redacted(self, text):
        sanitized = sanitize_error(text)
        assert "abc123" not in sanitized
        assert "[REDACTED]" in sanitized

    def test_long_message_truncated(self):
        sanitized = sanitize_error(ValueError("x" * 1000), max_length=100)
        assert sanitized == "x" * 100 + "...[truncated]"

    def test_plain_message_unchanged(self):
        assert sanitize_error(RuntimeError("Connection refused")) == "Connection refused"


class TestFormatting:
    """Retry context in log records."""

    def test_filter_adds_bound_context(self):
        record = make_record()
        token = bind_retry_context({"job_id": "42", "attempt": 2})
        try:
            ContextFilter().filter(record)
        finally:
            unbind_retry_context(token)

        assert record.retry_context == {"job_id": "42", "attempt": 2}

    def test_filter_without_context(self):
        record = make_record()
        ContextFilter().filter(record)
        assert record.retry_context is None

    def test_json_formatter_fields(self):
        record = make_record("Retrying vehicle request")
        record.retry_context = {"attempt": 1}

        payload = json.loads(CustomJsonFormatter("%(message)s").format(record))

        assert payload["message"] == "Retrying vehicle request"
        assert payload["level"] == "WARNING"
        assert payload["component"] == "carmen_cloud.services.recognition_client"
        assert payload["retry_context"] == {"attempt": 1}
        assert "timestamp" in payload

    def test_json_formatter_omits_empty_context(self):
        record = make_record()
        record.retry_context = None

        payload = json.loads(CustomJsonFormatter("%(message)s").format(record))

        assert "retry_context" not in payload


class TestSetupLogging:
    """Package logger configuration."""

    def test_json_handler_installed(self, clean_env, package_logger):
        setup_logging(level="debug", json_output=True)

        assert package_logger.level == logging.DEBUG
        assert len(package_logger.handlers) == 1
        handler = package_logger.handlers[0]
        assert isinstance(handler.formatter, CustomJsonFormatter)
        assert any(isinstance(f, ContextFilter) for f in handler.filters)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_defaults_from_settings(self, clean_env, package_logger):
        clean_env.setenv("CARMEN_LOG_LEVEL", "ERROR")

        setup_logging()

        assert package_logger.level == logging.ERROR
        assert not isinstance(package_logger.handlers[0].formatter, CustomJsonFormatter)

    def test_root_logger_untouched(self, clean_env, package_logger):
        root_handlers = list(logging.getLogger().handlers)
        setup_logging(json_output=False)
        assert logging.getLogger().handlers == root_handlers

    def test_get_logger(self):
        assert get_logger("carmen_cloud.x").name == "carmen_cloud.x"


class TestMetrics:
    """Prometheus counters."""

    def test_request_outcome_counter(self):
        labels = {"service": "metrics-test", "outcome": "exhausted"}
        before = REGISTRY.get_sample_value("carmen_client_requests_total", labels) or 0.0

        record_request_outcome("metrics-test", "exhausted")

        assert REGISTRY.get_sample_value("carmen_client_requests_total", labels) == before + 1

    def test_exposition_contains_client_metrics(self):
        record_client_error("metrics-test", "transport")
        body = get_metrics_response().decode()
        assert "carmen_client_errors_total" in body
        assert "carmen_client_request_duration_seconds" in body
