"""Unit tests for the retry policy and retry context."""

import logging
from unittest.mock import patch

import httpx
import pytest

from carmen_cloud.core.exceptions import ClientError, ErrorKind
from carmen_cloud.core.logging import ContextFilter, get_retry_context
from carmen_cloud.core.retry import (
    BackoffStrategy,
    RetryContext,
    RetryPolicy,
    calculate_delay,
    default_retry,
    is_retryable_default,
)


def http_error(status_code: int) -> ClientError:
    return ClientError(status_code, '{"message": "boom"}', kind=ErrorKind.HTTP)


class TestDefaultPredicate:
    """Which failures the default policy retries."""

    @pytest.mark.parametrize("status_code", [429, 500, 502, 503, 504, 599])
    def test_rate_limit_and_server_errors_are_retryable(self, status_code):
        assert is_retryable_default(http_error(status_code)) is True

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404, 413, 422, 428])
    def test_other_client_errors_are_permanent(self, status_code):
        assert is_retryable_default(http_error(status_code)) is False

    def test_transport_errors_are_retryable(self):
        wrapped = ClientError(500, "connect failed", kind=ErrorKind.TRANSPORT)
        assert is_retryable_default(wrapped) is True
        assert is_retryable_default(httpx.ConnectError("refused")) is True
        assert is_retryable_default(httpx.ReadTimeout("slow")) is True

    def test_decode_and_local_failures_are_permanent(self):
        assert is_retryable_default(ClientError(500, "bad json", kind=ErrorKind.DECODE)) is False
        assert is_retryable_default(ClientError(500, "interrupted", kind=ErrorKind.LOCAL)) is False

    def test_unrelated_exceptions_are_permanent(self):
        assert is_retryable_default(ValueError("nope")) is False


class TestRetryPolicy:
    """Tests for the pure decision function."""

    def test_default_policy_values(self):
        policy = default_retry()
        assert policy.max_attempts == 3
        assert policy.base_delay == 1.0
        assert policy.backoff == BackoffStrategy.FIXED
        assert policy.jitter == 0.0
        assert policy.retry_if is is_retryable_default
        assert policy == RetryPolicy.default()

    def test_default_policy_retries_twice_with_fixed_delay(self):
        policy = default_retry()
        error = http_error(503)
        assert policy.next_delay(1, error) == 1.0
        assert policy.next_delay(2, error) == 1.0
        assert policy.next_delay(3, error) is None

    def test_permanent_error_gives_up_immediately(self):
        assert default_retry().next_delay(1, http_error(400)) is None

    def test_none_policy_never_retries(self):
        policy = RetryPolicy.none()
        assert policy.max_attempts == 1
        assert policy.next_delay(1, http_error(503)) is None

    def test_custom_predicate_overrides_default(self):
        policy = RetryPolicy(retry_if=lambda e: isinstance(e, ClientError) and e.status_code == 404)
        assert policy.next_delay(1, http_error(404)) == 1.0
        assert policy.next_delay(1, http_error(503)) is None

    def test_decode_failure_never_retried(self):
        policy = RetryPolicy(retry_if=lambda e: True)
        error = ClientError(500, "bad json", kind=ErrorKind.DECODE)
        assert policy.next_delay(1, error) is None

    def test_delay_from_precomputed_verdict(self):
        policy = default_retry()
        assert policy.delay_if_retryable(1, True) == 1.0
        assert policy.delay_if_retryable(1, False) is None
        assert policy.delay_if_retryable(3, True) is None

    def test_is_retryable_ignores_budget(self):
        policy = RetryPolicy.none()
        assert RetryPolicy().is_retryable(http_error(503)) is True
        assert policy.is_retryable(http_error(503)) is False

    def test_exponential_policy(self):
        policy = RetryPolicy.exponential(max_attempts=5, base_delay=0.5, jitter=0.0)
        error = http_error(500)
        assert [policy.next_delay(n, error) for n in range(1, 6)] == [0.5, 1.0, 2.0, 4.0, None]

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_attempts": 0}, {"base_delay": -1.0}, {"jitter": 1.5}],
    )
    def test_invalid_policy_rejected(self, kwargs):
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)

    def test_policy_is_immutable(self):
        policy = default_retry()
        with pytest.raises(AttributeError):
            policy.max_attempts = 10  # type: ignore[misc]


class TestCalculateDelay:
    """Tests for backoff calculation."""

    def test_fixed_delay_is_constant(self):
        policy = RetryPolicy(base_delay=2.0)
        assert [calculate_delay(n, policy) for n in (1, 2, 5)] == [2.0, 2.0, 2.0]

    def test_exponential_delay_is_capped(self):
        policy = RetryPolicy.exponential(base_delay=1.0, max_delay=5.0, jitter=0.0)
        assert calculate_delay(10, policy) == 5.0

    def test_jitter_stays_within_range(self):
        policy = RetryPolicy(base_delay=10.0, jitter=0.1)
        with patch("carmen_cloud.core.retry.random.random", return_value=0.0):
            assert calculate_delay(1, policy) == pytest.approx(9.0)
        with patch("carmen_cloud.core.retry.random.random", return_value=1.0):
            assert calculate_delay(1, policy) == pytest.approx(11.0)


class TestRetryContext:
    """Tests for the retry correlation context."""

    def test_behaves_as_mapping(self):
        context = RetryContext({"job_id": "42"}, camera="gate-1")
        assert dict(context) == {"job_id": "42", "camera": "gate-1"}
        assert context["job_id"] == "42"
        assert len(context) == 2

    def test_coerce_wraps_plain_mappings(self):
        context = RetryContext(job_id="1")
        assert RetryContext.coerce(context) is context
        wrapped = RetryContext.coerce({"a": 1})
        assert isinstance(wrapped, RetryContext)
        assert wrapped["a"] == 1
        assert len(RetryContext.coerce(None)) == 0

    def test_attempts_and_last_error_accumulate(self):
        context = RetryContext()
        error = http_error(503)
        with context.attempt() as attempt:
            assert attempt == 1
            context.record_failure(error)
        with context.attempt() as attempt:
            assert attempt == 2
        assert context.attempts == 2
        assert context.last_error is error

    def test_values_bound_only_during_attempt(self):
        context = RetryContext(job_id="42")
        assert get_retry_context() is None
        with context.attempt():
            assert get_retry_context() == {"job_id": "42", "attempt": 1}
        assert get_retry_context() is None

    def test_log_records_carry_context(self):
        record = logging.LogRecord("carmen_cloud", logging.INFO, __file__, 1, "msg", None, None)
        context = RetryContext(job_id="42")
        with context.attempt():
            ContextFilter().filter(record)
        assert record.retry_context == {"job_id": "42", "attempt": 1}
