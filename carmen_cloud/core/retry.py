"""Retry policy and retry correlation context for service calls.

A ``RetryPolicy`` is a plain value: a predicate deciding which failures are
worth another attempt, plus a backoff schedule and an attempt budget. Its
``next_delay`` method is a pure decision function and knows nothing about
event loops or threads; the clients drive the actual waiting.

Usage:
    from carmen_cloud.core.retry import RetryContext, RetryPolicy, default_retry

    # Default: 3 attempts, 1s fixed delay, connectivity/429/5xx only
    policy = default_retry()

    # Exponential backoff with a custom predicate
    policy = RetryPolicy.exponential(
        max_attempts=5,
        base_delay=0.5,
        retry_if=lambda error: isinstance(error, ClientError) and error.status_code == 503,
    )

    # Correlate all attempts of one call
    context = RetryContext({"job_id": "42"})
    result = client.search(request, context)
    print(context.attempts, context.last_error)
"""

from __future__ import annotations

import random
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import httpx

from carmen_cloud.core.exceptions import ClientError, ErrorKind
from carmen_cloud.core.logging import bind_retry_context, get_logger, unbind_retry_context

logger = get_logger(__name__)

TOO_MANY_REQUESTS = 429
SERVER_ERROR_FLOOR = 500


# =============================================================================
# Retry Predicate
# =============================================================================


def is_retryable_default(error: BaseException) -> bool:
    """Default retry predicate.

    Connectivity failures are always retried. HTTP errors are retried only for
    rate limiting (429) and server-side failures (>= 500). Decode failures,
    local failures and any other exception are permanent.

    Args:
        error: The failure of the most recent attempt

    Returns:
        True if another attempt should be made
    """
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, ClientError):
        if error.kind == ErrorKind.TRANSPORT:
            return True
        if error.kind == ErrorKind.HTTP:
            return (
                error.status_code == TOO_MANY_REQUESTS or error.status_code >= SERVER_ERROR_FLOOR
            )
    return False


def _never(error: BaseException) -> bool:
    return False


# =============================================================================
# Policy
# =============================================================================


class BackoffStrategy(StrEnum):
    """How the delay grows between attempts."""

    FIXED = "fixed"
    EXPONENTIAL = "exponential"


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Total attempts including the first one (1 means no retries)
        base_delay: Delay in seconds before the first retry
        backoff: Fixed or exponential growth of the delay
        exponential_base: Growth factor for exponential backoff
        max_delay: Maximum delay cap in seconds
        jitter: Jitter factor (0.0-1.0) for randomizing delays
        retry_if: Predicate receiving the last failure
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    backoff: BackoffStrategy = BackoffStrategy.FIXED
    exponential_base: float = 2.0
    max_delay: float = 60.0
    jitter: float = 0.0
    retry_if: Callable[[BaseException], bool] = field(default=is_retryable_default)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")
        if not 0.0 <= self.jitter <= 1.0:
            raise ValueError(f"jitter must be between 0.0 and 1.0, got {self.jitter}")

    @classmethod
    def default(cls) -> RetryPolicy:
        """3 attempts, 1 second fixed delay, ``is_retryable_default`` predicate."""
        return cls()

    @classmethod
    def none(cls) -> RetryPolicy:
        """A single attempt; failures are surfaced immediately."""
        return cls(max_attempts=1, base_delay=0.0, retry_if=_never)

    @classmethod
    def exponential(
        cls,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        exponential_base: float = 2.0,
        jitter: float = 0.1,
        retry_if: Callable[[BaseException], bool] = is_retryable_default,
    ) -> RetryPolicy:
        """Exponential backoff with jitter."""
        return cls(
            max_attempts=max_attempts,
            base_delay=base_delay,
            backoff=BackoffStrategy.EXPONENTIAL,
            exponential_base=exponential_base,
            max_delay=max_delay,
            jitter=jitter,
            retry_if=retry_if,
        )

    def is_retryable(self, error: BaseException) -> bool:
        """Apply the predicate once; decode failures are permanent whatever it says."""
        if isinstance(error, ClientError) and error.kind == ErrorKind.DECODE:
            return False
        return self.retry_if(error)

    def delay_if_retryable(self, attempt: int, retryable: bool) -> float | None:
        """Delay before the next attempt given an already computed predicate verdict."""
        if not retryable or attempt >= self.max_attempts:
            return None
        return calculate_delay(attempt, self)

    def should_retry(self, attempt: int, error: BaseException) -> bool:
        """Check if the failure of ``attempt`` (1-indexed) warrants another attempt."""
        return attempt < self.max_attempts and self.is_retryable(error)

    def next_delay(self, attempt: int, error: BaseException) -> float | None:
        """Decide what happens after a failed attempt.

        Args:
            attempt: The attempt that just failed (1-indexed)
            error: Its failure

        Returns:
            Seconds to wait before the next attempt, or None to give up
        """
        return self.delay_if_retryable(attempt, self.is_retryable(error))


def default_retry() -> RetryPolicy:
    """Return the default retry policy."""
    return RetryPolicy.default()


# =============================================================================
# Backoff Calculation
# =============================================================================


def calculate_delay(attempt: int, policy: RetryPolicy) -> float:
    """Calculate the delay after a failed attempt.

    Fixed backoff waits ``base_delay`` every time. Exponential backoff waits
    ``base_delay * exponential_base ** (attempt - 1)``. Both are capped at
    ``max_delay`` and then randomized by ``jitter``:
        delay = delay * (1 - jitter + random(0, 2*jitter))

    Args:
        attempt: The attempt that just failed (1-indexed)
        policy: Retry policy

    Returns:
        Delay in seconds before the next attempt
    """
    if policy.backoff == BackoffStrategy.EXPONENTIAL:
        delay = policy.base_delay * (policy.exponential_base ** (attempt - 1))
    else:
        delay = policy.base_delay

    delay = min(delay, policy.max_delay)

    # Not cryptographic; only spreads out concurrent retries.
    if policy.jitter > 0:
        jitter_range = delay * policy.jitter
        delay = delay - jitter_range + (random.random() * 2 * jitter_range)  # noqa: S311

    return max(0.0, delay)


# =============================================================================
# Retry Context
# =============================================================================


class RetryContext(Mapping[str, Any]):
    """Correlation bag for the attempts of one logical call.

    Behaves as a read-only mapping of the caller's correlation values. While an
    attempt runs, those values are bound to the logging context so every record
    emitted during the attempt carries them. The context also accumulates the
    attempt count and the last failure.

    Attributes:
        attempts: Number of attempts dispatched so far
        last_error: Failure of the most recent failed attempt (if any)

    Example:
        context = RetryContext(order_id="A-17")
        client.search(request, context)
        if context.attempts > 1:
            ...
    """

    def __init__(self, values: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        self._values: dict[str, Any] = {**(values or {}), **kwargs}
        self._attempts = 0
        self._last_error: BaseException | None = None

    @classmethod
    def coerce(cls, context: Mapping[str, Any] | None) -> RetryContext:
        """Return ``context`` itself if it already is a RetryContext, else wrap it."""
        if isinstance(context, RetryContext):
            return context
        return cls(context)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"RetryContext({self._values!r}, attempts={self._attempts})"

    @property
    def attempts(self) -> int:
        """Number of attempts dispatched so far."""
        return self._attempts

    @property
    def last_error(self) -> BaseException | None:
        """Failure of the most recent failed attempt."""
        return self._last_error

    def record_failure(self, error: BaseException) -> None:
        """Remember the failure of the current attempt."""
        self._last_error = error

    @contextmanager
    def attempt(self) -> Iterator[int]:
        """Count one attempt and bind the correlation values while it runs.

        Yields:
            The 1-indexed attempt number
        """
        self._attempts += 1
        token = bind_retry_context({**self._values, "attempt": self._attempts})
        try:
            yield self._attempts
        finally:
            unbind_retry_context(token)
