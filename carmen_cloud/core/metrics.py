"""Prometheus metrics definitions and utilities for client observability.

Metric Naming Conventions:
- All metrics are prefixed with 'carmen_client_'
- Counters end with '_total'
- Histograms/durations end with '_seconds'

Usage:
    from carmen_cloud.core.metrics import record_request_outcome

    record_request_outcome("vehicle", "success")
"""

from prometheus_client import (
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)

_registry = REGISTRY

# =============================================================================
# Request Counters
# =============================================================================

REQUESTS_TOTAL = Counter(
    "carmen_client_requests_total",
    "Total number of logical service calls by terminal outcome",
    labelnames=["service", "outcome"],  # outcome: success, failure, exhausted
    registry=_registry,
)

RETRY_ATTEMPTS_TOTAL = Counter(
    "carmen_client_retry_attempts_total",
    "Total number of retried dispatch attempts",
    labelnames=["service"],
    registry=_registry,
)

ERRORS_TOTAL = Counter(
    "carmen_client_errors_total",
    "Total number of failed dispatch attempts by error kind",
    labelnames=["service", "error_kind"],
    registry=_registry,
)

# =============================================================================
# Latency Histogram
# =============================================================================

REQUEST_DURATION_BUCKETS = (
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
    30.0,
    60.0,
)

REQUEST_DURATION = Histogram(
    "carmen_client_request_duration_seconds",
    "Duration of single dispatch attempts against a recognition service",
    labelnames=["service"],
    buckets=REQUEST_DURATION_BUCKETS,
    registry=_registry,
)

# =============================================================================
# Helper Functions
# =============================================================================


def record_request_outcome(service: str, outcome: str) -> None:
    """Increment the logical call counter.

    Args:
        service: Service name ("vehicle", "anpr", "transport")
        outcome: Terminal outcome ("success", "failure", "exhausted")
    """
    REQUESTS_TOTAL.labels(service=service, outcome=outcome).inc()


def record_retry_attempt(service: str) -> None:
    """Increment the retry counter for a service."""
    RETRY_ATTEMPTS_TOTAL.labels(service=service).inc()


def record_client_error(service: str, error_kind: str) -> None:
    """Increment the failed attempt counter.

    Args:
        service: Service name
        error_kind: ``ErrorKind`` value of the failure
    """
    ERRORS_TOTAL.labels(service=service, error_kind=error_kind).inc()


def observe_request_duration(service: str, duration_seconds: float) -> None:
    """Record the duration of one dispatch attempt."""
    REQUEST_DURATION.labels(service=service).observe(duration_seconds)


def get_metrics_response() -> bytes:
    """Generate the Prometheus metrics in exposition format."""
    return generate_latest(_registry)
