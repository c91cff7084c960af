"""Base client for the Carmen Cloud recognition services.

Call Flow:
    1. Assemble the typed request into multipart parts and a routing subpath
    2. POST to ``{endpoint}{subpath}`` with the configured headers
    3. Classify 4xx/5xx responses and transport failures into ClientError
    4. Ask the retry policy whether to wait and dispatch again
    5. Decode the 2xx body and copy the correlation id header into the result

Error Handling:
    - Connection errors / timeouts: retried by the default policy
    - HTTP 429 and 5xx: retried by the default policy
    - Other HTTP 4xx: surfaced immediately
    - Undecodable 2xx body: surfaced immediately
    - Redirect loops and other request errors: ClientError(LOCAL), surfaced immediately
    - Exhausted budget: the last ClientError is surfaced unchanged

``search`` and ``search_async`` run the same state machine; the synchronous
form sleeps with ``time.sleep`` on the calling thread, the asynchronous form
with ``asyncio.sleep`` so that cancelling the awaiting task also stops any
pending retry.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType, TracebackType
from typing import Any, ClassVar, Self, cast

import httpx

from carmen_cloud.core.exceptions import LOCAL_FAILURE_STATUS, ClientError, ErrorKind
from carmen_cloud.core.logging import get_logger, sanitize_error
from carmen_cloud.core.metrics import (
    observe_request_duration,
    record_client_error,
    record_request_outcome,
    record_retry_attempt,
)
from carmen_cloud.core.retry import RetryContext, RetryPolicy, default_retry
from carmen_cloud.models.common import RecognitionRequest, RecognitionResult
from carmen_cloud.services.error_classifier import (
    classify_request_error,
    classify_response,
    decode_result,
)
from carmen_cloud.services.request_assembler import MultipartPayload, assemble
from carmen_cloud.services.response_decorator import attach_request_id
from carmen_cloud.services.transport import HttpTransport, build_timeout

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ClientConfiguration:
    """Immutable configuration of one client.

    Attributes:
        endpoint: Service base URL
        api_key: Key sent in the X-Api-Key header
        response_timeout_ms: Response timeout in milliseconds (None = unlimited)
        retry: Retry policy applied to every call
        feature_flags: Boolean feature headers keyed by header name
        connect_timeout: Connection timeout in seconds
        max_connections: Connection pool size
        max_keepalive_connections: Idle connections kept in the pool
    """

    endpoint: str
    api_key: str
    response_timeout_ms: int | None = None
    retry: RetryPolicy = field(default_factory=default_retry)
    feature_flags: Mapping[str, bool] = field(default_factory=dict)
    connect_timeout: float = 10.0
    max_connections: int = 10
    max_keepalive_connections: int = 5

    def __post_init__(self) -> None:
        object.__setattr__(self, "endpoint", self.endpoint.rstrip("/"))
        object.__setattr__(self, "feature_flags", MappingProxyType(dict(self.feature_flags)))

    def headers(self) -> dict[str, str]:
        """Default headers for every request of the client."""
        headers = {
            "X-Api-Key": self.api_key,
            "Accept": "application/json",
        }
        for name, enabled in self.feature_flags.items():
            headers[name] = "true" if enabled else "false"
        return headers


class RecognitionClient[RequestT: RecognitionRequest, ResultT: RecognitionResult]:
    """Client for one recognition service.

    Subclasses set ``service_name`` (metrics/log label) and ``result_model``
    (the pydantic model a successful body decodes into). Instances are
    created by the matching builder and are safe for concurrent use.

    Usage:
        client = vehicle_client_builder().endpoint(url).api_key(key).build()

        result = client.search(request)
        result = await client.search_async(request, {"job_id": "42"})
    """

    service_name: ClassVar[str] = "recognition"
    result_model: ClassVar[type[RecognitionResult]] = RecognitionResult

    def __init__(
        self,
        configuration: ClientConfiguration,
        *,
        transport: httpx.BaseTransport | None = None,
        async_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client and its connection pools.

        Args:
            configuration: Immutable client configuration
            transport: Custom sync httpx transport
            async_transport: Custom async httpx transport
        """
        self._configuration = configuration
        self._retry = configuration.retry
        self._transport = HttpTransport(
            configuration.endpoint,
            configuration.headers(),
            timeout=build_timeout(configuration.connect_timeout, configuration.response_timeout_ms),
            max_connections=configuration.max_connections,
            max_keepalive_connections=configuration.max_keepalive_connections,
            transport=transport,
            async_transport=async_transport,
        )
        logger.info(
            f"{type(self).__name__} initialized with endpoint={configuration.endpoint}",
            extra={"service": self.service_name},
        )

    @property
    def configuration(self) -> ClientConfiguration:
        """The configuration this client was built with."""
        return self._configuration

    @property
    def retry_policy(self) -> RetryPolicy:
        """The retry policy applied to every call."""
        return self._retry

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def search(self, request: RequestT, context: Mapping[str, Any] | None = None) -> ResultT:
        """Send a request and block until its terminal outcome.

        Args:
            request: Typed service request
            context: Optional retry correlation values (or a RetryContext)

        Returns:
            The decoded result with ``request_id`` set when the service sent one

        Raises:
            ClientError: Terminal failure; unexpected local failures are
                wrapped with status 500 and kind LOCAL
        """
        return self._run_sync(lambda retry_context: self._search(request, retry_context), context)

    async def search_async(
        self, request: RequestT, context: Mapping[str, Any] | None = None
    ) -> ResultT:
        """Send a request without blocking the event loop.

        Args:
            request: Typed service request
            context: Optional retry correlation values (or a RetryContext)

        Returns:
            The decoded result with ``request_id`` set when the service sent one

        Raises:
            ClientError: Terminal failure
        """
        retry_context = RetryContext.coerce(context)
        payload = assemble(request)
        return await self._execute_async(
            lambda: self._post_async(payload), retry_context, operation="search"
        )

    # -------------------------------------------------------------------------
    # Single attempts
    # -------------------------------------------------------------------------

    def _search(self, request: RequestT, retry_context: RetryContext) -> ResultT:
        payload = assemble(request)
        return self._execute(lambda: self._post(payload), retry_context, operation="search")

    def _post(self, payload: MultipartPayload) -> ResultT:
        response = self._exchange("POST", payload.subpath, payload)
        return self._decode(response)

    async def _post_async(self, payload: MultipartPayload) -> ResultT:
        response = await self._exchange_async("POST", payload.subpath, payload)
        return self._decode(response)

    def _decode(self, response: httpx.Response) -> ResultT:
        result = cast("ResultT", decode_result(response, self.result_model))
        return attach_request_id(result, response)

    def _exchange(
        self, method: str, subpath: str, payload: MultipartPayload | None = None
    ) -> httpx.Response:
        """Perform one HTTP exchange and classify its failure, if any."""
        try:
            response = self._transport.send(method, subpath, payload.parts if payload else None)
        except httpx.RequestError as e:
            raise classify_request_error(e) from e
        error = classify_response(response)
        if error is not None:
            raise error
        return response

    async def _exchange_async(
        self, method: str, subpath: str, payload: MultipartPayload | None = None
    ) -> httpx.Response:
        """Perform one HTTP exchange and classify its failure, if any."""
        try:
            response = await self._transport.send_async(
                method, subpath, payload.parts if payload else None
            )
        except httpx.RequestError as e:
            raise classify_request_error(e) from e
        error = classify_response(response)
        if error is not None:
            raise error
        return response

    # -------------------------------------------------------------------------
    # Retry loop
    # -------------------------------------------------------------------------

    def _run_sync[T](
        self,
        call: Callable[[RetryContext], T],
        context: Mapping[str, Any] | None,
    ) -> T:
        """Run a synchronous call, wrapping unexpected failures as LOCAL errors."""
        retry_context = RetryContext.coerce(context)
        try:
            return call(retry_context)
        except ClientError:
            raise
        except Exception as e:
            logger.error(
                f"Unexpected error during {self.service_name} call: {sanitize_error(e)}",
                extra={"service": self.service_name, "attempts": retry_context.attempts},
                exc_info=True,
            )
            raise ClientError(
                LOCAL_FAILURE_STATUS,
                sanitize_error(e) or type(e).__name__,
                kind=ErrorKind.LOCAL,
                original_error=e,
            ) from e

    def _execute[T](
        self,
        attempt_once: Callable[[], T],
        retry_context: RetryContext,
        operation: str,
    ) -> T:
        while True:
            with retry_context.attempt() as attempt:
                start_time = time.monotonic()
                try:
                    result = attempt_once()
                except ClientError as e:
                    error = e
                else:
                    self._record_success(operation, attempt)
                    return result
                finally:
                    observe_request_duration(self.service_name, time.monotonic() - start_time)

                delay = self._next_delay(error, attempt, retry_context, operation)
            if delay is None:
                raise error
            time.sleep(delay)

    async def _execute_async[T](
        self,
        attempt_once: Callable[[], Awaitable[T]],
        retry_context: RetryContext,
        operation: str,
    ) -> T:
        while True:
            with retry_context.attempt() as attempt:
                start_time = time.monotonic()
                try:
                    result = await attempt_once()
                except ClientError as e:
                    error = e
                else:
                    self._record_success(operation, attempt)
                    return result
                finally:
                    observe_request_duration(self.service_name, time.monotonic() - start_time)

                delay = self._next_delay(error, attempt, retry_context, operation)
            if delay is None:
                raise error
            await asyncio.sleep(delay)

    def _record_success(self, operation: str, attempt: int) -> None:
        record_request_outcome(self.service_name, "success")
        if attempt > 1:
            logger.info(
                f"{self.service_name} {operation} succeeded after {attempt} attempts",
                extra={"service": self.service_name, "attempts": attempt, "outcome": "success"},
            )

    def _next_delay(
        self,
        error: ClientError,
        attempt: int,
        retry_context: RetryContext,
        operation: str,
    ) -> float | None:
        """Record a failed attempt and ask the policy what to do next.

        Returns:
            Seconds to wait before the next attempt, or None if ``error`` is terminal
        """
        retry_context.record_failure(error)
        record_client_error(self.service_name, error.kind.value)

        retryable = self._retry.is_retryable(error)
        delay = self._retry.delay_if_retryable(attempt, retryable)
        max_attempts = self._retry.max_attempts
        if delay is None:
            exhausted = retryable and attempt >= max_attempts
            outcome = "exhausted" if exhausted else "failure"
            record_request_outcome(self.service_name, outcome)
            log = logger.error if exhausted else logger.warning
            log(
                f"{self.service_name} {operation} failed after {attempt} attempt(s): "
                f"{sanitize_error(error)}",
                extra={
                    "service": self.service_name,
                    "attempts": attempt,
                    "outcome": outcome,
                    "status_code": error.status_code,
                    "error_kind": error.kind.value,
                },
            )
            return None

        record_retry_attempt(self.service_name)
        logger.warning(
            f"{self.service_name} {operation} failed (attempt {attempt}/{max_attempts}), "
            f"retrying in {delay:.2f}s: {sanitize_error(error)}",
            extra={
                "service": self.service_name,
                "attempt": attempt,
                "max_attempts": max_attempts,
                "delay_seconds": delay,
                "status_code": error.status_code,
                "error_kind": error.kind.value,
            },
        )
        return delay

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Release the synchronous connection pool.

        The asynchronous pool can only be closed from a coroutine; clients that
        also used ``search_async`` should be released with ``aclose()`` or
        ``async with``, which close both pools.
        """
        self._transport.close()

    async def aclose(self) -> None:
        """Release both connection pools."""
        await self._transport.aclose()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
