"""Classification of failed exchanges into ``ClientError``.

Error Handling:
    - Connection errors: ClientError(TRANSPORT, 500), retryable
    - Timeouts: ClientError(TRANSPORT, 500), retryable
    - Other request errors (redirect loops, bad encodings): ClientError(LOCAL, 500)
    - HTTP 4xx/5xx: ClientError(HTTP, status) with the raw body text; the
      retry policy decides (429 and 5xx by default)
    - Undecodable 2xx body: ClientError(DECODE, 500), never retried
"""

from __future__ import annotations

import httpx
from pydantic import BaseModel, ValidationError

from carmen_cloud.core.exceptions import LOCAL_FAILURE_STATUS, ClientError, ErrorKind
from carmen_cloud.core.logging import get_logger, sanitize_error

logger = get_logger(__name__)


def classify_response(response: httpx.Response) -> ClientError | None:
    """Turn a 4xx/5xx response into a ClientError.

    The body is assumed to be text (usually a JSON object with a ``message``
    field) and is handed over unparsed.

    Args:
        response: A fully read response

    Returns:
        The error for 4xx/5xx responses, None for anything else
    """
    status_code = response.status_code
    if not (response.is_client_error or response.is_server_error):
        return None

    body = response.text
    family = "4xx" if response.is_client_error else "5xx"
    logger.debug(
        f"{family} error occurred: {sanitize_error(body)} "
        f"({status_code} - {response.reason_phrase})",
        extra={"status_code": status_code, "url": str(response.request.url)},
    )
    return ClientError(status_code, body, kind=ErrorKind.HTTP)


def classify_transport_error(error: httpx.TransportError) -> ClientError:
    """Wrap a failure where no response was obtained.

    Args:
        error: The httpx transport error (connect, timeout, protocol, ...)

    Returns:
        A retryable TRANSPORT error preserving the cause
    """
    if isinstance(error, httpx.TimeoutException):
        message = f"Request timed out: {error}"
    elif isinstance(error, httpx.ConnectError):
        message = f"Failed to connect to service: {error}"
    else:
        message = f"Transport failure: {error}"
    return ClientError(
        LOCAL_FAILURE_STATUS,
        sanitize_error(message),
        kind=ErrorKind.TRANSPORT,
        original_error=error,
    )


def classify_request_error(error: httpx.RequestError) -> ClientError:
    """Wrap any httpx request failure raised while performing an exchange.

    Transport failures keep their retryable TRANSPORT tag. Other request
    errors (redirect loops, undecodable content encodings) become LOCAL
    errors, which the default policy never retries.

    Args:
        error: The httpx request error

    Returns:
        A ClientError preserving the cause
    """
    if isinstance(error, httpx.TransportError):
        return classify_transport_error(error)
    logger.warning(
        f"Request failed without a usable response: {sanitize_error(error)}",
        extra={"error_type": type(error).__name__},
    )
    return ClientError(
        LOCAL_FAILURE_STATUS,
        sanitize_error(f"Request failed: {error}"),
        kind=ErrorKind.LOCAL,
        original_error=error,
    )


def decode_result[M: BaseModel](response: httpx.Response, model: type[M]) -> M:
    """Decode a successful response body into the expected result model.

    Args:
        response: A 2xx response
        model: Pydantic model (or root model) of the expected result

    Returns:
        The decoded result

    Raises:
        ClientError: DECODE error if the body is not valid JSON of that shape
    """
    try:
        return model.model_validate_json(response.content)
    except ValidationError as e:
        logger.warning(
            f"Malformed response from service (expected {model.__name__}): {sanitize_error(e)}",
            extra={"status_code": response.status_code},
        )
        raise ClientError(
            LOCAL_FAILURE_STATUS,
            f"Could not decode response as {model.__name__}: {sanitize_error(e)}",
            kind=ErrorKind.DECODE,
            original_error=e,
        ) from e
