"""Error types raised by the Carmen Cloud clients.

Every failed call ends in exactly one ``ClientError``. Instead of a subclass
per failure mode, the error carries an explicit ``kind`` tag next to the
numeric status code:

- ``TRANSPORT``: no response was obtained (DNS, TLS, connect, timeout)
- ``HTTP``: the service answered with a 4xx/5xx status
- ``DECODE``: a 2xx body could not be parsed into the expected result
- ``LOCAL``: the synchronous wrapper itself failed while executing the call

Failures without an HTTP status use the sentinel ``500``.
"""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

LOCAL_FAILURE_STATUS = 500


class ErrorKind(StrEnum):
    """Failure category of a ``ClientError``."""

    TRANSPORT = "transport"
    HTTP = "http"
    DECODE = "decode"
    LOCAL = "local"


class ClientError(Exception):
    """Raised when a call to a recognition service fails.

    Attributes:
        status_code: HTTP status, or 500 for failures without a response
        message: Error text; for HTTP errors the raw response body
        kind: Failure category
        original_error: The underlying exception, if any
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.HTTP,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.kind = kind
        self.original_error = original_error
        if original_error is not None:
            self.__cause__ = original_error

    def __str__(self) -> str:
        return f"[{self.status_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"ClientError(status_code={self.status_code}, kind={self.kind.value!r}, "
            f"message={self.message!r})"
        )

    @property
    def error_message(self) -> str:
        """The ``message`` field of a JSON error body, or the raw text otherwise."""
        try:
            body = json.loads(self.message)
        except (TypeError, ValueError):
            return self.message
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return body["message"]
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to a dictionary for structured logging."""
        result: dict[str, Any] = {
            "status_code": self.status_code,
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.original_error is not None:
            result["original_error"] = type(self.original_error).__name__
        return result


class ConfigurationError(ValueError):
    """Raised when a client is built from incomplete or invalid configuration."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field
