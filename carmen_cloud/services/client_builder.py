"""Fluent builders for the recognition clients.

A builder is a plain mutable object meant for one configuration sequence on
one thread: set the fields, call ``build()``, and each build snapshots the
current field values into an immutable ``ClientConfiguration`` owned by the
new client. Builders are never shared between threads; create one per
configuration instead.

Usage:
    client = (
        vehicle_client_builder()
        .endpoint("https://api.carmencloud.com/vehicle")
        .api_key(api_key)
        .response_timeout(30_000)
        .disable_call_statistics(True)
        .build()
    )
"""

from __future__ import annotations

from typing import ClassVar, Self

import httpx

from carmen_cloud.core.config import Settings, get_settings
from carmen_cloud.core.exceptions import ConfigurationError
from carmen_cloud.core.retry import RetryPolicy, default_retry
from carmen_cloud.services.recognition_client import ClientConfiguration, RecognitionClient


class ClientBuilder[C: RecognitionClient]:
    """Base builder holding the settings shared by every service client.

    Subclasses set ``client_class`` and ``feature_flags`` (header name to
    builder attribute) and add one setter per flag.
    """

    client_class: ClassVar[type[RecognitionClient]] = RecognitionClient
    feature_flags: ClassVar[dict[str, str]] = {}
    settings_endpoint_field: ClassVar[str | None] = None

    def __init__(self) -> None:
        self._endpoint: str | None = None
        self._api_key: str | None = None
        self._response_timeout: int | None = None
        self._retry: RetryPolicy | None = None
        self._connect_timeout: float = 10.0
        self._max_connections: int = 10
        self._max_keepalive_connections: int = 5
        self._transport: httpx.BaseTransport | None = None
        self._async_transport: httpx.AsyncBaseTransport | None = None
        self._flags: dict[str, bool] = dict.fromkeys(self.feature_flags.values(), False)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> Self:
        """Create a builder seeded from environment settings.

        Args:
            settings: Settings to read (defaults to ``get_settings()``)
        """
        settings = settings or get_settings()
        builder = cls()
        if cls.settings_endpoint_field:
            builder.endpoint(getattr(settings, cls.settings_endpoint_field))
        if settings.api_key:
            builder.api_key(settings.api_key)
        if settings.response_timeout_ms is not None:
            builder.response_timeout(settings.response_timeout_ms)
        builder._connect_timeout = settings.connect_timeout
        builder._max_connections = settings.max_connections
        builder._max_keepalive_connections = settings.max_keepalive_connections
        return builder

    # -------------------------------------------------------------------------
    # Setters (each returns the builder)
    # -------------------------------------------------------------------------

    def endpoint(self, endpoint: str) -> Self:
        """Set the service base URL."""
        self._endpoint = endpoint
        return self

    def api_key(self, api_key: str) -> Self:
        """Set the API key sent in the X-Api-Key header."""
        self._api_key = api_key
        return self

    def response_timeout(self, response_timeout: int | None) -> Self:
        """Set the response timeout in milliseconds (None = unlimited)."""
        if response_timeout is not None and response_timeout <= 0:
            raise ConfigurationError(
                f"response timeout must be positive, got {response_timeout}",
                field="response_timeout",
            )
        self._response_timeout = response_timeout
        return self

    def retry(self, retry: RetryPolicy | None) -> Self:
        """Set the retry policy (None = ``default_retry()``)."""
        self._retry = retry
        return self

    def http_transport(self, transport: httpx.BaseTransport | None) -> Self:
        """Use a custom sync httpx transport (proxies, mocking)."""
        self._transport = transport
        return self

    def async_http_transport(self, transport: httpx.AsyncBaseTransport | None) -> Self:
        """Use a custom async httpx transport (proxies, mocking)."""
        self._async_transport = transport
        return self

    def _set_flag(self, name: str, value: bool) -> Self:
        self._flags[name] = bool(value)
        return self

    # -------------------------------------------------------------------------
    # Getters
    # -------------------------------------------------------------------------

    def get_endpoint(self) -> str | None:
        return self._endpoint

    def get_api_key(self) -> str | None:
        return self._api_key

    def get_response_timeout(self) -> int | None:
        return self._response_timeout

    def get_retry(self) -> RetryPolicy | None:
        return self._retry

    def flag(self, name: str) -> bool:
        """Current value of a feature flag attribute (e.g. ``disable_image_resizing``)."""
        return self._flags[name]

    @staticmethod
    def default_retry() -> RetryPolicy:
        """3 attempts, 1 second fixed delay, connectivity/429/5xx failures only."""
        return default_retry()

    # -------------------------------------------------------------------------
    # Build
    # -------------------------------------------------------------------------

    def configuration(self) -> ClientConfiguration:
        """Validate the current field values and snapshot them.

        Raises:
            ConfigurationError: If the endpoint or API key is missing or invalid
        """
        if not self._endpoint:
            raise ConfigurationError("endpoint is required", field="endpoint")
        if not self._endpoint.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"endpoint must be an http(s) URL, got: {self._endpoint}", field="endpoint"
            )
        if not self._api_key:
            raise ConfigurationError("API key is required", field="api_key")

        return ClientConfiguration(
            endpoint=self._endpoint,
            api_key=self._api_key,
            response_timeout_ms=self._response_timeout,
            retry=self._retry if self._retry is not None else default_retry(),
            feature_flags={
                header: self._flags[attribute] for header, attribute in self.feature_flags.items()
            },
            connect_timeout=self._connect_timeout,
            max_connections=self._max_connections,
            max_keepalive_connections=self._max_keepalive_connections,
        )

    def build(self) -> C:
        """Build a new client from the current field values.

        Raises:
            ConfigurationError: If the endpoint or API key is missing or invalid
        """
        client = self.client_class(
            self.configuration(),
            transport=self._transport,
            async_transport=self._async_transport,
        )
        return client  # type: ignore[return-value]
