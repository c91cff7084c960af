"""HTTP transport shared by the recognition clients.

Each client owns one ``HttpTransport``, which holds a persistent synchronous
and a persistent asynchronous ``httpx`` connection pool. Both pools are safe
for concurrent use, so one client can serve many in-flight calls.
"""

from __future__ import annotations

import os
from types import TracebackType
from typing import Any, Self

import httpx

from carmen_cloud.core.logging import get_logger
from carmen_cloud.services.request_assembler import MultipartPart

logger = get_logger(__name__)


def body_arguments(files: list[MultipartPart] | None) -> dict[str, Any]:
    """Request arguments for a multipart body.

    ``None`` means no body at all (GET lookups). An empty part list still
    yields a ``multipart/form-data`` body, consisting of the closing boundary only.
    """
    if files is None:
        return {}
    if files:
        return {"files": files}
    boundary = os.urandom(16).hex()
    return {
        "content": f"--{boundary}--\r\n".encode(),
        "headers": {"Content-Type": f"multipart/form-data; boundary={boundary}"},
    }


def build_timeout(connect_timeout: float, response_timeout_ms: int | None) -> httpx.Timeout:
    """Build the httpx timeout from the configured values.

    Args:
        connect_timeout: Seconds allowed to establish a connection
        response_timeout_ms: Milliseconds allowed for the response (None = unlimited)
    """
    response_timeout = response_timeout_ms / 1000 if response_timeout_ms is not None else None
    return httpx.Timeout(
        connect=connect_timeout,
        read=response_timeout,
        write=response_timeout,
        pool=connect_timeout,
    )


class HttpTransport:
    """Issues HTTP exchanges against one service endpoint.

    Usage:
        transport = HttpTransport("https://api.carmencloud.com/vehicle", headers={...})
        response = transport.send("POST", "/eur", files=parts)
        response = await transport.send_async("GET", "/countries")
        await transport.aclose()
    """

    def __init__(
        self,
        endpoint: str,
        headers: dict[str, str],
        *,
        timeout: httpx.Timeout | None = None,
        max_connections: int = 10,
        max_keepalive_connections: int = 5,
        transport: httpx.BaseTransport | None = None,
        async_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize both connection pools.

        Args:
            endpoint: Service base URL; routing subpaths are appended verbatim
            headers: Default headers sent with every request
            timeout: Request timeouts (httpx defaults if None)
            max_connections: Pool size per connection pool
            max_keepalive_connections: Idle connections kept per pool
            transport: Custom sync httpx transport (proxies, tests)
            async_transport: Custom async httpx transport (proxies, tests)
        """
        self._endpoint = endpoint.rstrip("/")
        self._headers = dict(headers)
        limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        )
        timeout = timeout if timeout is not None else httpx.Timeout(10.0, read=None, write=None)

        self._client = httpx.Client(
            headers=self._headers,
            timeout=timeout,
            limits=limits,
            follow_redirects=True,
            transport=transport,
        )
        self._async_client = httpx.AsyncClient(
            headers=self._headers,
            timeout=timeout,
            limits=limits,
            follow_redirects=True,
            transport=async_transport,
        )

    @property
    def endpoint(self) -> str:
        """Base URL of the service."""
        return self._endpoint

    @property
    def headers(self) -> dict[str, str]:
        """Copy of the default request headers."""
        return dict(self._headers)

    def url_for(self, subpath: str) -> str:
        """Append a normalized subpath to the endpoint."""
        return f"{self._endpoint}{subpath}"

    def send(
        self,
        method: str,
        subpath: str = "",
        files: list[MultipartPart] | None = None,
    ) -> httpx.Response:
        """Issue one exchange on the synchronous pool.

        Raises:
            httpx.RequestError: If no usable response could be obtained
        """
        url = self.url_for(subpath)
        logger.debug(f"{method} {url}", extra={"method": method, "url": url})
        return self._client.request(method, url, **body_arguments(files))

    async def send_async(
        self,
        method: str,
        subpath: str = "",
        files: list[MultipartPart] | None = None,
    ) -> httpx.Response:
        """Issue one exchange on the asynchronous pool.

        Raises:
            httpx.RequestError: If no usable response could be obtained
        """
        url = self.url_for(subpath)
        logger.debug(f"{method} {url}", extra={"method": method, "url": url})
        return await self._async_client.request(method, url, **body_arguments(files))

    def close(self) -> None:
        """Close the synchronous connection pool."""
        self._client.close()

    async def aclose(self) -> None:
        """Close both connection pools."""
        self._client.close()
        await self._async_client.aclose()
        logger.debug(f"Connections to {self._endpoint} closed")

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
