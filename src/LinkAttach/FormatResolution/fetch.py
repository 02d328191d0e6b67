"""
Network fetch capability for the detection probes.

Architecture:
1. ``Fetcher`` is the protocol the probes depend on; it never raises for
   HTTP errors, timeouts or transport failures.
2. ``FetchResponse`` wraps status, case-insensitive headers and a lazily
   read body that can be capped with ``read(limit=...)``.
3. ``HttpxFetcher`` is the production implementation over
   ``httpx.AsyncClient`` with explicit timeouts, pool limits and no
   transport-level retries.

Tests substitute ``httpx.MockTransport`` (via ``HttpxFetcher(transport=...)``)
or a scripted in-memory ``Fetcher``.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Awaitable, Callable, Mapping, Optional, Protocol

import httpx

from LinkAttach.FormatResolution.config.models import HttpClientConfig
from LinkAttach.FormatResolution.errors import FetchError

LOGGER = logging.getLogger(__name__)

ERROR_TIMEOUT = "timeout"
ERROR_CONNECTION = "connection_error"
ERROR_INVALID_URL = "invalid_url"
ERROR_REQUEST = "request_error"


# ============================================================================
# Response
# ============================================================================


class FetchResponse:
    """Outcome of a single fetch.

    A transport-level failure is represented by ``status == 0`` with
    ``error`` set to one of ``timeout``, ``connection_error``,
    ``invalid_url`` or ``request_error`` and ``detail`` holding the message.
    """

    def __init__(
        self,
        url: str,
        status: int,
        headers: Optional[Mapping[str, str]] = None,
        *,
        chunks: Optional[AsyncIterator[bytes]] = None,
        closer: Optional[Callable[[], Awaitable[None]]] = None,
        error: Optional[str] = None,
        detail: Optional[str] = None,
    ) -> None:
        self.url = url
        self.status = status
        self.headers = httpx.Headers(headers or {})
        self.error = error
        self.detail = detail
        self._chunks = chunks
        self._closer = closer
        self._closed = False

    @classmethod
    def from_error(cls, url: str, error: str, exc: BaseException) -> "FetchResponse":
        return cls(url, 0, error=error, detail=f"{type(exc).__name__}: {exc}")

    @property
    def ok(self) -> bool:
        """``True`` for 2xx responses."""
        return 200 <= self.status < 300

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("content-type")

    def raise_for_error(self) -> "FetchResponse":
        """Raise :class:`FetchError` for transport failures; HTTP statuses pass through."""
        if self.error is not None:
            raise FetchError(
                f"{self.error}: {self.detail or 'no detail'}",
                url=self.url,
                details={"error": self.error, "detail": self.detail, "status": self.status},
            )
        return self

    async def read(self, limit: Optional[int] = None) -> bytes:
        """Read the body, stopping once ``limit`` bytes have been collected.

        A failure while streaming keeps the bytes read so far and records
        ``error`` on the response instead of raising.
        """
        if self._chunks is None:
            return b""
        buffer = bytearray()
        try:
            async for chunk in self._chunks:
                buffer.extend(chunk)
                if limit is not None and len(buffer) >= limit:
                    break
        except httpx.TimeoutException as exc:
            self.error, self.detail = ERROR_TIMEOUT, str(exc)
        except httpx.HTTPError as exc:
            self.error, self.detail = ERROR_REQUEST, str(exc)
        finally:
            self._chunks = None
        if limit is not None:
            del buffer[limit:]
        return bytes(buffer)

    async def aclose(self) -> None:
        """Release the underlying connection; safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        if self._closer is not None:
            await self._closer()

    def __repr__(self) -> str:
        return f"FetchResponse(url={self.url!r}, status={self.status}, error={self.error!r})"


# ============================================================================
# Protocol
# ============================================================================


class Fetcher(Protocol):
    """Asynchronous fetch capability consumed by the probes."""

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
    ) -> FetchResponse: ...


# ============================================================================
# httpx implementation
# ============================================================================


def build_async_client(
    config: HttpClientConfig,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Build an ``httpx.AsyncClient`` from ``config``."""
    timeout = httpx.Timeout(
        config.timeout_read_s,
        connect=config.timeout_connect_s,
    )
    limits = httpx.Limits(
        max_connections=config.max_connections,
        max_keepalive_connections=config.max_connections,
    )
    if transport is None:
        transport = httpx.AsyncHTTPTransport(
            verify=config.verify_tls,
            limits=limits,
            retries=0,
        )
    return httpx.AsyncClient(
        timeout=timeout,
        transport=transport,
        follow_redirects=config.follow_redirects,
        headers={"User-Agent": config.user_agent},
    )


class HttpxFetcher:
    """``Fetcher`` backed by ``httpx.AsyncClient``.

    Example:
        ```python
        async with HttpxFetcher(config.http) as fetcher:
            response = await fetcher.fetch(url, method="HEAD")
            await response.aclose()
        ```
    """

    def __init__(
        self,
        config: Optional[HttpClientConfig] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config or HttpClientConfig()
        self._owns_client = client is None
        self._client = client or build_async_client(self.config, transport=transport)

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
    ) -> FetchResponse:
        try:
            request = self._client.build_request(method, url, headers=headers)
            response = await self._client.send(request, stream=True)
        except httpx.TimeoutException as exc:
            return self._failed(url, method, ERROR_TIMEOUT, exc)
        except httpx.NetworkError as exc:
            return self._failed(url, method, ERROR_CONNECTION, exc)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            return self._failed(url, method, ERROR_INVALID_URL, exc)
        except httpx.HTTPError as exc:
            return self._failed(url, method, ERROR_REQUEST, exc)

        LOGGER.debug(f"{method} {url} -> {response.status_code}")
        return FetchResponse(
            url,
            response.status_code,
            response.headers,
            chunks=response.aiter_bytes(),
            closer=response.aclose,
        )

    def _failed(self, url: str, method: str, error: str, exc: BaseException) -> FetchResponse:
        LOGGER.debug(f"{method} {url} failed: {error} ({exc})")
        return FetchResponse.from_error(url, error, exc)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpxFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = (
    "ERROR_TIMEOUT",
    "ERROR_CONNECTION",
    "ERROR_INVALID_URL",
    "ERROR_REQUEST",
    "FetchResponse",
    "Fetcher",
    "HttpxFetcher",
    "build_async_client",
)
