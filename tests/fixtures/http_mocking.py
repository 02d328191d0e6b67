# === NAVMAP v1 ===
# {
#   "module": "tests.fixtures.http_mocking",
#   "purpose": "HTTP mocking fixtures for hermetic network testing",
#   "sections": [
#     {"id": "mock-response-builder", "name": "MockResponseBuilder", "anchor": "class-mock-response-builder", "kind": "class"},
#     {"id": "scripted-fetcher", "name": "ScriptedFetcher", "anchor": "class-scripted-fetcher", "kind": "class"},
#     {"id": "scripted-fetcher-fixture", "name": "scripted_fetcher", "anchor": "fixture-scripted-fetcher", "kind": "fixture"},
#     {"id": "mock-transport-fixture", "name": "mock_transport", "anchor": "fixture-mock-transport", "kind": "fixture"}
#   ]
# }
# === /NAVMAP ===

"""
HTTP mocking fixtures for hermetic network testing.

Two layers are provided:

- ``ScriptedFetcher``: an in-memory implementation of the ``Fetcher``
  protocol. It serves registered "files" (HEAD plus ranged or full GET),
  arbitrary canned responses, or transport errors, and records every
  request so tests can assert which URLs were touched.
- ``mock_transport``: an ``httpx.MockTransport`` with a route registry for
  exercising ``HttpxFetcher`` end to end.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Generator, Mapping, Optional

import httpx
import pytest

from LinkAttach.FormatResolution.fetch import FetchResponse

_RANGE = re.compile(r"bytes=(\d+)-(\d*)")


class MockResponseBuilder:
    """Builder for constructing mock HTTP responses with fluent API."""

    def __init__(self, status_code: int = 200, content: bytes = b""):
        self.status_code = status_code
        self.content = content
        self.headers: dict[str, str] = {}

    def with_status(self, code: int) -> MockResponseBuilder:
        self.status_code = code
        return self

    def with_content(self, content: bytes | str) -> MockResponseBuilder:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.content = content
        return self

    def with_header(self, name: str, value: str) -> MockResponseBuilder:
        self.headers[name] = value
        return self

    def with_content_type(self, value: str) -> MockResponseBuilder:
        return self.with_header("content-type", value)

    def build(self) -> httpx.Response:
        return httpx.Response(
            status_code=self.status_code,
            content=self.content,
            headers=self.headers,
        )


async def _chunked(body: bytes, size: int = 1024) -> AsyncIterator[bytes]:
    for start in range(0, len(body), size):
        yield body[start : start + size]


@dataclass
class _HostedFile:
    body: bytes
    content_type: Optional[str]
    accept_ranges: bool
    declared_size: Optional[int]
    send_length: bool


@dataclass
class _Canned:
    status: int
    headers: dict[str, str]
    body: bytes
    error: Optional[str]


@dataclass
class RecordedRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)


class ScriptedFetcher:
    """In-memory ``Fetcher`` with a per-URL script.

    Example:
        fetcher = ScriptedFetcher()
        fetcher.host("https://cdn.example.com/a", PNG_BYTES, content_type="image/png")
        fetcher.respond("https://x.example/gone", status=404)
        fetcher.fail("https://down.example/", error="connection_error")
    """

    def __init__(self) -> None:
        self.files: dict[str, _HostedFile] = {}
        self.canned: dict[tuple[str, str], _Canned] = {}
        self.requests: list[RecordedRequest] = []
        self.closed: list[str] = []
        self.raise_for: dict[str, Exception] = {}

    # -- registration --------------------------------------------------------

    def host(
        self,
        url: str,
        body: bytes,
        *,
        content_type: Optional[str] = None,
        accept_ranges: bool = True,
        declared_size: Optional[int] = None,
        send_length: bool = True,
    ) -> None:
        """Serve ``body`` at ``url`` for HEAD and (ranged) GET."""
        self.files[url] = _HostedFile(body, content_type, accept_ranges, declared_size, send_length)

    def respond(
        self,
        url: str,
        *,
        method: str = "*",
        status: int = 200,
        headers: Optional[Mapping[str, str]] = None,
        body: bytes = b"",
    ) -> None:
        self.canned[(method.upper(), url)] = _Canned(status, dict(headers or {}), body, None)

    def fail(self, url: str, *, method: str = "*", error: str = "connection_error") -> None:
        self.canned[(method.upper(), url)] = _Canned(0, {}, b"", error)

    def explode(self, url: str, exc: Exception) -> None:
        """Make ``fetch`` raise, breaking the never-raise contract on purpose."""
        self.raise_for[url] = exc

    # -- inspection ----------------------------------------------------------

    def urls(self, method: Optional[str] = None) -> list[str]:
        return [r.url for r in self.requests if method is None or r.method == method]

    # -- Fetcher protocol ----------------------------------------------------

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
    ) -> FetchResponse:
        method = method.upper()
        sent = {k.lower(): v for k, v in (headers or {}).items()}
        self.requests.append(RecordedRequest(method, url, sent))

        if url in self.raise_for:
            raise self.raise_for[url]

        canned = self.canned.get((method, url)) or self.canned.get(("*", url))
        if canned is not None:
            if canned.error:
                return self._tracked(
                    FetchResponse(url, 0, error=canned.error, detail="scripted failure")
                )
            return self._tracked(
                FetchResponse(
                    url,
                    canned.status,
                    canned.headers,
                    chunks=_chunked(canned.body) if method != "HEAD" else None,
                )
            )

        hosted = self.files.get(url)
        if hosted is None:
            return self._tracked(FetchResponse(url, 404, {"content-type": "text/plain"}))
        return self._tracked(self._serve(url, method, sent, hosted))

    def _serve(
        self, url: str, method: str, sent: Mapping[str, str], hosted: _HostedFile
    ) -> FetchResponse:
        size = hosted.declared_size if hosted.declared_size is not None else len(hosted.body)
        base: dict[str, str] = {}
        if hosted.content_type:
            base["content-type"] = hosted.content_type

        if method == "HEAD":
            if hosted.send_length:
                base["content-length"] = str(size)
            return FetchResponse(url, 200, base)

        match = _RANGE.match(sent.get("range", ""))
        if match and hosted.accept_ranges:
            start = int(match.group(1))
            end = int(match.group(2)) if match.group(2) else len(hosted.body) - 1
            part = hosted.body[start : end + 1]
            headers = dict(base)
            headers["content-range"] = f"bytes {start}-{start + max(len(part) - 1, 0)}/{size}"
            headers["content-length"] = str(len(part))
            return FetchResponse(url, 206, headers, chunks=_chunked(part))

        headers = dict(base)
        if hosted.send_length:
            headers["content-length"] = str(size)
        return FetchResponse(url, 200, headers, chunks=_chunked(hosted.body))

    def _tracked(self, response: FetchResponse) -> FetchResponse:
        closed = self.closed
        url = response.url

        async def _close() -> None:
            closed.append(url)

        response._closer = _close
        return response


@pytest.fixture
def scripted_fetcher() -> ScriptedFetcher:
    """Provide a fresh in-memory fetcher."""
    return ScriptedFetcher()


@pytest.fixture
def mock_transport() -> Generator[dict[str, Any], None, None]:
    """
    Provide an ``httpx.MockTransport`` with a route registry.

    Yields a dict with:
    - transport: the MockTransport
    - register: register(method, url, response_or_callable)
    - requests: list of httpx.Request objects seen by the transport

    Unregistered routes answer 404.
    """
    routes: dict[tuple[str, str], Any] = {}
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        route = routes.get((request.method, str(request.url))) or routes.get(
            ("*", str(request.url))
        )
        if route is None:
            return httpx.Response(404, content=b"not mocked")
        if callable(route):
            return route(request)
        return route

    def register(
        method: str,
        url: str,
        response: httpx.Response | Callable[[httpx.Request], httpx.Response],
    ) -> None:
        routes[(method.upper(), url)] = response

    yield {
        "transport": httpx.MockTransport(handler),
        "register": register,
        "requests": seen,
    }
