"""HttpxFetcher against ``httpx.MockTransport``."""

import asyncio

import httpx

from LinkAttach.FormatResolution.config import HttpClientConfig
from LinkAttach.FormatResolution.fetch import (
    ERROR_CONNECTION,
    ERROR_TIMEOUT,
    FetchResponse,
    HttpxFetcher,
)
from LinkAttach.FormatResolution.pipeline import convert_text
from tests.fixtures.http_mocking import MockResponseBuilder
from tests.fixtures.payloads import PNG_BYTES

URL = "https://files.example.com/a/b"


def _fetch(transport, url=URL, **kwargs):
    async def _run():
        async with HttpxFetcher(HttpClientConfig(), transport=transport) as fetcher:
            response = await fetcher.fetch(url, **kwargs)
            try:
                body = await response.read()
            finally:
                await response.aclose()
            return response, body

    return asyncio.run(_run())


def test_head_sends_user_agent(mock_transport):
    mock_transport["register"](
        "HEAD", URL, MockResponseBuilder().with_content_type("image/png").build()
    )
    response, _ = _fetch(mock_transport["transport"], method="HEAD")

    assert response.status == 200
    assert response.content_type == "image/png"
    sent = mock_transport["requests"][0]
    assert sent.method == "HEAD"
    assert sent.headers["user-agent"] == HttpClientConfig().user_agent


def test_range_header_forwarded(mock_transport):
    def handler(request):
        assert request.headers["range"] == "bytes=0-7"
        return httpx.Response(206, content=PNG_BYTES[:8])

    mock_transport["register"]("GET", URL, handler)
    response, body = _fetch(mock_transport["transport"], headers={"Range": "bytes=0-7"})

    assert response.status == 206
    assert body == PNG_BYTES[:8]


def test_read_limit(mock_transport):
    mock_transport["register"]("GET", URL, httpx.Response(200, content=b"x" * 5000))

    async def _run():
        async with HttpxFetcher(transport=mock_transport["transport"]) as fetcher:
            response = await fetcher.fetch(URL)
            try:
                return await response.read(limit=100)
            finally:
                await response.aclose()

    assert len(asyncio.run(_run())) == 100


def test_http_errors_are_responses(mock_transport):
    mock_transport["register"]("GET", URL, httpx.Response(503))
    response, _ = _fetch(mock_transport["transport"])
    assert response.status == 503
    assert not response.ok
    assert response.error is None


def test_timeout_becomes_status_zero(mock_transport):
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    mock_transport["register"]("*", URL, handler)
    response, body = _fetch(mock_transport["transport"])

    assert response.status == 0
    assert response.error == ERROR_TIMEOUT
    assert "timed out" in response.detail
    assert body == b""


def test_connection_error_becomes_status_zero(mock_transport):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    mock_transport["register"]("*", URL, handler)
    response, _ = _fetch(mock_transport["transport"])

    assert response.status == 0
    assert response.error == ERROR_CONNECTION


def test_response_close_is_idempotent():
    calls = []

    async def closer():
        calls.append(1)

    async def _run():
        response = FetchResponse(URL, 200, closer=closer)
        await response.aclose()
        await response.aclose()

    asyncio.run(_run())
    assert calls == [1]


def test_convert_text_over_transport(mock_transport, concurrent_config):
    url = "https://example.com/a.png"

    def serve(request):
        return httpx.Response(
            200,
            content=PNG_BYTES if request.method == "GET" else b"",
            headers={"content-type": "image/png"},
        )

    mock_transport["register"]("*", url, serve)

    result = asyncio.run(
        convert_text(f"look {url}", concurrent_config, transport=mock_transport["transport"])
    )

    assert result.data == [{"name": "a.png", "content": url, "contentType": "attachment/url"}]
    assert {r.method for r in mock_transport["requests"]} == {"HEAD", "GET"}
