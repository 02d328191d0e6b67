"""Content-Type probe tests (HEAD request + static MIME table)."""

import asyncio

import pytest

from LinkAttach.FormatResolution.probes.content_type import ContentTypeProbe
from LinkAttach.FormatResolution.types import ResourceReference
from tests.fixtures.payloads import PDF_BYTES

URL = "https://files.example.com/download/42"


def _probe(fetcher, url=URL):
    return asyncio.run(ContentTypeProbe(fetcher).probe(ResourceReference.parse(url)))


def test_mapped_media_type_succeeds(scripted_fetcher):
    scripted_fetcher.host(URL, PDF_BYTES, content_type="application/pdf; qs=0.9")
    result = _probe(scripted_fetcher)
    assert result.succeeded
    assert result.extension == ".pdf"
    assert result.confidence == pytest.approx(0.7)
    assert result.declared_length == len(PDF_BYTES)
    assert result.meta["content_type"] == "application/pdf"


def test_sends_head_with_user_agent(scripted_fetcher):
    scripted_fetcher.host(URL, PDF_BYTES, content_type="application/pdf")
    _probe(scripted_fetcher)
    [request] = scripted_fetcher.requests
    assert request.method == "HEAD"
    assert request.headers["user-agent"] == "Mozilla/5.0 (compatible; LinkToAttachment/1.0)"
    assert scripted_fetcher.closed == [URL]


def test_unmapped_media_type_fails_but_records_length(scripted_fetcher):
    scripted_fetcher.host(URL, b"x" * 300, content_type="application/octet-stream")
    result = _probe(scripted_fetcher)
    assert not result.succeeded
    assert result.reason == "content_type_unmapped"
    assert result.declared_length == 300


def test_missing_content_type(scripted_fetcher):
    scripted_fetcher.host(URL, b"abc")
    result = _probe(scripted_fetcher)
    assert not result.succeeded
    assert result.reason == "content_type_missing"


@pytest.mark.parametrize("status", [403, 404, 405, 500, 503])
def test_non_2xx_fails(scripted_fetcher, status):
    scripted_fetcher.respond(URL, status=status, headers={"content-type": "text/html"})
    result = _probe(scripted_fetcher)
    assert not result.succeeded
    assert result.reason == "http_status"
    assert result.status == status


def test_transport_failure_is_a_value(scripted_fetcher):
    scripted_fetcher.fail(URL, error="timeout")
    result = _probe(scripted_fetcher)
    assert not result.succeeded
    assert result.reason == "request_exception"
    assert result.meta["error"] == "timeout"
