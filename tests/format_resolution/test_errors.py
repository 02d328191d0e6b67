"""Error taxonomy, actionable messages and structured failure logging."""

import logging

import pytest

from LinkAttach.FormatResolution.classifications import DetectionMethod, ReasonCode
from LinkAttach.FormatResolution.errors import (
    ConfigurationError,
    FetchError,
    LinkAttachError,
    MalformedUrlError,
    describe_fetch_failure,
    log_probe_failure,
)
from LinkAttach.FormatResolution.fetch import ERROR_TIMEOUT, FetchResponse
from LinkAttach.FormatResolution.types import ProbeResult


@pytest.mark.parametrize(
    "status,reason,fragment",
    [
        (403, None, "forbidden"),
        (404, "http_status", "not found"),
        (416, None, "Range not satisfiable"),
        (502, None, "Server error"),
        (None, "timeout", "timed out"),
        (None, "connection_error", "connection"),
        (None, "content_type_unmapped", "MIME table"),
        (None, "something_else", "Probe failed"),
    ],
)
def test_describe_fetch_failure(status, reason, fragment):
    message, _ = describe_fetch_failure(status, reason)
    assert fragment in message


def test_hierarchy():
    assert issubclass(MalformedUrlError, ValueError)
    assert issubclass(ConfigurationError, ValueError)
    assert issubclass(FetchError, LinkAttachError)
    assert MalformedUrlError("bad", url="x").url == "x"


def test_log_probe_failure_structured(caplog):
    logger = logging.getLogger("linkattach.test")
    result = ProbeResult.failure(
        DetectionMethod.CONTENT_TYPE,
        ReasonCode.REQUEST_EXCEPTION,
        status=0,
        meta={"error": "timeout", "detail": "ReadTimeout: slow"},
    )

    with caplog.at_level(logging.DEBUG, logger="linkattach.test"):
        log_probe_failure(logger, "https://example.com/a", result, log_id="b1-0")

    (record,) = caplog.records
    assert record.levelno == logging.DEBUG
    assert "[b1-0] content_type probe failed: Request timed out" in record.getMessage()
    fields = record.extra_fields
    assert fields["reason_code"] == "request_exception"
    assert fields["details"] == "ReadTimeout: slow"
    assert "suggestion" in fields


def test_raise_for_error():
    failed = FetchResponse("https://example.com/a", 0, error=ERROR_TIMEOUT, detail="slow")
    with pytest.raises(FetchError) as excinfo:
        failed.raise_for_error()
    assert excinfo.value.url == "https://example.com/a"
    assert excinfo.value.details["error"] == "timeout"

    not_found = FetchResponse("https://example.com/b", 404)
    assert not_found.raise_for_error() is not_found
