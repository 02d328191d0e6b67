"""Size Guard tests: strict ceiling, formatting and header parsing."""

import pytest

from LinkAttach.FormatResolution import size_guard
from LinkAttach.FormatResolution.size_guard import MEGABYTE


class TestExceeds:
    """Test the strict greater-than comparison."""

    def test_above_limit(self):
        assert size_guard.exceeds(26 * MEGABYTE, 25 * MEGABYTE)

    def test_exactly_at_limit_is_allowed(self):
        assert not size_guard.exceeds(25 * MEGABYTE, 25 * MEGABYTE)

    def test_below_limit(self):
        assert not size_guard.exceeds(1, 25 * MEGABYTE)

    def test_unknown_size_never_exceeds(self):
        assert not size_guard.exceeds(None, 0)

    def test_default_ceiling_is_25_mib(self):
        assert size_guard.DEFAULT_MAX_BYTES == 25 * 1024 * 1024


class TestFormatBytes:
    """Test human-readable sizes."""

    @pytest.mark.parametrize(
        "count,expected",
        [
            (0, "0 B"),
            (512, "512 B"),
            (2048, "2.00 KB"),
            (26 * MEGABYTE, "26.00 MB"),
            (3 * 1024 * MEGABYTE, "3.00 GB"),
            (None, "unknown size"),
        ],
    )
    def test_format(self, count, expected):
        assert size_guard.format_bytes(count) == expected


class TestCheck:
    """Test SizeVerdict construction."""

    def test_verdict_fields(self):
        verdict = size_guard.check(30 * MEGABYTE, 25 * MEGABYTE, "declared")
        assert verdict.exceeded
        assert verdict.byte_count == 30 * MEGABYTE
        assert verdict.limit_bytes == 25 * MEGABYTE
        assert verdict.source == "declared"
        assert verdict.formatted == "30.00 MB"

    def test_unknown_verdict(self):
        verdict = size_guard.check(None, 10, "observed")
        assert not verdict.exceeded
        assert verdict.formatted == "unknown size"


class TestHeaderParsing:
    """Test Content-Length and Content-Range parsing."""

    def test_content_length(self):
        assert size_guard.declared_length({"content-length": " 1234 "}) == 1234

    @pytest.mark.parametrize("value", ["", "abc", "-5", "1.5"])
    def test_malformed_content_length(self, value):
        assert size_guard.declared_length({"content-length": value}) is None

    def test_missing_content_length(self):
        assert size_guard.declared_length({}) is None

    def test_partial_uses_content_range_total(self):
        headers = {"content-length": "8192", "content-range": "bytes 0-8191/52428800"}
        assert size_guard.declared_length(headers, partial=True) == 52428800

    def test_partial_with_unknown_total(self):
        headers = {"content-range": "bytes 0-8191/*"}
        assert size_guard.declared_length(headers, partial=True) is None

    def test_partial_unsatisfied_range_form(self):
        headers = {"content-range": "bytes */1000"}
        assert size_guard.declared_length(headers, partial=True) == 1000
