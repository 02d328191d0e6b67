"""Payload size ceiling checks.

Response headers are untrusted, so the pipeline consults the guard twice
per URL: once with the declared length (``Content-Length`` or the total in
a ``Content-Range`` reply) and once with the number of bytes actually read.
"""

from __future__ import annotations

import re
from typing import Mapping, Optional

from LinkAttach.FormatResolution.types import SizeVerdict

MEGABYTE = 1024 * 1024
DEFAULT_MAX_BYTES = 25 * MEGABYTE

_CONTENT_RANGE_TOTAL = re.compile(r"bytes\s+(?:\d+-\d+|\*)/(\d+)", re.IGNORECASE)
_UNITS = ("B", "KB", "MB", "GB", "TB")


def exceeds(byte_count: Optional[int], limit_bytes: int) -> bool:
    """Return ``True`` when ``byte_count`` is strictly above ``limit_bytes``.

    Unknown sizes (``None``) never exceed.
    """

    return byte_count is not None and byte_count > limit_bytes


def format_bytes(byte_count: Optional[int]) -> str:
    """Render ``byte_count`` for log messages.

    Examples:
        >>> format_bytes(512)
        '512 B'
        >>> format_bytes(26 * 1024 * 1024)
        '26.00 MB'
    """

    if byte_count is None:
        return "unknown size"
    value = float(byte_count)
    for unit in _UNITS:
        if value < 1024 or unit == _UNITS[-1]:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.2f} {unit}"
        value /= 1024
    return f"{byte_count} B"  # pragma: no cover


def check(byte_count: Optional[int], limit_bytes: int, source: str) -> SizeVerdict:
    """Classify ``byte_count`` against ``limit_bytes``."""

    return SizeVerdict(
        exceeded=exceeds(byte_count, limit_bytes),
        byte_count=byte_count,
        limit_bytes=limit_bytes,
        source=source,
        formatted=format_bytes(byte_count),
    )


def parse_content_length(value: Optional[str]) -> Optional[int]:
    """Parse a ``Content-Length`` header; malformed values yield ``None``."""

    if value is None:
        return None
    text = value.strip()
    if not text.isdigit():
        return None
    return int(text)


def declared_length(headers: Mapping[str, str], *, partial: bool = False) -> Optional[int]:
    """Return the full payload size advertised by ``headers``.

    For partial (206) replies ``Content-Length`` only covers the returned
    range, so the total from ``Content-Range`` is used instead.
    """

    if partial:
        match = _CONTENT_RANGE_TOTAL.search(headers.get("content-range", ""))
        return int(match.group(1)) if match else None
    return parse_content_length(headers.get("content-length"))


__all__ = (
    "MEGABYTE",
    "DEFAULT_MAX_BYTES",
    "exceeds",
    "format_bytes",
    "check",
    "parse_content_length",
    "declared_length",
)
