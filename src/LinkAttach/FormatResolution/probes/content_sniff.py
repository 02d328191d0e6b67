"""Content-Sniff probe: classify the leading bytes of the payload.

The probe downloads a bounded prefix (``Range: bytes=0-N``) when the host
honours range requests and falls back to reading the full body, capped at
``max_bytes + 1`` so the Size Guard can still spot oversize payloads.

Classification order:

1. binary magic-byte signatures via :mod:`filetype`
2. textual signatures (HTML doctype or root element, SVG root, XML prolog)
3. printable-byte ratio over the first ``text_sample_bytes`` bytes
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import filetype

from LinkAttach.FormatResolution import size_guard
from LinkAttach.FormatResolution.classifications import DetectionMethod, ReasonCode
from LinkAttach.FormatResolution.config.models import DEFAULT_USER_AGENT
from LinkAttach.FormatResolution.fetch import Fetcher
from LinkAttach.FormatResolution.formats import normalize_extension
from LinkAttach.FormatResolution.types import ProbeResult, ResourceReference

LOGGER = logging.getLogger(__name__)

CONTENT_SNIFF_CONFIDENCE = 0.95
TEXT_HEURISTIC_CONFIDENCE = 0.75
DEFAULT_RANGE_BYTES = 8192
TEXT_SAMPLE_BYTES = 1024
TEXT_RATIO_THRESHOLD = 0.8

_PRINTABLE = frozenset(range(32, 127)) | {9, 10, 13}
_BOM = b"\xef\xbb\xbf"


def printable_ratio(data: bytes) -> float:
    """Fraction of ``data`` made of printable ASCII, tab, LF or CR."""

    if not data:
        return 0.0
    printable = sum(1 for byte in data if byte in _PRINTABLE)
    return printable / len(data)


def _text_signature(data: bytes) -> Optional[str]:
    head = data[:512]
    if head.startswith(_BOM):
        head = head[len(_BOM) :]
    head = head.lstrip().lower()
    if head.startswith(b"<!doctype html") or head.startswith(b"<html"):
        return ".html"
    if head.startswith(b"<svg"):
        return ".svg"
    if head.startswith(b"<?xml"):
        return ".svg" if b"<svg" in head else ".xml"
    return None


def classify_bytes(
    data: bytes,
    *,
    text_sample_bytes: int = TEXT_SAMPLE_BYTES,
    text_ratio_threshold: float = TEXT_RATIO_THRESHOLD,
) -> Optional[Tuple[str, ReasonCode]]:
    """Return ``(extension, reason)`` for ``data`` or ``None``.

    Examples:
        >>> classify_bytes(b"\\x89PNG\\r\\n\\x1a\\n" + b"\\x00" * 32)
        ('.png', <ReasonCode.SIGNATURE_MATCH: 'signature_match'>)
        >>> classify_bytes(b"hello world")
        ('.txt', <ReasonCode.TEXT_HEURISTIC: 'text_heuristic'>)
    """

    if not data:
        return None

    kind = filetype.guess(data)
    if kind is not None:
        extension = normalize_extension(kind.extension)
        if extension:
            return extension, ReasonCode.SIGNATURE_MATCH

    extension = _text_signature(data)
    if extension:
        return extension, ReasonCode.TEXT_SIGNATURE

    if printable_ratio(data[:text_sample_bytes]) > text_ratio_threshold:
        return ".txt", ReasonCode.TEXT_HEURISTIC
    return None


class ContentSniffProbe:
    """Prefix download plus signature classification."""

    method = DetectionMethod.CONTENT_SNIFF

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        max_bytes: int = size_guard.DEFAULT_MAX_BYTES,
        prefer_range: bool = True,
        range_bytes: int = DEFAULT_RANGE_BYTES,
        text_sample_bytes: int = TEXT_SAMPLE_BYTES,
        text_ratio_threshold: float = TEXT_RATIO_THRESHOLD,
        signature_confidence: float = CONTENT_SNIFF_CONFIDENCE,
        text_confidence: float = TEXT_HEURISTIC_CONFIDENCE,
        user_agent: Optional[str] = DEFAULT_USER_AGENT,
    ) -> None:
        self.fetcher = fetcher
        self.max_bytes = max_bytes
        self.prefer_range = prefer_range
        self.range_bytes = range_bytes
        self.text_sample_bytes = text_sample_bytes
        self.text_ratio_threshold = text_ratio_threshold
        self.signature_confidence = signature_confidence
        self.text_confidence = text_confidence
        self.user_agent = user_agent

    def request_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        if self.prefer_range:
            headers["Range"] = f"bytes=0-{self.range_bytes - 1}"
        return headers

    async def probe(self, reference: ResourceReference) -> ProbeResult:
        response = await self.fetcher.fetch(
            reference.url, method="GET", headers=self.request_headers()
        )
        try:
            if response.status == 0:
                return ProbeResult.failure(
                    self.method,
                    ReasonCode.REQUEST_EXCEPTION,
                    meta={"error": response.error, "detail": response.detail},
                )
            if not response.ok:
                return ProbeResult.failure(
                    self.method, ReasonCode.HTTP_STATUS, status=response.status
                )

            observed: Optional[int] = None
            if response.status == 206:
                declared = size_guard.declared_length(response.headers, partial=True)
                data = await response.read(limit=self.range_bytes)
            else:
                declared = size_guard.declared_length(response.headers)
                if size_guard.exceeds(declared, self.max_bytes):
                    # Oversize is already known; only the sample is needed.
                    data = await response.read(limit=self.range_bytes)
                else:
                    data = await response.read(limit=self.max_bytes + 1)
                    if response.error is None:
                        observed = len(data)

            evidence = {
                "status": response.status,
                "declared_length": declared,
                "observed_length": observed,
            }
            if not data:
                reason = ReasonCode.REQUEST_EXCEPTION if response.error else ReasonCode.EMPTY_BODY
                return ProbeResult.failure(
                    self.method,
                    reason,
                    meta={"error": response.error, "detail": response.detail},
                    **evidence,
                )

            found = classify_bytes(
                data,
                text_sample_bytes=self.text_sample_bytes,
                text_ratio_threshold=self.text_ratio_threshold,
            )
            if found is None:
                return ProbeResult.failure(
                    self.method,
                    ReasonCode.UNRECOGNIZED_CONTENT,
                    meta={"sampled_bytes": len(data)},
                    **evidence,
                )

            extension, reason = found
            confidence = (
                self.signature_confidence
                if reason is ReasonCode.SIGNATURE_MATCH
                else self.text_confidence
            )
            LOGGER.debug(f"Sniffed {extension} ({reason.value}) from {len(data)} bytes")
            return ProbeResult.success(
                self.method,
                extension,
                confidence,
                reason,
                meta={"sampled_bytes": len(data)},
                **evidence,
            )
        finally:
            await response.aclose()


__all__ = (
    "CONTENT_SNIFF_CONFIDENCE",
    "TEXT_HEURISTIC_CONFIDENCE",
    "printable_ratio",
    "classify_bytes",
    "ContentSniffProbe",
)
