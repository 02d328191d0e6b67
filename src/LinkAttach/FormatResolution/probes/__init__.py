"""Independent format detection probes.

This package contains one probe per detection signal:
- Content-Type (HEAD request, static MIME table)
- URL-Extension (path and query heuristics, offline)
- Content-Sniff (bounded download, magic-byte signatures)

Each probe exposes ``method`` and ``async probe(reference) -> ProbeResult``
and reports every failure as a value.
"""

from __future__ import annotations

from typing import Dict, Protocol

from LinkAttach.FormatResolution.classifications import DetectionMethod
from LinkAttach.FormatResolution.config.models import LinkAttachConfig
from LinkAttach.FormatResolution.fetch import Fetcher
from LinkAttach.FormatResolution.types import ProbeResult, ResourceReference

from .content_sniff import ContentSniffProbe
from .content_type import ContentTypeProbe
from .url_extension import UrlExtensionProbe


class Probe(Protocol):
    """Single-signal detector consumed by the orchestrator."""

    method: DetectionMethod

    async def probe(self, reference: ResourceReference) -> ProbeResult: ...


def build_probes(config: LinkAttachConfig, fetcher: Fetcher) -> Dict[DetectionMethod, Probe]:
    """Instantiate all three probes from ``config`` sharing one ``fetcher``."""

    confidence = config.detection.confidence
    user_agent = config.http.user_agent
    return {
        DetectionMethod.CONTENT_TYPE: ContentTypeProbe(
            fetcher,
            confidence=confidence.content_type,
            user_agent=user_agent,
        ),
        DetectionMethod.URL_EXTENSION: UrlExtensionProbe(confidence=confidence.url_extension),
        DetectionMethod.CONTENT_SNIFF: ContentSniffProbe(
            fetcher,
            max_bytes=config.size_guard.max_bytes,
            prefer_range=config.sniff.prefer_range,
            range_bytes=config.sniff.range_bytes,
            text_sample_bytes=config.sniff.text_sample_bytes,
            text_ratio_threshold=config.sniff.text_ratio_threshold,
            signature_confidence=confidence.content_sniff,
            text_confidence=confidence.text_heuristic,
            user_agent=user_agent,
        ),
    }


__all__ = [
    "Probe",
    "ContentTypeProbe",
    "UrlExtensionProbe",
    "ContentSniffProbe",
    "build_probes",
]
