"""Content-Type probe: trust the server's declared media type.

Issues a single HEAD request and maps the normalized ``Content-Type`` to
an extension through :data:`~LinkAttach.FormatResolution.formats.MIME_EXTENSIONS`.
Non-2xx statuses, table misses and transport errors are all reported as
failed results; the probe never raises.
"""

from __future__ import annotations

import logging
from typing import Optional

from LinkAttach.FormatResolution import size_guard
from LinkAttach.FormatResolution.classifications import DetectionMethod, ReasonCode
from LinkAttach.FormatResolution.config.models import DEFAULT_USER_AGENT
from LinkAttach.FormatResolution.fetch import Fetcher
from LinkAttach.FormatResolution.formats import extension_for_media_type, normalize_media_type
from LinkAttach.FormatResolution.types import ProbeResult, ResourceReference

LOGGER = logging.getLogger(__name__)

CONTENT_TYPE_CONFIDENCE = 0.7


class ContentTypeProbe:
    """HEAD-based media type detection."""

    method = DetectionMethod.CONTENT_TYPE

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        confidence: float = CONTENT_TYPE_CONFIDENCE,
        user_agent: Optional[str] = DEFAULT_USER_AGENT,
    ) -> None:
        self.fetcher = fetcher
        self.confidence = confidence
        self.headers = {"User-Agent": user_agent} if user_agent else {}

    async def probe(self, reference: ResourceReference) -> ProbeResult:
        response = await self.fetcher.fetch(reference.url, method="HEAD", headers=self.headers)
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

            declared = size_guard.declared_length(response.headers)
            media_type = normalize_media_type(response.content_type)
            if not media_type:
                return ProbeResult.failure(
                    self.method,
                    ReasonCode.CONTENT_TYPE_MISSING,
                    status=response.status,
                    declared_length=declared,
                )

            extension = extension_for_media_type(media_type)
            if extension is None:
                return ProbeResult.failure(
                    self.method,
                    ReasonCode.CONTENT_TYPE_UNMAPPED,
                    status=response.status,
                    declared_length=declared,
                    meta={"content_type": media_type},
                )

            LOGGER.debug(f"Content-Type {media_type} -> {extension} for {reference.url}")
            return ProbeResult.success(
                self.method,
                extension,
                self.confidence,
                ReasonCode.CONTENT_TYPE_MATCH,
                status=response.status,
                declared_length=declared,
                meta={"content_type": media_type},
            )
        finally:
            await response.aclose()


__all__ = ("CONTENT_TYPE_CONFIDENCE", "ContentTypeProbe")
