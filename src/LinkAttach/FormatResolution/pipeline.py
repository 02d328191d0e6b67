# === NAVMAP v1 ===
# {
#   "module": "LinkAttach.FormatResolution.pipeline",
#   "purpose": "Batch conversion of free text containing links into attachment descriptors.",
#   "sections": [
#     {
#       "id": "extract-text",
#       "name": "extract_text",
#       "anchor": "function-extract-text",
#       "kind": "function"
#     },
#     {
#       "id": "extract-urls",
#       "name": "extract_urls",
#       "anchor": "function-extract-urls",
#       "kind": "function"
#     },
#     {
#       "id": "conversionresult",
#       "name": "ConversionResult",
#       "anchor": "class-conversionresult",
#       "kind": "class"
#     },
#     {
#       "id": "linkconverter",
#       "name": "LinkConverter",
#       "anchor": "class-linkconverter",
#       "kind": "class"
#     },
#     {
#       "id": "convert-text",
#       "name": "convert_text",
#       "anchor": "function-convert-text",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Link-to-Attachment Batch Pipeline

Control flow per batch:

1. Flatten the input (string, list of strings or ``{"text": ...}`` items)
2. Extract ``http(s)://`` URLs and keep the first ``batch.max_urls``
3. For every kept URL, in parallel: parse → select policy → orchestrate
   probes → apply the Size Guard → assemble the descriptor
4. Drop URLs whose declared or counted size exceeds the ceiling, or whose
   processing raised, and report ``valid/attempted``

The batch result always carries ``code == "success"``; the localized
``message`` tells the caller whether the input was empty, had no links,
converted normally, or failed unexpectedly.
"""

from __future__ import annotations

import asyncio
import logging
import re
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

from LinkAttach.FormatResolution import size_guard
from LinkAttach.FormatResolution.assembler import assemble, assemble_malformed
from LinkAttach.FormatResolution.classifications import DetectionMethod
from LinkAttach.FormatResolution.config.loader import resolve_provider_policies
from LinkAttach.FormatResolution.config.models import LinkAttachConfig
from LinkAttach.FormatResolution.errors import FetchError, MalformedUrlError
from LinkAttach.FormatResolution.fetch import Fetcher, HttpxFetcher
from LinkAttach.FormatResolution.messages import translate
from LinkAttach.FormatResolution.orchestrator import ResolutionOrchestrator
from LinkAttach.FormatResolution.probes import build_probes
from LinkAttach.FormatResolution.strategy import StrategySelector
from LinkAttach.FormatResolution.types import (
    AttachmentDescriptor,
    ResolutionDecision,
    ResourceReference,
    SizeVerdict,
)

LOGGER = logging.getLogger(__name__)

SUCCESS_CODE = "success"
URL_PATTERN = re.compile(r"https?://[^\s]+")


# ============================================================================
# Input handling
# ============================================================================


def extract_text(urls_input: Any) -> str:
    """Flatten the supported input shapes into one string.

    Lists are joined with single spaces; dict items contribute their
    ``text`` value.
    """

    if urls_input is None:
        return ""
    if isinstance(urls_input, str):
        return urls_input
    if isinstance(urls_input, dict):
        return str(urls_input.get("text") or "")
    if isinstance(urls_input, Iterable):
        parts = []
        for item in urls_input:
            if isinstance(item, dict):
                parts.append(str(item.get("text") or ""))
            elif item is not None:
                parts.append(str(item))
        return " ".join(parts)
    return str(urls_input)


def extract_urls(text: str) -> List[str]:
    """Return every ``http(s)://`` run of non-whitespace in ``text``, in order."""

    return URL_PATTERN.findall(text or "")


# ============================================================================
# Result
# ============================================================================


@dataclass(frozen=True)
class ConversionResult:
    """Batch outcome returned to the caller."""

    code: str
    data: List[Dict[str, str]] = field(default_factory=list)
    message: str = ""
    attempted: int = 0
    log_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "data": list(self.data), "message": self.message}


# ============================================================================
# Converter
# ============================================================================


class LinkConverter:
    """
    Converts text containing links into attachment descriptors.

    Attributes:
        config: LinkAttachConfig (immutable for the converter's lifetime)
        fetcher: Fetch capability shared by every probe
        orchestrator: ResolutionOrchestrator running the probes
        logger: Logger instance

    Example:
        ```python
        async with HttpxFetcher(config.http) as fetcher:
            converter = LinkConverter(fetcher, config)
            result = await converter.convert("see https://example.com/a.png")
        ```
    """

    def __init__(
        self,
        fetcher: Fetcher,
        config: Optional[LinkAttachConfig] = None,
        *,
        selector: Optional[StrategySelector] = None,
        telemetry: Optional[Any] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or LinkAttachConfig()
        self.fetcher = fetcher
        self.logger = logger or LOGGER
        if selector is None:
            policies, default = resolve_provider_policies(self.config)
            selector = StrategySelector(policies, default)
        self.orchestrator = ResolutionOrchestrator(
            build_probes(self.config, fetcher),
            selector,
            mode=self.config.detection.mode,
            confidence=self.config.detection.confidence,
            telemetry=telemetry,
            logger=logger,
        )

    def _message(self, key: str) -> str:
        return translate(key, self.config.batch.locale)

    async def convert(self, urls_input: Any, log_id: Optional[str] = None) -> ConversionResult:
        """Run the whole batch; never raises."""

        batch_id = log_id or uuid.uuid4().hex[:12]
        self.logger.info(f"[{batch_id}] Starting link conversion")

        text = extract_text(urls_input)
        if not text.strip():
            self.logger.error(f"[{batch_id}] Input is empty")
            return ConversionResult(
                code=SUCCESS_CODE, message=self._message("errorEmptyInput"), log_id=batch_id
            )

        found = extract_urls(text)
        if not found:
            self.logger.error(f"[{batch_id}] No valid links found")
            return ConversionResult(
                code=SUCCESS_CODE, message=self._message("errorNoUrl"), log_id=batch_id
            )

        limit = self.config.batch.max_urls
        selected = found[:limit]
        if len(found) > limit:
            self.logger.info(
                f"[{batch_id}] Found {len(found)} links; processing the first {limit}"
            )

        outcomes = await asyncio.gather(
            *(
                self.process_url(url, index, log_id=f"{batch_id}-{index}")
                for index, url in enumerate(selected)
            ),
            return_exceptions=True,
        )
        failures = [o for o in outcomes if isinstance(o, BaseException)]
        if failures:
            for failure in failures:
                if not isinstance(failure, Exception):
                    raise failure
            self.logger.error(
                f"[{batch_id}] Conversion failed: {failures[0]}", exc_info=failures[0]
            )
            return ConversionResult(
                code=SUCCESS_CODE,
                message=self._message("convertFailed"),
                attempted=len(selected),
                log_id=batch_id,
            )

        attachments = [outcome.to_dict() for outcome in outcomes if outcome is not None]
        self.logger.info(
            f"[{batch_id}] Conversion complete, valid attachments: "
            f"{len(attachments)}/{len(selected)}",
            extra={
                "extra_fields": {
                    "batch_id": batch_id,
                    "valid": len(attachments),
                    "attempted": len(selected),
                    "found": len(found),
                }
            },
        )
        return ConversionResult(
            code=SUCCESS_CODE,
            data=attachments,
            message=self._message("convertSuccess"),
            attempted=len(selected),
            log_id=batch_id,
        )

    async def process_url(
        self, url: str, index: int, *, log_id: Optional[str] = None
    ) -> Optional[AttachmentDescriptor]:
        """Resolve one URL; ``None`` means the URL was dropped.

        Unexpected errors are logged and drop only this URL.
        """

        log_id = log_id or str(index)
        try:
            return await self._process_url(url, index, log_id)
        except Exception as e:
            self.logger.error(
                f"[{log_id}] Unexpected error while processing {url}, dropping: {e}",
                exc_info=True,
                extra={"extra_fields": {"url": url, "error": f"{type(e).__name__}: {e}"}},
            )
            return None

    async def _process_url(
        self, url: str, index: int, log_id: str
    ) -> Optional[AttachmentDescriptor]:
        try:
            reference = ResourceReference.parse(url)
        except MalformedUrlError as e:
            self.logger.warning(f"[{log_id}] Failed to parse URL {url!r}: {e}")
            return assemble_malformed(url, index)

        decision = await self.orchestrator.resolve(reference, log_id=log_id)

        for verdict in await self.size_verdicts(reference, decision, log_id=log_id):
            if verdict.exceeded:
                self.logger.warning(
                    f"[{log_id}] File too large ({verdict.source} {verdict.formatted} > "
                    f"{size_guard.format_bytes(verdict.limit_bytes)}), dropping: {url}",
                    extra={
                        "extra_fields": {
                            "url": url,
                            "source": verdict.source,
                            "byte_count": verdict.byte_count,
                            "limit_bytes": verdict.limit_bytes,
                        }
                    },
                )
                return None

        descriptor = assemble(reference, decision, index)
        self.logger.info(
            f"[{log_id}] {url} -> {descriptor.name} "
            f"(confidence={decision.confidence:.2f}, policy={decision.policy})"
        )
        return descriptor

    async def size_verdicts(
        self,
        reference: ResourceReference,
        decision: ResolutionDecision,
        *,
        log_id: Optional[str] = None,
    ) -> Tuple[SizeVerdict, ...]:
        """Check the declared and observed sizes against ``size_guard.max_bytes``.

        Headers are not trusted on their own: unless a probe already read
        the full body, up to ``max_bytes + 1`` bytes are downloaded and
        counted. A declared size above the ceiling short-circuits that read.
        """

        limit = self.config.size_guard.max_bytes
        declared = decision.declared_length
        if declared is None and self._needs_head(decision):
            declared = await self._head_length(reference, log_id)

        observed = decision.observed_length
        if (
            observed is None
            and self.config.size_guard.measure_body
            and not size_guard.exceeds(declared, limit)
        ):
            observed = await self._measure_body(reference, limit, log_id)

        return (
            size_guard.check(declared, limit, "declared"),
            size_guard.check(observed, limit, "observed"),
        )

    def _needs_head(self, decision: ResolutionDecision) -> bool:
        if not self.config.size_guard.head_when_unknown:
            return False
        # A content-type probe that got an answer already saw the HEAD headers.
        return not any(
            r.method is DetectionMethod.CONTENT_TYPE and r.status is not None
            for r in decision.evidence
        )

    def _size_headers(self) -> Dict[str, str]:
        return {"User-Agent": self.config.http.user_agent}

    async def _head_length(
        self, reference: ResourceReference, log_id: Optional[str]
    ) -> Optional[int]:
        response = await self.fetcher.fetch(
            reference.url, method="HEAD", headers=self._size_headers()
        )
        try:
            response.raise_for_error()
            if not response.ok:
                self.logger.debug(f"[{log_id}] Size check HEAD returned {response.status}")
                return None
            return size_guard.declared_length(response.headers)
        except FetchError as e:
            self.logger.debug(f"[{log_id}] Size check HEAD failed: {e}")
            return None
        finally:
            await response.aclose()

    async def _measure_body(
        self, reference: ResourceReference, limit: int, log_id: Optional[str]
    ) -> Optional[int]:
        """Count body bytes, reading at most ``limit + 1``."""
        response = await self.fetcher.fetch(
            reference.url, method="GET", headers=self._size_headers()
        )
        try:
            response.raise_for_error()
            if not response.ok:
                self.logger.debug(f"[{log_id}] Size check GET returned {response.status}")
                return None
            data = await response.read(limit=limit + 1)
            # A stream that broke part-way is a failed count, not a small file.
            response.raise_for_error()
            return len(data)
        except FetchError as e:
            self.logger.debug(f"[{log_id}] Size check GET failed: {e}")
            return None
        finally:
            await response.aclose()


# ============================================================================
# Convenience entry points
# ============================================================================


async def convert_text(
    urls_input: Any,
    config: Optional[LinkAttachConfig] = None,
    *,
    log_id: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    telemetry: Optional[Any] = None,
) -> ConversionResult:
    """Open an :class:`HttpxFetcher`, convert one batch and close the client."""

    config = config or LinkAttachConfig()
    async with HttpxFetcher(config.http, transport=transport) as fetcher:
        converter = LinkConverter(fetcher, config, telemetry=telemetry)
        return await converter.convert(urls_input, log_id=log_id)


__all__ = [
    "SUCCESS_CODE",
    "URL_PATTERN",
    "extract_text",
    "extract_urls",
    "ConversionResult",
    "LinkConverter",
    "convert_text",
]
