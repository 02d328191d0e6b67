"""Core value types for format resolution.

This module defines the immutable records passed between the probes, the
strategy selector, the orchestrator and the attachment assembler:

- ResourceReference: a parsed absolute URL and its derived attributes
- ProbeResult: tagged outcome of one probe invocation
- ProviderPolicy: per-hosting-category probe order and trust weighting
- ResolutionDecision: the orchestrator's single output per URL
- AttachmentDescriptor: the externally visible attachment record
- SizeVerdict: a Size Guard classification of one byte count

All types are frozen dataclasses. None of them outlive the processing of a
single URL except ProviderPolicy, which is loaded once per process.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple
from urllib.parse import parse_qs, unquote, urlsplit

from LinkAttach.FormatResolution.classifications import DetectionMethod, ReasonCode
from LinkAttach.FormatResolution.errors import MalformedUrlError
from LinkAttach.FormatResolution.formats import FALLBACK_EXTENSION

ATTACHMENT_CONTENT_TYPE = "attachment/url"

# ============================================================================
# ResourceReference
# ============================================================================


@dataclass(frozen=True)
class ResourceReference:
    """An absolute http(s) URL with read-only derived attributes.

    Attributes:
        url: The URL exactly as supplied by the caller
        hostname: Lower-cased host without port
        path: Raw (still percent-encoded) path component
        query_string: Raw query string (no leading ``?``)
        query: Query parameters keyed by lower-cased name

    Example:
        ```python
        ref = ResourceReference.parse("https://cdn.example.com/a/photo.PNG?w=10")
        ref.hostname      # "cdn.example.com"
        ref.last_segment  # "photo.PNG"
        ```
    """

    url: str
    hostname: str
    path: str
    query_string: str
    query: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def parse(cls, url: str) -> "ResourceReference":
        """Parse ``url`` or raise :class:`MalformedUrlError`."""

        if not isinstance(url, str) or not url.strip():
            raise MalformedUrlError("URL must be a non-empty string", url=url)
        try:
            parts = urlsplit(url.strip())
            hostname = parts.hostname
            # Accessing .port validates the port component.
            _ = parts.port
        except ValueError as exc:
            raise MalformedUrlError(f"Unparsable URL: {exc}", url=url) from exc

        if parts.scheme.lower() not in ("http", "https"):
            raise MalformedUrlError(f"Unsupported URL scheme: {parts.scheme!r}", url=url)
        if not hostname:
            raise MalformedUrlError("URL has no hostname", url=url)

        raw_query = parse_qs(parts.query, keep_blank_values=True)
        query: Dict[str, Tuple[str, ...]] = {}
        for key, values in raw_query.items():
            lowered = key.lower()
            query[lowered] = query.get(lowered, ()) + tuple(values)

        return cls(
            url=url,
            hostname=hostname.lower().rstrip("."),
            path=parts.path,
            query_string=parts.query,
            query=query,
        )

    @property
    def last_segment(self) -> str:
        """Percent-decoded final path segment (empty for ``/`` or no path)."""

        return unquote(self.path.rsplit("/", 1)[-1])

    @property
    def path_segments(self) -> Tuple[str, ...]:
        """Non-empty, percent-decoded path segments in order."""

        return tuple(unquote(part) for part in self.path.split("/") if part)

    def query_value(self, name: str) -> Optional[str]:
        """Return the first non-empty value of query parameter ``name``."""

        for value in self.query.get(name.lower(), ()):
            if value:
                return value
        return None


# ============================================================================
# ProbeResult
# ============================================================================


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of exactly one probe invocation.

    Attributes:
        method: Which probe produced the result
        succeeded: Whether the probe produced a trusted extension
        extension: Dotted lower-case extension when ``succeeded``
        confidence: Trust score in [0, 1]; always 0 on failure
        reason: Short reason code (see :class:`ReasonCode`)
        status: HTTP status observed by the probe, if any
        declared_length: Payload size claimed by response headers
        observed_length: Bytes actually read from a full-body download
        meta: Additional diagnostic fields (content type, errors, ...)

    Use :meth:`success` and :meth:`failure` instead of the constructor.
    """

    method: DetectionMethod
    succeeded: bool
    extension: Optional[str] = None
    confidence: float = 0.0
    reason: str = ReasonCode.UNKNOWN.value
    status: Optional[int] = None
    declared_length: Optional[int] = None
    observed_length: Optional[int] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate result integrity."""
        if self.succeeded and not self.extension:
            raise ValueError("succeeded=True requires an extension")
        if not self.succeeded and self.extension is not None:
            raise ValueError("failed results must not carry an extension")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")

    @classmethod
    def success(
        cls,
        method: DetectionMethod,
        extension: str,
        confidence: float,
        reason: ReasonCode | str,
        **evidence: Any,
    ) -> "ProbeResult":
        return cls(
            method=method,
            succeeded=True,
            extension=extension,
            confidence=confidence,
            reason=ReasonCode.from_wire(reason).value,
            **evidence,
        )

    @classmethod
    def failure(
        cls,
        method: DetectionMethod,
        reason: ReasonCode | str,
        **evidence: Any,
    ) -> "ProbeResult":
        return cls(
            method=method,
            succeeded=False,
            reason=ReasonCode.from_wire(reason).value,
            **evidence,
        )


# ============================================================================
# ProviderPolicy
# ============================================================================


@dataclass(frozen=True)
class ProviderPolicy:
    """Probe ordering and trust weighting for one hosting-provider category.

    Attributes:
        name: Category identifier (e.g. "code_hosting")
        match_domains: Hostname suffixes belonging to the category
        primary_method: Probe run first in strategy-guided mode
        fallback_method: Probe run when the primary fails
        category_confidence: Multiplier applied to a primary success

    Example:
        ```python
        policy = ProviderPolicy(
            name="code_hosting",
            match_domains=frozenset({"raw.githubusercontent.com"}),
            primary_method=DetectionMethod.URL_EXTENSION,
            fallback_method=DetectionMethod.CONTENT_TYPE,
            category_confidence=0.95,
        )
        ```
    """

    name: str
    match_domains: FrozenSet[str]
    primary_method: DetectionMethod
    fallback_method: DetectionMethod
    category_confidence: float

    def __post_init__(self) -> None:
        """Validate policy parameters."""
        if not 0.0 < self.category_confidence <= 1.0:
            msg = f"category_confidence must be in (0, 1], got {self.category_confidence}"
            raise ValueError(msg)
        if self.primary_method is self.fallback_method:
            msg = f"policy {self.name!r}: primary and fallback methods must differ"
            raise ValueError(msg)

    def matches(self, hostname: str) -> bool:
        """Return ``True`` when ``hostname`` equals or ends with a listed suffix."""

        host = hostname.lower().rstrip(".")
        for suffix in self.match_domains:
            if host == suffix or host.endswith(f".{suffix}"):
                return True
        return False


# ============================================================================
# ResolutionDecision
# ============================================================================


@dataclass(frozen=True)
class ResolutionDecision:
    """The orchestrator's single output for one URL.

    ``evidence`` holds every probe result gathered on the way, which the
    pipeline reads to apply the Size Guard without issuing extra requests.
    """

    extension: str
    confidence: float
    method: Optional[DetectionMethod]
    succeeded: bool
    policy: Optional[str] = None
    evidence: Tuple[ProbeResult, ...] = ()

    @classmethod
    def fallback(
        cls, *, policy: Optional[str] = None, evidence: Tuple[ProbeResult, ...] = ()
    ) -> "ResolutionDecision":
        """Return the fixed low-confidence decision used when every probe fails."""

        return cls(
            extension=FALLBACK_EXTENSION,
            confidence=0.0,
            method=None,
            succeeded=False,
            policy=policy,
            evidence=evidence,
        )

    @property
    def declared_length(self) -> Optional[int]:
        """Largest payload size claimed by any probe's response headers."""

        values = [r.declared_length for r in self.evidence if r.declared_length is not None]
        return max(values) if values else None

    @property
    def observed_length(self) -> Optional[int]:
        """Largest byte count any probe actually read from a full body."""

        values = [r.observed_length for r in self.evidence if r.observed_length is not None]
        return max(values) if values else None


# ============================================================================
# AttachmentDescriptor
# ============================================================================


@dataclass(frozen=True)
class AttachmentDescriptor:
    """Externally visible attachment: a name plus the original URL."""

    name: str
    content: str
    content_type: str = ATTACHMENT_CONTENT_TYPE

    def to_dict(self) -> Dict[str, str]:
        """Return the wire shape ``{"name", "content", "contentType"}``."""

        return {"name": self.name, "content": self.content, "contentType": self.content_type}


# ============================================================================
# SizeVerdict
# ============================================================================


@dataclass(frozen=True)
class SizeVerdict:
    """Size Guard classification of a single byte count."""

    exceeded: bool
    byte_count: Optional[int]
    limit_bytes: int
    source: str
    formatted: str


__all__ = [
    "ATTACHMENT_CONTENT_TYPE",
    "ResourceReference",
    "ProbeResult",
    "ProviderPolicy",
    "ResolutionDecision",
    "AttachmentDescriptor",
    "SizeVerdict",
]
