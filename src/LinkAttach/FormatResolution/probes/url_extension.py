"""URL-Extension probe: infer the format from the URL text alone.

No network access. Candidate extensions are collected in a fixed order:

1. the final path segment (text after its last ``.``)
2. ``filename`` / ``name`` / ``file`` query parameters
3. the ``format`` query parameter
4. a ``/format/<value>`` path segment
5. ``format`` tokens inside image-processing directives in the raw query
   (``x-oss-process=image/format,png``, ``imageMogr2/format/webp``,
   ``imageView2/2/w/200/format/jpg``)

Candidates arrive percent-decoded exactly once (path and query values are
decoded by ResourceReference; the raw query by the directive scan) and are
then lower-cased and alias-normalized. The
first candidate in the supported set wins; unsupported candidates are
skipped so that ``/api/download.php?filename=report.pdf`` still resolves.
"""

from __future__ import annotations

import re
from typing import Iterator, Optional, Tuple
from urllib.parse import unquote

from LinkAttach.FormatResolution.classifications import DetectionMethod, ReasonCode
from LinkAttach.FormatResolution.formats import is_supported_extension, normalize_extension
from LinkAttach.FormatResolution.types import ProbeResult, ResourceReference

URL_EXTENSION_CONFIDENCE = 0.6

FILENAME_PARAMETERS = ("filename", "name", "file")
_DIRECTIVE_FORMAT = re.compile(r"format[,/]([a-z0-9]+)", re.IGNORECASE)


def _suffix(value: str) -> Optional[str]:
    name = value.rsplit("/", 1)[-1]
    if "." not in name:
        return None
    return name.rsplit(".", 1)[1]


def iter_candidates(reference: ResourceReference) -> Iterator[Tuple[str, ReasonCode]]:
    """Yield ``(raw candidate, reason)`` pairs in priority order."""

    suffix = _suffix(reference.last_segment)
    if suffix:
        yield suffix, ReasonCode.URL_PATH_EXTENSION

    for parameter in FILENAME_PARAMETERS:
        value = reference.query_value(parameter)
        suffix = _suffix(value) if value else None
        if suffix:
            yield suffix, ReasonCode.URL_QUERY_FILENAME

    value = reference.query_value("format")
    if value:
        yield value, ReasonCode.URL_QUERY_FORMAT

    segments = reference.path_segments
    for position, segment in enumerate(segments[:-1]):
        if segment.lower() == "format":
            yield segments[position + 1], ReasonCode.URL_PATH_FORMAT

    for match in _DIRECTIVE_FORMAT.finditer(unquote(reference.query_string)):
        yield match.group(1), ReasonCode.URL_PROCESS_DIRECTIVE


def extension_from_url(reference: ResourceReference) -> Optional[Tuple[str, ReasonCode]]:
    """Return the first supported ``(extension, reason)`` or ``None``.

    Examples:
        >>> ref = ResourceReference.parse("https://x.example/a.JPEG")
        >>> extension_from_url(ref)
        ('.jpg', <ReasonCode.URL_PATH_EXTENSION: 'url_path_extension'>)
    """

    for raw, reason in iter_candidates(reference):
        extension = normalize_extension(raw)
        if is_supported_extension(extension):
            return extension, reason  # type: ignore[return-value]
    return None


class UrlExtensionProbe:
    """Offline probe over the URL path and query."""

    method = DetectionMethod.URL_EXTENSION

    def __init__(self, *, confidence: float = URL_EXTENSION_CONFIDENCE) -> None:
        self.confidence = confidence

    def inspect(self, reference: ResourceReference) -> ProbeResult:
        found = extension_from_url(reference)
        if found is None:
            return ProbeResult.failure(self.method, ReasonCode.URL_NO_CANDIDATE)
        extension, reason = found
        return ProbeResult.success(self.method, extension, self.confidence, reason)

    async def probe(self, reference: ResourceReference) -> ProbeResult:
        return self.inspect(reference)

    def inspect_url(self, url: str) -> ProbeResult:
        """Like :meth:`inspect` but accepts a raw string; malformed URLs fail."""
        try:
            reference = ResourceReference.parse(url)
        except ValueError:
            return ProbeResult.failure(self.method, ReasonCode.MALFORMED_URL)
        return self.inspect(reference)


__all__ = (
    "URL_EXTENSION_CONFIDENCE",
    "FILENAME_PARAMETERS",
    "iter_candidates",
    "extension_from_url",
    "UrlExtensionProbe",
)
