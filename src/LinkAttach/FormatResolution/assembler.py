"""Attachment assembly: reconcile a filename with the resolved extension.

Naming rules, given the URL's final path segment and the resolved
extension:

- segment already ends with the resolved extension (case-insensitive,
  alias-aware): keep it verbatim
- segment ends with a different extension: replace that extension
- segment has no extension: append the resolved one
- no usable segment: synthesize ``link_{index + 1}{extension}``

Characters that are unsafe in filenames are replaced with ``_``.
"""

from __future__ import annotations

import re
from typing import Optional

from LinkAttach.FormatResolution.formats import FALLBACK_EXTENSION, normalize_extension, same_format
from LinkAttach.FormatResolution.types import (
    AttachmentDescriptor,
    ResolutionDecision,
    ResourceReference,
)

MAX_FILENAME_LENGTH = 255

_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f\x7f]')


def sanitize_segment(segment: Optional[str]) -> str:
    """Replace unsafe filename characters and trim surrounding dots/spaces."""

    if not segment:
        return ""
    cleaned = _UNSAFE_CHARS.sub("_", segment).strip().strip(".")
    return "" if not cleaned.strip("_") else cleaned


def synthesized_name(index: int, extension: str) -> str:
    """Return ``link_{index + 1}{extension}``."""

    return f"link_{index + 1}{extension}"


def _split_extension(name: str) -> tuple[str, Optional[str]]:
    if "." not in name:
        return name, None
    stem, suffix = name.rsplit(".", 1)
    extension = normalize_extension(suffix)
    if not stem or extension is None:
        return name, None
    return stem, suffix


def reconcile_filename(segment: Optional[str], extension: str, index: int) -> str:
    """Combine the URL's final segment with the resolved ``extension``.

    Examples:
        >>> reconcile_filename("photo.PNG", ".png", 0)
        'photo.PNG'
        >>> reconcile_filename("photo.bmp", ".png", 0)
        'photo.png'
        >>> reconcile_filename("photo", ".png", 0)
        'photo.png'
        >>> reconcile_filename("", ".png", 2)
        'link_3.png'
    """

    name = sanitize_segment(segment)
    if not name:
        return synthesized_name(index, extension)

    stem, suffix = _split_extension(name)
    if suffix is not None and same_format(suffix, extension):
        result = name
    else:
        result = f"{stem}{extension}"

    if len(result) > MAX_FILENAME_LENGTH:
        keep = MAX_FILENAME_LENGTH - len(extension)
        result = f"{stem[:keep]}{extension}"
    return result


def assemble(
    reference: ResourceReference, decision: ResolutionDecision, index: int
) -> AttachmentDescriptor:
    """Build the attachment descriptor for ``reference``."""

    name = reconcile_filename(reference.last_segment, decision.extension, index)
    return AttachmentDescriptor(name=name, content=reference.url)


def assemble_malformed(url: str, index: int) -> AttachmentDescriptor:
    """Descriptor for a URL that could not be parsed: ``link_{n}.file``."""

    return AttachmentDescriptor(name=synthesized_name(index, FALLBACK_EXTENSION), content=url)


__all__ = (
    "MAX_FILENAME_LENGTH",
    "sanitize_segment",
    "synthesized_name",
    "reconcile_filename",
    "assemble",
    "assemble_malformed",
)
