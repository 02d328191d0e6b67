"""Static MIME and extension tables used by the detection probes.

The tables are module-level immutable mappings. They are intentionally
incomplete: the engine is heuristic and only needs the formats people
commonly link to (documents, images, audio, video, scripts, archives,
fonts, generic binaries).
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

FALLBACK_EXTENSION = ".file"

MIME_EXTENSIONS: Mapping[str, str] = MappingProxyType(
    {
        # documents
        "application/pdf": ".pdf",
        "application/msword": ".doc",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
        "application/vnd.ms-excel": ".xls",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": ".xlsx",
        "application/vnd.ms-powerpoint": ".ppt",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation": ".pptx",
        "application/vnd.oasis.opendocument.text": ".odt",
        "application/vnd.oasis.opendocument.spreadsheet": ".ods",
        "application/vnd.oasis.opendocument.presentation": ".odp",
        "application/rtf": ".rtf",
        "application/epub+zip": ".epub",
        "text/plain": ".txt",
        "text/html": ".html",
        "application/xhtml+xml": ".html",
        "text/csv": ".csv",
        "text/markdown": ".md",
        "application/json": ".json",
        "application/xml": ".xml",
        "text/xml": ".xml",
        # images
        "image/jpeg": ".jpg",
        "image/jpg": ".jpg",
        "image/pjpeg": ".jpg",
        "image/png": ".png",
        "image/gif": ".gif",
        "image/webp": ".webp",
        "image/svg+xml": ".svg",
        "image/svg": ".svg",
        "image/bmp": ".bmp",
        "image/x-ms-bmp": ".bmp",
        "image/tiff": ".tiff",
        "image/x-icon": ".ico",
        "image/vnd.microsoft.icon": ".ico",
        "image/heic": ".heic",
        "image/avif": ".avif",
        # audio
        "audio/mpeg": ".mp3",
        "audio/mp3": ".mp3",
        "audio/wav": ".wav",
        "audio/x-wav": ".wav",
        "audio/wave": ".wav",
        "audio/ogg": ".ogg",
        "audio/flac": ".flac",
        "audio/x-flac": ".flac",
        "audio/aac": ".aac",
        "audio/mp4": ".m4a",
        "audio/x-m4a": ".m4a",
        # video
        "video/mp4": ".mp4",
        "video/webm": ".webm",
        "video/quicktime": ".mov",
        "video/x-msvideo": ".avi",
        "video/x-matroska": ".mkv",
        "video/x-flv": ".flv",
        "video/mpeg": ".mpg",
        # scripts and styles
        "application/javascript": ".js",
        "text/javascript": ".js",
        "application/x-javascript": ".js",
        "text/css": ".css",
        "application/x-python": ".py",
        "text/x-python": ".py",
        "application/x-sh": ".sh",
        # archives
        "application/zip": ".zip",
        "application/x-zip-compressed": ".zip",
        "application/x-rar": ".rar",
        "application/x-rar-compressed": ".rar",
        "application/vnd.rar": ".rar",
        "application/x-7z-compressed": ".7z",
        "application/gzip": ".gz",
        "application/x-gzip": ".gz",
        "application/x-tar": ".tar",
        "application/x-bzip2": ".bz2",
        "application/x-xz": ".xz",
        # fonts
        "font/woff": ".woff",
        "font/woff2": ".woff2",
        "font/ttf": ".ttf",
        "font/otf": ".otf",
        "application/font-woff": ".woff",
        # binaries
        "application/wasm": ".wasm",
        "application/x-msdownload": ".exe",
        "application/vnd.android.package-archive": ".apk",
        "application/x-apple-diskimage": ".dmg",
    }
)

SUPPORTED_EXTENSIONS = frozenset(
    {
        # documents
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".odt", ".ods",
        ".odp", ".rtf", ".epub", ".txt", ".html", ".csv", ".md", ".json", ".xml",
        # images
        ".jpg", ".png", ".gif", ".webp", ".svg", ".bmp", ".tiff", ".ico", ".heic",
        ".avif",
        # audio
        ".mp3", ".wav", ".ogg", ".flac", ".aac", ".m4a",
        # video
        ".mp4", ".webm", ".mov", ".avi", ".mkv", ".flv", ".mpg",
        # code and scripts
        ".js", ".css", ".ts", ".py", ".sh", ".java", ".c", ".cpp", ".go", ".rs",
        ".rb", ".php", ".yaml", ".toml", ".ini", ".sql",
        # archives
        ".zip", ".rar", ".7z", ".gz", ".tar", ".bz2", ".xz",
        # fonts
        ".woff", ".woff2", ".ttf", ".otf",
        # generic binaries
        ".bin", ".exe", ".apk", ".dmg", ".iso", ".wasm",
    }
)

# Alternate spellings that name the same format.
EXTENSION_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        ".jpeg": ".jpg",
        ".jpe": ".jpg",
        ".jfif": ".jpg",
        ".htm": ".html",
        ".xhtml": ".html",
        ".tif": ".tiff",
        ".yml": ".yaml",
        ".mpeg": ".mpg",
        ".markdown": ".md",
        ".text": ".txt",
        ".mjs": ".js",
    }
)


def normalize_media_type(content_type: Optional[str]) -> str:
    """Lower-case ``content_type`` and strip parameters (``; charset=...``)."""

    return (content_type or "").split(";", 1)[0].strip().lower()


def extension_for_media_type(content_type: Optional[str]) -> Optional[str]:
    """Return the extension mapped to ``content_type`` or ``None``."""

    return MIME_EXTENSIONS.get(normalize_media_type(content_type))


def normalize_extension(candidate: Optional[str]) -> Optional[str]:
    """Return ``candidate`` as a dotted, lower-case, alias-folded extension.

    ``None`` is returned for empty input or values containing anything
    other than ASCII letters and digits after the dot.

    Examples:
        >>> normalize_extension("JPEG")
        '.jpg'
        >>> normalize_extension(".Png")
        '.png'
    """

    if not candidate:
        return None
    text = candidate.strip().lower()
    if not text.startswith("."):
        text = f".{text}"
    body = text[1:]
    if not body or not body.isascii() or not body.isalnum():
        return None
    return EXTENSION_ALIASES.get(text, text)


def is_supported_extension(extension: Optional[str]) -> bool:
    """Return ``True`` when ``extension`` (already normalized) is supported."""

    return extension is not None and extension in SUPPORTED_EXTENSIONS


def same_format(left: Optional[str], right: Optional[str]) -> bool:
    """Return ``True`` when two extensions name the same format."""

    a = normalize_extension(left)
    b = normalize_extension(right)
    return a is not None and a == b


__all__ = (
    "FALLBACK_EXTENSION",
    "MIME_EXTENSIONS",
    "SUPPORTED_EXTENSIONS",
    "EXTENSION_ALIASES",
    "normalize_media_type",
    "extension_for_media_type",
    "normalize_extension",
    "is_supported_extension",
    "same_format",
)
