"""Classification enums shared across the format resolution engine."""

from __future__ import annotations

from enum import Enum
from typing import Union


class DetectionMethod(Enum):
    """Canonical identifiers for the three independent detection probes."""

    CONTENT_TYPE = "content_type"
    URL_EXTENSION = "url_extension"
    CONTENT_SNIFF = "content_sniff"

    @classmethod
    def from_wire(cls, value: Union[str, "DetectionMethod"]) -> "DetectionMethod":
        """Return the enum member for ``value``.

        Accepts the canonical value, the member name, and dashed spellings
        (``content-type``) so YAML provider tables stay forgiving.
        """

        if isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace("-", "_")
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(f"Unknown detection method: {value!r}")


class ReasonCode(Enum):
    """Machine-readable reason taxonomy for probe and pipeline outcomes."""

    UNKNOWN = "unknown"
    CONTENT_TYPE_MATCH = "content_type_match"
    CONTENT_TYPE_MISSING = "content_type_missing"
    CONTENT_TYPE_UNMAPPED = "content_type_unmapped"
    URL_PATH_EXTENSION = "url_path_extension"
    URL_QUERY_FILENAME = "url_query_filename"
    URL_QUERY_FORMAT = "url_query_format"
    URL_PATH_FORMAT = "url_path_format"
    URL_PROCESS_DIRECTIVE = "url_process_directive"
    URL_NO_CANDIDATE = "url_no_candidate"
    MALFORMED_URL = "malformed_url"
    SIGNATURE_MATCH = "signature_match"
    TEXT_SIGNATURE = "text_signature"
    TEXT_HEURISTIC = "text_heuristic"
    EMPTY_BODY = "empty_body"
    UNRECOGNIZED_CONTENT = "unrecognized_content"
    HTTP_STATUS = "http_status"
    REQUEST_EXCEPTION = "request_exception"
    PROBE_EXCEPTION = "probe_exception"
    MAX_BYTES_HEADER = "max_bytes_header"
    MAX_BYTES_STREAM = "max_bytes_stream"

    @classmethod
    def from_wire(cls, value: Union[str, "ReasonCode", None]) -> "ReasonCode":
        """Return the matching enum member or ``UNKNOWN``."""

        if isinstance(value, cls):
            return value
        if value is None:
            return cls.UNKNOWN
        text = str(value).strip().lower()
        if not text:
            return cls.UNKNOWN
        for member in cls:
            if member.value == text:
                return member
        return cls.UNKNOWN


PROBE_ORDER = (
    DetectionMethod.CONTENT_TYPE,
    DetectionMethod.URL_EXTENSION,
    DetectionMethod.CONTENT_SNIFF,
)


__all__ = ("DetectionMethod", "ReasonCode", "PROBE_ORDER")
