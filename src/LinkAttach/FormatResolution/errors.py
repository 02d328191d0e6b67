# === NAVMAP v1 ===
# {
#   "module": "LinkAttach.FormatResolution.errors",
#   "purpose": "Error taxonomy and logging helpers for format resolution.",
#   "sections": [
#     {
#       "id": "linkattacherror",
#       "name": "LinkAttachError",
#       "anchor": "class-linkattacherror",
#       "kind": "class"
#     },
#     {
#       "id": "describe-fetch-failure",
#       "name": "describe_fetch_failure",
#       "anchor": "function-describe-fetch-failure",
#       "kind": "function"
#     },
#     {
#       "id": "log-probe-failure",
#       "name": "log_probe_failure",
#       "anchor": "function-log-probe-failure",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Error taxonomy and logging helpers for format resolution.

Responsibilities
----------------
- Define the small set of exceptions the engine actually raises. Only
  configuration problems and unparsable URLs are exceptional; probe and
  network failures are ordinary values (see :class:`ProbeResult`).
- Translate HTTP statuses and :class:`ReasonCode` values into operator
  friendly messages via :func:`describe_fetch_failure`.
- Centralise structured logging of failed probes through
  :func:`log_probe_failure` so every failure carries the same fields.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    from LinkAttach.FormatResolution.types import ProbeResult

__all__ = (
    "LinkAttachError",
    "MalformedUrlError",
    "ConfigurationError",
    "FetchError",
    "describe_fetch_failure",
    "log_probe_failure",
)

LOGGER = logging.getLogger(__name__)


class LinkAttachError(Exception):
    """Base class for errors raised by the format resolution engine."""


class MalformedUrlError(LinkAttachError, ValueError):
    """Raised when a URL cannot be parsed into a resource reference."""

    def __init__(self, message: str, *, url: str | None = None):
        super().__init__(message)
        self.url = url


class ConfigurationError(LinkAttachError, ValueError):
    """Raised when configuration or the provider table is invalid."""


class FetchError(LinkAttachError):
    """Raised by fetch helpers that need to surface transport failures.

    The :class:`~LinkAttach.FormatResolution.fetch.Fetcher` contract never
    raises; :meth:`FetchResponse.raise_for_error` converts a failed response
    into this exception for callers that want strict behaviour.
    """

    def __init__(
        self, message: str, *, url: str | None = None, details: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.url = url
        self.details = details or {}


def describe_fetch_failure(
    http_status: int | None,
    reason_code: str | None,
) -> tuple[str, str | None]:
    """Return ``(message, suggestion)`` describing a failed probe.

    Examples:
        >>> describe_fetch_failure(404, "http_status")[0]
        'Resource not found (HTTP 404)'
    """

    if http_status == 403:
        return (
            "Access forbidden (HTTP 403)",
            "The host may reject HEAD requests or unknown user agents",
        )
    if http_status == 404:
        return ("Resource not found (HTTP 404)", "Check that the link is still valid")
    if http_status == 405:
        return (
            "Method not allowed (HTTP 405)",
            "The host does not support HEAD; content sniffing will still be attempted",
        )
    if http_status == 416:
        return (
            "Range not satisfiable (HTTP 416)",
            "Disable sniff.prefer_range to download the full body instead",
        )
    if http_status and http_status >= 500:
        return (
            f"Server error (HTTP {http_status})",
            "The upstream server failed; the link can be retried later",
        )
    if http_status and http_status >= 400:
        return (f"HTTP error {http_status}", None)

    if reason_code == "timeout":
        return ("Request timed out", "Increase http.timeout_read_s for slow hosts")
    if reason_code == "connection_error":
        return ("Failed to establish connection", "Check DNS resolution and firewall rules")
    if reason_code == "invalid_url":
        return ("URL rejected by the HTTP client", "Check the URL scheme and host")
    if reason_code == "content_type_unmapped":
        return ("Content-Type not in the MIME table", None)
    if reason_code == "unrecognized_content":
        return ("No signature matched the downloaded bytes", None)
    if reason_code == "url_no_candidate":
        return ("URL carries no supported extension hint", None)

    return ("Probe failed", None)


def log_probe_failure(
    logger: logging.Logger,
    url: str,
    result: "ProbeResult",
    *,
    log_id: str | None = None,
) -> None:
    """Log a failed probe with structured context at DEBUG level.

    Probe failures are routine, so they never log above DEBUG; the pipeline
    reports the overall decision separately.
    """

    message, suggestion = describe_fetch_failure(
        result.status or None, result.meta.get("error") or result.reason
    )
    log_entry: dict[str, Any] = {
        "url": url,
        "method": result.method.value,
        "reason_code": result.reason,
        "http_status": result.status,
        "error_message": message,
    }
    if suggestion:
        log_entry["suggestion"] = suggestion
    if result.meta.get("error"):
        log_entry["details"] = result.meta.get("detail") or result.meta["error"]

    logger.debug(
        "[%s] %s probe failed: %s",
        log_id or "-",
        result.method.value,
        message,
        extra={"extra_fields": log_entry},
    )
