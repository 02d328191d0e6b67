"""
LinkAttach FormatResolution

Resolves the most likely file format of a remotely hosted resource from
independent signals (response headers, URL heuristics, content sniffing),
enforces a payload size ceiling and packages the result as an attachment
descriptor.

Example:
    ```python
    import asyncio
    from LinkAttach.FormatResolution import convert_text, load_config

    result = asyncio.run(convert_text("see https://example.com/a.png", load_config()))
    result.data  # [{"name": "a.png", "content": "...", "contentType": "attachment/url"}]
    ```
"""

from .assembler import assemble, reconcile_filename
from .classifications import DetectionMethod, ReasonCode
from .config import LinkAttachConfig, load_config
from .errors import ConfigurationError, FetchError, LinkAttachError, MalformedUrlError
from .fetch import FetchResponse, Fetcher, HttpxFetcher
from .orchestrator import ResolutionOrchestrator
from .pipeline import ConversionResult, LinkConverter, convert_text, extract_urls
from .strategy import DEFAULT_POLICY, StrategySelector
from .types import (
    AttachmentDescriptor,
    ProbeResult,
    ProviderPolicy,
    ResolutionDecision,
    ResourceReference,
    SizeVerdict,
)

__all__ = [
    # Types
    "AttachmentDescriptor",
    "ProbeResult",
    "ProviderPolicy",
    "ResolutionDecision",
    "ResourceReference",
    "SizeVerdict",
    "DetectionMethod",
    "ReasonCode",
    # Engine
    "Fetcher",
    "FetchResponse",
    "HttpxFetcher",
    "StrategySelector",
    "DEFAULT_POLICY",
    "ResolutionOrchestrator",
    "assemble",
    "reconcile_filename",
    # Batch
    "LinkConverter",
    "ConversionResult",
    "convert_text",
    "extract_urls",
    # Configuration
    "LinkAttachConfig",
    "load_config",
    # Errors
    "LinkAttachError",
    "MalformedUrlError",
    "ConfigurationError",
    "FetchError",
]
