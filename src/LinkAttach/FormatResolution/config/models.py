"""
Pydantic v2 Configuration Models for FormatResolution

Provides strict, typed configuration for every engine subsystem:
- HTTP client settings (timeouts, TLS, redirects, pool size)
- Size ceiling and header pre-check behaviour
- Content sniffing (range requests, text heuristic thresholds)
- Confidence constants used when ranking probe results
- Execution mode (concurrent fan-out vs. strategy-guided)
- Batch limits and status-message locale
- Provider policy table (ordered, first match wins)
- Top-level LinkAttachConfig as single source of truth

All models use extra="forbid" for strict validation. Environment variables
and CLI overrides follow: file < env < CLI precedence.
"""

from __future__ import annotations

from typing import ClassVar, List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from LinkAttach.FormatResolution.classifications import DetectionMethod

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; LinkToAttachment/1.0)"

# ============================================================================
# Network & Size Models
# ============================================================================


class HttpClientConfig(BaseModel):
    """Configuration for the HTTP client behind the fetch capability."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent sent with every probe request",
    )
    timeout_connect_s: float = Field(default=5.0, description="Connection timeout in seconds")
    timeout_read_s: float = Field(default=15.0, description="Read timeout in seconds")
    verify_tls: bool = Field(default=True, description="Verify TLS certificates")
    follow_redirects: bool = Field(default=True, description="Follow HTTP redirects")
    max_connections: int = Field(default=20, description="Connection pool size")

    @field_validator("timeout_connect_s", "timeout_read_s")
    @classmethod
    def validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeouts must be > 0")
        return v

    @field_validator("max_connections")
    @classmethod
    def validate_max_connections(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_connections must be >= 1")
        return v


class SizeGuardConfig(BaseModel):
    """Configuration for the payload size ceiling."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    max_bytes: int = Field(
        default=25 * 1024 * 1024,
        description="Maximum payload size before a URL is dropped (25 MiB; 10 MiB is also common)",
    )
    head_when_unknown: bool = Field(
        default=True,
        description="Issue a HEAD request when no probe observed a declared length",
    )
    measure_body: bool = Field(
        default=True,
        description=(
            "Count the body with a bounded GET (max_bytes + 1) when no probe read it in full"
        ),
    )

    @field_validator("max_bytes")
    @classmethod
    def validate_max_bytes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_bytes must be > 0")
        return v


class SniffConfig(BaseModel):
    """Configuration for the content-sniff probe."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    prefer_range: bool = Field(
        default=True, description="Request a bounded prefix instead of the full body"
    )
    range_bytes: int = Field(default=8192, description="Prefix size for range requests")
    text_sample_bytes: int = Field(default=1024, description="Bytes inspected by text heuristic")
    text_ratio_threshold: float = Field(
        default=0.8, description="Printable ratio above which bytes are plain text"
    )

    @field_validator("range_bytes", "text_sample_bytes")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Must be > 0")
        return v

    @field_validator("text_ratio_threshold")
    @classmethod
    def validate_ratio(cls, v: float) -> float:
        if not 0.0 < v < 1.0:
            raise ValueError("text_ratio_threshold must be in (0, 1)")
        return v


# ============================================================================
# Detection Models
# ============================================================================


class ConfidenceConfig(BaseModel):
    """Base confidences and reconciliation constants."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    content_type: float = Field(default=0.7, description="Header-based detection")
    url_extension: float = Field(default=0.6, description="URL heuristics")
    content_sniff: float = Field(default=0.95, description="Binary signature match")
    text_heuristic: float = Field(default=0.75, description="Textual signature or ratio")
    corroboration_bonus: float = Field(
        default=0.1, description="Added when probes agree in concurrent mode"
    )
    max_confidence: float = Field(default=1.0, description="Cap after corroboration")
    cross_strategy_penalty: float = Field(
        default=0.8, description="Multiplier applied to a fallback-probe success"
    )

    @field_validator(
        "content_type",
        "url_extension",
        "content_sniff",
        "text_heuristic",
        "max_confidence",
        "cross_strategy_penalty",
    )
    @classmethod
    def validate_unit_interval(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError("Confidence values must be in (0, 1]")
        return v

    @field_validator("corroboration_bonus")
    @classmethod
    def validate_bonus(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("corroboration_bonus must be > 0")
        return v

    @model_validator(mode="after")
    def validate_below_cap(self) -> "ConfidenceConfig":
        for name in ("content_type", "url_extension", "content_sniff", "text_heuristic"):
            if getattr(self, name) >= self.max_confidence:
                raise ValueError(f"{name} must be below max_confidence")
        return self


class DetectionConfig(BaseModel):
    """Orchestrator execution mode and confidence constants."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    mode: Literal["concurrent", "strategy"] = Field(
        default="strategy",
        description="concurrent: run all probes; strategy: provider primary then fallback",
    )
    confidence: ConfidenceConfig = Field(
        default_factory=ConfidenceConfig, description="Confidence constants"
    )


class BatchConfig(BaseModel):
    """Limits for the text-to-attachments batch converter."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    max_urls: int = Field(default=5, description="URLs attempted per batch")
    locale: str = Field(default="en-US", description="Locale for status messages")

    @field_validator("max_urls")
    @classmethod
    def validate_max_urls(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_urls must be >= 1")
        return v


# ============================================================================
# Provider Policy Models
# ============================================================================


class ProviderPolicyConfig(BaseModel):
    """One provider category as written in the provider table."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., description="Category identifier")
    domains: List[str] = Field(default_factory=list, description="Hostname suffixes")
    primary: DetectionMethod = Field(..., description="Primary probe")
    fallback: DetectionMethod = Field(..., description="Fallback probe")
    confidence: float = Field(..., description="Category confidence multiplier")

    @field_validator("primary", "fallback", mode="before")
    @classmethod
    def coerce_method(cls, v: object) -> DetectionMethod:
        return DetectionMethod.from_wire(v)  # type: ignore[arg-type]

    @field_validator("domains")
    @classmethod
    def normalize_domains(cls, v: List[str]) -> List[str]:
        return [d.strip().lower().lstrip(".") for d in v if d and d.strip()]

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError("confidence must be in (0, 1]")
        return v

    @model_validator(mode="after")
    def validate_methods_differ(self) -> "ProviderPolicyConfig":
        if self.primary is self.fallback:
            raise ValueError(f"provider {self.name!r}: primary and fallback must differ")
        return self


def _default_policy() -> ProviderPolicyConfig:
    return ProviderPolicyConfig(
        name="default",
        domains=[],
        primary=DetectionMethod.CONTENT_TYPE,
        fallback=DetectionMethod.URL_EXTENSION,
        confidence=0.8,
    )


class ProvidersConfig(BaseModel):
    """Ordered provider table plus the catch-all default policy.

    ``table_path`` points at a YAML file; ``None`` selects the packaged
    ``providers.yaml``. Inline ``categories`` replace the file entirely.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    table_path: str | None = Field(default=None, description="Provider table YAML path")
    categories: List[ProviderPolicyConfig] | None = Field(
        default=None, description="Inline provider categories (override table_path)"
    )
    default: ProviderPolicyConfig = Field(
        default_factory=_default_policy, description="Policy used when no category matches"
    )

    @field_validator("categories")
    @classmethod
    def validate_unique_names(
        cls, v: List[ProviderPolicyConfig] | None
    ) -> List[ProviderPolicyConfig] | None:
        if v is None:
            return v
        names = [c.name for c in v]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"Duplicate provider names: {sorted(duplicates)}")
        return v


# ============================================================================
# Top-Level Configuration
# ============================================================================


class LinkAttachConfig(BaseModel):
    """
    Single source of truth for LinkAttach configuration.

    Loaded from file (YAML/JSON), overlaid with environment variables,
    and finally overridden by CLI arguments. Precedence: file < env < CLI.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid", validate_assignment=True)

    http: HttpClientConfig = Field(
        default_factory=HttpClientConfig, description="HTTP client configuration"
    )
    size_guard: SizeGuardConfig = Field(
        default_factory=SizeGuardConfig, description="Payload size ceiling"
    )
    sniff: SniffConfig = Field(default_factory=SniffConfig, description="Content sniffing")
    detection: DetectionConfig = Field(
        default_factory=DetectionConfig, description="Execution mode and confidences"
    )
    batch: BatchConfig = Field(default_factory=BatchConfig, description="Batch limits")
    providers: ProvidersConfig = Field(
        default_factory=ProvidersConfig, description="Provider policy table"
    )

    def config_hash(self) -> str:
        """
        Compute deterministic SHA256 hash of config for reproducibility.

        Returns:
            Hex-encoded SHA256 hash of normalized config JSON.
        """
        import hashlib
        import json

        normalized = json.dumps(self.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(normalized.encode()).hexdigest()
