"""
FormatResolution Configuration Package

Public API for loading, validating, and introspecting LinkAttach configuration.

Example:
    from LinkAttach.FormatResolution.config import load_config, LinkAttachConfig

    # Load from file with env/CLI overrides
    config = load_config(
        path="linkattach.yaml",
        cli_overrides={"detection": {"mode": "concurrent"}},
    )

    # Get config hash for reproducibility
    config_id = config.config_hash()

    # Ordered provider policies plus the default
    from LinkAttach.FormatResolution.config import resolve_provider_policies
    policies, default = resolve_provider_policies(config)
"""

from .loader import (
    export_config_schema,
    load_config,
    load_provider_table,
    policies_from_config,
    resolve_provider_policies,
    validate_config_file,
)
from .models import (
    BatchConfig,
    ConfidenceConfig,
    DetectionConfig,
    HttpClientConfig,
    LinkAttachConfig,
    ProviderPolicyConfig,
    ProvidersConfig,
    SizeGuardConfig,
    SniffConfig,
)

__all__ = [
    # Models
    "LinkAttachConfig",
    "HttpClientConfig",
    "SizeGuardConfig",
    "SniffConfig",
    "ConfidenceConfig",
    "DetectionConfig",
    "BatchConfig",
    "ProviderPolicyConfig",
    "ProvidersConfig",
    # Loading/validation
    "load_config",
    "load_provider_table",
    "policies_from_config",
    "resolve_provider_policies",
    "validate_config_file",
    "export_config_schema",
]
