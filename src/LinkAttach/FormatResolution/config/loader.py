# === NAVMAP v1 ===
# {
#   "module": "LinkAttach.FormatResolution.config.loader",
#   "purpose": "Configuration and provider-table loading with File/Env/CLI precedence.",
#   "sections": [
#     {
#       "id": "read-file",
#       "name": "_read_file",
#       "anchor": "function-read-file",
#       "kind": "function"
#     },
#     {
#       "id": "merge-env-overrides",
#       "name": "_merge_env_overrides",
#       "anchor": "function-merge-env-overrides",
#       "kind": "function"
#     },
#     {
#       "id": "load-config",
#       "name": "load_config",
#       "anchor": "function-load-config",
#       "kind": "function"
#     },
#     {
#       "id": "load-provider-table",
#       "name": "load_provider_table",
#       "anchor": "function-load-provider-table",
#       "kind": "function"
#     },
#     {
#       "id": "validate-config-file",
#       "name": "validate_config_file",
#       "anchor": "function-validate-config-file",
#       "kind": "function"
#     },
#     {
#       "id": "export-config-schema",
#       "name": "export_config_schema",
#       "anchor": "function-export-config-schema",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Configuration Loading with File/Env/CLI Precedence

Implements three-level config composition:
1. **File level** (YAML/JSON): base configuration
2. **Environment level**: LINKATTACH_* prefixed variables override file
3. **CLI level**: programmatic overrides win

Environment variables use double-underscore notation:
  LINKATTACH_DETECTION__MODE=concurrent  →  detection.mode="concurrent"
  LINKATTACH_SIZE_GUARD__MAX_BYTES=10485760  →  size_guard.max_bytes=10485760

The provider policy table is a separate YAML document. The packaged
``providers.yaml`` is used unless ``providers.table_path`` or inline
``providers.categories`` say otherwise.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from importlib import resources
from pathlib import Path
from typing import Any, List, Tuple

import yaml
from pydantic import ValidationError

from LinkAttach.FormatResolution.errors import ConfigurationError
from LinkAttach.FormatResolution.types import ProviderPolicy

from .models import LinkAttachConfig, ProviderPolicyConfig

_LOGGER = logging.getLogger(__name__)

DEFAULT_ENV_PREFIX = "LINKATTACH_"
PACKAGED_PROVIDER_TABLE = "providers.yaml"

# ============================================================================
# Helpers
# ============================================================================


def _parse_text(text: str, suffix: str, source: str) -> Any:
    if suffix in (".yaml", ".yml"):
        try:
            return yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {source}: {e}") from e
    if suffix == ".json":
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {source}: {e}") from e
    raise ConfigurationError(f"Unsupported file format: {suffix}. Use .yaml or .json")


def _read_file(path: str) -> dict[str, Any]:
    """
    Read YAML or JSON config file.

    Args:
        path: File path (suffix determines format: .yaml/.yml or .json)

    Returns:
        Parsed config dictionary

    Raises:
        ConfigurationError: If file cannot be read or parsed
    """
    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e

    data = _parse_text(text, p.suffix.lower(), path)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping at top level")
    return data


def _assign_nested(data: dict[str, Any], dotted_key: str, value: Any) -> None:
    """Assign ``value`` into ``data`` following a dot-separated path."""
    keys = dotted_key.split(".")
    current = data

    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]

    current[keys[-1]] = value


def _coerce_env_value(value: str) -> Any:
    """
    Coerce an environment variable string to a Python value.

    JSON parsing handles lists, dicts, numbers and ``true``/``false``;
    anything else stays a string.
    """
    try:
        return json.loads(value)
    except (json.JSONDecodeError, ValueError):
        pass

    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    return value


def _merge_env_overrides(
    data: dict[str, Any], env_prefix: str = DEFAULT_ENV_PREFIX
) -> dict[str, Any]:
    """
    Overlay environment variables onto config dict.

    ``LINKATTACH_CONFIG`` names the config file itself and is skipped.
    """
    for env_key, env_value in os.environ.items():
        if not env_key.startswith(env_prefix):
            continue

        relative_key = env_key[len(env_prefix) :].lower()
        if not relative_key or relative_key == "config":
            continue
        dotted_key = relative_key.replace("__", ".")

        coerced_value = _coerce_env_value(env_value)
        _assign_nested(data, dotted_key, coerced_value)
        _LOGGER.debug(f"Environment override: {env_key} → {dotted_key} = {coerced_value!r}")

    return data


def _merge_cli_overrides(
    data: dict[str, Any], cli_overrides: Mapping[str, Any] | None
) -> dict[str, Any]:
    """Recursively merge CLI overrides into ``data``; later values win."""
    if not cli_overrides:
        return data

    for key, value in cli_overrides.items():
        if isinstance(value, Mapping) and isinstance(data.get(key), dict):
            data[key] = _merge_cli_overrides(data[key], value)
        else:
            data[key] = dict(value) if isinstance(value, Mapping) else value
        _LOGGER.debug(f"CLI override: {key} = {value!r}")

    return data


def _to_policy(entry: ProviderPolicyConfig) -> ProviderPolicy:
    return ProviderPolicy(
        name=entry.name,
        match_domains=frozenset(entry.domains),
        primary_method=entry.primary,
        fallback_method=entry.fallback,
        category_confidence=entry.confidence,
    )


# ============================================================================
# Public API
# ============================================================================


def load_config(
    path: str | None = None,
    env_prefix: str = DEFAULT_ENV_PREFIX,
    cli_overrides: Mapping[str, Any] | None = None,
) -> LinkAttachConfig:
    """
    Load LinkAttachConfig from file, environment, and CLI with proper precedence.

    **Precedence:** file < environment < CLI

    Args:
        path: Path to YAML/JSON config file (optional)
        env_prefix: Environment variable prefix (default: LINKATTACH_)
        cli_overrides: CLI overrides dict (optional)

    Returns:
        Validated LinkAttachConfig instance

    Raises:
        ConfigurationError: If config is invalid or file cannot be read
    """
    data: dict[str, Any] = {}

    if path:
        try:
            data = _read_file(path)
            _LOGGER.info(f"Loaded config from {path}")
        except ConfigurationError as e:
            _LOGGER.error(f"Failed to load config: {e}")
            raise

    data = _merge_env_overrides(data, env_prefix)
    data = _merge_cli_overrides(data, cli_overrides)

    try:
        config = LinkAttachConfig.model_validate(data)
    except ValidationError as e:
        _LOGGER.error(f"Configuration validation failed: {e}")
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    _LOGGER.info(f"Configuration validated. Config hash: {config.config_hash()[:8]}...")
    return config


def load_provider_table(path: str | None = None) -> Tuple[ProviderPolicy, ...]:
    """
    Load the ordered provider policy table.

    The document is a mapping with a ``providers`` list; each entry has
    ``name``, ``domains``, ``primary``, ``fallback`` and ``confidence``.
    Order is preserved because the first matching category wins.

    Args:
        path: YAML/JSON file; ``None`` reads the packaged ``providers.yaml``

    Returns:
        Tuple of ProviderPolicy in table order

    Raises:
        ConfigurationError: If the table is unreadable or an entry is invalid
    """
    if path is None:
        source = f"package:{PACKAGED_PROVIDER_TABLE}"
        text = (
            resources.files("LinkAttach.FormatResolution.config")
            .joinpath(PACKAGED_PROVIDER_TABLE)
            .read_text(encoding="utf-8")
        )
        data = _parse_text(text, ".yaml", source)
    else:
        source = path
        data = _read_file(path)

    entries = data.get("providers") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ConfigurationError(f"Provider table {source} must define a 'providers' list")

    return policies_from_config(entries, source=source)


def policies_from_config(
    entries: List[Any], *, source: str = "inline"
) -> Tuple[ProviderPolicy, ...]:
    """Validate raw or model provider entries and convert them to policies."""
    policies: List[ProviderPolicy] = []
    seen: set[str] = set()
    for index, raw in enumerate(entries):
        try:
            entry = (
                raw
                if isinstance(raw, ProviderPolicyConfig)
                else ProviderPolicyConfig.model_validate(raw)
            )
        except (ValidationError, ValueError) as e:
            raise ConfigurationError(f"Invalid provider #{index} in {source}: {e}") from e
        if entry.name in seen:
            raise ConfigurationError(f"Duplicate provider {entry.name!r} in {source}")
        seen.add(entry.name)
        policies.append(_to_policy(entry))

    _LOGGER.debug(f"Loaded {len(policies)} provider policies from {source}")
    return tuple(policies)


def resolve_provider_policies(
    config: LinkAttachConfig,
) -> Tuple[Tuple[ProviderPolicy, ...], ProviderPolicy]:
    """Return ``(ordered policies, default policy)`` for ``config``."""
    providers = config.providers
    if providers.categories is not None:
        policies = policies_from_config(list(providers.categories), source="config")
    else:
        policies = load_provider_table(providers.table_path)
    return policies, _to_policy(providers.default)


def validate_config_file(path: str) -> bool:
    """
    Validate a config file, including the provider table it points at.

    Useful for `validate-config` CLI command.

    Raises:
        ConfigurationError: If invalid
    """
    try:
        config = load_config(path=path)
        resolve_provider_policies(config)
        return True
    except ConfigurationError as e:
        _LOGGER.error(f"Config validation failed: {e}")
        raise


def export_config_schema() -> dict[str, Any]:
    """
    Export JSON Schema for LinkAttachConfig.

    Returns:
        JSON schema dict (Pydantic v2 format)
    """
    return LinkAttachConfig.model_json_schema()


__all__ = (
    "DEFAULT_ENV_PREFIX",
    "load_config",
    "load_provider_table",
    "policies_from_config",
    "resolve_provider_policies",
    "validate_config_file",
    "export_config_schema",
)
