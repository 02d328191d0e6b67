# === NAVMAP v1 ===
# {
#   "module": "tests.conftest",
#   "purpose": "Shared pytest fixtures for suite",
#   "sections": [
#     {
#       "id": "isolate-environment",
#       "name": "_isolate_environment",
#       "anchor": "function-isolate-environment",
#       "kind": "function"
#     },
#     {
#       "id": "default-config",
#       "name": "default_config",
#       "anchor": "function-default-config",
#       "kind": "function"
#     },
#     {
#       "id": "concurrent-config",
#       "name": "concurrent_config",
#       "anchor": "function-concurrent-config",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Pytest Configuration

Shared fixtures for the LinkAttach suite. Every test runs with all
``LINKATTACH_*`` environment variables removed so configuration loading is
hermetic, and async code is driven with ``asyncio.run`` from synchronous
tests.
"""

from __future__ import annotations

import os
from typing import Iterator

import pytest

from LinkAttach.FormatResolution.config import LinkAttachConfig

# Import HTTP mocking fixtures to make them globally available
from tests.fixtures.http_mocking import (  # noqa: F401
    mock_transport,
    scripted_fetcher,
)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Strip LINKATTACH_* variables inherited from the developer shell."""
    for key in list(os.environ):
        if key.startswith("LINKATTACH_"):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def default_config() -> LinkAttachConfig:
    """Default configuration (strategy mode, 25 MiB ceiling)."""
    return LinkAttachConfig()


@pytest.fixture
def concurrent_config() -> LinkAttachConfig:
    """Default configuration switched to concurrent probing."""
    return LinkAttachConfig.model_validate({"detection": {"mode": "concurrent"}})
