"""Provider-aware probe ordering.

Maps a hostname to the :class:`ProviderPolicy` that decides which probe
runs first and how much a primary success is trusted. Rules are kept as an
ordered list; the first policy whose suffix set matches wins.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Tuple

from LinkAttach.FormatResolution.classifications import DetectionMethod
from LinkAttach.FormatResolution.types import ProviderPolicy

LOGGER = logging.getLogger(__name__)

DEFAULT_POLICY = ProviderPolicy(
    name="default",
    match_domains=frozenset(),
    primary_method=DetectionMethod.CONTENT_TYPE,
    fallback_method=DetectionMethod.URL_EXTENSION,
    category_confidence=0.8,
)


class StrategySelector:
    """Ordered ``hostname -> ProviderPolicy`` rule table.

    Example:
        ```python
        selector = StrategySelector(load_provider_table())
        selector.select("raw.githubusercontent.com").name  # "code_hosting"
        selector.select("example.org").name                # "default"
        ```
    """

    def __init__(
        self,
        policies: Iterable[ProviderPolicy] = (),
        default: Optional[ProviderPolicy] = None,
    ) -> None:
        self.policies: Tuple[ProviderPolicy, ...] = tuple(policies)
        self.default = default or DEFAULT_POLICY

    def select(self, hostname: str) -> ProviderPolicy:
        for policy in self.policies:
            if policy.matches(hostname):
                return policy
        return self.default

    def describe(self) -> list[dict[str, object]]:
        """Return the rule table in evaluation order, default last."""

        rows = []
        for policy in (*self.policies, self.default):
            rows.append(
                {
                    "name": policy.name,
                    "primary": policy.primary_method.value,
                    "fallback": policy.fallback_method.value,
                    "confidence": policy.category_confidence,
                    "domains": sorted(policy.match_domains),
                }
            )
        return rows

    def __len__(self) -> int:
        return len(self.policies)


__all__ = ("DEFAULT_POLICY", "StrategySelector")
