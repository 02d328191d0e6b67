# === NAVMAP v1 ===
# {
#   "module": "LinkAttach.FormatResolution.orchestrator",
#   "purpose": "Run detection probes for one URL and reconcile them into a decision.",
#   "sections": [
#     {
#       "id": "resolutionorchestrator",
#       "name": "ResolutionOrchestrator",
#       "anchor": "class-resolutionorchestrator",
#       "kind": "class"
#     },
#     {
#       "id": "reconcile",
#       "name": "reconcile",
#       "anchor": "function-reconcile",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Resolution Orchestrator

Turns one :class:`ResourceReference` into exactly one
:class:`ResolutionDecision` by running the detection probes in one of two
modes:

- **concurrent**: all probes run at once; the most confident success wins,
  with a corroboration bonus when at least two probes agree
- **strategy**: the provider policy's primary probe runs first; its
  success is scaled by the category confidence, otherwise the fallback
  probe runs and its success is scaled by the cross-strategy penalty

Probe failures and probe exceptions never escape; when nothing succeeds
the fixed ``.file`` fallback decision is returned. Given identical probe
outcomes the decision is deterministic.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Literal, Mapping, Optional, Sequence, Tuple

from LinkAttach.FormatResolution.classifications import PROBE_ORDER, DetectionMethod, ReasonCode
from LinkAttach.FormatResolution.config.models import ConfidenceConfig
from LinkAttach.FormatResolution.errors import ConfigurationError, log_probe_failure
from LinkAttach.FormatResolution.formats import same_format
from LinkAttach.FormatResolution.probes import Probe
from LinkAttach.FormatResolution.strategy import StrategySelector
from LinkAttach.FormatResolution.types import (
    ProbeResult,
    ProviderPolicy,
    ResolutionDecision,
    ResourceReference,
)

LOGGER = logging.getLogger(__name__)

Mode = Literal["concurrent", "strategy"]
MODES: Tuple[str, ...] = ("concurrent", "strategy")


def reconcile(
    results: Sequence[ProbeResult],
    *,
    corroboration_bonus: float,
    max_confidence: float,
    policy: Optional[str] = None,
) -> ResolutionDecision:
    """Reduce concurrent probe results to one decision.

    The highest confidence wins; ties go to the result that appears first
    in ``results``. When two or more successes name the winner's format
    the bonus is added once, capped at ``max_confidence``.
    """

    evidence = tuple(results)
    winner: Optional[ProbeResult] = None
    for result in evidence:
        if result.succeeded and (winner is None or result.confidence > winner.confidence):
            winner = result
    if winner is None:
        return ResolutionDecision.fallback(policy=policy, evidence=evidence)

    agreeing = sum(
        1 for r in evidence if r.succeeded and same_format(r.extension, winner.extension)
    )
    confidence = winner.confidence
    if agreeing >= 2:
        confidence = min(confidence + corroboration_bonus, max_confidence)

    return ResolutionDecision(
        extension=winner.extension,  # type: ignore[arg-type]
        confidence=confidence,
        method=winner.method,
        succeeded=True,
        policy=policy,
        evidence=evidence,
    )


class ResolutionOrchestrator:
    """
    Runs probes for a single URL and reconciles their results.

    Attributes:
        probes: Mapping of DetectionMethod → probe; all three are required
        selector: StrategySelector used to pick a ProviderPolicy
        mode: "concurrent" or "strategy"
        confidence: Reconciliation constants (bonus, cap, penalty)
        telemetry: Optional sink with an ``emit(event)`` method
        logger: Logger instance
    """

    def __init__(
        self,
        probes: Mapping[DetectionMethod, Probe],
        selector: Optional[StrategySelector] = None,
        mode: Mode = "strategy",
        confidence: Optional[ConfidenceConfig] = None,
        telemetry: Optional[Any] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        missing = [m.value for m in PROBE_ORDER if m not in probes]
        if missing:
            raise ConfigurationError(f"Missing probes: {', '.join(missing)}")
        if mode not in MODES:
            raise ConfigurationError(f"Unknown detection mode: {mode!r}")

        self.probes = dict(probes)
        self.selector = selector or StrategySelector()
        self.mode = mode
        self.confidence = confidence or ConfidenceConfig()
        self.telemetry = telemetry
        self.logger = logger or LOGGER

    async def resolve(
        self, reference: ResourceReference, *, log_id: Optional[str] = None
    ) -> ResolutionDecision:
        """Resolve ``reference`` into one decision; never raises for probe faults."""

        policy = self.selector.select(reference.hostname)
        self.logger.debug(
            f"[{log_id or '-'}] Resolving {reference.url} "
            f"(mode={self.mode}, policy={policy.name})"
        )

        if self.mode == "concurrent":
            decision = await self._resolve_concurrent(reference, policy, log_id)
        else:
            decision = await self._resolve_strategy(reference, policy, log_id)

        self.logger.debug(
            f"[{log_id or '-'}] Decision {decision.extension} "
            f"(confidence={decision.confidence:.2f}, "
            f"method={decision.method.value if decision.method else None})"
        )
        return decision

    async def _resolve_concurrent(
        self,
        reference: ResourceReference,
        policy: ProviderPolicy,
        log_id: Optional[str],
    ) -> ResolutionDecision:
        outcomes = await asyncio.gather(
            *(self.probes[method].probe(reference) for method in PROBE_ORDER),
            return_exceptions=True,
        )

        results = []
        for method, outcome in zip(PROBE_ORDER, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                result = self._exception_result(method, outcome, reference, log_id)
            else:
                result = outcome
            self._record(reference, result, policy, log_id)
            results.append(result)

        return reconcile(
            results,
            corroboration_bonus=self.confidence.corroboration_bonus,
            max_confidence=self.confidence.max_confidence,
            policy=policy.name,
        )

    async def _resolve_strategy(
        self,
        reference: ResourceReference,
        policy: ProviderPolicy,
        log_id: Optional[str],
    ) -> ResolutionDecision:
        primary = await self._run_probe(policy.primary_method, reference, policy, log_id)
        if primary.succeeded:
            confidence = primary.confidence * policy.category_confidence
            return self._scaled(primary, confidence, policy, (primary,))

        fallback = await self._run_probe(policy.fallback_method, reference, policy, log_id)
        evidence = (primary, fallback)
        if fallback.succeeded:
            penalty = self.confidence.cross_strategy_penalty
            return self._scaled(fallback, fallback.confidence * penalty, policy, evidence)

        return ResolutionDecision.fallback(policy=policy.name, evidence=evidence)

    async def _run_probe(
        self,
        method: DetectionMethod,
        reference: ResourceReference,
        policy: ProviderPolicy,
        log_id: Optional[str],
    ) -> ProbeResult:
        try:
            result = await self.probes[method].probe(reference)
        except Exception as e:
            result = self._exception_result(method, e, reference, log_id)
        self._record(reference, result, policy, log_id)
        return result

    def _exception_result(
        self,
        method: DetectionMethod,
        error: Exception,
        reference: ResourceReference,
        log_id: Optional[str],
    ) -> ProbeResult:
        self.logger.error(
            f"[{log_id or '-'}] Probe '{method.value}' raised for {reference.url}: {error}"
        )
        return ProbeResult.failure(
            method,
            ReasonCode.PROBE_EXCEPTION,
            meta={"error": "probe_exception", "detail": f"{type(error).__name__}: {error}"},
        )

    @staticmethod
    def _scaled(
        result: ProbeResult,
        confidence: float,
        policy: ProviderPolicy,
        evidence: Tuple[ProbeResult, ...],
    ) -> ResolutionDecision:
        return ResolutionDecision(
            extension=result.extension,  # type: ignore[arg-type]
            confidence=confidence,
            method=result.method,
            succeeded=True,
            policy=policy.name,
            evidence=evidence,
        )

    def _record(
        self,
        reference: ResourceReference,
        result: ProbeResult,
        policy: ProviderPolicy,
        log_id: Optional[str],
    ) -> None:
        if not result.succeeded:
            log_probe_failure(self.logger, reference.url, result, log_id=log_id)
        self._emit_telemetry(reference, result, policy)

    def _emit_telemetry(
        self, reference: ResourceReference, result: ProbeResult, policy: ProviderPolicy
    ) -> None:
        """Emit one probe_attempt event; sink failures are logged and ignored."""
        if not self.telemetry:
            return

        try:
            event = {
                "event_type": "probe_attempt",
                "mode": self.mode,
                "policy": policy.name,
                "url": reference.url,
                "host": reference.hostname,
                "method": result.method.value,
                "succeeded": result.succeeded,
                "extension": result.extension,
                "confidence": result.confidence,
                "reason": result.reason,
                "status": result.status,
                "meta": dict(result.meta),
            }
            self.telemetry.emit(event)
        except Exception as e:
            self.logger.warning(f"Telemetry emission failed: {e}")


__all__ = ["MODES", "ResolutionOrchestrator", "reconcile"]
