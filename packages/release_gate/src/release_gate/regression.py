"""Regression gate — compares the current trend window against the previous one.

Decisions:

- SKIPPED_NO_BASELINE: the previous window is empty. Nothing is compared.
- PASS: every check ran and none found a regression.
- WARN / FAIL: at least one regression. The list of failures is the same in
  both modes; warn mode only relabels the decision and never blocks.

All checks run; a failing check never short-circuits the others. Pipelines
are only compared when both windows hold at least ``min_pipeline_samples``
attempts for them. Pipelines that miss that bar are counted as skipped and
can never produce a failure.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from release_gate.models import RegressionCounters, RegressionGateResult, decision_for
from release_gate.settings import parse_mode
from telemetry_core.types import GateDecision, GateMode

if TYPE_CHECKING:
    from release_gate.models import ThresholdSet
    from telemetry_core.models import TrendSnapshot

logger = logging.getLogger("release_gate.regression")


class RegressionGate:
    """Evaluates a trend snapshot against one resolved threshold set."""

    def __init__(self, thresholds: ThresholdSet) -> None:
        self._thresholds = thresholds

    @property
    def thresholds(self) -> ThresholdSet:
        return self._thresholds

    def evaluate(
        self, snapshot: TrendSnapshot, mode: GateMode | str = GateMode.BLOCK
    ) -> RegressionGateResult:
        gate_mode = parse_mode(mode)

        if not snapshot.has_baseline:
            logger.info("No previous baseline window available; skipping regression checks")
            return RegressionGateResult(
                decision=GateDecision.SKIPPED_NO_BASELINE,
                mode=gate_mode,
                current_events=snapshot.current.window_events,
                previous_events=snapshot.previous.window_events,
                thresholds=self._thresholds,
            )

        failures: list[str] = []
        for check in (self._check_overall_success, self._check_overall_p95, self._check_providers):
            failures.extend(check(snapshot))
        pipeline_failures, counters = self._check_pipelines(snapshot)
        failures.extend(pipeline_failures)

        decision = decision_for(failures, gate_mode)

        logger.info(
            "Regression gate %s: %d failure(s), pipelines evaluated=%d/%d "
            "(no baseline=%d, low samples=%d)",
            decision,
            len(failures),
            counters.evaluated_pipelines,
            counters.candidate_pipelines,
            counters.skipped_no_baseline,
            counters.skipped_low_samples,
        )
        return RegressionGateResult(
            decision=decision,
            mode=gate_mode,
            current_events=snapshot.current.window_events,
            previous_events=snapshot.previous.window_events,
            thresholds=self._thresholds,
            counters=counters,
            failures=failures,
        )

    def _check_overall_success(self, snapshot: TrendSnapshot) -> list[str]:
        drop = -snapshot.delta.success_rate
        limit = self._thresholds.max_success_drop
        if drop > limit:
            return [f"overall success drop {drop:.4f} > {limit:.4f}"]
        return []

    def _check_overall_p95(self, snapshot: TrendSnapshot) -> list[str]:
        increase = snapshot.delta.p95_ms
        limit = self._thresholds.max_p95_increase_ms
        if increase > limit:
            return [f"overall p95 increase {increase:.1f}ms > {limit:.1f}ms"]
        return []

    def _check_providers(self, snapshot: TrendSnapshot) -> list[str]:
        failures: list[str] = []
        for provider, increase in snapshot.delta.provider_fail_rate.items():
            limit = self._thresholds.provider_threshold(provider)
            if increase > limit:
                failures.append(
                    f"provider {provider} fail-rate increase {increase:.4f} > {limit:.4f}"
                )
        return failures

    def _check_pipelines(self, snapshot: TrendSnapshot) -> tuple[list[str], RegressionCounters]:
        current = snapshot.current.pipeline_metrics
        previous = snapshot.previous.pipeline_metrics
        delta = snapshot.delta
        min_samples = self._thresholds.min_pipeline_samples

        candidates = sorted(current.keys() | previous.keys())
        evaluated = skipped_no_baseline = skipped_low_samples = 0
        failures: list[str] = []

        for name in candidates:
            current_attempts = current[name].attempts if name in current else 0
            previous_attempts = previous[name].attempts if name in previous else 0

            if current_attempts <= 0 or previous_attempts <= 0:
                skipped_no_baseline += 1
                continue
            if current_attempts < min_samples or previous_attempts < min_samples:
                skipped_low_samples += 1
                continue

            evaluated += 1
            limits = self._thresholds.pipeline_thresholds(name)
            success_drop = -delta.pipeline_success_rate.get(name, 0.0)
            p95_increase = delta.pipeline_p95_ms.get(name, 0.0)
            failrate_increase = delta.pipeline_fail_rate.get(name, 0.0)

            if success_drop > limits.max_success_drop:
                failures.append(
                    f"pipeline {name} success drop {success_drop:.4f} > "
                    f"{limits.max_success_drop:.4f}"
                )
            if p95_increase > limits.max_p95_increase_ms:
                failures.append(
                    f"pipeline {name} p95 increase {p95_increase:.1f}ms > "
                    f"{limits.max_p95_increase_ms:.1f}ms"
                )
            if failrate_increase > limits.max_failrate_increase:
                failures.append(
                    f"pipeline {name} fail-rate increase {failrate_increase:.4f} > "
                    f"{limits.max_failrate_increase:.4f}"
                )

        counters = RegressionCounters(
            candidate_pipelines=len(candidates),
            evaluated_pipelines=evaluated,
            skipped_no_baseline=skipped_no_baseline,
            skipped_low_samples=skipped_low_samples,
        )
        return failures, counters


def evaluate_regression(
    snapshot: TrendSnapshot,
    thresholds: ThresholdSet,
    mode: GateMode | str = GateMode.BLOCK,
) -> RegressionGateResult:
    """Run the regression gate once. See :class:`RegressionGate`."""
    return RegressionGate(thresholds).evaluate(snapshot, mode)
