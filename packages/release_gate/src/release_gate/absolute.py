"""Absolute threshold gate — judges one window against fixed floors.

There is no previous window here. An empty window (no success/error events
at all) fails closed: the decision is FAIL and the exit status is non-zero in
warn mode too, since this gate runs where telemetry must exist.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from release_gate.models import AbsoluteCounters, AbsoluteGateResult, decision_for
from release_gate.settings import parse_mode
from telemetry_core.types import GateDecision, GateMode

if TYPE_CHECKING:
    from release_gate.models import AbsoluteThresholds
    from telemetry_core.models import WindowSummary

logger = logging.getLogger("release_gate.absolute")

NO_ATTEMPTS_FAILURE = "no success/error telemetry events found"
NO_PROVIDER_EVENTS_FAILURE = "no provider metadata events found"


class AbsoluteThresholdGate:
    """Evaluates a window summary against minimum/maximum floors."""

    def __init__(self, thresholds: AbsoluteThresholds) -> None:
        self._thresholds = thresholds

    def evaluate(
        self, summary: WindowSummary, mode: GateMode | str = GateMode.BLOCK
    ) -> AbsoluteGateResult:
        gate_mode = parse_mode(mode)
        t = self._thresholds
        failures: list[str] = []
        providers_evaluated = 0

        if summary.attempts == 0:
            failures.append(NO_ATTEMPTS_FAILURE)
        else:
            if summary.overall_success_rate < t.min_overall_success_rate:
                failures.append(
                    f"overall success rate {summary.overall_success_rate:.4f} < "
                    f"{t.min_overall_success_rate:.4f}"
                )
            if summary.overall_p95_ms > t.max_p95_ms:
                failures.append(
                    f"p95 duration {summary.overall_p95_ms:.1f}ms > {t.max_p95_ms:.1f}ms"
                )

            if t.require_provider_events and not summary.provider_attempts:
                failures.append(NO_PROVIDER_EVENTS_FAILURE)

            for provider, attempts in summary.provider_attempts.items():
                if attempts == 0:
                    continue
                providers_evaluated += 1
                success_rate = 1.0 - summary.provider_fail_rate.get(provider, 0.0)
                if success_rate < t.min_provider_success_rate:
                    failures.append(
                        f"provider {provider} success rate {success_rate:.4f} < "
                        f"{t.min_provider_success_rate:.4f}"
                    )

        fail_closed = summary.attempts == 0
        decision = GateDecision.FAIL if fail_closed else decision_for(failures, gate_mode)

        logger.info("Absolute gate %s: %d failure(s)", decision, len(failures))
        return AbsoluteGateResult(
            decision=decision,
            mode=gate_mode,
            current_events=summary.window_events,
            thresholds=t,
            counters=AbsoluteCounters(
                attempts=summary.attempts,
                providers_seen=len(summary.provider_attempts),
                providers_evaluated=providers_evaluated,
            ),
            overall_success_rate=summary.overall_success_rate,
            overall_p95_ms=summary.overall_p95_ms,
            failures=failures,
            fail_closed=fail_closed,
        )


def evaluate_absolute(
    summary: WindowSummary,
    thresholds: AbsoluteThresholds,
    mode: GateMode | str = GateMode.BLOCK,
) -> AbsoluteGateResult:
    return AbsoluteThresholdGate(thresholds).evaluate(summary, mode)
