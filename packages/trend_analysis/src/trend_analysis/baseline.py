"""Baseline tuner.

Every trend snapshot run appends its current-window summary to a history.
Across consecutive history entries we measure how much health got *worse*
(improvements are clamped to zero) and propose regression thresholds at the
95th percentile of those degradations.

Floors keep a short or unusually clean history from proposing a zero
tolerance: success drop never below 1%, p95 increase never below 5 s,
provider fail-rate increase never below 5%. Per-provider overrides are
floored at the global provider threshold computed from the same history.

Fewer than ``MIN_TRANSITIONS`` transitions is not enough data; the baseline
still carries suggestions but marks itself not ready for tuning.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from whenever import Instant

from telemetry_core.stats import percentile
from trend_analysis.models import Baseline, HistoryEntry, SuggestedThresholds

if TYPE_CHECKING:
    from collections.abc import Sequence

    from telemetry_core.models import TrendSnapshot

MIN_TRANSITIONS = 5
SUGGESTION_PERCENTILE = 95

MIN_SUCCESS_DROP = 0.01
MIN_P95_INCREASE_MS = 5000.0
MIN_PROVIDER_FAILRATE_INCREASE = 0.05


def entry_from_snapshot(snapshot: TrendSnapshot) -> HistoryEntry:
    current = snapshot.current
    return HistoryEntry(
        generated_at=snapshot.generated_at,
        window_size=snapshot.window_size,
        success_rate=current.overall_success_rate,
        p95_ms=current.overall_p95_ms,
        provider_fail_rate=dict(current.provider_fail_rate),
    )


def append_entry(history: Sequence[HistoryEntry], entry: HistoryEntry) -> list[HistoryEntry]:
    """Append ``entry``, replacing any earlier entry with the same ``generated_at``."""
    kept = [item for item in history if item.generated_at != entry.generated_at]
    kept.append(entry)
    return kept


def update_baseline(
    snapshot: TrendSnapshot,
    history: Sequence[HistoryEntry],
    *,
    generated_at: str | None = None,
) -> tuple[list[HistoryEntry], Baseline]:
    """Fold ``snapshot`` into ``history`` and derive the new baseline."""
    entry = entry_from_snapshot(snapshot)
    updated = append_entry(history, entry)
    baseline = derive_baseline(updated, generated_at=generated_at)
    return updated, baseline


def derive_baseline(
    history: Sequence[HistoryEntry],
    *,
    generated_at: str | None = None,
) -> Baseline:
    if not history:
        msg = "cannot derive a baseline from an empty history"
        raise ValueError(msg)

    pairs = list(zip(history, history[1:], strict=False))

    success_drops = [max(0.0, prev.success_rate - curr.success_rate) for prev, curr in pairs]
    p95_increases = [max(0.0, curr.p95_ms - prev.p95_ms) for prev, curr in pairs]

    providers: list[str] = []
    for entry in history:
        for provider in entry.provider_fail_rate:
            if provider not in providers:
                providers.append(provider)

    provider_series: dict[str, list[float]] = {}
    all_provider_increases: list[float] = []
    for provider in providers:
        series = [
            max(
                0.0,
                curr.provider_fail_rate.get(provider, 0.0)
                - prev.provider_fail_rate.get(provider, 0.0),
            )
            for prev, curr in pairs
        ]
        provider_series[provider] = series
        all_provider_increases.extend(series)

    provider_threshold = max(
        MIN_PROVIDER_FAILRATE_INCREASE,
        percentile(all_provider_increases, SUGGESTION_PERCENTILE),
    )
    suggested = SuggestedThresholds(
        success_drop=max(MIN_SUCCESS_DROP, percentile(success_drops, SUGGESTION_PERCENTILE)),
        p95_increase_ms=max(
            MIN_P95_INCREASE_MS, percentile(p95_increases, SUGGESTION_PERCENTILE)
        ),
        provider_failrate_increase=provider_threshold,
        provider_overrides={
            provider: max(provider_threshold, percentile(series, SUGGESTION_PERCENTILE))
            for provider, series in provider_series.items()
        },
    )

    return Baseline(
        generated_at=generated_at or Instant.now().format_iso(),
        sample_count=len(history),
        transition_count=len(pairs),
        ready_for_tuning=len(pairs) >= MIN_TRANSITIONS,
        current=history[-1],
        suggested_thresholds=suggested,
    )
