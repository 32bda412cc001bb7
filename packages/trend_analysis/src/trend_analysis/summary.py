"""Window summarizer — reduces a slice of events to one metrics snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from telemetry_core.models import PipelineMetrics, WindowSummary
from telemetry_core.stats import percentile, ratio

if TYPE_CHECKING:
    from collections.abc import Sequence

    from telemetry_core.models import EventRecord

LATENCY_PERCENTILE = 95


@dataclass
class _Counter:
    success: int = 0
    error: int = 0
    durations: list[float] = field(default_factory=list)

    @property
    def attempts(self) -> int:
        return self.success + self.error

    def add(self, event: EventRecord) -> None:
        if event.is_success:
            self.success += 1
            if event.duration_ms is not None:
                self.durations.append(event.duration_ms)
        elif event.is_error:
            self.error += 1


def summarize_window(events: Sequence[EventRecord]) -> WindowSummary:
    """Summarize a window of events. Pure and total; empty input gives zeros."""
    overall = _Counter()
    providers: dict[str, _Counter] = {}
    pipelines: dict[str, _Counter] = {}

    for event in events:
        overall.add(event)
        provider = event.provider
        if provider is not None:
            providers.setdefault(provider, _Counter()).add(event)
        if event.pipeline is not None:
            pipelines.setdefault(event.pipeline, _Counter()).add(event)

    return WindowSummary(
        window_events=len(events),
        attempts=overall.attempts,
        overall_success_rate=ratio(overall.success, overall.attempts),
        overall_p95_ms=percentile(overall.durations, LATENCY_PERCENTILE),
        provider_fail_rate={
            name: ratio(row.error, row.attempts) for name, row in providers.items()
        },
        provider_attempts={name: row.attempts for name, row in providers.items()},
        pipeline_metrics={
            name: PipelineMetrics(
                attempts=row.attempts,
                success_rate=ratio(row.success, row.attempts),
                fail_rate=ratio(row.error, row.attempts),
                p95_ms=percentile(row.durations, LATENCY_PERCENTILE),
            )
            for name, row in pipelines.items()
        },
    )
