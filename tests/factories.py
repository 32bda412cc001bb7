"""Builders for event records and snapshots used across the test suite."""

from __future__ import annotations

import json

from telemetry_core.models import EventRecord, PipelineMetrics, TrendSnapshot, WindowSummary
from trend_analysis.snapshot import compute_delta

FIXED_TIMESTAMP = "2026-01-01T00:00:00Z"


def make_event(
    status: str = "success",
    *,
    pipeline: str | None = "pipeline.run",
    duration_ms: float | None = 100.0,
    provider: str | None = None,
    **metadata: object,
) -> EventRecord:
    if provider is not None:
        metadata["provider"] = provider
    return EventRecord(
        status=status,
        pipeline=pipeline,
        duration_ms=duration_ms,
        metadata=metadata,
    )


def event_line(**fields: object) -> str:
    return json.dumps(fields)


def events_jsonl(events: list[EventRecord]) -> str:
    return "".join(
        event.model_dump_json(by_alias=True, exclude_none=True) + "\n" for event in events
    )


def successes(count: int, **kwargs: object) -> list[EventRecord]:
    return [make_event("success", **kwargs) for _ in range(count)]


def errors(count: int, **kwargs: object) -> list[EventRecord]:
    return [make_event("error", **kwargs) for _ in range(count)]


def pipeline_metrics(
    attempts: int, success_rate: float = 1.0, p95_ms: float = 100.0
) -> PipelineMetrics:
    return PipelineMetrics(
        attempts=attempts,
        success_rate=success_rate,
        fail_rate=1.0 - success_rate,
        p95_ms=p95_ms,
    )


def make_summary(
    *,
    window_events: int = 10,
    success_rate: float = 1.0,
    p95_ms: float = 100.0,
    provider_fail_rate: dict[str, float] | None = None,
    pipelines: dict[str, PipelineMetrics] | None = None,
) -> WindowSummary:
    providers = provider_fail_rate or {}
    return WindowSummary(
        window_events=window_events,
        attempts=window_events,
        overall_success_rate=success_rate,
        overall_p95_ms=p95_ms,
        provider_fail_rate=providers,
        provider_attempts={name: window_events for name in providers},
        pipeline_metrics=pipelines or {},
    )


def make_snapshot(
    current: WindowSummary, previous: WindowSummary, *, window_size: int = 10
) -> TrendSnapshot:
    return TrendSnapshot(
        generated_at=FIXED_TIMESTAMP,
        window_size=window_size,
        current=current,
        previous=previous,
        delta=compute_delta(current, previous),
    )
