"""Trend snapshot builder.

The current window is the last ``window_size`` events; the previous window is
the ``window_size`` events right before it. Windows are event-count based,
never calendar aligned, and never overlap. When the log is shorter than two
windows the previous window is partial or empty; an empty previous window is
the "no baseline" state that gates must treat separately.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError
from whenever import Instant

from telemetry_core.errors import OutputWriteError, TrendSnapshotError
from telemetry_core.models import TrendDelta, TrendSnapshot
from trend_analysis.summary import summarize_window

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from telemetry_core.models import EventRecord, PipelineMetrics, WindowSummary

logger = logging.getLogger("trend_analysis.snapshot")

DEFAULT_WINDOW_SIZE = 300


def build_trend_snapshot(
    events: Sequence[EventRecord],
    window_size: int = DEFAULT_WINDOW_SIZE,
    *,
    source_file: str | None = None,
    generated_at: str | None = None,
) -> TrendSnapshot:
    """Split ``events`` into current/previous windows and diff them."""
    if window_size < 1:
        msg = f"window_size must be a positive integer (got {window_size})"
        raise ValueError(msg)

    current_events = events[-window_size:]
    previous_events = events[-2 * window_size : -window_size]

    current = summarize_window(current_events)
    previous = summarize_window(previous_events)

    snapshot = TrendSnapshot(
        generated_at=generated_at or Instant.now().format_iso(),
        source_file=source_file,
        window_size=window_size,
        current=current,
        previous=previous,
        delta=compute_delta(current, previous),
    )
    logger.info(
        "Built trend snapshot: current=%d event(s), previous=%d event(s), window=%d",
        current.window_events,
        previous.window_events,
        window_size,
    )
    return snapshot


def compute_delta(current: WindowSummary, previous: WindowSummary) -> TrendDelta:
    """Per-dimension signed differences over the union of keys in both windows."""
    return TrendDelta(
        success_rate=current.overall_success_rate - previous.overall_success_rate,
        p95_ms=current.overall_p95_ms - previous.overall_p95_ms,
        provider_fail_rate=_diff(current.provider_fail_rate, previous.provider_fail_rate),
        pipeline_success_rate=_diff_pipelines(
            current.pipeline_metrics, previous.pipeline_metrics, "success_rate"
        ),
        pipeline_p95_ms=_diff_pipelines(
            current.pipeline_metrics, previous.pipeline_metrics, "p95_ms"
        ),
        pipeline_fail_rate=_diff_pipelines(
            current.pipeline_metrics, previous.pipeline_metrics, "fail_rate"
        ),
    )


def _diff(current: Mapping[str, float], previous: Mapping[str, float]) -> dict[str, float]:
    # A key missing on one side counts as zero for the subtraction only.
    return {
        key: current.get(key, 0.0) - previous.get(key, 0.0)
        for key in sorted(current.keys() | previous.keys())
    }


def _diff_pipelines(
    current: Mapping[str, PipelineMetrics],
    previous: Mapping[str, PipelineMetrics],
    attribute: str,
) -> dict[str, float]:
    return _diff(
        {name: getattr(row, attribute) for name, row in current.items()},
        {name: getattr(row, attribute) for name, row in previous.items()},
    )


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def write_trend_snapshot(snapshot: TrendSnapshot, path: str | Path) -> Path:
    """Write ``snapshot`` as JSON, creating parent directories.

    Raises:
        OutputWriteError: The target cannot be created or written.
    """
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(snapshot.model_dump_json(indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        raise OutputWriteError(str(target), str(exc)) from exc
    logger.info("Wrote trend snapshot to %s", target)
    return target


def load_trend_snapshot(path: str | Path) -> TrendSnapshot:
    """Load a snapshot written by :func:`write_trend_snapshot`.

    Raises:
        TrendSnapshotError: The file is missing, unreadable, or not a snapshot.
    """
    source = Path(path)
    try:
        raw = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise TrendSnapshotError(str(source), str(exc)) from exc

    try:
        return TrendSnapshot.model_validate_json(raw)
    except ValidationError as exc:
        raise TrendSnapshotError(str(source), f"{exc.error_count()} validation error(s)") from exc
