"""Telemetry data models — event records, window summaries, trend snapshots."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from telemetry_core.parsing import to_number, to_string
from telemetry_core.types import FRONTEND_PIPELINE_PREFIX, EventStatus, MetadataValue

# ---------------------------------------------------------------------------
# Event records
# ---------------------------------------------------------------------------


class EventRecord(BaseModel):
    """One line of the append-only pipeline event log.

    Only ``status`` is mandatory. Every other field degrades to an empty
    value when it has the wrong shape, so one bad field never costs the
    whole record.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str | None = None
    timestamp: str | None = None
    pipeline: str | None = None
    status: str
    duration_ms: float | None = Field(default=None, alias="durationMs")
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)
    error: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _require_status(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            msg = "status must be a non-empty string"
            raise ValueError(msg)
        return value

    @field_validator("id", "timestamp", "pipeline", "error", mode="before")
    @classmethod
    def _optional_string(cls, value: Any) -> str | None:
        return to_string(value)

    @field_validator("duration_ms", mode="before")
    @classmethod
    def _optional_duration(cls, value: Any) -> float | None:
        number = to_number(value)
        if number is None or number < 0:
            return None
        return number

    @field_validator("metadata", mode="before")
    @classmethod
    def _scalar_metadata(cls, value: Any) -> dict[str, MetadataValue]:
        if not isinstance(value, dict):
            return {}
        return {
            str(key): item
            for key, item in value.items()
            if item is None or isinstance(item, str | int | float | bool)
        }

    @property
    def is_success(self) -> bool:
        return self.status == EventStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status == EventStatus.ERROR

    @property
    def is_attempt(self) -> bool:
        return self.is_success or self.is_error

    @property
    def provider(self) -> str | None:
        return to_string(self.metadata.get("provider"))

    def meta_str(self, key: str) -> str | None:
        return to_string(self.metadata.get(key))


# ---------------------------------------------------------------------------
# Window summaries
# ---------------------------------------------------------------------------


class PipelineMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    attempts: int
    success_rate: float
    fail_rate: float
    p95_ms: float


class WindowSummary(BaseModel):
    """Health metrics for one contiguous slice of the event log.

    A provider or pipeline that never appears in the window has no entry;
    absence is not the same thing as zero attempts.
    """

    model_config = ConfigDict(frozen=True)

    window_events: int = 0
    attempts: int = 0
    overall_success_rate: float = 0.0
    overall_p95_ms: float = 0.0
    provider_fail_rate: dict[str, float] = Field(default_factory=dict)
    provider_attempts: dict[str, int] = Field(default_factory=dict)
    pipeline_metrics: dict[str, PipelineMetrics] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Trend snapshots
# ---------------------------------------------------------------------------


class TrendDelta(BaseModel):
    """Signed differences, current minus previous."""

    success_rate: float = 0.0
    p95_ms: float = 0.0
    provider_fail_rate: dict[str, float] = Field(default_factory=dict)
    pipeline_success_rate: dict[str, float] = Field(default_factory=dict)
    pipeline_p95_ms: dict[str, float] = Field(default_factory=dict)
    pipeline_fail_rate: dict[str, float] = Field(default_factory=dict)


class TrendSnapshot(BaseModel):
    generated_at: str
    source_file: str | None = None
    window_size: int
    current: WindowSummary
    previous: WindowSummary
    delta: TrendDelta

    @property
    def has_baseline(self) -> bool:
        """False when the previous window is empty (the "no baseline" state)."""
        return self.previous.window_events > 0


def is_frontend_pipeline(name: str) -> bool:
    return name.startswith(FRONTEND_PIPELINE_PREFIX)
