"""Baseline tuner data models — history entries, suggested thresholds, baseline."""

from __future__ import annotations

import json

from pydantic import BaseModel, Field


class HistoryEntry(BaseModel):
    """Current-window summary of one trend snapshot run, as kept in history."""

    generated_at: str
    window_size: int = 0
    success_rate: float = 0.0
    p95_ms: float = 0.0
    provider_fail_rate: dict[str, float] = Field(default_factory=dict)


class SuggestedThresholds(BaseModel):
    success_drop: float
    p95_increase_ms: float
    provider_failrate_increase: float
    provider_overrides: dict[str, float] = Field(default_factory=dict)


class Baseline(BaseModel):
    generated_at: str
    sample_count: int
    transition_count: int
    ready_for_tuning: bool
    current: HistoryEntry
    suggested_thresholds: SuggestedThresholds

    def as_env_overrides(self) -> dict[str, str]:
        """Render suggestions as regression override variables.

        Suggestions from a history that is not ready for tuning are advisory
        only; callers decide whether to apply them.
        """
        s = self.suggested_thresholds
        return {
            "TELEMETRY_REGRESSION_MAX_SUCCESS_DROP": f"{s.success_drop:.4f}",
            "TELEMETRY_REGRESSION_MAX_P95_INCREASE_MS": f"{s.p95_increase_ms:.1f}",
            "TELEMETRY_REGRESSION_MAX_PROVIDER_FAILRATE_INCREASE": (
                f"{s.provider_failrate_increase:.4f}"
            ),
            "TELEMETRY_REGRESSION_PROVIDER_THRESHOLDS_JSON": json.dumps(
                s.provider_overrides, sort_keys=True
            ),
        }
