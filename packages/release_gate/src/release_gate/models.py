"""Gate models — profile defaults, resolved thresholds, gate results."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from telemetry_core.models import is_frontend_pipeline
from telemetry_core.types import GateDecision, GateMode, GateProfile

# ---------------------------------------------------------------------------
# Profile defaults
# ---------------------------------------------------------------------------


class RegressionDefaults(BaseModel):
    """Regression tolerances for one profile.

    Pipeline and frontend values left as None inherit from the global value
    of the same kind when thresholds are resolved.
    """

    model_config = ConfigDict(frozen=True)

    max_success_drop: float
    max_p95_increase_ms: float
    max_provider_failrate_increase: float
    min_pipeline_samples: int
    max_pipeline_success_drop: float | None = None
    max_pipeline_p95_increase_ms: float | None = None
    max_pipeline_failrate_increase: float | None = None
    max_frontend_success_drop: float | None = None
    max_frontend_p95_increase_ms: float | None = None
    max_frontend_failrate_increase: float | None = None


class AbsoluteThresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_overall_success_rate: float
    min_provider_success_rate: float
    max_p95_ms: float
    require_provider_events: bool


class FrontendPerfThresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_tab_switch_p95_ms: float
    max_page_render_p95_ms: float
    min_tab_switch_samples: int
    min_page_render_samples: int
    require_frontend_events: bool


class ProfileDefaults(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: GateProfile
    description: str
    regression: RegressionDefaults
    absolute: AbsoluteThresholds
    frontend_perf: FrontendPerfThresholds


# ---------------------------------------------------------------------------
# Resolved regression thresholds
# ---------------------------------------------------------------------------


class PipelineThresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    scope: Literal["pipeline", "frontend"]
    max_success_drop: float
    max_p95_increase_ms: float
    max_failrate_increase: float


class ThresholdSet(BaseModel):
    """Effective regression thresholds for one gate evaluation. Never mutated."""

    model_config = ConfigDict(frozen=True)

    profile: GateProfile
    max_success_drop: float
    max_p95_increase_ms: float
    max_provider_failrate_increase: float
    max_pipeline_success_drop: float
    max_pipeline_p95_increase_ms: float
    max_pipeline_failrate_increase: float
    max_frontend_success_drop: float
    max_frontend_p95_increase_ms: float
    max_frontend_failrate_increase: float
    min_pipeline_samples: int
    provider_overrides: dict[str, float] = Field(default_factory=dict)

    def provider_threshold(self, provider: str) -> float:
        return self.provider_overrides.get(provider, self.max_provider_failrate_increase)

    def pipeline_thresholds(self, pipeline: str) -> PipelineThresholds:
        if is_frontend_pipeline(pipeline):
            return PipelineThresholds(
                scope="frontend",
                max_success_drop=self.max_frontend_success_drop,
                max_p95_increase_ms=self.max_frontend_p95_increase_ms,
                max_failrate_increase=self.max_frontend_failrate_increase,
            )
        return PipelineThresholds(
            scope="pipeline",
            max_success_drop=self.max_pipeline_success_drop,
            max_p95_increase_ms=self.max_pipeline_p95_increase_ms,
            max_failrate_increase=self.max_pipeline_failrate_increase,
        )


# ---------------------------------------------------------------------------
# Gate results
# ---------------------------------------------------------------------------


class GateResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    decision: GateDecision
    mode: GateMode
    failures: list[str] = Field(default_factory=list)
    fail_closed: bool = False

    @property
    def exit_code(self) -> int:
        """Process exit status: non-zero for FAIL in block mode.

        A fail-closed result exits non-zero in warn mode too.
        """
        if self.decision != GateDecision.FAIL:
            return 0
        return 1 if self.mode == GateMode.BLOCK or self.fail_closed else 0


class RegressionCounters(BaseModel):
    """Pipeline coverage, so "nothing regressed" and "nothing checked" differ."""

    model_config = ConfigDict(frozen=True)

    candidate_pipelines: int = 0
    evaluated_pipelines: int = 0
    skipped_no_baseline: int = 0
    skipped_low_samples: int = 0


class RegressionGateResult(GateResult):
    gate: Literal["regression"] = "regression"
    current_events: int
    previous_events: int
    thresholds: ThresholdSet
    counters: RegressionCounters = RegressionCounters()


class AbsoluteCounters(BaseModel):
    model_config = ConfigDict(frozen=True)

    attempts: int = 0
    providers_seen: int = 0
    providers_evaluated: int = 0


class AbsoluteGateResult(GateResult):
    gate: Literal["absolute"] = "absolute"
    current_events: int
    previous_events: int = 0
    thresholds: AbsoluteThresholds
    counters: AbsoluteCounters = AbsoluteCounters()
    overall_success_rate: float = 0.0
    overall_p95_ms: float = 0.0


class FrontendSample(BaseModel):
    model_config = ConfigDict(frozen=True)

    pipeline: str
    samples: int
    p95_ms: float


class FrontendPerfResult(GateResult):
    gate: Literal["frontend_perf"] = "frontend_perf"
    thresholds: FrontendPerfThresholds
    tab_switch: FrontendSample
    page_render: FrontendSample
    notes: list[str] = Field(default_factory=list)


def decision_for(failures: list[str], mode: GateMode) -> GateDecision:
    """PASS when nothing failed; otherwise WARN or FAIL depending on mode."""
    if not failures:
        return GateDecision.PASS
    return GateDecision.WARN if mode == GateMode.WARN else GateDecision.FAIL
