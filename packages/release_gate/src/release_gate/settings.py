"""Gate configuration.

``GateSettings`` holds the run-level options (profile, mode, window size,
file locations) and is read from ``TELEMETRY_*`` environment variables.

Threshold overrides are environment-style key/value pairs. They map onto the
``*Overrides`` models below; a value that does not parse is dropped so the
profile default stands, it never fails resolution.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, Any, ClassVar, Self

from pydantic import BaseModel, BeforeValidator, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from release_gate.profiles import parse_profile
from telemetry_core.parsing import parse_bool, parse_non_negative, parse_positive
from telemetry_core.types import GateMode, GateProfile
from trend_analysis.snapshot import DEFAULT_WINDOW_SIZE


def parse_mode(value: str | GateMode | None) -> GateMode:
    """Only an explicit ``warn`` selects warn mode; anything else blocks."""
    if isinstance(value, str) and value.strip().lower() == GateMode.WARN:
        return GateMode.WARN
    return GateMode.BLOCK


class GateSettings(BaseSettings):
    """Run-level configuration for the gate CLI."""

    model_config = SettingsConfigDict(env_prefix="TELEMETRY_", extra="ignore")

    profile: GateProfile = Field(default=GateProfile.CI, description="ci, nightly or release")
    mode: GateMode = Field(default=GateMode.BLOCK, description="warn or block")
    window_size: int = Field(
        default=DEFAULT_WINDOW_SIZE, description="Events per trend window"
    )

    events_file: Path = Field(default=Path("logs/pipeline-events.jsonl"))
    trends_file: Path = Field(default=Path("logs/telemetry-trends.json"))
    history_file: Path = Field(default=Path("logs/telemetry-trends-history.jsonl"))
    baseline_file: Path = Field(default=Path("logs/telemetry-baseline.json"))

    log_level: str = Field(default="INFO", description="Python logging level name")

    @field_validator("profile", mode="before")
    @classmethod
    def _profile(cls, value: Any) -> GateProfile:
        return parse_profile(value)

    @field_validator("mode", mode="before")
    @classmethod
    def _mode(cls, value: Any) -> GateMode:
        return parse_mode(value)

    @field_validator("window_size", mode="before")
    @classmethod
    def _window_size(cls, value: Any) -> int:
        number = parse_positive(value)
        if number is None or number != int(number):
            return DEFAULT_WINDOW_SIZE
        return int(number)


# ---------------------------------------------------------------------------
# Threshold overrides
# ---------------------------------------------------------------------------


def _half_up(number: float) -> int:
    return math.floor(number + 0.5)


def _count(value: Any) -> int | None:
    number = parse_non_negative(value)
    return None if number is None else _half_up(number)


def _positive_count(value: Any) -> int | None:
    number = parse_positive(value)
    return None if number is None else max(1, _half_up(number))


def _raw_json(value: Any) -> str | None:
    return value if isinstance(value, str) and value.strip() else None


NonNegative = Annotated[float | None, BeforeValidator(parse_non_negative)]
Positive = Annotated[float | None, BeforeValidator(parse_positive)]
Count = Annotated[int | None, BeforeValidator(_count)]
PositiveCount = Annotated[int | None, BeforeValidator(_positive_count)]
Flag = Annotated[bool | None, BeforeValidator(parse_bool)]
RawJson = Annotated[str | None, BeforeValidator(_raw_json)]


class _Overrides(BaseModel):
    """Base for override sets populated from environment-style mappings."""

    ENV_VARS: ClassVar[dict[str, str]] = {}

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> Self:
        values = {field: environ[name] for name, field in cls.ENV_VARS.items() if name in environ}
        return cls.model_validate(values)


class RegressionOverrides(_Overrides):
    ENV_VARS: ClassVar[dict[str, str]] = {
        "TELEMETRY_REGRESSION_MAX_SUCCESS_DROP": "max_success_drop",
        "TELEMETRY_REGRESSION_MAX_P95_INCREASE_MS": "max_p95_increase_ms",
        "TELEMETRY_REGRESSION_MAX_PROVIDER_FAILRATE_INCREASE": "max_provider_failrate_increase",
        "TELEMETRY_REGRESSION_MAX_PIPELINE_SUCCESS_DROP": "max_pipeline_success_drop",
        "TELEMETRY_REGRESSION_MAX_PIPELINE_P95_INCREASE_MS": "max_pipeline_p95_increase_ms",
        "TELEMETRY_REGRESSION_MAX_PIPELINE_FAILRATE_INCREASE": "max_pipeline_failrate_increase",
        "TELEMETRY_REGRESSION_MAX_FRONTEND_SUCCESS_DROP": "max_frontend_success_drop",
        "TELEMETRY_REGRESSION_MAX_FRONTEND_P95_INCREASE_MS": "max_frontend_p95_increase_ms",
        "TELEMETRY_REGRESSION_MAX_FRONTEND_FAILRATE_INCREASE": "max_frontend_failrate_increase",
        "TELEMETRY_REGRESSION_PIPELINE_MIN_SAMPLES": "min_pipeline_samples",
        "TELEMETRY_REGRESSION_PROVIDER_THRESHOLDS_JSON": "provider_thresholds_json",
    }

    max_success_drop: NonNegative = None
    max_p95_increase_ms: NonNegative = None
    max_provider_failrate_increase: NonNegative = None
    max_pipeline_success_drop: NonNegative = None
    max_pipeline_p95_increase_ms: NonNegative = None
    max_pipeline_failrate_increase: NonNegative = None
    max_frontend_success_drop: NonNegative = None
    max_frontend_p95_increase_ms: NonNegative = None
    max_frontend_failrate_increase: NonNegative = None
    min_pipeline_samples: Count = None
    provider_thresholds_json: RawJson = None


class AbsoluteOverrides(_Overrides):
    ENV_VARS: ClassVar[dict[str, str]] = {
        "TELEMETRY_GATE_MIN_OVERALL_SUCCESS_RATE": "min_overall_success_rate",
        "TELEMETRY_GATE_MIN_PROVIDER_SUCCESS_RATE": "min_provider_success_rate",
        "TELEMETRY_GATE_MAX_P95_MS": "max_p95_ms",
        "TELEMETRY_GATE_REQUIRE_PROVIDER_EVENTS": "require_provider_events",
    }

    min_overall_success_rate: Positive = None
    min_provider_success_rate: Positive = None
    max_p95_ms: Positive = None
    require_provider_events: Flag = None


class FrontendPerfOverrides(_Overrides):
    ENV_VARS: ClassVar[dict[str, str]] = {
        "TELEMETRY_FRONTEND_TAB_SWITCH_P95_MS": "max_tab_switch_p95_ms",
        "TELEMETRY_FRONTEND_PAGE_RENDER_P95_MS": "max_page_render_p95_ms",
        "TELEMETRY_FRONTEND_TAB_SWITCH_MIN_SAMPLES": "min_tab_switch_samples",
        "TELEMETRY_FRONTEND_PAGE_RENDER_MIN_SAMPLES": "min_page_render_samples",
        "TELEMETRY_FRONTEND_REQUIRE_EVENTS": "require_frontend_events",
    }

    max_tab_switch_p95_ms: Positive = None
    max_page_render_p95_ms: Positive = None
    min_tab_switch_samples: PositiveCount = None
    min_page_render_samples: PositiveCount = None
    require_frontend_events: Flag = None
