"""Threshold policy resolver.

Resolution order for every field, lowest precedence first:

1. profile default (``release_gate.profiles``)
2. environment override (``RegressionOverrides`` and friends)
3. for provider thresholds only, an explicit per-provider override map

Pipeline-scoped thresholds left unset inherit the matching global threshold;
frontend-scoped thresholds left unset inherit the pipeline-scoped value.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TypeVar

from release_gate.models import AbsoluteThresholds, FrontendPerfThresholds, ThresholdSet
from release_gate.profiles import get_profile_defaults, parse_profile
from release_gate.settings import AbsoluteOverrides, FrontendPerfOverrides, RegressionOverrides
from telemetry_core.parsing import parse_or_default, to_number
from telemetry_core.types import GateProfile

logger = logging.getLogger("release_gate.thresholds")

T = TypeVar("T")

ProviderOverrideInput = Mapping[str, object] | str | None


def _first(*values: T | None) -> T:
    for value in values:
        if value is not None:
            return value
    msg = "no value to resolve"
    raise ValueError(msg)


def parse_provider_overrides(raw: ProviderOverrideInput) -> dict[str, float]:
    """Validate a provider → threshold map given as a mapping or JSON text.

    Only non-empty string keys with finite, non-negative numeric values
    survive. Anything that is not a map at all degrades to no overrides.
    """
    decoded = parse_or_default(raw, None) if isinstance(raw, str | bytes) else raw
    if not isinstance(decoded, Mapping):
        if raw is not None:
            logger.warning("Ignoring provider threshold overrides: not a JSON object")
        return {}

    overrides: dict[str, float] = {}
    for provider, value in decoded.items():
        if not isinstance(provider, str) or not provider:
            continue
        number = to_number(value)
        if number is None or number < 0:
            continue
        overrides[provider] = number
    return overrides


def resolve_thresholds(
    profile: GateProfile | str | None = None,
    overrides: RegressionOverrides | Mapping[str, str] | None = None,
    provider_overrides: ProviderOverrideInput = None,
) -> ThresholdSet:
    """Merge profile defaults, environment overrides and provider overrides.

    Args:
        profile: Profile name. Unknown names fall back to the strictest profile.
        overrides: Parsed overrides, or an environment-style mapping
            (e.g. ``os.environ``) to read them from.
        provider_overrides: Per-provider fail-rate thresholds. When omitted,
            the ``TELEMETRY_REGRESSION_PROVIDER_THRESHOLDS_JSON`` override is used.
    """
    resolved_profile = parse_profile(profile)
    defaults = get_profile_defaults(resolved_profile).regression

    if overrides is None:
        overrides = RegressionOverrides()
    elif not isinstance(overrides, RegressionOverrides):
        overrides = RegressionOverrides.from_env(overrides)

    success_drop = _first(overrides.max_success_drop, defaults.max_success_drop)
    p95_increase = _first(overrides.max_p95_increase_ms, defaults.max_p95_increase_ms)
    failrate_increase = _first(
        overrides.max_provider_failrate_increase, defaults.max_provider_failrate_increase
    )

    pipeline_success_drop = _first(
        overrides.max_pipeline_success_drop, defaults.max_pipeline_success_drop, success_drop
    )
    pipeline_p95_increase = _first(
        overrides.max_pipeline_p95_increase_ms, defaults.max_pipeline_p95_increase_ms, p95_increase
    )
    pipeline_failrate_increase = _first(
        overrides.max_pipeline_failrate_increase,
        defaults.max_pipeline_failrate_increase,
        failrate_increase,
    )

    if provider_overrides is None:
        provider_overrides = overrides.provider_thresholds_json

    return ThresholdSet(
        profile=resolved_profile,
        max_success_drop=success_drop,
        max_p95_increase_ms=p95_increase,
        max_provider_failrate_increase=failrate_increase,
        max_pipeline_success_drop=pipeline_success_drop,
        max_pipeline_p95_increase_ms=pipeline_p95_increase,
        max_pipeline_failrate_increase=pipeline_failrate_increase,
        max_frontend_success_drop=_first(
            overrides.max_frontend_success_drop,
            defaults.max_frontend_success_drop,
            pipeline_success_drop,
        ),
        max_frontend_p95_increase_ms=_first(
            overrides.max_frontend_p95_increase_ms,
            defaults.max_frontend_p95_increase_ms,
            pipeline_p95_increase,
        ),
        max_frontend_failrate_increase=_first(
            overrides.max_frontend_failrate_increase,
            defaults.max_frontend_failrate_increase,
            pipeline_failrate_increase,
        ),
        min_pipeline_samples=_first(overrides.min_pipeline_samples, defaults.min_pipeline_samples),
        provider_overrides=parse_provider_overrides(provider_overrides),
    )


def resolve_absolute_thresholds(
    profile: GateProfile | str | None = None,
    overrides: AbsoluteOverrides | Mapping[str, str] | None = None,
) -> AbsoluteThresholds:
    defaults = get_profile_defaults(profile).absolute
    if overrides is None:
        return defaults
    if not isinstance(overrides, AbsoluteOverrides):
        overrides = AbsoluteOverrides.from_env(overrides)

    return AbsoluteThresholds(
        min_overall_success_rate=_first(
            overrides.min_overall_success_rate, defaults.min_overall_success_rate
        ),
        min_provider_success_rate=_first(
            overrides.min_provider_success_rate, defaults.min_provider_success_rate
        ),
        max_p95_ms=_first(overrides.max_p95_ms, defaults.max_p95_ms),
        require_provider_events=_first(
            overrides.require_provider_events, defaults.require_provider_events
        ),
    )


def resolve_frontend_thresholds(
    profile: GateProfile | str | None = None,
    overrides: FrontendPerfOverrides | Mapping[str, str] | None = None,
) -> FrontendPerfThresholds:
    defaults = get_profile_defaults(profile).frontend_perf
    if overrides is None:
        return defaults
    if not isinstance(overrides, FrontendPerfOverrides):
        overrides = FrontendPerfOverrides.from_env(overrides)

    return FrontendPerfThresholds(
        max_tab_switch_p95_ms=_first(
            overrides.max_tab_switch_p95_ms, defaults.max_tab_switch_p95_ms
        ),
        max_page_render_p95_ms=_first(
            overrides.max_page_render_p95_ms, defaults.max_page_render_p95_ms
        ),
        min_tab_switch_samples=_first(
            overrides.min_tab_switch_samples, defaults.min_tab_switch_samples
        ),
        min_page_render_samples=_first(
            overrides.min_page_render_samples, defaults.min_page_render_samples
        ),
        require_frontend_events=_first(
            overrides.require_frontend_events, defaults.require_frontend_events
        ),
    )
