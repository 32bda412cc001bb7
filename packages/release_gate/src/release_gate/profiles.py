"""Gate profiles.

Each profile supplies the default tolerances for one execution context.
``ci`` and ``release`` run against deterministic mocked providers, so they
demand a perfect success rate and a tight latency ceiling. ``nightly`` runs
against live providers and is the most permissive profile.
"""

from release_gate.models import (
    AbsoluteThresholds,
    FrontendPerfThresholds,
    ProfileDefaults,
    RegressionDefaults,
)
from telemetry_core.types import GateProfile

STRICT_REGRESSION = RegressionDefaults(
    max_success_drop=0.01,
    max_p95_increase_ms=5_000,
    max_provider_failrate_increase=0.05,
    min_pipeline_samples=5,
)

STRICT_ABSOLUTE = AbsoluteThresholds(
    min_overall_success_rate=1.0,
    min_provider_success_rate=1.0,
    max_p95_ms=300_000,
    require_provider_events=True,
)

STRICT_FRONTEND_PERF = FrontendPerfThresholds(
    max_tab_switch_p95_ms=5_000,
    max_page_render_p95_ms=6_000,
    min_tab_switch_samples=3,
    min_page_render_samples=3,
    require_frontend_events=True,
)

CI = ProfileDefaults(
    name=GateProfile.CI,
    description="Pull-request checks against mocked providers",
    regression=STRICT_REGRESSION,
    absolute=STRICT_ABSOLUTE,
    frontend_perf=STRICT_FRONTEND_PERF,
)

NIGHTLY = ProfileDefaults(
    name=GateProfile.NIGHTLY,
    description="Scheduled runs against live providers; tolerates provider noise",
    regression=RegressionDefaults(
        max_success_drop=0.05,
        max_p95_increase_ms=15_000,
        max_provider_failrate_increase=0.10,
        min_pipeline_samples=5,
    ),
    absolute=AbsoluteThresholds(
        min_overall_success_rate=0.9,
        min_provider_success_rate=0.8,
        max_p95_ms=600_000,
        require_provider_events=True,
    ),
    frontend_perf=FrontendPerfThresholds(
        max_tab_switch_p95_ms=8_000,
        max_page_render_p95_ms=10_000,
        min_tab_switch_samples=2,
        min_page_render_samples=2,
        require_frontend_events=True,
    ),
)

RELEASE = ProfileDefaults(
    name=GateProfile.RELEASE,
    description="Release candidate preflight against mocked providers",
    regression=STRICT_REGRESSION,
    absolute=STRICT_ABSOLUTE,
    frontend_perf=STRICT_FRONTEND_PERF,
)

PROFILES: dict[GateProfile, ProfileDefaults] = {
    GateProfile.CI: CI,
    GateProfile.NIGHTLY: NIGHTLY,
    GateProfile.RELEASE: RELEASE,
}

# Unknown profile names fall back to this one.
STRICTEST_PROFILE = GateProfile.CI


def parse_profile(value: str | GateProfile | None) -> GateProfile:
    """Normalize a profile name, falling back to the strictest profile."""
    if isinstance(value, GateProfile):
        return value
    if isinstance(value, str):
        try:
            return GateProfile(value.strip().lower())
        except ValueError:
            pass
    return STRICTEST_PROFILE


def get_profile_defaults(profile: str | GateProfile | None) -> ProfileDefaults:
    return PROFILES[parse_profile(profile)]
