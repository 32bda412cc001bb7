"""Unit tests for the frontend perf gate."""

from release_gate.frontend import (
    PAGE_RENDER_PIPELINE,
    RUNTIME_MISMATCH_NOTE,
    TAB_SWITCH_PIPELINE,
    evaluate_frontend_perf,
)
from release_gate.thresholds import resolve_frontend_thresholds
from telemetry_core.types import GateDecision

from .factories import make_event, successes


class TestFrontendPerfGate:
    def _events(self, tab=(), render=()):
        return [make_event(pipeline=TAB_SWITCH_PIPELINE, duration_ms=d) for d in tab] + [
            make_event(pipeline=PAGE_RENDER_PIPELINE, duration_ms=d) for d in render
        ]

    def test_within_ceilings(self):
        events = self._events(tab=[100, 200, 300], render=[500, 600, 700])
        result = evaluate_frontend_perf(events, resolve_frontend_thresholds("ci"))
        assert result.decision == GateDecision.PASS
        assert result.tab_switch.samples == 3
        assert result.page_render.p95_ms == 700

    def test_p95_ceiling_exceeded(self):
        events = self._events(tab=[100, 200, 9_000], render=[500, 600, 700])
        result = evaluate_frontend_perf(events, resolve_frontend_thresholds("ci"))
        assert result.failures == ["tab switch p95 9000.0ms > 5000.0ms"]
        assert result.decision == GateDecision.FAIL

    def test_too_few_samples(self):
        events = self._events(tab=[100], render=[500, 600, 700])
        result = evaluate_frontend_perf(events, resolve_frontend_thresholds("ci"))
        assert result.failures == ["tab switch samples 1 < 3"]

    def test_no_frontend_events(self):
        result = evaluate_frontend_perf(successes(3), resolve_frontend_thresholds("ci"))
        assert result.failures == ["no frontend perf telemetry events found"]

    def test_no_frontend_events_allowed(self):
        thresholds = resolve_frontend_thresholds(
            "ci", {"TELEMETRY_FRONTEND_REQUIRE_EVENTS": "0"}
        )
        result = evaluate_frontend_perf([], thresholds)
        assert result.decision == GateDecision.PASS

    def test_error_events_not_sampled(self):
        events = self._events(tab=[100, 200, 300], render=[500, 600, 700])
        events.append(make_event("error", pipeline=TAB_SWITCH_PIPELINE, duration_ms=60_000))
        result = evaluate_frontend_perf(events, resolve_frontend_thresholds("ci"))
        assert result.tab_switch.samples == 3

    def test_runtime_mismatch_passes_conditionally(self):
        events = [
            make_event(
                pipeline="smoke.desktop",
                provider="runtime",
                reason="sqlite_runtime_mismatch",
            )
        ]
        result = evaluate_frontend_perf(events, resolve_frontend_thresholds("ci"))
        assert result.decision == GateDecision.PASS
        assert result.notes == [RUNTIME_MISMATCH_NOTE]
        assert result.failures == []

    def test_warn_mode(self):
        result = evaluate_frontend_perf([], resolve_frontend_thresholds("ci"), "warn")
        assert result.decision == GateDecision.WARN
        assert result.exit_code == 0
