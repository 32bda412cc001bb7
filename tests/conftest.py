"""Pytest configuration and fixtures for the telemetry gate tests."""

import os

import pytest

from .factories import errors, events_jsonl, make_event, successes


@pytest.fixture
def degraded_events():
    """Ten events: a clean previous window of five, then one error in the current five."""
    return successes(5) + successes(4) + errors(1)


@pytest.fixture
def provider_events():
    return [
        make_event("success", provider="openai", duration_ms=120),
        make_event("success", provider="openai", duration_ms=140),
        make_event("error", provider="fal", duration_ms=None),
        make_event("success", provider="fal", duration_ms=900),
        make_event("start", provider="fal", duration_ms=None),
    ]


@pytest.fixture
def events_file(tmp_path, degraded_events):
    path = tmp_path / "pipeline-events.jsonl"
    path.write_text(events_jsonl(degraded_events))
    return path


@pytest.fixture(autouse=True)
def _clean_telemetry_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("TELEMETRY_"):
            monkeypatch.delenv(name)
