"""Unit tests for the baseline tuner and its file-backed history store."""

import json

import pytest

from telemetry_core.errors import BaselineHistoryError, OutputWriteError
from trend_analysis.baseline import (
    MIN_P95_INCREASE_MS,
    MIN_PROVIDER_FAILRATE_INCREASE,
    MIN_SUCCESS_DROP,
    append_entry,
    derive_baseline,
    entry_from_snapshot,
    update_baseline,
)
from trend_analysis.models import HistoryEntry
from trend_analysis.storage import BaselineStore

from .factories import FIXED_TIMESTAMP, make_snapshot, make_summary


def _entry(index, success_rate=1.0, p95_ms=100.0, **providers):
    return HistoryEntry(
        generated_at=f"2025-12-31T23:{index:02d}:00Z",
        window_size=300,
        success_rate=success_rate,
        p95_ms=p95_ms,
        provider_fail_rate=providers,
    )


def _history(count):
    return [_entry(i) for i in range(count)]


class TestReadiness:
    @pytest.mark.parametrize(
        ("entries", "ready"),
        [(1, False), (4, False), (5, False), (6, True), (10, True)],
    )
    def test_ready_after_five_transitions(self, entries, ready):
        baseline = derive_baseline(_history(entries), generated_at=FIXED_TIMESTAMP)
        assert baseline.sample_count == entries
        assert baseline.transition_count == entries - 1
        assert baseline.ready_for_tuning is ready

    def test_empty_history_rejected(self):
        with pytest.raises(ValueError):
            derive_baseline([])


class TestSuggestedThresholds:
    def test_clean_history_uses_floors(self):
        suggested = derive_baseline(_history(8)).suggested_thresholds
        assert suggested.success_drop == MIN_SUCCESS_DROP
        assert suggested.p95_increase_ms == MIN_P95_INCREASE_MS
        assert suggested.provider_failrate_increase == MIN_PROVIDER_FAILRATE_INCREASE

    def test_improvements_clamped_to_zero(self):
        history = [_entry(0, success_rate=0.5, p95_ms=90_000), _entry(1, p95_ms=100)]
        suggested = derive_baseline(history).suggested_thresholds
        assert suggested.success_drop == MIN_SUCCESS_DROP
        assert suggested.p95_increase_ms == MIN_P95_INCREASE_MS

    def test_degradations_above_floor(self):
        history = [
            _entry(0, success_rate=1.0, p95_ms=1_000),
            _entry(1, success_rate=0.7, p95_ms=21_000),
            _entry(2, success_rate=0.9, p95_ms=11_000),
        ]
        suggested = derive_baseline(history).suggested_thresholds
        assert suggested.success_drop == pytest.approx(0.3)
        assert suggested.p95_increase_ms == 20_000

    def test_provider_override_never_below_global(self):
        history = [
            _entry(0, fal=0.0, openai=0.0),
            _entry(1, fal=0.4, openai=0.0),
            _entry(2, fal=0.0, openai=0.0),
        ]
        suggested = derive_baseline(history).suggested_thresholds
        assert suggested.provider_failrate_increase == pytest.approx(0.4)
        assert suggested.provider_overrides["fal"] == pytest.approx(0.4)
        assert suggested.provider_overrides["openai"] == pytest.approx(0.4)

    def test_provider_missing_from_entry_counts_as_zero(self):
        history = [_entry(0), _entry(1, replicate=0.2)]
        suggested = derive_baseline(history).suggested_thresholds
        assert suggested.provider_overrides == {"replicate": pytest.approx(0.2)}

    def test_env_overrides_rendering(self):
        history = [_entry(0, fal=0.0), _entry(1, fal=0.3)]
        env = derive_baseline(history).as_env_overrides()
        assert env["TELEMETRY_REGRESSION_MAX_SUCCESS_DROP"] == "0.0100"
        assert env["TELEMETRY_REGRESSION_MAX_P95_INCREASE_MS"] == "5000.0"
        assert json.loads(env["TELEMETRY_REGRESSION_PROVIDER_THRESHOLDS_JSON"]) == {
            "fal": pytest.approx(0.3)
        }


class TestUpdateBaseline:
    def test_appends_current_window(self):
        snapshot = make_snapshot(make_summary(success_rate=0.9), make_summary())
        history, baseline = update_baseline(snapshot, _history(2), generated_at=FIXED_TIMESTAMP)
        assert len(history) == 3
        assert history[-1] == entry_from_snapshot(snapshot)
        assert baseline.current.success_rate == 0.9
        assert baseline.generated_at == FIXED_TIMESTAMP

    def test_deduplicates_by_generated_at(self):
        history = _history(3)
        replacement = _entry(1, success_rate=0.5)
        updated = append_entry(history, replacement)
        assert [e.generated_at for e in updated] == [
            history[0].generated_at,
            history[2].generated_at,
            replacement.generated_at,
        ]
        assert updated[-1].success_rate == 0.5

    def test_input_history_not_mutated(self):
        history = _history(2)
        append_entry(history, _entry(5))
        assert len(history) == 2


class TestBaselineStore:
    def _store(self, tmp_path):
        return BaselineStore(
            history_file=tmp_path / "logs" / "history.jsonl",
            baseline_file=tmp_path / "logs" / "baseline.json",
        )

    def test_missing_history_is_empty(self, tmp_path):
        assert self._store(tmp_path).load_history() == []
        assert self._store(tmp_path).load_baseline() is None

    def test_update_writes_history_and_baseline(self, tmp_path):
        store = self._store(tmp_path)
        for minute in range(3):
            snapshot = make_snapshot(make_summary(), make_summary()).model_copy(
                update={"generated_at": f"2026-01-01T00:{minute:02d}:00Z"}
            )
            baseline = store.update(snapshot, generated_at=FIXED_TIMESTAMP)

        assert baseline.sample_count == 3
        assert len(store.history_file.read_text().splitlines()) == 3
        assert store.load_baseline() == baseline

    def test_rerun_of_same_snapshot_is_deduplicated(self, tmp_path):
        store = self._store(tmp_path)
        snapshot = make_snapshot(make_summary(), make_summary())
        store.update(snapshot)
        baseline = store.update(snapshot)
        assert baseline.sample_count == 1
        assert len(store.load_history()) == 1

    def test_malformed_history_lines_skipped(self, tmp_path):
        store = self._store(tmp_path)
        store.history_file.parent.mkdir(parents=True)
        store.history_file.write_text(
            _entry(0).model_dump_json() + "\n{broken\n\n" + '{"success_rate": 1}\n'
        )
        assert store.load_history() == [_entry(0)]

    def test_unreadable_history_raises(self, tmp_path):
        store = self._store(tmp_path)
        store.history_file.mkdir(parents=True)
        with pytest.raises(BaselineHistoryError):
            store.load_history()

    def test_save_history_round_trip(self, tmp_path):
        store = self._store(tmp_path)
        store.save_history(_history(4))
        assert store.load_history() == _history(4)
        assert not list(store.history_file.parent.glob("*.tmp"))

    def test_line_separator_in_provider_name_kept(self, tmp_path):
        store = self._store(tmp_path)
        entry = _entry(0, **{"fal\u2028eu": 0.25})
        line = json.dumps(entry.model_dump(), ensure_ascii=False)
        assert "\u2028" in line
        store.history_file.parent.mkdir(parents=True)
        store.history_file.write_text(line + "\n", encoding="utf-8")
        assert store.load_history() == [entry]

    def test_unwritable_baseline_raises_output_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = BaselineStore(
            history_file=tmp_path / "history.jsonl", baseline_file=blocker / "baseline.json"
        )
        with pytest.raises(OutputWriteError) as exc_info:
            store.update(make_snapshot(make_summary(), make_summary()))
        assert "baseline.json" in str(exc_info.value)
        assert not list(tmp_path.glob("*.tmp"))
