"""Baseline storage — JSONL history file plus a derived baseline JSON document.

The history is read, extended and written back as one sequence. Concurrent
tuner runs against the same files are not supported; callers serialize them.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from telemetry_core.errors import BaselineHistoryError, OutputWriteError
from telemetry_core.parsing import parse_or_default
from trend_analysis.baseline import update_baseline
from trend_analysis.models import Baseline, HistoryEntry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from telemetry_core.models import TrendSnapshot

logger = logging.getLogger("trend_analysis.storage")


class BaselineStore:
    """Stores the snapshot history as JSONL and the baseline as JSON."""

    def __init__(self, *, history_file: str | Path, baseline_file: str | Path) -> None:
        self._history_file = Path(history_file)
        self._baseline_file = Path(baseline_file)

    @property
    def history_file(self) -> Path:
        return self._history_file

    @property
    def baseline_file(self) -> Path:
        return self._baseline_file

    def load_history(self) -> list[HistoryEntry]:
        """Read all history entries. A missing file is an empty history.

        Raises:
            BaselineHistoryError: The file exists but cannot be read.
        """
        if not self._history_file.exists():
            return []
        try:
            raw = self._history_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise BaselineHistoryError(str(self._history_file), str(exc)) from exc

        entries: list[HistoryEntry] = []
        dropped = 0
        for line in raw.split("\n"):
            if not line.strip():
                continue
            entry = parse_or_default(line, None, HistoryEntry.model_validate)
            if entry is None:
                dropped += 1
                continue
            entries.append(entry)
        if dropped:
            logger.warning("Skipped %d malformed history line(s) in %s", dropped, self._history_file)
        return entries

    def save_history(self, entries: Sequence[HistoryEntry]) -> None:
        body = "".join(entry.model_dump_json() + "\n" for entry in entries)
        _atomic_write(self._history_file, body)

    def load_baseline(self) -> Baseline | None:
        if not self._baseline_file.exists():
            return None
        try:
            raw = self._baseline_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise BaselineHistoryError(str(self._baseline_file), str(exc)) from exc
        return parse_or_default(raw, None, Baseline.model_validate)

    def save_baseline(self, baseline: Baseline) -> None:
        _atomic_write(self._baseline_file, baseline.model_dump_json(indent=2) + "\n")

    def update(self, snapshot: TrendSnapshot, *, generated_at: str | None = None) -> Baseline:
        """Append ``snapshot`` to the history and rewrite history and baseline."""
        history = self.load_history()
        updated, baseline = update_baseline(snapshot, history, generated_at=generated_at)
        self.save_history(updated)
        self.save_baseline(baseline)
        logger.info(
            "Baseline updated: samples=%d transitions=%d ready=%s",
            baseline.sample_count,
            baseline.transition_count,
            baseline.ready_for_tuning,
        )
        return baseline


def _atomic_write(path: Path, content: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    except OSError as exc:
        raise OutputWriteError(str(path), str(exc)) from exc
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        Path(tmp_name).replace(path)
    except OSError as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise OutputWriteError(str(path), str(exc)) from exc
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
