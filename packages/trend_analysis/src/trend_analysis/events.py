"""Event log reader.

The log is newline-delimited JSON, one event per line, appended by the
pipelines themselves. Lines that do not decode into an event (bad JSON, no
``status``) are dropped and counted; they never abort the read.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from telemetry_core.errors import EventLogError
from telemetry_core.models import EventRecord
from telemetry_core.parsing import parse_or_default

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger("trend_analysis.events")


def parse_event_line(line: str) -> EventRecord | None:
    """Decode one log line, or return None when it is not a usable event."""
    return parse_or_default(line, None, _to_event)


def parse_events(lines: Iterable[str]) -> list[EventRecord]:
    """Decode lines in order, skipping blanks and malformed entries."""
    events: list[EventRecord] = []
    dropped = 0
    for line in lines:
        if not line.strip():
            continue
        event = parse_event_line(line)
        if event is None:
            dropped += 1
            continue
        events.append(event)

    if dropped:
        logger.debug("Dropped %d malformed event line(s)", dropped)
    return events


def read_events(source: str | Path | TextIO) -> list[EventRecord]:
    """Read every parseable event from a path or an open text stream.

    Raises:
        EventLogError: The path does not exist or cannot be read.
    """
    if not isinstance(source, str | Path):
        return parse_events(source)

    path = Path(source)
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise EventLogError(str(path), str(exc)) from exc

    events = parse_events(raw.split("\n"))
    logger.info("Read %d event(s) from %s", len(events), path)
    return events


def _to_event(value: object) -> EventRecord:
    if not isinstance(value, dict):
        msg = "event line is not a JSON object"
        raise TypeError(msg)
    return EventRecord.model_validate(value)
