"""Rolling-window trend analysis over the pipeline event log.

Quick Start:
    from trend_analysis.events import read_events
    from trend_analysis.snapshot import build_trend_snapshot

    events = read_events("logs/pipeline-events.jsonl")
    snapshot = build_trend_snapshot(events, window_size=300)
"""

__version__ = "0.1.0"
