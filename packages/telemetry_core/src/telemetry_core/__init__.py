"""Shared telemetry types: event records, window summaries, trend snapshots.

Quick Start:
    from telemetry_core.models import EventRecord, TrendSnapshot
    from telemetry_core.stats import percentile

    event = EventRecord.model_validate({"status": "success", "durationMs": 120})
    percentile([120, 80, 300], 95)  # 300
"""

__version__ = "0.1.0"
