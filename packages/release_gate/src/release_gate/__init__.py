"""Release gates over telemetry trend snapshots.

Quick Start:
    from release_gate.thresholds import resolve_thresholds
    from release_gate.regression import evaluate_regression

    thresholds = resolve_thresholds("ci", os.environ)
    result = evaluate_regression(snapshot, thresholds, mode="warn")
    sys.exit(result.exit_code)
"""

__version__ = "0.1.0"
