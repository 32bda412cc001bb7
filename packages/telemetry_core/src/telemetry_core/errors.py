"""Tooling errors.

These describe broken inputs or outputs (unreadable files, invalid
documents, unwritable targets), never a regression finding. Callers report them separately from gate decisions.
"""


class TelemetryInputError(Exception):
    """Base class for configuration-tier failures."""


class EventLogError(TelemetryInputError):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot read event log {path}: {reason}")


class TrendSnapshotError(TelemetryInputError):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Invalid trend snapshot {path}: {reason}")


class BaselineHistoryError(TelemetryInputError):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot read baseline history {path}: {reason}")


class OutputWriteError(TelemetryInputError):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot write {path}: {reason}")
