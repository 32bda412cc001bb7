"""Enumerations and scalar aliases shared by every telemetry package."""

from enum import StrEnum


class EventStatus(StrEnum):
    START = "start"
    SUCCESS = "success"
    ERROR = "error"


class GateProfile(StrEnum):
    CI = "ci"
    NIGHTLY = "nightly"
    RELEASE = "release"


class GateMode(StrEnum):
    WARN = "warn"
    BLOCK = "block"


class GateDecision(StrEnum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    SKIPPED_NO_BASELINE = "skipped_no_baseline"


# Closed set of metadata value types; anything else is dropped on decode.
MetadataValue = str | int | float | bool | None

FRONTEND_PIPELINE_PREFIX = "frontend."
