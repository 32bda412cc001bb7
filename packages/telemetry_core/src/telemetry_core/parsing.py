"""Decoding helpers with a single silent-degrade policy.

Every place that decodes untrusted text (log lines, override maps, history
entries) goes through :func:`parse_or_default` so a malformed value always
degrades the same way: to the caller's default, never to an exception.
"""

from __future__ import annotations

import json
import math
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def parse_or_default(
    raw: str | bytes | None,
    default: T,
    convert: Callable[[Any], T] | None = None,
) -> T:
    """Decode ``raw`` as JSON and optionally convert it, or return ``default``.

    ``convert`` may raise ``ValueError``/``TypeError`` (pydantic's
    ``ValidationError`` is a ``ValueError``) to reject the decoded value.
    Input nested too deeply to decode degrades the same way.
    """
    if raw is None:
        return default
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return default
    if not raw.strip():
        return default
    try:
        value = json.loads(raw)
        return convert(value) if convert is not None else value
    except (ValueError, TypeError, RecursionError, OverflowError):
        return default


def to_number(value: object) -> float | None:
    """Finite int/float, else None. Booleans are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def to_string(value: object) -> str | None:
    """Non-empty string, else None."""
    return value if isinstance(value, str) and value else None


def parse_non_negative(raw: object) -> float | None:
    """Parse an environment-style value as a finite number >= 0."""
    number = _coerce_number(raw)
    if number is None or number < 0:
        return None
    return number


def parse_positive(raw: object) -> float | None:
    """Parse an environment-style value as a finite number > 0."""
    number = _coerce_number(raw)
    if number is None or number <= 0:
        return None
    return number


def parse_bool(raw: object) -> bool | None:
    if isinstance(raw, bool):
        return raw
    if not isinstance(raw, str):
        return None
    normalized = raw.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return None


def _coerce_number(raw: object) -> float | None:
    if isinstance(raw, str):
        if not raw.strip():
            return None
        try:
            raw = float(raw)
        except ValueError:
            return None
    return to_number(raw)
