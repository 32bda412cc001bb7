"""Nearest-rank percentile and safe ratio helpers."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def percentile(values: Iterable[float], p: float) -> float:
    """Nearest-rank percentile.

    Sorts ascending and picks index ``ceil(p / 100 * n) - 1`` clamped to
    ``[0, n - 1]``. Returns 0 for an empty input.
    """
    ordered = sorted(values)
    n = len(ordered)
    if n == 0:
        return 0.0
    index = math.ceil((p / 100) * n) - 1
    return ordered[max(0, min(n - 1, index))]


def ratio(part: float, total: float) -> float:
    """``part / total``, or 0 when there is nothing to divide by."""
    if total <= 0:
        return 0.0
    return part / total
