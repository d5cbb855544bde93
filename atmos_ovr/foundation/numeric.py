"""Numeric helpers shared by the scorers and the aggregation engine.

Scores are integers on a 0–99 scale.  Rounding is half-up (2.5 → 3), not
Python's banker's rounding, so that a score sitting exactly between two
integers always resolves upward.
"""

from __future__ import annotations

import math
from statistics import fmean, pvariance

SCORE_MIN = 0
SCORE_MAX = 99
SCORE_MIDPOINT = 50


def round_half_up(value: float, digits: int = 0) -> float:
    """Round *value* half-up to *digits* decimal places."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_score(value: float) -> int:
    """Round half-up and clamp into the 0–99 score range.

    NaN maps to the midpoint; infinities clamp to the nearest bound.
    """
    if math.isnan(value):
        return SCORE_MIDPOINT
    return int(round_half_up(clamp(value, SCORE_MIN, SCORE_MAX)))


def mean(values: list[float]) -> float:
    """Arithmetic mean, 0.0 for an empty list."""
    if not values:
        return 0.0
    return fmean(values)


def variance(values: list[float]) -> float:
    """Population variance, 0.0 with fewer than two values."""
    if len(values) < 2:
        return 0.0
    return pvariance(values)
