"""Sensor-driven domain scorers — biological, emotional, environmental.

Each scorer is a pure function of one SensorSample.  Every scorer starts
from the 50-point midpoint, adds bounded contributions, and clamps the
result into [0, 99].  No state, no I/O.
"""

from __future__ import annotations

from atmos_ovr.domain.conditions import SensorSample
from atmos_ovr.foundation.numeric import SCORE_MIDPOINT, clamp_score

# Baseline HRV estimate (ms) at zero stress
_HRV_BASELINE = 15.0
_HRV_STRESS_PENALTY = 10.0

_OPTIMAL_SKIN_TEMP_C = 37.0
_DAYLIGHT_START_HOUR = 6
_DAYLIGHT_END_HOUR = 18


def estimate_hrv(sample: SensorSample) -> float:
    """Rough heart-rate-variability proxy derived from the stress index."""
    stress_impact = sample.stress_index / 100.0
    return max(0.0, _HRV_BASELINE - stress_impact * _HRV_STRESS_PENALTY)


def biological_score(sample: SensorSample) -> int:
    """Sleep, HRV, activity balance and recovery."""
    score = float(SCORE_MIDPOINT)

    if sample.sleep_quality is not None:
        score += (sample.sleep_quality - 50.0) * 0.3

    hrv = estimate_hrv(sample)
    if hrv > 0:
        score += min(hrv * 0.2, 20.0)

    score += min(sample.movement / 100.0 * 20.0, 20.0)
    score += max(0.0, (100.0 - sample.stress_index) * 0.2)

    return clamp_score(score)


def emotional_score(sample: SensorSample) -> int:
    """Stress, mood, heart-rate stability and the active-and-calm bonus."""
    score = float(SCORE_MIDPOINT)

    score += max(0.0, (100.0 - sample.stress_index) * 0.4)

    if sample.mood_score is not None:
        score += (sample.mood_score - 50.0) * 0.3

    score += max(0.0, 20.0 - estimate_hrv(sample) * 0.1)

    if sample.movement > 50 and sample.stress_index < 60:
        score += 10.0

    return clamp_score(score)


def environmental_score(sample: SensorSample) -> int:
    """Air quality, ambient noise, thermal comfort and daylight exposure.

    Noise is approximated from movement; daylight from the hour of
    ``observed_at`` in whatever timezone the producer stamped it with.
    """
    score = float(SCORE_MIDPOINT)

    score += sample.air_quality / 100.0 * 30.0
    score += max(0.0, (100.0 - sample.movement) * 0.2)

    temp_diff = abs(sample.skin_temperature - _OPTIMAL_SKIN_TEMP_C)
    score += max(0.0, 20.0 - temp_diff * 4.0)

    hour = sample.observed_at.hour
    score += 20.0 if _DAYLIGHT_START_HOUR <= hour <= _DAYLIGHT_END_HOUR else 10.0

    return clamp_score(score)
