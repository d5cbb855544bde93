"""SmoothingEngine — builds a published composite from the raw buffer.

Composite formula:
    m_d      = arithmetic mean of domain d over the last
               ``moving_average_window`` raw readings
    overall  = clamp(round_half_up(Σ_d weight_d · m_d), 0, 99)
    domain d = clamp(round_half_up(m_d), 0, 99)
    change   = overall − previous published overall   (0 if none)

Micro-trend (independent of the smoothing window):
    micro_trend = clamp((r[-1].overall − r[-3].overall) / 2, −2, 2)
                  rounded to one decimal, 0 with fewer than 3 readings

The micro-trend lets consumers tell "stable but about to move" from
"stable".  It is a slope over three raw samples, not a smoothed value.
"""

from __future__ import annotations

from datetime import datetime

from atmos_ovr.domain.config import DomainWeights
from atmos_ovr.domain.enums import Domain
from atmos_ovr.domain.records import CompositeScore, RawReading
from atmos_ovr.foundation.numeric import clamp, clamp_score, mean, round_half_up

MICRO_TREND_SAMPLES = 3
MICRO_TREND_LIMIT = 2.0


class SmoothingEngine:
    """Stateless: raw readings in, one CompositeScore out."""

    def smooth(
        self,
        recent: list[RawReading],
        window: int,
        weights: DomainWeights,
        timestamp: datetime,
        previous: CompositeScore | None,
    ) -> CompositeScore:
        """Compute the composite from the newest *window* readings of *recent*.

        *recent* is oldest first and may hold more than *window* readings;
        the micro-trend always looks at the newest three.  Returns the
        midpoint fallback composite when *recent* is empty.
        """
        readings = recent[-window:] if window > 0 else []
        if not readings:
            return CompositeScore.fallback(timestamp)

        means = {
            domain: mean([float(r.value_of(domain)) for r in readings])
            for domain in Domain
        }
        overall = clamp_score(
            weights.combine(
                biological=means[Domain.BIOLOGICAL],
                emotional=means[Domain.EMOTIONAL],
                environmental=means[Domain.ENVIRONMENTAL],
                financial=means[Domain.FINANCIAL],
            )
        )
        change = overall - previous.overall if previous is not None else 0

        return CompositeScore(
            overall=overall,
            biological=clamp_score(means[Domain.BIOLOGICAL]),
            emotional=clamp_score(means[Domain.EMOTIONAL]),
            environmental=clamp_score(means[Domain.ENVIRONMENTAL]),
            financial=clamp_score(means[Domain.FINANCIAL]),
            timestamp=timestamp,
            change=change,
            micro_trend=self.micro_trend(recent),
        )

    @staticmethod
    def micro_trend(readings: list[RawReading]) -> float:
        """Half the overall delta across the 3 most recent readings, in [-2, 2]."""
        if len(readings) < MICRO_TREND_SAMPLES:
            return 0.0
        first, _, third = readings[-MICRO_TREND_SAMPLES:]
        slope = (third.overall - first.overall) / 2.0
        return clamp(round_half_up(slope, 1), -MICRO_TREND_LIMIT, MICRO_TREND_LIMIT)
