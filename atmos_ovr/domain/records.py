"""Immutable records produced by the aggregation engine.

Every record is a frozen pydantic model.  Once appended to a history it is
never mutated, so readers may hold references across ticks without copying.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field

from atmos_ovr.domain.enums import (
    AlertDomain,
    AlertSeverity,
    Domain,
    ScoreCategory,
    SummaryPeriod,
    TrendDirection,
)
from atmos_ovr.foundation.numeric import SCORE_MIDPOINT

Score = Annotated[int, Field(ge=0, le=99)]


def _domain_value(record: RawReading | CompositeScore | DomainScores, domain: Domain) -> int:
    if domain is Domain.BIOLOGICAL:
        return record.biological
    if domain is Domain.EMOTIONAL:
        return record.emotional
    if domain is Domain.ENVIRONMENTAL:
        return record.environmental
    if domain is Domain.FINANCIAL:
        return record.financial
    raise ValueError(f"unknown domain: {domain!r}")


class DomainScores(BaseModel):
    """One integer value per domain."""

    biological: Score
    emotional: Score
    environmental: Score
    financial: Score

    model_config = {"frozen": True}

    def value_of(self, domain: Domain) -> int:
        return _domain_value(self, domain)


# ── Raw Reading ──────────────────────────────────────────────────────────────

class RawReading(BaseModel):
    """One unsmoothed per-tick sample of all four domains.

    ``overall`` is the weight-combined value at ingestion time, before any
    smoothing.
    """

    timestamp: datetime
    biological: Score
    emotional: Score
    environmental: Score
    financial: Score
    overall: Score

    model_config = {"frozen": True}

    def value_of(self, domain: Domain | AlertDomain) -> int:
        if domain is AlertDomain.OVERALL:
            return self.overall
        return _domain_value(self, Domain(domain.value))


# ── Composite Score ──────────────────────────────────────────────────────────

class CompositeScore(BaseModel):
    """A published, smoothed OVR value."""

    overall: Score
    biological: Score
    emotional: Score
    environmental: Score
    financial: Score
    timestamp: datetime
    change: int = Field(0, description="Delta from the previously published overall")
    micro_trend: float = Field(
        0.0, ge=-2.0, le=2.0,
        description="Short-horizon slope over the 3 most recent raw readings",
    )

    model_config = {"frozen": True}

    def value_of(self, domain: Domain) -> int:
        return _domain_value(self, domain)

    @classmethod
    def fallback(cls, timestamp: datetime) -> CompositeScore:
        """Midpoint composite used before anything has been published."""
        return cls(
            overall=SCORE_MIDPOINT,
            biological=SCORE_MIDPOINT,
            emotional=SCORE_MIDPOINT,
            environmental=SCORE_MIDPOINT,
            financial=SCORE_MIDPOINT,
            timestamp=timestamp,
            change=0,
            micro_trend=0.0,
        )


# ── Threshold Alert ──────────────────────────────────────────────────────────

class ThresholdAlert(BaseModel):
    """A significant raw-to-raw jump in one domain."""

    id: str
    timestamp: datetime
    domain: AlertDomain
    threshold: float
    current_value: int
    previous_value: int
    severity: AlertSeverity
    message: str

    model_config = {"frozen": True}


# ── Trend Summary ────────────────────────────────────────────────────────────

class TrendSummary(BaseModel):
    """Aggregate of published composites over one daily/weekly/monthly window."""

    period: SummaryPeriod
    start_date: datetime
    end_date: datetime
    avg_ovr: Score
    macro_ovr: Score = Field(..., description="Mean avg_ovr of recent same-period summaries")
    trend: TrendDirection
    trend_strength: float = Field(..., ge=0.0, le=1.0)
    micro_trend: float = Field(0.0, ge=-2.0, le=2.0)
    domain_trends: DomainScores

    model_config = {"frozen": True}


# ── Categories ───────────────────────────────────────────────────────────────

_CATEGORY_FLOORS: tuple[tuple[int, ScoreCategory], ...] = (
    (90, ScoreCategory.ELITE),
    (80, ScoreCategory.EXCELLENT),
    (70, ScoreCategory.GOOD),
    (60, ScoreCategory.FAIR),
    (50, ScoreCategory.AVERAGE),
    (40, ScoreCategory.BELOW_AVERAGE),
    (30, ScoreCategory.POOR),
)


def score_category(score: int) -> ScoreCategory:
    """Band a 0–99 score into its display category."""
    for floor, category in _CATEGORY_FLOORS:
        if score >= floor:
            return category
    return ScoreCategory.CRITICAL
