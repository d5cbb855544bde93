"""TrendSummarizer — periodic daily/weekly/monthly roll-ups of published OVR.

Boundaries (checked after every publish):
    daily    no daily summary yet, or more than 24h since the last one ended
    weekly   local weekday is the configured start day and no weekly
             summary ended within the last 24h
    monthly  local day-of-month is the configured start day and no monthly
             summary ended within the last 24h

For a due period the window is [now − period_length, now] over published
composites.  An empty window produces nothing.  Insufficient data is never
an error.

Summary fields:
    avg_ovr         rounded mean of overall over the window
    trend           improving if last − first > 2, declining if < −2
    trend_strength  min(1, variance(overall) / 100)
    macro_ovr       rounded mean avg_ovr of the last K same-period
                    summaries, the new one included (K = 7 / 4 / 3)
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone, tzinfo

from atmos_ovr.domain.enums import Domain, SummaryPeriod, TrendDirection
from atmos_ovr.domain.records import CompositeScore, DomainScores, TrendSummary
from atmos_ovr.foundation.numeric import clamp_score, mean, variance

logger = logging.getLogger(__name__)

PERIOD_LENGTHS: dict[SummaryPeriod, timedelta] = {
    SummaryPeriod.DAILY: timedelta(days=1),
    SummaryPeriod.WEEKLY: timedelta(days=7),
    SummaryPeriod.MONTHLY: timedelta(days=30),
}

MACRO_WINDOWS: dict[SummaryPeriod, int] = {
    SummaryPeriod.DAILY: 7,
    SummaryPeriod.WEEKLY: 4,
    SummaryPeriod.MONTHLY: 3,
}

BOUNDARY_COOLDOWN = timedelta(hours=24)
TREND_DEADBAND = 2


class TrendSummarizer:
    """Decides which periods are due and builds their summaries.

    Stateless apart from calendar settings: callers hand in the published
    composites and the existing summaries.

    Args:
        tz: Timezone whose calendar defines "weekday" and "day of month".
        weekly_start_weekday: ``datetime.weekday()`` value (Monday = 0,
            Sunday = 6) on which weekly summaries are produced.
        monthly_start_day: Day of month on which monthly summaries are produced.
    """

    def __init__(
        self,
        tz: tzinfo = timezone.utc,
        weekly_start_weekday: int = 6,
        monthly_start_day: int = 1,
    ) -> None:
        if not 0 <= weekly_start_weekday <= 6:
            raise ValueError("weekly_start_weekday must be in 0..6")
        if not 1 <= monthly_start_day <= 31:
            raise ValueError("monthly_start_day must be in 1..31")
        self._tz = tz
        self._weekly_start_weekday = weekly_start_weekday
        self._monthly_start_day = monthly_start_day

    # ── Public API ───────────────────────────────────────────────────────

    def due_periods(self, now: datetime, summaries: list[TrendSummary]) -> list[SummaryPeriod]:
        """Periods whose boundary has been crossed at *now*."""
        local = now.astimezone(self._tz)
        due: list[SummaryPeriod] = []

        if self._cooled_down(SummaryPeriod.DAILY, now, summaries):
            due.append(SummaryPeriod.DAILY)
        if local.weekday() == self._weekly_start_weekday and self._cooled_down(
            SummaryPeriod.WEEKLY, now, summaries
        ):
            due.append(SummaryPeriod.WEEKLY)
        if local.day == self._monthly_start_day and self._cooled_down(
            SummaryPeriod.MONTHLY, now, summaries
        ):
            due.append(SummaryPeriod.MONTHLY)
        return due

    def run(
        self,
        now: datetime,
        composites: list[CompositeScore],
        summaries: list[TrendSummary],
        micro_trend: float,
    ) -> list[TrendSummary]:
        """Build a summary for every due period that has data in its window."""
        produced: list[TrendSummary] = []
        for period in self.due_periods(now, summaries):
            summary = self.summarize(period, now, composites, summaries, micro_trend)
            if summary is None:
                logger.debug("No composites in %s window ending %s", period.value, now.isoformat())
                continue
            produced.append(summary)
            logger.info(
                "Generated %s trend summary: avg=%d macro=%d trend=%s strength=%.2f",
                period.value,
                summary.avg_ovr,
                summary.macro_ovr,
                summary.trend.value,
                summary.trend_strength,
            )
        return produced

    def summarize(
        self,
        period: SummaryPeriod,
        now: datetime,
        composites: list[CompositeScore],
        summaries: list[TrendSummary],
        micro_trend: float,
    ) -> TrendSummary | None:
        """Summarise the composites in *period*'s window ending at *now*.

        Returns None when the window holds no composites.
        """
        start = now - PERIOD_LENGTHS[period]
        window = [c for c in composites if start <= c.timestamp <= now]
        if not window:
            return None

        values = [float(c.overall) for c in window]
        avg_ovr = clamp_score(mean(values))

        return TrendSummary(
            period=period,
            start_date=start,
            end_date=now,
            avg_ovr=avg_ovr,
            macro_ovr=self._macro_ovr(period, avg_ovr, summaries),
            trend=self.direction(window),
            trend_strength=self.strength(window),
            micro_trend=micro_trend,
            domain_trends=DomainScores(
                biological=self._domain_mean(window, Domain.BIOLOGICAL),
                emotional=self._domain_mean(window, Domain.EMOTIONAL),
                environmental=self._domain_mean(window, Domain.ENVIRONMENTAL),
                financial=self._domain_mean(window, Domain.FINANCIAL),
            ),
        )

    # ── Classification ───────────────────────────────────────────────────

    @staticmethod
    def direction(window: list[CompositeScore]) -> TrendDirection:
        if len(window) < 2:
            return TrendDirection.STABLE
        delta = window[-1].overall - window[0].overall
        if delta > TREND_DEADBAND:
            return TrendDirection.IMPROVING
        if delta < -TREND_DEADBAND:
            return TrendDirection.DECLINING
        return TrendDirection.STABLE

    @staticmethod
    def strength(window: list[CompositeScore]) -> float:
        if len(window) < 2:
            return 0.0
        return min(1.0, variance([float(c.overall) for c in window]) / 100.0)

    # ── Internals ────────────────────────────────────────────────────────

    @staticmethod
    def _cooled_down(period: SummaryPeriod, now: datetime, summaries: list[TrendSummary]) -> bool:
        last = next((s for s in reversed(summaries) if s.period == period), None)
        return last is None or now - last.end_date > BOUNDARY_COOLDOWN

    @staticmethod
    def _macro_ovr(period: SummaryPeriod, avg_ovr: int, summaries: list[TrendSummary]) -> int:
        k = MACRO_WINDOWS[period]
        same_period = [s.avg_ovr for s in summaries if s.period == period]
        recent = same_period[-(k - 1):] if k > 1 else []
        return clamp_score(mean([float(v) for v in recent + [avg_ovr]]))

    @staticmethod
    def _domain_mean(window: list[CompositeScore], domain: Domain) -> int:
        return clamp_score(mean([float(c.value_of(domain)) for c in window]))
