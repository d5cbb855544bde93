"""Tests for the TrendSummarizer — boundaries, windows, classification, macro."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from atmos_ovr.core.trends import TrendSummarizer
from atmos_ovr.domain.enums import SummaryPeriod, TrendDirection
from atmos_ovr.domain.records import DomainScores, TrendSummary

from tests.factories import BASE, composite

_SUNDAY = datetime(2026, 1, 11, 12, 0, tzinfo=timezone.utc)
_FIRST_OF_MONTH = datetime(2026, 4, 1, 12, 0, tzinfo=timezone.utc)  # a Wednesday


def _summary(period: SummaryPeriod, end: datetime, avg: int = 60) -> TrendSummary:
    return TrendSummary(
        period=period,
        start_date=end - timedelta(days=1),
        end_date=end,
        avg_ovr=avg,
        macro_ovr=avg,
        trend=TrendDirection.STABLE,
        trend_strength=0.0,
        micro_trend=0.0,
        domain_trends=DomainScores(biological=avg, emotional=avg, environmental=avg, financial=avg),
    )


def _hourly(values: list[int], end: datetime = BASE) -> list:
    start = end - timedelta(hours=len(values) - 1)
    return [composite(v, start + timedelta(hours=i)) for i, v in enumerate(values)]


class TestBoundaries:
    def test_daily_due_without_prior_summary(self) -> None:
        assert TrendSummarizer().due_periods(BASE, []) == [SummaryPeriod.DAILY]

    def test_daily_not_due_within_24h(self) -> None:
        prior = [_summary(SummaryPeriod.DAILY, BASE - timedelta(hours=23))]
        assert TrendSummarizer().due_periods(BASE, prior) == []

    def test_daily_due_after_24h(self) -> None:
        prior = [_summary(SummaryPeriod.DAILY, BASE - timedelta(hours=24, seconds=1))]
        assert TrendSummarizer().due_periods(BASE, prior) == [SummaryPeriod.DAILY]

    def test_weekly_due_on_start_day(self) -> None:
        prior = [_summary(SummaryPeriod.DAILY, _SUNDAY - timedelta(hours=1))]
        assert TrendSummarizer().due_periods(_SUNDAY, prior) == [SummaryPeriod.WEEKLY]

    def test_weekly_once_per_start_day(self) -> None:
        prior = [
            _summary(SummaryPeriod.DAILY, _SUNDAY - timedelta(hours=1)),
            _summary(SummaryPeriod.WEEKLY, _SUNDAY - timedelta(hours=2)),
        ]
        assert TrendSummarizer().due_periods(_SUNDAY, prior) == []

    def test_weekly_start_day_is_configurable(self) -> None:
        summarizer = TrendSummarizer(weekly_start_weekday=BASE.weekday())
        assert SummaryPeriod.WEEKLY in summarizer.due_periods(BASE, [])

    def test_weekday_follows_configured_timezone(self) -> None:
        # Sunday 23:30 in New York is already Monday in UTC
        monday_utc = datetime(2026, 1, 12, 4, 30, tzinfo=timezone.utc)
        assert SummaryPeriod.WEEKLY not in TrendSummarizer().due_periods(monday_utc, [])
        ny = TrendSummarizer(tz=ZoneInfo("America/New_York"))
        assert SummaryPeriod.WEEKLY in ny.due_periods(monday_utc, [])

    def test_monthly_due_on_start_day(self) -> None:
        due = TrendSummarizer().due_periods(_FIRST_OF_MONTH, [])
        assert due == [SummaryPeriod.DAILY, SummaryPeriod.MONTHLY]

    def test_rejects_invalid_calendar_settings(self) -> None:
        with pytest.raises(ValueError):
            TrendSummarizer(weekly_start_weekday=7)
        with pytest.raises(ValueError):
            TrendSummarizer(monthly_start_day=0)


class TestSummaries:
    def test_empty_window_yields_nothing(self) -> None:
        old = [composite(70, BASE - timedelta(days=2))]
        assert TrendSummarizer().summarize(SummaryPeriod.DAILY, BASE, old, [], 0.0) is None
        assert TrendSummarizer().run(BASE, [], [], 0.0) == []

    def test_window_bounds_are_inclusive(self) -> None:
        scores = [
            composite(10, BASE - timedelta(days=1, seconds=1)),
            composite(60, BASE - timedelta(days=1)),
            composite(70, BASE),
        ]
        summary = TrendSummarizer().summarize(SummaryPeriod.DAILY, BASE, scores, [], 0.0)
        assert summary is not None
        assert summary.avg_ovr == 65
        assert summary.start_date == BASE - timedelta(days=1)
        assert summary.end_date == BASE

    def test_improving_trend(self) -> None:
        summary = TrendSummarizer().summarize(SummaryPeriod.DAILY, BASE, _hourly([60, 61, 63]), [], 0.5)
        assert summary.trend == TrendDirection.IMPROVING
        assert summary.micro_trend == 0.5

    def test_declining_trend(self) -> None:
        summary = TrendSummarizer().summarize(SummaryPeriod.DAILY, BASE, _hourly([70, 65, 60]), [], 0.0)
        assert summary.trend == TrendDirection.DECLINING

    def test_stable_within_deadband(self) -> None:
        summary = TrendSummarizer().summarize(SummaryPeriod.DAILY, BASE, _hourly([60, 90, 62]), [], 0.0)
        assert summary.trend == TrendDirection.STABLE

    def test_single_point_is_stable_with_zero_strength(self) -> None:
        summary = TrendSummarizer().summarize(SummaryPeriod.DAILY, BASE, _hourly([80]), [], 0.0)
        assert summary.trend == TrendDirection.STABLE
        assert summary.trend_strength == 0.0

    def test_trend_strength(self) -> None:
        summarizer = TrendSummarizer()
        mild = summarizer.summarize(SummaryPeriod.DAILY, BASE, _hourly([50, 60]), [], 0.0)
        assert mild.trend_strength == pytest.approx(0.25)
        wild = summarizer.summarize(SummaryPeriod.DAILY, BASE, _hourly([10, 90]), [], 0.0)
        assert wild.trend_strength == 1.0

    def test_domain_trends_are_means(self) -> None:
        scores = [
            composite(60, BASE - timedelta(hours=1), biological=40, financial=81),
            composite(60, BASE, biological=50, financial=82),
        ]
        summary = TrendSummarizer().summarize(SummaryPeriod.DAILY, BASE, scores, [], 0.0)
        assert summary.domain_trends.biological == 45
        assert summary.domain_trends.financial == 82  # 81.5 rounds half-up
        assert summary.domain_trends.emotional == 60

    def test_macro_includes_new_summary(self) -> None:
        summary = TrendSummarizer().summarize(SummaryPeriod.DAILY, BASE, _hourly([80]), [], 0.0)
        assert summary.macro_ovr == 80

    def test_macro_uses_last_k_of_same_period(self) -> None:
        history = [_summary(SummaryPeriod.DAILY, BASE - timedelta(days=10 - i), avg=40) for i in range(3)]
        history += [_summary(SummaryPeriod.DAILY, BASE - timedelta(days=6 - i), avg=70) for i in range(6)]
        history += [_summary(SummaryPeriod.WEEKLY, BASE - timedelta(days=1), avg=10)]
        summary = TrendSummarizer().summarize(SummaryPeriod.DAILY, BASE, _hourly([77]), history, 0.0)
        # six 70s + the new 77, older 40s and the weekly 10 excluded
        assert summary.macro_ovr == 71

    def test_macro_windows_per_period(self) -> None:
        history = [_summary(SummaryPeriod.MONTHLY, BASE - timedelta(days=30 * (4 - i)), avg=v)
                   for i, v in enumerate([10, 10, 50, 50])]
        summary = TrendSummarizer().summarize(SummaryPeriod.MONTHLY, BASE, _hourly([80]), history, 0.0)
        # K=3: 50, 50, 80
        assert summary.macro_ovr == 60

    def test_run_builds_all_due_periods(self) -> None:
        produced = TrendSummarizer().run(_FIRST_OF_MONTH, _hourly([60, 70], end=_FIRST_OF_MONTH), [], 0.0)
        assert [s.period for s in produced] == [SummaryPeriod.DAILY, SummaryPeriod.MONTHLY]
