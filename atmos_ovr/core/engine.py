"""OVREngine — adaptive score aggregation and alerting.

Design notes:
    - One engine owns the four bounded histories (raw readings, published
      composites, alerts, trend summaries) and the configuration.  It is
      constructed once at wiring time and handed to whoever needs it.
    - An asyncio.Lock serialises ingestion.  The financial lookup is the
      only await inside a tick, and nothing else may mutate engine state
      while it is pending.
    - Reads take no lock.  Every record is immutable and the current
      composite is a single reference swapped after the history append, so
      a reader never observes a half-applied tick.
    - Configuration is a frozen EngineConfig.  A tick captures the
      instance in force when it starts.  Updates apply to the next tick.
    - No data problem ever raises out of ingest().  Scorer failures degrade
      to clamped fallbacks.

Tick pipeline:
    score domains → append raw reading → threshold alerts (always)
    → update policy → [smooth → publish → trend boundaries]
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import timedelta

from atmos_ovr.core.alerting import ThresholdAlerter
from atmos_ovr.core.smoothing import MICRO_TREND_SAMPLES, SmoothingEngine
from atmos_ovr.core.trends import TrendSummarizer
from atmos_ovr.core.update_policy import VARIANCE_WINDOW, UpdatePolicy
from atmos_ovr.domain.conditions import Conditions
from atmos_ovr.domain.config import EngineConfig
from atmos_ovr.domain.enums import HistoryWindow, SummaryPeriod, TrendDirection, UpdateDecision
from atmos_ovr.domain.records import (
    CompositeScore,
    DomainScores,
    RawReading,
    ThresholdAlert,
    TrendSummary,
)
from atmos_ovr.foundation.clock import utc_now
from atmos_ovr.foundation.numeric import clamp_score
from atmos_ovr.scoring.financial import (
    FinancialScoreProvider,
    HeuristicFinancialProvider,
    heuristic_score,
)
from atmos_ovr.scoring.physiology import biological_score, emotional_score, environmental_score
from atmos_ovr.store.history import BoundedHistory

logger = logging.getLogger(__name__)

WINDOW_LENGTHS: dict[HistoryWindow, timedelta] = {
    HistoryWindow.DAY: timedelta(days=1),
    HistoryWindow.WEEK: timedelta(days=7),
    HistoryWindow.MONTH: timedelta(days=30),
}


@dataclass(frozen=True)
class TickOutcome:
    """Everything one ingestion produced."""

    reading: RawReading
    decision: UpdateDecision
    composite: CompositeScore
    alerts: list[ThresholdAlert] = field(default_factory=list)
    summaries: list[TrendSummary] = field(default_factory=list)

    @property
    def published(self) -> bool:
        return self.decision.publishes


class OVREngine:
    """Single-stream OVR aggregation engine.

    Args:
        config: Initial weights and smart-update parameters.
        financial_provider: Source of the financial sub-score.  Defaults to
            the synchronous heuristic.
        summarizer: Trend summarizer (calendar settings).
        raw_capacity: Cap of the raw reading buffer.
        history_capacity: Cap of the published composite history.
        alert_capacity: Cap of the alert list.
        summary_capacity: Cap of the trend summary list.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        financial_provider: FinancialScoreProvider | None = None,
        summarizer: TrendSummarizer | None = None,
        raw_capacity: int = 100,
        history_capacity: int = 1000,
        alert_capacity: int = 50,
        summary_capacity: int = 100,
    ) -> None:
        self._config = config or EngineConfig()
        self._financial = financial_provider or HeuristicFinancialProvider()
        self._summarizer = summarizer or TrendSummarizer()
        self._policy = UpdatePolicy()
        self._smoother = SmoothingEngine()
        self._alerter = ThresholdAlerter()
        self._lock = asyncio.Lock()

        self._raw: BoundedHistory[RawReading] = BoundedHistory(raw_capacity, "raw_readings")
        self._history: BoundedHistory[CompositeScore] = BoundedHistory(history_capacity, "composites")
        self._alerts: BoundedHistory[ThresholdAlert] = BoundedHistory(alert_capacity, "alerts")
        self._summaries: BoundedHistory[TrendSummary] = BoundedHistory(summary_capacity, "trend_summaries")
        self._current: CompositeScore | None = None

    # ── Ingestion ────────────────────────────────────────────────────────

    async def ingest(self, conditions: Conditions) -> CompositeScore:
        """Feed one tick; return the (possibly unchanged) current composite."""
        outcome = await self.ingest_tick(conditions)
        return outcome.composite

    async def ingest_tick(self, conditions: Conditions) -> TickOutcome:
        """Feed one tick and return everything it produced."""
        async with self._lock:
            config = self._config
            scores = await self._score_domains(conditions)
            now = utc_now()

            reading = RawReading(
                timestamp=now,
                biological=scores.biological,
                emotional=scores.emotional,
                environmental=scores.environmental,
                financial=scores.financial,
                overall=clamp_score(
                    config.weights.combine(
                        biological=scores.biological,
                        emotional=scores.emotional,
                        environmental=scores.environmental,
                        financial=scores.financial,
                    )
                ),
            )
            previous = self._raw.latest
            self._raw.append(reading)

            alerts = self._alerter.check(reading, previous, config.smart_update.threshold_sensitivity)
            for alert in alerts:
                self._alerts.append(alert)

            last_published_at = self._current.timestamp if self._current is not None else None
            decision = self._policy.decide(
                now,
                last_published_at,
                self._raw.last(VARIANCE_WINDOW),
                config.smart_update,
            )

            summaries: list[TrendSummary] = []
            if decision.publishes:
                composite, summaries = self._publish(config)
            else:
                composite = self._current or CompositeScore.fallback(now)

            logger.debug(
                "Tick overall=%d decision=%s alerts=%d current=%d",
                reading.overall,
                decision.value,
                len(alerts),
                composite.overall,
            )
            return TickOutcome(
                reading=reading,
                decision=decision,
                composite=composite,
                alerts=alerts,
                summaries=summaries,
            )

    # ── Reads ────────────────────────────────────────────────────────────

    def get_current(self) -> CompositeScore | None:
        return self._current

    def get_history(self, limit: int = 100) -> list[CompositeScore]:
        """The *limit* most recent published composites, oldest first."""
        return self._history.last(limit)

    def get_window(self, window: HistoryWindow) -> list[CompositeScore]:
        """Published composites newer than now − 1 day / 7 days / 30 days."""
        cutoff = utc_now() - WINDOW_LENGTHS[window]
        return [c for c in self._history.snapshot() if c.timestamp > cutoff]

    def get_alerts(self, limit: int = 10) -> list[ThresholdAlert]:
        """The *limit* most recent alerts, oldest first."""
        return self._alerts.last(limit)

    def get_trend_summaries(self, period: SummaryPeriod | None = None) -> list[TrendSummary]:
        summaries = self._summaries.snapshot()
        if period is None:
            return summaries
        return [s for s in summaries if s.period == period]

    def get_micro_trend(self) -> float:
        return self._current.micro_trend if self._current is not None else 0.0

    def micro_trend_direction(self) -> TrendDirection:
        """Classify the current micro-trend against micro_trend_sensitivity."""
        sensitivity = self._config.smart_update.micro_trend_sensitivity
        micro = self.get_micro_trend()
        if micro >= sensitivity:
            return TrendDirection.IMPROVING
        if micro <= -sensitivity:
            return TrendDirection.DECLINING
        return TrendDirection.STABLE

    def get_config(self) -> EngineConfig:
        return self._config

    @property
    def stats(self) -> dict:
        """Collection sizes for observability endpoints."""
        return {
            "raw_readings": len(self._raw),
            "composites": len(self._history),
            "alerts": len(self._alerts),
            "trend_summaries": len(self._summaries),
            "current_overall": self._current.overall if self._current is not None else None,
        }

    # ── Configuration ────────────────────────────────────────────────────

    def update_weights(self, **weights: float) -> EngineConfig:
        """Replace some domain weights.  Effective on the next ingestion.

        Weights are not normalised; keeping them summing to 1.0 is the
        caller's job.

        Raises:
            TypeError: If a name is not one of the four domains.
        """
        self._config = self._config.with_weights(**weights)
        if abs(self._config.weights.total - 1.0) > 1e-6:
            logger.info("Domain weights sum to %.3f, not 1.0", self._config.weights.total)
        logger.info("Updated weights: %s", weights)
        return self._config

    def update_config(self, **changes) -> EngineConfig:
        """Replace some smart-update parameters.  Effective on the next ingestion.

        Raises:
            TypeError: If a name is not a smart-update parameter.
        """
        self._config = self._config.with_smart_update(**changes)
        logger.info("Updated smart-update config: %s", changes)
        return self._config

    # ── Retention ────────────────────────────────────────────────────────

    async def clear_old_data(self, retention_days: float = 30) -> dict[str, int]:
        """Drop every record not newer than now − *retention_days*.

        Independent of the size caps.  The current composite pointer is kept
        so the update policy still knows when the last publish happened.
        Returns the number of records removed per collection.
        """
        async with self._lock:
            cutoff = utc_now() - timedelta(days=retention_days)
            removed = {
                "raw_readings": self._raw.prune_older_than(cutoff, lambda r: r.timestamp),
                "composites": self._history.prune_older_than(cutoff, lambda c: c.timestamp),
                "alerts": self._alerts.prune_older_than(cutoff, lambda a: a.timestamp),
                "trend_summaries": self._summaries.prune_older_than(cutoff, lambda s: s.end_date),
            }
            logger.info("Retention sweep (%s days) removed %s", retention_days, removed)
            return removed

    async def reset(self) -> None:
        """Forget every record.  Configuration is kept."""
        async with self._lock:
            self._raw.clear()
            self._history.clear()
            self._alerts.clear()
            self._summaries.clear()
            self._current = None
            logger.info("Engine state reset")

    # ── Internals ────────────────────────────────────────────────────────

    async def _score_domains(self, conditions: Conditions) -> DomainScores:
        sample = conditions.sensor
        try:
            financial = await self._financial.score(conditions.financial)
        except Exception:
            logger.exception("Financial provider failed, using heuristic score")
            financial = heuristic_score(conditions.financial)

        return DomainScores(
            biological=biological_score(sample),
            emotional=emotional_score(sample),
            environmental=environmental_score(sample),
            financial=clamp_score(financial),
        )

    def _publish(self, config: EngineConfig) -> tuple[CompositeScore, list[TrendSummary]]:
        """Smooth, publish and roll up.  Must be called while holding self._lock."""
        latest = self._raw.latest
        assert latest is not None
        timestamp = latest.timestamp
        if self._current is not None and timestamp < self._current.timestamp:
            timestamp = self._current.timestamp

        window = config.smart_update.moving_average_window
        composite = self._smoother.smooth(
            self._raw.last(max(window, MICRO_TREND_SAMPLES)),
            window,
            config.weights,
            timestamp,
            self._current,
        )
        self._history.append(composite)
        self._current = composite
        logger.info(
            "Published OVR %d (change %+d, micro %+.1f)",
            composite.overall,
            composite.change,
            composite.micro_trend,
        )

        summaries = self._summarizer.run(
            timestamp,
            self._history.snapshot(),
            self._summaries.snapshot(),
            composite.micro_trend,
        )
        for summary in summaries:
            self._summaries.append(summary)
        return composite, summaries
