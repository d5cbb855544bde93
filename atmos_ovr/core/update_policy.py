"""UpdatePolicy — decides, per ingestion, whether to publish a composite.

Fixed-rate publishing either chases sensor noise or lags real change, so
the policy bounds publishing from both sides:

    Δt = now − timestamp of the last published composite  (∞ if none)

    FORCE_UPDATE  if Δt ≥ max_interval          staleness ceiling
    DEFER         if Δt <  min_interval          rate floor
    EARLY_UPDATE  if min ≤ Δt < max and the population variance of the
                  last 5 raw ``overall`` values (needs ≥ 3) exceeds
                  early_update_variance
    DEFER         otherwise

The policy is stateless.  It reads the raw buffer and the last publish time
and returns a decision.  It never publishes anything itself.
"""

from __future__ import annotations

from datetime import datetime

from atmos_ovr.domain.config import SmartUpdateConfig
from atmos_ovr.domain.enums import UpdateDecision
from atmos_ovr.domain.records import RawReading
from atmos_ovr.foundation.numeric import variance

VARIANCE_WINDOW = 5
VARIANCE_MIN_SAMPLES = 3


class UpdatePolicy:
    """Dual floor/ceiling publish gate with a variance-triggered early escape."""

    def decide(
        self,
        now: datetime,
        last_published_at: datetime | None,
        recent: list[RawReading],
        config: SmartUpdateConfig,
    ) -> UpdateDecision:
        """Return the publish decision for the tick at *now*.

        Args:
            now: Timestamp of the tick being evaluated.
            last_published_at: Timestamp of the last published composite.
            recent: Most recent raw readings, oldest first.
            config: Interval bounds and the early-update variance threshold.
        """
        if last_published_at is None:
            return UpdateDecision.FORCE_UPDATE

        elapsed = now - last_published_at
        if elapsed >= config.max_interval:
            return UpdateDecision.FORCE_UPDATE
        if elapsed < config.min_interval:
            return UpdateDecision.DEFER

        if self.recent_variance(recent) > config.early_update_variance:
            return UpdateDecision.EARLY_UPDATE
        return UpdateDecision.DEFER

    @staticmethod
    def recent_variance(recent: list[RawReading]) -> float:
        """Variance of ``overall`` over the variance window, 0.0 if too few samples."""
        window = recent[-VARIANCE_WINDOW:]
        if len(window) < VARIANCE_MIN_SAMPLES:
            return 0.0
        return variance([float(r.overall) for r in window])
