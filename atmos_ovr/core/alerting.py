"""ThresholdAlerter — real-time per-domain jump detection.

Runs on every ingested raw reading, not on the throttled publish cadence,
so a spike surfaces on the tick it happens even if the smoothed composite
has not moved yet.  Each reading is compared against the immediately
preceding raw reading, never against a smoothed value.

Severity bands on the absolute delta:
    critical  Δ ≥ 10
    warning   Δ ≥ 5
    info      otherwise (Δ ≥ threshold_sensitivity)
"""

from __future__ import annotations

import logging

from atmos_ovr.domain.enums import AlertDomain, AlertSeverity
from atmos_ovr.domain.records import RawReading, ThresholdAlert
from atmos_ovr.foundation.identifiers import new_alert_id

logger = logging.getLogger(__name__)

CRITICAL_DELTA = 10.0
WARNING_DELTA = 5.0


def severity_for(delta: float) -> AlertSeverity:
    if delta >= CRITICAL_DELTA:
        return AlertSeverity.CRITICAL
    if delta >= WARNING_DELTA:
        return AlertSeverity.WARNING
    return AlertSeverity.INFO


def magnitude_for(delta: float) -> str:
    if delta >= CRITICAL_DELTA:
        return "significantly"
    if delta >= WARNING_DELTA:
        return "notably"
    return "slightly"


def alert_message(domain: AlertDomain, current: int, previous: int) -> str:
    delta = abs(current - previous)
    direction = "increased" if current > previous else "decreased"
    return f"{domain.value.capitalize()} score {magnitude_for(delta)} {direction} by {delta:.1f} points"


class ThresholdAlerter:
    """Stateless comparison of two consecutive raw readings."""

    def check(
        self,
        current: RawReading,
        previous: RawReading | None,
        sensitivity: float,
    ) -> list[ThresholdAlert]:
        """Return one alert per domain whose delta meets *sensitivity*.

        Returns an empty list for the very first reading.
        """
        if previous is None:
            return []

        alerts: list[ThresholdAlert] = []
        for domain in AlertDomain:
            now_value = current.value_of(domain)
            prev_value = previous.value_of(domain)
            delta = abs(now_value - prev_value)
            if delta < sensitivity:
                continue

            alert = ThresholdAlert(
                id=new_alert_id(domain),
                timestamp=current.timestamp,
                domain=domain,
                threshold=sensitivity,
                current_value=now_value,
                previous_value=prev_value,
                severity=severity_for(delta),
                message=alert_message(domain, now_value, prev_value),
            )
            alerts.append(alert)
            logger.debug("Threshold alert %s: %s", alert.severity.value, alert.message)
        return alerts
