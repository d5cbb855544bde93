"""Controlled enumerations for the atmos-ovr domain.

Every categorical field in the domain MUST reference an enum defined here.
Free-form strings are not acceptable for classification fields.
"""

from __future__ import annotations

from enum import Enum


class Domain(str, Enum):
    """The four independently scored facets of the composite."""

    BIOLOGICAL = "biological"
    EMOTIONAL = "emotional"
    ENVIRONMENTAL = "environmental"
    FINANCIAL = "financial"


class AlertDomain(str, Enum):
    """Domains a threshold alert can be raised for, including the composite."""

    BIOLOGICAL = "biological"
    EMOTIONAL = "emotional"
    ENVIRONMENTAL = "environmental"
    FINANCIAL = "financial"
    OVERALL = "overall"


class AlertSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class TrendDirection(str, Enum):
    """Direction of a score series over a window."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class SummaryPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class HistoryWindow(str, Enum):
    """Look-back windows for querying published composites."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class UpdateDecision(str, Enum):
    """Outcome of the update policy for a single ingestion."""

    FORCE_UPDATE = "force_update"
    EARLY_UPDATE = "early_update"
    DEFER = "defer"

    @property
    def publishes(self) -> bool:
        return self is not UpdateDecision.DEFER


class ScoreCategory(str, Enum):
    """Human-facing band for a 0–99 score."""

    ELITE = "Elite"
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    AVERAGE = "Average"
    BELOW_AVERAGE = "Below Average"
    POOR = "Poor"
    CRITICAL = "Critical"
