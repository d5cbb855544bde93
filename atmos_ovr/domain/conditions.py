"""Per-tick inputs handed to the engine by the producer.

The producer (a wearable bridge, a simulator, a test) supplies one
``Conditions`` per tick.  Physiological and environmental features arrive
together in a ``SensorSample``; financial inputs are optional approximate
figures used only when the ledger lookup is unavailable.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from atmos_ovr.foundation.clock import utc_now


class SensorSample(BaseModel):
    """Physiological and ambient readings observed at one instant."""

    heart_rate: float = Field(..., ge=0.0, description="Beats per minute")
    skin_temperature: float = Field(..., description="Degrees Celsius")
    stress_index: float = Field(..., ge=0.0, le=100.0)
    air_quality: float = Field(..., ge=0.0, le=100.0, description="0 = hazardous, 100 = pristine")
    movement: float = Field(..., ge=0.0, le=100.0, description="Activity level")
    sleep_quality: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    mood_score: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    observed_at: datetime = Field(
        default_factory=utc_now,
        description="Wall-clock time of the sample; its hour drives the daylight factor",
    )

    model_config = {"frozen": True, "allow_inf_nan": False}

    @field_validator("observed_at")
    @classmethod
    def observed_at_must_be_aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        return v


class FinancialInputs(BaseModel):
    """Approximate, caller-supplied financial figures for the heuristic score.

    Any field left as None falls back to a neutral default.
    """

    savings_progress: Optional[float] = Field(default=None, description="Percent of savings goal reached")
    debt_ratio: Optional[float] = Field(default=None, ge=0.0)
    budget_adherence: Optional[float] = Field(default=None, description="Percent of budget respected")
    income_growth: Optional[float] = Field(default=None, description="Fractional growth, 0.05 = 5%")

    model_config = {"frozen": True, "allow_inf_nan": False}


class FinancialMetrics(BaseModel):
    """Account-level metrics as reported by the external ledger service."""

    total_balance: float
    monthly_income: float
    monthly_expenses: float
    savings_rate: float = Field(..., description="Percent of income saved")
    emergency_fund: float
    debt_to_income_ratio: float
    credit_score: Optional[int] = None
    investment_portfolio: Optional[float] = None

    model_config = {"frozen": True, "allow_inf_nan": False}


class Conditions(BaseModel):
    """Everything the engine needs for one ingestion tick."""

    sensor: SensorSample
    financial: Optional[FinancialInputs] = None

    model_config = {"frozen": True}
