"""Application configuration loaded from environment variables."""

from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "atmos-ovr"
    debug: bool = False
    log_level: str = "INFO"

    # Domain weights (should sum to 1.0, not enforced)
    weight_biological: float = 0.30
    weight_emotional: float = 0.25
    weight_environmental: float = 0.20
    weight_financial: float = 0.25

    # Smart update policy
    min_interval_minutes: float = 5.0
    max_interval_minutes: float = 15.0
    moving_average_window: int = 10
    threshold_sensitivity: float = 3.0
    micro_trend_sensitivity: float = 1.5
    early_update_variance: float = 10.0

    # Bounded histories
    raw_capacity: int = 100
    history_capacity: int = 1000
    alert_capacity: int = 50
    summary_capacity: int = 100
    retention_days: int = 30

    # Trend summaries
    trend_timezone: str = "UTC"
    weekly_start_weekday: int = 6  # Sunday
    monthly_start_day: int = 1

    # Financial ledger (heuristic scoring when ledger_url is unset)
    ledger_url: Optional[str] = None
    ledger_api_key: Optional[str] = None
    ledger_timeout_seconds: float = 10.0
    ledger_cache_minutes: float = 5.0

    model_config = {"env_prefix": "ATMOS_"}


settings = Settings()
