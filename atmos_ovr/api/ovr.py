"""REST endpoints over the OVR engine.

Paths (all under /api/ovr):
    POST  /ingest              one tick of Conditions → current composite
    GET   /current             current composite, its category, micro-trend
    GET   /history?limit=      most recent published composites
    GET   /window/{window}     composites from the last day / week / month
    GET   /alerts?limit=       most recent threshold alerts
    GET   /trends?period=      trend summaries, optionally one period
    GET   /config              weights + smart-update parameters
    PATCH /config              partial smart-update update
    PATCH /weights             partial weight update
    POST  /retention?days=     explicit retention sweep

The router is a thin boundary: pydantic validates payloads, the engine
does the work.  No scoring logic lives here.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import timedelta
from typing import Any, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from atmos_ovr.core.engine import OVREngine
from atmos_ovr.domain.conditions import Conditions
from atmos_ovr.domain.config import EngineConfig
from atmos_ovr.domain.enums import HistoryWindow, SummaryPeriod
from atmos_ovr.domain.records import CompositeScore, ThresholdAlert, TrendSummary, score_category

logger = logging.getLogger(__name__)

# One year
_MAX_INTERVAL_MINUTES = 525_600.0


class WeightsPatch(BaseModel):
    """Partial domain weight update; omitted fields keep their value."""

    biological: Optional[float] = None
    emotional: Optional[float] = None
    environmental: Optional[float] = None
    financial: Optional[float] = None

    model_config = {"allow_inf_nan": False}


class SmartUpdatePatch(BaseModel):
    """Partial smart-update parameter update; omitted fields keep their value."""

    min_interval_minutes: Optional[float] = Field(default=None, ge=0.0, le=_MAX_INTERVAL_MINUTES)
    max_interval_minutes: Optional[float] = Field(default=None, ge=0.0, le=_MAX_INTERVAL_MINUTES)
    moving_average_window: Optional[int] = Field(default=None, ge=1)
    threshold_sensitivity: Optional[float] = None
    micro_trend_sensitivity: Optional[float] = None
    early_update_variance: Optional[float] = None

    model_config = {"allow_inf_nan": False}

    def to_changes(self) -> dict[str, Any]:
        changes = self.model_dump(exclude_none=True)
        if "min_interval_minutes" in changes:
            changes["min_interval"] = timedelta(minutes=changes.pop("min_interval_minutes"))
        if "max_interval_minutes" in changes:
            changes["max_interval"] = timedelta(minutes=changes.pop("max_interval_minutes"))
        return changes


def config_to_dict(config: EngineConfig) -> dict[str, Any]:
    smart = config.smart_update
    return {
        "weights": asdict(config.weights),
        "smart_update": {
            "min_interval_minutes": smart.min_interval.total_seconds() / 60.0,
            "max_interval_minutes": smart.max_interval.total_seconds() / 60.0,
            "moving_average_window": smart.moving_average_window,
            "threshold_sensitivity": smart.threshold_sensitivity,
            "micro_trend_sensitivity": smart.micro_trend_sensitivity,
            "early_update_variance": smart.early_update_variance,
        },
    }


def create_ovr_router(engine: OVREngine, retention_days: float = 30) -> APIRouter:
    """Factory that wires the OVR endpoints to a concrete engine.

    Args:
        engine: The engine every endpoint reads from or feeds.
        retention_days: Default horizon of the retention sweep.
    """

    router = APIRouter(prefix="/api/ovr", tags=["ovr"])

    @router.post("/ingest", response_model=CompositeScore)
    async def ingest(conditions: Conditions) -> CompositeScore:
        return await engine.ingest(conditions)

    @router.get("/current")
    async def current() -> dict[str, Any]:
        score = engine.get_current()
        return {
            "current": score.model_dump(mode="json") if score is not None else None,
            "category": score_category(score.overall).value if score is not None else None,
            "micro_trend_direction": engine.micro_trend_direction().value,
        }

    @router.get("/history", response_model=list[CompositeScore])
    async def history(limit: int = Query(100, ge=1, le=1000)) -> list[CompositeScore]:
        return engine.get_history(limit)

    @router.get("/window/{window}", response_model=list[CompositeScore])
    async def window(window: HistoryWindow) -> list[CompositeScore]:
        return engine.get_window(window)

    @router.get("/alerts", response_model=list[ThresholdAlert])
    async def alerts(limit: int = Query(10, ge=1, le=1000)) -> list[ThresholdAlert]:
        return engine.get_alerts(limit)

    @router.get("/trends", response_model=list[TrendSummary])
    async def trends(period: Optional[SummaryPeriod] = None) -> list[TrendSummary]:
        return engine.get_trend_summaries(period)

    @router.get("/config")
    async def get_config() -> dict[str, Any]:
        return config_to_dict(engine.get_config())

    @router.patch("/config")
    async def patch_config(patch: SmartUpdatePatch) -> dict[str, Any]:
        changes = patch.to_changes()
        if changes:
            engine.update_config(**changes)
        return config_to_dict(engine.get_config())

    @router.patch("/weights")
    async def patch_weights(patch: WeightsPatch) -> dict[str, Any]:
        changes = patch.model_dump(exclude_none=True)
        if changes:
            engine.update_weights(**changes)
        return config_to_dict(engine.get_config())

    @router.post("/retention")
    async def retention(days: float = Query(retention_days, gt=0)) -> dict[str, Any]:
        removed = await engine.clear_old_data(days)
        return {"retention_days": days, "removed": removed}

    return router
