"""atmos-ovr — Overall Alignment aggregation service.

This is the application entry point.  It wires the financial provider,
TrendSummarizer, OVREngine, and the REST / WebSocket endpoints together.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from zoneinfo import ZoneInfo

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from atmos_ovr.api.ovr import create_ovr_router
from atmos_ovr.api.ws_conditions import create_conditions_router
from atmos_ovr.config import Settings, settings
from atmos_ovr.core.engine import OVREngine
from atmos_ovr.core.trends import TrendSummarizer
from atmos_ovr.domain.config import DomainWeights, EngineConfig, SmartUpdateConfig
from atmos_ovr.scoring.financial import (
    FinancialScoreProvider,
    HeuristicFinancialProvider,
    LedgerFinancialProvider,
)

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Wiring ───────────────────────────────────────────────────────────────────

def build_financial_provider(cfg: Settings) -> FinancialScoreProvider:
    """Ledger lookup when a ledger URL is configured, heuristic otherwise."""
    if cfg.ledger_url:
        logger.info("Financial scores from ledger at %s", cfg.ledger_url)
        return LedgerFinancialProvider(
            base_url=cfg.ledger_url,
            api_key=cfg.ledger_api_key,
            timeout=cfg.ledger_timeout_seconds,
            cache_ttl=timedelta(minutes=cfg.ledger_cache_minutes),
        )
    logger.info("No ledger configured; financial scores from heuristic inputs")
    return HeuristicFinancialProvider()


def build_engine(cfg: Settings) -> OVREngine:
    config = EngineConfig(
        weights=DomainWeights(
            biological=cfg.weight_biological,
            emotional=cfg.weight_emotional,
            environmental=cfg.weight_environmental,
            financial=cfg.weight_financial,
        ),
        smart_update=SmartUpdateConfig(
            min_interval=timedelta(minutes=cfg.min_interval_minutes),
            max_interval=timedelta(minutes=cfg.max_interval_minutes),
            moving_average_window=cfg.moving_average_window,
            threshold_sensitivity=cfg.threshold_sensitivity,
            micro_trend_sensitivity=cfg.micro_trend_sensitivity,
            early_update_variance=cfg.early_update_variance,
        ),
    )
    return OVREngine(
        config=config,
        financial_provider=build_financial_provider(cfg),
        summarizer=TrendSummarizer(
            tz=ZoneInfo(cfg.trend_timezone),
            weekly_start_weekday=cfg.weekly_start_weekday,
            monthly_start_day=cfg.monthly_start_day,
        ),
        raw_capacity=cfg.raw_capacity,
        history_capacity=cfg.history_capacity,
        alert_capacity=cfg.alert_capacity,
        summary_capacity=cfg.summary_capacity,
    )


def create_app(engine: OVREngine, cfg: Settings) -> FastAPI:
    app = FastAPI(
        title=cfg.app_name,
        description="Overall Alignment: adaptive aggregation, alerting and trends",
        version="0.3.0",
        debug=cfg.debug,
    )

    app.include_router(create_ovr_router(engine, retention_days=cfg.retention_days))
    app.include_router(create_conditions_router(engine))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Rejected inputs are not echoed back; non-finite floats are not valid JSON
        detail = [
            {key: value for key, value in error.items() if key not in ("input", "ctx")}
            for error in exc.errors()
        ]
        return JSONResponse(status_code=422, content={"detail": jsonable_encoder(detail)})

    @app.get("/health")
    async def health() -> dict:
        return {
            "status": "ok",
            "retention_days": cfg.retention_days,
            **engine.stats,
        }

    return app


# ── App ──────────────────────────────────────────────────────────────────────

engine = build_engine(settings)
app = create_app(engine, settings)
