"""WebSocket endpoint for the per-tick producer stream.

Path: /ws/conditions

Accepts JSON matching the Conditions schema, validates it at the boundary,
feeds it to the engine, and acknowledges with the current composite plus
whatever alerts and summaries the tick produced.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from atmos_ovr.core.engine import OVREngine
from atmos_ovr.domain.conditions import Conditions

logger = logging.getLogger(__name__)


def create_conditions_router(engine: OVREngine) -> APIRouter:
    """Factory that wires the producer stream to a concrete engine."""

    router = APIRouter()

    @router.websocket("/ws/conditions")
    async def stream_conditions(websocket: WebSocket) -> None:
        await websocket.accept()
        logger.info("Conditions producer connected")

        try:
            while True:
                raw = await websocket.receive_json()

                # ── Validate at the boundary ─────────────────────────────
                try:
                    conditions = Conditions.model_validate(raw)
                except ValidationError as exc:
                    await websocket.send_json({
                        "status": "error",
                        "detail": exc.errors(include_url=False, include_context=False, include_input=False),
                    })
                    continue

                # ── Ingest ───────────────────────────────────────────────
                outcome = await engine.ingest_tick(conditions)

                # ── Acknowledge ──────────────────────────────────────────
                await websocket.send_json({
                    "status": "accepted",
                    "decision": outcome.decision.value,
                    "composite": outcome.composite.model_dump(mode="json"),
                    "alerts": [a.model_dump(mode="json") for a in outcome.alerts],
                    "summaries": [s.model_dump(mode="json") for s in outcome.summaries],
                })

        except WebSocketDisconnect:
            logger.info("Conditions producer disconnected")

    return router
