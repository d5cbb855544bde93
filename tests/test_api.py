"""Tests for the REST and WebSocket surface, driven through FastAPI's TestClient."""

import json

import pytest
from fastapi.testclient import TestClient

from atmos_ovr.config import Settings
from atmos_ovr.core.engine import OVREngine
from atmos_ovr.main import create_app

from tests.factories import ScriptedFinancialProvider

_SENSOR = {
    "heart_rate": 68.0,
    "skin_temperature": 36.8,
    "stress_index": 30.0,
    "air_quality": 80.0,
    "movement": 40.0,
    "observed_at": "2026-01-06T12:00:00Z",
}


@pytest.fixture
def engine() -> OVREngine:
    return OVREngine(financial_provider=ScriptedFinancialProvider([50, 90]))


@pytest.fixture
def client(engine: OVREngine):
    with TestClient(create_app(engine, Settings())) as test_client:
        yield test_client


def _ingest(client: TestClient) -> dict:
    response = client.post("/api/ovr/ingest", json={"sensor": _SENSOR})
    assert response.status_code == 200
    return response.json()


class TestRest:
    def test_current_before_any_tick(self, client: TestClient) -> None:
        body = client.get("/api/ovr/current").json()
        assert body == {"current": None, "category": None, "micro_trend_direction": "stable"}

    def test_ingest_publishes_first_tick(self, client: TestClient, engine: OVREngine) -> None:
        body = _ingest(client)
        assert 0 <= body["overall"] <= 99
        assert body["overall"] == engine.get_current().overall

        current = client.get("/api/ovr/current").json()
        assert current["current"]["overall"] == body["overall"]
        assert current["category"] in {
            "Elite", "Excellent", "Good", "Fair", "Average", "Below Average", "Poor", "Critical",
        }

    def test_ingest_rejects_invalid_conditions(self, client: TestClient) -> None:
        bad = dict(_SENSOR, stress_index=150)
        assert client.post("/api/ovr/ingest", json={"sensor": bad}).status_code == 422

    def test_history_and_window(self, client: TestClient) -> None:
        _ingest(client)
        assert len(client.get("/api/ovr/history").json()) == 1
        assert len(client.get("/api/ovr/window/day").json()) == 1
        assert client.get("/api/ovr/history", params={"limit": 0}).status_code == 422
        assert client.get("/api/ovr/window/year").status_code == 422

    def test_alerts_recorded_between_publishes(self, client: TestClient) -> None:
        _ingest(client)
        _ingest(client)
        alerts = client.get("/api/ovr/alerts").json()
        assert {a["domain"] for a in alerts} >= {"financial"}
        assert all(a["severity"] == "critical" for a in alerts if a["domain"] == "financial")
        assert len(client.get("/api/ovr/history").json()) == 1

    def test_trends(self, client: TestClient) -> None:
        _ingest(client)
        daily = client.get("/api/ovr/trends", params={"period": "daily"}).json()
        assert len(daily) == 1
        assert daily[0]["period"] == "daily"

    def test_config_round_trip(self, client: TestClient, engine: OVREngine) -> None:
        body = client.get("/api/ovr/config").json()
        assert body["smart_update"]["min_interval_minutes"] == 5.0
        assert body["weights"]["biological"] == 0.30

        body = client.patch("/api/ovr/config", json={"min_interval_minutes": 2, "early_update_variance": 20}).json()
        assert body["smart_update"]["min_interval_minutes"] == 2.0
        assert body["smart_update"]["early_update_variance"] == 20.0
        assert engine.get_config().smart_update.min_interval.total_seconds() == 120

        body = client.patch("/api/ovr/weights", json={"financial": 0.5}).json()
        assert body["weights"]["financial"] == 0.5
        assert body["weights"]["emotional"] == 0.25

    def test_config_patch_validation(self, client: TestClient) -> None:
        assert client.patch("/api/ovr/config", json={"moving_average_window": 0}).status_code == 422

    def test_retention(self, client: TestClient) -> None:
        _ingest(client)
        body = client.post("/api/ovr/retention", params={"days": 30}).json()
        assert body["retention_days"] == 30
        assert body["removed"] == {"raw_readings": 0, "composites": 0, "alerts": 0, "trend_summaries": 0}
        assert client.post("/api/ovr/retention", params={"days": 0}).status_code == 422

    def test_health(self, client: TestClient) -> None:
        _ingest(client)
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["retention_days"] == 30
        assert body["raw_readings"] == 1
        assert body["composites"] == 1


class TestConditionsStream:
    def test_round_trip(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/conditions") as ws:
            ws.send_json({"sensor": _SENSOR})
            first = ws.receive_json()
            ws.send_json({"sensor": _SENSOR})
            second = ws.receive_json()

        assert first["status"] == "accepted"
        assert first["decision"] == "force_update"
        assert first["alerts"] == []
        assert [s["period"] for s in first["summaries"]][0] == "daily"

        assert second["decision"] == "defer"
        assert second["composite"] == first["composite"]
        assert any(a["domain"] == "financial" for a in second["alerts"])

    def test_invalid_payload_keeps_connection_open(self, client: TestClient, engine: OVREngine) -> None:
        with client.websocket_connect("/ws/conditions") as ws:
            ws.send_json({"sensor": {"heart_rate": -1}})
            error = ws.receive_json()
            ws.send_json({"sensor": _SENSOR})
            accepted = ws.receive_json()

        assert error["status"] == "error"
        assert error["detail"]
        assert accepted["status"] == "accepted"
        assert engine.stats["raw_readings"] == 1


class TestNonFinitePayloads:
    """Python's json module reads Infinity and NaN literals, so they reach validation."""

    @staticmethod
    def _send(client: TestClient, method: str, url: str, payload: dict):
        return client.request(
            method,
            url,
            content=json.dumps(payload),
            headers={"content-type": "application/json"},
        )

    @pytest.mark.parametrize("value", [float("inf"), float("nan")])
    def test_ingest_rejects_non_finite_financial_inputs(
        self, client: TestClient, engine: OVREngine, value: float
    ) -> None:
        payload = {"sensor": _SENSOR, "financial": {"budget_adherence": value}}
        response = self._send(client, "POST", "/api/ovr/ingest", payload)
        assert response.status_code == 422
        assert response.json()["detail"]
        assert engine.stats["raw_readings"] == 0

    def test_ingest_rejects_non_finite_sensor_values(self, client: TestClient) -> None:
        payload = {"sensor": dict(_SENSOR, skin_temperature=float("-inf"))}
        assert self._send(client, "POST", "/api/ovr/ingest", payload).status_code == 422

    def test_weights_patch_rejects_non_finite(self, client: TestClient, engine: OVREngine) -> None:
        response = self._send(client, "PATCH", "/api/ovr/weights", {"financial": float("inf")})
        assert response.status_code == 422
        assert engine.get_config().weights.financial == 0.25
        _ingest(client)

    def test_config_patch_rejects_non_finite(self, client: TestClient) -> None:
        for field in ("threshold_sensitivity", "early_update_variance", "micro_trend_sensitivity"):
            response = self._send(client, "PATCH", "/api/ovr/config", {field: float("nan")})
            assert response.status_code == 422

    def test_config_patch_rejects_unbounded_interval(self, client: TestClient) -> None:
        response = client.patch("/api/ovr/config", json={"max_interval_minutes": 1e300})
        assert response.status_code == 422

    def test_stream_answers_non_finite_frame_with_error(self, client: TestClient, engine: OVREngine) -> None:
        with client.websocket_connect("/ws/conditions") as ws:
            ws.send_text(json.dumps({"sensor": _SENSOR, "financial": {"savings_progress": float("inf")}}))
            error = ws.receive_json()
            ws.send_json({"sensor": _SENSOR})
            accepted = ws.receive_json()

        assert error["status"] == "error"
        assert accepted["status"] == "accepted"
        assert engine.stats["raw_readings"] == 1
