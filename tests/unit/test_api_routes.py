"""Tests for the FastAPI layer."""

from __future__ import annotations

import asyncio
import threading

import pytest
from httpx import ASGITransport, AsyncClient

from conquest.api.app import create_app
from conquest.api.runtime import ApiState
from conquest.config import Settings
from conquest.repository import JsonSnapshotRepository


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _make_app(tmp_path, clock: FakeClock):
    def factory() -> ApiState:
        settings = Settings(
            data_dir=tmp_path,
            check_interval_seconds=0.5,
            siege_seconds_per_day=0.0,
            autostart=False,
        )
        return ApiState(settings=settings, clock=clock)

    app = create_app(state_factory=factory)
    transport = ASGITransport(app=app)
    return app, transport


@pytest.mark.asyncio
async def test_read_only_endpoints(tmp_path):
    app, transport = _make_app(tmp_path, FakeClock())

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

        response = await client.get("/empire")
        assert response.status_code == 200
        empire = response.json()
        assert empire["resources"] == {"gold": 1000, "troops": 600, "food": 500}
        assert empire["available"]["gold"] == 800
        assert empire["owned_city_ids"] == []

        response = await client.get("/cities")
        cities = response.json()
        assert len(cities) == 12
        unlocked = sorted(city["id"] for city in cities if city["unlocked"])
        assert unlocked == ["pingyuan", "runan", "xiaopei"]

        response = await client.get("/cities/luoyang")
        assert response.json()["tier"] == "capital"
        response = await client.get("/cities/atlantis")
        assert response.status_code == 404

        response = await client.get("/candidates")
        plans = response.json()
        assert {plan["city_id"] for plan in plans} <= {"pingyuan", "runan", "xiaopei"}
        scores = [plan["score"] for plan in plans]
        assert scores == sorted(scores, reverse=True)


@pytest.mark.asyncio
async def test_automation_lifecycle_via_api(tmp_path):
    clock = FakeClock()
    app, transport = _make_app(tmp_path, clock)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.get("/automation")
        status_payload = response.json()
        assert status_payload["state"] == "idle"
        assert status_payload["running"] is False
        assert status_payload["next_check_at"] == 1000.0

        response = await client.post("/automation/tick")
        assert response.status_code == 200
        [result] = response.json()
        assert result["success"] is True
        assert result["record"]["status"] == "resolved"
        assert result["plan"]["city_id"] == result["record"]["city_id"]

        response = await client.get("/history")
        assert [record["id"] for record in response.json()] == [1]

        response = await client.get("/statistics")
        assert response.json()["total_battles"] == 1

        response = await client.post("/automation/pause")
        assert response.json()["paused"] is True
        clock.now = 2000.0
        response = await client.post("/automation/tick")
        assert response.json() == []

        response = await client.post("/automation/resume")
        resumed = response.json()
        assert resumed["paused"] is False
        assert resumed["next_check_at"] == pytest.approx(2000.0 + resumed["interval_seconds"])

        response = await client.put("/automation/settings", json={"aggression": "aggressive"})
        assert response.json()["settings"]["aggression"] == "aggressive"
        response = await client.put("/automation/settings", json={"reserve_percentage": 2})
        assert response.status_code == 422

        response = await client.post("/statistics/reset")
        assert response.json()["total_battles"] == 0

    stored = JsonSnapshotRepository(tmp_path).load()
    assert stored.statistics.total_battles == 0
    assert stored.empire.settings.aggression == "aggressive"


@pytest.mark.asyncio
async def test_attack_endpoint_reports_results(tmp_path):
    app, transport = _make_app(tmp_path, FakeClock())

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.post("/attacks", json={"city_id": "atlantis", "troops": 10})
        assert response.status_code == 404

        response = await client.post("/attacks", json={"city_id": "luoyang", "troops": 10})
        assert response.status_code == 200
        assert response.json()["reason"] == "locked"

        response = await client.post("/attacks", json={"city_id": "runan", "troops": -3})
        assert response.json()["reason"] == "invalid_participant"

        response = await client.post("/attacks", json={"city_id": "runan", "troops": 5000})
        assert response.json()["reason"] == "cannot_afford"

        response = await client.post("/attacks", json={"city_id": "runan", "troops": 200})
        payload = response.json()
        assert payload["success"] is True
        assert payload["record"]["manual"] is True
        assert payload["record"]["troops_committed"] == 200


@pytest.mark.asyncio
async def test_offline_catch_up_via_api(tmp_path):
    app, transport = _make_app(tmp_path, FakeClock())

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        body = {"last_active_at": 0.0, "now": 36000.0}
        response = await client.post("/offline/catch-up", json=body)
        assert response.status_code == 200
        payload = response.json()
        assert payload["applied"] is True
        assert payload["result"]["battles_fought"] == 41
        assert payload["result"]["cities_conquered"] == 3

        response = await client.post("/offline/catch-up", json=body)
        assert response.json() == {"applied": False, "result": None}

        response = await client.post(
            "/offline/catch-up", json={"last_active_at": 50.0, "now": 10.0}
        )
        assert response.status_code == 400

        response = await client.get("/empire")
        assert len(response.json()["owned_city_ids"]) == 3


@pytest.mark.asyncio
async def test_reads_wait_for_tick_in_worker_thread(tmp_path, monkeypatch):
    app, transport = _make_app(tmp_path, FakeClock())

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        scheduler = app.state.api_state.scheduler
        original_tick = scheduler.tick
        entered = threading.Event()
        release = threading.Event()

        def held_tick(now: float):
            entered.set()
            release.wait(5)
            return original_tick(now)

        monkeypatch.setattr(scheduler, "tick", held_tick)

        tick = asyncio.create_task(client.post("/automation/tick"))
        try:
            assert await asyncio.to_thread(entered.wait, 5)
            history = asyncio.create_task(client.get("/history"))
            status_check = asyncio.create_task(client.get("/automation"))
            await asyncio.sleep(0.05)
            assert not history.done()
            assert not status_check.done()
        finally:
            release.set()

        response = await tick
        assert response.json()[0]["success"] is True
        response = await history
        assert [record["id"] for record in response.json()] == [1]
        response = await status_check
        assert response.json()["state"] == "idle"


@pytest.mark.asyncio
async def test_cors_origins_come_from_settings(tmp_path):
    settings = Settings(data_dir=tmp_path, autostart=False, cors_origins=["http://camp.test"])
    app = create_app(
        state_factory=lambda: ApiState(settings=settings, clock=FakeClock()),
        settings=settings,
    )
    transport = ASGITransport(app=app)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        preflight = {"Access-Control-Request-Method": "POST"}
        response = await client.options(
            "/attacks", headers={"Origin": "http://camp.test", **preflight}
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://camp.test"

        response = await client.options(
            "/attacks", headers={"Origin": "http://elsewhere.test", **preflight}
        )
        assert response.status_code == 400

        response = await client.get("/cities/atlantis")
        assert response.status_code == 404
        assert "atlantis" in response.json()["detail"]
