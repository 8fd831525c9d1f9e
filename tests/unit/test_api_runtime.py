"""Tests for API runtime helpers (engine session and automation runner)."""

from __future__ import annotations

import pytest

from conquest.api.runtime import ApiState, AutomationRunner, EngineSession
from conquest.config import Settings
from conquest.domain import models as dm
from conquest.domain.enums import BattleStatus
from conquest.repository import JsonSnapshotRepository


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _settings(tmp_path, **overrides) -> Settings:
    values = {
        "data_dir": tmp_path,
        "siege_seconds_per_day": 0.0,
        "autostart": False,
        "run_id": "runtime-test",
    }
    values.update(overrides)
    return Settings(**values)


def _session(tmp_path, clock: FakeClock, **overrides) -> EngineSession:
    return EngineSession(
        JsonSnapshotRepository(tmp_path), settings=_settings(tmp_path, **overrides), clock=clock
    )


def test_new_session_starts_fresh_empire(tmp_path):
    session = _session(tmp_path, FakeClock())
    scheduler = session.scheduler
    assert session.last_saved_at is None
    assert len(scheduler.registry.all_cities()) == 12
    assert scheduler.store.get_player_state().resources.gold == 1000
    assert session.catch_up_since_last_save() is None


def test_session_round_trips_through_snapshot(tmp_path):
    clock = FakeClock()
    session = _session(tmp_path, clock)
    session.scheduler.start(clock.now)
    [result] = session.scheduler.tick(clock.now)
    assert result.success
    session.save()

    restored = _session(tmp_path, clock)

    assert restored.last_saved_at == 1000.0
    assert restored.scheduler.statistics == session.scheduler.statistics
    assert list(restored.scheduler.history) == list(session.scheduler.history)
    assert (
        restored.scheduler.store.get_player_state() == session.scheduler.store.get_player_state()
    )


def test_open_sieges_survive_restart(tmp_path):
    clock = FakeClock()
    session = _session(tmp_path, clock, siege_seconds_per_day=30.0)
    session.scheduler.start(clock.now)
    session.scheduler.tick(clock.now)
    [record] = session.scheduler.in_flight()
    session.save()

    restored = _session(tmp_path, clock, siege_seconds_per_day=30.0)
    [reloaded] = restored.scheduler.in_flight()
    assert reloaded == record
    assert restored.scheduler.registry.get_city_by_id(record.city_id).under_siege

    [result] = restored.scheduler.resolve_due(record.resolve_at)
    assert result.record.status == BattleStatus.RESOLVED
    assert int(result.record.id) == 1


@pytest.mark.asyncio
async def test_runner_tick_now_saves_snapshot(tmp_path):
    clock = FakeClock()
    session = _session(tmp_path, clock)
    session.scheduler.start(clock.now)
    runner = AutomationRunner(session)

    results = await runner.tick_now()

    assert len(results) == 1
    assert JsonSnapshotRepository(tmp_path).exists()
    assert session.last_saved_at == 1000.0


@pytest.mark.asyncio
async def test_runner_start_and_stop(tmp_path):
    clock = FakeClock()
    session = _session(tmp_path, clock)
    runner = AutomationRunner(session, autosave=False)

    runner.start()
    assert runner.running
    await runner.stop()
    assert not runner.running


def test_runner_delay_is_bounded(tmp_path):
    clock = FakeClock()
    session = _session(tmp_path, clock)
    runner = AutomationRunner(session)
    assert runner.next_delay() == AutomationRunner.MAX_IDLE_SECONDS
    session.scheduler.start(clock.now)
    assert runner.next_delay() == AutomationRunner.MIN_DELAY_SECONDS


@pytest.mark.asyncio
async def test_startup_applies_offline_progress(tmp_path):
    clock = FakeClock(0.0)
    _session(tmp_path, clock).save()

    clock.now = 10 * 3600.0
    state = ApiState(settings=_settings(tmp_path), clock=clock)
    await state.startup()

    stats = state.scheduler.statistics
    assert stats.total_battles == 41
    assert state.scheduler.store.get_player_state().last_catch_up_anchor == 0.0
    assert state.scheduler.next_check_at == clock.now
    assert not state.runner.running
    await state.shutdown()

    again = ApiState(settings=_settings(tmp_path), clock=clock)
    await again.startup()
    assert again.scheduler.statistics.total_battles == 41
    await again.shutdown()


def test_record_dict_is_json_friendly():
    record = dm.BattleRecord(
        id=dm.BattleID(3),
        city_id=dm.CityID("runan"),
        attacker=dm.CombatantSnapshot(troops=10, power=50.0),
        defender=dm.CombatantSnapshot(troops=5, power=20.0),
        troops_committed=10,
        gold_committed=60,
        started_at=1.0,
        resolve_at=2.0,
    )
    payload = EngineSession.to_record_dict(record)
    assert payload["id"] == 3
    assert payload["status"] == "in_progress"
    assert payload["victor"] is None
