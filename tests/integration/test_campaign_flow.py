"""End-to-end campaign: automation, persistence and victory."""

from __future__ import annotations

from conquest.api.runtime import EngineSession
from conquest.config import Settings
from conquest.domain import events as ev
from conquest.domain import models as dm
from conquest.domain import world_data
from conquest.domain.enums import FailureReason, SchedulerState
from conquest.domain.rules_config import CombatRules, RulesConfig
from conquest.repository import EngineSnapshot, JsonSnapshotRepository

ALWAYS_WIN = RulesConfig(combat=CombatRules(min_probability=1.0, max_probability=1.0))


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _seed_rich_empire(repository: JsonSnapshotRepository) -> None:
    empire = world_data.default_empire()
    empire.resources = dm.ResourceBag(gold=200_000, troops=80_000, food=5_000)
    repository.save(
        EngineSnapshot(
            empire=empire,
            statistics=dm.AutomationStatistics(),
            cities=world_data.default_cities(),
            history=[],
            in_flight=[],
            saved_at=0.0,
        )
    )


def _open_session(tmp_path, clock: FakeClock) -> EngineSession:
    settings = Settings(
        data_dir=tmp_path,
        siege_seconds_per_day=10.0,
        check_interval_seconds=1.0,
        interval_cap_seconds=30.0,
        autostart=False,
        run_id="campaign",
    )
    return EngineSession(
        JsonSnapshotRepository(tmp_path), settings=settings, rules=ALWAYS_WIN, clock=clock
    )


def _advance(session: EngineSession, clock: FakeClock, steps: int) -> None:
    for _ in range(steps):
        clock.now += 60.0
        session.scheduler.tick(clock.now)
        if session.scheduler.paused:
            return


def test_campaign_survives_restart_and_ends_in_victory(tmp_path):
    repository = JsonSnapshotRepository(tmp_path)
    _seed_rich_empire(repository)
    clock = FakeClock()

    session = _open_session(tmp_path, clock)
    session.scheduler.start(clock.now)
    _advance(session, clock, 10)
    assert session.scheduler.in_flight()
    session.save()
    owned_before = set(session.scheduler.store.get_player_state().owned_city_ids)
    assert 0 < len(owned_before) < 12

    resumed = _open_session(tmp_path, clock)
    assert resumed.scheduler.store.get_player_state().owned_city_ids == owned_before
    assert [r.id for r in resumed.scheduler.in_flight()] == [
        r.id for r in session.scheduler.in_flight()
    ]
    resumed.scheduler.start(clock.now)
    _advance(resumed, clock, 200)

    scheduler = resumed.scheduler
    empire = scheduler.store.get_player_state()
    assert scheduler.state == SchedulerState.PAUSED
    assert len(empire.owned_city_ids) == 12
    assert all(city.owner == "player" for city in scheduler.registry.all_cities())
    assert scheduler.in_flight() == []
    assert scheduler.events.of_type(ev.VictoryAchieved) == [ev.VictoryAchieved(cities_owned=12)]

    stats = scheduler.statistics
    assert stats.cities_conquered == 12
    assert stats.victories == stats.total_battles
    assert stats.defeats == 0

    battle_ids = [int(record.id) for record in scheduler.history]
    assert battle_ids == sorted(battle_ids)
    assert len(set(battle_ids)) == len(battle_ids)

    result = scheduler.run_cycle(clock.now)
    assert result.reason == FailureReason.PAUSED
