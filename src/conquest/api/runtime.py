"""Runtime primitives backing the conquest HTTP API."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import asdict

from conquest.config import Settings, get_settings
from conquest.domain import economy, targeting, world_data
from conquest.domain import models as dm
from conquest.domain.rules_config import DEFAULT_RULES, RulesConfig
from conquest.domain.scheduler import CycleResult, ProgressionScheduler
from conquest.factory import create_scheduler
from conquest.repository import EngineSnapshot, JsonSnapshotRepository

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class EngineSession:
    """Owns the live scheduler and moves it in and out of snapshots."""

    def __init__(
        self,
        repository: JsonSnapshotRepository,
        *,
        settings: Settings,
        rules: RulesConfig = DEFAULT_RULES,
        clock: Clock = time.time,
        slot: str = "default",
    ) -> None:
        self._repository = repository
        self._settings = settings
        self._rules = rules
        self._clock = clock
        self._slot = slot
        self.last_saved_at: float | None = None
        self.scheduler = self._load_or_create()

    def _load_or_create(self) -> ProgressionScheduler:
        if self._repository.exists(self._slot):
            snapshot = self._repository.load(self._slot)
            self.last_saved_at = snapshot.saved_at
            logger.info("restored snapshot %r saved at %s", self._slot, snapshot.saved_at)
            empire, cities = snapshot.empire, snapshot.cities
            statistics, history = snapshot.statistics, snapshot.history
            in_flight = snapshot.in_flight
        else:
            logger.warning("no snapshot in slot %r; starting a new empire", self._slot)
            empire, cities = world_data.default_empire(), world_data.default_cities()
            statistics, history, in_flight = None, [], []

        return create_scheduler(
            empire,
            cities,
            statistics=statistics,
            history=history,
            in_flight=in_flight,
            siege_seconds_per_day=self._settings.siege_seconds_per_day,
            initial_interval_seconds=self._settings.check_interval_seconds,
            interval_cap_seconds=self._settings.interval_cap_seconds,
            history_size=self._settings.history_size,
            run_id=self._settings.run_id,
            rules=self._rules,
        )

    def now(self) -> float:
        return self._clock()

    def snapshot(self) -> EngineSnapshot:
        """Capture the current session state, open sieges included."""

        scheduler = self.scheduler
        return EngineSnapshot(
            empire=scheduler.store.get_player_state(),
            statistics=scheduler.statistics,
            cities=scheduler.registry.all_cities(),
            history=list(scheduler.history),
            in_flight=scheduler.in_flight(),
            saved_at=self.now(),
        )

    def save(self) -> None:
        snapshot = self.snapshot()
        self._repository.save(snapshot, self._slot)
        self.last_saved_at = snapshot.saved_at

    def catch_up_since_last_save(self) -> dm.OfflineProgressResult | None:
        if self.last_saved_at is None:
            return None
        return self.scheduler.catch_up(self.last_saved_at, self.now())

    # --- Serialisation helpers ---------------------------------------------------

    @staticmethod
    def to_empire_dict(empire: dm.EmpireState, rules: RulesConfig) -> dict[str, object]:
        return {
            "resources": asdict(empire.resources),
            "available": {
                "gold": economy.available_gold(empire, rules=rules),
                "troops": economy.available_troops(empire, rules=rules),
                "food": economy.available_food(empire, rules=rules),
            },
            "attributes": asdict(empire.attributes),
            "owned_city_ids": sorted(empire.owned_city_ids),
            "settings": {
                "aggression": str(empire.settings.aggression),
                "reserve_percentage": empire.settings.reserve_percentage,
                "max_concurrent_battles": empire.settings.max_concurrent_battles,
            },
            "level": empire.level,
            "experience": empire.experience,
            "equipment_tokens": empire.equipment_tokens,
        }

    @staticmethod
    def to_city_dict(city: dm.City, empire: dm.EmpireState) -> dict[str, object]:
        return {
            "id": city.id,
            "name": city.name,
            "tier": str(city.tier),
            "owner": str(city.owner),
            "garrison": city.garrison,
            "base_defense": city.base_defense,
            "yields": asdict(city.yields),
            "under_siege": city.under_siege,
            "unlocked": targeting.is_unlocked(city, empire),
        }

    @staticmethod
    def to_plan_dict(plan: dm.BattlePlan) -> dict[str, object]:
        return {
            "city_id": plan.city_id,
            "troop_allocation": plan.troop_allocation,
            "cost": asdict(plan.cost),
            "success_probability": plan.success_probability,
            "expected_rewards": asdict(plan.expected_rewards),
            "difficulty_rating": plan.difficulty_rating,
            "score": plan.score,
        }

    @staticmethod
    def to_record_dict(record: dm.BattleRecord) -> dict[str, object]:
        outcome = record.outcome
        return {
            "id": int(record.id),
            "city_id": record.city_id,
            "status": str(record.status),
            "troops_committed": record.troops_committed,
            "gold_committed": record.gold_committed,
            "started_at": record.started_at,
            "resolve_at": record.resolve_at,
            "resolved_at": record.resolved_at,
            "manual": record.manual,
            "victor": str(outcome.victor) if outcome is not None else None,
            "casualties": asdict(outcome.casualties) if outcome is not None else None,
            "rewards": asdict(outcome.rewards) if outcome is not None else None,
        }

    @staticmethod
    def to_result_dict(result: CycleResult) -> dict[str, object]:
        return {
            "success": result.success,
            "detail": result.detail,
            "reason": str(result.reason) if result.reason is not None else None,
            "plan": EngineSession.to_plan_dict(result.plan) if result.plan is not None else None,
            "record": (
                EngineSession.to_record_dict(result.record) if result.record is not None else None
            ),
        }

    @staticmethod
    def to_offline_dict(result: dm.OfflineProgressResult) -> dict[str, object]:
        return asdict(result)


class AutomationRunner:
    """Background loop that feeds the scheduler the wall clock."""

    MIN_DELAY_SECONDS = 0.05
    MAX_IDLE_SECONDS = 5.0

    def __init__(self, session: EngineSession, *, autosave: bool = True) -> None:
        self._session = session
        self._autosave = autosave
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self.lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run_loop(), name="conquest-automation-loop")

    async def stop(self) -> None:
        task = self._task
        if task is None:
            return
        self._stop_event.set()
        await task
        self._task = None

    async def tick_now(self) -> list[CycleResult]:
        """Run one scheduler tick immediately under the shared lock."""

        async with self.lock:
            return await asyncio.to_thread(self._tick_sync)

    def next_delay(self) -> float:
        delay = self._session.scheduler.seconds_until_next_event(self._session.now())
        if delay is None:
            return self.MAX_IDLE_SECONDS
        return min(self.MAX_IDLE_SECONDS, max(self.MIN_DELAY_SECONDS, delay))

    async def _run_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                async with self.lock:
                    delay = self.next_delay()
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
                    break
                except TimeoutError:
                    pass
                await self.tick_now()
        finally:
            self._task = None

    def _tick_sync(self) -> list[CycleResult]:
        results = self._session.scheduler.tick(self._session.now())
        for result in results:
            if not result.success:
                logger.debug("automation step skipped: %s (%s)", result.detail, result.reason)
        if results and self._autosave:
            self._session.save()
        return results


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        rules: RulesConfig = DEFAULT_RULES,
        clock: Clock = time.time,
    ) -> None:
        self.settings = settings or get_settings()
        self.repository = JsonSnapshotRepository(self.settings.data_dir)
        self.rules = rules
        self.session = EngineSession(
            self.repository, settings=self.settings, rules=rules, clock=clock
        )
        self.runner = AutomationRunner(self.session)

    @property
    def scheduler(self) -> ProgressionScheduler:
        return self.session.scheduler

    async def startup(self) -> None:
        async with self.runner.lock:
            result = self.session.catch_up_since_last_save()
            if result is not None:
                logger.info("applied %.2f offline hours on startup", result.offline_hours)
            self.scheduler.start(self.session.now())
            self.session.save()
        if self.settings.autostart:
            self.runner.start()

    async def shutdown(self) -> None:
        await self.runner.stop()
        async with self.runner.lock:
            self.session.save()


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
