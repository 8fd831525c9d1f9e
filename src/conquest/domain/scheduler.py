"""Progression scheduler: the automation loop driving target selection and sieges.

The scheduler never sleeps.  Callers feed it the current time through
:meth:`ProgressionScheduler.tick`; the pacing timer and every siege deadline
are plain timestamps compared against that clock.  All mutation of the
empire, the city registry and the statistics happens inside those calls,
so a single caller serialises the whole engine.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, replace

from conquest.domain import combat, economy, offline, progression, targeting
from conquest.domain import difficulty as difficulty_rules
from conquest.domain import statistics as statistics_writer
from conquest.domain.enums import BattleStatus, FailureReason, SchedulerState, Victor
from conquest.domain.errors import ParticipantValidationError
from conquest.domain.events import (
    AutomationPaused,
    AutomationResumed,
    BattleCompleted,
    BattleStarted,
    CityConquered,
    DifficultyScalingApplied,
    EventBus,
    OfflineProgressCalculated,
    VictoryAchieved,
)
from conquest.domain.models import (
    AutomationStatistics,
    BattleID,
    BattlePlan,
    BattleRecord,
    CityID,
    CombatantSnapshot,
    OfflineProgressResult,
    ResourceBag,
)
from conquest.domain.rules_config import DEFAULT_RULES, RulesConfig
from conquest.interfaces.cities import ICityRegistry
from conquest.interfaces.economy import IResourceStore
from conquest.utils.rng import generate_seed

logger = logging.getLogger(__name__)

PAUSE_REASON_USER = "user"
PAUSE_REASON_VICTORY = "victory"


@dataclass(slots=True)
class CycleResult:
    """Outcome of one scheduler action (cycle, manual attack or resolution)."""

    success: bool
    detail: str
    reason: FailureReason | None = None
    plan: BattlePlan | None = None
    record: BattleRecord | None = None


class ProgressionScheduler:
    """Timer-paced automation loop with a concurrency gate on open sieges."""

    def __init__(
        self,
        store: IResourceStore,
        registry: ICityRegistry,
        *,
        statistics: AutomationStatistics | None = None,
        events: EventBus | None = None,
        history: Iterable[BattleRecord] = (),
        in_flight: Iterable[BattleRecord] = (),
        run_id: str = "conquest",
        initial_interval_seconds: float | None = None,
        interval_cap_seconds: float | None = None,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        self._store = store
        self._registry = registry
        self._rules = rules
        self._run_id = run_id
        self.statistics = statistics if statistics is not None else AutomationStatistics()
        self.events = events if events is not None else EventBus()
        self.history: deque[BattleRecord] = deque(history, maxlen=rules.scheduler.history_size)

        self._interval = initial_interval_seconds or rules.scheduler.initial_interval_seconds
        self._interval_cap = interval_cap_seconds or rules.scheduler.interval_cap_seconds
        self._state = SchedulerState.IDLE
        self._next_check_at: float | None = None
        self._in_flight: dict[BattleID, BattleRecord] = {
            record.id: record for record in in_flight if record.status == BattleStatus.IN_PROGRESS
        }
        self._last_difficulty: float | None = None

        known = [*self.history, *self._in_flight.values()]
        last_id = max((int(record.id) for record in known), default=0)
        self._next_battle_id = max(last_id, self.statistics.total_battles) + 1

    # --- Introspection ----------------------------------------------------------

    @property
    def store(self) -> IResourceStore:
        return self._store

    @property
    def registry(self) -> ICityRegistry:
        return self._registry

    @property
    def rules(self) -> RulesConfig:
        return self._rules

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def paused(self) -> bool:
        return self._state == SchedulerState.PAUSED

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def next_check_at(self) -> float | None:
        return self._next_check_at

    def in_flight(self) -> list[BattleRecord]:
        """Open sieges ordered by deadline."""

        return sorted(self._in_flight.values(), key=lambda record: (record.resolve_at, record.id))

    def seconds_until_next_event(self, now: float) -> float | None:
        """Delay before the next timer check or siege deadline, if any."""

        deadlines = [record.resolve_at for record in self._in_flight.values()]
        if self._next_check_at is not None:
            deadlines.append(self._next_check_at)
        if not deadlines:
            return None
        return max(0.0, min(deadlines) - now)

    # --- Lifecycle --------------------------------------------------------------

    def start(self, now: float) -> None:
        """Arm the pacing timer so the next tick runs a cycle."""

        if self.paused:
            return
        self._next_check_at = now

    def pause(self, reason: str = PAUSE_REASON_USER) -> None:
        """Stop the pacing timer; open sieges still resolve."""

        if self.paused:
            return
        self._state = SchedulerState.PAUSED
        self._next_check_at = None
        logger.info("automation paused (%s)", reason)
        self.events.publish(AutomationPaused(reason=reason))

    def resume(self, now: float) -> None:
        """Return to idle and re-arm the pacing timer."""

        if not self.paused:
            return
        self._state = SchedulerState.IDLE
        self._next_check_at = now + self._interval
        logger.info("automation resumed")
        self.events.publish(AutomationResumed())

    def tick(self, now: float) -> list[CycleResult]:
        """Resolve due sieges, then run a cycle when the timer has fired."""

        results = self.resolve_due(now)
        if (
            not self.paused
            and self._next_check_at is not None
            and now >= self._next_check_at
        ):
            results.append(self.run_cycle(now))
        return results

    # --- Automation cycle -------------------------------------------------------

    def run_cycle(self, now: float) -> CycleResult:
        """Select a target and commit to it in one step."""

        if self.paused:
            return CycleResult(False, "automation is paused", reason=FailureReason.PAUSED)

        empire = self._store.get_player_state()
        if len(self._in_flight) >= empire.settings.max_concurrent_battles:
            self._schedule_next(now, grow=False)
            return CycleResult(
                False,
                f"{len(self._in_flight)} sieges already in progress",
                reason=FailureReason.CONCURRENCY_LIMIT,
            )

        self._state = SchedulerState.SELECTING_TARGET
        try:
            combat.validate_attacker(combat.attacker_payload(empire, empire.resources.troops))
        except ParticipantValidationError as exc:
            self._return_to_idle()
            self._schedule_next(now, grow=False)
            return CycleResult(False, f"invalid attacker: {exc.detail}", reason=exc.reason)

        cities = self._registry.all_cities()
        self._announce_difficulty()
        plan = targeting.select_target(empire, cities, self.statistics, rules=self._rules)

        if plan is None:
            self._return_to_idle()
            if cities and all(targeting.is_owned(city, empire) for city in cities):
                self._declare_victory(len(cities))
                return CycleResult(False, "every city is conquered", reason=FailureReason.NO_TARGET)
            self._schedule_next(now, grow=False)
            return CycleResult(False, "no eligible target", reason=FailureReason.NO_TARGET)

        result = self._commit(plan, now, manual=False)
        self._return_to_idle()
        self._schedule_next(now, grow=result.success)
        return result

    def manual_attack(self, city_id: CityID, troops: int, now: float) -> CycleResult:
        """Player-initiated attack sharing the concurrency gate and guardrail.

        Raises:
            CityNotFoundError: If ``city_id`` is not in the registry
        """

        city = self._registry.get_city_by_id(city_id)
        empire = self._store.get_player_state()
        if targeting.is_owned(city, empire):
            return CycleResult(False, f"{city.name} is already held", reason=FailureReason.ALREADY_OWNED)
        if city.under_siege:
            return CycleResult(
                False, f"{city.name} is already under siege", reason=FailureReason.UNDER_SIEGE
            )
        if not targeting.is_unlocked(city, empire):
            return CycleResult(False, f"{city.name} is still locked", reason=FailureReason.LOCKED)
        if len(self._in_flight) >= empire.settings.max_concurrent_battles:
            return CycleResult(
                False,
                f"{len(self._in_flight)} sieges already in progress",
                reason=FailureReason.CONCURRENCY_LIMIT,
            )
        try:
            combat.validate_attacker(combat.attacker_payload(empire, troops))
        except ParticipantValidationError as exc:
            return CycleResult(False, f"invalid attacker: {exc.detail}", reason=exc.reason)

        plan = targeting.plan_attack(
            city,
            empire,
            difficulty=difficulty_rules.current_difficulty(
                self.statistics, len(empire.owned_city_ids), rules=self._rules
            ),
            win_rate=difficulty_rules.rolling_win_rate(self.statistics, rules=self._rules),
            troops=troops,
            rules=self._rules,
        )
        return self._commit(plan, now, manual=True)

    def _commit(self, plan: BattlePlan, now: float, *, manual: bool) -> CycleResult:
        city = self._registry.get_city_by_id(plan.city_id)
        empire = self._store.get_player_state()
        if targeting.is_owned(city, empire):
            return CycleResult(
                False, f"{city.name} is already held", reason=FailureReason.ALREADY_OWNED, plan=plan
            )
        if city.under_siege:
            return CycleResult(
                False,
                f"{city.name} is already under siege",
                reason=FailureReason.UNDER_SIEGE,
                plan=plan,
            )

        cost = economy.cost_to_bag(plan.cost, troops=plan.troop_allocation)
        if not economy.can_afford(empire, cost, rules=self._rules):
            return CycleResult(
                False,
                f"cannot afford {cost.gold} gold and {cost.troops} troops for {city.name}",
                reason=FailureReason.CANNOT_AFFORD,
                plan=plan,
            )

        siege = self._registry.start_siege(city.id, plan.troop_allocation)
        if not siege.success:
            return CycleResult(False, siege.detail, reason=FailureReason.SIEGE_REJECTED, plan=plan)

        self._store.subtract_resources(cost)
        record = BattleRecord(
            id=BattleID(self._next_battle_id),
            city_id=city.id,
            attacker=CombatantSnapshot(
                troops=plan.troop_allocation,
                power=combat.player_power(
                    empire.attributes, plan.troop_allocation, rules=self._rules
                ),
                morale=self._rules.combat.attacker_morale,
            ),
            defender=CombatantSnapshot(
                troops=city.garrison,
                power=combat.defender_power(city, plan.difficulty_rating),
                morale=self._rules.combat.defender_morale,
            ),
            troops_committed=plan.troop_allocation,
            gold_committed=cost.gold,
            started_at=now,
            resolve_at=now + siege.duration_seconds,
            difficulty=plan.difficulty_rating,
            manual=manual,
        )
        self._next_battle_id += 1
        self._in_flight[record.id] = record
        self.events.publish(
            BattleStarted(
                battle_id=record.id,
                city_id=city.id,
                attacker_power=record.attacker.power,
                defender_power=record.defender.power,
                troops=record.troops_committed,
            )
        )

        if siege.duration_seconds <= 0:
            resolved = self._resolve(record, now)
            return replace(resolved, plan=plan)
        return CycleResult(True, siege.detail, plan=plan, record=record)

    # --- Resolution -------------------------------------------------------------

    def resolve_due(self, now: float) -> list[CycleResult]:
        """Resolve every open siege whose deadline has passed."""

        due = [record for record in self.in_flight() if record.resolve_at <= now]
        return [self._resolve(record, now) for record in due]

    def _resolve(self, record: BattleRecord, now: float) -> CycleResult:
        if record.status != BattleStatus.IN_PROGRESS:
            self._in_flight.pop(record.id, None)
            return CycleResult(
                False,
                f"battle {int(record.id)} already {record.status}",
                reason=FailureReason.ALREADY_RESOLVED,
                record=record,
            )

        previous_state = self._state
        if not self.paused:
            self._state = SchedulerState.RESOLVING

        city = self._registry.get_city_by_id(record.city_id)
        empire = self._store.get_player_state()
        if targeting.is_owned(city, empire):
            self._cancel(record, now)
            self._restore_state(previous_state)
            logger.warning("siege of %s ended: city already held", city.name)
            return CycleResult(
                False,
                f"{city.name} was already taken; troops returned",
                reason=FailureReason.ALREADY_OWNED,
                record=record,
            )

        resolution = combat.resolve_battle(
            combat.attacker_payload(empire, record.troops_committed),
            city,
            difficulty=record.difficulty,
            win_rate=difficulty_rules.rolling_win_rate(self.statistics, rules=self._rules),
            seed=generate_seed(self._run_id, int(record.id), "battle"),
            rules=self._rules,
        )
        if not resolution.success or resolution.outcome is None:
            self._cancel(record, now)
            self._restore_state(previous_state)
            return CycleResult(False, resolution.detail, reason=resolution.reason, record=record)

        outcome = resolution.outcome
        survivors = max(0, record.troops_committed - outcome.casualties.attacker)
        self._store.add_resources(ResourceBag(troops=survivors))

        spoils = ResourceBag()
        conquered = False
        if outcome.victor == Victor.ATTACKER:
            self._store.add_resources(ResourceBag(gold=outcome.rewards.gold))
            progression.grant_experience(empire, outcome.rewards.experience, rules=self._rules)
            empire.equipment_tokens += outcome.rewards.equipment_tokens
            conquest = self._registry.execute_conquest(city.id)
            if conquest.success:
                conquered = True
                spoils = conquest.spoils
                self._store.add_resources(spoils)
                empire.owned_city_ids.add(city.id)
            else:
                self._registry.end_siege(city.id)
        else:
            self._registry.end_siege(city.id, outcome.casualties.defender)

        record.status = BattleStatus.RESOLVED
        record.outcome = outcome
        record.resolved_at = now
        self._archive(record)
        self._apply_battle_result(record, spoils, conquered)

        self.events.publish(
            BattleCompleted(
                battle_id=record.id,
                city_id=city.id,
                victor=outcome.victor,
                casualties=outcome.casualties,
                rewards=outcome.rewards,
            )
        )
        if conquered:
            self.events.publish(CityConquered(city_id=city.id, city_name=city.name, spoils=spoils))

        self._restore_state(previous_state)
        return CycleResult(True, resolution.detail, record=record)

    def _apply_battle_result(
        self, record: BattleRecord, spoils: ResourceBag, conquered: bool
    ) -> None:
        if record.outcome is None:
            return
        statistics_writer.record_battle(
            self.statistics,
            record.outcome,
            spoils_gold=spoils.gold,
            conquered=conquered,
            total_cities=len(self._registry.all_cities()),
        )

    def _cancel(self, record: BattleRecord, now: float) -> None:
        self._store.add_resources(ResourceBag(troops=record.troops_committed))
        city = self._registry.get_city_by_id(record.city_id)
        if city.under_siege:
            self._registry.end_siege(city.id)
        record.status = BattleStatus.CANCELLED
        record.resolved_at = now
        self._archive(record)

    def _archive(self, record: BattleRecord) -> None:
        self._in_flight.pop(record.id, None)
        self.history.append(record)

    # --- Offline catch-up -------------------------------------------------------

    def catch_up(self, last_active_at: float, now: float) -> OfflineProgressResult | None:
        """Apply offline progress for the absence that started at ``last_active_at``.

        Returns ``None`` when a catch-up for the same anchor was already applied.
        """

        empire = self._store.get_player_state()
        if empire.last_catch_up_anchor is not None and last_active_at <= empire.last_catch_up_anchor:
            logger.info("offline progress for anchor %s already applied", last_active_at)
            return None

        cities = self._registry.all_cities()
        result = offline.simulate_offline_progress(
            max(0.0, now - last_active_at),
            self.statistics,
            owned_cities=len(empire.owned_city_ids),
            total_cities=len(cities),
            target_tiers=[city.tier for city in targeting.candidate_targets(empire, cities)],
            run_id=self._run_id,
            rules=self._rules,
        )
        offline.apply_offline_result(
            result, self._store, self._registry, self.statistics, rules=self._rules
        )
        empire.last_catch_up_anchor = last_active_at
        self.events.publish(
            OfflineProgressCalculated(result=result, offline_hours=result.offline_hours)
        )
        return result

    def reset_statistics(self) -> None:
        """Zero the automation statistics on explicit user request."""

        statistics_writer.reset_statistics(self.statistics)
        self._last_difficulty = None

    # --- Helpers ----------------------------------------------------------------

    def _schedule_next(self, now: float, *, grow: bool) -> None:
        if grow:
            self._interval = min(
                self._interval * self._rules.scheduler.interval_growth, self._interval_cap
            )
        if not self.paused:
            self._next_check_at = now + self._interval

    def _return_to_idle(self) -> None:
        if not self.paused:
            self._state = SchedulerState.IDLE

    def _restore_state(self, previous: SchedulerState) -> None:
        if self.paused:
            return
        self._state = SchedulerState.IDLE if previous == SchedulerState.RESOLVING else previous

    def _announce_difficulty(self) -> None:
        empire = self._store.get_player_state()
        factor = difficulty_rules.current_difficulty(
            self.statistics, len(empire.owned_city_ids), rules=self._rules
        )
        if self._last_difficulty is not None and abs(factor - self._last_difficulty) < 1e-9:
            return
        self._last_difficulty = factor
        self.events.publish(
            DifficultyScalingApplied(
                factor=factor,
                reason=difficulty_rules.scaling_reason(self.statistics, rules=self._rules),
            )
        )

    def _declare_victory(self, cities_owned: int) -> None:
        logger.info("all %d cities conquered", cities_owned)
        self.events.publish(VictoryAchieved(cities_owned=cities_owned))
        self.pause(PAUSE_REASON_VICTORY)
