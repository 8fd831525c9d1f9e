"""Service factory for the conquest engine.

This module provides factory functions that wire the progression scheduler
to its collaborators.  Use these in production code; for testing, build a
:class:`ProgressionScheduler` directly with protocol-based fakes.

Example:
    # Production usage
    from conquest.factory import create_scheduler
    scheduler = create_scheduler(default_empire(), default_cities())

    # Testing usage
    from conquest.domain.scheduler import ProgressionScheduler

    class FakeRegistry:
        def start_siege(self, city_id, force):
            return SiegeStart(False, detail="walls too high")

    scheduler = ProgressionScheduler(store, FakeRegistry())
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from conquest.domain.events import EventBus
from conquest.domain.models import AutomationStatistics, BattleRecord, City, EmpireState
from conquest.domain.rules_config import DEFAULT_RULES, RulesConfig
from conquest.domain.scheduler import ProgressionScheduler
from conquest.services.city_registry import CityRegistry
from conquest.services.resource_store import InMemoryResourceStore


def create_resource_store(empire: EmpireState) -> InMemoryResourceStore:
    """Create a resource store around ``empire``.

    Args:
        empire: Live empire state the store mutates

    Returns:
        Fully initialized InMemoryResourceStore
    """
    return InMemoryResourceStore(empire)


def create_city_registry(
    cities: Iterable[City],
    *,
    siege_seconds_per_day: float = 0.0,
    rules: RulesConfig = DEFAULT_RULES,
) -> CityRegistry:
    """Create a city registry for ``cities``.

    Args:
        cities: Cities in registry order
        siege_seconds_per_day: Real seconds per in-game siege day
        rules: Rule configuration

    Returns:
        Fully initialized CityRegistry
    """
    return CityRegistry(cities, siege_seconds_per_day=siege_seconds_per_day, rules=rules)


def create_scheduler(
    empire: EmpireState,
    cities: Iterable[City],
    *,
    statistics: AutomationStatistics | None = None,
    history: Iterable[BattleRecord] = (),
    in_flight: Iterable[BattleRecord] = (),
    events: EventBus | None = None,
    siege_seconds_per_day: float = 0.0,
    initial_interval_seconds: float | None = None,
    interval_cap_seconds: float | None = None,
    history_size: int | None = None,
    run_id: str = "conquest",
    rules: RulesConfig = DEFAULT_RULES,
) -> ProgressionScheduler:
    """Create a progression scheduler with all dependencies.

    Args:
        empire: Starting or restored empire state
        cities: Starting or restored cities
        statistics: Restored statistics, fresh when omitted
        history: Restored battle history
        in_flight: Restored open sieges
        events: Event bus to publish on, fresh when omitted
        siege_seconds_per_day: Real seconds per in-game siege day
        initial_interval_seconds: First delay between automation cycles
        interval_cap_seconds: Cap on the growing cycle interval
        history_size: Resolved battles kept in history
        run_id: Seed prefix for battle rolls
        rules: Rule configuration

    Returns:
        Fully initialized ProgressionScheduler with store and registry dependencies
    """
    if history_size is not None:
        rules = replace(rules, scheduler=replace(rules.scheduler, history_size=history_size))
    return ProgressionScheduler(
        create_resource_store(empire),
        create_city_registry(cities, siege_seconds_per_day=siege_seconds_per_day, rules=rules),
        statistics=statistics,
        events=events,
        history=history,
        in_flight=in_flight,
        run_id=run_id,
        initial_interval_seconds=initial_interval_seconds,
        interval_cap_seconds=interval_cap_seconds,
        rules=rules,
    )
