"""Target selection: eligibility, cost estimates and candidate scoring."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import replace

from conquest.domain import combat, economy
from conquest.domain import difficulty as difficulty_rules
from conquest.domain.enums import AggressionLevel, Owner
from conquest.domain.models import (
    AutomationStatistics,
    BattlePlan,
    City,
    ConquestCost,
    EmpireState,
)
from conquest.domain.rules_config import DEFAULT_RULES, RulesConfig


def is_unlocked(city: City, empire: EmpireState) -> bool:
    """Return ``True`` when any of the city's unlock conditions holds."""

    conditions = city.unlock
    if conditions.default_unlocked:
        return True
    if conditions.min_level is not None and empire.level >= conditions.min_level:
        return True
    if (
        conditions.min_cities_owned is not None
        and len(empire.owned_city_ids) >= conditions.min_cities_owned
    ):
        return True
    if conditions.required_city_ids and all(
        city_id in empire.owned_city_ids for city_id in conditions.required_city_ids
    ):
        return True
    return (
        conditions.min_level is None
        and conditions.min_cities_owned is None
        and not conditions.required_city_ids
    )


def is_owned(city: City, empire: EmpireState) -> bool:
    return city.owner == Owner.PLAYER or city.id in empire.owned_city_ids


def eligible_cities(empire: EmpireState, cities: Iterable[City]) -> list[City]:
    """Unowned, unlocked cities sorted by id, regardless of siege state."""

    eligible = [city for city in cities if not is_owned(city, empire) and is_unlocked(city, empire)]
    return sorted(eligible, key=lambda city: city.id)


def candidate_targets(empire: EmpireState, cities: Iterable[City]) -> list[City]:
    """Cities the automation may attack right now, sorted by id."""

    return [city for city in eligible_cities(empire, cities) if not city.under_siege]


def resource_value(city: City, *, rules: RulesConfig = DEFAULT_RULES) -> float:
    """Weighted per-turn yield of ``city``; troops count the most."""

    cfg = rules.targeting
    return (
        city.yields.gold * cfg.gold_yield_weight
        + city.yields.troops * cfg.troop_yield_weight
        + city.yields.food * cfg.food_yield_weight
    )


def estimate_cost(
    city: City,
    difficulty: float,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> ConquestCost:
    """Gold derived from defense and difficulty, troops proportional to the garrison."""

    cfg = rules.targeting
    return ConquestCost(
        gold=economy.round_half_up(city.base_defense * difficulty * cfg.gold_per_defense),
        troops=math.ceil(city.garrison * cfg.troop_cost_ratio),
        siege_days=cfg.siege_days[city.tier],
    )


def troop_allocation(
    city: City,
    cost: ConquestCost,
    empire: EmpireState,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> int:
    """Troops to commit, never more than what the reserve leaves available."""

    wanted = max(cost.troops, math.ceil(city.garrison * rules.targeting.troop_commit_ratio), 1)
    return min(economy.available_troops(empire, rules=rules), wanted)


def plan_attack(
    city: City,
    empire: EmpireState,
    *,
    difficulty: float,
    win_rate: float,
    troops: int | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> BattlePlan:
    """Build an unscored plan for attacking ``city``, optionally with a fixed force."""

    cost = estimate_cost(city, difficulty, rules=rules)
    if troops is None:
        troops = troop_allocation(city, cost, empire, rules=rules)
    attack = combat.player_power(empire.attributes, troops, rules=rules)
    defense = combat.defender_power(city, difficulty)
    return BattlePlan(
        city_id=city.id,
        troop_allocation=troops,
        cost=cost,
        success_probability=combat.success_probability(
            attack, defense, win_rate=win_rate, rules=rules
        ),
        expected_rewards=combat.expected_rewards(city.tier, difficulty, rules=rules),
        difficulty_rating=difficulty,
    )


def _efficiency(city: City, cost: ConquestCost, rules: RulesConfig) -> float:
    return resource_value(city, rules=rules) / max(cost.gold + cost.troops, 1)


def _aggression_modifier(
    aggression: AggressionLevel,
    success_rate: float,
    efficiency: float,
    max_efficiency: float,
) -> float:
    if aggression == AggressionLevel.CONSERVATIVE:
        return 1.0 + success_rate
    if aggression == AggressionLevel.AGGRESSIVE:
        return 1.0 + (efficiency / max_efficiency if max_efficiency > 0 else 0.0)
    return 1.0


def rank_targets(
    empire: EmpireState,
    cities: Iterable[City],
    statistics: AutomationStatistics,
    *,
    require_affordable: bool = True,
    include_besieged: bool = False,
    rules: RulesConfig = DEFAULT_RULES,
) -> list[BattlePlan]:
    """Score every eligible city and return plans best-first.

    Ties on score resolve to the lowest city id.
    """

    pool = eligible_cities(empire, cities) if include_besieged else candidate_targets(empire, cities)
    difficulty = difficulty_rules.current_difficulty(
        statistics, len(empire.owned_city_ids), rules=rules
    )
    win_rate = difficulty_rules.rolling_win_rate(statistics, rules=rules)

    scored: list[tuple[City, BattlePlan, float]] = []
    for city in pool:
        plan = plan_attack(city, empire, difficulty=difficulty, win_rate=win_rate, rules=rules)
        if require_affordable and not economy.can_afford(
            empire, economy.cost_to_bag(plan.cost), rules=rules
        ):
            continue
        scored.append((city, plan, _efficiency(city, plan.cost, rules)))

    max_efficiency = max((efficiency for _, _, efficiency in scored), default=0.0)
    ranked: list[BattlePlan] = []
    for city, plan, efficiency in scored:
        modifier = _aggression_modifier(
            empire.settings.aggression, plan.success_probability, efficiency, max_efficiency
        )
        score = (
            plan.success_probability
            * efficiency
            * modifier
            * rules.targeting.tier_score_multipliers[city.tier]
        )
        ranked.append(replace(plan, score=score))

    return sorted(ranked, key=lambda plan: (-plan.score, plan.city_id))


def select_target(
    empire: EmpireState,
    cities: Iterable[City],
    statistics: AutomationStatistics,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> BattlePlan | None:
    """Return the best affordable plan, or ``None`` when nothing qualifies."""

    ranked = rank_targets(empire, cities, statistics, rules=rules)
    return ranked[0] if ranked else None
