"""Economy guardrail: reserves, affordability and clamped resource arithmetic."""

from __future__ import annotations

import math

from conquest.domain.models import ConquestCost, EmpireState, ResourceBag
from conquest.domain.rules_config import DEFAULT_RULES, RulesConfig


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero (``round`` ties to even)."""

    magnitude = math.floor(round(abs(value), 9) + 0.5)
    return -magnitude if value < 0 else magnitude


def reserve_for(amount: int, percentage: float, floor: int) -> int:
    """Return how much of ``amount`` is withheld from spending."""

    if amount <= 0:
        return floor
    return max(math.ceil(round(amount * percentage, 6)), floor)


def available_gold(empire: EmpireState, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Gold that may be spent after the reserve."""

    gold = empire.resources.gold
    reserve = reserve_for(gold, empire.settings.reserve_percentage, rules.economy.gold_floor)
    return max(0, gold - reserve)


def available_troops(empire: EmpireState, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Troops that may be committed after the reserve."""

    troops = empire.resources.troops
    reserve = reserve_for(troops, empire.settings.reserve_percentage, rules.economy.troop_floor)
    return max(0, troops - reserve)


def available_food(empire: EmpireState, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Food that may be spent after the reserve."""

    food = empire.resources.food
    reserve = reserve_for(food, empire.settings.reserve_percentage, rules.economy.food_floor)
    return max(0, food - reserve)


def cost_to_bag(cost: ConquestCost, troops: int | None = None) -> ResourceBag:
    """Express a conquest cost as a resource bag, optionally overriding troops."""

    return ResourceBag(gold=cost.gold, troops=cost.troops if troops is None else troops)


def can_afford(
    empire: EmpireState,
    cost: ResourceBag,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> bool:
    """Return ``True`` when ``cost`` fits within resources left after the reserve."""

    return (
        cost.gold <= available_gold(empire, rules=rules)
        and cost.troops <= available_troops(empire, rules=rules)
        and cost.food <= available_food(empire, rules=rules)
    )


def has_resources(resources: ResourceBag, bag: ResourceBag) -> bool:
    """Raw check ignoring any reserve."""

    return (
        resources.gold >= bag.gold and resources.troops >= bag.troops and resources.food >= bag.food
    )


def add_resources(resources: ResourceBag, bag: ResourceBag) -> None:
    """Credit ``bag``; negative entries are treated as zero."""

    resources.gold += max(0, bag.gold)
    resources.troops += max(0, bag.troops)
    resources.food += max(0, bag.food)


def subtract_resources(resources: ResourceBag, bag: ResourceBag) -> ResourceBag:
    """Debit ``bag`` clamping at zero and return what was actually removed."""

    removed = ResourceBag(
        gold=min(resources.gold, max(0, bag.gold)),
        troops=min(resources.troops, max(0, bag.troops)),
        food=min(resources.food, max(0, bag.food)),
    )
    resources.gold -= removed.gold
    resources.troops -= removed.troops
    resources.food -= removed.food
    return removed
