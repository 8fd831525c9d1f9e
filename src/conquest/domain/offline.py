"""Offline catch-up: project elapsed time as a batch instead of replaying ticks."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from conquest.domain import combat, economy, progression, targeting
from conquest.domain import statistics as statistics_writer
from conquest.domain import difficulty as difficulty_rules
from conquest.domain.enums import CityTier
from conquest.domain.models import (
    AutomationStatistics,
    CityID,
    OfflineProgressResult,
    ResourceBag,
)
from conquest.domain.rules_config import DEFAULT_RULES, RulesConfig
from conquest.interfaces.cities import ICityRegistry
from conquest.interfaces.economy import IResourceStore
from conquest.utils.rng import generate_seed, random_choice

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600.0

FLAVOR_EVENTS = [
    "Scouts returned with maps of the passes to the west.",
    "A travelling scholar offered counsel at the war council.",
    "Bandits harried the supply road but were driven off.",
    "Villagers brought tribute of rice and wine to the camp.",
    "A rival warlord sent envoys seeking a truce.",
    "Heavy rains slowed the march for several days.",
    "Veteran officers drilled the new levies through the night.",
    "A fortune teller foretold great victories ahead.",
]


def efficiency_hours(elapsed_hours: float, *, rules: RulesConfig = DEFAULT_RULES) -> float:
    """Hours of effective campaigning after the cap and diminishing returns."""

    cfg = rules.offline
    effective = min(max(0.0, elapsed_hours), cfg.max_hours)
    full = min(effective, cfg.full_efficiency_hours)
    tail = max(effective - cfg.full_efficiency_hours, 0.0)
    return full + tail * cfg.diminished_efficiency


def battles_for_hours(elapsed_hours: float, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Battles fought over ``elapsed_hours`` offline."""

    cfg = rules.offline
    hours = efficiency_hours(elapsed_hours, rules=rules)
    # round first: float products like 5 * 6 * 0.7 must not floor to 20
    return math.floor(round(hours * cfg.battles_per_hour * cfg.offline_efficiency, 9))


def battles_per_city(owned_cities: int, *, rules: RulesConfig = DEFAULT_RULES) -> float:
    cfg = rules.offline
    return cfg.battles_per_city_base * (1 + owned_cities * cfg.battles_per_city_growth)


def average_victory_rewards(
    tiers: Sequence[CityTier],
    difficulty: float,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> tuple[float, float]:
    """Mean gold and experience per victory across ``tiers`` (small when empty)."""

    rewards = [
        combat.expected_rewards(tier, difficulty, rules=rules) for tier in tiers or [CityTier.SMALL]
    ]
    return (
        sum(reward.gold for reward in rewards) / len(rewards),
        sum(reward.experience for reward in rewards) / len(rewards),
    )


def simulate_offline_progress(
    elapsed_seconds: float,
    statistics: AutomationStatistics,
    *,
    owned_cities: int,
    total_cities: int,
    target_tiers: Sequence[CityTier] = (),
    run_id: str = "offline",
    rules: RulesConfig = DEFAULT_RULES,
) -> OfflineProgressResult:
    """Project battles, resources and conquests for time spent away.

    The projection reuses the combat resolver's reward and casualty averages
    and the current difficulty factor; it never resolves individual battles.
    Victory rewards are averaged over ``target_tiers``, the tiers of the
    cities currently open to attack.
    """

    if elapsed_seconds < 0:
        raise ValueError(f"elapsed_seconds must be non-negative, got {elapsed_seconds}")

    cfg = rules.offline
    hours = elapsed_seconds / SECONDS_PER_HOUR
    battles = battles_for_hours(hours, rules=rules)
    win_rate = difficulty_rules.rolling_win_rate(statistics, rules=rules)
    successes = min(battles, economy.round_half_up(battles * win_rate))
    failures = battles - successes

    factor = difficulty_rules.current_difficulty(statistics, owned_cities, rules=rules)
    gold_per_victory, experience_per_victory = average_victory_rewards(
        target_tiers, factor, rules=rules
    )
    commitment = cfg.average_troop_commitment
    victory_loss = commitment * sum(rules.combat.victory_loss_range) / 2
    defeat_loss = commitment * sum(rules.combat.defeat_loss_range) / 2
    troops_lost = economy.round_half_up(successes * victory_loss + failures * defeat_loss)

    unowned = max(0, total_cities - owned_cities)
    conquered = min(unowned, math.floor(successes / battles_per_city(owned_cities, rules=rules)))

    result = OfflineProgressResult(
        offline_hours=hours,
        battles_fought=battles,
        successful_battles=successes,
        failed_battles=failures,
        resources_gained=ResourceBag(gold=economy.round_half_up(successes * gold_per_victory)),
        resources_lost=ResourceBag(troops=troops_lost),
        experience_gained=economy.round_half_up(successes * experience_per_victory),
        equipment_tokens_gained=economy.round_half_up(
            successes * rules.combat.equipment_chance
        ),
        cities_conquered=conquered,
    )
    result.milestones = _milestones(result, statistics, run_id, rules)
    return result


def _milestones(
    result: OfflineProgressResult,
    statistics: AutomationStatistics,
    run_id: str,
    rules: RulesConfig,
) -> list[str]:
    cfg = rules.offline
    milestones: list[str] = []
    if result.battles_fought >= cfg.battle_milestone:
        milestones.append(f"Your armies fought {result.battles_fought} battles while you were away.")
    if result.successful_battles >= cfg.victory_milestone:
        milestones.append(f"{result.successful_battles} victories were won in your name.")
    if result.cities_conquered:
        milestones.append(f"{result.cities_conquered} new cities swore allegiance to you.")

    flavor_count = min(cfg.max_flavor_events, result.battles_fought // cfg.battles_per_flavor_event)
    for index in range(flavor_count):
        seed = generate_seed(run_id, statistics.total_battles + index, "offline-flavor")
        milestones.append(random_choice(seed, FLAVOR_EVENTS)["choice"])
    return milestones


def apply_offline_result(
    result: OfflineProgressResult,
    store: IResourceStore,
    registry: ICityRegistry,
    statistics: AutomationStatistics,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> list[CityID]:
    """Credit a projection to the empire and return the ids of cities taken.

    Conquered cities are the best-ranked eligible ones, ignoring
    affordability since the offline battles were already paid for.
    """

    empire = store.get_player_state()
    store.add_resources(result.resources_gained)
    store.subtract_resources(result.resources_lost)

    cities = registry.all_cities()
    ranked = targeting.rank_targets(
        empire, cities, statistics, require_affordable=False, rules=rules
    )
    taken: list[CityID] = []
    for plan in ranked[: result.cities_conquered]:
        conquest = registry.execute_conquest(plan.city_id)
        if not conquest.success:
            logger.warning("offline conquest of %s rejected by registry", plan.city_id)
            continue
        empire.owned_city_ids.add(plan.city_id)
        taken.append(plan.city_id)

    # levels gained offline only unlock cities for the next cycle
    progression.grant_experience(empire, result.experience_gained, rules=rules)
    empire.equipment_tokens += result.equipment_tokens_gained
    if len(taken) != result.cities_conquered:
        result.cities_conquered = len(taken)
    statistics_writer.record_offline(statistics, result, total_cities=len(cities))
    logger.info(
        "offline catch-up applied: %d battles, %d victories, %d cities",
        result.battles_fought,
        result.successful_battles,
        len(taken),
    )
    return taken

