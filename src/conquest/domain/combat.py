"""Combat resolution rules.

All functions are pure apart from seeded random draws: they read attacker
and defender descriptors and return power ratings, probabilities,
casualties and rewards without mutating the empire or the city.  Applying
an outcome is the scheduler's job.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from pydantic import ValidationError

from conquest.domain import economy
from conquest.domain import difficulty as difficulty_rules
from conquest.domain.enums import CityTier, FailureReason, Victor
from conquest.domain.errors import ParticipantValidationError
from conquest.domain.models import (
    Attributes,
    BattleOutcome,
    Casualties,
    City,
    EmpireState,
    RewardBag,
)
from conquest.domain.rules_config import DEFAULT_RULES, RulesConfig
from conquest.schemas.participant import AttackerPayload
from conquest.utils.rng import check_probability, uniform


@dataclass(slots=True)
class AttackerProfile:
    """Validated attacker descriptor."""

    attributes: Attributes
    troops: int
    level: int


@dataclass(slots=True)
class ResolutionResult:
    """Outcome of attempting to resolve a battle."""

    success: bool
    detail: str
    reason: FailureReason | None = None
    outcome: BattleOutcome | None = None


def attacker_payload(empire: EmpireState, troops: int) -> dict[str, object]:
    """Raw participant snapshot of the empire committing ``troops``."""

    attrs = empire.attributes
    return {
        "attributes": {
            "might": attrs.might,
            "intellect": attrs.intellect,
            "leadership": attrs.leadership,
            "statecraft": attrs.statecraft,
            "charisma": attrs.charisma,
            "destiny": attrs.destiny,
        },
        "troops": troops,
        "level": empire.level,
    }


def validate_attacker(payload: Mapping[str, object] | AttackerProfile) -> AttackerProfile:
    """Validate raw attacker data, raising ``ParticipantValidationError`` on failure."""

    if isinstance(payload, AttackerProfile):
        return payload
    try:
        model = AttackerPayload.model_validate(payload)
    except ValidationError as exc:
        raise ParticipantValidationError(_summarize_errors(exc)) from exc
    return AttackerProfile(
        attributes=Attributes(**model.attributes.model_dump()),
        troops=model.troops,
        level=model.level,
    )


def _summarize_errors(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"]) or "payload"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def player_power(
    attributes: Attributes,
    troops: int,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> float:
    """Weighted attribute sum plus half a point per committed troop."""

    cfg = rules.combat
    return (
        cfg.might_weight * attributes.might
        + cfg.intellect_weight * attributes.intellect
        + cfg.leadership_weight * attributes.leadership
        + cfg.statecraft_weight * attributes.statecraft
        + cfg.charisma_weight * attributes.charisma
        + cfg.destiny_weight * attributes.destiny
        + cfg.troop_weight * max(0, troops)
    )


def defender_power(city: City, difficulty: float) -> float:
    """Garrison plus base defense, scaled by the difficulty factor."""

    return max(1.0, (city.garrison + city.base_defense) * difficulty)


def base_success_probability(
    attacker_power: float,
    defender: float,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> float:
    """Probability from the power ratio alone, before balance adjustment."""

    cfg = rules.combat
    ratio = attacker_power / max(defender, 1.0)
    raw = cfg.base_probability + (ratio - 1) * cfg.ratio_slope
    return difficulty_rules.clamp(raw, cfg.min_probability, cfg.max_probability)


def success_probability(
    attacker_power: float,
    defender: float,
    *,
    win_rate: float,
    rules: RulesConfig = DEFAULT_RULES,
) -> float:
    """Final success probability after the balance controller."""

    base = base_success_probability(attacker_power, defender, rules=rules)
    return difficulty_rules.balance_adjustment(base, win_rate, rules=rules)


def roll_casualties(
    troops_committed: int,
    garrison: int,
    *,
    victory: bool,
    seed: str,
    rules: RulesConfig = DEFAULT_RULES,
) -> Casualties:
    """Draw casualties for both sides."""

    cfg = rules.combat
    low, high = cfg.victory_loss_range if victory else cfg.defeat_loss_range
    attacker_pct = uniform(f"{seed}:casualties:attacker", low, high)["value"]
    attacker_losses = min(
        troops_committed, economy.round_half_up(troops_committed * attacker_pct)
    )

    if victory:
        defender_losses = garrison
    else:
        low, high = cfg.defender_defeat_loss_range
        defender_pct = uniform(f"{seed}:casualties:defender", low, high)["value"]
        defender_losses = min(garrison, economy.round_half_up(garrison * defender_pct))

    return Casualties(attacker=attacker_losses, defender=defender_losses)


def expected_rewards(
    tier: CityTier,
    difficulty: float,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> RewardBag:
    """Gold and experience a victory against ``tier`` would pay, without the equipment draw."""

    cfg = rules.combat
    multiplier = cfg.tier_reward_multipliers[tier] * difficulty_rules.reward_scaling(
        difficulty, rules=rules
    )
    return RewardBag(
        gold=economy.round_half_up(cfg.base_gold_reward * multiplier),
        experience=economy.round_half_up(cfg.base_experience_reward * multiplier),
    )


def calculate_rewards(
    tier: CityTier,
    difficulty: float,
    *,
    seed: str,
    rules: RulesConfig = DEFAULT_RULES,
) -> RewardBag:
    """Victory rewards including the flat equipment chance."""

    base = expected_rewards(tier, difficulty, rules=rules)
    token = check_probability(f"{seed}:equipment", rules.combat.equipment_chance)["success"]
    return RewardBag(
        gold=base.gold,
        experience=base.experience,
        equipment_tokens=1 if token else 0,
    )


def resolve_battle(
    attacker: Mapping[str, object] | AttackerProfile,
    city: City,
    *,
    difficulty: float,
    win_rate: float,
    seed: str,
    rules: RulesConfig = DEFAULT_RULES,
) -> ResolutionResult:
    """Resolve an attack on ``city``.

    Invalid attacker data is reported as a failed result before any roll is
    made.  Neither the attacker nor the city is mutated.
    """

    try:
        profile = validate_attacker(attacker)
    except ParticipantValidationError as exc:
        return ResolutionResult(False, f"invalid attacker: {exc.detail}", reason=exc.reason)

    attack = player_power(profile.attributes, profile.troops, rules=rules)
    defense = defender_power(city, difficulty)
    probability = success_probability(attack, defense, win_rate=win_rate, rules=rules)

    draw = check_probability(f"{seed}:outcome", probability)
    victory = bool(draw["success"])
    casualties = roll_casualties(
        profile.troops, city.garrison, victory=victory, seed=seed, rules=rules
    )
    rewards = (
        calculate_rewards(city.tier, difficulty, seed=seed, rules=rules) if victory else RewardBag()
    )

    outcome = BattleOutcome(
        victor=Victor.ATTACKER if victory else Victor.DEFENDER,
        casualties=casualties,
        rewards=rewards,
        success_probability=probability,
        roll=draw["roll"],
    )
    detail = f"{'victory' if victory else 'defeat'} at {city.name} (p={probability:.2f})"
    return ResolutionResult(True, detail, outcome=outcome)
