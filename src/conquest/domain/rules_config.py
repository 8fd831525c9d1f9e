"""Declarative rule configuration for the progression core."""

from __future__ import annotations

from dataclasses import dataclass, field

from conquest.domain.enums import CityTier


def _tier_table(small: float, medium: float, major: float, capital: float) -> dict[CityTier, float]:
    return {
        CityTier.SMALL: small,
        CityTier.MEDIUM: medium,
        CityTier.MAJOR: major,
        CityTier.CAPITAL: capital,
    }


@dataclass(frozen=True, slots=True)
class CombatRules:
    """Power weights, probability curve, casualties and rewards."""

    might_weight: float = 3.0
    intellect_weight: float = 2.5
    leadership_weight: float = 2.0
    statecraft_weight: float = 1.5
    charisma_weight: float = 1.5
    destiny_weight: float = 2.0
    troop_weight: float = 0.5
    base_probability: float = 0.3
    ratio_slope: float = 0.4
    min_probability: float = 0.1
    max_probability: float = 0.9
    victory_loss_range: tuple[float, float] = (0.10, 0.30)
    defeat_loss_range: tuple[float, float] = (0.40, 0.70)
    defender_defeat_loss_range: tuple[float, float] = (0.10, 0.20)
    base_gold_reward: int = 100
    base_experience_reward: int = 50
    equipment_chance: float = 0.3
    tier_reward_multipliers: dict[CityTier, float] = field(
        default_factory=lambda: _tier_table(1.0, 1.5, 2.0, 3.0)
    )
    attacker_morale: int = 100
    defender_morale: int = 100


@dataclass(frozen=True, slots=True)
class DifficultyRules:
    """Exponential difficulty growth and streak corrections."""

    scaling_base: float = 1.05
    battles_per_step: int = 10
    per_city_increase: float = 0.1
    win_streak_threshold: int = 5
    win_streak_step: float = 0.1
    loss_streak_threshold: int = 3
    loss_streak_step: float = 0.15
    min_streak_modifier: float = 0.5
    min_factor: float = 1.0
    max_factor: float = 10.0
    min_reward_scaling: float = 1.0
    max_reward_scaling: float = 3.0


@dataclass(frozen=True, slots=True)
class BalanceRules:
    """Proportional feedback toward the target win rate."""

    target_win_rate: float = 0.75
    tolerance: float = 0.1
    gain: float = 0.3


@dataclass(frozen=True, slots=True)
class TargetingRules:
    """Scoring weights for candidate cities."""

    gold_yield_weight: float = 1.0
    troop_yield_weight: float = 2.0
    food_yield_weight: float = 0.5
    gold_per_defense: float = 1.0
    troop_cost_ratio: float = 0.5
    troop_commit_ratio: float = 1.5
    tier_score_multipliers: dict[CityTier, float] = field(
        default_factory=lambda: _tier_table(1.0, 1.3, 1.6, 2.0)
    )
    siege_days: dict[CityTier, float] = field(
        default_factory=lambda: _tier_table(1.0, 2.0, 3.0, 5.0)
    )


@dataclass(frozen=True, slots=True)
class SchedulerRules:
    """Automation pacing."""

    initial_interval_seconds: float = 5.0
    interval_growth: float = 1.15
    interval_cap_seconds: float = 120.0
    history_size: int = 50


@dataclass(frozen=True, slots=True)
class OfflineRules:
    """Batch projection of offline time."""

    max_hours: float = 24.0
    full_efficiency_hours: float = 8.0
    diminished_efficiency: float = 0.9
    battles_per_hour: int = 6
    offline_efficiency: float = 0.7
    battles_per_city_base: float = 10.0
    battles_per_city_growth: float = 0.2
    average_troop_commitment: int = 100
    battle_milestone: int = 100
    victory_milestone: int = 50
    battles_per_flavor_event: int = 20
    max_flavor_events: int = 3


@dataclass(frozen=True, slots=True)
class EconomyRules:
    """Reserve floors kept back from every conquest."""

    gold_floor: int = 100
    troop_floor: int = 50
    food_floor: int = 0


@dataclass(frozen=True, slots=True)
class ProgressionRules:
    """Experience curve for empire levels."""

    first_level_experience: int = 100
    experience_growth: float = 1.5
    max_level: int = 50


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Top-level configuration container for all subsystems."""

    combat: CombatRules = CombatRules()
    difficulty: DifficultyRules = DifficultyRules()
    balance: BalanceRules = BalanceRules()
    targeting: TargetingRules = TargetingRules()
    scheduler: SchedulerRules = SchedulerRules()
    offline: OfflineRules = OfflineRules()
    economy: EconomyRules = EconomyRules()
    progression: ProgressionRules = ProgressionRules()


DEFAULT_RULES = RulesConfig()
