"""Difficulty scaling and the win-rate balance controller.

Difficulty grows exponentially with battles fought and linearly with
territory held, bent by the current streak.  The balance controller is a
proportional nudge on the success probability: it only reacts once the
realised win rate strays beyond the tolerance band around the target.
"""

from __future__ import annotations

import math

from conquest.domain.models import AutomationStatistics
from conquest.domain.rules_config import DEFAULT_RULES, RulesConfig

REASON_PROGRESSION = "progression"
REASON_WIN_STREAK = "win_streak"
REASON_LOSS_STREAK = "loss_streak"


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def streak_modifier(
    win_streak: int,
    loss_streak: int,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> float:
    """Multiplier raising difficulty on long win streaks and easing it on loss streaks."""

    cfg = rules.difficulty
    modifier = 1.0
    if win_streak > cfg.win_streak_threshold:
        modifier += (win_streak - cfg.win_streak_threshold) * cfg.win_streak_step
    if loss_streak > cfg.loss_streak_threshold:
        modifier -= (loss_streak - cfg.loss_streak_threshold) * cfg.loss_streak_step
        modifier = max(cfg.min_streak_modifier, modifier)
    return modifier


def difficulty_factor(
    battles_completed: int,
    owned_cities: int,
    *,
    win_streak: int = 0,
    loss_streak: int = 0,
    rules: RulesConfig = DEFAULT_RULES,
) -> float:
    """Multiplier applied to defender power, always within ``[1.0, 10.0]``."""

    cfg = rules.difficulty
    progression = cfg.scaling_base ** (max(0, battles_completed) / cfg.battles_per_step)
    territory = 1 + max(0, owned_cities) * cfg.per_city_increase
    raw = progression * territory * streak_modifier(win_streak, loss_streak, rules=rules)
    return clamp(raw, cfg.min_factor, cfg.max_factor)


def current_difficulty(
    statistics: AutomationStatistics,
    owned_cities: int,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> float:
    """Difficulty factor for the empire's present progress."""

    return difficulty_factor(
        statistics.total_battles,
        owned_cities,
        win_streak=statistics.win_streak,
        loss_streak=statistics.loss_streak,
        rules=rules,
    )


def scaling_reason(statistics: AutomationStatistics, *, rules: RulesConfig = DEFAULT_RULES) -> str:
    """Describe which term is currently bending the difficulty curve."""

    if statistics.win_streak > rules.difficulty.win_streak_threshold:
        return REASON_WIN_STREAK
    if statistics.loss_streak > rules.difficulty.loss_streak_threshold:
        return REASON_LOSS_STREAK
    return REASON_PROGRESSION


def reward_scaling(factor: float, *, rules: RulesConfig = DEFAULT_RULES) -> float:
    """Reward multiplier derived from the difficulty factor."""

    cfg = rules.difficulty
    return clamp(math.sqrt(max(factor, 0.0)), cfg.min_reward_scaling, cfg.max_reward_scaling)


def rolling_win_rate(
    statistics: AutomationStatistics,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> float:
    """Victories over total battles, or the target rate when there is no history."""

    if statistics.total_battles <= 0:
        return rules.balance.target_win_rate
    return statistics.victories / statistics.total_battles


def balance_adjustment(
    probability: float,
    win_rate: float,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> float:
    """Nudge ``probability`` against the win-rate deviation and re-clamp."""

    deviation = win_rate - rules.balance.target_win_rate
    if abs(deviation) > rules.balance.tolerance:
        probability -= deviation * rules.balance.gain
    return clamp(probability, rules.combat.min_probability, rules.combat.max_probability)
