"""The only writer of :class:`AutomationStatistics`.

Online battles and offline catch-ups both funnel through this module so the
counters and streaks cannot drift apart.
"""

from __future__ import annotations

from conquest.domain.enums import Victor
from conquest.domain.models import AutomationStatistics, BattleOutcome, OfflineProgressResult


def record_battle(
    statistics: AutomationStatistics,
    outcome: BattleOutcome,
    *,
    spoils_gold: int = 0,
    conquered: bool = False,
    total_cities: int,
) -> None:
    """Fold one resolved battle into the counters."""

    statistics.total_battles += 1
    statistics.troops_lost += outcome.casualties.attacker
    if outcome.victor == Victor.ATTACKER:
        statistics.victories += 1
        statistics.win_streak += 1
        statistics.loss_streak = 0
        statistics.spoils_gained += outcome.rewards.gold + max(0, spoils_gold)
    else:
        statistics.defeats += 1
        statistics.loss_streak += 1
        statistics.win_streak = 0
    if conquered:
        statistics.cities_conquered = min(total_cities, statistics.cities_conquered + 1)


def record_offline(
    statistics: AutomationStatistics,
    result: OfflineProgressResult,
    *,
    total_cities: int,
) -> None:
    """Fold an offline catch-up into the counters.

    Individual battle order is unknown offline, so streaks are reset rather
    than extended.
    """

    if result.battles_fought <= 0:
        return
    statistics.total_battles += result.battles_fought
    statistics.victories += result.successful_battles
    statistics.defeats += result.failed_battles
    statistics.spoils_gained += result.resources_gained.gold
    statistics.troops_lost += result.resources_lost.troops
    statistics.cities_conquered = min(
        total_cities, statistics.cities_conquered + result.cities_conquered
    )
    statistics.win_streak = 0
    statistics.loss_streak = 0


def reset_statistics(statistics: AutomationStatistics) -> None:
    """Zero every counter; only invoked on explicit user request."""

    statistics.total_battles = 0
    statistics.victories = 0
    statistics.defeats = 0
    statistics.spoils_gained = 0
    statistics.troops_lost = 0
    statistics.cities_conquered = 0
    statistics.win_streak = 0
    statistics.loss_streak = 0
