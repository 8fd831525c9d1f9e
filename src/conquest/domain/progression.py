"""Empire levels derived from accumulated experience.

Each level needs ``experience_growth`` times the experience of the previous
one, starting from ``first_level_experience`` for level 2.
"""

from __future__ import annotations

import logging
import math

from conquest.domain.models import EmpireState
from conquest.domain.rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)


def experience_for_level(level: int, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Total experience needed to reach ``level``."""

    if level < 1:
        raise ValueError(f"level must be at least 1, got {level}")
    cfg = rules.progression
    total = sum(cfg.first_level_experience * cfg.experience_growth**step for step in range(level - 1))
    return math.ceil(round(total, 6))


def level_for_experience(experience: int, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Highest level whose threshold ``experience`` meets, capped at the max level."""

    level = 1
    while (
        level < rules.progression.max_level
        and experience >= experience_for_level(level + 1, rules=rules)
    ):
        level += 1
    return level


def grant_experience(
    empire: EmpireState,
    amount: int,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> int:
    """Credit experience, raise the level to match and return levels gained.

    Levels never drop, so a restored empire keeps a level set above its
    experience.
    """

    empire.experience += max(0, amount)
    reached = level_for_experience(empire.experience, rules=rules)
    if reached <= empire.level:
        return 0
    gained = reached - empire.level
    empire.level = reached
    logger.info("empire reached level %d", reached)
    return gained
