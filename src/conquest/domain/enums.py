"""Enumerations shared across the progression domain."""

from __future__ import annotations

from enum import StrEnum


class CityTier(StrEnum):
    """Size class of a city, from village seat to imperial capital."""

    SMALL = "small"
    MEDIUM = "medium"
    MAJOR = "major"
    CAPITAL = "capital"


class Owner(StrEnum):
    """Who currently holds a city."""

    PLAYER = "player"
    NEUTRAL = "neutral"
    ENEMY = "enemy"


class AggressionLevel(StrEnum):
    """How the automation weighs safety against payoff."""

    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"


class SchedulerState(StrEnum):
    """States of the progression scheduler."""

    IDLE = "idle"
    SELECTING_TARGET = "selecting_target"
    RESOLVING = "resolving"
    PAUSED = "paused"


class BattleStatus(StrEnum):
    """Lifecycle of a battle record."""

    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


class Victor(StrEnum):
    """Winning side of a resolved battle."""

    ATTACKER = "attacker"
    DEFENDER = "defender"


class FailureReason(StrEnum):
    """Reason codes reported on unsuccessful results."""

    INVALID_PARTICIPANT = "invalid_participant"
    CANNOT_AFFORD = "cannot_afford"
    ALREADY_OWNED = "already_owned"
    UNDER_SIEGE = "under_siege"
    LOCKED = "locked"
    NO_TARGET = "no_target"
    CONCURRENCY_LIMIT = "concurrency_limit"
    PAUSED = "paused"
    SIEGE_REJECTED = "siege_rejected"
    ALREADY_RESOLVED = "already_resolved"
