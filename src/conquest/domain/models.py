"""Dataclasses describing every entity of the progression core.

The rules layer operates purely on these in-memory types.  Persistence
adapters (see :mod:`conquest.repository`) translate them to and from JSON
snapshots; nothing in the domain touches storage directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NewType

from .enums import AggressionLevel, BattleStatus, CityTier, Owner, Victor

# --- Strongly typed identifiers -------------------------------------------------

CityID = NewType("CityID", str)
BattleID = NewType("BattleID", int)


# --- Resource records -----------------------------------------------------------


@dataclass(slots=True)
class ResourceBag:
    """Gold, troops and food held, spent or produced."""

    gold: int = 0
    troops: int = 0
    food: int = 0


@dataclass(frozen=True, slots=True)
class RewardBag:
    """Spoils granted for a victory."""

    gold: int = 0
    experience: int = 0
    equipment_tokens: int = 0


# --- World ----------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UnlockConditions:
    """Requirements before a city may be attacked; any one satisfied suffices."""

    default_unlocked: bool = False
    min_level: int | None = None
    min_cities_owned: int | None = None
    required_city_ids: tuple[CityID, ...] = ()


@dataclass(slots=True)
class City:
    """A conquerable city in the registry."""

    id: CityID
    name: str
    tier: CityTier
    garrison: int
    base_defense: int
    owner: Owner = Owner.NEUTRAL
    yields: ResourceBag = field(default_factory=ResourceBag)
    unlock: UnlockConditions = field(default_factory=UnlockConditions)
    under_siege: bool = False


# --- Player empire --------------------------------------------------------------


@dataclass(slots=True)
class Attributes:
    """The six ruler attributes feeding the power rating."""

    might: int = 0
    intellect: int = 0
    leadership: int = 0
    statecraft: int = 0
    charisma: int = 0
    destiny: int = 0


@dataclass(slots=True)
class AutomationSettings:
    """Player-facing knobs of the automation loop."""

    aggression: AggressionLevel = AggressionLevel.BALANCED
    reserve_percentage: float = 0.2
    max_concurrent_battles: int = 1


@dataclass(slots=True)
class EmpireState:
    """Everything the player owns for the duration of a session."""

    resources: ResourceBag = field(default_factory=ResourceBag)
    attributes: Attributes = field(default_factory=Attributes)
    owned_city_ids: set[CityID] = field(default_factory=set)
    settings: AutomationSettings = field(default_factory=AutomationSettings)
    level: int = 1
    experience: int = 0
    equipment_tokens: int = 0
    last_catch_up_anchor: float | None = None


# --- Battles --------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ConquestCost:
    """Estimated price of attacking a city."""

    gold: int
    troops: int
    siege_days: float


@dataclass(frozen=True, slots=True)
class BattlePlan:
    """Decision produced by the target selector for one cycle."""

    city_id: CityID
    troop_allocation: int
    cost: ConquestCost
    success_probability: float
    expected_rewards: RewardBag
    difficulty_rating: float
    score: float = 0.0


@dataclass(frozen=True, slots=True)
class CombatantSnapshot:
    """State of one side when a battle started."""

    troops: int
    power: float
    morale: int = 100


@dataclass(frozen=True, slots=True)
class Casualties:
    """Troops lost by each side."""

    attacker: int
    defender: int


@dataclass(frozen=True, slots=True)
class BattleOutcome:
    """Result of a single resolved battle."""

    victor: Victor
    casualties: Casualties
    rewards: RewardBag
    success_probability: float
    roll: float


@dataclass(slots=True)
class BattleRecord:
    """A siege from commitment until it is archived."""

    id: BattleID
    city_id: CityID
    attacker: CombatantSnapshot
    defender: CombatantSnapshot
    troops_committed: int
    gold_committed: int
    started_at: float
    resolve_at: float
    difficulty: float = 1.0
    status: BattleStatus = BattleStatus.IN_PROGRESS
    outcome: BattleOutcome | None = None
    manual: bool = False
    resolved_at: float | None = None


# --- Progress -------------------------------------------------------------------


@dataclass(slots=True)
class AutomationStatistics:
    """Rolling counters over every resolved battle, online or offline."""

    total_battles: int = 0
    victories: int = 0
    defeats: int = 0
    spoils_gained: int = 0
    troops_lost: int = 0
    cities_conquered: int = 0
    win_streak: int = 0
    loss_streak: int = 0


@dataclass(slots=True)
class OfflineProgressResult:
    """Projected outcome of the time the player was away."""

    offline_hours: float
    battles_fought: int = 0
    successful_battles: int = 0
    failed_battles: int = 0
    resources_gained: ResourceBag = field(default_factory=ResourceBag)
    resources_lost: ResourceBag = field(default_factory=ResourceBag)
    experience_gained: int = 0
    equipment_tokens_gained: int = 0
    cities_conquered: int = 0
    milestones: list[str] = field(default_factory=list)


# --- Collaborator results -------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ConquestResult:
    """Returned by the city registry when ownership changes hands."""

    success: bool
    spoils: ResourceBag = field(default_factory=ResourceBag)
    detail: str = ""


@dataclass(frozen=True, slots=True)
class SiegeStart:
    """Returned by the city registry when a siege is opened."""

    success: bool
    duration_seconds: float = 0.0
    detail: str = ""
