"""Typed engine events and the in-process event bus.

Consumers (UI, audio, logging) subscribe per event type.  The bus also keeps
every published event so callers and tests can inspect what happened during
a tick without registering handlers.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field

from conquest.domain.enums import Victor
from conquest.domain.models import (
    BattleID,
    Casualties,
    CityID,
    OfflineProgressResult,
    ResourceBag,
    RewardBag,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BattleStarted:
    battle_id: BattleID
    city_id: CityID
    attacker_power: float
    defender_power: float
    troops: int


@dataclass(frozen=True, slots=True)
class BattleCompleted:
    battle_id: BattleID
    city_id: CityID
    victor: Victor
    casualties: Casualties
    rewards: RewardBag


@dataclass(frozen=True, slots=True)
class CityConquered:
    city_id: CityID
    city_name: str
    spoils: ResourceBag


@dataclass(frozen=True, slots=True)
class DifficultyScalingApplied:
    factor: float
    reason: str


@dataclass(frozen=True, slots=True)
class OfflineProgressCalculated:
    result: OfflineProgressResult
    offline_hours: float


@dataclass(frozen=True, slots=True)
class AutomationPaused:
    reason: str


@dataclass(frozen=True, slots=True)
class AutomationResumed:
    pass


@dataclass(frozen=True, slots=True)
class VictoryAchieved:
    cities_owned: int


EngineEvent = (
    BattleStarted
    | BattleCompleted
    | CityConquered
    | DifficultyScalingApplied
    | OfflineProgressCalculated
    | AutomationPaused
    | AutomationResumed
    | VictoryAchieved
)

Handler = Callable[[EngineEvent], None]


@dataclass(slots=True)
class EventBus:
    """Callback registry keyed by event type."""

    history_limit: int = 500
    published: list[EngineEvent] = field(default_factory=list)
    _handlers: dict[type, list[Handler]] = field(default_factory=lambda: defaultdict(list))

    def subscribe(self, event_type: type, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type, handler: Handler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: EngineEvent) -> None:
        logger.debug("event %s: %s", type(event).__name__, event)
        self.published.append(event)
        if len(self.published) > self.history_limit:
            del self.published[: len(self.published) - self.history_limit]
        for handler in list(self._handlers.get(type(event), [])):
            handler(event)

    def of_type(self, event_type: type) -> list[EngineEvent]:
        """Published events of one type, oldest first."""

        return [event for event in self.published if isinstance(event, event_type)]

    def clear(self) -> None:
        self.published.clear()
