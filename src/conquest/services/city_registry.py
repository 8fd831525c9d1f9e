"""City registry service.

Holds the world's cities for a session and owns every mutation of city
ownership, garrison and siege flags.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from conquest.domain import targeting
from conquest.domain.enums import Owner
from conquest.domain.errors import CityNotFoundError
from conquest.domain.models import (
    City,
    CityID,
    ConquestResult,
    EmpireState,
    ResourceBag,
    SiegeStart,
)
from conquest.domain.rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)


class CityRegistry:
    """Service for looking up, besieging and conquering cities.

    Args:
        cities: Cities in registry order
        siege_seconds_per_day: Real seconds standing in for one in-game siege day
        spoils_turns: Turns of city yield released as spoils on conquest
        rules: Rule configuration supplying siege lengths per tier
    """

    def __init__(
        self,
        cities: Iterable[City],
        *,
        siege_seconds_per_day: float = 0.0,
        spoils_turns: int = 3,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        self._cities: dict[CityID, City] = {}
        for city in cities:
            if city.id in self._cities:
                raise ValueError(f"duplicate city id {city.id!r}")
            self._cities[city.id] = city
        self._siege_seconds_per_day = max(0.0, siege_seconds_per_day)
        self._spoils_turns = max(0, spoils_turns)
        self._rules = rules

    def __len__(self) -> int:
        return len(self._cities)

    def all_cities(self) -> list[City]:
        return list(self._cities.values())

    def get_conquerable_cities(self, state: EmpireState) -> list[City]:
        return targeting.eligible_cities(state, self._cities.values())

    def get_city_by_id(self, city_id: CityID) -> City:
        city = self._cities.get(city_id)
        if city is None:
            raise CityNotFoundError(city_id)
        return city

    def execute_conquest(self, city_id: CityID) -> ConquestResult:
        city = self.get_city_by_id(city_id)
        if city.owner == Owner.PLAYER:
            return ConquestResult(False, detail=f"{city.name} is already held")

        city.owner = Owner.PLAYER
        city.garrison = 0
        city.under_siege = False
        spoils = ResourceBag(
            gold=city.yields.gold * self._spoils_turns,
            troops=city.yields.troops * self._spoils_turns,
            food=city.yields.food * self._spoils_turns,
        )
        logger.info("%s conquered", city.name)
        return ConquestResult(True, spoils=spoils, detail=f"{city.name} conquered")

    def start_siege(self, city_id: CityID, force: int) -> SiegeStart:
        city = self.get_city_by_id(city_id)
        if city.owner == Owner.PLAYER:
            return SiegeStart(False, detail=f"{city.name} is already held")
        if city.under_siege:
            return SiegeStart(False, detail=f"{city.name} is already under siege")
        if force < 0:
            return SiegeStart(False, detail="siege force cannot be negative")

        city.under_siege = True
        days = self._rules.targeting.siege_days[city.tier]
        return SiegeStart(
            True,
            duration_seconds=days * self._siege_seconds_per_day,
            detail=f"siege of {city.name} begun with {force} troops",
        )

    def end_siege(self, city_id: CityID, garrison_losses: int = 0) -> None:
        city = self.get_city_by_id(city_id)
        city.under_siege = False
        if garrison_losses:
            city.garrison = max(0, city.garrison - garrison_losses)
