"""In-memory resource store backing the empire state."""

from __future__ import annotations

import logging

from conquest.domain import economy
from conquest.domain.models import EmpireState, ResourceBag

logger = logging.getLogger(__name__)


class InMemoryResourceStore:
    """Resource store holding a single live :class:`EmpireState`."""

    def __init__(self, empire: EmpireState) -> None:
        self._empire = empire

    def get_player_state(self) -> EmpireState:
        return self._empire

    def add_resources(self, bag: ResourceBag) -> None:
        economy.add_resources(self._empire.resources, bag)

    def subtract_resources(self, bag: ResourceBag) -> ResourceBag:
        removed = economy.subtract_resources(self._empire.resources, bag)
        if removed != bag:
            logger.debug("subtraction clamped: requested %s, removed %s", bag, removed)
        return removed

    def has_resources(self, bag: ResourceBag) -> bool:
        return economy.has_resources(self._empire.resources, bag)
