"""Concrete collaborator services for the conquest engine.

The progression scheduler depends only on the protocols in
:mod:`conquest.interfaces`; the classes here are the in-memory
implementations used by the HTTP runtime:

- CityRegistry: city lookup, sieges and conquest
- InMemoryResourceStore: the player's empire and resource arithmetic

Production Usage:
    from conquest.factory import create_scheduler
    scheduler = create_scheduler(empire, cities)

Testing Usage:
    class FakeRegistry:
        def start_siege(self, city_id, force):
            return SiegeStart(False, detail="walls too high")

    scheduler = ProgressionScheduler(store, FakeRegistry())
"""

from conquest.services.city_registry import CityRegistry
from conquest.services.resource_store import InMemoryResourceStore

__all__ = [
    "CityRegistry",
    "InMemoryResourceStore",
]
