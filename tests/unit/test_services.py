"""Unit tests for the in-memory city registry and resource store."""

from __future__ import annotations

import pytest

from conquest.domain import models as dm
from conquest.domain.enums import CityTier, Owner
from conquest.domain.errors import CityNotFoundError
from conquest.services import CityRegistry, InMemoryResourceStore


def _city(city_id: str = "changsha", tier: CityTier = CityTier.MEDIUM) -> dm.City:
    return dm.City(
        id=dm.CityID(city_id),
        name=city_id.title(),
        tier=tier,
        garrison=260,
        base_defense=120,
        yields=dm.ResourceBag(gold=60, troops=15, food=80),
    )


class TestCityRegistry:
    """Ownership, sieges and lookups."""

    def test_duplicate_ids_are_rejected(self):
        with pytest.raises(ValueError, match="duplicate city id"):
            CityRegistry([_city(), _city()])

    def test_unknown_city_raises(self):
        registry = CityRegistry([_city()])
        with pytest.raises(CityNotFoundError) as excinfo:
            registry.get_city_by_id(dm.CityID("atlantis"))
        assert excinfo.value.city_id == "atlantis"
        assert isinstance(excinfo.value, LookupError)

    def test_siege_duration_follows_tier(self):
        registry = CityRegistry([_city()], siege_seconds_per_day=3.0)
        siege = registry.start_siege(dm.CityID("changsha"), 300)
        assert siege.success
        assert siege.duration_seconds == pytest.approx(6.0)
        assert registry.get_city_by_id(dm.CityID("changsha")).under_siege

    def test_city_cannot_be_besieged_twice(self):
        registry = CityRegistry([_city()])
        registry.start_siege(dm.CityID("changsha"), 300)
        assert not registry.start_siege(dm.CityID("changsha"), 300).success

    def test_negative_force_is_rejected(self):
        registry = CityRegistry([_city()])
        assert not registry.start_siege(dm.CityID("changsha"), -1).success

    def test_end_siege_applies_garrison_losses(self):
        registry = CityRegistry([_city()])
        registry.start_siege(dm.CityID("changsha"), 300)
        registry.end_siege(dm.CityID("changsha"), garrison_losses=1000)
        city = registry.get_city_by_id(dm.CityID("changsha"))
        assert not city.under_siege
        assert city.garrison == 0

    def test_conquest_releases_spoils_once(self):
        registry = CityRegistry([_city()])
        result = registry.execute_conquest(dm.CityID("changsha"))
        assert result.success
        assert result.spoils == dm.ResourceBag(gold=180, troops=45, food=240)
        city = registry.get_city_by_id(dm.CityID("changsha"))
        assert city.owner == Owner.PLAYER
        assert city.garrison == 0
        assert not registry.execute_conquest(dm.CityID("changsha")).success
        assert not registry.start_siege(dm.CityID("changsha"), 10).success

    def test_conquerable_cities_use_empire_state(self):
        locked = _city("chengdu", CityTier.MAJOR)
        locked.unlock = dm.UnlockConditions(min_cities_owned=3)
        registry = CityRegistry([_city(), locked])
        empire = dm.EmpireState()
        assert [c.id for c in registry.get_conquerable_cities(empire)] == ["changsha"]
        assert len(registry) == 2


class TestResourceStore:
    """Clamped resource arithmetic on the live empire."""

    def test_subtract_reports_what_was_removed(self):
        empire = dm.EmpireState(resources=dm.ResourceBag(gold=100, troops=10))
        store = InMemoryResourceStore(empire)
        removed = store.subtract_resources(dm.ResourceBag(gold=30, troops=25))
        assert removed == dm.ResourceBag(gold=30, troops=10)
        assert store.get_player_state().resources == dm.ResourceBag(gold=70, troops=0)

    def test_add_and_has_resources(self):
        store = InMemoryResourceStore(dm.EmpireState())
        store.add_resources(dm.ResourceBag(gold=50, food=5))
        assert store.has_resources(dm.ResourceBag(gold=50, food=5))
        assert not store.has_resources(dm.ResourceBag(troops=1))
