"""Seeded world: the cities of the late Han and a starting empire.

Each call returns fresh mutable objects so sessions never share state.
"""

from __future__ import annotations

from conquest.domain.enums import AggressionLevel, CityTier
from conquest.domain.models import (
    Attributes,
    AutomationSettings,
    City,
    CityID,
    EmpireState,
    ResourceBag,
    UnlockConditions,
)

# id, name, tier, garrison, base_defense, (gold, troops, food), unlock
_CITY_TABLE: tuple[tuple[str, str, CityTier, int, int, tuple[int, int, int], UnlockConditions], ...] = (
    ("pingyuan", "Pingyuan", CityTier.SMALL, 80, 40, (20, 5, 30), UnlockConditions(default_unlocked=True)),
    ("xiaopei", "Xiaopei", CityTier.SMALL, 100, 50, (25, 6, 30), UnlockConditions(default_unlocked=True)),
    ("runan", "Runan", CityTier.SMALL, 120, 60, (30, 8, 40), UnlockConditions(default_unlocked=True)),
    ("wuling", "Wuling", CityTier.SMALL, 140, 70, (30, 10, 45), UnlockConditions(min_cities_owned=1)),
    ("changsha", "Changsha", CityTier.MEDIUM, 260, 120, (60, 15, 80), UnlockConditions(min_cities_owned=2)),
    ("jiangling", "Jiangling", CityTier.MEDIUM, 300, 140, (70, 18, 90), UnlockConditions(min_cities_owned=3)),
    ("xiangyang", "Xiangyang", CityTier.MEDIUM, 340, 160, (80, 20, 100), UnlockConditions(min_level=5, min_cities_owned=4)),
    ("hanzhong", "Hanzhong", CityTier.MEDIUM, 360, 180, (75, 22, 110), UnlockConditions(required_city_ids=(CityID("xiangyang"),))),
    ("chengdu", "Chengdu", CityTier.MAJOR, 600, 280, (150, 35, 200), UnlockConditions(required_city_ids=(CityID("hanzhong"),))),
    ("jianye", "Jianye", CityTier.MAJOR, 650, 300, (160, 35, 180), UnlockConditions(min_cities_owned=6)),
    ("xuchang", "Xuchang", CityTier.MAJOR, 700, 320, (170, 40, 190), UnlockConditions(min_level=10, min_cities_owned=7)),
    (
        "luoyang",
        "Luoyang",
        CityTier.CAPITAL,
        1200,
        500,
        (300, 60, 300),
        UnlockConditions(required_city_ids=(CityID("xuchang"), CityID("chengdu"))),
    ),
)


def default_cities() -> list[City]:
    """Return the twelve cities of the default campaign, unowned and unbesieged."""

    return [
        City(
            id=CityID(city_id),
            name=name,
            tier=tier,
            garrison=garrison,
            base_defense=defense,
            yields=ResourceBag(gold=gold, troops=troops, food=food),
            unlock=unlock,
        )
        for city_id, name, tier, garrison, defense, (gold, troops, food), unlock in _CITY_TABLE
    ]


def default_empire() -> EmpireState:
    """Return a fresh starting empire with modest resources and no cities."""

    return EmpireState(
        resources=ResourceBag(gold=1000, troops=600, food=500),
        attributes=Attributes(
            might=12, intellect=10, leadership=11, statecraft=8, charisma=9, destiny=5
        ),
        settings=AutomationSettings(aggression=AggressionLevel.BALANCED),
    )
