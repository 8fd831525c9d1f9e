"""Domain model and rules for the conquest engine.

This package hosts every gameplay rule of the idle conquest loop.  It
exposes:

* Dataclasses describing every entity (see :mod:`models`).
* Enumerations and strongly-typed identifiers used across the rules layer.
* Rule configuration objects (see :mod:`rules_config`).
* Pure rule functions for targeting, combat, difficulty, economy and
  offline progress.
* The progression scheduler that drives them (see :mod:`scheduler`).

Nothing here touches storage; snapshots go through the thin repository
adapter in :mod:`conquest.repository`.
"""

from . import (
    combat,
    difficulty,
    economy,
    enums,
    errors,
    events,
    models,
    offline,
    progression,
    rules_config,
    scheduler,
    statistics,
    targeting,
    world_data,
)

__all__ = [
    "combat",
    "difficulty",
    "economy",
    "enums",
    "errors",
    "events",
    "models",
    "offline",
    "progression",
    "rules_config",
    "scheduler",
    "statistics",
    "targeting",
    "world_data",
]
