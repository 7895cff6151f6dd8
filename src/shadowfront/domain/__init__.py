"""Domain model for Shadowfront.

All game rules live here and operate purely in-memory.  The package exposes:

* The resource ledger value type (see :mod:`ledger`).
* Dataclasses describing every game entity (see :mod:`models`).
* Enumerations used across the rules layer.
* Rule configuration objects (see :mod:`rules_config`).
* Pure rule functions for actions, combat, objectives and the base economy.
* :class:`game.GameStateManager`, the single mutator of a game.

Persistence goes through the thin adapters in :mod:`shadowfront.savegame` and
:mod:`shadowfront.repository`.
"""

from . import (
    actions,
    combat,
    economy,
    enums,
    game,
    ledger,
    models,
    objectives,
    rules_config,
)

__all__ = [
    "actions",
    "combat",
    "economy",
    "enums",
    "game",
    "ledger",
    "models",
    "objectives",
    "rules_config",
]
