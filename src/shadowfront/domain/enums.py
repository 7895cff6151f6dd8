"""Enumerations shared by the Shadowfront rules layer."""

from __future__ import annotations

from enum import StrEnum


class ResourceKind(StrEnum):
    """The four currencies held in a resource ledger."""

    MONEY = "money"
    AMMO = "ammo"
    FOOD = "food"
    UNITS = "units"


class ActionKind(StrEnum):
    """Operations a player may launch against an objective."""

    RAID = "raid"
    ROBBERY = "robbery"
    CAPTURE = "capture"
    DESTRUCTION = "destruction"


class ObjectiveKind(StrEnum):
    """Archetypes of map objectives."""

    BASE = "base"
    VILLAGE = "village"
    WAREHOUSE = "warehouse"
    STATION = "station"
    FACTORY = "factory"


class ObjectiveStatus(StrEnum):
    """Objective lifecycle states; captured and destroyed are terminal."""

    ACTIVE = "active"
    CAPTURED = "captured"
    DESTROYED = "destroyed"


class BuildingKind(StrEnum):
    """Upgradeable buildings at the player's base."""

    STORAGE = "storage"
    BARRACKS = "barracks"


class GameStatus(StrEnum):
    """Overall state of a game."""

    PLAYING = "playing"
    VICTORY = "victory"
    DEFEAT = "defeat"
    PAUSED = "paused"


class OperationOutcome(StrEnum):
    """Result of a resolved operation."""

    SUCCESS = "success"
    FAILURE = "failure"


class RiskTier(StrEnum):
    """Coarse risk classification used by previews."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"
