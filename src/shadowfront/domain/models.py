"""Dataclasses describing every Shadowfront game entity.

The rules layer only ever touches these types.  They are plain dataclasses so
the persistence adapters in :mod:`shadowfront.savegame` can round-trip them
through pydantic without a separate schema.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import NewType
from uuid import UUID, uuid4

from .enums import (
    ActionKind,
    BuildingKind,
    GameStatus,
    ObjectiveKind,
    ObjectiveStatus,
    OperationOutcome,
    RiskTier,
)
from .ledger import Resource
from .rules_config import DEFAULT_RULES

# --- Strongly typed identifiers -------------------------------------------------

ObjectiveID = NewType("ObjectiveID", int)
GameID = UUID


def utc_now() -> datetime:
    """Timezone-aware timestamp used for statistics and save metadata."""

    return datetime.now(UTC)


# --- Map ------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Position:
    """Map coordinates of an objective."""

    x: float
    y: float


@dataclass(slots=True)
class Objective:
    """A point of interest that can be raided, robbed, captured or destroyed."""

    id: ObjectiveID
    kind: ObjectiveKind
    position: Position
    status: ObjectiveStatus = ObjectiveStatus.ACTIVE
    current_defense: int = 0
    current_units: int = 0
    defense_bonus: int = 0

    @property
    def total_defense(self) -> int:
        return self.current_defense + self.defense_bonus

    @property
    def total_strength(self) -> int:
        return self.total_defense + self.current_units

    @property
    def is_active(self) -> bool:
        return self.status is ObjectiveStatus.ACTIVE

    @property
    def is_captured(self) -> bool:
        return self.status is ObjectiveStatus.CAPTURED

    @property
    def is_destroyed(self) -> bool:
        return self.status is ObjectiveStatus.DESTROYED


# --- Base -----------------------------------------------------------------------


@dataclass(slots=True)
class Building:
    """An upgradeable building.

    Levels start at 1; the upper bound belongs to the economy rules and is
    enforced by :func:`shadowfront.domain.economy.normalize_base`.
    """

    kind: BuildingKind
    level: int = 1

    def __post_init__(self) -> None:
        self.level = max(1, self.level)


@dataclass(slots=True)
class PlayerBase:
    """The player's home base: storage sets resource ceilings, barracks the unit cap."""

    storage: Building = field(default_factory=lambda: Building(BuildingKind.STORAGE))
    barracks: Building = field(default_factory=lambda: Building(BuildingKind.BARRACKS))

    def building(self, kind: BuildingKind) -> Building:
        if kind is BuildingKind.STORAGE:
            return self.storage
        return self.barracks


# --- Game -----------------------------------------------------------------------


@dataclass(slots=True)
class GameStatistics:
    """Cumulative counters for a single game."""

    operations_performed: int = 0
    successful_operations: int = 0
    failed_operations: int = 0
    objectives_captured: int = 0
    objectives_destroyed: int = 0
    turns_played: int = 0
    total_resources_gained: Resource = Resource()
    total_resources_lost: Resource = Resource()
    started_at: datetime = field(default_factory=utc_now)

    @property
    def success_rate(self) -> float:
        if self.operations_performed == 0:
            return 0.0
        return self.successful_operations / self.operations_performed

    def record_operation(self, *, success: bool, gained: Resource, lost: Resource) -> None:
        self.operations_performed += 1
        if success:
            self.successful_operations += 1
            self.total_resources_gained = self.total_resources_gained + gained
        else:
            self.failed_operations += 1
        self.total_resources_lost = self.total_resources_lost + lost
        self.turns_played += 1


@dataclass(slots=True)
class GameState:
    """Root aggregate persisted between sessions."""

    id: GameID = field(default_factory=uuid4)
    resources: Resource = DEFAULT_RULES.starting_resources
    alert_level: float = 0.0
    objectives: list[Objective] = field(default_factory=list)
    base: PlayerBase = field(default_factory=PlayerBase)
    status: GameStatus = GameStatus.PLAYING
    statistics: GameStatistics = field(default_factory=GameStatistics)
    last_saved_at: datetime = field(default_factory=utc_now)

    @property
    def is_over(self) -> bool:
        return self.status in (GameStatus.VICTORY, GameStatus.DEFEAT)

    @property
    def alert_percentage(self) -> int:
        return int(self.alert_level * 100)

    @property
    def completion_percentage(self) -> float:
        if not self.objectives:
            return 0.0
        resolved = sum(1 for objective in self.objectives if not objective.is_active)
        return resolved / len(self.objectives)


# --- Operations -----------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Immutable record of one resolved operation."""

    action: ActionKind
    target: Objective
    outcome: OperationOutcome
    resources_lost: Resource
    resources_gained: Resource
    player_strength: float
    enemy_strength: float
    success_probability: float
    risk_tier: RiskTier

    @property
    def success(self) -> bool:
        return self.outcome is OperationOutcome.SUCCESS

    @property
    def net_change(self) -> Resource:
        return self.resources_gained - self.resources_lost

    @property
    def net_value(self) -> int:
        return self.resources_gained.total_value - self.resources_lost.total_value

    @property
    def success_percentage(self) -> int:
        return int(self.success_probability * 100)

    @property
    def outcome_message(self) -> str:
        return _OUTCOME_MESSAGES[(self.action, self.outcome)]


_OUTCOME_MESSAGES: dict[tuple[ActionKind, OperationOutcome], str] = {
    (ActionKind.RAID, OperationOutcome.SUCCESS): "Raid completed successfully",
    (ActionKind.ROBBERY, OperationOutcome.SUCCESS): "Robbery executed successfully",
    (ActionKind.CAPTURE, OperationOutcome.SUCCESS): "Target captured",
    (ActionKind.DESTRUCTION, OperationOutcome.SUCCESS): "Target destroyed",
    (ActionKind.RAID, OperationOutcome.FAILURE): "Raid failed",
    (ActionKind.ROBBERY, OperationOutcome.FAILURE): "Robbery failed",
    (ActionKind.CAPTURE, OperationOutcome.FAILURE): "Capture attempt failed",
    (ActionKind.DESTRUCTION, OperationOutcome.FAILURE): "Destruction attempt failed",
}
