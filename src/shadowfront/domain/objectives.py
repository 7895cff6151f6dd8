"""Objective spawning and the map controller."""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass

from .enums import ActionKind, ObjectiveKind, ObjectiveStatus
from .ledger import Resource
from .models import Objective, ObjectiveID, Position
from .rules_config import DEFAULT_RULES, RulesConfig

DEFAULT_LAYOUT: tuple[tuple[ObjectiveKind, float, float], ...] = (
    (ObjectiveKind.BASE, 200, 700),
    (ObjectiveKind.BASE, 450, 400),
    (ObjectiveKind.VILLAGE, 700, 600),
    (ObjectiveKind.VILLAGE, 300, 100),
    (ObjectiveKind.VILLAGE, 650, 450),
    (ObjectiveKind.WAREHOUSE, 300, 600),
    (ObjectiveKind.WAREHOUSE, 650, 200),
    (ObjectiveKind.STATION, 500, 650),
    (ObjectiveKind.STATION, 150, 350),
    (ObjectiveKind.FACTORY, 350, 380),
    (ObjectiveKind.FACTORY, 750, 400),
)


def spawn_objective(
    objective_id: ObjectiveID,
    kind: ObjectiveKind,
    position: Position,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> Objective:
    """Create an active objective with its archetype's starting stats."""

    archetype = rules.objectives.for_kind(kind)
    return Objective(
        id=objective_id,
        kind=kind,
        position=position,
        status=ObjectiveStatus.ACTIVE,
        current_defense=archetype.baseline_defense,
        current_units=archetype.initial_units,
        defense_bonus=0,
    )


def default_objectives(*, rules: RulesConfig = DEFAULT_RULES) -> list[Objective]:
    return [
        spawn_objective(ObjectiveID(index), kind, Position(float(x), float(y)), rules=rules)
        for index, (kind, x, y) in enumerate(DEFAULT_LAYOUT, start=1)
    ]


def objective_reward(
    objective: Objective,
    action: ActionKind,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> Resource:
    """Target-specific reward derived from the objective's archetype and garrison.

    Operation execution pays out the flat per-action table instead; this value
    is exposed for display and comparison only.
    """

    archetype = rules.objectives.for_kind(objective.kind)
    defense = archetype.baseline_defense
    units = objective.current_units

    if action is ActionKind.DESTRUCTION:
        return Resource(money=50, ammo=10, food=10, units=1)

    if action is ActionKind.CAPTURE:
        multiplier = 2.0 if archetype.high_value else 1.5
        return Resource(
            money=int(defense * 1.5 * multiplier),
            ammo=int(units * 0.8 * multiplier),
            food=int(units * 0.8 * multiplier),
            units=max(2, int(units * 0.25 * multiplier)),
        )

    multiplier = 1.5 if archetype.high_value else 1.0
    if action is ActionKind.ROBBERY:
        return Resource(
            money=int(defense * 1.0 * multiplier),
            ammo=int(units * 0.5 * multiplier),
            food=int(units * 0.5 * multiplier),
            units=max(1, int(units * 0.15 * multiplier)),
        )
    return Resource(
        money=int(defense * 0.8 * multiplier),
        ammo=int(units * 0.3 * multiplier),
        food=int(units * 0.3 * multiplier),
        units=max(1, int(units * 0.1 * multiplier)),
    )


@dataclass(frozen=True, slots=True)
class MapStatistics:
    """Snapshot of map progress."""

    total: int
    active: int
    captured: int
    destroyed: int
    completion_percentage: float
    total_enemy_strength: int
    average_defense: float
    counts_by_kind: dict[ObjectiveKind, int]

    @property
    def progress_summary(self) -> str:
        return f"{self.captured + self.destroyed}/{self.total} objectives completed"


@dataclass(frozen=True, slots=True)
class MapValidation:
    is_valid: bool
    issues: tuple[str, ...] = ()


class ObjectiveMap:
    """Owns the objective list and applies map-wide consequences.

    The list passed in is mutated in place, so a map built over
    ``GameState.objectives`` keeps the aggregate current without a sync step.
    """

    def __init__(
        self,
        objectives: list[Objective],
        *,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        self._objectives = objectives
        self._rules = rules
        self._index: dict[ObjectiveID, int] = {}
        self._reindex()

    def _reindex(self) -> None:
        self._index = {
            objective.id: position for position, objective in enumerate(self._objectives)
        }

    def __iter__(self) -> Iterator[Objective]:
        return iter(self._objectives)

    def __len__(self) -> int:
        return len(self._objectives)

    @property
    def objectives(self) -> list[Objective]:
        return self._objectives

    # --- queries --------------------------------------------------------------

    def get(self, objective_id: ObjectiveID) -> Objective | None:
        position = self._index.get(objective_id)
        if position is None:
            return None
        return self._objectives[position]

    def nearest_active(
        self, x: float, y: float, *, tolerance: float | None = None
    ) -> Objective | None:
        """Closest active objective within ``tolerance``; list order breaks ties."""

        limit = self._rules.objectives.lookup_tolerance if tolerance is None else tolerance
        best: Objective | None = None
        best_distance = math.inf
        for objective in self._objectives:
            if not objective.is_active:
                continue
            distance = math.hypot(objective.position.x - x, objective.position.y - y)
            if distance <= limit and distance < best_distance:
                best = objective
                best_distance = distance
        return best

    def active(self) -> list[Objective]:
        return [objective for objective in self._objectives if objective.is_active]

    def by_status(self, status: ObjectiveStatus) -> list[Objective]:
        return [objective for objective in self._objectives if objective.status is status]

    def by_kind(self, kind: ObjectiveKind) -> list[Objective]:
        return [objective for objective in self._objectives if objective.kind is kind]

    @property
    def all_resolved(self) -> bool:
        return not any(objective.is_active for objective in self._objectives)

    @property
    def completion_percentage(self) -> float:
        if not self._objectives:
            return 0.0
        return (len(self._objectives) - len(self.active())) / len(self._objectives)

    # --- mutators -------------------------------------------------------------

    def capture(self, objective_id: ObjectiveID) -> bool:
        return self._resolve(objective_id, ObjectiveStatus.CAPTURED)

    def destroy(self, objective_id: ObjectiveID) -> bool:
        return self._resolve(objective_id, ObjectiveStatus.DESTROYED)

    def _resolve(self, objective_id: ObjectiveID, status: ObjectiveStatus) -> bool:
        objective = self.get(objective_id)
        if objective is None or not objective.is_active:
            return False
        objective.status = status
        objective.current_units = 0
        objective.current_defense = 0
        objective.defense_bonus = 0
        return True

    def reinforce(self, objective_id: ObjectiveID, additional_units: int) -> bool:
        objective = self.get(objective_id)
        if objective is None or not objective.is_active:
            return False
        objective.current_units += max(0, additional_units)
        return True

    def apply_defense_bonus(self, bonus_percent: float) -> int:
        """Raise every active objective's bonus; returns the points applied."""

        points = round(bonus_percent * self._rules.map.defense_bonus_scale)
        for objective in self._objectives:
            if objective.is_active:
                objective.defense_bonus += points
        return points

    def reduce_forces(self, reduction_percent: float) -> int:
        """Remove units from every active objective, floored at zero."""

        amount = round(reduction_percent * self._rules.map.force_reduction_scale)
        for objective in self._objectives:
            if objective.is_active:
                objective.current_units = max(0, objective.current_units - amount)
        return amount

    def apply_operation_consequences(self, action: ActionKind, *, success: bool) -> None:
        """Apply exactly one map-wide effect for a resolved operation."""

        spec = self._rules.actions.for_action(action)
        if success and spec.is_destructive:
            self.reduce_forces(spec.enemy_force_reduction)
            return

        bonus = spec.defense_bonus
        if not success:
            bonus *= self._rules.map.failure_bonus_ratio
        self.apply_defense_bonus(bonus)

    # --- reporting ------------------------------------------------------------

    def statistics(self) -> MapStatistics:
        active = self.active()
        average = sum(o.total_defense for o in active) / len(active) if active else 0.0
        return MapStatistics(
            total=len(self._objectives),
            active=len(active),
            captured=len(self.by_status(ObjectiveStatus.CAPTURED)),
            destroyed=len(self.by_status(ObjectiveStatus.DESTROYED)),
            completion_percentage=self.completion_percentage,
            total_enemy_strength=sum(o.total_strength for o in active),
            average_defense=average,
            counts_by_kind={kind: len(self.by_kind(kind)) for kind in ObjectiveKind},
        )

    def validate(self) -> MapValidation:
        issues: list[str] = []
        for objective in self._objectives:
            name = self._rules.objectives.for_kind(objective.kind).display_name
            if objective.current_defense < 0:
                issues.append(f"Objective {name} has negative defense")
            if objective.current_units < 0:
                issues.append(f"Objective {name} has negative units")

        positions = [(o.position.x, o.position.y) for o in self._objectives]
        if len(positions) != len(set(positions)):
            issues.append("Duplicate objective positions detected")

        if len(self._index) != len(self._objectives):
            issues.append("Duplicate objective identifiers detected")

        return MapValidation(is_valid=not issues, issues=tuple(issues))
