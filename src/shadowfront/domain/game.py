"""Game orchestration: the single mutator of a :class:`GameState`."""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

from . import actions, combat, economy
from .enums import ActionKind, BuildingKind, GameStatus
from .ledger import ZERO, Resource
from .models import (
    GameID,
    GameState,
    GameStatistics,
    Objective,
    ObjectiveID,
    OperationResult,
    utc_now,
)
from .objectives import MapStatistics, ObjectiveMap, default_objectives
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)

GAME_NOT_ACTIVE = "Game is not in progress"


class UnknownObjectiveError(KeyError):
    """Raised when a command names an objective that is not on the map."""


@dataclass(frozen=True, slots=True)
class OperationAttempt:
    """Returned by :meth:`GameStateManager.execute_operation`.

    ``result`` is ``None`` when the attempt was rejected; ``issues`` then lists
    the reasons in validation order.
    """

    accepted: bool
    issues: tuple[str, ...] = ()
    result: OperationResult | None = None


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of a base-management command."""

    success: bool
    issues: tuple[str, ...] = ()
    cost: Resource = ZERO


@dataclass(frozen=True, slots=True)
class GameSummary:
    status: GameStatus
    alert_percentage: int
    completion_percentage: float
    total_resource_value: int
    operations_performed: int
    can_afford_any_operation: bool


def new_game_state(
    *,
    game_id: GameID | None = None,
    rules: RulesConfig = DEFAULT_RULES,
    now: datetime | None = None,
) -> GameState:
    """Fresh aggregate with starting resources and the default map layout."""

    timestamp = now or utc_now()
    return GameState(
        id=game_id or uuid4(),
        resources=rules.starting_resources,
        alert_level=0.0,
        objectives=default_objectives(rules=rules),
        status=GameStatus.PLAYING,
        statistics=GameStatistics(started_at=timestamp),
        last_saved_at=timestamp,
    )


class GameStateManager:
    """Owns one game and exposes its synchronous command and query surface.

    Commands run to completion before returning and never leave the aggregate
    half-updated.  Persisting the state is left to the caller.
    """

    def __init__(
        self,
        state: GameState | None = None,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._rules = rules
        self._clock = clock
        self._state = state if state is not None else new_game_state(rules=rules, now=clock())
        economy.normalize_base(self._state.base, rules=rules)
        self._map = ObjectiveMap(self._state.objectives, rules=rules)

    # --- lifecycle ------------------------------------------------------------

    def start_new_game(self, *, game_id: GameID | None = None) -> GameState:
        self._replace_state(new_game_state(game_id=game_id, rules=self._rules, now=self._clock()))
        logger.info("started game %s", self._state.id)
        return self._state

    def reset_game(self) -> GameState:
        return self.start_new_game()

    def pause_game(self) -> bool:
        if self._state.status is not GameStatus.PLAYING:
            return False
        self._state.status = GameStatus.PAUSED
        return True

    def resume_game(self) -> bool:
        if self._state.status is not GameStatus.PAUSED:
            return False
        self._state.status = GameStatus.PLAYING
        return True

    def export_state(self) -> GameState:
        """Stamp the save time and return an independent copy of the aggregate."""

        self._state.last_saved_at = self._clock()
        return copy.deepcopy(self._state)

    def import_state(self, snapshot: GameState) -> None:
        """Replace the aggregate wholesale with a copy of ``snapshot``."""

        self._replace_state(copy.deepcopy(snapshot))
        logger.info("imported game %s (%s)", self._state.id, self._state.status)

    def _replace_state(self, state: GameState) -> None:
        economy.normalize_base(state.base, rules=self._rules)
        self._state = state
        self._map = ObjectiveMap(state.objectives, rules=self._rules)

    # --- queries --------------------------------------------------------------

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def rules(self) -> RulesConfig:
        return self._rules

    @property
    def resources(self) -> Resource:
        return self._state.resources

    @property
    def alert_level(self) -> float:
        return self._state.alert_level

    @property
    def status(self) -> GameStatus:
        return self._state.status

    @property
    def objectives(self) -> list[Objective]:
        return list(self._map)

    def get_objective(self, objective_id: ObjectiveID) -> Objective | None:
        return self._map.get(objective_id)

    def objective_at(
        self, x: float, y: float, *, tolerance: float | None = None
    ) -> Objective | None:
        return self._map.nearest_active(x, y, tolerance=tolerance)

    def map_statistics(self) -> MapStatistics:
        return self._map.statistics()

    def base_statistics(self) -> economy.BaseStatistics:
        return economy.base_statistics(self._state.base, rules=self._rules)

    def storage_capacity(self) -> Resource:
        return economy.storage_capacity(self._state.base, rules=self._rules)

    def validate_base(self) -> economy.BaseValidation:
        return economy.validate_base(self._state.base, self._state.resources, rules=self._rules)

    def validate_action(
        self, action: ActionKind, objective_id: ObjectiveID
    ) -> actions.ActionValidation:
        objective = self._require_objective(objective_id)
        return actions.validate_action(action, self._state.resources, objective, rules=self._rules)

    def analyze_operation(
        self, action: ActionKind, objective_id: ObjectiveID
    ) -> combat.OperationAnalysis:
        objective = self._require_objective(objective_id)
        return combat.analyze_operation(
            action, self._state.resources, objective, rules=self._rules
        )

    def compare_actions(
        self, objective_id: ObjectiveID
    ) -> dict[ActionKind, combat.OperationAnalysis]:
        objective = self._require_objective(objective_id)
        return combat.compare_actions(self._state.resources, objective, rules=self._rules)

    def best_action(self, objective_id: ObjectiveID) -> ActionKind | None:
        objective = self._require_objective(objective_id)
        return combat.best_action(self._state.resources, objective, rules=self._rules)

    def can_afford_any_operation(self) -> bool:
        return bool(actions.affordable_actions(self._state.resources, rules=self._rules))

    def game_summary(self) -> GameSummary:
        return GameSummary(
            status=self._state.status,
            alert_percentage=self._state.alert_percentage,
            completion_percentage=self._map.completion_percentage,
            total_resource_value=self._state.resources.total_value,
            operations_performed=self._state.statistics.operations_performed,
            can_afford_any_operation=self.can_afford_any_operation(),
        )

    def _require_objective(self, objective_id: ObjectiveID) -> Objective:
        objective = self._map.get(objective_id)
        if objective is None:
            raise UnknownObjectiveError(f"objective {int(objective_id)} not found")
        return objective

    # --- commands -------------------------------------------------------------

    def execute_operation(self, action: ActionKind, objective_id: ObjectiveID) -> OperationAttempt:
        """Validate, resolve and apply one operation."""

        objective = self._require_objective(objective_id)
        state = self._state

        if state.status is not GameStatus.PLAYING:
            return OperationAttempt(accepted=False, issues=(GAME_NOT_ACTIVE,))

        validation = actions.validate_action(action, state.resources, objective, rules=self._rules)
        if not validation.is_valid:
            logger.debug(
                "rejected %s against objective %s: %s",
                action,
                int(objective_id),
                validation.error_message,
            )
            return OperationAttempt(accepted=False, issues=validation.issues)

        result = combat.resolve_operation(action, state.resources, objective, rules=self._rules)

        ledger = state.resources - result.resources_lost
        if result.success:
            ledger = economy.clamp_to_capacity(
                ledger + result.resources_gained, state.base, rules=self._rules
            )
        state.resources = ledger

        self._raise_alert(actions.alert_increase(action, success=result.success, rules=self._rules))

        if result.success:
            if action is ActionKind.CAPTURE and self._map.capture(objective_id):
                state.statistics.objectives_captured += 1
            elif action is ActionKind.DESTRUCTION and self._map.destroy(objective_id):
                state.statistics.objectives_destroyed += 1

        self._map.apply_operation_consequences(action, success=result.success)

        state.statistics.record_operation(
            success=result.success,
            gained=result.resources_gained,
            lost=result.resources_lost,
        )
        self._check_victory()

        logger.info(
            "%s against objective %s: %s (p=%.2f, alert=%.2f)",
            action,
            int(objective_id),
            result.outcome,
            result.success_probability,
            state.alert_level,
        )
        return OperationAttempt(accepted=True, result=result)

    def upgrade_building(self, kind: BuildingKind) -> CommandResult:
        if self._state.status is not GameStatus.PLAYING:
            return CommandResult(False, (GAME_NOT_ACTIVE,))
        transaction = economy.upgrade_building(
            self._state.base, kind, self._state.resources, rules=self._rules
        )
        return self._apply_transaction(transaction)

    def recruit_units(self, count: int) -> CommandResult:
        if self._state.status is not GameStatus.PLAYING:
            return CommandResult(False, (GAME_NOT_ACTIVE,))
        transaction = economy.recruit_units(
            self._state.base, self._state.resources, count, rules=self._rules
        )
        return self._apply_transaction(transaction)

    def purchase_supplies(self, *, ammo: int = 0, food: int = 0) -> CommandResult:
        if self._state.status is not GameStatus.PLAYING:
            return CommandResult(False, (GAME_NOT_ACTIVE,))
        transaction = economy.purchase_supplies(
            self._state.base, self._state.resources, ammo=ammo, food=food, rules=self._rules
        )
        return self._apply_transaction(transaction)

    def increase_alert(self, amount: float) -> None:
        """Raise the alert meter; the meter never decreases."""

        if amount < 0:
            raise ValueError("alert increase must be non-negative")
        if self._state.is_over:
            return
        self._raise_alert(amount)

    def check_win_condition(self) -> GameStatus:
        """Re-check defeat and victory conditions against the current aggregate."""

        state = self._state
        if not state.is_over and state.alert_level >= self._rules.alert.defeat_threshold:
            self._trigger_defeat()
        self._check_victory()
        return state.status

    def _apply_transaction(self, transaction: economy.Transaction) -> CommandResult:
        if not transaction.success:
            logger.debug("economy command rejected: %s", transaction.detail)
            return CommandResult(False, (transaction.detail,), transaction.cost)
        self._state.resources = transaction.resources
        logger.info("%s", transaction.detail)
        return CommandResult(True, (), transaction.cost)

    def _raise_alert(self, amount: float) -> None:
        state = self._state
        state.alert_level = min(self._rules.alert.maximum, state.alert_level + amount)
        if state.alert_level >= self._rules.alert.defeat_threshold and not state.is_over:
            self._trigger_defeat()

    def _trigger_defeat(self) -> None:
        self._state.status = GameStatus.DEFEAT
        logger.info("game %s lost: base discovered", self._state.id)

    def _check_victory(self) -> None:
        if self._state.status is GameStatus.PLAYING and self._map.all_resolved:
            self._state.status = GameStatus.VICTORY
            logger.info("game %s won", self._state.id)
