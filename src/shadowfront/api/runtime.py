"""Runtime primitives backing the Shadowfront HTTP API."""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any
from uuid import UUID

from shadowfront import savegame
from shadowfront.config import Settings, get_settings
from shadowfront.domain import models as dm
from shadowfront.domain.combat import OperationAnalysis
from shadowfront.domain.enums import ActionKind, ObjectiveKind
from shadowfront.domain.game import GameStateManager, OperationAttempt
from shadowfront.domain.rules_config import DEFAULT_RULES, RulesConfig
from shadowfront.repository import QUICKSAVE_SLOT, JsonSaveRepository

logger = logging.getLogger(__name__)


class GameNotFoundError(LookupError):
    """Raised when a request names a game that is not loaded."""


class GameSessionService:
    """Keeps running games in memory and serializes commands per game."""

    def __init__(
        self,
        repository: JsonSaveRepository,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        autosave_enabled: bool = True,
        clock: Callable[[], datetime] = dm.utc_now,
    ) -> None:
        self._repository = repository
        self._rules = rules
        self._autosave_enabled = autosave_enabled
        self._clock = clock
        self._sessions: dict[UUID, GameStateManager] = {}
        self._locks: dict[UUID, asyncio.Lock] = {}

    def create_game(self) -> GameStateManager:
        manager = GameStateManager(rules=self._rules, clock=self._clock)
        manager.start_new_game()
        self._register(manager)
        return manager

    def list_games(self) -> list[GameStateManager]:
        return list(self._sessions.values())

    def get(self, game_id: UUID) -> GameStateManager:
        """Return a loaded game or raise ``GameNotFoundError``."""

        manager = self._sessions.get(game_id)
        if manager is None:
            logger.warning("game %s is not loaded", game_id)
            raise GameNotFoundError(f"game {game_id} not found")
        return manager

    def discard(self, game_id: UUID) -> None:
        self.get(game_id)
        del self._sessions[game_id]
        self._locks.pop(game_id, None)

    def _register(self, manager: GameStateManager) -> None:
        self._sessions[manager.state.id] = manager
        self._locks.setdefault(manager.state.id, asyncio.Lock())

    @asynccontextmanager
    async def command(self, game_id: UUID) -> AsyncIterator[GameStateManager]:
        """Run one command under the game's lock; autosave only if the game changed."""

        manager = self.get(game_id)
        async with self._locks[game_id]:
            before = copy.deepcopy(manager.state)
            yield manager
            if manager.state != before:
                self._repository.autosave(
                    manager.export_state(), enabled=self._autosave_enabled
                )

    def save(self, game_id: UUID, name: str) -> savegame.SaveMetadata:
        manager = self.get(game_id)
        return self._repository.save(manager.export_state(), name=name)

    def quick_save(self, game_id: UUID) -> savegame.SaveMetadata:
        manager = self.get(game_id)
        return self._repository.quick_save(manager.export_state())

    def load_slot(self, name: str) -> tuple[savegame.LoadOutcome, GameStateManager | None]:
        """Load a save slot into memory, replacing any running copy of that game."""

        outcome = self._repository.load(name)
        if outcome.manifest is None:
            return outcome, None
        return outcome, self._adopt(savegame.import_game(outcome.manifest))

    def quick_load(self) -> tuple[savegame.LoadOutcome, GameStateManager | None]:
        return self.load_slot(QUICKSAVE_SLOT)

    def export(self, game_id: UUID) -> savegame.SaveManifest:
        manager = self.get(game_id)
        return savegame.export_game(manager.export_state(), kind=savegame.SaveKind.MANUAL)

    def import_manifest(self, payload: dict[str, Any]) -> GameStateManager:
        """Adopt an exported manifest as a new running game.

        Raises ``ValueError`` when the payload is not a valid save.
        """

        manifest = savegame.SaveManifest.model_validate(payload)
        if manifest.format_version > savegame.FORMAT_VERSION:
            raise ValueError(f"unsupported save format {manifest.format_version}")
        return self._adopt(savegame.import_game(manifest, assign_new_id=True))

    def _adopt(self, state: dm.GameState) -> GameStateManager:
        manager = GameStateManager(state, rules=self._rules, clock=self._clock)
        self._register(manager)
        logger.info("loaded game %s (%s)", state.id, state.status)
        return manager

    # --- serialization helpers ------------------------------------------------

    @staticmethod
    def to_objective_dict(objective: dm.Objective) -> dict[str, object]:
        return {
            "id": int(objective.id),
            "kind": str(objective.kind),
            "x": objective.position.x,
            "y": objective.position.y,
            "status": str(objective.status),
            "current_defense": objective.current_defense,
            "current_units": objective.current_units,
            "defense_bonus": objective.defense_bonus,
            "total_defense": objective.total_defense,
            "total_strength": objective.total_strength,
        }

    @staticmethod
    def to_summary_dict(manager: GameStateManager) -> dict[str, object]:
        """Return a JSON-friendly overview of a game."""

        state = manager.state
        summary = manager.game_summary()
        return {
            "id": str(state.id),
            "status": str(state.status),
            "alert_level": state.alert_level,
            "alert_percentage": summary.alert_percentage,
            "completion_percentage": summary.completion_percentage,
            "resources": state.resources.as_dict(),
            "total_resource_value": summary.total_resource_value,
            "operations_performed": summary.operations_performed,
            "can_afford_any_operation": summary.can_afford_any_operation,
            "last_saved_at": state.last_saved_at,
        }

    @staticmethod
    def to_statistics_dict(statistics: dm.GameStatistics) -> dict[str, object]:
        return {
            "operations_performed": statistics.operations_performed,
            "successful_operations": statistics.successful_operations,
            "failed_operations": statistics.failed_operations,
            "objectives_captured": statistics.objectives_captured,
            "objectives_destroyed": statistics.objectives_destroyed,
            "turns_played": statistics.turns_played,
            "success_rate": statistics.success_rate,
            "total_resources_gained": statistics.total_resources_gained.as_dict(),
            "total_resources_lost": statistics.total_resources_lost.as_dict(),
            "started_at": statistics.started_at,
        }

    @staticmethod
    def to_base_dict(manager: GameStateManager) -> dict[str, object]:
        stats = manager.base_statistics()
        validation = manager.validate_base()
        return {
            "storage_level": stats.storage_level,
            "barracks_level": stats.barracks_level,
            "storage_capacity": stats.storage_capacity.as_dict(),
            "max_units": stats.max_units,
            "base_value": stats.base_value,
            "upgrade_progress": stats.upgrade_progress,
            "issues": list(validation.issues),
            "warnings": list(validation.warnings),
        }

    @staticmethod
    def to_map_dict(manager: GameStateManager) -> dict[str, object]:
        stats = manager.map_statistics()
        return {
            "total": stats.total,
            "active": stats.active,
            "captured": stats.captured,
            "destroyed": stats.destroyed,
            "completion_percentage": stats.completion_percentage,
            "total_enemy_strength": stats.total_enemy_strength,
            "average_defense": stats.average_defense,
            "counts_by_kind": {
                str(kind): stats.counts_by_kind.get(kind, 0) for kind in ObjectiveKind
            },
        }

    @staticmethod
    def to_detail_dict(manager: GameStateManager) -> dict[str, object]:
        detail = GameSessionService.to_summary_dict(manager)
        detail.update(
            {
                "objectives": [
                    GameSessionService.to_objective_dict(objective)
                    for objective in manager.objectives
                ],
                "base": GameSessionService.to_base_dict(manager),
                "map": GameSessionService.to_map_dict(manager),
                "statistics": GameSessionService.to_statistics_dict(manager.state.statistics),
            }
        )
        return detail

    @staticmethod
    def to_attempt_dict(attempt: OperationAttempt) -> dict[str, object]:
        result = attempt.result
        payload: dict[str, object] = {
            "accepted": attempt.accepted,
            "issues": list(attempt.issues),
            "result": None,
        }
        if result is not None:
            payload["result"] = {
                "action": str(result.action),
                "objective_id": int(result.target.id),
                "outcome": str(result.outcome),
                "message": result.outcome_message,
                "success_probability": result.success_probability,
                "success_percentage": result.success_percentage,
                "player_strength": result.player_strength,
                "enemy_strength": result.enemy_strength,
                "resources_lost": result.resources_lost.as_dict(),
                "resources_gained": result.resources_gained.as_dict(),
                "net_value": result.net_value,
            }
        return payload

    @staticmethod
    def to_analysis_dict(analysis: OperationAnalysis) -> dict[str, object]:
        return {
            "action": str(analysis.action),
            "is_viable": analysis.is_viable,
            "success_probability": analysis.success_probability,
            "success_percentage": analysis.success_percentage,
            "expected_loss": analysis.expected_loss.as_dict(),
            "expected_gain": analysis.expected_gain.as_dict(),
            "expected_net_value": analysis.expected_net_value,
            "risk_tier": str(analysis.risk_tier) if analysis.risk_tier is not None else None,
            "risk_assessment": analysis.risk_assessment,
            "recommendation": analysis.recommendation,
            "issues": list(analysis.issues),
        }

    @staticmethod
    def to_slot_dict(metadata: savegame.SaveMetadata) -> dict[str, object]:
        return {
            "name": metadata.name,
            "game_id": str(metadata.game_id),
            "saved_at": metadata.saved_at,
            "status": str(metadata.status),
            "progress_percentage": metadata.progress_percentage,
            "alert_percentage": metadata.alert_percentage,
            "total_resource_value": metadata.total_resource_value,
            "operations_count": metadata.operations_count,
        }


def rules_overview(rules: RulesConfig = DEFAULT_RULES) -> dict[str, object]:
    """Describe the action catalog and objective archetypes for clients."""

    actions: dict[str, dict[str, object]] = {}
    for action in ActionKind:
        action_rules = rules.actions.for_action(action)
        actions[str(action)] = {
            "display_name": action_rules.display_name,
            "description": action_rules.description,
            "success_coefficient": action_rules.success_coefficient,
            "base_cost": action_rules.base_cost.as_dict(),
            "minimum_units": action_rules.minimum_units,
            "alert_increase": action_rules.alert_increase,
            "failure_alert_increase": action_rules.failure_alert_increase,
            "success_reward": action_rules.success_reward.as_dict(),
            "risk_tier": str(action_rules.risk_tier),
        }
    archetypes = {
        str(kind): {
            "display_name": rules.objectives.for_kind(kind).display_name,
            "baseline_defense": rules.objectives.for_kind(kind).baseline_defense,
            "initial_units": rules.objectives.for_kind(kind).initial_units,
        }
        for kind in ObjectiveKind
    }
    return {
        "actions": actions,
        "objectives": archetypes,
        "starting_resources": rules.starting_resources.as_dict(),
    }


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self, *, settings: Settings | None = None, rules: RulesConfig = DEFAULT_RULES
    ) -> None:
        self.settings = settings or get_settings()
        self.repository = JsonSaveRepository(
            self.settings.data_dir, max_slots=self.settings.max_save_slots
        )
        self.rules = rules
        self.games = GameSessionService(
            self.repository,
            rules=rules,
            autosave_enabled=self.settings.autosave_enabled,
        )

    async def shutdown(self) -> None:
        logger.info("shutting down with %d games loaded", len(self.games.list_games()))


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
