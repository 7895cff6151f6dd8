"""Unit tests for the game state manager."""

from __future__ import annotations

import copy
from dataclasses import replace
from datetime import UTC, datetime
from uuid import UUID

import pytest

from shadowfront.domain.enums import (
    ActionKind,
    BuildingKind,
    GameStatus,
    ObjectiveKind,
    ObjectiveStatus,
    OperationOutcome,
)
from shadowfront.domain.game import (
    GAME_NOT_ACTIVE,
    GameStateManager,
    UnknownObjectiveError,
    new_game_state,
)
from shadowfront.domain.ledger import Resource
from shadowfront.domain.models import Building, GameState, ObjectiveID, Position
from shadowfront.domain.objectives import spawn_objective
from shadowfront.domain.rules_config import DEFAULT_RULES

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
GAME_ID = UUID("12345678-1234-5678-1234-567812345678")
VILLAGE = ObjectiveID(3)
ENEMY_BASE = ObjectiveID(1)


def _clock() -> datetime:
    return FIXED_NOW


def _manager() -> GameStateManager:
    manager = GameStateManager(clock=_clock)
    manager.start_new_game(game_id=GAME_ID)
    return manager


def _single_objective_state(resources: Resource) -> GameState:
    state = new_game_state(game_id=GAME_ID, now=FIXED_NOW)
    state.objectives = [
        spawn_objective(ObjectiveID(1), ObjectiveKind.VILLAGE, Position(100.0, 100.0))
    ]
    state.resources = resources
    return state


def test_new_game_defaults():
    manager = _manager()
    state = manager.state

    assert state.id == GAME_ID
    assert state.resources == Resource(money=500, ammo=20, food=30, units=5)
    assert state.alert_level == 0.0
    assert state.status is GameStatus.PLAYING
    assert len(manager.objectives) == 11
    assert state.statistics.started_at == FIXED_NOW


def test_raid_scenario_runs_all_steps():
    manager = _manager()

    attempt = manager.execute_operation(ActionKind.RAID, VILLAGE)

    assert attempt.accepted
    result = attempt.result
    assert result.success
    assert result.success_probability == 0.95
    assert manager.resources == Resource(money=500, ammo=23, food=34, units=10)
    assert manager.alert_level == pytest.approx(0.10)
    assert manager.get_objective(VILLAGE).status is ObjectiveStatus.ACTIVE
    assert all(objective.defense_bonus == 5 for objective in manager.objectives)
    stats = manager.state.statistics
    assert stats.operations_performed == stats.successful_operations == 1
    assert stats.turns_played == 1
    assert stats.total_resources_gained == Resource(ammo=5, food=5, units=5)
    assert stats.total_resources_lost == Resource(ammo=2, food=1)
    assert manager.status is GameStatus.PLAYING


def test_result_snapshot_is_taken_before_consequences():
    manager = _manager()
    attempt = manager.execute_operation(ActionKind.RAID, VILLAGE)

    assert attempt.result.target.defense_bonus == 0
    assert manager.get_objective(VILLAGE).defense_bonus == 5


def test_failed_raid_applies_penalty_and_half_bonus():
    manager = _manager()

    attempt = manager.execute_operation(ActionKind.RAID, ENEMY_BASE)

    assert attempt.accepted
    assert not attempt.result.success
    assert manager.resources == Resource(money=500, ammo=16, food=28, units=4)
    assert manager.alert_level == pytest.approx(0.15)
    assert all(objective.defense_bonus == 2 for objective in manager.objectives)
    assert manager.state.statistics.failed_operations == 1
    assert manager.state.statistics.total_resources_gained == Resource()


def test_destruction_scenario():
    manager = _manager()
    before = {objective.id: objective.current_units for objective in manager.objectives}

    attempt = manager.execute_operation(ActionKind.DESTRUCTION, VILLAGE)

    assert attempt.result.success
    assert manager.get_objective(VILLAGE).status is ObjectiveStatus.DESTROYED
    assert manager.state.statistics.objectives_destroyed == 1
    for objective in manager.objectives:
        if objective.id == VILLAGE:
            continue
        assert objective.current_units == before[objective.id] - 1
        assert objective.defense_bonus == 0
    assert manager.resources == Resource(money=500, ammo=13, food=29, units=6)


def test_rejected_operation_changes_nothing():
    manager = _manager()
    manager.execute_operation(ActionKind.DESTRUCTION, VILLAGE)
    snapshot = copy.deepcopy(manager.state)

    attempt = manager.execute_operation(ActionKind.RAID, VILLAGE)

    assert not attempt.accepted
    assert attempt.result is None
    assert attempt.issues == ("Target is not operational",)
    assert manager.state == snapshot


def test_unknown_objective_raises():
    manager = _manager()
    with pytest.raises(UnknownObjectiveError):
        manager.execute_operation(ActionKind.RAID, ObjectiveID(99))
    with pytest.raises(KeyError):
        manager.analyze_operation(ActionKind.RAID, ObjectiveID(99))
    assert manager.get_objective(ObjectiveID(99)) is None


def test_capture_of_last_objective_wins_and_clamps_gain():
    state = _single_objective_state(Resource(money=500, ammo=40, food=30, units=10))
    manager = GameStateManager(state, clock=_clock)

    attempt = manager.execute_operation(ActionKind.CAPTURE, ObjectiveID(1))

    assert attempt.result.success
    assert manager.status is GameStatus.VICTORY
    assert manager.state.statistics.objectives_captured == 1
    # 10 - 1 + 10 units exceeds the barracks ceiling of 15.
    assert manager.resources == Resource(money=500, ammo=50, food=42, units=15)
    assert manager.alert_level == 0.0


def test_alert_reaching_one_is_defeat_and_irreversible():
    state = _single_objective_state(Resource(money=500, ammo=40, food=30, units=10))
    state.objectives.append(
        spawn_objective(ObjectiveID(2), ObjectiveKind.STATION, Position(300.0, 300.0))
    )
    state.alert_level = 0.95
    manager = GameStateManager(state, clock=_clock)

    attempt = manager.execute_operation(ActionKind.DESTRUCTION, ObjectiveID(1))

    assert attempt.accepted
    assert manager.alert_level == 1.0
    assert manager.status is GameStatus.DEFEAT
    snapshot = copy.deepcopy(manager.state)

    assert manager.execute_operation(ActionKind.RAID, ObjectiveID(2)).issues == (GAME_NOT_ACTIVE,)
    assert not manager.upgrade_building(BuildingKind.STORAGE).success
    assert not manager.recruit_units(1).success
    assert not manager.purchase_supplies(ammo=1).success
    assert not manager.resume_game()
    assert not manager.pause_game()
    manager.increase_alert(0.5)
    assert manager.check_win_condition() is GameStatus.DEFEAT
    assert manager.state == snapshot


def test_defeat_takes_precedence_over_victory():
    state = _single_objective_state(Resource(money=500, ammo=40, food=30, units=10))
    state.alert_level = 0.95
    manager = GameStateManager(state, clock=_clock)

    manager.execute_operation(ActionKind.DESTRUCTION, ObjectiveID(1))

    assert manager.get_objective(ObjectiveID(1)).is_destroyed
    assert manager.status is GameStatus.DEFEAT


def test_check_win_condition_on_empty_map():
    state = _single_objective_state(Resource())
    state.objectives = []
    manager = GameStateManager(state, clock=_clock)

    assert manager.check_win_condition() is GameStatus.VICTORY


def test_increase_alert():
    manager = _manager()
    with pytest.raises(ValueError):
        manager.increase_alert(-0.1)

    manager.increase_alert(0.4)
    assert manager.alert_level == pytest.approx(0.4)
    manager.increase_alert(5.0)
    assert manager.alert_level == 1.0
    assert manager.status is GameStatus.DEFEAT


def test_pause_and_resume_only_from_matching_state():
    manager = _manager()

    assert not manager.resume_game()
    assert manager.pause_game()
    assert manager.status is GameStatus.PAUSED
    assert not manager.pause_game()

    attempt = manager.execute_operation(ActionKind.RAID, VILLAGE)
    assert attempt.issues == (GAME_NOT_ACTIVE,)
    assert manager.state.statistics.operations_performed == 0

    assert manager.resume_game()
    assert manager.status is GameStatus.PLAYING


def test_base_commands_update_ledger():
    manager = _manager()

    upgrade = manager.upgrade_building(BuildingKind.STORAGE)
    assert upgrade.success
    assert upgrade.cost == Resource(money=300, ammo=2, food=3)
    assert manager.state.base.storage.level == 2
    assert manager.storage_capacity().money == 1400

    recruit = manager.recruit_units(3)
    assert not recruit.success
    assert recruit.issues == ("Insufficient resources",)
    assert manager.resources == Resource(money=200, ammo=18, food=27, units=5)

    purchase = manager.purchase_supplies(ammo=10, food=20)
    assert purchase.success
    assert manager.resources == Resource(money=110, ammo=28, food=47, units=5)

    recruit = manager.recruit_units(1)
    assert recruit.success
    assert manager.resources == Resource(money=10, ammo=28, food=42, units=6)


def test_queries():
    manager = _manager()

    assert manager.objective_at(705.0, 600.0).id == VILLAGE
    assert manager.validate_action(ActionKind.RAID, VILLAGE).is_valid
    assert manager.best_action(VILLAGE) is ActionKind.RAID
    assert set(manager.compare_actions(VILLAGE)) == set(ActionKind)
    assert manager.map_statistics().active == 11
    assert manager.base_statistics().max_units == 15
    assert manager.validate_base().is_valid
    assert manager.can_afford_any_operation()

    summary = manager.game_summary()
    assert summary.status is GameStatus.PLAYING
    assert summary.alert_percentage == 0
    assert summary.total_resource_value == 500 + 100 + 60 + 525


def test_cannot_afford_any_operation():
    state = _single_objective_state(Resource(money=1000, ammo=1, food=50, units=5))
    assert not GameStateManager(state).can_afford_any_operation()


def test_export_import_round_trip():
    manager = _manager()
    manager.execute_operation(ActionKind.RAID, VILLAGE)
    manager.upgrade_building(BuildingKind.BARRACKS)

    snapshot = manager.export_state()
    assert snapshot.last_saved_at == FIXED_NOW
    assert snapshot == manager.state
    assert snapshot is not manager.state

    restored = GameStateManager(clock=_clock)
    restored.import_state(snapshot)
    assert restored.state == snapshot

    restored.execute_operation(ActionKind.RAID, VILLAGE)
    assert snapshot.statistics.operations_performed == 1
    assert manager.state.statistics.operations_performed == 1


def test_reset_replaces_the_aggregate():
    manager = _manager()
    manager.execute_operation(ActionKind.RAID, VILLAGE)

    state = manager.reset_game()

    assert state.id != GAME_ID
    assert state.statistics.operations_performed == 0
    assert manager.alert_level == 0.0
    assert manager.objective_at(705.0, 600.0).defense_bonus == 0


def test_losses_beyond_holdings_clamp_ledger_to_zero():
    state = _single_objective_state(Resource(ammo=2, food=1, units=1))
    state.objectives = [
        spawn_objective(ObjectiveID(1), ObjectiveKind.BASE, Position(100.0, 100.0))
    ]
    manager = GameStateManager(state, clock=_clock)

    attempt = manager.execute_operation(ActionKind.RAID, ObjectiveID(1))

    assert attempt.result.outcome is OperationOutcome.FAILURE
    assert attempt.result.resources_lost == Resource(ammo=4, food=2, units=1)
    assert manager.resources == Resource()
    assert manager.state.statistics.total_resources_lost == Resource(ammo=4, food=2, units=1)


def test_alert_accumulates_as_plain_float_addition():
    state = _single_objective_state(Resource(money=500, ammo=400, food=400, units=15))
    manager = GameStateManager(state, clock=_clock)

    for _ in range(10):
        assert manager.execute_operation(ActionKind.RAID, ObjectiveID(1)).result.success

    # Ten steps of 0.1 sum to just under the defeat threshold.
    assert manager.alert_level == 0.9999999999999999
    assert manager.state.alert_percentage == 99
    assert manager.status is GameStatus.PLAYING

    manager.execute_operation(ActionKind.RAID, ObjectiveID(1))

    assert manager.alert_level == 1.0
    assert manager.status is GameStatus.DEFEAT


def test_manager_clamps_building_levels_with_its_rules():
    rules = replace(DEFAULT_RULES, economy=replace(DEFAULT_RULES.economy, max_building_level=4))
    state = _single_objective_state(Resource())
    state.base.storage = Building(BuildingKind.STORAGE, 9)

    manager = GameStateManager(state, rules=rules, clock=_clock)
    assert manager.state.base.storage.level == 4

    snapshot = copy.deepcopy(state)
    snapshot.base.barracks = Building(BuildingKind.BARRACKS, 12)
    manager.import_state(snapshot)
    assert manager.state.base.barracks.level == 4
