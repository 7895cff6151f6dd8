"""End-to-end checks: scripted sessions replay identically and survive persistence."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

from shadowfront import savegame
from shadowfront.domain.enums import ActionKind, BuildingKind, GameStatus
from shadowfront.domain.game import GameStateManager
from shadowfront.domain.models import ObjectiveID
from shadowfront.repository import JsonSaveRepository

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
GAME_ID = UUID("12345678-1234-5678-1234-567812345678")

SCRIPT: list[tuple[str, object]] = [
    ("operation", (ActionKind.RAID, 3)),
    ("operation", (ActionKind.RAID, 5)),
    ("purchase", (20, 10)),
    ("operation", (ActionKind.DESTRUCTION, 4)),
    ("upgrade", BuildingKind.BARRACKS),
    ("operation", (ActionKind.ROBBERY, 6)),
    ("recruit", 1),
    ("operation", (ActionKind.RAID, 1)),
]


def _play(manager: GameStateManager) -> list[object]:
    outcomes: list[object] = []
    for command, argument in SCRIPT:
        if command == "operation":
            action, objective_id = argument
            attempt = manager.execute_operation(action, ObjectiveID(objective_id))
            outcomes.append(attempt.result.outcome if attempt.result else attempt.issues)
        elif command == "purchase":
            ammo, food = argument
            outcomes.append(manager.purchase_supplies(ammo=ammo, food=food).success)
        elif command == "upgrade":
            outcomes.append(manager.upgrade_building(argument).success)
        else:
            outcomes.append(manager.recruit_units(argument).success)
    return outcomes


def _fresh() -> GameStateManager:
    manager = GameStateManager(clock=lambda: FIXED_NOW)
    manager.start_new_game(game_id=GAME_ID)
    return manager


def test_identical_command_sequences_produce_identical_states():
    first, second = _fresh(), _fresh()

    assert _play(first) == _play(second)
    assert first.state == second.state
    assert first.state.statistics.operations_performed > 0


def test_replay_after_save_and_load_matches_uninterrupted_run(tmp_path):
    repo = JsonSaveRepository(tmp_path, clock=lambda: FIXED_NOW)
    uninterrupted = _fresh()
    _play(uninterrupted)

    interrupted = _fresh()
    midpoint = len(SCRIPT) // 2
    for command, argument in SCRIPT[:midpoint]:
        if command == "operation":
            action, objective_id = argument
            interrupted.execute_operation(action, ObjectiveID(objective_id))
        elif command == "purchase":
            interrupted.purchase_supplies(ammo=argument[0], food=argument[1])
    repo.save(interrupted.export_state(), name="midgame")

    outcome = repo.load("midgame")
    assert outcome.loaded
    resumed = GameStateManager(outcome.game, clock=lambda: FIXED_NOW)
    for command, argument in SCRIPT[midpoint:]:
        if command == "operation":
            action, objective_id = argument
            resumed.execute_operation(action, ObjectiveID(objective_id))
        elif command == "upgrade":
            resumed.upgrade_building(argument)
        elif command == "recruit":
            resumed.recruit_units(argument)

    assert resumed.state == uninterrupted.state


def test_alert_only_rises_until_defeat():
    manager = _fresh()
    levels = [manager.alert_level]

    while manager.status is GameStatus.PLAYING:
        attempt = manager.execute_operation(ActionKind.RAID, ObjectiveID(3))
        if not attempt.accepted:
            manager.increase_alert(0.1)
        levels.append(manager.alert_level)

    assert levels == sorted(levels)
    assert manager.status is GameStatus.DEFEAT
    assert manager.alert_level == 1.0

    manifest = savegame.export_game(manager.export_state())
    restored = savegame.decode_manifest(savegame.encode_manifest(manifest))
    assert restored.game.status is GameStatus.DEFEAT
