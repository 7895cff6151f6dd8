"""Tests for API runtime helpers (game sessions and rules overview)."""

from __future__ import annotations

import copy
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from shadowfront import savegame
from shadowfront.api.runtime import GameNotFoundError, GameSessionService, rules_overview
from shadowfront.domain.enums import ActionKind
from shadowfront.domain.models import ObjectiveID
from shadowfront.repository import AUTOSAVE_SLOT, JsonSaveRepository

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def _service(tmp_path, **kwargs) -> GameSessionService:
    repo = JsonSaveRepository(tmp_path)
    return GameSessionService(repo, clock=lambda: FIXED_NOW, **kwargs)


def test_create_and_list(tmp_path):
    service = _service(tmp_path)

    first = service.create_game()
    second = service.create_game()

    assert service.list_games() == [first, second]
    assert service.get(first.state.id) is first
    assert first.state.statistics.started_at == FIXED_NOW


def test_unknown_game(tmp_path):
    service = _service(tmp_path)
    with pytest.raises(GameNotFoundError):
        service.get(uuid4())
    with pytest.raises(GameNotFoundError):
        service.discard(uuid4())


@pytest.mark.asyncio
async def test_command_autosaves_after_success(tmp_path):
    service = _service(tmp_path)
    manager = service.create_game()

    async with service.command(manager.state.id) as locked:
        locked.execute_operation(ActionKind.RAID, ObjectiveID(3))

    outcome = JsonSaveRepository(tmp_path).load(AUTOSAVE_SLOT)
    assert outcome.loaded
    assert outcome.manifest.kind is savegame.SaveKind.AUTO
    assert outcome.game == manager.state


@pytest.mark.asyncio
async def test_command_skips_autosave_when_disabled_or_failing(tmp_path):
    service = _service(tmp_path, autosave_enabled=False)
    manager = service.create_game()

    async with service.command(manager.state.id) as locked:
        locked.pause_game()
    assert JsonSaveRepository(tmp_path).list_slots() == []

    service = _service(tmp_path)
    manager = service.create_game()
    with pytest.raises(KeyError):
        async with service.command(manager.state.id) as locked:
            locked.execute_operation(ActionKind.RAID, ObjectiveID(99))
    assert JsonSaveRepository(tmp_path).list_slots() == []


def test_save_and_load_slot(tmp_path):
    service = _service(tmp_path)
    manager = service.create_game()
    manager.execute_operation(ActionKind.RAID, ObjectiveID(3))
    game_id = manager.state.id

    metadata = service.save(game_id, "Checkpoint")
    assert metadata.operations_count == 1

    manager.execute_operation(ActionKind.RAID, ObjectiveID(3))
    outcome, restored = service.load_slot("Checkpoint")

    assert outcome.loaded
    assert restored is service.get(game_id)
    assert restored.state.statistics.operations_performed == 1

    outcome, restored = service.load_slot("absent")
    assert outcome.status is savegame.LoadStatus.MISSING
    assert restored is None


def test_quick_save_round_trip(tmp_path):
    service = _service(tmp_path)
    manager = service.create_game()

    service.quick_save(manager.state.id)
    service.discard(manager.state.id)
    outcome, restored = service.quick_load()

    assert outcome.loaded
    assert restored.state.id == manager.state.id


def test_export_and_import(tmp_path):
    service = _service(tmp_path)
    manager = service.create_game()

    manifest = service.export(manager.state.id)
    payload = manifest.model_dump(mode="json")
    imported = service.import_manifest(payload)

    assert imported.state.id != manager.state.id
    assert imported.state.resources == manager.state.resources
    assert len(service.list_games()) == 2

    payload = manifest.model_dump(mode="json")
    payload["format_version"] = savegame.FORMAT_VERSION + 1
    with pytest.raises(ValueError):
        service.import_manifest(payload)


def test_attempt_dict_for_rejection(tmp_path):
    service = _service(tmp_path)
    manager = service.create_game()
    manager.pause_game()

    attempt = manager.execute_operation(ActionKind.RAID, ObjectiveID(3))

    assert GameSessionService.to_attempt_dict(attempt) == {
        "accepted": False,
        "issues": ["Game is not in progress"],
        "result": None,
    }


def test_rules_overview_lists_catalog():
    overview = rules_overview()

    assert list(overview["actions"]) == ["raid", "robbery", "capture", "destruction"]
    assert overview["actions"]["raid"]["failure_alert_increase"] == pytest.approx(0.15)
    assert overview["objectives"]["base"]["baseline_defense"] == 50


@pytest.mark.asyncio
async def test_command_without_changes_does_not_autosave(tmp_path):
    service = _service(tmp_path)
    manager = service.create_game()
    manager.pause_game()
    repo = JsonSaveRepository(tmp_path)

    async with service.command(manager.state.id) as locked:
        assert not locked.pause_game()
    async with service.command(manager.state.id) as locked:
        assert not locked.execute_operation(ActionKind.RAID, ObjectiveID(3)).accepted
    assert repo.list_slots() == []

    async with service.command(manager.state.id) as locked:
        assert locked.resume_game()
    assert [meta.name for meta in repo.list_slots()] == [AUTOSAVE_SLOT]


def test_import_leaves_payload_untouched(tmp_path):
    service = _service(tmp_path)
    manager = service.create_game()
    payload = service.export(manager.state.id).model_dump(mode="json")
    original = copy.deepcopy(payload)

    service.import_manifest(payload)

    assert payload == original
    assert isinstance(payload["game"], dict)
