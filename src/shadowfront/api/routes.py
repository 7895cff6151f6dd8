"""HTTP routes for the Shadowfront API."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from shadowfront.api.runtime import (
    ApiState,
    GameNotFoundError,
    GameSessionService,
    rules_overview,
)
from shadowfront.domain import models as dm
from shadowfront.domain.enums import ActionKind, BuildingKind
from shadowfront.domain.game import CommandResult, GameStateManager, UnknownObjectiveError
from shadowfront.savegame import LoadStatus

router = APIRouter()


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


class ResourcePayload(BaseModel):
    money: int
    ammo: int
    food: int
    units: int


class ObjectiveSummary(BaseModel):
    id: int
    kind: str
    x: float
    y: float
    status: str
    current_defense: int
    current_units: int
    defense_bonus: int
    total_defense: int
    total_strength: int


class GameSummary(BaseModel):
    id: UUID
    status: str
    alert_level: float
    alert_percentage: int
    completion_percentage: float
    resources: ResourcePayload
    total_resource_value: int
    operations_performed: int
    can_afford_any_operation: bool
    last_saved_at: datetime


class BaseSummary(BaseModel):
    storage_level: int
    barracks_level: int
    storage_capacity: ResourcePayload
    max_units: int
    base_value: int
    upgrade_progress: float
    issues: list[str]
    warnings: list[str]


class GameDetail(GameSummary):
    objectives: list[ObjectiveSummary]
    base: BaseSummary
    map: dict[str, object]
    statistics: dict[str, object]


class OperationRequest(BaseModel):
    action: ActionKind
    objective_id: int


class OperationResultPayload(BaseModel):
    action: str
    objective_id: int
    outcome: str
    message: str
    success_probability: float
    success_percentage: int
    player_strength: float
    enemy_strength: float
    resources_lost: ResourcePayload
    resources_gained: ResourcePayload
    net_value: int


class OperationResponse(BaseModel):
    accepted: bool
    issues: list[str]
    result: OperationResultPayload | None
    game: GameSummary


class ValidationResponse(BaseModel):
    is_valid: bool
    issues: list[str]


class AnalysisResponse(BaseModel):
    action: str
    is_viable: bool
    success_probability: float
    success_percentage: int
    expected_loss: ResourcePayload
    expected_gain: ResourcePayload
    expected_net_value: int
    risk_tier: str | None
    risk_assessment: str
    recommendation: str
    issues: list[str]


class ComparisonResponse(BaseModel):
    objective_id: int
    best_action: str | None
    analyses: list[AnalysisResponse]


class UpgradeRequest(BaseModel):
    building: BuildingKind


class RecruitRequest(BaseModel):
    count: int = Field(ge=1)


class PurchaseRequest(BaseModel):
    ammo: int = Field(default=0, ge=0)
    food: int = Field(default=0, ge=0)


class CommandResponse(BaseModel):
    success: bool
    issues: list[str]
    cost: ResourcePayload
    game: GameSummary


class SaveRequest(BaseModel):
    name: str = Field(min_length=1, max_length=64)


class SaveSlotSummary(BaseModel):
    name: str
    game_id: UUID
    saved_at: datetime
    status: str
    progress_percentage: int
    alert_percentage: int
    total_resource_value: int
    operations_count: int


def _not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def _summary(manager: GameStateManager) -> GameSummary:
    return GameSummary.model_validate(GameSessionService.to_summary_dict(manager))


def _command_response(manager: GameStateManager, result: CommandResult) -> CommandResponse:
    return CommandResponse(
        success=result.success,
        issues=list(result.issues),
        cost=ResourcePayload.model_validate(result.cost.as_dict()),
        game=_summary(manager),
    )


def _load_game(state: ApiState, game_id: UUID) -> GameStateManager:
    try:
        return state.games.get(game_id)
    except GameNotFoundError as exc:
        raise _not_found("game not found") from exc


@router.get("/health")
async def health(state: ApiStateDep) -> dict[str, object]:
    return {
        "status": "ok",
        "rules_version": state.settings.rules_version,
        "games_loaded": len(state.games.list_games()),
        "autosave_enabled": state.settings.autosave_enabled,
    }


@router.get("/rules")
async def get_rules(state: ApiStateDep) -> dict[str, object]:
    return rules_overview(state.rules)


@router.get("/games", response_model=list[GameSummary])
async def list_games(state: ApiStateDep) -> list[GameSummary]:
    return [_summary(manager) for manager in state.games.list_games()]


@router.post("/games", response_model=GameDetail, status_code=status.HTTP_201_CREATED)
async def create_game(state: ApiStateDep) -> GameDetail:
    manager = state.games.create_game()
    return GameDetail.model_validate(GameSessionService.to_detail_dict(manager))


@router.get("/games/{game_id}", response_model=GameDetail)
async def get_game(game_id: UUID, state: ApiStateDep) -> GameDetail:
    manager = _load_game(state, game_id)
    return GameDetail.model_validate(GameSessionService.to_detail_dict(manager))


@router.delete("/games/{game_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_game(game_id: UUID, state: ApiStateDep) -> None:
    try:
        state.games.discard(game_id)
    except GameNotFoundError as exc:
        raise _not_found("game not found") from exc


@router.get("/games/{game_id}/objectives/nearest", response_model=ObjectiveSummary)
async def nearest_objective(
    game_id: UUID,
    state: ApiStateDep,
    x: float,
    y: float,
    tolerance: Annotated[float | None, Query(gt=0.0)] = None,
) -> ObjectiveSummary:
    manager = _load_game(state, game_id)
    objective = manager.objective_at(x, y, tolerance=tolerance)
    if objective is None:
        raise _not_found("no active objective near that position")
    return ObjectiveSummary.model_validate(GameSessionService.to_objective_dict(objective))


@router.get(
    "/games/{game_id}/objectives/{objective_id}/actions", response_model=ComparisonResponse
)
async def compare_actions(
    game_id: UUID, objective_id: int, state: ApiStateDep
) -> ComparisonResponse:
    manager = _load_game(state, game_id)
    key = dm.ObjectiveID(objective_id)
    try:
        analyses = manager.compare_actions(key)
        best = manager.best_action(key)
    except UnknownObjectiveError as exc:
        raise _not_found("objective not found") from exc
    return ComparisonResponse(
        objective_id=objective_id,
        best_action=str(best) if best is not None else None,
        analyses=[
            AnalysisResponse.model_validate(GameSessionService.to_analysis_dict(analysis))
            for analysis in analyses.values()
        ],
    )


@router.post("/games/{game_id}/operations", response_model=OperationResponse)
async def execute_operation(
    game_id: UUID, request: OperationRequest, state: ApiStateDep
) -> OperationResponse:
    try:
        async with state.games.command(game_id) as manager:
            attempt = manager.execute_operation(
                request.action, dm.ObjectiveID(request.objective_id)
            )
    except GameNotFoundError as exc:
        raise _not_found("game not found") from exc
    except UnknownObjectiveError as exc:
        raise _not_found("objective not found") from exc

    payload: dict[str, Any] = GameSessionService.to_attempt_dict(attempt)
    payload["game"] = GameSessionService.to_summary_dict(manager)
    return OperationResponse.model_validate(payload)


@router.post("/games/{game_id}/operations/validate", response_model=ValidationResponse)
async def validate_operation(
    game_id: UUID, request: OperationRequest, state: ApiStateDep
) -> ValidationResponse:
    manager = _load_game(state, game_id)
    try:
        validation = manager.validate_action(request.action, dm.ObjectiveID(request.objective_id))
    except UnknownObjectiveError as exc:
        raise _not_found("objective not found") from exc
    return ValidationResponse(is_valid=validation.is_valid, issues=list(validation.issues))


@router.post("/games/{game_id}/operations/analyze", response_model=AnalysisResponse)
async def analyze_operation(
    game_id: UUID, request: OperationRequest, state: ApiStateDep
) -> AnalysisResponse:
    manager = _load_game(state, game_id)
    try:
        analysis = manager.analyze_operation(request.action, dm.ObjectiveID(request.objective_id))
    except UnknownObjectiveError as exc:
        raise _not_found("objective not found") from exc
    return AnalysisResponse.model_validate(GameSessionService.to_analysis_dict(analysis))


@router.get("/games/{game_id}/base", response_model=BaseSummary)
async def get_base(game_id: UUID, state: ApiStateDep) -> BaseSummary:
    manager = _load_game(state, game_id)
    return BaseSummary.model_validate(GameSessionService.to_base_dict(manager))


@router.post("/games/{game_id}/base/upgrade", response_model=CommandResponse)
async def upgrade_building(
    game_id: UUID, request: UpgradeRequest, state: ApiStateDep
) -> CommandResponse:
    try:
        async with state.games.command(game_id) as manager:
            result = manager.upgrade_building(request.building)
    except GameNotFoundError as exc:
        raise _not_found("game not found") from exc
    return _command_response(manager, result)


@router.post("/games/{game_id}/base/recruit", response_model=CommandResponse)
async def recruit_units(
    game_id: UUID, request: RecruitRequest, state: ApiStateDep
) -> CommandResponse:
    try:
        async with state.games.command(game_id) as manager:
            result = manager.recruit_units(request.count)
    except GameNotFoundError as exc:
        raise _not_found("game not found") from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _command_response(manager, result)


@router.post("/games/{game_id}/base/purchase", response_model=CommandResponse)
async def purchase_supplies(
    game_id: UUID, request: PurchaseRequest, state: ApiStateDep
) -> CommandResponse:
    try:
        async with state.games.command(game_id) as manager:
            result = manager.purchase_supplies(ammo=request.ammo, food=request.food)
    except GameNotFoundError as exc:
        raise _not_found("game not found") from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _command_response(manager, result)


@router.post("/games/{game_id}/pause", response_model=GameSummary)
async def pause_game(game_id: UUID, state: ApiStateDep) -> GameSummary:
    try:
        async with state.games.command(game_id) as manager:
            manager.pause_game()
    except GameNotFoundError as exc:
        raise _not_found("game not found") from exc
    return _summary(manager)


@router.post("/games/{game_id}/resume", response_model=GameSummary)
async def resume_game(game_id: UUID, state: ApiStateDep) -> GameSummary:
    try:
        async with state.games.command(game_id) as manager:
            manager.resume_game()
    except GameNotFoundError as exc:
        raise _not_found("game not found") from exc
    return _summary(manager)


@router.get("/games/{game_id}/export")
async def export_game(game_id: UUID, state: ApiStateDep) -> dict[str, Any]:
    try:
        manifest = state.games.export(game_id)
    except GameNotFoundError as exc:
        raise _not_found("game not found") from exc
    return manifest.model_dump(mode="json")


@router.post("/games/import", response_model=GameDetail, status_code=status.HTTP_201_CREATED)
async def import_game(payload: dict[str, Any], state: ApiStateDep) -> GameDetail:
    try:
        manager = state.games.import_manifest(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return GameDetail.model_validate(GameSessionService.to_detail_dict(manager))


@router.get("/saves", response_model=list[SaveSlotSummary])
async def list_saves(state: ApiStateDep) -> list[SaveSlotSummary]:
    return [
        SaveSlotSummary.model_validate(GameSessionService.to_slot_dict(metadata))
        for metadata in state.repository.list_slots()
    ]


@router.post(
    "/games/{game_id}/saves", response_model=SaveSlotSummary, status_code=status.HTTP_201_CREATED
)
async def save_game(game_id: UUID, request: SaveRequest, state: ApiStateDep) -> SaveSlotSummary:
    try:
        metadata = state.games.save(game_id, request.name)
    except GameNotFoundError as exc:
        raise _not_found("game not found") from exc
    return SaveSlotSummary.model_validate(GameSessionService.to_slot_dict(metadata))


@router.post("/games/{game_id}/quicksave", response_model=SaveSlotSummary)
async def quick_save(game_id: UUID, state: ApiStateDep) -> SaveSlotSummary:
    try:
        metadata = state.games.quick_save(game_id)
    except GameNotFoundError as exc:
        raise _not_found("game not found") from exc
    return SaveSlotSummary.model_validate(GameSessionService.to_slot_dict(metadata))


@router.post("/saves/{name}/load", response_model=GameDetail)
async def load_save(name: str, state: ApiStateDep) -> GameDetail:
    outcome, manager = state.games.load_slot(name)
    if manager is None:
        if outcome.status is LoadStatus.CORRUPTED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"save {name!r} is corrupted",
            )
        raise _not_found(f"save {name!r} not found")
    return GameDetail.model_validate(GameSessionService.to_detail_dict(manager))


@router.delete("/saves/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_save(name: str, state: ApiStateDep) -> None:
    if not state.repository.delete(name):
        raise _not_found(f"save {name!r} not found")
