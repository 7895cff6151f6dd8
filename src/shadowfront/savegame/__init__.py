"""Import and export helpers for Shadowfront save files."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4
from zipfile import ZIP_DEFLATED, BadZipFile, ZipFile

from pydantic import BaseModel, Field, TypeAdapter, model_validator

from shadowfront.domain import models as dm
from shadowfront.domain.enums import GameStatus

GAME_ADAPTER: TypeAdapter[dm.GameState] = TypeAdapter(dm.GameState)

FORMAT_VERSION = 1
RULES_VERSION = "1.0"
GAME_VERSION = "0.1.0"
MANIFEST_PATH = "shadowfront/manifest.json"


class SaveError(Exception):
    """Raised when a game cannot be serialized."""


class SaveKind(StrEnum):
    """How a save came into existence."""

    AUTO = "auto"
    MANUAL = "manual"
    QUICK = "quick"
    IMPORTED = "imported"


class SaveMetadata(BaseModel):
    """Summary shown in save-slot listings without decoding the whole game."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    game_id: UUID
    saved_at: datetime = Field(default_factory=dm.utc_now)
    status: GameStatus = GameStatus.PLAYING
    progress: float = 0.0
    alert_percentage: int = 0
    total_resource_value: int = 0
    operations_count: int = 0
    rules_version: str = RULES_VERSION
    game_version: str = GAME_VERSION

    @property
    def progress_percentage(self) -> int:
        return int(self.progress * 100)


class SaveManifest(BaseModel):
    """Top-level document stored for every save."""

    format_version: int = FORMAT_VERSION
    kind: SaveKind
    metadata: SaveMetadata
    game: dm.GameState

    @model_validator(mode="before")
    @classmethod
    def _convert_game(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        raw = values.get("game")
        if raw is not None and not isinstance(raw, dm.GameState):
            return {**values, "game": GAME_ADAPTER.validate_python(raw)}
        return values

    def model_dump(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        data = super().model_dump(*args, **kwargs)
        data["game"] = GAME_ADAPTER.dump_python(self.game, mode="json")
        return data


class LoadStatus(StrEnum):
    MISSING = "missing"
    CORRUPTED = "corrupted"
    LOADED = "loaded"


@dataclass(frozen=True, slots=True)
class LoadOutcome:
    """Result of reading a save; exactly one of the three statuses applies."""

    status: LoadStatus
    manifest: SaveManifest | None = None
    error: str | None = None

    @property
    def loaded(self) -> bool:
        return self.status is LoadStatus.LOADED

    @property
    def game(self) -> dm.GameState | None:
        return self.manifest.game if self.manifest is not None else None


def build_metadata(
    state: dm.GameState,
    *,
    name: str,
    saved_at: datetime | None = None,
) -> SaveMetadata:
    return SaveMetadata(
        name=name,
        game_id=state.id,
        saved_at=saved_at or state.last_saved_at,
        status=state.status,
        progress=state.completion_percentage,
        alert_percentage=state.alert_percentage,
        total_resource_value=state.resources.total_value,
        operations_count=state.statistics.operations_performed,
    )


def export_game(
    state: dm.GameState,
    *,
    kind: SaveKind = SaveKind.MANUAL,
    name: str | None = None,
    metadata: SaveMetadata | None = None,
) -> SaveManifest:
    """Produce a manifest from an in-memory game."""

    return SaveManifest(
        kind=kind,
        metadata=metadata or build_metadata(state, name=name or f"Game {state.id}"),
        game=state,
    )


def encode_manifest(manifest: SaveManifest) -> bytes:
    try:
        return json.dumps(
            manifest.model_dump(mode="json", by_alias=True),
            indent=2,
            sort_keys=True,
        ).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise SaveError(f"could not encode save {manifest.metadata.name!r}") from exc


def decode_manifest(payload: bytes | str | None) -> LoadOutcome:
    """Parse a stored manifest, telling a missing save apart from a corrupted one."""

    if payload is None or not payload.strip():
        return LoadOutcome(LoadStatus.MISSING)
    try:
        manifest = SaveManifest.model_validate(json.loads(payload))
    except (TypeError, ValueError) as exc:
        return LoadOutcome(LoadStatus.CORRUPTED, error=str(exc))
    if manifest.format_version > FORMAT_VERSION:
        return LoadOutcome(
            LoadStatus.CORRUPTED,
            error=f"unsupported save format {manifest.format_version}",
        )
    return LoadOutcome(LoadStatus.LOADED, manifest=manifest)


def summarize(manifest: SaveManifest) -> str:
    meta = manifest.metadata
    return (
        f"{meta.name}: {meta.status}, {meta.progress_percentage}% complete, "
        f"alert {meta.alert_percentage}%, {meta.operations_count} operations"
    )


def save_archive(manifest: SaveManifest, path: Path | str) -> Path:
    """Write a manifest to a `.shadowfront` archive."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with ZipFile(target, "w", ZIP_DEFLATED) as archive:
        archive.writestr(MANIFEST_PATH, encode_manifest(manifest))
    return target


def load_archive(path: Path | str) -> LoadOutcome:
    """Load a manifest from a `.shadowfront` archive."""

    zip_path = Path(path)
    if not zip_path.exists():
        return LoadOutcome(LoadStatus.MISSING)
    try:
        with ZipFile(zip_path, "r") as archive:
            payload = archive.read(MANIFEST_PATH)
    except (BadZipFile, KeyError) as exc:
        return LoadOutcome(LoadStatus.CORRUPTED, error=str(exc))
    return decode_manifest(payload)


def import_game(manifest: SaveManifest, *, assign_new_id: bool = False) -> dm.GameState:
    """Return an independent game instance derived from a saved manifest.

    Parameters
    ----------
    manifest:
        The loaded manifest describing the save.
    assign_new_id:
        When `True`, the imported game receives a fresh identifier so it can
        live alongside the game it was exported from.
    """

    game = copy.deepcopy(manifest.game)
    if assign_new_id:
        game.id = uuid4()
    return game
