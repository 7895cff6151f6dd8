"""JSON-based save-slot repository for Shadowfront games."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from shadowfront import savegame
from shadowfront.domain import models as dm

logger = logging.getLogger(__name__)

AUTOSAVE_SLOT = "autosave"
QUICKSAVE_SLOT = "quicksave"


def slot_slug(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "slot"


class JsonSaveRepository:
    """Persist games as named JSON save slots on disk.

    Only the newest ``max_slots`` saves are kept; older ones are pruned after
    every write.
    """

    def __init__(
        self,
        base_path: Path,
        *,
        max_slots: int = 5,
        clock: Callable[[], datetime] = dm.utc_now,
    ) -> None:
        if max_slots < 1:
            raise ValueError("max_slots must be positive")
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.max_slots = max_slots
        self._clock = clock

    def _path_for(self, name: str) -> Path:
        return self.base_path / f"slot_{slot_slug(name)}.json"

    def _slot_paths(self) -> list[Path]:
        return sorted(self.base_path.glob("slot_*.json"))

    def save(
        self,
        state: dm.GameState,
        *,
        name: str,
        kind: savegame.SaveKind = savegame.SaveKind.MANUAL,
    ) -> savegame.SaveMetadata:
        """Serialize a game into the named slot and return its metadata."""

        metadata = savegame.build_metadata(state, name=name, saved_at=self._clock())
        manifest = savegame.export_game(state, kind=kind, metadata=metadata)
        path = self._path_for(name)
        path.write_bytes(savegame.encode_manifest(manifest))
        logger.info("saved game %s to slot %r (%s)", state.id, name, kind)
        self._prune(keep=path)
        return metadata

    def load(self, name: str) -> savegame.LoadOutcome:
        """Load a slot, reporting missing and corrupted saves as distinct outcomes."""

        return self._read(self._path_for(name))

    def _read(self, path: Path) -> savegame.LoadOutcome:
        if not path.exists():
            return savegame.LoadOutcome(savegame.LoadStatus.MISSING)
        outcome = savegame.decode_manifest(path.read_bytes())
        if outcome.status is savegame.LoadStatus.CORRUPTED:
            logger.warning("save file %s is corrupted: %s", path.name, outcome.error)
        return outcome

    def list_slots(self) -> list[savegame.SaveMetadata]:
        """Return metadata for every readable slot, newest first."""

        slots: list[savegame.SaveMetadata] = []
        for path in self._slot_paths():
            outcome = self._read(path)
            if outcome.manifest is not None:
                slots.append(outcome.manifest.metadata)
        return sorted(slots, key=lambda meta: (meta.saved_at, meta.name), reverse=True)

    def most_recent(self) -> savegame.LoadOutcome:
        slots = self.list_slots()
        if not slots:
            return savegame.LoadOutcome(savegame.LoadStatus.MISSING)
        return self.load(slots[0].name)

    def delete(self, name: str) -> bool:
        """Remove a slot if it exists."""

        path = self._path_for(name)
        if not path.exists():
            return False
        path.unlink()
        return True

    def delete_all(self) -> int:
        paths = self._slot_paths()
        for path in paths:
            path.unlink()
        return len(paths)

    def cleanup_corrupted(self) -> list[str]:
        """Delete every slot file that no longer decodes; returns the removed file names."""

        removed: list[str] = []
        for path in self._slot_paths():
            if self._read(path).status is savegame.LoadStatus.CORRUPTED:
                path.unlink()
                removed.append(path.name)
        return removed

    def autosave(
        self, state: dm.GameState, *, enabled: bool = True
    ) -> savegame.SaveMetadata | None:
        if not enabled:
            return None
        return self.save(state, name=AUTOSAVE_SLOT, kind=savegame.SaveKind.AUTO)

    def quick_save(self, state: dm.GameState) -> savegame.SaveMetadata:
        return self.save(state, name=QUICKSAVE_SLOT, kind=savegame.SaveKind.QUICK)

    def quick_load(self) -> savegame.LoadOutcome:
        return self.load(QUICKSAVE_SLOT)

    def import_payload(
        self, payload: bytes | str, *, name: str | None = None
    ) -> savegame.LoadOutcome:
        """Decode an exported save and store it as a new imported slot.

        The stored game receives a fresh identifier.  Undecodable payloads are
        returned as-is and nothing is written.
        """

        outcome = savegame.decode_manifest(payload)
        if outcome.manifest is None:
            return outcome
        game = savegame.import_game(outcome.manifest, assign_new_id=True)
        slot_name = name or f"Imported {outcome.manifest.metadata.name}"
        self.save(game, name=slot_name, kind=savegame.SaveKind.IMPORTED)
        return self.load(slot_name)

    def _prune(self, *, keep: Path) -> None:
        slots = self.list_slots()
        for metadata in slots[self.max_slots :]:
            path = self._path_for(metadata.name)
            if path != keep and path.exists():
                path.unlink()
                logger.info("pruned save slot %r", metadata.name)
