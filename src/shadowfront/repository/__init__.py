"""Save-slot persistence for Shadowfront games."""

from .json_store import AUTOSAVE_SLOT, QUICKSAVE_SLOT, JsonSaveRepository

__all__ = ["AUTOSAVE_SLOT", "QUICKSAVE_SLOT", "JsonSaveRepository"]
