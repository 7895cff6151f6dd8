"""Lightweight configuration for the Shadowfront service."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, overridable through ``SHADOWFRONT_*`` variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="SHADOWFRONT_"
    )

    data_dir: Path = Field(default=Path("saves"), description="Where save slots live")
    rules_version: str = Field(default="1.0", description="Ruleset version used by the domain")
    max_save_slots: int = Field(default=5, description="Save slots kept before pruning", ge=1)
    autosave_enabled: bool = Field(
        default=True, description="Write the autosave slot after every state-changing command"
    )
    log_level: str = Field(default="INFO", description="Root log level for the CLI entrypoint")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"],
        description="Origins allowed to call the HTTP API",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return settings
