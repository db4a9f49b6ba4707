"""
Settings — environment-driven configuration.

    CARGOTRACK_DATABASE_URL=sqlite+aiosqlite:///cargo.db
    CARGOTRACK_LOG_FORMAT=console
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CargoTrackSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CARGOTRACK_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///:memory:",
        description="SQLAlchemy async URL for the cargo store.",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    routing_max_candidates: int = Field(default=5, ge=1)
    routing_max_legs: int = Field(default=6, ge=1)
    routing_offload_threshold: int = Field(
        default=2_000,
        ge=0,
        description="Movement count above which route search runs in a worker thread.",
    )


@lru_cache(maxsize=1)
def get_settings() -> CargoTrackSettings:
    return CargoTrackSettings()


__all__ = (
    "CargoTrackSettings",
    "get_settings",
)
