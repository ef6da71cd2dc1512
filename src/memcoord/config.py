"""
Configuration management using pydantic-settings.

Loads configuration from environment variables and .env files.
Validates fields and provides typed access to settings.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Optional:
        MEMORY_BASE_PATH: Root directory for persisted entries
        AUTO_SYNC_ENABLED: Whether the background sync loop may run
        AUTO_SYNC_INTERVAL_MS: Milliseconds between sync ticks
        COMPRESSION_ENABLED: Global compression switch
        COMPRESSION_THRESHOLD_BYTES: Payload size at which compression kicks in
        EXTERNAL_SYNC_ENABLED: Whether sync ticks call the external hook
        EXTERNAL_SYNC_TARGET: Label of the external sync target
        LOG_LEVEL: Logging level
        LOG_FILE: Optional JSON-lines log file
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    MEMORY_BASE_PATH: Path = Field(
        default=Path("./memory"), description="Root directory for persisted entries"
    )

    AUTO_SYNC_ENABLED: bool = Field(
        default=True, description="Whether the background sync loop may run"
    )
    AUTO_SYNC_INTERVAL_MS: int = Field(
        default=30_000, ge=100, description="Milliseconds between sync ticks"
    )

    COMPRESSION_ENABLED: bool = Field(default=True, description="Global compression switch")
    COMPRESSION_THRESHOLD_BYTES: int = Field(
        default=1024, ge=0, description="Payload size at which compression kicks in"
    )

    EXTERNAL_SYNC_ENABLED: bool = Field(
        default=True, description="Whether sync ticks call the external hook"
    )
    EXTERNAL_SYNC_TARGET: str = Field(
        default="default", description="Label of the external sync target"
    )

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    LOG_FILE: Path | None = Field(default=None, description="JSON-lines log file")

    @field_validator("EXTERNAL_SYNC_TARGET")
    @classmethod
    def validate_sync_target(cls, v: str) -> str:
        """Reject blank sync target labels."""
        if not v.strip():
            raise ValueError("EXTERNAL_SYNC_TARGET must not be blank")
        return v.strip()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
