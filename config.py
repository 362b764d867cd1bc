"""
Configuration settings for quiz-runner.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Minimum level for log output on stderr",
    )

    # ========================================
    # Persistence
    # ========================================
    state_db_path: Path = Field(
        default=Path.home() / ".quiz-runner" / "state.db",
        description="SQLite file holding the saved quiz text and settings",
    )

    # ========================================
    # Quiz Defaults
    # ========================================
    default_quiz_mode: Literal["practice", "test"] = Field(
        default="test",
        description="Mode used when no settings have been saved",
    )
    max_quiz_chars: int = Field(
        default=200_000,
        ge=1,
        description="Largest quiz text the CLI will read",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
