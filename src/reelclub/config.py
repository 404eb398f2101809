"""Application settings via pydantic-settings. Loads from environment and .env file."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from reelclub.models.season import (
    DEFAULT_CATEGORIES,
    DEFAULT_SEASON_WEEKS,
    MAX_SEASON_WEEKS,
    MIN_SEASON_WEEKS,
    ScopeConfig,
)

# Weekly, Friday evening UTC. The pick cadence matches the 7-day season week.
_DEFAULT_PICK_CRON = "0 18 * * 5"


class Settings(BaseSettings):
    """ReelClub configuration.

    All values can be overridden via environment variables or .env file.
    """

    # Storage
    database_url: str = "sqlite+aiosqlite:///reelclub.db"
    reelclub_storage: Literal["sql", "memory"] = "sql"
    reelclub_data_file: str = ""  # JSON snapshot for the memory store; empty = no file

    # Environment
    reelclub_env: str = "development"

    # Seasons (defaults for the global scope and unconfigured clubs)
    reelclub_season_weeks: int = Field(
        default=DEFAULT_SEASON_WEEKS, ge=MIN_SEASON_WEEKS, le=MAX_SEASON_WEEKS
    )
    reelclub_default_categories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CATEGORIES)
    )

    # Scheduled picks
    reelclub_auto_pick: bool = False
    reelclub_pick_cron: str = _DEFAULT_PICK_CRON

    # Logging
    reelclub_log_level: str = "INFO"

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}

    @field_validator("reelclub_default_categories")
    @classmethod
    def _check_categories(cls, value: list[str]) -> list[str]:
        # Reuse ScopeConfig's rules so the defaults can never be an invalid config.
        return ScopeConfig(categories=value).categories

    def default_scope_config(self) -> ScopeConfig:
        """Config used for the global scope and for clubs with no stored settings."""
        return ScopeConfig(
            categories=list(self.reelclub_default_categories),
            season_length_weeks=self.reelclub_season_weeks,
        )
