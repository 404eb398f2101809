"""Season models: seasons, scope configuration, and status read-outs.

A scope is a club, or the global (no-club) context.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

DEFAULT_CATEGORIES: tuple[str, ...] = ("top-pick", "wild-card")
DEFAULT_SEASON_WEEKS = 14
MIN_SEASON_WEEKS = 4
MAX_SEASON_WEEKS = 52


class ScopeConfig(BaseModel):
    """Per-scope settings owned by club configuration.

    The global scope, and any club without stored settings, falls back to the
    defaults from ``Settings.default_scope_config()``.
    """

    categories: list[str] = Field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    season_length_weeks: int = Field(
        default=DEFAULT_SEASON_WEEKS, ge=MIN_SEASON_WEEKS, le=MAX_SEASON_WEEKS
    )

    @field_validator("categories")
    @classmethod
    def _check_categories(cls, value: list[str]) -> list[str]:
        cleaned = [c.strip() for c in value]
        if not cleaned:
            raise ValueError("at least one category is required")
        if any(not c for c in cleaned):
            raise ValueError("category names must not be blank")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("category names must be unique")
        return cleaned


class Season(BaseModel):
    """One scheduling cycle for a scope. ``end_date`` is None while current."""

    scope_id: str | None = None
    season_number: int = Field(default=1, ge=1)
    start_date: datetime
    length_weeks: int = Field(
        default=DEFAULT_SEASON_WEEKS, ge=MIN_SEASON_WEEKS, le=MAX_SEASON_WEEKS
    )
    end_date: datetime | None = None

    @property
    def is_stamped(self) -> bool:
        return self.end_date is not None


class SeasonArchive(BaseModel):
    """Seasons-history entry: frozen snapshot of a season once it ended."""

    scope_id: str | None = None
    season_number: int
    start_date: datetime
    end_date: datetime
    length_weeks: int
    submissions_count: int = 0
    picks_count: int = 0


class SeasonStatus(BaseModel):
    """Caller-facing progress read-out for a scope's current season."""

    scope_id: str | None = None
    season_number: int
    current_week: int
    total_weeks: int
    weeks_remaining: int
    is_active: bool
    start_date: datetime
    scheduled_end: datetime
    ended_at: datetime | None = None
