"""Watched markers and member reviews.

Both outlive season rollover. Titles match submissions by normalized form.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field, computed_field

from reelclub.models.submission import normalize_title

MIN_RATING = 1
MAX_RATING = 5


class WatchedRecord(BaseModel):
    """A member has seen a title. One per (scope, member, normalized title)."""

    scope_id: str | None = None
    member_id: str
    title: str
    watched_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def normalized_title(self) -> str:
        return normalize_title(self.title)


class Review(BaseModel):
    id: str
    scope_id: str | None = None
    member_id: str
    title: str
    body: str
    rating: int | None = Field(default=None, ge=MIN_RATING, le=MAX_RATING)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def normalized_title(self) -> str:
        return normalize_title(self.title)
