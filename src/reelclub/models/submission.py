"""Submission models: candidate items, the title archive, and pick history.

Titles are compared by their normalized form everywhere.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field, computed_field


def normalize_title(value: str) -> str:
    """Trim, collapse internal whitespace and case-fold a title for comparison."""
    return " ".join(str(value or "").split()).casefold()


class Submission(BaseModel):
    """A candidate item submitted by a member into one category."""

    id: str
    title: str
    description: str = ""
    category: str
    submitter_id: str
    scope_id: str | None = None
    season_number: int = Field(ge=1)
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    poster_url: str | None = None  # enrichment, filled by the poster lookup

    @computed_field  # type: ignore[prop-decorator]
    @property
    def normalized_title(self) -> str:
        return normalize_title(self.title)


class ArchiveRecord(BaseModel):
    """Permanent marker that a title was submitted to a scope in a season."""

    scope_id: str | None = None
    normalized_title: str
    season_number: int = Field(ge=1)
    title: str = ""
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class UserTracker(BaseModel):
    """Categories one member has filled in one season of one scope."""

    scope_id: str | None = None
    season_number: int
    submitter_id: str
    categories: list[str] = Field(default_factory=list)


class HistoryEntry(BaseModel):
    """Immutable record of one winner-selection event."""

    id: str
    scope_id: str | None = None
    season_number: int
    picked_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    submissions_count: int = 0
    winners: list[Submission] = Field(default_factory=list)
    skipped_categories: list[str] = Field(default_factory=list)


class PickResult(BaseModel):
    """Outcome of a successful pick: the stored entry plus a display message."""

    entry: HistoryEntry
    winners: list[Submission]
    skipped_categories: list[str] = Field(default_factory=list)
    message: str = ""


class UserStatus(BaseModel):
    scope_id: str | None = None
    season_number: int
    submitter_id: str
    filled_categories: list[str] = Field(default_factory=list)
    remaining_categories: list[str] = Field(default_factory=list)
    all_filled: bool = False


class MemberSummary(BaseModel):
    """Admin read-out of one member's submissions in the current season."""

    submitter_id: str
    submission_count: int = 0
    titles_by_category: dict[str, list[str]] = Field(default_factory=dict)

    @property
    def categories(self) -> list[str]:
        return list(self.titles_by_category)
