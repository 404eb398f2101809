"""SQLAlchemy ORM models for the ReelClub database.

Tables: clubs, seasons, season_archives, submissions, user_trackers,
title_archive, pick_history, watched, reviews. Every scoped table carries
``scope_key``; the global scope is stored as ``"__global__"`` so unique
constraints work without NULL semantics.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class ClubRow(Base):
    """Scope configuration. Membership and admin lists live elsewhere."""

    __tablename__ = "clubs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    categories: Mapped[list] = mapped_column(JSON, nullable=False)
    season_length_weeks: Mapped[int] = mapped_column(Integer, nullable=False, default=14)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class SeasonRow(Base):
    __tablename__ = "seasons"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    scope_key: Mapped[str] = mapped_column(String(64), nullable=False)
    season_number: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    length_weeks: Mapped[int] = mapped_column(Integer, nullable=False)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_current: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    __table_args__ = (
        UniqueConstraint("scope_key", "season_number", name="uq_season_number"),
        # At most one current season per scope.
        Index(
            "uq_seasons_current_scope",
            "scope_key",
            unique=True,
            sqlite_where=text("is_current = 1"),
            postgresql_where=text("is_current"),
        ),
    )


class SeasonArchiveRow(Base):
    """Frozen snapshot of a season once it ended."""

    __tablename__ = "season_archives"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    scope_key: Mapped[str] = mapped_column(String(64), nullable=False)
    season_number: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    length_weeks: Mapped[int] = mapped_column(Integer, nullable=False)
    submissions_count: Mapped[int] = mapped_column(Integer, default=0)
    picks_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    __table_args__ = (
        UniqueConstraint("scope_key", "season_number", name="uq_season_archive"),
    )


class SubmissionRow(Base):
    __tablename__ = "submissions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    scope_key: Mapped[str] = mapped_column(String(64), nullable=False)
    season_number: Mapped[int] = mapped_column(Integer, nullable=False)
    submitter_id: Mapped[str] = mapped_column(String(64), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    normalized_title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    poster_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    __table_args__ = (
        Index("ix_submissions_scope_season", "scope_key", "season_number"),
        UniqueConstraint(
            "scope_key", "season_number", "normalized_title", name="uq_submission_title"
        ),
        UniqueConstraint(
            "scope_key",
            "season_number",
            "submitter_id",
            "category",
            name="uq_submission_member_category",
        ),
    )


class UserTrackerRow(Base):
    """Fast lookup of the categories a member filled in a season."""

    __tablename__ = "user_trackers"

    scope_key: Mapped[str] = mapped_column(String(64), primary_key=True)
    season_number: Mapped[int] = mapped_column(Integer, primary_key=True)
    submitter_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    categories: Mapped[list] = mapped_column(JSON, default=list)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, onupdate=_now
    )


class TitleArchiveRow(Base):
    """Append-only ledger of titles ever submitted to a scope."""

    __tablename__ = "title_archive"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    scope_key: Mapped[str] = mapped_column(String(64), nullable=False)
    normalized_title: Mapped[str] = mapped_column(String(300), nullable=False)
    season_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(300), default="")
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    __table_args__ = (
        UniqueConstraint(
            "scope_key", "normalized_title", "season_number", name="uq_title_archive"
        ),
    )


class PickHistoryRow(Base):
    """Immutable winner-selection events. Winners are stored denormalized."""

    __tablename__ = "pick_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    scope_key: Mapped[str] = mapped_column(String(64), nullable=False)
    season_number: Mapped[int] = mapped_column(Integer, nullable=False)
    picked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    submissions_count: Mapped[int] = mapped_column(Integer, default=0)
    winners: Mapped[list] = mapped_column(JSON, nullable=False)
    skipped_categories: Mapped[list] = mapped_column(JSON, default=list)

    __table_args__ = (Index("ix_pick_history_scope_season", "scope_key", "season_number"),)


class WatchedRow(Base):
    __tablename__ = "watched"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    scope_key: Mapped[str] = mapped_column(String(64), nullable=False)
    member_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    normalized_title: Mapped[str] = mapped_column(String(300), nullable=False)
    watched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    __table_args__ = (
        UniqueConstraint("scope_key", "member_id", "normalized_title", name="uq_watched"),
    )


class ReviewRow(Base):
    """Free-text member reviews. A member may review the same title more than once."""

    __tablename__ = "reviews"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    scope_key: Mapped[str] = mapped_column(String(64), nullable=False)
    member_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    normalized_title: Mapped[str] = mapped_column(String(300), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    __table_args__ = (Index("ix_reviews_scope_title", "scope_key", "normalized_title"),)
