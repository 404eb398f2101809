"""Repository pattern for database access.

Wraps SQLAlchemy async sessions and implements the ``SeasonStore`` port.
Rows never leave this module: every read is converted into a pydantic
domain model. The title archive and pick history are append-only.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from reelclub.core.clock import as_utc
from reelclub.core.locks import GLOBAL_SCOPE_KEY, scope_key
from reelclub.db.engine import get_session
from reelclub.db.models import (
    ClubRow,
    PickHistoryRow,
    ReviewRow,
    SeasonArchiveRow,
    SeasonRow,
    SubmissionRow,
    TitleArchiveRow,
    UserTrackerRow,
    WatchedRow,
)
from reelclub.models.review import Review, WatchedRecord
from reelclub.models.season import ScopeConfig, Season, SeasonArchive
from reelclub.models.submission import ArchiveRecord, HistoryEntry, Submission


def _scope_id(key: str) -> str | None:
    return None if key == GLOBAL_SCOPE_KEY else key


def _season(row: SeasonRow) -> Season:
    return Season(
        scope_id=_scope_id(row.scope_key),
        season_number=row.season_number,
        start_date=as_utc(row.start_date),
        length_weeks=row.length_weeks,
        end_date=as_utc(row.end_date) if row.end_date is not None else None,
    )


def _submission(row: SubmissionRow) -> Submission:
    return Submission(
        id=row.id,
        title=row.title,
        description=row.description or "",
        category=row.category,
        submitter_id=row.submitter_id,
        scope_id=_scope_id(row.scope_key),
        season_number=row.season_number,
        submitted_at=as_utc(row.submitted_at),
        poster_url=row.poster_url,
    )


def _watched(row: WatchedRow) -> WatchedRecord:
    return WatchedRecord(
        scope_id=_scope_id(row.scope_key),
        member_id=row.member_id,
        title=row.title,
        watched_at=as_utc(row.watched_at),
    )


class Repository:
    """Async repository for all database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # --- Clubs ---

    async def upsert_club(
        self,
        club_id: str,
        categories: list[str],
        season_length_weeks: int = 14,
        name: str = "",
    ) -> ClubRow:
        """Create or replace a club's settings (validated through ScopeConfig)."""
        config = ScopeConfig(categories=categories, season_length_weeks=season_length_weeks)
        row = await self.session.get(ClubRow, club_id)
        if row is None:
            row = ClubRow(id=club_id)
            self.session.add(row)
        row.name = name or row.name or ""
        row.categories = config.categories
        row.season_length_weeks = config.season_length_weeks
        await self.session.flush()
        return row

    async def _club(self, scope_id: str | None) -> ClubRow | None:
        if scope_id is None:
            return None
        return await self.session.get(ClubRow, scope_id)

    async def get_category_list(self, scope_id: str | None) -> list[str] | None:
        row = await self._club(scope_id)
        return list(row.categories or []) if row is not None else None

    async def get_season_length(self, scope_id: str | None) -> int | None:
        row = await self._club(scope_id)
        return row.season_length_weeks if row is not None else None

    async def list_club_ids(self) -> list[str]:
        result = await self.session.execute(select(ClubRow.id).order_by(ClubRow.created_at))
        return list(result.scalars().all())

    # --- Seasons ---

    async def _current_season_row(self, key: str) -> SeasonRow | None:
        stmt = select(SeasonRow).where(
            SeasonRow.scope_key == key,
            SeasonRow.is_current.is_(True),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_season(self, scope_id: str | None) -> Season | None:
        row = await self._current_season_row(scope_key(scope_id))
        return _season(row) if row is not None else None

    async def put_season(self, scope_id: str | None, season: Season) -> None:
        """Upsert ``season`` by number and make it the scope's current season."""
        key = scope_key(scope_id)
        # Demote first so the partial unique index never sees two current rows.
        await self.session.execute(
            update(SeasonRow)
            .where(
                SeasonRow.scope_key == key,
                SeasonRow.is_current.is_(True),
                SeasonRow.season_number != season.season_number,
            )
            .values(is_current=False)
        )
        stmt = select(SeasonRow).where(
            SeasonRow.scope_key == key,
            SeasonRow.season_number == season.season_number,
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        if row is None:
            row = SeasonRow(scope_key=key, season_number=season.season_number)
            self.session.add(row)
        row.start_date = season.start_date
        row.length_weeks = season.length_weeks
        row.end_date = season.end_date
        row.is_current = True
        await self.session.flush()

    async def list_seasons_history(self, scope_id: str | None) -> list[SeasonArchive]:
        stmt = (
            select(SeasonArchiveRow)
            .where(SeasonArchiveRow.scope_key == scope_key(scope_id))
            .order_by(SeasonArchiveRow.season_number)
        )
        result = await self.session.execute(stmt)
        return [
            SeasonArchive(
                scope_id=scope_id,
                season_number=row.season_number,
                start_date=as_utc(row.start_date),
                end_date=as_utc(row.end_date),
                length_weeks=row.length_weeks,
                submissions_count=row.submissions_count,
                picks_count=row.picks_count,
            )
            for row in result.scalars().all()
        ]

    async def append_season_history(self, scope_id: str | None, archive: SeasonArchive) -> None:
        row = SeasonArchiveRow(
            scope_key=scope_key(scope_id),
            season_number=archive.season_number,
            start_date=archive.start_date,
            end_date=archive.end_date,
            length_weeks=archive.length_weeks,
            submissions_count=archive.submissions_count,
            picks_count=archive.picks_count,
        )
        self.session.add(row)
        await self.session.flush()

    # --- Submissions ---

    async def list_submissions(self, scope_id: str | None, season_number: int) -> list[Submission]:
        stmt = (
            select(SubmissionRow)
            .where(
                SubmissionRow.scope_key == scope_key(scope_id),
                SubmissionRow.season_number == season_number,
            )
            .order_by(SubmissionRow.submitted_at, SubmissionRow.id)
        )
        result = await self.session.execute(stmt)
        return [_submission(row) for row in result.scalars().all()]

    async def insert_submission(self, submission: Submission) -> None:
        row = SubmissionRow(
            id=submission.id,
            scope_key=scope_key(submission.scope_id),
            season_number=submission.season_number,
            submitter_id=submission.submitter_id,
            category=submission.category,
            title=submission.title,
            normalized_title=submission.normalized_title,
            description=submission.description,
            poster_url=submission.poster_url,
            submitted_at=submission.submitted_at,
        )
        self.session.add(row)
        await self.session.flush()

    async def delete_submissions(self, scope_id: str | None) -> int:
        result = await self.session.execute(
            delete(SubmissionRow).where(SubmissionRow.scope_key == scope_key(scope_id))
        )
        return result.rowcount or 0

    async def delete_member_submissions(
        self, scope_id: str | None, season_number: int, submitter_id: str
    ) -> int:
        result = await self.session.execute(
            delete(SubmissionRow).where(
                SubmissionRow.scope_key == scope_key(scope_id),
                SubmissionRow.season_number == season_number,
                SubmissionRow.submitter_id == submitter_id,
            )
        )
        return result.rowcount or 0

    async def count_submissions(self, scope_id: str | None, season_number: int) -> int:
        stmt = select(func.count()).where(
            SubmissionRow.scope_key == scope_key(scope_id),
            SubmissionRow.season_number == season_number,
        )
        return (await self.session.execute(stmt)).scalar_one()

    # --- Trackers ---

    async def get_user_tracker(
        self, scope_id: str | None, season_number: int, submitter_id: str
    ) -> list[str]:
        row = await self.session.get(
            UserTrackerRow, (scope_key(scope_id), season_number, submitter_id)
        )
        return list(row.categories or []) if row is not None else []

    async def set_user_tracker(
        self,
        scope_id: str | None,
        season_number: int,
        submitter_id: str,
        categories: list[str],
    ) -> None:
        key = (scope_key(scope_id), season_number, submitter_id)
        row = await self.session.get(UserTrackerRow, key)
        if row is None:
            row = UserTrackerRow(
                scope_key=key[0], season_number=season_number, submitter_id=submitter_id
            )
            self.session.add(row)
        # Assign a fresh list so the JSON column registers the change.
        row.categories = list(categories)
        await self.session.flush()

    async def clear_user_trackers(self, scope_id: str | None) -> int:
        result = await self.session.execute(
            delete(UserTrackerRow).where(UserTrackerRow.scope_key == scope_key(scope_id))
        )
        return result.rowcount or 0

    # --- Title archive ---

    async def find_archive_record(
        self, scope_id: str | None, normalized_title: str
    ) -> ArchiveRecord | None:
        """Return the record with the lowest season number, if any."""
        stmt = (
            select(TitleArchiveRow)
            .where(
                TitleArchiveRow.scope_key == scope_key(scope_id),
                TitleArchiveRow.normalized_title == normalized_title,
            )
            .order_by(TitleArchiveRow.season_number)
            .limit(1)
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return ArchiveRecord(
            scope_id=scope_id,
            normalized_title=row.normalized_title,
            season_number=row.season_number,
            title=row.title,
            recorded_at=as_utc(row.recorded_at),
        )

    async def insert_archive_record(self, record: ArchiveRecord) -> None:
        row = TitleArchiveRow(
            scope_key=scope_key(record.scope_id),
            normalized_title=record.normalized_title,
            season_number=record.season_number,
            title=record.title,
            recorded_at=record.recorded_at,
        )
        self.session.add(row)
        await self.session.flush()

    # --- Pick history ---

    async def list_history(
        self, scope_id: str | None, season_number: int | None = None
    ) -> list[HistoryEntry]:
        """Return pick history for a scope, oldest first."""
        stmt = select(PickHistoryRow).where(PickHistoryRow.scope_key == scope_key(scope_id))
        if season_number is not None:
            stmt = stmt.where(PickHistoryRow.season_number == season_number)
        stmt = stmt.order_by(PickHistoryRow.picked_at, PickHistoryRow.id)
        result = await self.session.execute(stmt)
        return [
            HistoryEntry(
                id=row.id,
                scope_id=scope_id,
                season_number=row.season_number,
                picked_at=as_utc(row.picked_at),
                submissions_count=row.submissions_count,
                winners=[Submission.model_validate(w) for w in row.winners or []],
                skipped_categories=list(row.skipped_categories or []),
            )
            for row in result.scalars().all()
        ]

    async def insert_history_entry(self, entry: HistoryEntry) -> None:
        row = PickHistoryRow(
            id=entry.id,
            scope_key=scope_key(entry.scope_id),
            season_number=entry.season_number,
            picked_at=entry.picked_at,
            submissions_count=entry.submissions_count,
            winners=[w.model_dump(mode="json") for w in entry.winners],
            skipped_categories=list(entry.skipped_categories),
        )
        self.session.add(row)
        await self.session.flush()

    # --- Watched markers and reviews ---

    async def get_watched(
        self, scope_id: str | None, member_id: str, normalized_title: str
    ) -> WatchedRecord | None:
        stmt = select(WatchedRow).where(
            WatchedRow.scope_key == scope_key(scope_id),
            WatchedRow.member_id == member_id,
            WatchedRow.normalized_title == normalized_title,
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        return _watched(row) if row is not None else None

    async def insert_watched(self, record: WatchedRecord) -> None:
        row = WatchedRow(
            scope_key=scope_key(record.scope_id),
            member_id=record.member_id,
            title=record.title,
            normalized_title=record.normalized_title,
            watched_at=record.watched_at,
        )
        self.session.add(row)
        await self.session.flush()

    async def list_watched(self, scope_id: str | None, member_id: str) -> list[WatchedRecord]:
        stmt = (
            select(WatchedRow)
            .where(
                WatchedRow.scope_key == scope_key(scope_id),
                WatchedRow.member_id == member_id,
            )
            .order_by(WatchedRow.watched_at, WatchedRow.id)
        )
        result = await self.session.execute(stmt)
        return [_watched(row) for row in result.scalars().all()]

    async def insert_review(self, review: Review) -> None:
        row = ReviewRow(
            id=review.id,
            scope_key=scope_key(review.scope_id),
            member_id=review.member_id,
            title=review.title,
            normalized_title=review.normalized_title,
            body=review.body,
            rating=review.rating,
            created_at=review.created_at,
        )
        self.session.add(row)
        await self.session.flush()

    async def list_reviews(
        self, scope_id: str | None, normalized_titles: list[str] | None = None
    ) -> list[Review]:
        """Return reviews for a scope, newest first."""
        stmt = select(ReviewRow).where(ReviewRow.scope_key == scope_key(scope_id))
        if normalized_titles is not None:
            stmt = stmt.where(ReviewRow.normalized_title.in_(normalized_titles))
        stmt = stmt.order_by(ReviewRow.created_at.desc(), ReviewRow.id)
        result = await self.session.execute(stmt)
        return [
            Review(
                id=row.id,
                scope_id=scope_id,
                member_id=row.member_id,
                title=row.title,
                body=row.body,
                rating=row.rating,
                created_at=as_utc(row.created_at),
            )
            for row in result.scalars().all()
        ]


def sql_unit_of_work(engine: AsyncEngine) -> Callable[[], AbstractAsyncContextManager[Repository]]:
    """Build a unit-of-work factory: each call yields a Repository in one transaction."""

    @asynccontextmanager
    async def _unit_of_work() -> AsyncIterator[Repository]:
        async with get_session(engine) as session:
            yield Repository(session)

    return _unit_of_work
