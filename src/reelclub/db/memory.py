"""In-memory ``SeasonStore`` with an optional JSON file snapshot.

All state lives in one pydantic ``MemoryState``. ``unit_of_work()`` runs one
transaction at a time: it snapshots the state on entry, restores it if the
body raises, and writes the snapshot file (off the event loop) after a
successful body that changed something.

Usage:
    store = MemoryStore(path="reelclub.json")
    service = SeasonService(store.unit_of_work)
"""

from __future__ import annotations

import asyncio
import logging
import pathlib
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from pydantic import BaseModel, Field

from reelclub.core.locks import scope_key
from reelclub.models.review import Review, WatchedRecord
from reelclub.models.season import ScopeConfig, Season, SeasonArchive
from reelclub.models.submission import (
    ArchiveRecord,
    HistoryEntry,
    Submission,
    UserTracker,
)

logger = logging.getLogger(__name__)


class MemoryState(BaseModel):
    """Everything the store holds. Also the on-disk JSON format."""

    clubs: dict[str, ScopeConfig] = Field(default_factory=dict)
    seasons: dict[str, Season] = Field(default_factory=dict)
    season_history: list[SeasonArchive] = Field(default_factory=list)
    submissions: list[Submission] = Field(default_factory=list)
    trackers: list[UserTracker] = Field(default_factory=list)
    archive: list[ArchiveRecord] = Field(default_factory=list)
    history: list[HistoryEntry] = Field(default_factory=list)
    watched: list[WatchedRecord] = Field(default_factory=list)
    reviews: list[Review] = Field(default_factory=list)


class MemoryStore:
    """Async in-process store. Safe for concurrent use through ``unit_of_work``."""

    def __init__(self, path: str | pathlib.Path | None = None) -> None:
        self.path = pathlib.Path(path) if path is not None else None
        self._lock = asyncio.Lock()
        self.state = self._load()

    def _load(self) -> MemoryState:
        if self.path is None or not self.path.exists():
            return MemoryState()
        state = MemoryState.model_validate_json(self.path.read_text(encoding="utf-8"))
        logger.info(
            "memory_store_loaded path=%s submissions=%d seasons=%d",
            self.path,
            len(state.submissions),
            len(state.seasons),
        )
        return state

    def save(self) -> None:
        """Write the snapshot atomically (temp file + rename)."""
        if self.path is not None:
            self._write(self.state.model_dump_json(indent=2))

    def _write(self, payload: str) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(payload, encoding="utf-8")
        tmp.replace(self.path)

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[MemoryStore]:
        async with self._lock:
            snapshot = self.state.model_copy(deep=True)
            try:
                yield self
                if self.path is not None and self.state != snapshot:
                    payload = self.state.model_dump_json(indent=2)
                    await asyncio.to_thread(self._write, payload)
            except Exception:  # Re-raise pattern: restore the snapshot on any error
                self.state = snapshot
                raise

    # --- Clubs ---

    def configure_club(self, club_id: str, config: ScopeConfig) -> None:
        self.state.clubs[club_id] = config
        self.save()

    def _club(self, scope_id: str | None) -> ScopeConfig | None:
        return self.state.clubs.get(scope_id) if scope_id is not None else None

    async def get_category_list(self, scope_id: str | None) -> list[str] | None:
        config = self._club(scope_id)
        return list(config.categories) if config is not None else None

    async def get_season_length(self, scope_id: str | None) -> int | None:
        config = self._club(scope_id)
        return config.season_length_weeks if config is not None else None

    async def list_club_ids(self) -> list[str]:
        return list(self.state.clubs)

    # --- Seasons ---

    async def get_season(self, scope_id: str | None) -> Season | None:
        season = self.state.seasons.get(scope_key(scope_id))
        return season.model_copy() if season is not None else None

    async def put_season(self, scope_id: str | None, season: Season) -> None:
        self.state.seasons[scope_key(scope_id)] = season.model_copy()

    async def list_seasons_history(self, scope_id: str | None) -> list[SeasonArchive]:
        return sorted(
            (a.model_copy() for a in self.state.season_history if a.scope_id == scope_id),
            key=lambda a: a.season_number,
        )

    async def append_season_history(self, scope_id: str | None, archive: SeasonArchive) -> None:
        self.state.season_history.append(archive.model_copy(update={"scope_id": scope_id}))

    # --- Submissions ---

    async def list_submissions(self, scope_id: str | None, season_number: int) -> list[Submission]:
        return [
            s.model_copy()
            for s in self.state.submissions
            if s.scope_id == scope_id and s.season_number == season_number
        ]

    async def insert_submission(self, submission: Submission) -> None:
        self.state.submissions.append(submission.model_copy())

    async def delete_submissions(self, scope_id: str | None) -> int:
        before = len(self.state.submissions)
        self.state.submissions = [s for s in self.state.submissions if s.scope_id != scope_id]
        return before - len(self.state.submissions)

    async def delete_member_submissions(
        self, scope_id: str | None, season_number: int, submitter_id: str
    ) -> int:
        before = len(self.state.submissions)
        self.state.submissions = [
            s
            for s in self.state.submissions
            if not (
                s.scope_id == scope_id
                and s.season_number == season_number
                and s.submitter_id == submitter_id
            )
        ]
        return before - len(self.state.submissions)

    # --- Trackers ---

    def _find_tracker(
        self, scope_id: str | None, season_number: int, submitter_id: str
    ) -> UserTracker | None:
        for tracker in self.state.trackers:
            if (
                tracker.scope_id == scope_id
                and tracker.season_number == season_number
                and tracker.submitter_id == submitter_id
            ):
                return tracker
        return None

    async def get_user_tracker(
        self, scope_id: str | None, season_number: int, submitter_id: str
    ) -> list[str]:
        tracker = self._find_tracker(scope_id, season_number, submitter_id)
        return list(tracker.categories) if tracker is not None else []

    async def set_user_tracker(
        self,
        scope_id: str | None,
        season_number: int,
        submitter_id: str,
        categories: list[str],
    ) -> None:
        tracker = self._find_tracker(scope_id, season_number, submitter_id)
        if tracker is None:
            self.state.trackers.append(
                UserTracker(
                    scope_id=scope_id,
                    season_number=season_number,
                    submitter_id=submitter_id,
                    categories=list(categories),
                )
            )
        else:
            tracker.categories = list(categories)

    async def clear_user_trackers(self, scope_id: str | None) -> int:
        before = len(self.state.trackers)
        self.state.trackers = [t for t in self.state.trackers if t.scope_id != scope_id]
        return before - len(self.state.trackers)

    # --- Title archive ---

    async def find_archive_record(
        self, scope_id: str | None, normalized_title: str
    ) -> ArchiveRecord | None:
        matches = [
            r
            for r in self.state.archive
            if r.scope_id == scope_id and r.normalized_title == normalized_title
        ]
        if not matches:
            return None
        return min(matches, key=lambda r: r.season_number).model_copy()

    async def insert_archive_record(self, record: ArchiveRecord) -> None:
        self.state.archive.append(record.model_copy())

    # --- Pick history ---

    async def list_history(
        self, scope_id: str | None, season_number: int | None = None
    ) -> list[HistoryEntry]:
        return [
            e.model_copy(deep=True)
            for e in self.state.history
            if e.scope_id == scope_id
            and (season_number is None or e.season_number == season_number)
        ]

    async def insert_history_entry(self, entry: HistoryEntry) -> None:
        self.state.history.append(entry.model_copy(deep=True))

    # --- Watched markers and reviews ---

    async def get_watched(
        self, scope_id: str | None, member_id: str, normalized_title: str
    ) -> WatchedRecord | None:
        for record in self.state.watched:
            if (
                record.scope_id == scope_id
                and record.member_id == member_id
                and record.normalized_title == normalized_title
            ):
                return record.model_copy()
        return None

    async def insert_watched(self, record: WatchedRecord) -> None:
        self.state.watched.append(record.model_copy())

    async def list_watched(self, scope_id: str | None, member_id: str) -> list[WatchedRecord]:
        return sorted(
            (
                r.model_copy()
                for r in self.state.watched
                if r.scope_id == scope_id and r.member_id == member_id
            ),
            key=lambda r: r.watched_at,
        )

    async def insert_review(self, review: Review) -> None:
        self.state.reviews.append(review.model_copy())

    async def list_reviews(
        self, scope_id: str | None, normalized_titles: list[str] | None = None
    ) -> list[Review]:
        wanted = set(normalized_titles) if normalized_titles is not None else None
        matches = [
            r.model_copy()
            for r in self.state.reviews
            if r.scope_id == scope_id and (wanted is None or r.normalized_title in wanted)
        ]
        return sorted(matches, key=lambda r: r.created_at, reverse=True)
