"""Persistence port consumed by the season engine.

Two adapters implement it: ``reelclub.db.repository.Repository`` (async
SQLAlchemy) and ``reelclub.db.memory.MemoryStore`` (in-memory, optional JSON
file). ``scope_id=None`` always means the global scope.

Usage:
    async with unit_of_work() as store:
        season = await store.get_season(scope_id)
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Protocol

from reelclub.models.review import Review, WatchedRecord
from reelclub.models.season import Season, SeasonArchive
from reelclub.models.submission import ArchiveRecord, HistoryEntry, Submission


class SeasonStore(Protocol):
    # --- Seasons ---

    async def get_season(self, scope_id: str | None) -> Season | None: ...

    async def put_season(self, scope_id: str | None, season: Season) -> None: ...

    async def list_seasons_history(self, scope_id: str | None) -> list[SeasonArchive]: ...

    async def append_season_history(
        self, scope_id: str | None, archive: SeasonArchive
    ) -> None: ...

    # --- Submissions ---

    async def list_submissions(
        self, scope_id: str | None, season_number: int
    ) -> list[Submission]: ...

    async def insert_submission(self, submission: Submission) -> None: ...

    async def delete_submissions(self, scope_id: str | None) -> int: ...

    async def delete_member_submissions(
        self, scope_id: str | None, season_number: int, submitter_id: str
    ) -> int: ...

    # --- Trackers ---

    async def get_user_tracker(
        self, scope_id: str | None, season_number: int, submitter_id: str
    ) -> list[str]: ...

    async def set_user_tracker(
        self,
        scope_id: str | None,
        season_number: int,
        submitter_id: str,
        categories: list[str],
    ) -> None: ...

    async def clear_user_trackers(self, scope_id: str | None) -> int: ...

    # --- Title archive ---

    async def find_archive_record(
        self, scope_id: str | None, normalized_title: str
    ) -> ArchiveRecord | None: ...

    async def insert_archive_record(self, record: ArchiveRecord) -> None: ...

    # --- Pick history ---

    async def list_history(
        self, scope_id: str | None, season_number: int | None = None
    ) -> list[HistoryEntry]: ...

    async def insert_history_entry(self, entry: HistoryEntry) -> None: ...

    # --- Watched markers and reviews ---

    async def get_watched(
        self, scope_id: str | None, member_id: str, normalized_title: str
    ) -> WatchedRecord | None: ...

    async def insert_watched(self, record: WatchedRecord) -> None: ...

    async def list_watched(self, scope_id: str | None, member_id: str) -> list[WatchedRecord]: ...

    async def insert_review(self, review: Review) -> None: ...

    async def list_reviews(
        self, scope_id: str | None, normalized_titles: list[str] | None = None
    ) -> list[Review]: ...

    # --- Scope configuration (owned by club CRUD) ---

    async def get_category_list(self, scope_id: str | None) -> list[str] | None: ...

    async def get_season_length(self, scope_id: str | None) -> int | None: ...

    async def list_club_ids(self) -> list[str]: ...


UnitOfWork = Callable[[], AbstractAsyncContextManager[SeasonStore]]
