"""Season service: the operations exposed to the transport layer.

Every operation follows the same discipline:

* acquire the scope's lock, so check-then-act sequences for one scope never
  interleave (two same-category submissions, a pick racing a rollover);
* open one unit of work, which commits on success and rolls back on error;
* re-read the scope's configuration and read the clock once;
* translate storage errors into ``PersistenceFailure``. Nothing is retried.

No season or submission state is cached between operations.
"""

from __future__ import annotations

import logging
import random
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from reelclub.config import Settings
from reelclub.core import picks, reviews, rollover, submissions, tracker
from reelclub.core.clock import utcnow
from reelclub.core.errors import PersistenceFailure
from reelclub.core.locks import ScopeLocks
from reelclub.db.port import SeasonStore, UnitOfWork
from reelclub.models.outcomes import (
    NoEligibleSubmissions,
    ResetRejected,
    ReviewRejected,
    RolloverRejected,
    SubmissionRejected,
)
from reelclub.models.review import Review, WatchedRecord
from reelclub.models.season import ScopeConfig, Season, SeasonArchive, SeasonStatus
from reelclub.models.submission import (
    HistoryEntry,
    MemberSummary,
    PickResult,
    Submission,
    UserStatus,
)

logger = logging.getLogger(__name__)

_STORAGE_ERRORS = (SQLAlchemyError, OSError)


class SeasonService:
    """Season & submission lifecycle engine bound to one persistence adapter."""

    def __init__(
        self,
        unit_of_work: UnitOfWork,
        settings: Settings | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
        rng: random.Random | None = None,
        locks: ScopeLocks | None = None,
    ) -> None:
        self._unit_of_work = unit_of_work
        self._defaults = (settings or Settings()).default_scope_config()
        self._clock = clock or utcnow
        self._rng = rng or random.Random()
        self._locks = locks or ScopeLocks()

    @asynccontextmanager
    async def _operation(
        self, scope_id: str | None, name: str
    ) -> AsyncIterator[tuple[SeasonStore, ScopeConfig, datetime]]:
        async with self._locks.hold(scope_id, reason=name):
            try:
                async with self._unit_of_work() as store:
                    config = await tracker.resolve_scope_config(store, scope_id, self._defaults)
                    yield store, config, self._clock()
            except _STORAGE_ERRORS as exc:
                logger.warning(
                    "persistence_failure op=%s scope=%s error=%s",
                    name,
                    scope_id,
                    exc.__class__.__name__,
                )
                raise PersistenceFailure(name, scope_id) from exc

    # --- Submissions ---

    async def submit(
        self,
        scope_id: str | None,
        submitter_id: str,
        category: str,
        title: str,
        description: str,
        *,
        poster_url: str | None = None,
    ) -> Submission | SubmissionRejected:
        async with self._operation(scope_id, "submit") as (store, config, now):
            return await submissions.submit(
                store,
                scope_id,
                submitter_id,
                category,
                title,
                description,
                config=config,
                now=now,
                poster_url=poster_url,
            )

    async def get_user_status(self, scope_id: str | None, submitter_id: str) -> UserStatus:
        async with self._operation(scope_id, "get_user_status") as (store, config, now):
            return await submissions.get_user_status(
                store, scope_id, submitter_id, config=config, now=now
            )

    async def reset_member(
        self, scope_id: str | None, submitter_id: str, *, authorized: bool
    ) -> UserStatus | ResetRejected:
        async with self._operation(scope_id, "reset_member") as (store, config, now):
            return await submissions.reset_member(
                store, scope_id, submitter_id, authorized=authorized, config=config, now=now
            )

    async def submissions_summary(self, scope_id: str | None) -> list[MemberSummary]:
        async with self._operation(scope_id, "submissions_summary") as (store, config, now):
            return await submissions.submissions_summary(store, scope_id, config=config, now=now)

    # --- Seasons ---

    async def get_season_status(self, scope_id: str | None) -> SeasonStatus:
        async with self._operation(scope_id, "get_season_status") as (store, config, now):
            season = await tracker.load_season(store, scope_id, config, now)
            return tracker.season_status(season, now)

    async def start_new_season(
        self, scope_id: str | None, authorized: bool
    ) -> Season | RolloverRejected:
        async with self._operation(scope_id, "start_new_season") as (store, config, now):
            return await rollover.start_new_season(
                store, scope_id, authorized=authorized, config=config, now=now
            )

    async def list_seasons(self, scope_id: str | None) -> list[SeasonArchive]:
        async with self._operation(scope_id, "list_seasons") as (store, _config, _now):
            return await rollover.list_seasons(store, scope_id)

    # --- Picks ---

    async def pick_winners(self, scope_id: str | None) -> PickResult | NoEligibleSubmissions:
        async with self._operation(scope_id, "pick_winners") as (store, config, now):
            return await picks.pick_winners(store, scope_id, config=config, now=now, rng=self._rng)

    async def list_history(
        self, scope_id: str | None, season_number: int | None = None
    ) -> list[HistoryEntry]:
        async with self._operation(scope_id, "list_history") as (store, _config, _now):
            return await picks.list_history(store, scope_id, season_number)

    # --- Watched markers and reviews ---

    async def mark_watched(
        self, scope_id: str | None, member_id: str, title: str
    ) -> WatchedRecord | ReviewRejected:
        async with self._operation(scope_id, "mark_watched") as (store, _config, now):
            return await reviews.mark_watched(store, scope_id, member_id, title, now=now)

    async def list_watched(self, scope_id: str | None, member_id: str) -> list[WatchedRecord]:
        async with self._operation(scope_id, "list_watched") as (store, _config, _now):
            return await store.list_watched(scope_id, member_id)

    async def add_review(
        self,
        scope_id: str | None,
        member_id: str,
        title: str,
        body: str,
        *,
        rating: int | None = None,
    ) -> Review | ReviewRejected:
        async with self._operation(scope_id, "add_review") as (store, _config, now):
            return await reviews.add_review(
                store, scope_id, member_id, title, body, rating=rating, now=now
            )

    async def list_reviews(self, scope_id: str | None, title: str | None = None) -> list[Review]:
        async with self._operation(scope_id, "list_reviews") as (store, _config, _now):
            return await reviews.list_reviews(store, scope_id, title)

    async def weekly_reviews(self, scope_id: str | None) -> list[Review]:
        async with self._operation(scope_id, "weekly_reviews") as (store, _config, _now):
            return await reviews.weekly_reviews(store, scope_id)

    # --- Scopes ---

    async def list_scopes(self) -> list[str | None]:
        """The global scope followed by every configured club."""
        try:
            async with self._unit_of_work() as store:
                club_ids = await store.list_club_ids()
        except _STORAGE_ERRORS as exc:
            raise PersistenceFailure("list_scopes") from exc
        return [None, *club_ids]
