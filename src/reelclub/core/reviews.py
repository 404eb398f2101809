"""Watched markers and reviews.

Neither is tied to a season: both survive rollover and are keyed by the
normalized title, the same way duplicate detection matches submissions.
The weekly feed is the set of reviews for the titles that won the most
recent pick in the scope.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from reelclub.models.outcomes import ReviewReason, ReviewRejected
from reelclub.models.review import MAX_RATING, MIN_RATING, Review, WatchedRecord
from reelclub.models.submission import HistoryEntry, normalize_title

if TYPE_CHECKING:
    from reelclub.db.port import SeasonStore

logger = logging.getLogger(__name__)


async def mark_watched(
    store: SeasonStore,
    scope_id: str | None,
    member_id: str,
    title: str,
    *,
    now: datetime,
) -> WatchedRecord | ReviewRejected:
    """Record that a member watched ``title``. Marking twice returns the first record."""
    if not str(title or "").strip():
        return ReviewRejected.of(ReviewReason.MISSING_TITLE)

    existing = await store.get_watched(scope_id, member_id, normalize_title(title))
    if existing is not None:
        return existing

    record = WatchedRecord(
        scope_id=scope_id, member_id=member_id, title=title.strip(), watched_at=now
    )
    await store.insert_watched(record)
    logger.info(
        "watched_marked scope=%s member=%s title=%s",
        scope_id,
        member_id,
        record.normalized_title,
    )
    return record


async def add_review(
    store: SeasonStore,
    scope_id: str | None,
    member_id: str,
    title: str,
    body: str,
    *,
    rating: int | None = None,
    now: datetime,
) -> Review | ReviewRejected:
    if not str(title or "").strip() or not str(body or "").strip():
        return ReviewRejected.of(ReviewReason.MISSING_FIELDS)
    if rating is not None and not MIN_RATING <= rating <= MAX_RATING:
        return ReviewRejected.of(ReviewReason.INVALID_RATING, low=MIN_RATING, high=MAX_RATING)

    review = Review(
        id=uuid.uuid4().hex,
        scope_id=scope_id,
        member_id=member_id,
        title=title.strip(),
        body=body.strip(),
        rating=rating,
        created_at=now,
    )
    await store.insert_review(review)
    logger.info(
        "review_added scope=%s member=%s title=%s id=%s",
        scope_id,
        member_id,
        review.normalized_title,
        review.id,
    )
    return review


async def list_reviews(
    store: SeasonStore, scope_id: str | None, title: str | None = None
) -> list[Review]:
    """Reviews for a scope, newest first, optionally for one title."""
    titles = [normalize_title(title)] if title is not None else None
    return await store.list_reviews(scope_id, titles)


def latest_pick(history: list[HistoryEntry]) -> HistoryEntry | None:
    if not history:
        return None
    return max(history, key=lambda e: e.picked_at)


async def weekly_reviews(store: SeasonStore, scope_id: str | None) -> list[Review]:
    """Reviews of the titles chosen by the scope's most recent pick."""
    entry = latest_pick(await store.list_history(scope_id))
    if entry is None or not entry.winners:
        return []
    titles = sorted({w.normalized_title for w in entry.winners})
    return await store.list_reviews(scope_id, titles)
