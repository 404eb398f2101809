"""Submission eligibility and acceptance.

A submission attempt ends in exactly one of two states: accepted (the
submission, the member's tracker entry and, if new, the title archive record
are all written) or rejected with a specific reason. Checks run in a fixed
order so the reason reported is always the most precise one:

    missing fields -> invalid category -> (resolve season) -> duplicate in
    season -> duplicate across seasons -> category filled -> all filled

The caller holds the scope lock and a unit of work around the whole call.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import datetime
from typing import TYPE_CHECKING

from reelclub.core.tracker import get_or_create_season, load_season
from reelclub.models.outcomes import RejectionReason, ResetRejected, SubmissionRejected
from reelclub.models.season import ScopeConfig
from reelclub.models.submission import (
    ArchiveRecord,
    MemberSummary,
    Submission,
    UserStatus,
    normalize_title,
)

if TYPE_CHECKING:
    from reelclub.db.port import SeasonStore

logger = logging.getLogger(__name__)


async def submit(
    store: SeasonStore,
    scope_id: str | None,
    submitter_id: str,
    category: str,
    title: str,
    description: str,
    *,
    config: ScopeConfig,
    now: datetime,
    poster_url: str | None = None,
) -> Submission | SubmissionRejected:
    """Validate and accept one submission."""
    if not str(title or "").strip() or not str(description or "").strip():
        return _reject(scope_id, submitter_id, RejectionReason.MISSING_FIELDS)

    if category not in config.categories:
        return _reject(
            scope_id,
            submitter_id,
            RejectionReason.INVALID_CATEGORY,
            categories=", ".join(config.categories),
        )

    season = await get_or_create_season(store, scope_id, config, now)
    season_number = season.season_number
    normalized = normalize_title(title)

    existing = await store.list_submissions(scope_id, season_number)
    if any(s.normalized_title == normalized for s in existing):
        return _reject(scope_id, submitter_id, RejectionReason.DUPLICATE_IN_SEASON)

    past = await store.find_archive_record(scope_id, normalized)
    if past is not None and past.season_number < season_number:
        return _reject(scope_id, submitter_id, RejectionReason.DUPLICATE_ACROSS_SEASONS)

    filled = await store.get_user_tracker(scope_id, season_number, submitter_id)
    if category in filled:
        return _reject(scope_id, submitter_id, RejectionReason.CATEGORY_ALREADY_FILLED)
    if len(filled) >= len(config.categories):
        return _reject(scope_id, submitter_id, RejectionReason.ALL_CATEGORIES_FILLED)

    submission = Submission(
        id=uuid.uuid4().hex,
        title=title.strip(),
        description=description.strip(),
        category=category,
        submitter_id=submitter_id,
        scope_id=scope_id,
        season_number=season_number,
        submitted_at=now,
        poster_url=poster_url,
    )
    await store.insert_submission(submission)
    await store.set_user_tracker(scope_id, season_number, submitter_id, [*filled, category])
    if past is None:
        await store.insert_archive_record(
            ArchiveRecord(
                scope_id=scope_id,
                normalized_title=normalized,
                season_number=season_number,
                title=submission.title,
                recorded_at=now,
            )
        )

    logger.info(
        "submission_accepted scope=%s season=%d submitter=%s category=%s id=%s",
        scope_id,
        season_number,
        submitter_id,
        category,
        submission.id,
    )
    return submission


def _reject(
    scope_id: str | None,
    submitter_id: str,
    reason: RejectionReason,
    **fmt: str,
) -> SubmissionRejected:
    logger.info(
        "submission_rejected scope=%s submitter=%s reason=%s",
        scope_id,
        submitter_id,
        reason.value,
    )
    return SubmissionRejected.of(reason, **fmt)


async def get_user_status(
    store: SeasonStore,
    scope_id: str | None,
    submitter_id: str,
    *,
    config: ScopeConfig,
    now: datetime,
) -> UserStatus:
    """Categories the member has filled in the scope's current season."""
    season = await load_season(store, scope_id, config, now)
    filled = await store.get_user_tracker(scope_id, season.season_number, submitter_id)
    return UserStatus(
        scope_id=scope_id,
        season_number=season.season_number,
        submitter_id=submitter_id,
        filled_categories=filled,
        remaining_categories=[c for c in config.categories if c not in filled],
        all_filled=len(filled) >= len(config.categories),
    )


async def reset_member(
    store: SeasonStore,
    scope_id: str | None,
    submitter_id: str,
    *,
    authorized: bool,
    config: ScopeConfig,
    now: datetime,
) -> UserStatus | ResetRejected:
    """Admin action: let a member start the current season over.

    Clears the member's tracker and removes their current-season submissions,
    so a resubmission can never leave two entries in one category. Title
    archive records stay; they only block titles from *earlier* seasons.
    """
    if not authorized:
        return ResetRejected()

    season = await load_season(store, scope_id, config, now)
    removed = await store.delete_member_submissions(
        scope_id, season.season_number, submitter_id
    )
    await store.set_user_tracker(scope_id, season.season_number, submitter_id, [])
    logger.info(
        "member_reset scope=%s season=%d submitter=%s removed=%d",
        scope_id,
        season.season_number,
        submitter_id,
        removed,
    )
    return await get_user_status(store, scope_id, submitter_id, config=config, now=now)


async def submissions_summary(
    store: SeasonStore,
    scope_id: str | None,
    *,
    config: ScopeConfig,
    now: datetime,
) -> list[MemberSummary]:
    """Per-member submissions for the current season, busiest members first."""
    season = await load_season(store, scope_id, config, now)
    submissions = await store.list_submissions(scope_id, season.season_number)

    by_member: dict[str, dict[str, list[str]]] = defaultdict(lambda: defaultdict(list))
    for s in submissions:
        by_member[s.submitter_id][s.category].append(s.title)

    summaries = [
        MemberSummary(
            submitter_id=member,
            submission_count=sum(len(titles) for titles in categories.values()),
            titles_by_category=dict(categories),
        )
        for member, categories in by_member.items()
    ]
    summaries.sort(key=lambda m: (-m.submission_count, m.submitter_id))
    return summaries
