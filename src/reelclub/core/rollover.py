"""Season rollover: close an ended season and start the next one.

Supports the "Start new season" admin flow. Authorization is decided by the
caller; the engine only receives the boolean. The same effect runs implicitly
when an operation needs an active season and finds the current one ended.

Rollover effect, in order:
    1. stamp ``end_date`` and append to seasons history (if not yet stamped)
    2. put season ``number + 1`` starting now, with the configured length
    3. delete the scope's submissions
    4. clear the scope's member trackers

Title archive records and pick history are kept. All four steps share the
caller's unit of work, so a failure leaves the scope on its old season.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from reelclub.core.clock import has_ended
from reelclub.core.tracker import load_season, mark_season_ended
from reelclub.models.outcomes import RolloverReason, RolloverRejected
from reelclub.models.season import ScopeConfig, Season, SeasonArchive

if TYPE_CHECKING:
    from reelclub.db.port import SeasonStore

logger = logging.getLogger(__name__)


async def advance_season(
    store: SeasonStore,
    season: Season,
    config: ScopeConfig,
    now: datetime,
) -> Season:
    """Apply the rollover effect to an ended ``season`` and return its successor."""
    scope_id = season.scope_id
    ended = await mark_season_ended(store, season, now)

    new_season = Season(
        scope_id=scope_id,
        season_number=ended.season_number + 1,
        start_date=now,
        length_weeks=config.season_length_weeks,
    )
    await store.put_season(scope_id, new_season)

    deleted = await store.delete_submissions(scope_id)
    cleared = await store.clear_user_trackers(scope_id)

    logger.info(
        "season_rolled_over scope=%s from=%d to=%d weeks=%d deleted_submissions=%d "
        "cleared_trackers=%d",
        scope_id if scope_id is not None else "global",
        ended.season_number,
        new_season.season_number,
        new_season.length_weeks,
        deleted,
        cleared,
    )
    return new_season


async def start_new_season(
    store: SeasonStore,
    scope_id: str | None,
    *,
    authorized: bool,
    config: ScopeConfig,
    now: datetime,
) -> Season | RolloverRejected:
    """Admin-triggered rollover.

    Rejected with ``UNAUTHORIZED`` unless ``authorized``, and with
    ``SEASON_ACTIVE`` while the current season is still running (a scope with
    no season gets season 1, which is running).
    """
    if not authorized:
        logger.info("season_rollover_rejected scope=%s reason=unauthorized", scope_id)
        return RolloverRejected.of(RolloverReason.UNAUTHORIZED)

    season = await load_season(store, scope_id, config, now)
    if not has_ended(season, now):
        logger.info(
            "season_rollover_rejected scope=%s reason=season_active number=%d",
            scope_id,
            season.season_number,
        )
        return RolloverRejected.of(RolloverReason.SEASON_ACTIVE)

    return await advance_season(store, season, config, now)


async def list_seasons(store: SeasonStore, scope_id: str | None) -> list[SeasonArchive]:
    """Ended seasons for a scope, oldest first."""
    return await store.list_seasons_history(scope_id)
