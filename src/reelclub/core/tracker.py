"""Season tracking: the source of truth for "what week is it" per scope.

Season state is computed lazily from elapsed time on every read. When a read
finds the season has run past its last week it stamps ``end_date`` and appends
the season to the scope's history, once. It does not start a new season:
callers can tell "season over, awaiting admin action" apart from "season
replaced". Only ``get_or_create_season`` (used by operations that need an
active season) and the rollover coordinator start the next one.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from reelclub.core.clock import current_week, has_ended, scheduled_end
from reelclub.models.season import ScopeConfig, Season, SeasonArchive, SeasonStatus

if TYPE_CHECKING:
    from reelclub.db.port import SeasonStore

logger = logging.getLogger(__name__)


def _scope_label(scope_id: str | None) -> str:
    return scope_id if scope_id is not None else "global"


async def resolve_scope_config(
    store: SeasonStore,
    scope_id: str | None,
    defaults: ScopeConfig,
) -> ScopeConfig:
    """Stored club settings, falling back to ``defaults`` field by field.

    The global scope and unconfigured clubs get ``defaults`` unchanged. Stored
    values are validated here, so a malformed club row raises ``ValidationError``.
    """
    categories = await store.get_category_list(scope_id)
    length = await store.get_season_length(scope_id)
    if categories is None and length is None:
        return defaults
    return ScopeConfig(
        categories=categories if categories is not None else list(defaults.categories),
        season_length_weeks=length if length is not None else defaults.season_length_weeks,
    )


async def mark_season_ended(store: SeasonStore, season: Season, now: datetime) -> Season:
    """Stamp ``end_date`` and append to the seasons history. No-op if already stamped."""
    if season.is_stamped:
        return season

    scope_id = season.scope_id
    submissions = await store.list_submissions(scope_id, season.season_number)
    picks = await store.list_history(scope_id, season.season_number)

    ended = season.model_copy(update={"end_date": now})
    await store.put_season(scope_id, ended)
    await store.append_season_history(
        scope_id,
        SeasonArchive(
            scope_id=scope_id,
            season_number=ended.season_number,
            start_date=ended.start_date,
            end_date=now,
            length_weeks=ended.length_weeks,
            submissions_count=len(submissions),
            picks_count=len(picks),
        ),
    )
    logger.info(
        "season_ended scope=%s number=%d submissions=%d picks=%d",
        _scope_label(scope_id),
        ended.season_number,
        len(submissions),
        len(picks),
    )
    return ended


async def create_first_season(
    store: SeasonStore,
    scope_id: str | None,
    config: ScopeConfig,
    now: datetime,
) -> Season:
    season = Season(
        scope_id=scope_id,
        season_number=1,
        start_date=now,
        length_weeks=config.season_length_weeks,
    )
    await store.put_season(scope_id, season)
    logger.info(
        "season_created scope=%s number=1 weeks=%d",
        _scope_label(scope_id),
        season.length_weeks,
    )
    return season


async def load_season(
    store: SeasonStore,
    scope_id: str | None,
    config: ScopeConfig,
    now: datetime,
) -> Season:
    """Return the scope's current season, ended or not.

    Creates season 1 for a scope that has none. A running season picks up a
    changed configured length. A season found past its last week is stamped
    as ended (once) but not replaced.
    """
    season = await store.get_season(scope_id)
    if season is None:
        return await create_first_season(store, scope_id, config, now)

    if not season.is_stamped and season.length_weeks != config.season_length_weeks:
        logger.info(
            "season_length_changed scope=%s number=%d from=%d to=%d",
            _scope_label(scope_id),
            season.season_number,
            season.length_weeks,
            config.season_length_weeks,
        )
        season = season.model_copy(update={"length_weeks": config.season_length_weeks})
        await store.put_season(scope_id, season)

    if not season.is_stamped and has_ended(season, now):
        season = await mark_season_ended(store, season, now)
    return season


async def get_or_create_season(
    store: SeasonStore,
    scope_id: str | None,
    config: ScopeConfig,
    now: datetime,
) -> Season:
    """Return the scope's *active* season.

    When the current season has ended this performs the implicit rollover, so
    a submission after the last week lands in the next season.
    """
    season = await load_season(store, scope_id, config, now)
    if not has_ended(season, now):
        return season

    from reelclub.core.rollover import advance_season

    return await advance_season(store, season, config, now)


def season_status(season: Season, now: datetime) -> SeasonStatus:
    week = current_week(season, now)
    return SeasonStatus(
        scope_id=season.scope_id,
        season_number=season.season_number,
        current_week=week,
        total_weeks=season.length_weeks,
        weeks_remaining=max(0, season.length_weeks - week),
        is_active=not has_ended(season, now),
        start_date=season.start_date,
        scheduled_end=scheduled_end(season),
        ended_at=season.end_date,
    )
