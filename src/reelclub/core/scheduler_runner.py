"""Scheduled weekly picks.

Provides ``tick_picks`` which is invoked by APScheduler on the cron cadence
defined by ``settings.reelclub_pick_cron``. Each tick picks winners for the
global scope and for every configured club.

Errors are logged but never propagated so the scheduler keeps running.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from reelclub.core.errors import PersistenceFailure
from reelclub.models.submission import PickResult

if TYPE_CHECKING:
    from reelclub.config import Settings
    from reelclub.core.service import SeasonService

logger = logging.getLogger(__name__)

PICK_JOB_ID = "tick_picks"


async def tick_picks(service: SeasonService) -> dict[str | None, PickResult | None]:
    """Run one pick for every scope.

    Returns a mapping of scope to its ``PickResult``, or None where there was
    nothing to pick or the pick failed.
    """
    results: dict[str | None, PickResult | None] = {}
    try:
        scopes = await service.list_scopes()
    except PersistenceFailure:
        logger.exception("tick_picks_scope_listing_error")
        return results

    for scope_id in scopes:
        try:
            outcome = await service.pick_winners(scope_id)
        except PersistenceFailure:
            logger.exception("tick_picks_error scope=%s", scope_id)
            results[scope_id] = None
            continue
        except Exception:  # Last-resort handler: bad stored club config, engine bugs
            logger.exception("tick_picks_error scope=%s", scope_id)
            results[scope_id] = None
            continue

        if isinstance(outcome, PickResult):
            logger.info("tick_picks_picked scope=%s message=%s", scope_id, outcome.message)
            results[scope_id] = outcome
        else:
            logger.info("tick_picks_skip scope=%s message=%s", scope_id, outcome.message)
            results[scope_id] = None
    return results


def build_scheduler(settings: Settings, service: SeasonService) -> AsyncIOScheduler | None:
    """Create (but do not start) the pick scheduler, or None when auto-pick is off."""
    if not settings.reelclub_auto_pick:
        logger.info("scheduler_disabled auto_pick=false")
        return None

    scheduler = AsyncIOScheduler()
    trigger = CronTrigger.from_crontab(settings.reelclub_pick_cron)
    scheduler.add_job(
        tick_picks,
        trigger=trigger,
        kwargs={"service": service},
        id=PICK_JOB_ID,
        name="Pick weekly winners",
        replace_existing=True,
    )
    return scheduler
