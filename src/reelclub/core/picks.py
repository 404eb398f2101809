"""Winner selection: one winner per category, no title winning twice a season.

Two exclusion sets apply. The season-wide set holds every title that already
won in an earlier pick this season, shared across categories. The pass-local
set holds titles chosen earlier in the current pick. Among the remaining
candidates of a category the winner is drawn uniformly at random; there is no
fairness rule across members or weeks.
"""

from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from reelclub.core.tracker import load_season
from reelclub.models.outcomes import NoEligibleSubmissions
from reelclub.models.season import ScopeConfig
from reelclub.models.submission import HistoryEntry, PickResult, Submission

if TYPE_CHECKING:
    from reelclub.db.port import SeasonStore

logger = logging.getLogger(__name__)


async def season_winner_titles(
    store: SeasonStore, scope_id: str | None, season_number: int
) -> set[str]:
    """Normalized titles that already won in this season."""
    titles: set[str] = set()
    for entry in await store.list_history(scope_id, season_number):
        titles.update(w.normalized_title for w in entry.winners)
    return titles


def choose_winners(
    submissions: list[Submission],
    categories: list[str],
    excluded: set[str],
    rng: random.Random,
) -> tuple[list[Submission], list[str]]:
    """Pick per category in configured order. Returns (winners, skipped categories)."""
    chosen: set[str] = set()
    winners: list[Submission] = []
    skipped: list[str] = []

    for category in categories:
        eligible = [
            s
            for s in submissions
            if s.category == category
            and s.normalized_title not in excluded
            and s.normalized_title not in chosen
        ]
        if not eligible:
            skipped.append(category)
            continue
        winner = rng.choice(eligible)
        winners.append(winner)
        chosen.add(winner.normalized_title)

    return winners, skipped


def format_pick_message(winners: list[Submission], skipped: list[str]) -> str:
    titles = ", ".join(w.title for w in winners if w.title)
    suffix = f" Skipped: {', '.join(skipped)}." if skipped else ""
    if titles:
        return f"Picked {titles}.{suffix}"
    return f"Picked winners.{suffix}"


async def pick_winners(
    store: SeasonStore,
    scope_id: str | None,
    *,
    config: ScopeConfig,
    now: datetime,
    rng: random.Random | None = None,
) -> PickResult | NoEligibleSubmissions:
    """Pick this week's winners for a scope and record a history entry.

    Works on the scope's current season even if it has already ended: the
    final pick of a season may run before an admin rolls it over.
    """
    rng = rng or random.Random()
    season = await load_season(store, scope_id, config, now)
    submissions = await store.list_submissions(scope_id, season.season_number)
    if not submissions:
        logger.info(
            "pick_skip scope=%s season=%d reason=no_submissions",
            scope_id,
            season.season_number,
        )
        return NoEligibleSubmissions()

    excluded = await season_winner_titles(store, scope_id, season.season_number)
    winners, skipped = choose_winners(submissions, config.categories, excluded, rng)
    if not winners:
        logger.info(
            "pick_skip scope=%s season=%d reason=all_excluded submissions=%d",
            scope_id,
            season.season_number,
            len(submissions),
        )
        return NoEligibleSubmissions(
            message="No eligible submissions left to pick this season.",
            submissions_count=len(submissions),
        )

    entry = HistoryEntry(
        id=uuid.uuid4().hex,
        scope_id=scope_id,
        season_number=season.season_number,
        picked_at=now,
        submissions_count=len(submissions),
        winners=winners,
        skipped_categories=skipped,
    )
    await store.insert_history_entry(entry)

    logger.info(
        "winners_picked scope=%s season=%d winners=%d skipped=%d submissions=%d",
        scope_id,
        season.season_number,
        len(winners),
        len(skipped),
        len(submissions),
    )
    return PickResult(
        entry=entry,
        winners=winners,
        skipped_categories=skipped,
        message=format_pick_message(winners, skipped),
    )


async def list_history(
    store: SeasonStore, scope_id: str | None, season_number: int | None = None
) -> list[HistoryEntry]:
    """Pick history for a scope (one season, or all), newest first."""
    entries = await store.list_history(scope_id, season_number)
    return sorted(entries, key=lambda e: e.picked_at, reverse=True)
