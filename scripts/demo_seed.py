"""Seed a ReelClub demo club and exercise the season engine.

Usage:
    python scripts/demo_seed.py seed            # Create the demo club + submissions
    python scripts/demo_seed.py pick            # Pick this week's winners
    python scripts/demo_seed.py status          # Print season state and history
    python scripts/demo_seed.py submit MEMBER CATEGORY TITLE...

Uses a local SQLite database (demo_reelclub.db).
"""

from __future__ import annotations

import asyncio
import os
import sys

from reelclub.config import Settings
from reelclub.core.service import SeasonService
from reelclub.db.engine import create_engine, get_session, init_db
from reelclub.db.repository import Repository, sql_unit_of_work
from reelclub.models.outcomes import SubmissionRejected
from reelclub.models.submission import PickResult

DEMO_DB = os.environ.get("DATABASE_URL", "sqlite+aiosqlite:///demo_reelclub.db")
DEMO_CLUB = "demo-club"
CATEGORIES = ["top-pick", "wild-card", "classic"]

SUBMISSIONS = [
    ("ana", "top-pick", "Arrival", "Linguist meets heptapods."),
    ("ana", "wild-card", "Paddington 2", "A bear, a pop-up book, a prison."),
    ("ben", "top-pick", "Heat", "Two professionals, one diner scene."),
    ("ben", "classic", "Rear Window", "A broken leg and a telephoto lens."),
    ("cleo", "top-pick", "In the Mood for Love", "Hallways and qipaos."),
    ("cleo", "wild-card", "Hausu", "A haunted house, extremely."),
    ("cleo", "classic", "Sunset Boulevard", "Ready for the close-up."),
]


async def _service():
    engine = create_engine(DEMO_DB)
    await init_db(engine)
    return SeasonService(sql_unit_of_work(engine), Settings(database_url=DEMO_DB)), engine


async def seed():
    """Create the demo club and a first round of submissions."""
    service, engine = await _service()
    async with get_session(engine) as session:
        await Repository(session).upsert_club(
            DEMO_CLUB, CATEGORIES, season_length_weeks=8, name="Tuesday Night Reels"
        )

    for member, category, title, description in SUBMISSIONS:
        result = await service.submit(DEMO_CLUB, member, category, title, description)
        if isinstance(result, SubmissionRejected):
            print(f"  {member:<6} {category:<10} {title:<25} REJECTED: {result.message}")
        else:
            print(f"  {member:<6} {category:<10} {title:<25} season {result.season_number}")

    await engine.dispose()


async def pick():
    """Pick winners for the demo club."""
    service, engine = await _service()
    result = await service.pick_winners(DEMO_CLUB)
    print(result.message)
    if isinstance(result, PickResult):
        for w in result.winners:
            print(f"  {w.category:<10} {w.title} (by {w.submitter_id})")
    await engine.dispose()


async def status():
    """Print season progress, member summaries and pick history."""
    service, engine = await _service()
    season = await service.get_season_status(DEMO_CLUB)
    state = "active" if season.is_active else "ended"
    print(
        f"Season {season.season_number} | week {season.current_week}/{season.total_weeks} "
        f"| {season.weeks_remaining} weeks left | {state}"
    )
    print(f"{'Member':<8} {'#':>3}  Categories")
    print("-" * 40)
    for summary in await service.submissions_summary(DEMO_CLUB):
        print(
            f"{summary.submitter_id:<8} {summary.submission_count:>3}  "
            f"{', '.join(summary.categories)}"
        )
    for entry in await service.list_history(DEMO_CLUB):
        titles = ", ".join(w.title for w in entry.winners)
        print(f"{entry.picked_at:%Y-%m-%d %H:%M}  {titles}")
    await engine.dispose()


async def submit(member: str, category: str, title: str):
    service, engine = await _service()
    result = await service.submit(DEMO_CLUB, member, category, title, "Submitted from the CLI.")
    if isinstance(result, SubmissionRejected):
        print(f"Rejected ({result.reason}): {result.message}")
    else:
        print(f"Accepted: {result.title} in {result.category}, season {result.season_number}")
    await engine.dispose()


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        return

    cmd = sys.argv[1]
    if cmd == "seed":
        asyncio.run(seed())
    elif cmd == "pick":
        asyncio.run(pick())
    elif cmd == "status":
        asyncio.run(status())
    elif cmd == "submit":
        if len(sys.argv) < 5:
            print("Usage: demo_seed.py submit MEMBER CATEGORY TITLE...")
            return
        asyncio.run(submit(sys.argv[2], sys.argv[3], " ".join(sys.argv[4:])))
    else:
        print(f"Unknown command: {cmd}")
        print(__doc__)


if __name__ == "__main__":
    main()
