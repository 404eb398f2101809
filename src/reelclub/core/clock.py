"""Week arithmetic for seasons.

Weeks are fixed 7x24h windows counted from the season start. There is no
calendar alignment and no timezone adjustment: only elapsed duration matters.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reelclub.models.season import Season

WEEK = timedelta(days=7)


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def raw_week(start_date: datetime, now: datetime) -> int:
    """1-based week index since ``start_date``, unclamped above, floored at 1."""
    elapsed = as_utc(now) - as_utc(start_date)
    if elapsed < timedelta(0):
        return 1
    return elapsed // WEEK + 1


def current_week(season: Season, now: datetime) -> int:
    """Week of the season at ``now``, clamped to ``[1, length_weeks]``."""
    return min(season.length_weeks, raw_week(season.start_date, now))


def has_ended(season: Season, now: datetime) -> bool:
    """True once the season ran past its last week, or was already stamped."""
    if season.is_stamped:
        return True
    return raw_week(season.start_date, now) > season.length_weeks


def scheduled_end(season: Season) -> datetime:
    return as_utc(season.start_date) + WEEK * season.length_weeks
