"""Tests for the service layer: scope serialization and storage failures."""

import asyncio
import random

import pytest

from reelclub.config import Settings
from reelclub.core.errors import PersistenceFailure
from reelclub.core.locks import GLOBAL_SCOPE_KEY, ScopeLocks, scope_key
from reelclub.core.service import SeasonService
from reelclub.db.memory import MemoryStore
from reelclub.models.outcomes import NoEligibleSubmissions, RejectionReason, SubmissionRejected
from reelclub.models.season import Season
from reelclub.models.submission import PickResult, Submission

CLUB = "club-1"


class FlakyRolloverStore(MemoryStore):
    """Fails halfway through the rollover effect."""

    async def clear_user_trackers(self, scope_id: str | None) -> int:
        raise OSError("disk full")


class TestConcurrency:
    async def test_same_member_same_category(self, service: SeasonService) -> None:
        """Two concurrent submissions in one category: exactly one is accepted."""
        results = await asyncio.gather(
            service.submit(CLUB, "ana", "top-pick", "Heat", "Good."),
            service.submit(CLUB, "ana", "top-pick", "Ran", "Good."),
        )
        accepted = [r for r in results if isinstance(r, Submission)]
        rejected = [r for r in results if isinstance(r, SubmissionRejected)]
        assert len(accepted) == 1
        assert len(rejected) == 1
        assert rejected[0].reason == RejectionReason.CATEGORY_ALREADY_FILLED

        summary = await service.submissions_summary(CLUB)
        assert summary[0].submission_count == 1

    async def test_same_title_two_members(self, service: SeasonService) -> None:
        results = await asyncio.gather(
            service.submit(CLUB, "ana", "top-pick", "Heat", "Good."),
            service.submit(CLUB, "ben", "wild-card", "heat", "Good."),
        )
        reasons = [r.reason for r in results if isinstance(r, SubmissionRejected)]
        assert reasons == [RejectionReason.DUPLICATE_IN_SEASON]

    async def test_many_members_one_title(self, service: SeasonService) -> None:
        results = await asyncio.gather(
            *(service.submit(CLUB, f"m{i}", "top-pick", "Heat", "Good.") for i in range(8))
        )
        assert sum(isinstance(r, Submission) for r in results) == 1

    async def test_pick_racing_rollover(self, service: SeasonService, clock) -> None:
        """The pick lands wholly in one season; the rollover is not interleaved."""
        await service.submit(CLUB, "ana", "top-pick", "Heat", "Good.")
        clock.advance(weeks=15)

        pick, rolled = await asyncio.gather(
            service.pick_winners(CLUB),
            service.start_new_season(CLUB, authorized=True),
        )
        assert isinstance(rolled, Season)
        assert rolled.season_number == 2
        # The pick ran first, against season 1's submissions.
        assert isinstance(pick, PickResult)
        assert pick.entry.season_number == 1
        assert await service.submissions_summary(CLUB) == []

    async def test_different_scopes_do_not_interfere(self, service: SeasonService) -> None:
        results = await asyncio.gather(
            service.submit("club-a", "ana", "top-pick", "Heat", "Good."),
            service.submit("club-b", "ana", "top-pick", "Heat", "Good."),
        )
        assert all(isinstance(r, Submission) for r in results)


class TestScopeLocks:
    def test_one_lock_per_scope(self) -> None:
        locks = ScopeLocks()
        assert locks.get("a") is locks.get("a")
        assert locks.get("a") is not locks.get("b")
        assert locks.get(None) is locks.get(None)
        assert len(locks) == 3

    def test_global_scope_key(self) -> None:
        assert scope_key(None) == GLOBAL_SCOPE_KEY
        assert scope_key("club-1") == "club-1"

    async def test_hold_serializes(self) -> None:
        locks = ScopeLocks()
        order: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold("a", reason=name):
                order.append(f"{name}-in")
                await asyncio.sleep(0)
                order.append(f"{name}-out")

        await asyncio.gather(worker("one"), worker("two"))
        assert order == ["one-in", "one-out", "two-in", "two-out"]


class TestPersistenceFailure:
    async def test_failed_rollover_leaves_old_season(
        self, settings: Settings, clock
    ) -> None:
        store = FlakyRolloverStore()
        service = SeasonService(store.unit_of_work, settings, clock=clock, rng=random.Random(1))
        await service.submit(CLUB, "ana", "top-pick", "Heat", "Good.")
        clock.advance(weeks=15)

        with pytest.raises(PersistenceFailure) as excinfo:
            await service.start_new_season(CLUB, authorized=True)
        assert excinfo.value.operation == "start_new_season"
        assert excinfo.value.scope_id == CLUB
        assert str(excinfo.value) == "start_new_season failed for scope club-1"

        # Nothing from the failed unit of work was kept.
        season = store.state.seasons[CLUB]
        assert season.season_number == 1
        assert season.end_date is None
        assert len(store.state.submissions) == 1
        assert store.state.season_history == []

    async def test_failed_implicit_rollover_rejects_submission(
        self, settings: Settings, clock
    ) -> None:
        store = FlakyRolloverStore()
        service = SeasonService(store.unit_of_work, settings, clock=clock)
        await service.submit(None, "ana", "top-pick", "Heat", "Good.")
        clock.advance(weeks=15)

        with pytest.raises(PersistenceFailure, match="submit failed for scope global"):
            await service.submit(None, "ana", "top-pick", "Ran", "Good.")
        assert [s.title for s in store.state.submissions] == ["Heat"]

    async def test_lock_released_after_failure(self, settings: Settings, clock) -> None:
        locks = ScopeLocks()
        store = FlakyRolloverStore()
        service = SeasonService(store.unit_of_work, settings, clock=clock, locks=locks)
        await service.get_season_status(CLUB)
        clock.advance(weeks=15)

        with pytest.raises(PersistenceFailure):
            await service.start_new_season(CLUB, authorized=True)
        assert not locks.get(CLUB).locked()
        assert isinstance(await service.pick_winners(CLUB), NoEligibleSubmissions)


class TestListScopes:
    async def test_global_then_clubs(self, service: SeasonService, backend) -> None:
        assert await service.list_scopes() == [None]
        await backend.configure_club("club-a", ["top-pick"])
        scopes = await service.list_scopes()
        assert scopes == [None, "club-a"]

    async def test_club_settings_used(self, service: SeasonService, backend) -> None:
        await backend.configure_club("club-a", ["horror", "comedy"], season_length_weeks=6)
        status = await service.get_season_status("club-a")
        assert status.total_weeks == 6
        user = await service.get_user_status("club-a", "ana")
        assert user.remaining_categories == ["horror", "comedy"]
