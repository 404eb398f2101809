"""Tests for the admin-triggered season rollover."""

from datetime import timedelta

from reelclub.core.service import SeasonService
from reelclub.models.outcomes import RejectionReason, RolloverReason, RolloverRejected
from reelclub.models.season import Season
from reelclub.models.submission import Submission

CLUB = "club-1"


class TestStartNewSeason:
    async def test_unauthorized(self, service: SeasonService, clock) -> None:
        await service.get_season_status(CLUB)
        clock.advance(weeks=20)
        result = await service.start_new_season(CLUB, authorized=False)
        assert isinstance(result, RolloverRejected)
        assert result.reason == RolloverReason.UNAUTHORIZED
        assert result.message == "Only admins can start a new season."

    async def test_season_still_active(self, service: SeasonService, clock) -> None:
        await service.get_season_status(CLUB)
        clock.advance(weeks=3)
        result = await service.start_new_season(CLUB, authorized=True)
        assert isinstance(result, RolloverRejected)
        assert result.reason == RolloverReason.SEASON_ACTIVE
        assert result.message == "Current season is still active."

    async def test_new_scope_gets_running_first_season(self, service: SeasonService) -> None:
        result = await service.start_new_season(CLUB, authorized=True)
        assert result.reason == RolloverReason.SEASON_ACTIVE
        status = await service.get_season_status(CLUB)
        assert status.season_number == 1

    async def test_rollover_after_short_season(
        self, service: SeasonService, backend, clock
    ) -> None:
        """A 4-week season started 40 days ago is over; the admin starts season 2."""
        await backend.configure_club(CLUB, ["top-pick", "wild-card"], season_length_weeks=4)
        await service.get_season_status(CLUB)
        clock.advance(days=40)

        status = await service.get_season_status(CLUB)
        assert status.is_active is False
        assert status.ended_at == clock.now

        result = await service.start_new_season(CLUB, authorized=True)
        assert isinstance(result, Season)
        assert result.season_number == 2
        assert result.start_date == clock.now
        assert result.length_weeks == 4

        status = await service.get_season_status(CLUB)
        assert status.season_number == 2
        assert status.current_week == 1
        assert status.is_active is True

    async def test_rollover_resets_season_state(self, service: SeasonService, clock) -> None:
        await service.submit(CLUB, "ana", "top-pick", "Heat", "Good.")
        await service.submit(CLUB, "ana", "wild-card", "Hausu", "Odd.")
        await service.pick_winners(CLUB)
        clock.advance(weeks=14, days=1)
        await service.start_new_season(CLUB, authorized=True)

        status = await service.get_user_status(CLUB, "ana")
        assert status.season_number == 2
        assert status.filled_categories == []
        assert await service.submissions_summary(CLUB) == []

        again = await service.submit(CLUB, "ana", "top-pick", "Heat", "Good.")
        assert again.reason == RejectionReason.DUPLICATE_ACROSS_SEASONS
        fresh = await service.submit(CLUB, "ana", "top-pick", "Ran", "Good.")
        assert isinstance(fresh, Submission)

        assert len(await service.list_history(CLUB, season_number=1)) == 1

    async def test_seasons_history(self, service: SeasonService, clock) -> None:
        await service.submit(CLUB, "ana", "top-pick", "Heat", "Good.")
        await service.pick_winners(CLUB)
        start = clock.now
        clock.advance(weeks=15)
        ended_at = clock.now

        # Status reads stamp the season; the rollover must not append it twice.
        await service.get_season_status(CLUB)
        clock.advance(hours=2)
        await service.get_season_status(CLUB)
        await service.start_new_season(CLUB, authorized=True)

        seasons = await service.list_seasons(CLUB)
        assert len(seasons) == 1
        archive = seasons[0]
        assert archive.season_number == 1
        assert archive.start_date == start
        assert archive.end_date == ended_at
        assert archive.length_weeks == 14
        assert archive.submissions_count == 1
        assert archive.picks_count == 1

    async def test_two_rollovers(self, service: SeasonService, clock) -> None:
        await service.get_season_status(None)
        for expected in (2, 3):
            clock.advance(weeks=15)
            result = await service.start_new_season(None, authorized=True)
            assert result.season_number == expected
        seasons = await service.list_seasons(None)
        assert [s.season_number for s in seasons] == [1, 2]
        assert seasons[1].start_date == seasons[0].end_date
        assert seasons[1].end_date - seasons[1].start_date == timedelta(weeks=15)
