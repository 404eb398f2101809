"""Tests for watched markers, reviews and the weekly review feed."""

from reelclub.core.reviews import latest_pick
from reelclub.core.service import SeasonService
from reelclub.models.outcomes import ReviewReason, ReviewRejected
from reelclub.models.review import Review, WatchedRecord
from reelclub.models.submission import HistoryEntry, PickResult

CLUB = "club-1"


class TestMarkWatched:
    async def test_marks_title(self, service: SeasonService, clock) -> None:
        record = await service.mark_watched(CLUB, "ana", "  Arrival ")
        assert isinstance(record, WatchedRecord)
        assert record.title == "Arrival"
        assert record.normalized_title == "arrival"
        assert record.watched_at == clock.now

    async def test_marking_twice_keeps_first(self, service: SeasonService, clock) -> None:
        first = await service.mark_watched(CLUB, "ana", "Arrival")
        clock.advance(days=2)
        again = await service.mark_watched(CLUB, "ana", "ARRIVAL")
        assert again.watched_at == first.watched_at

        watched = await service.list_watched(CLUB, "ana")
        assert [w.title for w in watched] == ["Arrival"]

    async def test_missing_title(self, service: SeasonService) -> None:
        result = await service.mark_watched(CLUB, "ana", "  ")
        assert isinstance(result, ReviewRejected)
        assert result.reason == ReviewReason.MISSING_TITLE
        assert await service.list_watched(CLUB, "ana") == []

    async def test_members_and_scopes_are_separate(self, service: SeasonService, clock) -> None:
        await service.mark_watched(CLUB, "ana", "Heat")
        clock.advance(hours=1)
        await service.mark_watched(CLUB, "ana", "Ran")
        await service.mark_watched(CLUB, "ben", "Alien")
        await service.mark_watched(None, "ana", "Hausu")

        assert [w.title for w in await service.list_watched(CLUB, "ana")] == ["Heat", "Ran"]
        assert [w.title for w in await service.list_watched(None, "ana")] == ["Hausu"]


class TestAddReview:
    async def test_adds_review(self, service: SeasonService, clock) -> None:
        review = await service.add_review(CLUB, "ana", "Heat", " Great shootout. ", rating=5)
        assert isinstance(review, Review)
        assert review.body == "Great shootout."
        assert review.rating == 5
        assert review.created_at == clock.now

    async def test_rating_is_optional(self, service: SeasonService) -> None:
        review = await service.add_review(CLUB, "ana", "Heat", "Long but good.")
        assert review.rating is None

    async def test_missing_fields(self, service: SeasonService) -> None:
        result = await service.add_review(CLUB, "ana", "Heat", "")
        assert isinstance(result, ReviewRejected)
        assert result.reason == ReviewReason.MISSING_FIELDS
        assert result.message == "Missing fields (title and review are required)."

    async def test_rating_out_of_range(self, service: SeasonService) -> None:
        result = await service.add_review(CLUB, "ana", "Heat", "Meh.", rating=6)
        assert result.reason == ReviewReason.INVALID_RATING
        assert result.message == "Rating must be between 1 and 5."
        assert await service.list_reviews(CLUB) == []

    async def test_list_newest_first_with_title_filter(
        self, service: SeasonService, clock
    ) -> None:
        await service.add_review(CLUB, "ana", "Heat", "First.")
        clock.advance(hours=1)
        await service.add_review(CLUB, "ben", "Ran", "Second.")
        clock.advance(hours=1)
        await service.add_review(CLUB, "cleo", "heat", "Third.")

        assert [r.body for r in await service.list_reviews(CLUB)] == [
            "Third.",
            "Second.",
            "First.",
        ]
        assert [r.body for r in await service.list_reviews(CLUB, "HEAT")] == ["Third.", "First."]
        assert await service.list_reviews("club-2") == []


class TestWeeklyReviews:
    async def test_no_picks_yet(self, service: SeasonService) -> None:
        await service.add_review(CLUB, "ana", "Heat", "Good.")
        assert await service.weekly_reviews(CLUB) == []

    async def test_follows_latest_pick(self, service: SeasonService, clock) -> None:
        await service.submit(CLUB, "ana", "top-pick", "Heat", "Heist.")
        await service.submit(CLUB, "ben", "wild-card", "Ran", "Lear.")
        first = await service.pick_winners(CLUB)
        assert isinstance(first, PickResult)

        clock.advance(hours=1)
        await service.add_review(CLUB, "cleo", "heat", "Tense.")
        clock.advance(hours=1)
        await service.add_review(CLUB, "ana", "Ran", "Epic.")
        await service.add_review(CLUB, "ben", "Alien", "Not picked yet.")
        assert [r.body for r in await service.weekly_reviews(CLUB)] == ["Epic.", "Tense."]

        clock.advance(days=7)
        await service.submit(CLUB, "cleo", "top-pick", "Alien", "Space.")
        second = await service.pick_winners(CLUB)
        assert [w.title for w in second.winners] == ["Alien"]
        assert [r.body for r in await service.weekly_reviews(CLUB)] == ["Not picked yet."]

    async def test_reviews_survive_rollover(self, service: SeasonService, clock) -> None:
        await service.submit(CLUB, "ana", "top-pick", "Heat", "Heist.")
        await service.pick_winners(CLUB)
        await service.add_review(CLUB, "ana", "Heat", "Good.")

        clock.advance(weeks=15)
        await service.start_new_season(CLUB, authorized=True)
        assert [r.body for r in await service.list_reviews(CLUB)] == ["Good."]
        assert [r.body for r in await service.weekly_reviews(CLUB)] == ["Good."]


def test_latest_pick_uses_picked_at(clock) -> None:
    older = HistoryEntry(id="a", season_number=1, picked_at=clock.now)
    newer = HistoryEntry(id="b", season_number=1, picked_at=clock.advance(days=1))
    assert latest_pick([newer, older]).id == "b"
    assert latest_pick([]) is None
