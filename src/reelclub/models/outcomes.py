"""Typed non-success outcomes.

Validation failures are expected, user-facing results and are returned, not
raised. Each reason maps to its own message so callers never collapse them
into a generic "submission failed".
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class RejectionReason(StrEnum):
    MISSING_FIELDS = "missing_fields"
    INVALID_CATEGORY = "invalid_category"
    DUPLICATE_IN_SEASON = "duplicate_in_season"
    DUPLICATE_ACROSS_SEASONS = "duplicate_across_seasons"
    CATEGORY_ALREADY_FILLED = "category_already_filled"
    ALL_CATEGORIES_FILLED = "all_categories_filled"


class RolloverReason(StrEnum):
    SEASON_ACTIVE = "season_active"
    UNAUTHORIZED = "unauthorized"


REJECTION_MESSAGES: dict[RejectionReason, str] = {
    RejectionReason.MISSING_FIELDS: "Missing fields (title and description are required).",
    RejectionReason.INVALID_CATEGORY: "Category must be one of: {categories}.",
    RejectionReason.DUPLICATE_IN_SEASON: "This movie has already been submitted.",
    RejectionReason.DUPLICATE_ACROSS_SEASONS: "This movie was submitted in a previous season.",
    RejectionReason.CATEGORY_ALREADY_FILLED: "You can only submit one movie per category.",
    RejectionReason.ALL_CATEGORIES_FILLED: "You have already submitted for all categories.",
}

ROLLOVER_MESSAGES: dict[RolloverReason, str] = {
    RolloverReason.SEASON_ACTIVE: "Current season is still active.",
    RolloverReason.UNAUTHORIZED: "Only admins can start a new season.",
}


class SubmissionRejected(BaseModel):
    reason: RejectionReason
    message: str

    @classmethod
    def of(cls, reason: RejectionReason, **fmt: str) -> SubmissionRejected:
        return cls(reason=reason, message=REJECTION_MESSAGES[reason].format(**fmt))


class NoEligibleSubmissions(BaseModel):
    """Benign "nothing to pick" outcome, not an error page."""

    message: str = "No submissions available to pick."
    submissions_count: int = 0


class RolloverRejected(BaseModel):
    reason: RolloverReason
    message: str

    @classmethod
    def of(cls, reason: RolloverReason) -> RolloverRejected:
        return cls(reason=reason, message=ROLLOVER_MESSAGES[reason])


class ResetRejected(BaseModel):
    message: str = "Only admins can reset member submissions."


class ReviewReason(StrEnum):
    MISSING_TITLE = "missing_title"
    MISSING_FIELDS = "missing_fields"
    INVALID_RATING = "invalid_rating"


REVIEW_MESSAGES: dict[ReviewReason, str] = {
    ReviewReason.MISSING_TITLE: "Missing title.",
    ReviewReason.MISSING_FIELDS: "Missing fields (title and review are required).",
    ReviewReason.INVALID_RATING: "Rating must be between {low} and {high}.",
}


class ReviewRejected(BaseModel):
    reason: ReviewReason
    message: str

    @classmethod
    def of(cls, reason: ReviewReason, **fmt: int) -> ReviewRejected:
        return cls(reason=reason, message=REVIEW_MESSAGES[reason].format(**fmt))
