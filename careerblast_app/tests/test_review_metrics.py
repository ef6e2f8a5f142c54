"""
Test the reporting values shown on the review surface.
"""
from datetime import datetime, timedelta

from careerblast_app.backend.services import review_metrics
from careerblast_app.backend.services.review_state import (
    Approved,
    Pending,
    Rejected,
    UnderReview,
    transition,
)

import pytest

from careerblast_app.backend.exceptions import ConflictError

SUBMITTED = datetime(2024, 3, 1, 9, 0, 0)


class TestReviewMetrics:

    def test_average_review_time(self):
        pairs = [
            (SUBMITTED, SUBMITTED + timedelta(hours=2)),
            (SUBMITTED, SUBMITTED + timedelta(hours=10)),
            (SUBMITTED, None),
        ]
        assert review_metrics.average_review_time(pairs) == timedelta(hours=6)
        assert review_metrics.average_review_time_hours(pairs) == 6.0

    def test_average_without_reviews(self):
        assert review_metrics.average_review_time([(SUBMITTED, None)]) is None
        assert review_metrics.average_review_time_hours([]) is None

    @pytest.mark.parametrize("elapsed, days", [
        (timedelta(hours=1), 1),
        (timedelta(hours=24), 1),
        (timedelta(hours=25), 2),
        (timedelta(days=7), 7),
        (timedelta(0), 0),
    ])
    def test_application_age_rounds_up(self, elapsed, days):
        assert review_metrics.application_age_in_days(SUBMITTED, SUBMITTED + elapsed) == days

    def test_age_ignores_clock_skew_direction(self):
        assert review_metrics.application_age_in_days(SUBMITTED, SUBMITTED - timedelta(hours=5)) == 1

    def test_review_time_in_hours(self):
        assert review_metrics.review_time_in_hours(SUBMITTED, SUBMITTED + timedelta(minutes=95)) == 1.6
        assert review_metrics.review_time_in_hours(SUBMITTED, None) is None


class TestReviewTransitions:
    """The allowed moves between review states."""

    def test_pending_moves_anywhere_forward(self):
        assert transition(Pending(), UnderReview(reviewer_id=1)) == UnderReview(reviewer_id=1)
        approved = Approved(reviewer_id=1, reviewed_at=SUBMITTED)
        assert transition(Pending(), approved) == approved

    def test_under_review_can_be_decided_by_anyone(self):
        rejected = Rejected(reviewer_id=2, reviewed_at=SUBMITTED, reason="spam")
        assert transition(UnderReview(reviewer_id=1), rejected) == rejected

    def test_identical_decision_is_noop(self):
        current = Approved(reviewer_id=1, reviewed_at=SUBMITTED, notes="ok")
        again = Approved(reviewer_id=1, reviewed_at=SUBMITTED + timedelta(hours=1), notes="ok")
        assert transition(current, again) is None

    @pytest.mark.parametrize("target", [
        Approved(reviewer_id=2, reviewed_at=SUBMITTED, notes="ok"),
        Approved(reviewer_id=1, reviewed_at=SUBMITTED, notes="other"),
        Rejected(reviewer_id=1, reviewed_at=SUBMITTED, reason="ok"),
        UnderReview(reviewer_id=1),
        Pending(),
    ])
    def test_terminal_state_is_final(self, target):
        with pytest.raises(ConflictError):
            transition(Approved(reviewer_id=1, reviewed_at=SUBMITTED, notes="ok"), target)
