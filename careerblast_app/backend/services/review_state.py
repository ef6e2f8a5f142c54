"""
Review state of a recruiter application as a tagged variant.

The ORM row keeps flat columns (status, reviewed_by, reviewed_at,
approval_notes, rejection_reason). ``state_of`` reads them into one of the
variants below and ``write_state`` projects a variant back, so the
notes/reason exclusivity and the set-once ``reviewed_at`` rule live here only.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from ..exceptions import ConflictError
from ..models.db.recruiter_application import ApplicationStatus, RecruiterApplication


@dataclass(frozen=True)
class Pending:
    status = ApplicationStatus.PENDING


@dataclass(frozen=True)
class UnderReview:
    reviewer_id: int
    status = ApplicationStatus.UNDER_REVIEW


@dataclass(frozen=True)
class Approved:
    reviewer_id: int
    reviewed_at: datetime
    notes: Optional[str] = None
    status = ApplicationStatus.APPROVED


@dataclass(frozen=True)
class Rejected:
    reviewer_id: int
    reviewed_at: datetime
    reason: str
    status = ApplicationStatus.REJECTED


ReviewState = Union[Pending, UnderReview, Approved, Rejected]


def state_of(application: RecruiterApplication) -> ReviewState:
    status = application.status
    if status == ApplicationStatus.PENDING.value:
        return Pending()
    if status == ApplicationStatus.UNDER_REVIEW.value:
        return UnderReview(reviewer_id=application.reviewed_by)
    if status == ApplicationStatus.APPROVED.value:
        return Approved(
            reviewer_id=application.reviewed_by,
            reviewed_at=application.reviewed_at,
            notes=application.approval_notes,
        )
    if status == ApplicationStatus.REJECTED.value:
        return Rejected(
            reviewer_id=application.reviewed_by,
            reviewed_at=application.reviewed_at,
            reason=application.rejection_reason,
        )
    raise ValueError(f"Unknown application status: {status!r}")


def is_terminal(state: ReviewState) -> bool:
    return isinstance(state, (Approved, Rejected))


def write_state(application: RecruiterApplication, state: ReviewState) -> None:
    """Project ``state`` onto the application's columns."""
    application.status = state.status.value

    if isinstance(state, Pending):
        application.reviewed_by = None
        application.approval_notes = None
        application.rejection_reason = None
    elif isinstance(state, UnderReview):
        application.reviewed_by = state.reviewer_id
        application.approval_notes = None
        application.rejection_reason = None
    elif isinstance(state, Approved):
        application.reviewed_by = state.reviewer_id
        if application.reviewed_at is None:
            application.reviewed_at = state.reviewed_at
        application.approval_notes = state.notes
        application.rejection_reason = None
    elif isinstance(state, Rejected):
        application.reviewed_by = state.reviewer_id
        if application.reviewed_at is None:
            application.reviewed_at = state.reviewed_at
        application.rejection_reason = state.reason
        application.approval_notes = None
    else:
        raise TypeError(f"Not a review state: {state!r}")


def transition(current: ReviewState, target: ReviewState) -> Optional[ReviewState]:
    """
    Decide whether ``current`` may move to ``target``.

    Returns the state to write, or None when ``target`` repeats the current
    state for the same reviewer (nothing to do). Raises ConflictError for any
    move the workflow does not allow.
    """
    if isinstance(target, UnderReview):
        if isinstance(current, Pending):
            return target
        if isinstance(current, UnderReview) and current.reviewer_id == target.reviewer_id:
            return None
        if isinstance(current, UnderReview):
            raise ConflictError("Application is already under review by another admin")
        raise ConflictError(f"Application is already {current.status.value}")

    if isinstance(target, (Approved, Rejected)):
        if isinstance(current, (Pending, UnderReview)):
            return target
        if _repeats(current, target):
            return None
        raise ConflictError(f"Application is already {current.status.value}")

    raise ConflictError("Applications cannot be moved back to pending")


def _repeats(current: ReviewState, target: ReviewState) -> bool:
    if type(current) is not type(target) or current.reviewer_id != target.reviewer_id:
        return False
    if isinstance(target, Approved):
        return current.notes == target.notes
    return current.reason == target.reason
