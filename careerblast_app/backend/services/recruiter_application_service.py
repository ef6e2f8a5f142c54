"""
Recruiter application lifecycle: submission, review transitions and reporting.

Approve and reject update the application and its user's approval mirror in a
single transaction. The application row is version-checked, so two admins
acting on the same stale copy cannot both succeed.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.exc import StaleDataError

from .. import schemas
from ..exceptions import (
    ApprovalSyncError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ..models.db.recruiter_application import (
    COMPANY_SIZES,
    DOCUMENT_TYPES,
    HIRING_TIMEFRAMES,
    INDUSTRIES,
    ApplicationStatus,
    RecruiterApplication,
)
from ..models.db.user import ApprovalStatus, User, UserRole
from ..utils import validators
from ..utils.clock import utcnow
from . import email_service, review_metrics
from .review_state import (
    Approved,
    Rejected,
    ReviewState,
    UnderReview,
    is_terminal,
    state_of,
    transition,
    write_state,
)
from .storage_service import discard_quietly

logger = logging.getLogger(__name__)

MAX_REVIEW_TEXT_LENGTH = 1000

REQUIRED_TEXT_FIELDS = {
    "company_name": "Company name",
    "company_website": "Company website",
    "company_description": "Company description",
    "job_title": "Job title",
    "work_email": "Work email",
    "phone_number": "Phone number",
    "linkedin_profile": "LinkedIn profile",
    "hiring_needs": "Hiring needs",
}

MAX_LENGTHS = {
    "company_name": (200, "Company name"),
    "job_title": (200, "Job title"),
    "company_description": (2000, "Company description"),
    "hiring_needs": (2000, "Hiring needs"),
}


# =============================================================================
# QUERIES
# =============================================================================

def get_application(db: Session, application_id: int) -> RecruiterApplication:
    application = (
        db.query(RecruiterApplication)
        .options(joinedload(RecruiterApplication.user))
        .filter(RecruiterApplication.id == application_id)
        .first()
    )
    if application is None:
        raise NotFoundError("Recruiter application not found")
    return application


def get_application_for_user(db: Session, user_id: int) -> Optional[RecruiterApplication]:
    return db.query(RecruiterApplication).filter(RecruiterApplication.user_id == user_id).first()


def list_applications(
    db: Session, status: str = "all", skip: int = 0, limit: int = 100
) -> Tuple[int, List[RecruiterApplication]]:
    """
    Applications for the admin review queue.

    The pending queue is served oldest first so nobody waits indefinitely;
    every other view is newest first.
    """
    query = db.query(RecruiterApplication).options(joinedload(RecruiterApplication.user))
    if status != "all":
        query = query.filter(RecruiterApplication.status == status)

    total = query.count()
    if status == ApplicationStatus.PENDING.value:
        query = query.order_by(RecruiterApplication.submitted_at.asc())
    else:
        query = query.order_by(RecruiterApplication.submitted_at.desc())
    return total, query.offset(skip).limit(limit).all()


def list_follow_ups(db: Session, now: Optional[datetime] = None) -> List[RecruiterApplication]:
    now = now or utcnow()
    return (
        db.query(RecruiterApplication)
        .options(joinedload(RecruiterApplication.user))
        .filter(
            RecruiterApplication.follow_up_required.is_(True),
            RecruiterApplication.follow_up_date.isnot(None),
            RecruiterApplication.follow_up_date <= now,
        )
        .order_by(RecruiterApplication.follow_up_date.asc())
        .all()
    )


def compute_stats(db: Session) -> schemas.RecruiterStats:
    counts: Dict[str, int] = dict(
        db.query(RecruiterApplication.status, func.count(RecruiterApplication.id))
        .group_by(RecruiterApplication.status)
        .all()
    )
    reviewed = (
        db.query(RecruiterApplication.submitted_at, RecruiterApplication.reviewed_at)
        .filter(RecruiterApplication.reviewed_at.isnot(None))
        .all()
    )
    return schemas.RecruiterStats(
        total_applications=sum(counts.values()),
        pending_review=counts.get(ApplicationStatus.PENDING.value, 0),
        under_review=counts.get(ApplicationStatus.UNDER_REVIEW.value, 0),
        approved=counts.get(ApplicationStatus.APPROVED.value, 0),
        rejected=counts.get(ApplicationStatus.REJECTED.value, 0),
        average_review_time_hours=review_metrics.average_review_time_hours(reviewed),
    )


# =============================================================================
# SUBMISSION
# =============================================================================

def validate_submission(data: schemas.RecruiterApplicationCreate) -> Dict[str, str]:
    """Collect every field problem at once; an empty dict means the payload is acceptable."""
    errors: Dict[str, str] = {}

    for field, label in REQUIRED_TEXT_FIELDS.items():
        error = validators.check_required(getattr(data, field), label)
        if error:
            errors[field] = error

    for field, (limit, label) in MAX_LENGTHS.items():
        error = validators.check_max_length(getattr(data, field), limit, label)
        if error and field not in errors:
            errors[field] = error

    shape_checks = {
        "work_email": validators.check_email,
        "linkedin_profile": validators.check_linkedin_profile,
        "company_website": validators.check_website,
    }
    for field, check in shape_checks.items():
        if field not in errors:
            error = check(getattr(data, field))
            if error:
                errors[field] = error

    error = validators.check_choice(data.company_size, COMPANY_SIZES, "Company size")
    if error:
        errors["company_size"] = error
    error = validators.check_choice(data.industry, INDUSTRIES, "Industry")
    if error:
        errors["industry"] = error
    if data.hiring_timeframe is not None:
        error = validators.check_choice(data.hiring_timeframe, HIRING_TIMEFRAMES, "Hiring timeframe")
        if error:
            errors["hiring_timeframe"] = error
    if data.expected_hiring_volume is not None and not 1 <= data.expected_hiring_volume <= 1000:
        errors["expected_hiring_volume"] = "Expected hiring volume must be between 1 and 1000"

    return errors


def submit_application(
    db: Session, user: User, data: schemas.RecruiterApplicationCreate, now: Optional[datetime] = None
) -> RecruiterApplication:
    if not user.has_role(UserRole.EMPLOYER):
        raise PermissionDeniedError("Only employer accounts can apply for recruiter access")

    errors = validate_submission(data)
    if errors:
        raise ValidationError(errors)

    if get_application_for_user(db, user.id) is not None:
        raise ConflictError("A recruiter application has already been submitted for this account")

    now = now or utcnow()
    payload = data.model_dump()
    for field in REQUIRED_TEXT_FIELDS:
        payload[field] = payload[field].strip()
    payload["work_email"] = payload["work_email"].lower()

    application = RecruiterApplication(
        **payload,
        user_id=user.id,
        status=ApplicationStatus.PENDING.value,
        submitted_at=now,
        documents={},
        tags=[],
    )
    db.add(application)

    # Keep the employer profile in step with what they told us
    user.company_name = application.company_name
    user.job_title = application.job_title
    user.linkedin_profile = application.linkedin_profile

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("Duplicate recruiter application for user %s: %s", user.id, e.orig)
        raise ConflictError("A recruiter application has already been submitted for this account")
    db.refresh(application)
    logger.info("Recruiter application %s submitted by user %s", application.id, user.id)
    return application


# =============================================================================
# REVIEW TRANSITIONS
# =============================================================================

def _require_reviewer(reviewer: User) -> None:
    if not reviewer.has_role(UserRole.ADMIN):
        raise PermissionDeniedError("Only admins can review recruiter applications")


def _mirror_onto_user(user: User, state: ReviewState, now: datetime) -> None:
    """Copy the review outcome onto the user's approval fields."""
    if isinstance(state, Approved):
        user.approval_status = ApprovalStatus.APPROVED.value
        user.approved_at = state.reviewed_at or now
        user.approved_by = state.reviewer_id
        user.rejection_reason = None
    elif isinstance(state, Rejected):
        user.approval_status = ApprovalStatus.REJECTED.value
        user.approved_at = None
        user.approved_by = state.reviewer_id
        user.rejection_reason = state.reason
    else:
        user.approval_status = ApprovalStatus.PENDING.value
        user.approved_at = None
        user.approved_by = None
        user.rejection_reason = None


def _apply_transition(db: Session, application: RecruiterApplication, target: ReviewState,
                      now: datetime) -> bool:
    """Write ``target`` (and the user mirror for terminal states). Returns False when nothing changed."""
    new_state = transition(state_of(application), target)
    if new_state is None:
        return False

    application_id, user_id = application.id, application.user_id
    write_state(application, new_state)
    if is_terminal(new_state):
        # Project again from the row so the mirror carries the set-once reviewed_at
        _mirror_onto_user(application.user, state_of(application), now)

    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning("Application %s changed while being reviewed; rejecting stale write", application_id)
        raise ConflictError("Application was updated by another reviewer. Reload and try again.")
    except SQLAlchemyError as e:
        db.rollback()
        if is_terminal(new_state):
            logger.error(
                "Approval sync failed for application %s / user %s (%s): %s. Needs reconciliation.",
                application_id, user_id, new_state.status.value, e,
            )
            raise ApprovalSyncError(application_id) from e
        raise
    db.refresh(application)
    return True


def set_under_review(db: Session, application_id: int, reviewer: User) -> RecruiterApplication:
    _require_reviewer(reviewer)
    application = get_application(db, application_id)
    if _apply_transition(db, application, UnderReview(reviewer_id=reviewer.id), utcnow()):
        logger.info("Application %s is under review by admin %s", application_id, reviewer.id)
    return application


def approve_application(
    db: Session, application_id: int, reviewer: User, notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> RecruiterApplication:
    _require_reviewer(reviewer)
    if notes is not None:
        notes = notes.strip() or None
        error = validators.check_max_length(notes, MAX_REVIEW_TEXT_LENGTH, "Approval notes")
        if error:
            raise ValidationError({"notes": error})

    now = now or utcnow()
    application = get_application(db, application_id)
    target = Approved(reviewer_id=reviewer.id, reviewed_at=now, notes=notes)
    if _apply_transition(db, application, target, now):
        logger.info("Application %s approved by admin %s", application_id, reviewer.id)
        _notify_decision(application, approved=True, message=notes)
    return application


def reject_application(
    db: Session, application_id: int, reviewer: User, reason: Optional[str],
    now: Optional[datetime] = None,
) -> RecruiterApplication:
    _require_reviewer(reviewer)
    reason = (reason or "").strip()
    error = validators.check_required(reason, "Rejection reason") or validators.check_max_length(
        reason, MAX_REVIEW_TEXT_LENGTH, "Rejection reason"
    )
    if error:
        raise ValidationError({"reason": error})

    now = now or utcnow()
    application = get_application(db, application_id)
    target = Rejected(reviewer_id=reviewer.id, reviewed_at=now, reason=reason)
    if _apply_transition(db, application, target, now):
        logger.info("Application %s rejected by admin %s", application_id, reviewer.id)
        _notify_decision(application, approved=False, message=reason)
    return application


def _notify_decision(application: RecruiterApplication, approved: bool, message: Optional[str]) -> None:
    user = application.user
    if not email_service.send_application_decision(user.email, user.first_name, approved, message):
        logger.warning("Decision email for application %s was not delivered", application.id)


# =============================================================================
# ADMIN TRACKING & RECONCILIATION
# =============================================================================

def _normalize_tags(tags: List[str]) -> List[str]:
    seen = []
    for tag in tags:
        tag = tag.strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def update_tracking(
    db: Session, application_id: int, update: schemas.ApplicationTrackingUpdate
) -> RecruiterApplication:
    """Internal notes, priority, tags and follow-up; never touches review status."""
    application = get_application(db, application_id)
    changes = update.model_dump(exclude_unset=True)

    if "tags" in changes:
        changes["tags"] = _normalize_tags(changes["tags"] or [])
    follow_up_required = changes.get("follow_up_required")
    if follow_up_required is None:
        follow_up_required = application.follow_up_required
    follow_up_date = changes.get("follow_up_date", application.follow_up_date)
    if follow_up_required and follow_up_date is None:
        raise ValidationError({"follow_up_date": "A follow-up date is required when follow-up is enabled"})

    for key, value in changes.items():
        if key in ("priority", "follow_up_required") and value is None:
            continue
        setattr(application, key, value)

    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        raise ConflictError("Application was updated by another reviewer. Reload and try again.")
    db.refresh(application)
    return application


def _mirror_is_consistent(application: RecruiterApplication, user: User) -> bool:
    state = state_of(application)
    if isinstance(state, Approved):
        return user.approval_status == ApprovalStatus.APPROVED.value
    if isinstance(state, Rejected):
        return (user.approval_status == ApprovalStatus.REJECTED.value
                and user.rejection_reason == state.reason)
    return user.approval_status == ApprovalStatus.PENDING.value


def reconcile_user_approvals(db: Session, now: Optional[datetime] = None) -> schemas.ReconciliationResult:
    """
    Rewrite each employer's approval mirror from its application.

    Compensating action for approve/reject writes that did not land on the user
    (failed commits, manual edits, imports).
    """
    now = now or utcnow()
    applications = db.query(RecruiterApplication).options(joinedload(RecruiterApplication.user)).all()
    repaired = []
    for application in applications:
        user = application.user
        if user is None or _mirror_is_consistent(application, user):
            continue
        logger.warning(
            "Reconciling user %s: approval_status=%s but application %s is %s",
            user.id, user.approval_status, application.id, application.status,
        )
        _mirror_onto_user(user, state_of(application), now)
        repaired.append(user.id)

    if repaired:
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.error("Reconciliation commit failed for users %s", repaired)
            raise
    return schemas.ReconciliationResult(checked=len(applications), repaired=len(repaired),
                                        repaired_user_ids=repaired)


# =============================================================================
# DOCUMENTS
# =============================================================================

def _ensure_editable(application: RecruiterApplication) -> None:
    if application.is_terminal:
        raise ConflictError(f"Application is already {application.status}; documents can no longer be changed")


def upload_document(
    db: Session, application: RecruiterApplication, document_type: str, data: bytes,
    filename: str, content_type: Optional[str], storage, now: Optional[datetime] = None,
) -> RecruiterApplication:
    _ensure_editable(application)
    if document_type != "company_logo" and document_type not in DOCUMENT_TYPES:
        raise ValidationError({"document_type": f"Unknown document type: {document_type}"})

    now = now or utcnow()
    if document_type == "company_logo":
        stored = storage.upload(data, filename, content_type, "company_logo", owner_id=application.user_id)
        old_key = application.company_logo_key
        application.company_logo_url = stored.url
        application.company_logo_key = stored.key
    else:
        stored = storage.upload(data, filename, content_type, "document", owner_id=application.user_id)
        documents = dict(application.documents or {})
        old_key = (documents.get(document_type) or {}).get("key")
        documents[document_type] = {
            "url": stored.url,
            "key": stored.key,
            "file_name": filename,
            "uploaded_at": now.isoformat(),
        }
        application.documents = documents

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        discard_quietly(storage, stored.key)
        raise
    discard_quietly(storage, old_key)
    db.refresh(application)
    logger.info("Stored %s for application %s", document_type, application.id)
    return application


def remove_document(
    db: Session, application: RecruiterApplication, document_type: str, storage
) -> RecruiterApplication:
    _ensure_editable(application)
    if document_type == "company_logo":
        old_key = application.company_logo_key
        if old_key is None:
            raise NotFoundError("No company logo uploaded")
        application.company_logo_url = None
        application.company_logo_key = None
    else:
        documents = dict(application.documents or {})
        if document_type not in documents:
            raise NotFoundError(f"No {document_type.replace('_', ' ')} uploaded")
        old_key = documents.pop(document_type).get("key")
        application.documents = documents

    db.commit()
    discard_quietly(storage, old_key)
    db.refresh(application)
    return application


def document_link(application: RecruiterApplication, document_type: str, storage) -> schemas.StoredFile:
    """Fresh signed download link for an uploaded document or the company logo."""
    if document_type == "company_logo":
        key = application.company_logo_key
    else:
        key = ((application.documents or {}).get(document_type) or {}).get("key")
    if not key:
        raise NotFoundError(f"No {document_type.replace('_', ' ')} uploaded")
    return schemas.StoredFile(url=storage.presign(key), key=key)
