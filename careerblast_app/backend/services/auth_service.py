"""
Account creation, password login with lock-out, password reset, and the
post-signup onboarding state.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy.orm import Session

from .. import schemas
from ..config.settings import get_settings
from ..exceptions import (
    AccountLockedError,
    ConflictError,
    InvalidCredentialsError,
    ValidationError,
)
from ..models.db import crud
from ..models.db.user import ApprovalStatus, User, UserRole
from ..security import get_password_hash, hash_token, token_matches, verify_password
from ..utils import validators
from ..utils.clock import utcnow

logger = logging.getLogger(__name__)
settings = get_settings()

EMPLOYER_FEATURES = ["post_job", "pricing", "team", "review_applicants"]

PENDING_APPROVAL_STEPS = [
    "Verify your company email address with the code we sent you",
    "Submit your recruiter application with your company details",
    "Our team reviews applications, usually within 24-48 hours",
    "You will receive an email once approved; posting jobs unlocks then",
]


def validate_signup(data: schemas.UserSignup) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    error = validators.check_email(data.email)
    if error:
        errors["email"] = error

    if data.role == UserRole.EMPLOYER.value:
        for field, label in (("company_name", "Company name"), ("job_title", "Job title"),
                             ("linkedin_profile", "LinkedIn profile")):
            if validators.check_required(getattr(data, field), label):
                errors[field] = f"{label} is required for employers"
        if "linkedin_profile" not in errors:
            error = validators.check_linkedin_profile(data.linkedin_profile)
            if error:
                errors["linkedin_profile"] = error
        if "email" not in errors:
            error = validators.check_company_email(data.email)
            if error:
                errors["email"] = error
    return errors


def register_user(db: Session, data: schemas.UserSignup) -> User:
    errors = validate_signup(data)
    if errors:
        raise ValidationError(errors)
    if crud.get_user_by_email(db, data.email):
        raise ConflictError("Email already registered")

    is_employer = data.role == UserRole.EMPLOYER.value
    user = crud.create_user(
        db,
        email=data.email,
        hashed_password=get_password_hash(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        role=data.role,
        company_name=data.company_name.strip() if is_employer else None,
        job_title=data.job_title.strip() if is_employer else None,
        linkedin_profile=data.linkedin_profile.strip() if is_employer else None,
    )
    logger.info("Registered %s account %s", user.role, user.id)
    return user


def authenticate(db: Session, email: str, password: str, now: Optional[datetime] = None) -> User:
    """
    Verify credentials, counting failures.

    After ``max_login_attempts`` consecutive failures the account is locked for
    ``account_lock_minutes``; an expired lock resets the counter.
    """
    now = now or utcnow()
    user = crud.get_user_by_email(db, email)
    if user is None:
        raise InvalidCredentialsError()

    if user.is_locked(now):
        raise AccountLockedError(user.lock_until)
    if user.lock_until is not None:
        user.lock_until = None
        user.login_attempts = 0

    if not verify_password(password, user.hashed_password):
        user.login_attempts = (user.login_attempts or 0) + 1
        if user.login_attempts >= settings.max_login_attempts:
            user.lock_until = now + timedelta(minutes=settings.account_lock_minutes)
            logger.warning("Locking account %s after %d failed logins", user.id, user.login_attempts)
        db.commit()
        raise InvalidCredentialsError()

    user.login_attempts = 0
    user.lock_until = None
    user.last_login_at = now
    db.commit()
    db.refresh(user)
    return user


def onboarding_for(user: User) -> schemas.Onboarding:
    """Where a freshly signed-up (or logged-in) user lands and what they may use."""
    if user.role == UserRole.ADMIN.value:
        return schemas.Onboarding(state="complete", redirect_to="/admin/recruiters",
                                  features=["review_recruiters"])
    if user.role == UserRole.CANDIDATE.value:
        return schemas.Onboarding(state="complete", redirect_to="/jobs",
                                  features=["browse_jobs", "apply"])
    if user.is_approved:
        return schemas.Onboarding(state="complete", redirect_to="/employer/dashboard",
                                  features=list(EMPLOYER_FEATURES))
    if user.approval_status == ApprovalStatus.REJECTED.value:
        return schemas.Onboarding(
            state="rejected",
            redirect_to="/recruiter/apply",
            next_steps=[f"Your application was not approved: {user.rejection_reason}",
                        "Contact support if you believe this is a mistake"],
        )
    return schemas.Onboarding(state="pending_approval", redirect_to="/recruiter/apply",
                              next_steps=list(PENDING_APPROVAL_STEPS))


def start_password_reset(db: Session, email: str, now: Optional[datetime] = None) -> Optional[str]:
    """Store a hashed reset token and return the raw one, or None for unknown e-mails."""
    user = crud.get_user_by_email(db, email)
    if user is None:
        return None
    now = now or utcnow()
    token = secrets.token_urlsafe(32)
    user.password_reset_token_hash = hash_token(token)
    user.password_reset_expires = now + timedelta(minutes=settings.password_reset_expire_minutes)
    db.commit()
    return token


def reset_password(db: Session, email: str, token: str, new_password: str,
                   now: Optional[datetime] = None) -> User:
    now = now or utcnow()
    user = crud.get_user_by_email(db, email)
    if user is None or not token_matches(token, user.password_reset_token_hash):
        raise ValidationError({"token": "Invalid or expired reset token."})
    if user.password_reset_expires is None or now > user.password_reset_expires:
        raise ValidationError({"token": "Reset token has expired. Please request a new one."})

    user.hashed_password = get_password_hash(new_password)
    user.password_reset_token_hash = None
    user.password_reset_expires = None
    user.login_attempts = 0
    user.lock_until = None
    db.commit()
    return user


def ensure_admin_user(db: Session, email: str, password: str) -> User:
    """Create the bootstrap admin if missing; admins cannot sign up through the API."""
    user = crud.get_user_by_email(db, email)
    if user is not None:
        if user.role != UserRole.ADMIN.value:
            logger.error("Bootstrap admin email %s belongs to a %s account", email, user.role)
        return user
    user = crud.create_user(
        db,
        email=email,
        hashed_password=get_password_hash(password),
        first_name="CareerBlast",
        last_name="Admin",
        role=UserRole.ADMIN.value,
    )
    user.is_email_verified = True
    user.email_verified_at = utcnow()
    db.commit()
    logger.info("Created bootstrap admin account %s", email)
    return user
