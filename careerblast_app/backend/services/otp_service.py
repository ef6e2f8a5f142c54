"""
E-mail verification with one-time numeric codes.

Works on any record carrying the ``EmailVerificationMixin`` columns: users
verify their login e-mail, recruiter applications verify the work e-mail.
Codes are stored hashed, expire after ``otp_expire_minutes`` and lock after
``otp_max_attempts`` wrong guesses until a new code is sent.
"""
import logging
import math
import time
from datetime import datetime, timedelta
from typing import Optional

from cachetools import TTLCache
from sqlalchemy.orm import Session

from ..config.settings import get_settings
from ..exceptions import DeliveryError, OTPExpiredError, OTPLockedError, RateLimitedError
from ..security import generate_numeric_code, hash_token, token_matches
from ..utils.clock import utcnow
from . import email_service

logger = logging.getLogger(__name__)
settings = get_settings()

# (record table, record id, email) -> monotonic time of the last code sent
resend_guard = TTLCache(maxsize=10000, ttl=settings.otp_resend_interval_seconds)


def guard_key(target, email: str) -> tuple:
    return (target.__tablename__, target.id, email)


def _check_resend_allowed(key: tuple) -> None:
    sent_at = resend_guard.get(key)
    if sent_at is None:
        return
    wait = math.ceil(settings.otp_resend_interval_seconds - (time.monotonic() - sent_at))
    raise RateLimitedError(
        f"Please wait {max(wait, 1)} seconds before requesting another code",
        retry_after=max(wait, 1),
    )


def issue_code(db: Session, target, email: str, now: Optional[datetime] = None) -> datetime:
    """
    Generate, store and send a fresh code for ``target``. Returns its expiry.

    Any previous code is replaced and the attempt counter reset.
    """
    email = email.strip().lower()
    key = guard_key(target, email)
    _check_resend_allowed(key)

    now = now or utcnow()
    code = generate_numeric_code(settings.otp_length)
    expires_at = now + timedelta(minutes=settings.otp_expire_minutes)
    target.email_verification_code_hash = hash_token(code)
    target.email_verification_expires = expires_at
    target.email_verification_attempts = 0
    db.commit()

    if not email_service.send_verification_code(email, code, settings.otp_expire_minutes):
        raise DeliveryError("Failed to send verification code. Please try again later.")

    resend_guard[key] = time.monotonic()
    logger.info("Verification code sent to %s (expires %s)", email, expires_at.isoformat())
    return expires_at


def attempts_remaining(target) -> int:
    return max(0, settings.otp_max_attempts - (target.email_verification_attempts or 0))


def verify_code(db: Session, target, code: str, now: Optional[datetime] = None) -> bool:
    """
    Check ``code`` against the stored hash.

    Returns True once verified (also for an already verified record) and False
    for a wrong code. Raises OTPExpiredError when no live code exists and
    OTPLockedError once the attempt budget is spent.
    """
    if target.is_email_verified:
        return True

    now = now or utcnow()
    if not target.email_verification_code_hash or target.email_verification_expires is None:
        raise OTPExpiredError("No verification code has been sent. Please request one.")
    if attempts_remaining(target) == 0:
        raise OTPLockedError()
    if now > target.email_verification_expires:
        raise OTPExpiredError()

    if token_matches((code or "").strip(), target.email_verification_code_hash):
        target.is_email_verified = True
        target.email_verified_at = now
        target.email_verification_code_hash = None
        target.email_verification_expires = None
        target.email_verification_attempts = 0
        db.commit()
        return True

    target.email_verification_attempts = (target.email_verification_attempts or 0) + 1
    db.commit()
    logger.info("Wrong verification code; %d attempts remaining", attempts_remaining(target))
    return False
