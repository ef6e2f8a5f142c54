from sqlalchemy import Boolean, Column, DateTime, Integer, String

from ...utils.clock import utcnow


class EmailVerificationMixin:
    """OTP state shared by users and recruiter applications (work e-mail)."""

    is_email_verified = Column(Boolean, default=False, nullable=False, index=True)
    email_verified_at = Column(DateTime, nullable=True)
    email_verification_code_hash = Column(String, nullable=True)
    email_verification_expires = Column(DateTime, nullable=True)
    email_verification_attempts = Column(Integer, default=0, nullable=False)


class TimestampMixin:
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
