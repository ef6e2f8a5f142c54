import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship

from .database import Base
from .mixins import EmailVerificationMixin, TimestampMixin


class UserRole(str, enum.Enum):
    CANDIDATE = "candidate"
    EMPLOYER = "employer"
    ADMIN = "admin"


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class User(EmailVerificationMixin, TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.CANDIDATE.value, index=True)
    avatar_url = Column(String, nullable=True)
    avatar_key = Column(String, nullable=True)

    # Employer-only profile
    linkedin_profile = Column(String, nullable=True)
    company_name = Column(String, nullable=True)
    job_title = Column(String, nullable=True)

    # Approval mirror, written only by the recruiter approval workflow
    approval_status = Column(String, nullable=False, default=ApprovalStatus.PENDING.value, index=True)
    approved_at = Column(DateTime, nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    password_reset_token_hash = Column(String, nullable=True)
    password_reset_expires = Column(DateTime, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    login_attempts = Column(Integer, default=0, nullable=False)
    lock_until = Column(DateTime, nullable=True)

    recruiter_application = relationship(
        "RecruiterApplication",
        back_populates="user",
        uselist=False,
        foreign_keys="RecruiterApplication.user_id",
    )

    @hybrid_property
    def is_approved(self):
        return self.approval_status == ApprovalStatus.APPROVED.value

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def is_locked(self, now: datetime) -> bool:
        return self.lock_until is not None and self.lock_until > now

    def has_role(self, role: UserRole) -> bool:
        return self.role == role.value

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"


def default_approval_status(role: str) -> str:
    """Candidates and admins are implicitly approved; employers wait for review."""
    if role == UserRole.EMPLOYER.value:
        return ApprovalStatus.PENDING.value
    return ApprovalStatus.APPROVED.value


def approved_at_for(role: str, now: datetime) -> Optional[datetime]:
    return None if role == UserRole.EMPLOYER.value else now
