import enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from .database import Base
from .mixins import EmailVerificationMixin, TimestampMixin
from ...utils.clock import utcnow


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


TERMINAL_STATUSES = (ApplicationStatus.APPROVED.value, ApplicationStatus.REJECTED.value)

COMPANY_SIZES = ("1-10", "11-50", "51-200", "201-500", "501-1000", "1000+")

INDUSTRIES = (
    "technology",
    "finance",
    "healthcare",
    "education",
    "retail",
    "manufacturing",
    "consulting",
    "media",
    "real-estate",
    "automotive",
    "energy",
    "telecommunications",
    "aerospace",
    "agriculture",
    "construction",
    "government",
    "non-profit",
    "other",
)

HIRING_TIMEFRAMES = ("immediate", "1-3-months", "3-6-months", "6-12-months", "ongoing")

DOCUMENT_TYPES = ("business_license", "identity_proof", "company_registration")


class RecruiterApplication(EmailVerificationMixin, TimestampMixin, Base):
    __tablename__ = "recruiter_applications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True)

    # Company
    company_name = Column(String(200), nullable=False, index=True)
    company_website = Column(String, nullable=False)
    company_size = Column(String, nullable=False)
    industry = Column(String, nullable=False, index=True)
    company_description = Column(Text, nullable=False)
    company_logo_url = Column(String, nullable=True)
    company_logo_key = Column(String, nullable=True)

    # Applicant
    job_title = Column(String(200), nullable=False)
    work_email = Column(String, nullable=False)
    phone_number = Column(String, nullable=False)
    linkedin_profile = Column(String, nullable=False)

    # Hiring needs
    hiring_needs = Column(Text, nullable=False)
    expected_hiring_volume = Column(Integer, nullable=True)
    hiring_timeframe = Column(String, nullable=True)

    # {document_type: {"url", "key", "file_name", "uploaded_at"}}
    documents = Column(JSON, nullable=False, default=dict)

    # Review
    status = Column(String, nullable=False, default=ApplicationStatus.PENDING.value, index=True)
    submitted_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    approval_notes = Column(Text, nullable=True)

    # Internal tracking
    internal_notes = Column(Text, nullable=True)
    priority = Column(String, nullable=False, default=Priority.MEDIUM.value, index=True)
    tags = Column(JSON, nullable=False, default=list)
    follow_up_required = Column(Boolean, nullable=False, default=False, index=True)
    follow_up_date = Column(DateTime, nullable=True)
    follow_up_notes = Column(Text, nullable=True)

    # Optimistic lock: concurrent reviewers on a stale copy fail at flush
    version_id = Column(Integer, nullable=False)

    user = relationship("User", back_populates="recruiter_application", foreign_keys=[user_id])
    reviewer = relationship("User", foreign_keys=[reviewed_by])

    __mapper_args__ = {"version_id_col": version_id}

    __table_args__ = (
        Index("ix_recruiter_applications_status_submitted", "status", "submitted_at"),
        Index("ix_recruiter_applications_reviewer", "reviewed_by", "reviewed_at"),
        Index("ix_recruiter_applications_follow_up", "follow_up_required", "follow_up_date"),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self) -> str:
        return f"<RecruiterApplication id={self.id} user_id={self.user_id} status={self.status}>"
