from datetime import datetime
from typing import Optional, Dict, List, Literal

from pydantic import BaseModel, Field, computed_field

from .services import review_metrics
from .utils.clock import utcnow

ApplicationStatusName = Literal["pending", "under_review", "approved", "rejected"]
ApplicationStatusFilter = Literal["all", "pending", "under_review", "approved", "rejected"]
PriorityName = Literal["low", "medium", "high"]


# Token Schemas
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    email: Optional[str] = None


# User Schemas
class UserBase(BaseModel):
    email: str


class UserSignup(UserBase):
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    role: Literal["candidate", "employer"] = "candidate"
    company_name: Optional[str] = None
    job_title: Optional[str] = None
    linkedin_profile: Optional[str] = None


class User(UserBase):
    id: int
    first_name: str
    last_name: str
    role: str
    is_active: bool
    is_email_verified: bool
    is_approved: bool
    approval_status: str
    approved_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    rejection_reason: Optional[str] = None
    company_name: Optional[str] = None
    job_title: Optional[str] = None
    linkedin_profile: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    linkedin_profile: Optional[str] = None
    is_email_verified: bool
    email_verified_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Onboarding(BaseModel):
    state: Literal["complete", "pending_approval", "rejected"]
    redirect_to: str
    next_steps: List[str] = []
    features: List[str] = []


class AuthResponse(Token):
    user: User
    onboarding: Onboarding


# Email verification Schemas
class OTPRequest(BaseModel):
    email: str


class OTPVerifyRequest(BaseModel):
    email: str
    otp: str


class OTPCodeRequest(BaseModel):
    otp: str


class OTPSentResponse(BaseModel):
    success: bool = True
    expires_at: datetime


class OTPVerifyResponse(BaseModel):
    success: bool
    is_email_verified: bool
    attempts_remaining: int


class VerificationStatus(BaseModel):
    email: str
    is_email_verified: bool
    email_verified_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    attempts_remaining: int


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    email: str
    token: str
    new_password: str = Field(..., min_length=8)


# Recruiter Application Schemas
class StoredDocument(BaseModel):
    url: str
    key: str
    file_name: str
    uploaded_at: datetime


class RecruiterApplicationCreate(BaseModel):
    company_name: str
    company_website: str
    company_size: str
    industry: str
    company_description: str
    job_title: str
    work_email: str
    phone_number: str
    linkedin_profile: str
    hiring_needs: str
    expected_hiring_volume: Optional[int] = None
    hiring_timeframe: Optional[str] = None


class RecruiterApplication(BaseModel):
    id: int
    user_id: int
    company_name: str
    company_website: str
    company_size: str
    industry: str
    company_description: str
    company_logo_url: Optional[str] = None
    job_title: str
    work_email: str
    phone_number: str
    linkedin_profile: str
    hiring_needs: str
    expected_hiring_volume: Optional[int] = None
    hiring_timeframe: Optional[str] = None
    documents: Dict[str, StoredDocument] = {}
    status: ApplicationStatusName
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    approval_notes: Optional[str] = None
    is_email_verified: bool

    class Config:
        from_attributes = True

    @computed_field
    @property
    def application_age_in_days(self) -> int:
        return review_metrics.application_age_in_days(self.submitted_at, utcnow())

    @computed_field
    @property
    def review_time_in_hours(self) -> Optional[float]:
        return review_metrics.review_time_in_hours(self.submitted_at, self.reviewed_at)


class AdminRecruiterApplication(RecruiterApplication):
    user: UserSummary
    reviewed_by: Optional[int] = None
    internal_notes: Optional[str] = None
    priority: PriorityName
    tags: List[str] = []
    follow_up_required: bool
    follow_up_date: Optional[datetime] = None
    follow_up_notes: Optional[str] = None


class RecruiterApplicationList(BaseModel):
    total: int
    applications: List[AdminRecruiterApplication]


class ApproveRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)


class RejectRequest(BaseModel):
    reason: str = ""


class ApplicationTrackingUpdate(BaseModel):
    internal_notes: Optional[str] = Field(None, max_length=2000)
    priority: Optional[PriorityName] = None
    tags: Optional[List[str]] = None
    follow_up_required: Optional[bool] = None
    follow_up_date: Optional[datetime] = None
    follow_up_notes: Optional[str] = None


class RecruiterStats(BaseModel):
    total_applications: int
    pending_review: int
    under_review: int
    approved: int
    rejected: int
    average_review_time_hours: Optional[float] = None


class ReconciliationResult(BaseModel):
    checked: int
    repaired: int
    repaired_user_ids: List[int] = []


# Job Schemas
class JobCreate(BaseModel):
    title: str = Field(..., min_length=1)
    location: Optional[str] = None
    job_type: Literal["full-time", "part-time", "contract", "internship", "remote"] = "full-time"
    description: str = Field(..., min_length=1)


class Job(BaseModel):
    id: int
    employer_id: int
    title: str
    company: str
    location: Optional[str] = None
    job_type: str
    description: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


# File Schemas
class StoredFile(BaseModel):
    url: str
    key: str


class AvatarInfo(BaseModel):
    avatar_url: Optional[str] = None
    presigned_url: Optional[str] = None


class PresignedUploadRequest(BaseModel):
    filename: str
    content_type: str
    category: Literal["resume", "profile_picture", "company_logo", "document"]


class PresignedUpload(BaseModel):
    upload_url: str
    key: str
