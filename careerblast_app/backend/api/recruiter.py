"""
Recruiter application endpoints for the signed-in employer.
"""
import logging

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session

from .. import schemas
from ..exceptions import CareerBlastError
from ..models.db import user as user_model
from ..models.db.database import get_db
from ..models.db.recruiter_application import RecruiterApplication
from ..services import otp_service
from ..services import recruiter_application_service as application_service
from ..services.storage_service import get_storage
from ..utils.api_helpers import check_resource_exists, handle_service_error
from .auth import require_employer

logger = logging.getLogger(__name__)
router = APIRouter()


def _own_application(db: Session, user: user_model.User) -> RecruiterApplication:
    application = application_service.get_application_for_user(db, user.id)
    check_resource_exists(application, "Recruiter application")
    return application


@router.post("/application", response_model=schemas.RecruiterApplication, status_code=status.HTTP_201_CREATED)
def submit_application(
    data: schemas.RecruiterApplicationCreate,
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(require_employer),
):
    """
    Submit the recruiter application. One per account; it starts pending.
    """
    try:
        return application_service.submit_application(db, current_user, data)
    except CareerBlastError as e:
        raise handle_service_error(e, "Recruiter application")


@router.get("/application", response_model=schemas.RecruiterApplication)
def read_application(
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(require_employer),
):
    return _own_application(db, current_user)


@router.post("/application/documents/{document_type}", response_model=schemas.RecruiterApplication)
def upload_document(
    document_type: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(require_employer),
    storage=Depends(get_storage),
):
    """Upload or replace a verification document or the company logo."""
    application = _own_application(db, current_user)
    data = file.file.read()
    try:
        return application_service.upload_document(
            db, application, document_type, data, file.filename or document_type,
            file.content_type, storage,
        )
    except CareerBlastError as e:
        raise handle_service_error(e, "Document storage")


@router.get("/application/documents/{document_type}", response_model=schemas.StoredFile)
def read_document_link(
    document_type: str,
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(require_employer),
    storage=Depends(get_storage),
):
    application = _own_application(db, current_user)
    try:
        return application_service.document_link(application, document_type, storage)
    except CareerBlastError as e:
        raise handle_service_error(e, "Document storage")


@router.delete("/application/documents/{document_type}", response_model=schemas.RecruiterApplication)
def delete_document(
    document_type: str,
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(require_employer),
    storage=Depends(get_storage),
):
    application = _own_application(db, current_user)
    try:
        return application_service.remove_document(db, application, document_type, storage)
    except CareerBlastError as e:
        raise handle_service_error(e, "Document storage")


@router.post("/application/verify-email/send", response_model=schemas.OTPSentResponse)
def send_work_email_code(
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(require_employer),
):
    """Send a verification code to the work e-mail given on the application."""
    application = _own_application(db, current_user)
    try:
        expires_at = otp_service.issue_code(db, application, application.work_email)
    except CareerBlastError as e:
        raise handle_service_error(e, "Email verification")
    return schemas.OTPSentResponse(expires_at=expires_at)


@router.post("/application/verify-email/confirm", response_model=schemas.OTPVerifyResponse)
def confirm_work_email(
    request: schemas.OTPCodeRequest,
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(require_employer),
):
    application = _own_application(db, current_user)
    try:
        verified = otp_service.verify_code(db, application, request.otp)
    except CareerBlastError as e:
        raise handle_service_error(e, "Email verification")
    return schemas.OTPVerifyResponse(
        success=verified,
        is_email_verified=application.is_email_verified,
        attempts_remaining=otp_service.attempts_remaining(application),
    )
