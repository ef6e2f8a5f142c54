"""
Admin review of recruiter applications.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import schemas
from ..exceptions import CareerBlastError
from ..models.db import user as user_model
from ..models.db.database import get_db
from ..services import recruiter_application_service as application_service
from ..services.storage_service import get_storage
from ..utils.api_helpers import handle_service_error
from .auth import require_admin

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/recruiters", response_model=schemas.RecruiterApplicationList)
def list_recruiter_applications(
    status: schemas.ApplicationStatusFilter = "all",
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    admin: user_model.User = Depends(require_admin),
):
    """
    Review queue. Pending applications come oldest first, everything else newest first.
    """
    total, applications = application_service.list_applications(db, status=status, skip=skip, limit=limit)
    return {"total": total, "applications": applications}


@router.get("/recruiters/stats", response_model=schemas.RecruiterStats)
def recruiter_stats(db: Session = Depends(get_db), admin: user_model.User = Depends(require_admin)):
    return application_service.compute_stats(db)


@router.get("/recruiters/follow-ups", response_model=List[schemas.AdminRecruiterApplication])
def due_follow_ups(db: Session = Depends(get_db), admin: user_model.User = Depends(require_admin)):
    return application_service.list_follow_ups(db)


@router.post("/recruiters/reconcile", response_model=schemas.ReconciliationResult)
def reconcile(db: Session = Depends(get_db), admin: user_model.User = Depends(require_admin)):
    """Repair employer approval flags that disagree with their reviewed application."""
    result = application_service.reconcile_user_approvals(db)
    logger.info("Admin %s ran reconciliation: %d repaired", admin.id, result.repaired)
    return result


@router.get("/recruiters/{application_id}", response_model=schemas.AdminRecruiterApplication)
def read_recruiter_application(
    application_id: int,
    db: Session = Depends(get_db),
    admin: user_model.User = Depends(require_admin),
):
    try:
        return application_service.get_application(db, application_id)
    except CareerBlastError as e:
        raise handle_service_error(e, "Recruiter review")


@router.get("/recruiters/{application_id}/documents/{document_type}", response_model=schemas.StoredFile)
def read_document_link(
    application_id: int,
    document_type: str,
    db: Session = Depends(get_db),
    admin: user_model.User = Depends(require_admin),
    storage=Depends(get_storage),
):
    """Short-lived download link for a document the applicant uploaded."""
    try:
        application = application_service.get_application(db, application_id)
        return application_service.document_link(application, document_type, storage)
    except CareerBlastError as e:
        raise handle_service_error(e, "Recruiter review")


@router.post("/recruiters/{application_id}/under-review", response_model=schemas.AdminRecruiterApplication)
def mark_under_review(
    application_id: int,
    db: Session = Depends(get_db),
    admin: user_model.User = Depends(require_admin),
):
    try:
        return application_service.set_under_review(db, application_id, admin)
    except CareerBlastError as e:
        raise handle_service_error(e, "Recruiter review")


@router.post("/recruiters/{application_id}/approve", response_model=schemas.AdminRecruiterApplication)
def approve(
    application_id: int,
    request: Optional[schemas.ApproveRequest] = None,
    db: Session = Depends(get_db),
    admin: user_model.User = Depends(require_admin),
):
    notes = request.notes if request else None
    try:
        return application_service.approve_application(db, application_id, admin, notes=notes)
    except CareerBlastError as e:
        raise handle_service_error(e, "Recruiter review")


@router.post("/recruiters/{application_id}/reject", response_model=schemas.AdminRecruiterApplication)
def reject(
    application_id: int,
    request: schemas.RejectRequest,
    db: Session = Depends(get_db),
    admin: user_model.User = Depends(require_admin),
):
    try:
        return application_service.reject_application(db, application_id, admin, reason=request.reason)
    except CareerBlastError as e:
        raise handle_service_error(e, "Recruiter review")


@router.patch("/recruiters/{application_id}", response_model=schemas.AdminRecruiterApplication)
def update_tracking(
    application_id: int,
    update: schemas.ApplicationTrackingUpdate,
    db: Session = Depends(get_db),
    admin: user_model.User = Depends(require_admin),
):
    """Internal notes, priority, tags and follow-up. Review status is not editable here."""
    try:
        return application_service.update_tracking(db, application_id, update)
    except CareerBlastError as e:
        raise handle_service_error(e, "Recruiter review")
