from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import schemas
from ..exceptions import CareerBlastError
from ..models.db import user as user_model
from ..models.db.database import get_db
from ..services import job_service
from ..utils.api_helpers import handle_service_error
from .auth import get_current_active_user, require_approved_employer, require_employer

router = APIRouter()


@router.post("/", response_model=schemas.Job, status_code=status.HTTP_201_CREATED)
def post_job(
    job: schemas.JobCreate,
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(require_approved_employer),
):
    """
    Post a job. Employers awaiting approval get a 403 pointing them at /recruiter/apply.
    """
    try:
        return job_service.create_job(db, current_user, job)
    except CareerBlastError as e:
        raise handle_service_error(e, "Job posting")


@router.get("/", response_model=List[schemas.Job])
def read_jobs(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(get_current_active_user),
):
    return job_service.list_jobs(db, skip=skip, limit=limit)


@router.get("/mine", response_model=List[schemas.Job])
def read_my_jobs(
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(require_employer),
):
    return job_service.list_jobs_for_employer(db, current_user.id)
