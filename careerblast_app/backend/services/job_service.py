import logging
from typing import List

from sqlalchemy.orm import Session

from .. import schemas
from ..exceptions import PermissionDeniedError
from ..models.db.job import Job
from ..models.db.user import User, UserRole

logger = logging.getLogger(__name__)


def create_job(db: Session, employer: User, data: schemas.JobCreate) -> Job:
    """Post a job. Only approved employers may post; the API guards this too."""
    if not employer.has_role(UserRole.EMPLOYER) or not employer.is_approved:
        raise PermissionDeniedError(
            "Your recruiter account must be approved before you can post jobs",
            redirect_to="/recruiter/apply",
        )
    job = Job(
        employer_id=employer.id,
        title=data.title.strip(),
        company=employer.company_name or employer.full_name,
        location=data.location,
        job_type=data.job_type,
        description=data.description.strip(),
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info("Job %s posted by employer %s", job.id, employer.id)
    return job


def list_jobs(db: Session, skip: int = 0, limit: int = 100) -> List[Job]:
    return (
        db.query(Job)
        .filter(Job.is_active.is_(True))
        .order_by(Job.created_at.desc(), Job.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def list_jobs_for_employer(db: Session, employer_id: int) -> List[Job]:
    return db.query(Job).filter(Job.employer_id == employer_id).order_by(Job.created_at.desc()).all()
