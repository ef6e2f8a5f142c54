from typing import Optional

from sqlalchemy.orm import Session

from . import user as model
from ...utils.clock import utcnow


def get_user_by_email(db: Session, email: str) -> Optional[model.User]:
    return db.query(model.User).filter(model.User.email == email.strip().lower()).first()


def get_user_by_id(db: Session, user_id: int) -> Optional[model.User]:
    return db.get(model.User, user_id)


def create_user(
    db: Session,
    *,
    email: str,
    hashed_password: str,
    first_name: str,
    last_name: str,
    role: str = model.UserRole.CANDIDATE.value,
    company_name: Optional[str] = None,
    job_title: Optional[str] = None,
    linkedin_profile: Optional[str] = None,
    commit: bool = True,
) -> model.User:
    now = utcnow()
    db_user = model.User(
        email=email.strip().lower(),
        hashed_password=hashed_password,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        role=role,
        company_name=company_name,
        job_title=job_title,
        linkedin_profile=linkedin_profile,
        approval_status=model.default_approval_status(role),
        approved_at=model.approved_at_for(role, now),
    )
    db.add(db_user)
    if commit:
        db.commit()
        db.refresh(db_user)
    else:
        db.flush()
    return db_user
