import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import schemas
from ..exceptions import CareerBlastError
from ..models.db import user as user_model
from ..models.db.database import get_db
from ..services.storage_service import discard_quietly, get_storage
from ..utils.api_helpers import handle_service_error
from .auth import get_current_active_user

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/avatar", response_model=schemas.StoredFile)
def upload_avatar(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(get_current_active_user),
    storage=Depends(get_storage),
):
    """Upload or replace the profile picture (JPG/PNG, at most 2 MB)."""
    try:
        stored = storage.upload(
            file.file.read(), file.filename or "avatar", file.content_type,
            "profile_picture", owner_id=current_user.id,
        )
    except CareerBlastError as e:
        raise handle_service_error(e, "Avatar storage")

    old_key = current_user.avatar_key
    current_user.avatar_url = stored.url
    current_user.avatar_key = stored.key
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        discard_quietly(storage, stored.key)
        raise
    discard_quietly(storage, old_key)
    return schemas.StoredFile(url=stored.url, key=stored.key)


@router.delete("/avatar", status_code=status.HTTP_204_NO_CONTENT)
def delete_avatar(
    db: Session = Depends(get_db),
    current_user: user_model.User = Depends(get_current_active_user),
    storage=Depends(get_storage),
):
    if not current_user.avatar_key:
        raise HTTPException(status_code=404, detail="No avatar uploaded")
    old_key = current_user.avatar_key
    current_user.avatar_url = None
    current_user.avatar_key = None
    db.commit()
    discard_quietly(storage, old_key)


@router.get("/avatar", response_model=schemas.AvatarInfo)
def read_avatar(
    current_user: user_model.User = Depends(get_current_active_user),
    storage=Depends(get_storage),
):
    """Current avatar with a short-lived download link."""
    if not current_user.avatar_key:
        return schemas.AvatarInfo()
    try:
        presigned_url = storage.presign(current_user.avatar_key)
    except CareerBlastError as e:
        raise handle_service_error(e, "Avatar storage")
    return schemas.AvatarInfo(avatar_url=current_user.avatar_url, presigned_url=presigned_url)
