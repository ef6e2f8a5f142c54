"""
Signed download links for the local storage backend and presigned S3 uploads.
"""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from .. import schemas
from ..exceptions import CareerBlastError
from ..models.db import user as user_model
from ..utils.api_helpers import handle_service_error
from ..services.storage_service import get_storage
from .auth import get_current_active_user

router = APIRouter()


@router.get("/download")
def download(token: str, storage=Depends(get_storage)):
    if not hasattr(storage, "resolve_presigned"):
        raise HTTPException(status_code=404, detail="Downloads are served by the storage provider")
    try:
        path = storage.resolve_presigned(token)
    except CareerBlastError as e:
        raise handle_service_error(e, "File download")
    return FileResponse(path)


@router.post("/presign-upload", response_model=schemas.PresignedUpload)
def presign_upload(
    request: schemas.PresignedUploadRequest,
    current_user: user_model.User = Depends(get_current_active_user),
    storage=Depends(get_storage),
):
    """Direct-to-bucket upload URL. Only available with S3 storage."""
    if not hasattr(storage, "presign_upload"):
        raise HTTPException(status_code=400, detail="Direct uploads require S3 storage")
    try:
        upload_url, key = storage.presign_upload(
            request.filename, request.content_type, request.category, owner_id=current_user.id
        )
    except CareerBlastError as e:
        raise handle_service_error(e, "File upload")
    return schemas.PresignedUpload(upload_url=upload_url, key=key)
