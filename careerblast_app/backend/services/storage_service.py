"""
Object storage for uploaded files (avatars, company logos, recruiter documents).

Two backends share one interface: ``upload``, ``delete`` and ``presign``.
The local backend writes below ``settings.upload_directory`` and only
serves files back through signed, expiring download links. The S3 backend
uses boto3 with one bucket per file category.
"""
import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from jose import JWTError, jwt

from ..config.settings import Settings, get_settings
from ..exceptions import NotFoundError, PermissionDeniedError, StorageError, ValidationError

logger = logging.getLogger(__name__)

MB = 1024 * 1024


@dataclass(frozen=True)
class FileCategory:
    name: str
    allowed_types: Tuple[str, ...]
    allowed_extensions: Tuple[str, ...]
    max_size: int
    folder: str
    bucket_setting: str

    @property
    def label(self) -> str:
        return self.name.replace("_", " ")


FILE_CATEGORIES: Dict[str, FileCategory] = {
    "resume": FileCategory(
        name="resume",
        allowed_types=(
            "application/pdf",
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        ),
        allowed_extensions=(".pdf", ".doc", ".docx"),
        max_size=5 * MB,
        folder="resumes/",
        bucket_setting="s3_resumes_bucket",
    ),
    "profile_picture": FileCategory(
        name="profile_picture",
        allowed_types=("image/jpeg", "image/png", "image/jpg"),
        allowed_extensions=(".jpg", ".jpeg", ".png"),
        max_size=2 * MB,
        folder="profile-pictures/",
        bucket_setting="s3_profile_pictures_bucket",
    ),
    "company_logo": FileCategory(
        name="company_logo",
        allowed_types=("image/jpeg", "image/png", "image/jpg", "image/svg+xml"),
        allowed_extensions=(".jpg", ".jpeg", ".png", ".svg"),
        max_size=1 * MB,
        folder="company-logos/",
        bucket_setting="s3_company_logos_bucket",
    ),
    "document": FileCategory(
        name="document",
        allowed_types=("application/pdf", "image/jpeg", "image/png", "image/jpg"),
        allowed_extensions=(".pdf", ".jpg", ".jpeg", ".png"),
        max_size=10 * MB,
        folder="documents/",
        bucket_setting="s3_documents_bucket",
    ),
}


@dataclass(frozen=True)
class StoredObject:
    url: str
    key: str


def get_category(name: str) -> FileCategory:
    try:
        return FILE_CATEGORIES[name]
    except KeyError:
        raise ValidationError({"category": f"Unknown file category: {name}"})


def category_for_key(key: str) -> FileCategory:
    for category in FILE_CATEGORIES.values():
        if key.startswith(category.folder):
            return category
    raise NotFoundError(f"No file category owns key {key!r}")


def validate_upload(category: FileCategory, filename: str, content_type: Optional[str], size: int) -> None:
    """Client-side style checks applied before anything is written."""
    errors = {}
    extension = os.path.splitext(filename or "")[1].lower()
    if size <= 0:
        errors["file"] = "File is empty"
    elif size > category.max_size:
        errors["file"] = f"File too large. Maximum size for a {category.label} is {category.max_size // MB}MB"
    if content_type not in category.allowed_types or extension not in category.allowed_extensions:
        errors["content_type"] = (
            f"Invalid file type for a {category.label}. "
            f"Allowed: {', '.join(ext.lstrip('.').upper() for ext in category.allowed_extensions)}"
        )
    if errors:
        raise ValidationError(errors, message="Invalid upload")


def build_key(category: FileCategory, filename: str, owner_id: Optional[int] = None) -> str:
    extension = os.path.splitext(filename)[1].lower()
    owner = f"{owner_id}/" if owner_id is not None else ""
    return f"{category.folder}{owner}{uuid.uuid4().hex}{extension}"


class LocalStorageBackend:
    """Stores files on disk; download links are JWTs signed with the app secret."""

    name = "local"

    def __init__(self, root: str, public_base_url: str, secret_key: str, algorithm: str = "HS256",
                 presign_expire_seconds: int = 3600):
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.presign_expire_seconds = presign_expire_seconds

    def path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise PermissionDeniedError("Invalid storage key")
        return path

    def upload(self, data: bytes, filename: str, content_type: Optional[str], category: str,
               owner_id: Optional[int] = None) -> StoredObject:
        file_category = get_category(category)
        validate_upload(file_category, filename, content_type, len(data))
        key = build_key(file_category, filename, owner_id)
        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.error("Local upload failed for key %s: %s", key, e)
            raise StorageError("Failed to store file") from e
        logger.info("Stored %s (%d bytes) as %s", file_category.name, len(data), key)
        return StoredObject(url=self.presign(key), key=key)

    def delete(self, key: str) -> None:
        category_for_key(key)
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Local delete failed for key %s: %s", key, e)
            raise StorageError("Failed to delete file") from e

    def presign(self, key: str, expires_in: Optional[int] = None) -> str:
        category_for_key(key)
        expire = datetime.now(timezone.utc) + timedelta(seconds=expires_in or self.presign_expire_seconds)
        token = jwt.encode({"key": key, "purpose": "download", "exp": expire},
                           self._secret_key, algorithm=self._algorithm)
        return f"{self.public_base_url}/api/files/download?token={token}"

    def resolve_presigned(self, token: str) -> Path:
        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError:
            raise PermissionDeniedError("Download link is invalid or has expired")
        if claims.get("purpose") != "download" or not claims.get("key"):
            raise PermissionDeniedError("Download link is invalid or has expired")
        path = self.path_for(claims["key"])
        if not path.is_file():
            raise NotFoundError("File not found")
        return path


class S3StorageBackend:
    """S3-backed storage with one bucket per file category."""

    name = "s3"

    def __init__(self, client, settings: Settings):
        self.client = client
        self.settings = settings

    def bucket_for(self, category: FileCategory) -> str:
        return getattr(self.settings, category.bucket_setting)

    def _object_url(self, bucket: str, key: str) -> str:
        return f"https://{bucket}.s3.{self.settings.aws_region}.amazonaws.com/{key}"

    def upload(self, data: bytes, filename: str, content_type: Optional[str], category: str,
               owner_id: Optional[int] = None) -> StoredObject:
        file_category = get_category(category)
        validate_upload(file_category, filename, content_type, len(data))
        key = build_key(file_category, filename, owner_id)
        bucket = self.bucket_for(file_category)
        try:
            self.client.put_object(Bucket=bucket, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload error for %s/%s: %s", bucket, key, e)
            raise StorageError("Failed to upload file to S3") from e
        return StoredObject(url=self._object_url(bucket, key), key=key)

    def delete(self, key: str) -> None:
        bucket = self.bucket_for(category_for_key(key))
        try:
            self.client.delete_object(Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 delete error for %s/%s: %s", bucket, key, e)
            raise StorageError("Failed to delete file from S3") from e

    def presign(self, key: str, expires_in: Optional[int] = None) -> str:
        bucket = self.bucket_for(category_for_key(key))
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=expires_in or self.settings.presigned_url_expire_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 presigned URL error for %s/%s: %s", bucket, key, e)
            raise StorageError("Failed to generate presigned URL") from e

    def presign_upload(self, filename: str, content_type: str, category: str,
                       owner_id: Optional[int] = None) -> Tuple[str, str]:
        """Direct browser upload: returns (upload_url, key) for a PUT of ``content_type``."""
        file_category = get_category(category)
        if content_type not in file_category.allowed_types:
            raise ValidationError({"content_type": f"Invalid file type for a {file_category.label}"})
        key = build_key(file_category, filename, owner_id)
        try:
            upload_url = self.client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self.bucket_for(file_category), "Key": key, "ContentType": content_type},
                ExpiresIn=self.settings.presigned_upload_expire_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 presigned upload error for %s: %s", key, e)
            raise StorageError("Failed to generate upload URL") from e
        return upload_url, key


def create_storage(settings: Settings):
    if settings.storage_backend == "s3":
        client = boto3.client(
            "s3",
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
        )
        return S3StorageBackend(client, settings)
    return LocalStorageBackend(
        root=settings.upload_directory,
        public_base_url=settings.public_base_url,
        secret_key=settings.secret_key,
        algorithm=settings.algorithm,
        presign_expire_seconds=settings.presigned_url_expire_seconds,
    )


@lru_cache()
def get_storage():
    """FastAPI dependency returning the configured storage backend (cached)."""
    return create_storage(get_settings())


def discard_quietly(storage, key: Optional[str]) -> None:
    """Remove a file that is no longer referenced; failures leave an orphan and are logged."""
    if not key:
        return
    try:
        storage.delete(key)
    except (StorageError, NotFoundError) as e:
        logger.warning("Could not delete orphaned file %s: %s", key, e)
