"""
services/file_store.py

Excuse attachments in a MinIO (S3 compatible) bucket.
validate_upload() runs before any network call; FileStore.upload() returns the public URL.
"""

import io
import logging
import uuid
from typing import Optional

from minio import Minio
from minio.error import S3Error

from config.settings import settings
from services.exceptions import FileStoreError, FileTooLarge, UnsupportedFileType

logger = logging.getLogger(__name__)

EXTENSIONS = {"image/jpeg": "jpg", "image/png": "png", "application/pdf": "pdf"}


def validate_upload(content_type: Optional[str], size: int) -> None:
    if content_type not in settings.ALLOWED_UPLOAD_TYPES:
        raise UnsupportedFileType("نوع الملف غير مدعوم. يسمح فقط بالصور (JPG, PNG) وملفات PDF")
    if size > settings.MAX_UPLOAD_MB * 1024 * 1024:
        raise FileTooLarge(f"حجم الملف كبير جداً. الحد الأقصى {settings.MAX_UPLOAD_MB} ميجابايت")


class FileStore:
    def __init__(self, client: Optional[Minio] = None, bucket: Optional[str] = None):
        self.bucket = bucket or settings.MINIO_BUCKET
        self.client = client or Minio(
            settings.MINIO_ENDPOINT,
            access_key=settings.MINIO_ACCESS_KEY,
            secret_key=settings.MINIO_SECRET_KEY,
            secure=settings.MINIO_SECURE,
        )
        self._bucket_checked = False

    def _ensure_bucket(self) -> None:
        if self._bucket_checked:
            return
        if not self.client.bucket_exists(self.bucket):
            self.client.make_bucket(self.bucket)
        self._bucket_checked = True

    def public_url(self, object_name: str) -> str:
        if settings.MINIO_PUBLIC_URL:
            return f"{settings.MINIO_PUBLIC_URL.rstrip('/')}/{object_name}"
        scheme = "https" if settings.MINIO_SECURE else "http"
        return f"{scheme}://{settings.MINIO_ENDPOINT}/{self.bucket}/{object_name}"

    def upload(self, school_id: int, filename: str, content_type: str, data: bytes) -> str:
        validate_upload(content_type, len(data))
        ext = EXTENSIONS.get(content_type) or filename.rsplit(".", 1)[-1]
        object_name = f"{school_id}/{uuid.uuid4().hex}.{ext}"
        try:
            self._ensure_bucket()
            self.client.put_object(
                self.bucket, object_name, io.BytesIO(data), length=len(data), content_type=content_type
            )
        except S3Error as e:
            logger.error("attachment upload failed (%s): %s", object_name, e)
            raise FileStoreError("تعذر رفع المرفق، حاول مرة أخرى") from e
        logger.info("attachment stored: %s (%d bytes)", object_name, len(data))
        return self.public_url(object_name)


_store: Optional[FileStore] = None


def get_file_store() -> FileStore:
    """FastAPI dependency; overridden in tests."""
    global _store
    if _store is None:
        _store = FileStore()
    return _store
