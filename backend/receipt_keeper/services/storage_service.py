"""Storage service abstraction for uploaded receipt images.

Supports two backends selected via ``STORAGE_BACKEND``:

1. **minio** (default): Uses the MinIO S3-compatible object storage.
2. **filesystem**: Stores files under ``STORAGE_DIRECTORY`` on disk.

All saved objects return a *relative key* (``user_id/uuid_filename``)
that is persisted on the receipt row as its ``image_url``.  Retrieval
resolves the key according to the active backend.
"""

from __future__ import annotations

import logging
import uuid
from io import BytesIO
from pathlib import Path
from typing import Tuple

from fastapi import UploadFile
from minio import Minio
from minio.error import S3Error

from receipt_keeper.core.config import Settings, settings
from receipt_keeper.core.exceptions import StoreError, ValidationFailedError

logger = logging.getLogger(__name__)


class StorageService:
    """Unified storage service (MinIO or filesystem)."""

    def __init__(self, cfg: Settings = settings, base_dir: str | None = None) -> None:
        self.backend = cfg.STORAGE_BACKEND
        self.max_size = cfg.MAX_UPLOAD_SIZE
        self.allowed_extensions = {ext.lower() for ext in cfg.ALLOWED_EXTENSIONS}
        if self.backend == "minio":
            self._client = Minio(
                cfg.MINIO_ENDPOINT,
                access_key=cfg.MINIO_ACCESS_KEY,
                secret_key=cfg.MINIO_SECRET_KEY,
                secure=bool(cfg.MINIO_USE_SSL),
            )
            self.bucket = cfg.MINIO_BUCKET_NAME
            self._bucket_ready = False
        else:
            base_path = Path(base_dir or cfg.STORAGE_DIRECTORY)
            if not base_path.is_absolute():
                repo_root = Path(__file__).resolve().parents[3]
                base_path = (repo_root / base_path).resolve()
            self.base_dir = base_path.resolve()
            self.base_dir.mkdir(parents=True, exist_ok=True)
            logger.info("Filesystem storage at %s", self.base_dir)

    def _normalise_filename(self, filename: str) -> str:
        """Remove potentially dangerous characters and ensure a safe filename."""
        keepchars = {"-", "_", "."}
        safe = "".join(c for c in filename if c.isalnum() or c in keepchars)
        return safe.lstrip(".") or "receipt"

    def _ensure_bucket(self) -> None:
        if self._bucket_ready:
            return
        try:
            if not self._client.bucket_exists(self.bucket):
                self._client.make_bucket(self.bucket)
        except S3Error as e:
            raise StoreError(f"MinIO bucket ensure failed: {e}") from e
        self._bucket_ready = True

    def validate(self, filename: str, size: int) -> None:
        """Reject empty, oversize or unsupported uploads."""
        if size <= 0:
            raise ValidationFailedError("uploaded file is empty")
        if size > self.max_size:
            raise ValidationFailedError(f"uploaded file exceeds {self.max_size} bytes")
        suffix = Path(filename).suffix.lower()
        if suffix not in self.allowed_extensions:
            raise ValidationFailedError(f"unsupported file type: {suffix or filename!r}")

    async def save_upload(self, upload: UploadFile, user_id: int) -> Tuple[str, str, int]:
        """Persist an uploaded file and return ``(key, original_name, size)``."""
        original_name = upload.filename or "receipt"
        safe_name = self._normalise_filename(original_name)
        object_name = f"{user_id}/{uuid.uuid4().hex}_{safe_name}"  # user namespace

        await upload.seek(0)
        contents = await upload.read()
        self.validate(original_name, len(contents))
        size = len(contents)

        if self.backend == "minio":
            self._ensure_bucket()
            try:
                self._client.put_object(
                    self.bucket,
                    object_name,
                    BytesIO(contents),
                    size,
                    content_type=upload.content_type or "application/octet-stream",
                )
            except S3Error as e:
                raise StoreError(f"MinIO upload failed: {e}") from e
            logger.info("MinIO object put: %s size=%d", object_name, size)
            return object_name, original_name, size

        file_path = self.get_full_path(object_name)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            file_path.write_bytes(contents)
        except OSError as e:
            raise StoreError(f"failed to write {file_path}: {e}") from e
        logger.info("FS saved: %s bytes=%d", file_path, size)
        return object_name, original_name, size

    def get_full_path(self, relative_path: str) -> Path:
        """Resolve a stored file's full path (filesystem only)."""
        full_path = (self.base_dir / relative_path).resolve()
        if self.base_dir not in full_path.parents:
            raise ValidationFailedError(f"invalid storage key: {relative_path!r}")
        return full_path

    def delete(self, key: str) -> None:
        """Remove a stored object; missing objects are ignored."""
        if self.backend == "minio":
            try:
                self._client.remove_object(self.bucket, key)
            except S3Error as e:
                raise StoreError(f"MinIO delete failed: {e}") from e
            return
        self.get_full_path(key).unlink(missing_ok=True)
