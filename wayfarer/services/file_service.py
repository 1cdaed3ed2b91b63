"""
Wayfarer Backend - File Storage Service
=========================================

What:  Validates, stores, resolves and removes uploaded photo files.
Why:   Centralizes all file system operations with security checks.
How:   Checks content type, extension and size, then writes the bytes with
       aiofiles under a UUID filename in the storage root.
Who:   Built once in the lifespan; used by PhotoService and the uploads route.

Security Model:
    1. Content-type check:  only image/jpeg, image/png, image/webp
    2. Extension check:     filename suffix must agree with an allowed type
    3. Size check:          rejects files above MAX_FILE_SIZE
    4. UUID filename:       no user input reaches the file system path
    5. Resolve check:       served paths must stay inside the storage root
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from wayfarer.config import settings
from wayfarer.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
ALLOWED_MIME_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}


class FileService:
    """
    Lifecycle of an uploaded photo:
        1. Route reads the multipart part → PhotoService.upload_photo()
        2. validate_and_store(): type, extension, size, then write
        3. PhotoService records the filename in MongoDB
        4. On a failed insert, or when the photo is deleted: cleanup_file()

    Directory Structure (flat, served at /uploads/<filename>):
        uploads/
        ├── 0b6f3c9e-....jpg
        └── 9d1e77a2-....webp
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def validate_content_type(self, content_type: Optional[str], filename: str) -> str:
        """
        Returns:
            The extension to store the file under (lowercase, with dot).

        Raises:
            ValidationError if the type is not an allowed image type.
        """
        mime = (content_type or "").split(";")[0].strip().lower()
        if mime not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message="Invalid file type. Only JPEG, PNG, and WebP are allowed.",
                field="photo",
                context={"content_type": mime, "allowed": sorted(ALLOWED_MIME_TYPES)},
            )

        ext = Path(filename or "").suffix.lower()
        if ext and ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File extension '{ext}' is not supported. "
                    f"Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="photo",
                context={"extension": ext},
            )
        return ALLOWED_MIME_TYPES[mime]

    def validate_size(self, actual_size: int) -> None:
        max_mb = settings.max_file_size / (1024 * 1024)
        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty.", field="photo")
        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="photo",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    async def store_file(self, content: bytes, extension: str) -> Tuple[str, str]:
        """
        Returns:
            (absolute_path, filename)

        Raises:
            FileStorageError if the write fails.
        """
        filename = f"{uuid.uuid4()}{extension}"
        absolute_path = self.storage_root / filename

        try:
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded photo. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", filename, len(content))
        return str(absolute_path), filename

    async def cleanup_file(self, file_path: str) -> None:
        """
        Best-effort removal. A missing file is fine; other errors are logged
        and never raised.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    def resolve(self, filename: str) -> Path:
        """
        Map a served filename back to disk.

        Raises:
            ValidationError for paths escaping the storage root,
            NotFoundError if nothing is stored there.
        """
        full_path = (self.storage_root / filename).resolve()
        if not full_path.is_relative_to(self.storage_root):
            raise ValidationError(message="Invalid file path")
        if not full_path.is_file():
            raise NotFoundError(resource="File", resource_id=filename)
        return full_path

    async def validate_and_store(
        self,
        filename: str,
        content_type: Optional[str],
        content: bytes,
    ) -> Tuple[str, str]:
        """
        Validation order: type (no I/O), size, then the write.

        Returns:
            (absolute_path, filename)
        """
        ext = self.validate_content_type(content_type, filename)
        self.validate_size(len(content))
        return await self.store_file(content, ext)
