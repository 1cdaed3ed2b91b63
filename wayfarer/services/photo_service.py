"""
Wayfarer Backend - Photo Service
==================================

What:  Photo uploads for a spot: file on disk, metadata in MongoDB `photos`.
How:   FileService validates and writes the bytes; the metadata document is
       inserted afterwards. If the insert fails the file is removed again so
       disk and store do not drift. Deletes go the other way round: document
       first, then the file, so no document ever points at a missing file.

Limits:
    At most MAX_PHOTOS_PER_SPOT (default 10) photos per spot. The count is
    checked before the upload is written and again after the insert; an
    upload that finds the spot over the cap withdraws its own document and
    file. Concurrent uploads may both withdraw, but the cap is never exceeded.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from pymongo import DESCENDING
from pymongo.errors import PyMongoError
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.config import settings
from wayfarer.documents import DocumentStore, parse_object_id
from wayfarer.exceptions import DocumentStoreError, NotFoundError, ValidationError
from wayfarer.schemas.common import MessageResponse
from wayfarer.schemas.photo import PhotoDocument
from wayfarer.security import AuthenticatedUser, ensure_owner_or_admin
from wayfarer.services.file_service import FileService
from wayfarer.services.spot_service import spot_service

logger = logging.getLogger(__name__)


def _photo_limit_error(count: int) -> ValidationError:
    return ValidationError(
        message=f"Maximum {settings.max_photos_per_spot} photos per spot allowed",
        field="photo",
        context={"count": count},
    )


class PhotoService:

    async def list_for_spot(self, documents: DocumentStore, spot_id: UUID) -> List[PhotoDocument]:
        try:
            cursor = documents.photos.find({"spotId": str(spot_id)}).sort("createdAt", DESCENDING)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error("Document store error listing photos: %s", str(e))
            raise DocumentStoreError(message="Failed to fetch photos")
        return [PhotoDocument.model_validate(doc) for doc in docs]

    async def upload_photo(
        self,
        db: AsyncSession,
        documents: DocumentStore,
        files: FileService,
        spot_id: UUID,
        user: AuthenticatedUser,
        filename: str,
        content_type: Optional[str],
        content: bytes,
        title: Optional[str] = None,
    ) -> PhotoDocument:
        await spot_service.get_spot(db, spot_id)

        if title is not None:
            title = title.strip() or None
            if title and len(title) > 255:
                raise ValidationError(message="Title must be at most 255 characters", field="title")

        count = await self._count(documents, spot_id)
        if count >= settings.max_photos_per_spot:
            raise _photo_limit_error(count)

        disk_path, stored_name = await files.validate_and_store(filename, content_type, content)

        doc = {
            "spotId": str(spot_id),
            "userId": str(user.id),
            "filename": stored_name,
            "title": title,
            "diskPath": disk_path,
            "createdAt": datetime.now(timezone.utc),
        }
        try:
            result = await documents.photos.insert_one(doc)
        except PyMongoError as e:
            logger.error("Document store error saving photo metadata: %s", str(e))
            await files.cleanup_file(disk_path)
            raise DocumentStoreError(message="Failed to upload photo")

        doc["_id"] = result.inserted_id
        await self._enforce_limit_after_insert(documents, files, spot_id, doc)
        logger.info("Photo uploaded: %s for spot %s", stored_name, spot_id)
        return PhotoDocument.model_validate(doc)

    async def delete_photo(
        self,
        documents: DocumentStore,
        files: FileService,
        photo_id: str,
        user: AuthenticatedUser,
    ) -> MessageResponse:
        oid = parse_object_id(photo_id, "photo")
        try:
            doc = await documents.photos.find_one({"_id": oid})
        except PyMongoError as e:
            logger.error("Document store error loading photo %s: %s", photo_id, str(e))
            raise DocumentStoreError(message="Failed to delete photo")
        if doc is None:
            raise NotFoundError(resource="Photo", resource_id=photo_id)

        photo = PhotoDocument.model_validate(doc)
        ensure_owner_or_admin(user, photo.user_id, "Forbidden - You can only delete your own photos")

        try:
            await documents.photos.delete_one({"_id": oid})
        except PyMongoError as e:
            logger.error("Document store error deleting photo %s: %s", photo_id, str(e))
            raise DocumentStoreError(message="Failed to delete photo")
        await files.cleanup_file(photo.disk_path)

        logger.info("Photo deleted: %s", photo_id)
        return MessageResponse(message="Photo deleted successfully")

    async def purge_spot(self, documents: DocumentStore, files: FileService, spot_id: UUID) -> int:
        docs = await documents.photos.find({"spotId": str(spot_id)}).to_list(length=None)
        result = await documents.photos.delete_many({"spotId": str(spot_id)})
        for doc in docs:
            await files.cleanup_file(doc.get("diskPath", ""))
        return result.deleted_count

    async def _count(self, documents: DocumentStore, spot_id: UUID) -> int:
        try:
            return await documents.photos.count_documents({"spotId": str(spot_id)})
        except PyMongoError as e:
            logger.error("Document store error counting photos: %s", str(e))
            raise DocumentStoreError(message="Failed to upload photo")

    async def _enforce_limit_after_insert(
        self, documents: DocumentStore, files: FileService, spot_id: UUID, doc: dict
    ) -> None:
        try:
            count = await documents.photos.count_documents({"spotId": str(spot_id)})
            if count <= settings.max_photos_per_spot:
                return
            logger.warning("Spot %s went over the photo limit; withdrawing %s", spot_id, doc["filename"])
            await documents.photos.delete_one({"_id": doc["_id"]})
        except PyMongoError as e:
            logger.error("Document store error rechecking photo limit for spot %s: %s", spot_id, str(e))
            raise DocumentStoreError(message="Failed to upload photo")
        await files.cleanup_file(doc["diskPath"])
        raise _photo_limit_error(count)


photo_service = PhotoService()
