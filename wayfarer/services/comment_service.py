"""
Wayfarer Backend - Comment Service
====================================

What:  Comments and their replies, stored in the MongoDB `comments` collection.
How:   Each document is parsed into a CommentDocument on the way out of the
       store. Spot existence is checked against PostgreSQL on create; the two
       stores share no transaction, so a spot deleted later leaves its
       comments behind unless document cleanup is enabled.

Document shape:
    {
        "_id": ObjectId,
        "spotId": "<uuid>", "userId": "<uuid>",
        "text": "...",
        "metadata": {"device": "...", "language": "..."},
        "replies": [{"_id": ObjectId, "userId": "...", "text": "...", "createdAt": ...}],
        "createdAt": datetime, "updatedAt": datetime | absent
    }
"""

import logging
from datetime import datetime, timezone
from typing import List
from uuid import UUID

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.documents import DocumentStore, parse_object_id
from wayfarer.exceptions import DocumentStoreError, NotFoundError
from wayfarer.schemas.comment import CommentCreate, CommentDocument, CommentUpdate, ReplyCreate
from wayfarer.schemas.common import MessageResponse
from wayfarer.security import AuthenticatedUser, ensure_owner_or_admin
from wayfarer.services.spot_service import spot_service

logger = logging.getLogger(__name__)


class CommentService:

    async def _load(self, documents: DocumentStore, comment_id: ObjectId) -> CommentDocument:
        try:
            doc = await documents.comments.find_one({"_id": comment_id})
        except PyMongoError as e:
            logger.error("Document store error loading comment %s: %s", comment_id, str(e))
            raise DocumentStoreError(context={"comment_id": str(comment_id)})
        if doc is None:
            raise NotFoundError(resource="Comment", resource_id=str(comment_id))
        return CommentDocument.model_validate(doc)

    async def list_for_spot(self, documents: DocumentStore, spot_id: UUID) -> List[CommentDocument]:
        try:
            cursor = documents.comments.find({"spotId": str(spot_id)}).sort("createdAt", DESCENDING)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error("Document store error listing comments: %s", str(e))
            raise DocumentStoreError(message="Failed to fetch comments")
        return [CommentDocument.model_validate(doc) for doc in docs]

    async def create_comment(
        self,
        db: AsyncSession,
        documents: DocumentStore,
        spot_id: UUID,
        user: AuthenticatedUser,
        data: CommentCreate,
    ) -> CommentDocument:
        await spot_service.get_spot(db, spot_id)

        metadata = data.metadata.model_dump(exclude_none=True) if data.metadata else {}
        doc = {
            "spotId": str(spot_id),
            "userId": str(user.id),
            "text": data.text,
            "metadata": metadata,
            "replies": [],
            "createdAt": datetime.now(timezone.utc),
        }
        try:
            result = await documents.comments.insert_one(doc)
        except PyMongoError as e:
            logger.error("Document store error creating comment: %s", str(e))
            raise DocumentStoreError(message="Failed to create comment")

        doc["_id"] = result.inserted_id
        logger.info("Comment created: %s on spot %s", result.inserted_id, spot_id)
        return CommentDocument.model_validate(doc)

    async def update_comment(
        self,
        documents: DocumentStore,
        comment_id: str,
        user: AuthenticatedUser,
        data: CommentUpdate,
    ) -> CommentDocument:
        oid = parse_object_id(comment_id, "comment")
        comment = await self._load(documents, oid)
        ensure_owner_or_admin(user, comment.user_id, "Forbidden - You can only edit your own comments")

        try:
            doc = await documents.comments.find_one_and_update(
                {"_id": oid},
                {"$set": {"text": data.text, "updatedAt": datetime.now(timezone.utc)}},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error("Document store error updating comment %s: %s", comment_id, str(e))
            raise DocumentStoreError(message="Failed to update comment")
        if doc is None:
            raise NotFoundError(resource="Comment", resource_id=comment_id)
        return CommentDocument.model_validate(doc)

    async def delete_comment(
        self,
        documents: DocumentStore,
        comment_id: str,
        user: AuthenticatedUser,
    ) -> MessageResponse:
        oid = parse_object_id(comment_id, "comment")
        comment = await self._load(documents, oid)
        ensure_owner_or_admin(user, comment.user_id, "Forbidden - You can only delete your own comments")

        try:
            await documents.comments.delete_one({"_id": oid})
        except PyMongoError as e:
            logger.error("Document store error deleting comment %s: %s", comment_id, str(e))
            raise DocumentStoreError(message="Failed to delete comment")

        logger.info("Comment deleted: %s", comment_id)
        return MessageResponse(message="Comment deleted successfully")

    async def add_reply(
        self,
        documents: DocumentStore,
        comment_id: str,
        user: AuthenticatedUser,
        data: ReplyCreate,
    ) -> CommentDocument:
        """Append a reply; replies keep insertion order."""
        oid = parse_object_id(comment_id, "comment")
        reply = {
            "_id": ObjectId(),
            "userId": str(user.id),
            "text": data.text,
            "createdAt": datetime.now(timezone.utc),
        }
        try:
            doc = await documents.comments.find_one_and_update(
                {"_id": oid},
                {"$push": {"replies": reply}},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error("Document store error adding reply to %s: %s", comment_id, str(e))
            raise DocumentStoreError(message="Failed to add reply")
        if doc is None:
            raise NotFoundError(resource="Comment", resource_id=comment_id)
        return CommentDocument.model_validate(doc)

    async def purge_spot(self, documents: DocumentStore, spot_id: UUID) -> int:
        result = await documents.comments.delete_many({"spotId": str(spot_id)})
        return result.deleted_count


comment_service = CommentService()
