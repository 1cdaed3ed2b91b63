"""
Wayfarer Backend - Document Store Client
==========================================

What:  Owns the MongoDB client and exposes the `comments` and `photos`
       collections used by CommentService and PhotoService.
Why:   One object to build in the lifespan, hand out through a dependency,
       and close on shutdown.
How:   PyMongo's native asyncio client (AsyncMongoClient). The client
       connects lazily on first operation, so startup never blocks on Mongo.
"""

import logging
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, AsyncMongoClient
from pymongo.errors import PyMongoError

from wayfarer.config import settings
from wayfarer.exceptions import ValidationError

logger = logging.getLogger(__name__)

COMMENTS = "comments"
PHOTOS = "photos"


def parse_object_id(value: str, resource: str = "document") -> ObjectId:
    """Convert a path parameter to an ObjectId, or raise a 400."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ValidationError(
            message=f"Invalid {resource} ID",
            field="id",
            context={"value": value},
        )


class DocumentStore:
    def __init__(
        self,
        uri: Optional[str] = None,
        db_name: Optional[str] = None,
        client: Optional[Any] = None,
    ):
        # client override lets tests pass a mock
        self.client = client if client is not None else AsyncMongoClient(
            uri or settings.mongodb_uri,
            serverSelectionTimeoutMS=5000,
            tz_aware=True,
        )
        self.db = self.client[db_name or settings.mongodb_db_name]

    @property
    def comments(self):
        return self.db[COMMENTS]

    @property
    def photos(self):
        return self.db[PHOTOS]

    async def ensure_indexes(self) -> None:
        """Create the per-spot listing indexes. Failure is logged, not fatal."""
        try:
            await self.comments.create_index([("spotId", ASCENDING), ("createdAt", DESCENDING)])
            await self.photos.create_index([("spotId", ASCENDING), ("createdAt", DESCENDING)])
        except PyMongoError as e:
            logger.warning("Could not create document indexes: %s", str(e))

    async def ping(self) -> bool:
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning("Document store ping failed: %s", str(e))
            return False

    async def close(self) -> None:
        await self.client.close()
