"""
Wayfarer Backend - Comment Schemas
====================================

What:  Request models and the typed record for comment documents.
Why:   MongoDB hands back loosely-shaped dicts. CommentDocument is the single
       place those dicts are parsed, so malformed documents fail loudly at the
       store boundary instead of deep inside a route.
How:   Stored documents use camelCase keys (spotId, createdAt) which are
       exactly the aliases CamelModel generates, so model_validate(doc) works
       directly. The Mongo `_id` maps onto `id` and is exposed as a hex string.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from wayfarer.schemas.common import CamelModel, ObjectIdStr


class CommentMetadata(CamelModel):
    device: Optional[str] = Field(default=None, min_length=1, max_length=100)
    language: Optional[str] = Field(default=None, min_length=2, max_length=10)


class CommentCreate(CamelModel):
    text: str = Field(min_length=1, max_length=500)
    metadata: Optional[CommentMetadata] = None


class CommentUpdate(CamelModel):
    text: str = Field(min_length=1, max_length=500)


class ReplyCreate(CamelModel):
    text: str = Field(min_length=1, max_length=500)


class ReplyDocument(CamelModel):
    id: ObjectIdStr = Field(alias="_id", serialization_alias="id")
    user_id: str
    text: str
    created_at: datetime


class CommentDocument(CamelModel):
    id: ObjectIdStr = Field(alias="_id", serialization_alias="id")
    spot_id: str
    user_id: str
    text: str
    metadata: CommentMetadata = Field(default_factory=CommentMetadata)
    replies: List[ReplyDocument] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None
