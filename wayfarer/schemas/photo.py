"""
Wayfarer Backend - Photo Schemas

PhotoDocument is the typed record for documents in the `photos` collection.
The on-disk path stays server-side; clients get a URL under /uploads.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, computed_field

from wayfarer.schemas.common import CamelModel, ObjectIdStr


class PhotoDocument(CamelModel):
    id: ObjectIdStr = Field(alias="_id", serialization_alias="id")
    spot_id: str
    user_id: str
    filename: str
    title: Optional[str] = None
    disk_path: str = Field(default="", exclude=True)
    created_at: datetime

    @computed_field
    @property
    def url(self) -> str:
        return f"/uploads/{self.filename}"
