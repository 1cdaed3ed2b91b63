"""
Wayfarer Backend - Rating Schemas
"""

import uuid
from datetime import datetime

from pydantic import Field

from wayfarer.schemas.common import CamelModel


class RatingCreate(CamelModel):
    score: int = Field(ge=1, le=5)
    summary_comment: str = Field(min_length=1, max_length=500)


class RatingResponse(CamelModel):
    id: uuid.UUID
    spot_id: uuid.UUID
    user_id: uuid.UUID
    score: int
    summary_comment: str
    created_at: datetime
