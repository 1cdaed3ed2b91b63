"""
Wayfarer Backend - Favorite Schemas
"""

import uuid
from datetime import datetime

from wayfarer.schemas.common import CamelModel
from wayfarer.schemas.spot import SpotResponse


class FavoriteResponse(CamelModel):
    id: uuid.UUID
    spot_id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime


class FavoriteWithSpot(FavoriteResponse):
    spot: SpotResponse
