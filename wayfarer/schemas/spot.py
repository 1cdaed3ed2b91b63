"""
Wayfarer Backend - Tourist Spot Schemas
=========================================

What:  Request and response models for spots, listings, weather and directions.

Numeric columns are NUMERIC in the database and arrive as Decimal; response
models declare them as float so JSON always carries numbers. averageRating
is 0.0 (never null) for spots without ratings.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from wayfarer.schemas.common import CamelModel, PaginationMeta


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class SpotCreate(CamelModel):
    """
    Fields a client may set when creating a spot.

    Also the per-record schema for imports. Server-derived fields (id, owner,
    createdAt, averageRating) are deliberately absent.
    """
    name: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1, max_length=2000)
    city: str = Field(min_length=1, max_length=120)
    state: str = Field(min_length=1, max_length=120)
    country: str = Field(min_length=1, max_length=120)
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    address: str = Field(min_length=1, max_length=255)


class SpotUpdate(CamelModel):
    """Partial update: only the fields present in the body are changed."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1, max_length=2000)
    city: Optional[str] = Field(default=None, min_length=1, max_length=120)
    state: Optional[str] = Field(default=None, min_length=1, max_length=120)
    country: Optional[str] = Field(default=None, min_length=1, max_length=120)
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)
    address: Optional[str] = Field(default=None, min_length=1, max_length=255)


SortField = Literal["name", "rating", "createdAt"]
SortOrder = Literal["asc", "desc"]


class SpotFilters(CamelModel):
    """Query parameters of GET /spots, bundled for SpotService.list_spots."""
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    min_rating: Optional[float] = Field(default=None, ge=0, le=5)
    search: Optional[str] = None
    sort_by: SortField = "createdAt"
    sort_order: SortOrder = "desc"


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SpotResponse(CamelModel):
    id: uuid.UUID
    name: str
    description: str
    city: str
    state: str
    country: str
    lat: float
    lng: float
    address: str
    created_by: uuid.UUID
    created_at: datetime
    average_rating: float = 0.0


class WeatherInfo(CamelModel):
    temp: float
    condition: str
    icon: str
    city: Optional[str] = None


class SpotDetail(SpotResponse):
    """Single-spot read: the cached, weather-decorated representation."""
    weather: Optional[WeatherInfo] = None


class SpotListResponse(CamelModel):
    data: List[SpotResponse]
    pagination: PaginationMeta


class Coordinates(CamelModel):
    latitude: float
    longitude: float


class DirectionsResponse(CamelModel):
    spot_id: uuid.UUID
    name: str
    coordinates: Coordinates
    address: str
    city: str
    state: str
    country: str
    text_directions: List[str]
    google_maps_url: str
    apple_maps_url: str
