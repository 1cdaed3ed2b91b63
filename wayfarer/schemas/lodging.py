"""
Wayfarer Backend - Lodging Schemas
"""

import uuid
from typing import Literal, Optional

from pydantic import AnyHttpUrl, Field, TypeAdapter, field_validator

from wayfarer.schemas.common import CamelModel

LodgingType = Literal["Hotel", "Hostel", "Inn"]

_url_adapter = TypeAdapter(AnyHttpUrl)


def _normalize_booking_link(value: Optional[str]) -> Optional[str]:
    # Empty string means "no link"
    if value is None or value == "":
        return None
    _url_adapter.validate_python(value)
    return value


class LodgingCreate(CamelModel):
    spot_id: uuid.UUID
    name: str = Field(min_length=1, max_length=255)
    address: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=5, max_length=30)
    avg_price: float = Field(ge=0)
    type: LodgingType
    booking_link: Optional[str] = None

    @field_validator("booking_link")
    @classmethod
    def validate_booking_link(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_booking_link(v)


class LodgingUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    address: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, min_length=5, max_length=30)
    avg_price: Optional[float] = Field(default=None, ge=0)
    type: Optional[LodgingType] = None
    booking_link: Optional[str] = None

    @field_validator("booking_link")
    @classmethod
    def validate_booking_link(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_booking_link(v)


class LodgingResponse(CamelModel):
    id: uuid.UUID
    spot_id: uuid.UUID
    name: str
    address: str
    phone: str
    avg_price: float
    type: str
    booking_link: Optional[str] = None
