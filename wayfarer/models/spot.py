"""
Wayfarer Backend - Tourist Spot SQLAlchemy Model
==================================================

What:  ORM model representing the `tourist_spots` table.
Why:   Spots are the root entity: lodgings, ratings and favorites reference
       them with ON DELETE CASCADE, and comments/photos point at them by id
       from the document store.

Table Design Rationale:
    - lat/lng NUMERIC(9,6): ~10cm precision, exact round trips through export
    - average_rating NUMERIC(3,2): derived column, maintained only by the
      rating aggregator (RatingService.recompute_average). Never written by
      spot create/update.
    - created_by: owner for the edit/delete permission check

Index on created_at DESC:
    Default listing order is newest first.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from wayfarer.database import Base


class TouristSpot(Base):
    """
    Represents a point of interest.

    Invariant:
        average_rating == round(mean(ratings.score), 2), or 0 with no ratings.
    """

    __tablename__ = "tourist_spots"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(String(120), nullable=False)
    state: Mapped[str] = mapped_column(String(120), nullable=False)
    country: Mapped[str] = mapped_column(String(120), nullable=False)

    # ── Coordinates ───────────────────────────────────────────────────────
    lat: Mapped[Decimal] = mapped_column(Numeric(9, 6), nullable=False)
    lng: Mapped[Decimal] = mapped_column(Numeric(9, 6), nullable=False)

    address: Mapped[str] = mapped_column(String(255), nullable=False)

    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # ── Derived ───────────────────────────────────────────────────────────
    average_rating: Mapped[Decimal] = mapped_column(
        Numeric(3, 2),
        nullable=False,
        default=Decimal("0"),
        server_default=text("0"),
    )

    __table_args__ = (
        CheckConstraint("lat >= -90 AND lat <= 90", name="ck_tourist_spots_lat"),
        CheckConstraint("lng >= -180 AND lng <= 180", name="ck_tourist_spots_lng"),
        Index("idx_tourist_spots_created_at", created_at.desc()),
        Index("idx_tourist_spots_city", "city"),
    )

    def __repr__(self) -> str:
        return f"<TouristSpot(id={self.id}, name='{self.name}', city='{self.city}')>"
