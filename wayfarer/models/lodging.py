"""
Wayfarer Backend - Lodging SQLAlchemy Model
=============================================

What:  ORM model for the `lodgings` table: places to stay near a spot.
"""

import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from wayfarer.database import Base

LODGING_TYPES = ("Hotel", "Hostel", "Inn")


class Lodging(Base):
    __tablename__ = "lodgings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    spot_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tourist_spots.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    avg_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    booking_link: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint("avg_price >= 0", name="ck_lodgings_avg_price"),
        CheckConstraint("type IN ('Hotel', 'Hostel', 'Inn')", name="ck_lodgings_type"),
    )

    def __repr__(self) -> str:
        return f"<Lodging(id={self.id}, name='{self.name}', type='{self.type}')>"
