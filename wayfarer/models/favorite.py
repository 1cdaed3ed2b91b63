"""
Wayfarer Backend - Favorite SQLAlchemy Model
==============================================

What:  ORM model for the `favorites` table: a user's bookmarked spots.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wayfarer.database import Base
from wayfarer.models.spot import TouristSpot


class Favorite(Base):
    __tablename__ = "favorites"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    spot_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tourist_spots.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # Many-to-one only; listing favorites loads it with selectinload
    spot: Mapped[TouristSpot] = relationship(lazy="raise")

    __table_args__ = (
        UniqueConstraint("user_id", "spot_id", name="uq_favorites_user_spot"),
    )

    def __repr__(self) -> str:
        return f"<Favorite(user_id={self.user_id}, spot_id={self.spot_id})>"
