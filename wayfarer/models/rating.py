"""
Wayfarer Backend - Rating SQLAlchemy Model
============================================

What:  ORM model for the `ratings` table.
How:   One row per (user, spot). The unique constraint backs the upsert in
       RatingService: a second submission updates the existing row.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from wayfarer.database import Base


class Rating(Base):
    __tablename__ = "ratings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    spot_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tourist_spots.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    score: Mapped[int] = mapped_column(Integer, nullable=False)
    summary_comment: Mapped[str] = mapped_column(String(500), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "spot_id", name="uq_ratings_user_spot"),
        CheckConstraint("score >= 1 AND score <= 5", name="ck_ratings_score"),
    )

    def __repr__(self) -> str:
        return f"<Rating(spot_id={self.spot_id}, user_id={self.user_id}, score={self.score})>"
