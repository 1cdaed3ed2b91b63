"""Initial schema: users, tourist spots, lodgings, ratings, favorites

Revision ID: 001
Revises: None
Create Date: 2026-10-17 00:00:00.000000+00:00

What:  Creates the five relational tables and their constraints.
How:   Children of tourist_spots and users cascade on delete; ratings and
       favorites are unique per (user, spot).

Rollback: downgrade() drops every table (destructive, all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _created_at_column() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        _id_column(),
        sa.Column("login", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'USER'")),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "tourist_spots",
        _id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("city", sa.String(120), nullable=False),
        sa.Column("state", sa.String(120), nullable=False),
        sa.Column("country", sa.String(120), nullable=False),
        sa.Column("lat", sa.Numeric(9, 6), nullable=False),
        sa.Column("lng", sa.Numeric(9, 6), nullable=False),
        sa.Column("address", sa.String(255), nullable=False),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=False),
        _created_at_column(),
        # Maintained by the rating aggregator only
        sa.Column("average_rating", sa.Numeric(3, 2), nullable=False, server_default=sa.text("0")),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("lat >= -90 AND lat <= 90", name="ck_tourist_spots_lat"),
        sa.CheckConstraint("lng >= -180 AND lng <= 180", name="ck_tourist_spots_lng"),
    )
    op.create_index("idx_tourist_spots_created_at", "tourist_spots", [sa.text("created_at DESC")])
    op.create_index("idx_tourist_spots_city", "tourist_spots", ["city"])

    op.create_table(
        "lodgings",
        _id_column(),
        sa.Column("spot_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(30), nullable=False),
        sa.Column("avg_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("booking_link", sa.String(500), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["spot_id"], ["tourist_spots.id"], ondelete="CASCADE"),
        sa.CheckConstraint("avg_price >= 0", name="ck_lodgings_avg_price"),
        sa.CheckConstraint("type IN ('Hotel', 'Hostel', 'Inn')", name="ck_lodgings_type"),
    )
    op.create_index("ix_lodgings_spot_id", "lodgings", ["spot_id"])

    op.create_table(
        "ratings",
        _id_column(),
        sa.Column("spot_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("summary_comment", sa.String(500), nullable=False),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["spot_id"], ["tourist_spots.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "spot_id", name="uq_ratings_user_spot"),
        sa.CheckConstraint("score >= 1 AND score <= 5", name="ck_ratings_score"),
    )
    op.create_index("ix_ratings_spot_id", "ratings", ["spot_id"])

    op.create_table(
        "favorites",
        _id_column(),
        sa.Column("spot_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["spot_id"], ["tourist_spots.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "spot_id", name="uq_favorites_user_spot"),
    )
    op.create_index("ix_favorites_user_id", "favorites", ["user_id"])


def downgrade() -> None:
    """Drop every table, children first."""
    op.drop_index("ix_favorites_user_id", table_name="favorites")
    op.drop_table("favorites")
    op.drop_index("ix_ratings_spot_id", table_name="ratings")
    op.drop_table("ratings")
    op.drop_index("ix_lodgings_spot_id", table_name="lodgings")
    op.drop_table("lodgings")
    op.drop_index("idx_tourist_spots_city", table_name="tourist_spots")
    op.drop_index("idx_tourist_spots_created_at", table_name="tourist_spots")
    op.drop_table("tourist_spots")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
