"""
Wayfarer Backend - Favorite Service

A favorite is a (user, spot) pair; the unique constraint makes a second
POST for the same spot a 409 rather than a duplicate row.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from wayfarer.exceptions import ConflictError, DatabaseError, NotFoundError
from wayfarer.models.favorite import Favorite
from wayfarer.schemas.common import MessageResponse
from wayfarer.schemas.favorite import FavoriteResponse, FavoriteWithSpot
from wayfarer.security import AuthenticatedUser
from wayfarer.services.spot_service import spot_service, spot_to_response

logger = logging.getLogger(__name__)


class FavoriteService:

    async def list_favorites(
        self, db: AsyncSession, user: AuthenticatedUser
    ) -> List[FavoriteWithSpot]:
        try:
            result = await db.execute(
                select(Favorite)
                .where(Favorite.user_id == user.id)
                .options(selectinload(Favorite.spot))
                .order_by(Favorite.created_at.desc(), Favorite.id.desc())
            )
            favorites = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing favorites: %s", str(e))
            raise DatabaseError(message="Failed to fetch favorites")

        return [
            FavoriteWithSpot(
                id=fav.id,
                spot_id=fav.spot_id,
                user_id=fav.user_id,
                created_at=fav.created_at,
                spot=spot_to_response(fav.spot),
            )
            for fav in favorites
        ]

    async def add_favorite(
        self, db: AsyncSession, spot_id: UUID, user: AuthenticatedUser
    ) -> FavoriteResponse:
        await spot_service.get_spot(db, spot_id)

        existing = await db.execute(
            select(Favorite.id).where(Favorite.user_id == user.id, Favorite.spot_id == spot_id)
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(message="Spot already in favorites")

        try:
            favorite = Favorite(spot_id=spot_id, user_id=user.id)
            db.add(favorite)
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(message="Spot already in favorites")
        except SQLAlchemyError as e:
            logger.error("Database error adding favorite: %s", str(e))
            raise DatabaseError(message="Failed to add favorite")

        return FavoriteResponse(
            id=favorite.id,
            spot_id=favorite.spot_id,
            user_id=favorite.user_id,
            created_at=favorite.created_at,
        )

    async def remove_favorite(
        self, db: AsyncSession, spot_id: UUID, user: AuthenticatedUser
    ) -> MessageResponse:
        result = await db.execute(
            select(Favorite).where(Favorite.user_id == user.id, Favorite.spot_id == spot_id)
        )
        favorite = result.scalar_one_or_none()
        if favorite is None:
            raise NotFoundError(resource="Favorite")

        try:
            await db.delete(favorite)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error removing favorite: %s", str(e))
            raise DatabaseError(message="Failed to remove favorite")

        return MessageResponse(message="Removed from favorites")


favorite_service = FavoriteService()
