"""
Wayfarer Backend - Rating Service and Aggregator
==================================================

What:  Rating CRUD plus the aggregator that keeps
       tourist_spots.average_rating equal to the mean of the spot's scores.
Who:   Called by the ratings routes.

Aggregation Strategy:
    Every mutation runs in ONE transaction:

        1. SELECT ... FROM tourist_spots WHERE id = :spot FOR UPDATE
        2. INSERT / UPDATE / DELETE the rating row
        3. UPDATE tourist_spots SET average_rating =
               COALESCE((SELECT ROUND(AVG(score), 2) FROM ratings
                         WHERE spot_id = :spot), 0)
        4. COMMIT, then drop the `spot:{id}` cache entry

    The row lock in step 1 serializes concurrent raters of the same spot, so
    the recompute in step 3 always sees every committed score and no update
    is lost. Raters of different spots never contend. The mean is computed
    by the database in a single statement, so there is no read-modify-write
    window in Python.

    With no ratings left the mean is numeric 0, and the API always exposes
    averageRating as a JSON number.
"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.exceptions import ConflictError, DatabaseError, NotFoundError
from wayfarer.models.rating import Rating
from wayfarer.models.spot import TouristSpot
from wayfarer.schemas.common import MessageResponse
from wayfarer.schemas.rating import RatingCreate, RatingResponse
from wayfarer.security import AuthenticatedUser
from wayfarer.services.cache_service import SpotCache

logger = logging.getLogger(__name__)


def rating_to_response(rating: Rating) -> RatingResponse:
    return RatingResponse(
        id=rating.id,
        spot_id=rating.spot_id,
        user_id=rating.user_id,
        score=rating.score,
        summary_comment=rating.summary_comment,
        created_at=rating.created_at,
    )


class RatingService:

    # ── Aggregator ────────────────────────────────────────────────────────

    async def recompute_average(self, db: AsyncSession, spot_id: UUID) -> float:
        """
        Recompute and persist the spot's mean rating inside the caller's
        transaction. Returns the stored value.
        """
        mean_score = (
            select(func.coalesce(func.round(func.avg(Rating.score), 2), 0))
            .where(Rating.spot_id == spot_id)
            .scalar_subquery()
        )
        await db.execute(
            update(TouristSpot)
            .where(TouristSpot.id == spot_id)
            .values(average_rating=mean_score)
            .execution_options(synchronize_session=False)
        )
        spot = await db.get(TouristSpot, spot_id, populate_existing=True)
        average = float(spot.average_rating) if spot is not None else 0.0
        logger.debug("Spot %s average rating recomputed: %.2f", spot_id, average)
        return average

    async def _lock_spot(self, db: AsyncSession, spot_id: UUID) -> Optional[TouristSpot]:
        result = await db.execute(
            select(TouristSpot).where(TouristSpot.id == spot_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def _find_user_rating(
        self, db: AsyncSession, spot_id: UUID, user_id: UUID
    ) -> Optional[Rating]:
        result = await db.execute(
            select(Rating).where(Rating.spot_id == spot_id, Rating.user_id == user_id)
        )
        return result.scalar_one_or_none()

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_for_spot(self, db: AsyncSession, spot_id: UUID) -> List[RatingResponse]:
        try:
            result = await db.execute(
                select(Rating)
                .where(Rating.spot_id == spot_id)
                .order_by(Rating.created_at.desc(), Rating.id.desc())
            )
            return [rating_to_response(r) for r in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Database error listing ratings for spot %s: %s", spot_id, str(e))
            raise DatabaseError(message="Failed to fetch ratings")

    async def get_user_rating(
        self, db: AsyncSession, spot_id: UUID, user: AuthenticatedUser
    ) -> Optional[RatingResponse]:
        """The caller's rating for a spot, or None if they have not rated it."""
        try:
            rating = await self._find_user_rating(db, spot_id, user.id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching rating: %s", str(e))
            raise DatabaseError(message="Failed to fetch rating")
        return rating_to_response(rating) if rating else None

    # ── Writes ────────────────────────────────────────────────────────────

    async def upsert_rating(
        self,
        db: AsyncSession,
        spot_id: UUID,
        user: AuthenticatedUser,
        data: RatingCreate,
        cache: SpotCache,
    ) -> Tuple[RatingResponse, bool]:
        """
        Create the caller's rating or overwrite their existing one.

        Returns:
            (rating, created) where created is False for an update.

        Raises:
            NotFoundError: the spot does not exist
            ConflictError: a concurrent insert won the unique (user, spot) slot
        """
        try:
            spot = await self._lock_spot(db, spot_id)
            if spot is None:
                raise NotFoundError(resource="Spot", resource_id=str(spot_id))

            rating = await self._find_user_rating(db, spot_id, user.id)
            created = rating is None
            if created:
                rating = Rating(
                    spot_id=spot_id,
                    user_id=user.id,
                    score=data.score,
                    summary_comment=data.summary_comment,
                )
                db.add(rating)
            else:
                rating.score = data.score
                rating.summary_comment = data.summary_comment

            await db.flush()
            await self.recompute_average(db, spot_id)
            await db.commit()
            await db.refresh(rating)
        except NotFoundError:
            raise
        except IntegrityError as e:
            await db.rollback()
            logger.warning("Rating conflict for spot %s user %s: %s", spot_id, user.id, str(e))
            raise ConflictError(message="Rating already exists for this spot")
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error saving rating: %s", str(e))
            raise DatabaseError(message="Failed to save rating")

        await cache.invalidate_spot(spot_id)
        logger.info(
            "Rating %s: spot=%s user=%s score=%d",
            "created" if created else "updated",
            spot_id,
            user.id,
            rating.score,
        )
        return rating_to_response(rating), created

    async def delete_rating(
        self,
        db: AsyncSession,
        spot_id: UUID,
        user: AuthenticatedUser,
        cache: SpotCache,
    ) -> MessageResponse:
        """Remove the caller's own rating for a spot, then recompute the mean."""
        try:
            await self._lock_spot(db, spot_id)
            rating = await self._find_user_rating(db, spot_id, user.id)
            if rating is None:
                raise NotFoundError(resource="Rating")

            await db.delete(rating)
            await db.flush()
            await self.recompute_average(db, spot_id)
            await db.commit()
        except NotFoundError:
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting rating: %s", str(e))
            raise DatabaseError(message="Failed to delete rating")

        await cache.invalidate_spot(spot_id)
        logger.info("Rating deleted: spot=%s user=%s", spot_id, user.id)
        return MessageResponse(message="Rating deleted successfully")


rating_service = RatingService()
