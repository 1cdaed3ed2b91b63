"""
Wayfarer Backend - Lodging Service

Lodgings belong to a spot. Any signed-in user may add one; only the spot's
owner or an admin may change or remove it.
"""

import logging
from decimal import Decimal
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.exceptions import DatabaseError, NotFoundError
from wayfarer.models.lodging import Lodging
from wayfarer.schemas.common import MessageResponse
from wayfarer.schemas.lodging import LodgingCreate, LodgingResponse, LodgingUpdate
from wayfarer.security import AuthenticatedUser, ensure_owner_or_admin
from wayfarer.services.spot_service import spot_service

logger = logging.getLogger(__name__)


def lodging_to_response(lodging: Lodging) -> LodgingResponse:
    return LodgingResponse(
        id=lodging.id,
        spot_id=lodging.spot_id,
        name=lodging.name,
        address=lodging.address,
        phone=lodging.phone,
        avg_price=float(lodging.avg_price),
        type=lodging.type,
        booking_link=lodging.booking_link,
    )


class LodgingService:

    async def _get(self, db: AsyncSession, lodging_id: UUID) -> Lodging:
        lodging = await db.get(Lodging, lodging_id)
        if lodging is None:
            raise NotFoundError(resource="Lodging", resource_id=str(lodging_id))
        return lodging

    async def list_for_spot(self, db: AsyncSession, spot_id: UUID) -> List[LodgingResponse]:
        try:
            result = await db.execute(
                select(Lodging).where(Lodging.spot_id == spot_id).order_by(Lodging.name)
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing lodgings: %s", str(e))
            raise DatabaseError(message="Failed to fetch lodgings")
        return [lodging_to_response(lodging) for lodging in result.scalars().all()]

    async def get_lodging(self, db: AsyncSession, lodging_id: UUID) -> LodgingResponse:
        return lodging_to_response(await self._get(db, lodging_id))

    async def create_lodging(
        self, db: AsyncSession, user: AuthenticatedUser, data: LodgingCreate
    ) -> LodgingResponse:
        await spot_service.get_spot(db, data.spot_id)

        values = data.model_dump()
        values["avg_price"] = Decimal(str(values["avg_price"]))
        try:
            lodging = Lodging(**values)
            db.add(lodging)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating lodging: %s", str(e))
            raise DatabaseError(message="Failed to create lodging")

        logger.info("Lodging created: %s for spot %s by user %s", lodging.id, data.spot_id, user.id)
        return lodging_to_response(lodging)

    async def update_lodging(
        self,
        db: AsyncSession,
        lodging_id: UUID,
        user: AuthenticatedUser,
        data: LodgingUpdate,
    ) -> LodgingResponse:
        lodging = await self._get(db, lodging_id)
        spot = await spot_service.get_spot(db, lodging.spot_id)
        ensure_owner_or_admin(user, spot.created_by, "Forbidden - You can only edit lodgings of your own spots")

        changes = data.model_dump(exclude_unset=True)
        if changes.get("avg_price") is not None:
            changes["avg_price"] = Decimal(str(changes["avg_price"]))
        try:
            for field, value in changes.items():
                # bookingLink may be cleared; every other field ignores explicit nulls
                if value is not None or field == "booking_link":
                    setattr(lodging, field, value)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating lodging %s: %s", lodging_id, str(e))
            raise DatabaseError(message="Failed to update lodging")

        return lodging_to_response(lodging)

    async def delete_lodging(
        self, db: AsyncSession, lodging_id: UUID, user: AuthenticatedUser
    ) -> MessageResponse:
        lodging = await self._get(db, lodging_id)
        spot = await spot_service.get_spot(db, lodging.spot_id)
        ensure_owner_or_admin(user, spot.created_by, "Forbidden - You can only delete lodgings of your own spots")

        try:
            await db.delete(lodging)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting lodging %s: %s", lodging_id, str(e))
            raise DatabaseError(message="Failed to delete lodging")

        logger.info("Lodging deleted: %s", lodging_id)
        return MessageResponse(message="Lodging deleted successfully")


lodging_service = LodgingService()
