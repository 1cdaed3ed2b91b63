"""
Wayfarer Backend - Spot Service
=================================

What:  Listing, cached single reads, and owner-gated writes for tourist spots.
Who:   Called by the spots and directions routes; get_spot() is reused by every
       service that needs to confirm a spot exists.

Cache-aside read path (GET /spots/{id}):
    ┌─────────┐  hit   ┌──────────────┐
    │  Redis  │───────▶│ cached JSON  │
    └────┬────┘        └──────────────┘
         │ miss
    ┌────▼───────┐    ┌──────────────┐    ┌─────────────┐
    │ PostgreSQL │───▶│ + weather    │───▶│ SETEX 3600s │
    └────────────┘    │ (best-effort)│    └─────────────┘
                      └──────────────┘

Writes commit before invalidating `spot:{id}`. A miss tags its fill with the
cache version read before the database load; an invalidation in between
bumps that version, so the pre-update row it may write is never served.
"""

import logging
import math
from decimal import Decimal
from urllib.parse import quote
from typing import Any, Dict
from uuid import UUID

from sqlalchemy import asc, desc, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.exceptions import DatabaseError, NotFoundError
from wayfarer.models.spot import TouristSpot
from wayfarer.schemas.common import MessageResponse, PaginationMeta
from wayfarer.schemas.spot import (
    Coordinates,
    DirectionsResponse,
    SpotCreate,
    SpotDetail,
    SpotFilters,
    SpotListResponse,
    SpotResponse,
    SpotUpdate,
)
from wayfarer.security import AuthenticatedUser, ensure_owner_or_admin
from wayfarer.services.cache_service import SpotCache
from wayfarer.services.weather_service import WeatherService

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": TouristSpot.name,
    "rating": TouristSpot.average_rating,
    "createdAt": TouristSpot.created_at,
}


NUMERIC_FIELDS = ("lat", "lng")


def _numeric_to_decimal(values: Dict[str, Any]) -> Dict[str, Any]:
    # NUMERIC columns take Decimal; str() keeps the float's shortest repr
    return {
        key: Decimal(str(value)) if key in NUMERIC_FIELDS and value is not None else value
        for key, value in values.items()
    }


def spot_to_response(spot: TouristSpot) -> SpotResponse:
    return SpotResponse(
        id=spot.id,
        name=spot.name,
        description=spot.description,
        city=spot.city,
        state=spot.state,
        country=spot.country,
        lat=float(spot.lat),
        lng=float(spot.lng),
        address=spot.address,
        created_by=spot.created_by,
        created_at=spot.created_at,
        average_rating=float(spot.average_rating or 0),
    )


class SpotService:
    """
    Stateless: the session, cache and weather service are passed per call.

    Error Handling Strategy:
        App exceptions propagate unchanged. SQLAlchemy errors are logged and
        wrapped in DatabaseError so driver details never reach the client.
    """

    async def get_spot(self, db: AsyncSession, spot_id: UUID) -> TouristSpot:
        """Load a spot row or raise NotFoundError (→ 404)."""
        try:
            spot = await db.get(TouristSpot, spot_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching spot %s: %s", spot_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the spot. Please try again.",
                context={"spot_id": str(spot_id)},
            )
        if spot is None:
            raise NotFoundError(resource="Spot", resource_id=str(spot_id))
        return spot

    async def list_spots(self, db: AsyncSession, filters: SpotFilters) -> SpotListResponse:
        """
        Filtered, sorted, offset-paginated listing.

        Filters combine with AND:
            city/state/country  case-insensitive substring
            search              name OR description substring
            min_rating          average_rating >= value
        """
        conditions = []
        if filters.city:
            conditions.append(TouristSpot.city.ilike(f"%{filters.city}%"))
        if filters.state:
            conditions.append(TouristSpot.state.ilike(f"%{filters.state}%"))
        if filters.country:
            conditions.append(TouristSpot.country.ilike(f"%{filters.country}%"))
        if filters.min_rating is not None:
            conditions.append(TouristSpot.average_rating >= filters.min_rating)
        if filters.search:
            pattern = f"%{filters.search}%"
            conditions.append(
                or_(TouristSpot.name.ilike(pattern), TouristSpot.description.ilike(pattern))
            )

        column = SORT_COLUMNS[filters.sort_by]
        direction = asc if filters.sort_order == "asc" else desc

        try:
            count_query = select(func.count()).select_from(TouristSpot).where(*conditions)
            total = (await db.execute(count_query)).scalar_one()

            query = (
                select(TouristSpot)
                .where(*conditions)
                # id tiebreaker keeps pages stable when sort values repeat
                .order_by(direction(column), direction(TouristSpot.id))
                .offset((filters.page - 1) * filters.limit)
                .limit(filters.limit)
            )
            spots = (await db.execute(query)).scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing spots: %s", str(e))
            raise DatabaseError(message="Could not list spots. Please try again.")

        return SpotListResponse(
            data=[spot_to_response(s) for s in spots],
            pagination=PaginationMeta(
                page=filters.page,
                limit=filters.limit,
                total=total,
                total_pages=math.ceil(total / filters.limit) if total else 0,
            ),
        )

    async def get_spot_detail(
        self,
        db: AsyncSession,
        spot_id: UUID,
        cache: SpotCache,
        weather: WeatherService,
    ) -> Dict[str, Any]:
        """
        Cache-aside single read.

        Returns the camelCase JSON dict that is (or was) stored in Redis, so a
        hit and a miss produce byte-identical bodies.
        """
        cached = await cache.lookup_spot(spot_id)
        if cached.payload is not None:
            logger.debug("Cache hit for spot %s", spot_id)
            return cached.payload

        spot = await self.get_spot(db, spot_id)
        detail = SpotDetail(
            **spot_to_response(spot).model_dump(),
            weather=await weather.get_weather(float(spot.lat), float(spot.lng)),
        )
        payload = detail.model_dump(mode="json", by_alias=True)
        if cached.version is not None:
            await cache.fill_spot(spot_id, payload, cached.version)
        return payload

    async def create_spot(
        self,
        db: AsyncSession,
        user: AuthenticatedUser,
        data: SpotCreate,
    ) -> SpotResponse:
        try:
            spot = TouristSpot(**_numeric_to_decimal(data.model_dump()), created_by=user.id)
            db.add(spot)
            await db.flush()
            await db.refresh(spot)
        except SQLAlchemyError as e:
            logger.error("Database error creating spot: %s", str(e))
            raise DatabaseError(message="Could not create the spot. Please try again.")

        logger.info("Spot created: %s by user %s", spot.id, user.id)
        return spot_to_response(spot)

    async def update_spot(
        self,
        db: AsyncSession,
        spot_id: UUID,
        user: AuthenticatedUser,
        data: SpotUpdate,
        cache: SpotCache,
    ) -> SpotResponse:
        spot = await self.get_spot(db, spot_id)
        ensure_owner_or_admin(user, spot.created_by, "Forbidden - You can only edit your own spots")

        try:
            for field, value in _numeric_to_decimal(data.model_dump(exclude_unset=True)).items():
                if value is not None:
                    setattr(spot, field, value)
            await db.commit()
            await db.refresh(spot)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error updating spot %s: %s", spot_id, str(e))
            raise DatabaseError(message="Could not update the spot. Please try again.")

        await cache.invalidate_spot(spot_id)
        logger.info("Spot updated: %s", spot_id)
        return spot_to_response(spot)

    async def delete_spot(
        self,
        db: AsyncSession,
        spot_id: UUID,
        user: AuthenticatedUser,
        cache: SpotCache,
    ) -> MessageResponse:
        """
        Delete a spot; lodgings, ratings and favorites go with it via
        ON DELETE CASCADE. Comments and photos live in MongoDB and are left
        in place unless document cleanup is enabled (see routes/spots.py).
        """
        spot = await self.get_spot(db, spot_id)
        ensure_owner_or_admin(user, spot.created_by, "Forbidden - You can only delete your own spots")

        try:
            await db.delete(spot)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting spot %s: %s", spot_id, str(e))
            raise DatabaseError(message="Could not delete the spot. Please try again.")

        await cache.invalidate_spot(spot_id)
        logger.info("Spot deleted: %s by user %s", spot_id, user.id)
        return MessageResponse(message="Spot deleted successfully")

    async def get_directions(self, db: AsyncSession, spot_id: UUID) -> DirectionsResponse:
        spot = await self.get_spot(db, spot_id)
        lat, lng = float(spot.lat), float(spot.lng)
        return DirectionsResponse(
            spot_id=spot.id,
            name=spot.name,
            coordinates=Coordinates(latitude=lat, longitude=lng),
            address=spot.address,
            city=spot.city,
            state=spot.state,
            country=spot.country,
            text_directions=[
                f"Navigate to {spot.name} located in {spot.city}, {spot.state}, {spot.country}.",
                f"Address: {spot.address}",
                f"Coordinates: {lat}, {lng}",
                "You can use GPS navigation or maps application with these coordinates.",
            ],
            google_maps_url=f"https://www.google.com/maps/search/?api=1&query={lat},{lng}",
            apple_maps_url=f"http://maps.apple.com/?ll={lat},{lng}&q={quote(spot.name)}",
        )


spot_service = SpotService()
