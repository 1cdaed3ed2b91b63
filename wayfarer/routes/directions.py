"""
Wayfarer Backend - Directions Route Handler
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.dependencies import get_db_session
from wayfarer.schemas.common import ErrorResponse
from wayfarer.schemas.spot import DirectionsResponse
from wayfarer.services.spot_service import spot_service

router = APIRouter(prefix="/directions", tags=["Directions"])


@router.get(
    "/spot/{spot_id}",
    response_model=DirectionsResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Coordinates, text directions and map links for a spot",
)
async def get_directions(
    spot_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> DirectionsResponse:
    return await spot_service.get_directions(db, spot_id)
