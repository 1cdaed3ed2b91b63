"""
Wayfarer Backend - Rating Route Handlers

POST answers 201 when the caller rates a spot for the first time and 200
when it overwrites their earlier rating.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.dependencies import get_current_user, get_db_session, get_spot_cache
from wayfarer.schemas.common import ErrorResponse, MessageResponse
from wayfarer.schemas.rating import RatingCreate, RatingResponse
from wayfarer.security import AuthenticatedUser
from wayfarer.services.cache_service import SpotCache
from wayfarer.services.rating_service import rating_service

router = APIRouter(prefix="/ratings", tags=["Ratings"])


@router.get("/spot/{spot_id}", response_model=List[RatingResponse], summary="Ratings of a spot, newest first")
async def list_ratings(
    spot_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> List[RatingResponse]:
    return await rating_service.list_for_spot(db, spot_id)


@router.get(
    "/spot/{spot_id}/my-rating",
    response_model=Optional[RatingResponse],
    responses={401: {"model": ErrorResponse}},
    summary="The caller's rating of a spot, or null",
)
async def get_my_rating(
    spot_id: UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[RatingResponse]:
    return await rating_service.get_user_rating(db, spot_id, user)


@router.post(
    "/spot/{spot_id}",
    response_model=RatingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"description": "Existing rating updated", "model": RatingResponse},
        404: {"model": ErrorResponse},
    },
    summary="Rate a spot (create or update)",
)
async def rate_spot(
    spot_id: UUID,
    body: RatingCreate,
    response: Response,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    cache: SpotCache = Depends(get_spot_cache),
) -> RatingResponse:
    rating, created = await rating_service.upsert_rating(db, spot_id, user, body, cache)
    if not created:
        response.status_code = status.HTTP_200_OK
    return rating


@router.delete(
    "/spot/{spot_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Remove the caller's rating of a spot",
)
async def delete_rating(
    spot_id: UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    cache: SpotCache = Depends(get_spot_cache),
) -> MessageResponse:
    return await rating_service.delete_rating(db, spot_id, user, cache)
