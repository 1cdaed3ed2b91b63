"""
Wayfarer Backend - Favorite Route Handlers

All routes act on the caller's own favorites.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.dependencies import get_current_user, get_db_session
from wayfarer.schemas.common import ErrorResponse, MessageResponse
from wayfarer.schemas.favorite import FavoriteResponse, FavoriteWithSpot
from wayfarer.security import AuthenticatedUser
from wayfarer.services.favorite_service import favorite_service

router = APIRouter(prefix="/favorites", tags=["Favorites"])


@router.get("", response_model=List[FavoriteWithSpot], summary="The caller's favorites with their spots")
async def list_favorites(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[FavoriteWithSpot]:
    return await favorite_service.list_favorites(db, user)


@router.post(
    "/{spot_id}",
    response_model=FavoriteResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def add_favorite(
    spot_id: UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FavoriteResponse:
    return await favorite_service.add_favorite(db, spot_id, user)


@router.delete(
    "/{spot_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
)
async def remove_favorite(
    spot_id: UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await favorite_service.remove_favorite(db, spot_id, user)
