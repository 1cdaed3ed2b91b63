"""
Wayfarer Backend - Lodging Route Handlers
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.dependencies import get_current_user, get_db_session
from wayfarer.schemas.common import ErrorResponse, MessageResponse
from wayfarer.schemas.lodging import LodgingCreate, LodgingResponse, LodgingUpdate
from wayfarer.security import AuthenticatedUser
from wayfarer.services.lodging_service import lodging_service

router = APIRouter(prefix="/lodgings", tags=["Lodgings"])


@router.get("/spot/{spot_id}", response_model=List[LodgingResponse], summary="Lodgings near a spot")
async def list_lodgings(
    spot_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> List[LodgingResponse]:
    return await lodging_service.list_for_spot(db, spot_id)


@router.get(
    "/{lodging_id}",
    response_model=LodgingResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_lodging(
    lodging_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> LodgingResponse:
    return await lodging_service.get_lodging(db, lodging_id)


@router.post(
    "",
    response_model=LodgingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Spot not found", "model": ErrorResponse}},
)
async def create_lodging(
    body: LodgingCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> LodgingResponse:
    return await lodging_service.create_lodging(db, user, body)


@router.put(
    "/{lodging_id}",
    response_model=LodgingResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_lodging(
    lodging_id: UUID,
    body: LodgingUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> LodgingResponse:
    return await lodging_service.update_lodging(db, lodging_id, user, body)


@router.delete(
    "/{lodging_id}",
    response_model=MessageResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_lodging(
    lodging_id: UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await lodging_service.delete_lodging(db, lodging_id, user)
