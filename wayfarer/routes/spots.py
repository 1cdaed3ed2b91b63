"""
Wayfarer Backend - Spot Route Handlers
========================================

What:  CRUD for tourist spots.
Who:   The browser client's list, detail and edit views.

Caching:
    GET /spots/{id} is served cache-aside from Redis (1 hour). PUT and
    DELETE drop the entry before responding.
"""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pymongo.errors import PyMongoError
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.config import settings
from wayfarer.dependencies import (
    get_current_user,
    get_db_session,
    get_document_store,
    get_file_service,
    get_spot_cache,
    get_weather_service,
)
from wayfarer.documents import DocumentStore
from wayfarer.schemas.common import ErrorResponse, MessageResponse
from wayfarer.schemas.spot import (
    SortField,
    SortOrder,
    SpotCreate,
    SpotDetail,
    SpotFilters,
    SpotListResponse,
    SpotResponse,
    SpotUpdate,
)
from wayfarer.security import AuthenticatedUser
from wayfarer.services.cache_service import SpotCache
from wayfarer.services.comment_service import comment_service
from wayfarer.services.file_service import FileService
from wayfarer.services.photo_service import photo_service
from wayfarer.services.spot_service import spot_service
from wayfarer.services.weather_service import WeatherService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/spots", tags=["Spots"])


@router.get(
    "",
    response_model=SpotListResponse,
    summary="List spots with filters and pagination",
)
async def list_spots(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    city: Optional[str] = Query(default=None, description="Case-insensitive substring"),
    state: Optional[str] = Query(default=None),
    country: Optional[str] = Query(default=None),
    min_rating: Optional[float] = Query(default=None, alias="minRating", ge=0, le=5),
    search: Optional[str] = Query(default=None, description="Matches name or description"),
    sort_by: SortField = Query(default="createdAt", alias="sortBy"),
    sort_order: SortOrder = Query(default="desc", alias="sortOrder"),
    db: AsyncSession = Depends(get_db_session),
) -> SpotListResponse:
    filters = SpotFilters(
        page=page,
        limit=limit,
        city=city,
        state=state,
        country=country,
        min_rating=min_rating,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return await spot_service.list_spots(db, filters)


@router.get(
    "/{spot_id}",
    response_model=SpotDetail,
    responses={404: {"model": ErrorResponse}},
    summary="Get a spot with current weather",
)
async def get_spot(
    spot_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    cache: SpotCache = Depends(get_spot_cache),
    weather: WeatherService = Depends(get_weather_service),
) -> Dict[str, Any]:
    """weather is null whenever the lookup is disabled, slow or failing."""
    return await spot_service.get_spot_detail(db, spot_id, cache, weather)


@router.post(
    "",
    response_model=SpotResponse,
    status_code=status.HTTP_201_CREATED,
    responses={401: {"model": ErrorResponse}},
    summary="Create a spot",
)
async def create_spot(
    body: SpotCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SpotResponse:
    return await spot_service.create_spot(db, user, body)


@router.put(
    "/{spot_id}",
    response_model=SpotResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Update a spot (owner or admin)",
)
async def update_spot(
    spot_id: UUID,
    body: SpotUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    cache: SpotCache = Depends(get_spot_cache),
) -> SpotResponse:
    return await spot_service.update_spot(db, spot_id, user, body, cache)


@router.delete(
    "/{spot_id}",
    response_model=MessageResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Delete a spot (owner or admin)",
)
async def delete_spot(
    spot_id: UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    cache: SpotCache = Depends(get_spot_cache),
    documents: DocumentStore = Depends(get_document_store),
    files: FileService = Depends(get_file_service),
) -> MessageResponse:
    """
    Lodgings, ratings and favorites cascade in PostgreSQL. Comments and
    photos stay in MongoDB unless CLEANUP_DOCUMENTS_ON_SPOT_DELETE is on,
    in which case they are removed after the relational delete commits.
    """
    result = await spot_service.delete_spot(db, spot_id, user, cache)

    if settings.cleanup_documents_on_spot_delete:
        try:
            comments = await comment_service.purge_spot(documents, spot_id)
            photos = await photo_service.purge_spot(documents, files, spot_id)
            logger.info("Removed %d comments and %d photos of spot %s", comments, photos, spot_id)
        except PyMongoError as e:
            logger.error("Document cleanup for spot %s failed: %s", spot_id, str(e))

    return result
