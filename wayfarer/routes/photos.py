"""
Wayfarer Backend - Photo Route Handlers
=========================================

What:  Photo upload/list/delete plus serving stored files under /uploads.

Security (GET /uploads/{filename}):
    - Paths are resolved against STORAGE_ROOT and must stay inside it
    - Only files written by FileService (UUID names) exist there
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.dependencies import (
    get_current_user,
    get_db_session,
    get_document_store,
    get_file_service,
)
from wayfarer.documents import DocumentStore
from wayfarer.schemas.common import ErrorResponse, MessageResponse
from wayfarer.schemas.photo import PhotoDocument
from wayfarer.security import AuthenticatedUser
from wayfarer.services.file_service import FileService
from wayfarer.services.photo_service import photo_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Photos"])


@router.get("/photos/spot/{spot_id}", response_model=List[PhotoDocument], summary="Photos of a spot, newest first")
async def list_photos(
    spot_id: UUID,
    documents: DocumentStore = Depends(get_document_store),
) -> List[PhotoDocument]:
    return await photo_service.list_for_spot(documents, spot_id)


@router.post(
    "/photos/spot/{spot_id}",
    response_model=PhotoDocument,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Bad type, too large, or photo limit reached", "model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Upload a photo (JPEG, PNG or WebP)",
)
async def upload_photo(
    spot_id: UUID,
    photo: UploadFile = File(..., description="Image file"),
    title: Optional[str] = Form(default=None),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    documents: DocumentStore = Depends(get_document_store),
    files: FileService = Depends(get_file_service),
) -> PhotoDocument:
    content = await photo.read()
    return await photo_service.upload_photo(
        db,
        documents,
        files,
        spot_id,
        user,
        filename=photo.filename or "",
        content_type=photo.content_type,
        content=content,
        title=title,
    )


@router.delete(
    "/photos/{photo_id}",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_photo(
    photo_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    documents: DocumentStore = Depends(get_document_store),
    files: FileService = Depends(get_file_service),
) -> MessageResponse:
    return await photo_service.delete_photo(documents, files, photo_id, user)


@router.get(
    "/uploads/{filename:path}",
    summary="Serve an uploaded photo",
    responses={200: {"description": "Image file"}, 404: {"model": ErrorResponse}},
)
async def serve_upload(
    filename: str,
    files: FileService = Depends(get_file_service),
) -> FileResponse:
    path = files.resolve(filename)
    # media type is guessed from the extension
    return FileResponse(path=str(path), headers={"Cache-Control": "public, max-age=86400"})
