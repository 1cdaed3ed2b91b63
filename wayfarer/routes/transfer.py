"""
Wayfarer Backend - Import/Export Route Handlers
=================================================

    GET  /export/spots?format=json|csv|xml   → file download, anyone
    POST /import/spots (multipart file+format) → per-record results, admin only
"""

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.config import settings
from wayfarer.dependencies import get_db_session, require_admin
from wayfarer.exceptions import ValidationError
from wayfarer.schemas.common import ErrorResponse
from wayfarer.schemas.transfer import ImportResponse
from wayfarer.security import AuthenticatedUser
from wayfarer.services.transfer_service import transfer_service

router = APIRouter(tags=["Import/Export"])


@router.get(
    "/export/spots",
    response_class=Response,
    responses={
        200: {
            "content": {"application/json": {}, "text/csv": {}, "application/xml": {}},
            "description": "All spots in the requested format",
        },
        400: {"model": ErrorResponse},
    },
    summary="Export every spot",
)
async def export_spots(
    format: str = Query(default="json", description="json, csv or xml"),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    payload = await transfer_service.export_spots(db, format)
    return Response(
        content=payload.content,
        media_type=payload.media_type,
        headers={"Content-Disposition": f"attachment; filename={payload.filename}"},
    )


@router.post(
    "/import/spots",
    response_model=ImportResponse,
    responses={
        400: {"description": "Unreadable file or unknown format", "model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
    },
    summary="Import spots from a JSON, CSV or XML file (admin)",
)
async def import_spots(
    file: UploadFile = File(...),
    format: str = Form(default="json"),
    user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ImportResponse:
    content = await file.read()
    if len(content) > settings.max_file_size:
        raise ValidationError(
            message="Import file is too large",
            field="file",
            context={"size": len(content), "max_size": settings.max_file_size},
        )
    results = await transfer_service.import_spots(db, user, content, format)
    return ImportResponse(message="Import completed", results=results)
