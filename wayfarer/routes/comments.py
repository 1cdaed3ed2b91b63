"""
Wayfarer Backend - Comment Route Handlers

Comments live in MongoDB; their ids are ObjectId hex strings, and a
malformed id is answered with 400 rather than 404.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.dependencies import get_current_user, get_db_session, get_document_store
from wayfarer.documents import DocumentStore
from wayfarer.schemas.comment import CommentCreate, CommentDocument, CommentUpdate, ReplyCreate
from wayfarer.schemas.common import ErrorResponse, MessageResponse
from wayfarer.security import AuthenticatedUser
from wayfarer.services.comment_service import comment_service

router = APIRouter(prefix="/comments", tags=["Comments"])


@router.get("/spot/{spot_id}", response_model=List[CommentDocument], summary="Comments on a spot, newest first")
async def list_comments(
    spot_id: UUID,
    documents: DocumentStore = Depends(get_document_store),
) -> List[CommentDocument]:
    return await comment_service.list_for_spot(documents, spot_id)


@router.post(
    "/spot/{spot_id}",
    response_model=CommentDocument,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
)
async def create_comment(
    spot_id: UUID,
    body: CommentCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    documents: DocumentStore = Depends(get_document_store),
) -> CommentDocument:
    return await comment_service.create_comment(db, documents, spot_id, user, body)


@router.put(
    "/{comment_id}",
    response_model=CommentDocument,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_comment(
    comment_id: str,
    body: CommentUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    documents: DocumentStore = Depends(get_document_store),
) -> CommentDocument:
    return await comment_service.update_comment(documents, comment_id, user, body)


@router.delete(
    "/{comment_id}",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_comment(
    comment_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    documents: DocumentStore = Depends(get_document_store),
) -> MessageResponse:
    return await comment_service.delete_comment(documents, comment_id, user)


@router.post(
    "/{comment_id}/reply",
    response_model=CommentDocument,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def reply_to_comment(
    comment_id: str,
    body: ReplyCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    documents: DocumentStore = Depends(get_document_store),
) -> CommentDocument:
    return await comment_service.add_reply(documents, comment_id, user, body)
