"""
Wayfarer Backend - Authentication Route Handlers
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.dependencies import get_current_user, get_db_session
from wayfarer.schemas.auth import AuthResponse, LoginRequest, MeResponse, RegisterRequest
from wayfarer.schemas.common import ErrorResponse
from wayfarer.security import AuthenticatedUser
from wayfarer.services.auth_service import auth_service

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Email already registered", "model": ErrorResponse}},
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.register(db, body)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.login(db, body)


@router.get("/me", response_model=MeResponse, responses={401: {"model": ErrorResponse}})
async def me(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MeResponse:
    return MeResponse(user=await auth_service.get_user(db, user.id))
