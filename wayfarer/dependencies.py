"""
Wayfarer Backend - FastAPI Dependencies
=========================================

What:  Hands route handlers the backend clients and the caller's identity.
How:   Backend clients live on app.state (built in the lifespan), so tests
       swap them by setting app.state or with dependency_overrides.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from wayfarer.database import get_db_session
from wayfarer.documents import DocumentStore
from wayfarer.exceptions import AuthenticationError, PermissionDeniedError
from wayfarer.models.user import ROLE_ADMIN
from wayfarer.security import AuthenticatedUser, decode_access_token
from wayfarer.services.cache_service import SpotCache
from wayfarer.services.file_service import FileService
from wayfarer.services.weather_service import WeatherService

__all__ = [
    "get_db_session",
    "get_document_store",
    "get_spot_cache",
    "get_weather_service",
    "get_file_service",
    "get_current_user",
    "require_role",
    "require_admin",
]

# auto_error=False: a missing header becomes our own 401 body, not FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)


def get_document_store(request: Request) -> DocumentStore:
    return request.app.state.documents


def get_spot_cache(request: Request) -> SpotCache:
    return request.app.state.spot_cache


def get_weather_service(request: Request) -> WeatherService:
    return request.app.state.weather


def get_file_service(request: Request) -> FileService:
    return request.app.state.files


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """
    Raises:
        AuthenticationError: no bearer token, or one that fails verification (→ 401)
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Unauthorized - No token provided")
    return decode_access_token(credentials.credentials)


def require_role(*roles: str):
    """Dependency factory: the caller must hold one of `roles` (→ 403 otherwise)."""

    async def checker(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if user.role not in roles:
            raise PermissionDeniedError(
                "Forbidden - Insufficient permissions",
                context={"required": list(roles), "role": user.role},
            )
        return user

    return checker


require_admin = require_role(ROLE_ADMIN)
