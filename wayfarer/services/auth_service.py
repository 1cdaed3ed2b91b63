"""
Wayfarer Backend - Authentication Service
===========================================

What:  Registration, login, and current-user lookup.
How:   bcrypt hashes via wayfarer.security; every successful register/login
       returns the public user plus a fresh access token.
"""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
)
from wayfarer.models.user import ROLE_USER, User
from wayfarer.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserPublic
from wayfarer.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


def user_to_public(user: User) -> UserPublic:
    return UserPublic(id=user.id, login=user.login, email=user.email, role=user.role)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:

    async def _find_by_email(self, db: AsyncSession, email: str):
        result = await db.execute(select(User).where(func.lower(User.email) == email))
        return result.scalar_one_or_none()

    async def register(self, db: AsyncSession, data: RegisterRequest) -> AuthResponse:
        """
        Raises:
            ConflictError: the email is already registered (→ 409)
        """
        email = _normalize_email(data.email)
        if await self._find_by_email(db, email) is not None:
            raise ConflictError(message="User already exists", context={"email": email})

        try:
            user = User(
                login=data.login,
                email=email,
                password_hash=hash_password(data.password),
                role=ROLE_USER,
            )
            db.add(user)
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(message="User already exists", context={"email": email})
        except SQLAlchemyError as e:
            logger.error("Database error registering user: %s", str(e))
            raise DatabaseError(message="Registration failed")

        logger.info("User registered: %s", user.id)
        return AuthResponse(user=user_to_public(user), token=create_access_token(user.id, user.role))

    async def login(self, db: AsyncSession, data: LoginRequest) -> AuthResponse:
        user = await self._find_by_email(db, _normalize_email(data.email))
        # Same message for unknown email and wrong password
        if user is None or not verify_password(data.password, user.password_hash):
            raise AuthenticationError("Invalid credentials")

        logger.info("User logged in: %s", user.id)
        return AuthResponse(user=user_to_public(user), token=create_access_token(user.id, user.role))

    async def get_user(self, db: AsyncSession, user_id: UUID) -> UserPublic:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="User", resource_id=str(user_id))
        return user_to_public(user)


auth_service = AuthService()
