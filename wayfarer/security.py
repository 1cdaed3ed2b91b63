"""
Wayfarer Backend - Password Hashing and Access Tokens
=======================================================

What:  bcrypt password hashing and HS256 JWT issuance/verification.
How:   Tokens carry `sub` (user id) and `role`. The role is trusted from the
       token for the token's lifetime, so a role change takes effect on the
       next login.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

from wayfarer.config import settings
from wayfarer.exceptions import AuthenticationError, PermissionDeniedError
from wayfarer.models.user import ROLE_ADMIN, ROLES

logger = logging.getLogger(__name__)

# bcrypt only reads the first 72 bytes; newer releases raise instead of truncating
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        logger.warning("Stored password hash could not be parsed")
        return False


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity extracted from a verified access token."""

    id: uuid.UUID
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def create_access_token(user_id: uuid.UUID, role: str) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + timedelta(days=settings.access_token_expire_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> AuthenticatedUser:
    """
    Verify a token and return the identity it carries.

    Raises:
        AuthenticationError: expired, badly signed, or missing sub/role claims.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Unauthorized - Token expired")
    except jwt.InvalidTokenError as e:
        logger.debug("Rejected access token: %s", str(e))
        raise AuthenticationError("Unauthorized - Invalid token")

    role = payload.get("role")
    if role not in ROLES:
        raise AuthenticationError("Unauthorized - Invalid token payload")
    try:
        user_id = uuid.UUID(str(payload["sub"]))
    except ValueError:
        raise AuthenticationError("Unauthorized - Invalid token payload")

    return AuthenticatedUser(id=user_id, role=role)


def ensure_owner_or_admin(
    user: AuthenticatedUser,
    owner_id: uuid.UUID,
    message: str = "Forbidden - You can only modify your own content",
) -> None:
    """Raise PermissionDeniedError unless the caller owns the resource or is an admin."""
    if user.is_admin or str(user.id) == str(owner_id):
        return
    raise PermissionDeniedError(message, context={"user_id": str(user.id)})
