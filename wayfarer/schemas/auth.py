"""
Wayfarer Backend - Authentication Schemas
"""

import uuid

from pydantic import EmailStr, Field

from wayfarer.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    login: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8, max_length=100)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserPublic(CamelModel):
    """A user as exposed over the API. Never carries the password hash."""
    id: uuid.UUID
    login: str
    email: str
    role: str


class AuthResponse(CamelModel):
    user: UserPublic
    token: str


class MeResponse(CamelModel):
    user: UserPublic
