from __future__ import annotations

import uuid
from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional


PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 128


class Credentials(BaseModel):
    """E-mail/password pair posted by the sign-in and sign-up forms."""

    email: EmailStr
    password: str


class RegisterRequest(Credentials):
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)


class LoginRequest(Credentials):
    pass


class TokenPair(BaseModel):
    """Returned by /register, /login and /refresh.

    The client sends ``access_token`` as a bearer header on /keywords and
    /articles and keeps ``refresh_token`` for the next /refresh or /logout.
    """

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


class UserProfile(BaseModel):
    id: uuid.UUID
    email: EmailStr
    is_active: bool


class LogoutResponse(BaseModel):
    # "single" carries the jti of the revoked refresh token
    revoked: Literal["all", "single"]
    jti: Optional[str] = None
