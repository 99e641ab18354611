from __future__ import annotations

import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt
from passlib.context import CryptContext


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-insecure-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(subject: str | uuid.UUID, expires_minutes: Optional[int] = None) -> str:
    claims: Dict[str, Any] = {
        "sub": str(subject),
        "type": "access",
        "exp": _utcnow() + timedelta(minutes=expires_minutes or ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(claims, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def create_refresh_token(subject: str | uuid.UUID, jti: Optional[str] = None,
                         expires_days: Optional[int] = None) -> str:
    claims: Dict[str, Any] = {
        "sub": str(subject),
        "type": "refresh",
        "jti": jti or str(uuid.uuid4()),
        "exp": _utcnow() + timedelta(days=expires_days or REFRESH_TOKEN_EXPIRE_DAYS),
    }
    return jwt.encode(claims, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and verify a JWT; raises ``jose.JWTError`` when invalid or expired."""
    return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
