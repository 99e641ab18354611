from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from jose import JWTError
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from newsfeed.core.deps import get_current_user
from newsfeed.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from newsfeed.db.sa import get_session
from newsfeed.models.auth_models import RefreshToken, User
from newsfeed.schemas.auth import (
    LoginRequest,
    LogoutResponse,
    RefreshRequest,
    RegisterRequest,
    TokenPair,
    UserProfile,
)


router = APIRouter(tags=["auth"])
logger = logging.getLogger("newsfeed.auth")


async def _issue_token_pair(session: AsyncSession, user_id: uuid.UUID) -> tuple[TokenPair, RefreshToken]:
    """Create an access token and a persisted refresh token whose row id is the jti."""
    access_token = create_access_token(user_id)
    row = RefreshToken(user_id=user_id, token="", expires_at=datetime.now(timezone.utc))
    session.add(row)
    await session.flush()
    refresh_token = create_refresh_token(user_id, jti=str(row.id))
    claims = decode_token(refresh_token)
    row.token = refresh_token
    row.expires_at = datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
    return TokenPair(access_token=access_token, refresh_token=refresh_token), row


async def _revoke_all(session: AsyncSession, user_id: uuid.UUID) -> None:
    await session.execute(
        update(RefreshToken)
        .where(RefreshToken.user_id == user_id, RefreshToken.revoked == False)  # noqa: E712
        .values(revoked=True)
    )


def _refresh_claims(token: str) -> tuple[uuid.UUID, uuid.UUID]:
    """Return (user_id, jti) of a refresh token; raises JWTError/ValueError/KeyError."""
    claims = decode_token(token)
    if claims.get("type") != "refresh":
        raise ValueError("not a refresh token")
    return uuid.UUID(str(claims["sub"])), uuid.UUID(str(claims["jti"]))


@router.post("/register", response_model=TokenPair, status_code=201)
async def register(payload: RegisterRequest, session: AsyncSession = Depends(get_session)) -> TokenPair:
    res = await session.execute(select(User).where(User.email == payload.email))
    if res.scalar_one_or_none() is not None:
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(email=payload.email, password_hash=hash_password(payload.password))
    session.add(user)
    await session.flush()
    pair, _ = await _issue_token_pair(session, user.id)
    await session.commit()
    logger.info(
        "User registered",
        extra={"event": "user_registered", "user_id": str(user.id), "email": user.email},
    )
    return pair


@router.post("/login", response_model=TokenPair)
async def login(payload: LoginRequest, session: AsyncSession = Depends(get_session)) -> TokenPair:
    res = await session.execute(select(User).where(User.email == payload.email))
    user = res.scalar_one_or_none()
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.warning(
            "Login failed",
            extra={"event": "login_failed", "email": payload.email, "user_exists": user is not None},
        )
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.is_active:
        logger.warning(
            "Login blocked for inactive user",
            extra={"event": "login_inactive", "user_id": str(user.id)},
        )
        raise HTTPException(status_code=403, detail="User is inactive")

    pair, _ = await _issue_token_pair(session, user.id)
    await session.commit()
    logger.info("User login", extra={"event": "user_login", "user_id": str(user.id)})
    return pair


@router.post("/refresh", response_model=TokenPair)
async def refresh_tokens(payload: RefreshRequest, session: AsyncSession = Depends(get_session)) -> TokenPair:
    try:
        user_id, token_id = _refresh_claims(payload.refresh_token)
    except (JWTError, ValueError, KeyError):
        logger.warning("Refresh token rejected", extra={"event": "refresh_token_rejected"})
        raise HTTPException(status_code=401, detail="Invalid or expired refresh token")

    res = await session.execute(
        select(RefreshToken).where(
            RefreshToken.id == token_id,
            RefreshToken.token == payload.refresh_token,
        )
    )
    token_row = res.scalar_one_or_none()
    if token_row is None or token_row.revoked:
        # Replayed or unknown token: the whole session family is compromised
        logger.warning(
            "Refresh token reuse detected; revoking all sessions",
            extra={"event": "refresh_reuse_detected", "user_id": str(user_id), "jti": str(token_id)},
        )
        await _revoke_all(session, user_id)
        await session.commit()
        raise HTTPException(status_code=401, detail="Refresh token reuse detected; all sessions revoked")
    if token_row.expires_at <= datetime.now(timezone.utc):
        logger.warning(
            "Refresh token expired",
            extra={"event": "refresh_token_expired", "user_id": str(user_id), "jti": str(token_id)},
        )
        raise HTTPException(status_code=401, detail="Refresh token expired")
    if token_row.user_id != user_id:
        raise HTTPException(status_code=401, detail="Token/user mismatch")

    token_row.revoked = True
    await session.flush()
    pair, new_row = await _issue_token_pair(session, user_id)
    await session.commit()
    logger.info(
        "Tokens refreshed",
        extra={"event": "token_refreshed", "user_id": str(user_id), "old_jti": str(token_id), "new_jti": str(new_row.id)},
    )
    return pair


@router.get("/me", response_model=UserProfile)
async def me(current_user: User = Depends(get_current_user)) -> UserProfile:
    return UserProfile(id=current_user.id, email=current_user.email, is_active=current_user.is_active)


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    payload: RefreshRequest | None = None,
    all_sessions: bool = Query(False, description="Revoke all refresh tokens for current user"),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> LogoutResponse:
    if all_sessions or payload is None:
        await _revoke_all(session, current_user.id)
        await session.commit()
        logger.info("Logout all sessions", extra={"event": "logout_all", "user_id": str(current_user.id)})
        return LogoutResponse(revoked="all")

    try:
        token_user_id, token_id = _refresh_claims(payload.refresh_token)
    except (JWTError, ValueError, KeyError):
        logger.warning("Logout with malformed refresh token", extra={"event": "logout_token_rejected"})
        raise HTTPException(status_code=400, detail="Malformed or expired refresh token")

    if token_user_id != current_user.id:
        logger.warning(
            "Logout token does not belong to user",
            extra={"event": "logout_token_user_mismatch", "user_id": str(current_user.id), "jti": str(token_id)},
        )
        raise HTTPException(status_code=403, detail="Cannot revoke token of another user")

    await session.execute(
        update(RefreshToken)
        .where(RefreshToken.id == token_id, RefreshToken.user_id == current_user.id)
        .values(revoked=True)
    )
    await session.commit()
    logger.info(
        "Logout single session",
        extra={"event": "logout_single", "user_id": str(current_user.id), "jti": str(token_id)},
    )
    return LogoutResponse(revoked="single", jti=str(token_id))
