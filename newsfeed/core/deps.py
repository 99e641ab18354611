from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsfeed.config import NEWS_API
from newsfeed.core.security import decode_token
from newsfeed.db.sa import get_session
from newsfeed.models.auth_models import User
from newsfeed.models.keyword_models import Keyword
from newsfeed.services.news_articles import NewsArticleService


logger = logging.getLogger("newsfeed.auth.deps")
bearer_scheme = HTTPBearer()

_news_service: Optional[NewsArticleService] = None


async def get_current_user(
    token: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> User:
    try:
        payload = decode_token(token.credentials)
        if payload.get("type") != "access":
            logger.warning(
                "Access token with invalid type",
                extra={"event": "access_token_invalid_type"},
            )
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
        sub = payload.get("sub")
        if not sub:
            logger.warning(
                "Access token missing subject",
                extra={"event": "access_token_missing_sub"},
            )
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject")
        user_id = uuid.UUID(str(sub))
    except (JWTError, ValueError):
        logger.warning(
            "Access token invalid or expired",
            extra={"event": "access_token_invalid_or_expired"},
        )
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    res = await session.execute(select(User).where(User.id == user_id))
    user = res.scalar_one_or_none()
    if not user or not user.is_active:
        logger.warning(
            "User inactive or not found for token",
            extra={"event": "access_token_user_not_found", "user_id": str(user_id)},
        )
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User inactive or not found")
    return user


async def get_owned_keyword(
    keyword_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Keyword:
    """Load a keyword by id; 404 when missing, 403 when owned by someone else."""
    keyword = await session.get(Keyword, keyword_id)
    if keyword is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Keyword not found")
    if keyword.user_id != current_user.id:
        logger.warning(
            "Keyword access denied",
            extra={"event": "keyword_access_denied", "user_id": str(current_user.id), "keyword_id": keyword_id},
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied.")
    return keyword


def get_news_service() -> NewsArticleService:
    global _news_service
    if _news_service is None:
        _news_service = NewsArticleService.from_settings(NEWS_API)
    return _news_service


async def close_news_service() -> None:
    global _news_service
    if _news_service is not None:
        await _news_service.aclose()
        _news_service = None
