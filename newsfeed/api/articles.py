# newsfeed/api/articles.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsfeed.core.deps import get_current_user, get_news_service
from newsfeed.db.sa import get_session
from newsfeed.models.auth_models import User
from newsfeed.models.keyword_models import Keyword
from newsfeed.schemas.articles import NewsArticle
from newsfeed.services.news_articles import DEFAULT_LIMIT, NewsArticleService
from newsfeed.services.news_client import MAX_PAGE_SIZE

router = APIRouter(prefix="/articles", tags=["articles"])


@router.get("", response_model=List[NewsArticle],
            summary="Recent articles matching all of the current user's keywords")
async def list_articles(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    news: NewsArticleService = Depends(get_news_service),
) -> List[NewsArticle]:
    """
    Empty list when the user has no keywords, when no provider key is
    configured, or when the provider call fails.
    """
    stmt = select(Keyword).where(Keyword.user_id == current_user.id).order_by(Keyword.created_at.asc())
    res = await session.execute(stmt)
    keywords = list(res.scalars().all())
    return await news.fetch_articles_for_keywords(keywords, limit=limit)
