"""Fetch recent articles for a user's keywords from the news provider.

The provider may answer with a mapping holding ``articles``, with a bare
list, or with something unusable, and each article may be a plain mapping or
an object exposing attributes. Everything is normalized here into
:class:`NewsArticle` so nothing past this module has to care.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Protocol, Sequence

from newsfeed.config import NewsApiSettings
from newsfeed.schemas.articles import ArticleSource, NewsArticle
from newsfeed.services.news_client import MAX_PAGE_SIZE, NewsApiClient


logger = logging.getLogger("newsfeed.news")

DEFAULT_LIMIT = 20
QUERY_JOINER = " AND "
ARTICLE_FIELDS = ("title", "description", "url", "urlToImage", "publishedAt", "author")


class NewsProvider(Protocol):
    async def get_everything(
        self, q: str, sort_by: str = ..., language: str = ..., page_size: int = ...
    ) -> Any: ...


@dataclass
class FetchOutcome:
    articles: List[NewsArticle] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def keyword_text(keyword: Any) -> str:
    if isinstance(keyword, str):
        return keyword
    if isinstance(keyword, Mapping):
        return str(keyword["keyword"])
    return str(keyword.keyword)


def build_query(keywords: Iterable[Any]) -> str:
    # Terms are AND-ed: an article has to match every keyword of the user.
    return QUERY_JOINER.join(keyword_text(k) for k in keywords)


# --- response normalization ---

def _read(obj: Any, name: str) -> Any:
    value = getattr(obj, name, None)
    if callable(value):
        value = value()
    return value


def _source_from(raw: Any) -> Optional[ArticleSource]:
    if raw is None:
        return None
    if isinstance(raw, Mapping):
        return ArticleSource(name=raw.get("name"))
    return ArticleSource(name=_read(raw, "name"))


def _article_from_mapping(item: Mapping[str, Any]) -> NewsArticle:
    values = {name: item.get(name) for name in ARTICLE_FIELDS}
    return NewsArticle(**values, source=_source_from(item.get("source")))


def _article_from_accessors(item: Any) -> NewsArticle:
    values = {name: _read(item, name) for name in ARTICLE_FIELDS}
    return NewsArticle(**values, source=_source_from(_read(item, "source")))


def normalize_article(item: Any) -> NewsArticle:
    if isinstance(item, Mapping):
        return _article_from_mapping(item)
    return _article_from_accessors(item)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def response_items(response: Any) -> Sequence[Any]:
    """Pick the article sequence out of whatever the provider returned."""
    if isinstance(response, Mapping):
        items = response.get("articles")
        return items if _is_sequence(items) else []
    if _is_sequence(response):
        return response
    return []


def normalize_response(response: Any, limit: int) -> List[NewsArticle]:
    return [normalize_article(item) for item in response_items(response)[:limit]]


class NewsArticleService:
    def __init__(self, provider: Optional[NewsProvider]) -> None:
        # provider is None when no API key is configured
        self.provider = provider

    @classmethod
    def from_settings(cls, settings: NewsApiSettings) -> "NewsArticleService":
        if not settings.api_key:
            logger.info(
                "NEWS_API_KEY is not set; article feed disabled",
                extra={"event": "news_provider_disabled"},
            )
            return cls(None)
        return cls(NewsApiClient(settings.api_key, base_url=settings.base_url, timeout=settings.timeout))

    @property
    def enabled(self) -> bool:
        return self.provider is not None

    async def search(self, query: str, limit: int) -> FetchOutcome:
        """Run one provider query; failures are returned, not raised."""
        if self.provider is None:
            return FetchOutcome()
        page_size = min(limit, MAX_PAGE_SIZE)
        try:
            response = await self.provider.get_everything(
                q=query,
                sort_by="publishedAt",
                language="en",
                page_size=page_size,
            )
            return FetchOutcome(articles=normalize_response(response, page_size))
        except Exception as exc:
            return FetchOutcome(error=exc)

    async def fetch_articles_for_keywords(self, keywords: Sequence[Any], limit: int = DEFAULT_LIMIT) -> List[NewsArticle]:
        if not keywords or self.provider is None or limit < 1:
            return []
        try:
            query = build_query(keywords)
        except (AttributeError, KeyError, TypeError):
            logger.exception("Could not build news query", extra={"event": "news_query_invalid"})
            return []
        outcome = await self.search(query, limit)
        if not outcome.ok:
            logger.error(
                "NewsAPI error: %s",
                outcome.error,
                exc_info=outcome.error,
                extra={"event": "news_fetch_failed", "query": query},
            )
            return []
        logger.debug(
            "Fetched articles",
            extra={"event": "news_fetched", "query": query, "count": len(outcome.articles)},
        )
        return outcome.articles

    async def aclose(self) -> None:
        close = getattr(self.provider, "aclose", None)
        if close is not None:
            await close()
