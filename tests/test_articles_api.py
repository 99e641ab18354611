from __future__ import annotations

import types
import uuid
from datetime import datetime, timedelta, timezone

from newsfeed.schemas.articles import NewsArticle


class FakeScalars:
    def __init__(self, rows):
        self._rows = rows

    def all(self):
        return list(self._rows)


class FakeResult:
    def __init__(self, rows):
        self._rows = rows

    def scalars(self):
        return FakeScalars(self._rows)


class KeywordRows:
    def __init__(self, rows):
        self.rows = rows

    async def execute(self, stmt):
        user_id = stmt.compile().params["user_id_1"]
        return FakeResult(sorted((r for r in self.rows if r.user_id == user_id), key=lambda r: r.created_at))

    async def close(self):
        return None


class RecordingNewsService:
    def __init__(self, articles):
        self.articles = articles
        self.calls = []

    async def fetch_articles_for_keywords(self, keywords, limit=20):
        self.calls.append(([k.keyword for k in keywords], limit))
        return self.articles


def _install(rows, service):
    from newsfeed import main as main_mod
    from newsfeed.core.deps import get_news_service
    from newsfeed.db.sa import get_session

    session = KeywordRows(rows)

    async def _gen():
        yield session

    main_mod.app.dependency_overrides[get_session] = _gen
    main_mod.app.dependency_overrides[get_news_service] = lambda: service


def _kw(user_id, text, minutes_ago):
    ts = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
    return types.SimpleNamespace(id=minutes_ago, user_id=user_id, keyword=text, created_at=ts)


def test_articles_returns_normalized_list(client, current_user_id):
    service = RecordingNewsService([
        NewsArticle(
            title="Test Article 1",
            description="Test Description 1",
            url="https://example.com/article1",
            urlToImage="https://example.com/image1.jpg",
            publishedAt="2024-01-01T00:00:00Z",
            author="Test Author 1",
            source={"name": "Test Source 1"},
        ),
        NewsArticle(title="Test Article 2"),
    ])
    _install([_kw(current_user_id, "technology", 2)], service)

    resp = client.get("/articles")
    assert resp.status_code == 200
    data = resp.json()
    assert len(data) == 2
    assert data[0]["title"] == "Test Article 1"
    assert data[0]["author"] == "Test Author 1"
    assert data[0]["source"] == {"name": "Test Source 1"}
    # absent fields are serialized as null
    assert data[1]["urlToImage"] is None
    assert data[1]["source"] is None


def test_articles_uses_only_current_users_keywords(client, current_user_id):
    service = RecordingNewsService([])
    _install([
        _kw(current_user_id, "technology", 10),
        _kw(uuid.uuid4(), "sports", 5),
        _kw(current_user_id, "AI", 1),
    ], service)

    resp = client.get("/articles")
    assert resp.status_code == 200
    assert resp.json() == []
    assert service.calls == [(["technology", "AI"], 20)]


def test_articles_without_keywords_is_empty(client):
    from newsfeed.services.news_articles import NewsArticleService

    class ExplodingProvider:
        async def get_everything(self, **kwargs):
            raise AssertionError("provider must not be called")

    _install([], NewsArticleService(ExplodingProvider()))

    resp = client.get("/articles")
    assert resp.status_code == 200
    assert resp.json() == []


def test_articles_provider_failure_is_empty(client, current_user_id):
    from newsfeed.services.news_articles import NewsArticleService

    class FailingProvider:
        async def get_everything(self, **kwargs):
            raise RuntimeError("API Error")

    _install([_kw(current_user_id, "technology", 1)], NewsArticleService(FailingProvider()))

    resp = client.get("/articles")
    assert resp.status_code == 200
    assert resp.json() == []


def test_articles_limit_is_validated(client, current_user_id):
    service = RecordingNewsService([])
    _install([_kw(current_user_id, "technology", 1)], service)

    assert client.get("/articles?limit=0").status_code == 422
    assert client.get("/articles?limit=101").status_code == 422
    assert client.get("/articles?limit=5").status_code == 200
    assert service.calls == [(["technology"], 5)]


def test_health(client):
    resp = client.get("/up")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
