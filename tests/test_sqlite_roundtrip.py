from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from newsfeed.db.base import UTCDateTime


class RecordingNewsService:
    def __init__(self):
        self.calls = []

    async def fetch_articles_for_keywords(self, keywords, limit=20):
        self.calls.append([k.keyword for k in keywords])
        return [{"title": "From the feed", "source": {"name": "Wire"}}]


@pytest.fixture()
def db_client(monkeypatch, tmp_path):
    # Real lifespan and sessions against a throwaway SQLite file
    import newsfeed.db.sa as db_sa
    from newsfeed import main as main_mod

    monkeypatch.setattr(db_sa, "DB_DSN", f"sqlite:///{tmp_path / 'newsfeed.db'}")
    app = main_mod.app
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_register_keywords_refresh_logout_on_sqlite(db_client):
    from newsfeed import main as main_mod
    from newsfeed.core.deps import get_news_service

    resp = db_client.post("/register", json={"email": "reader@example.com", "password": "secret1"})
    assert resp.status_code == 201
    tokens = resp.json()
    auth = _bearer(tokens["access_token"])

    me = db_client.get("/me", headers=auth)
    assert me.status_code == 200
    assert me.json()["email"] == "reader@example.com"

    created = db_client.post("/keywords", json={"keyword": {"keyword": "technology"}}, headers=auth)
    assert created.status_code == 201
    # timestamps keep their UTC offset after the SQLite round-trip
    assert created.json()["created_at"].endswith(("Z", "+00:00"))

    dup = db_client.post("/keywords", json={"keyword": {"keyword": "technology"}}, headers=auth)
    assert dup.status_code == 422

    listed = db_client.get("/keywords", headers=auth)
    assert listed.status_code == 200
    assert [k["keyword"] for k in listed.json()] == ["technology"]
    assert listed.json()[0]["updated_at"].endswith(("Z", "+00:00"))

    service = RecordingNewsService()
    main_mod.app.dependency_overrides[get_news_service] = lambda: service
    feed = db_client.get("/articles", headers=auth)
    assert feed.status_code == 200
    assert feed.json()[0]["title"] == "From the feed"
    assert service.calls == [["technology"]]

    refreshed = db_client.post("/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200
    rotated = refreshed.json()
    assert rotated["refresh_token"] != tokens["refresh_token"]

    # the rotated-out token is revoked; replaying it kills every session
    replay = db_client.post("/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert replay.status_code == 401
    assert db_client.post("/refresh", json={"refresh_token": rotated["refresh_token"]}).status_code == 401


def test_logout_single_then_refresh_rejected_on_sqlite(db_client):
    tokens = db_client.post("/register", json={"email": "leaver@example.com", "password": "secret1"}).json()
    auth = _bearer(tokens["access_token"])

    out = db_client.post("/logout", json={"refresh_token": tokens["refresh_token"]}, headers=auth)
    assert out.status_code == 200
    assert out.json()["revoked"] == "single"

    resp = db_client.post("/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 401


def test_delete_keyword_on_sqlite(db_client):
    tokens = db_client.post("/register", json={"email": "pruner@example.com", "password": "secret1"}).json()
    auth = _bearer(tokens["access_token"])
    kw_id = db_client.post("/keywords", json={"keyword": {"keyword": "AI"}}, headers=auth).json()["id"]

    assert db_client.delete(f"/keywords/{kw_id}", headers=auth).status_code == 200
    assert db_client.get("/keywords", headers=auth).json() == []
    assert db_client.delete(f"/keywords/{kw_id}", headers=auth).status_code == 404


def test_utc_datetime_tags_naive_values():
    col = UTCDateTime()
    naive = datetime(2024, 1, 1, 12, 0)

    loaded = col.process_result_value(naive, None)
    assert loaded == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    # comparable with aware "now", which is what /refresh does with expires_at
    assert loaded < datetime.now(timezone.utc)

    shifted = datetime(2024, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    assert col.process_bind_param(shifted, None) == loaded
    assert col.process_bind_param(None, None) is None
