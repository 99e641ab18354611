import uuid

import pytest
import sys
from pathlib import Path

# Ensure repository root is on sys.path for `import newsfeed`
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from fastapi.testclient import TestClient


CURRENT_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def current_user_id():
    return CURRENT_USER_ID


@pytest.fixture()
def client(monkeypatch, current_user_id):
    # Patch DB init/close in lifespan to no-op
    import newsfeed.db.sa as db_sa

    async def _noop(*args, **kwargs):
        return None

    monkeypatch.setattr(db_sa, "init_sa_engine", _noop)
    monkeypatch.setattr(db_sa, "create_tables", _noop)
    monkeypatch.setattr(db_sa, "close_sa_engine", _noop)

    from newsfeed.core import deps as core_deps
    from newsfeed import main as main_mod

    async def fake_current_user():
        class User:
            id = current_user_id
            email = "tester@example.com"
            is_active = True

        return User()

    app = main_mod.app
    app.dependency_overrides[core_deps.get_current_user] = fake_current_user

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
