import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure the project root is on sys.path so `import symptomlog` works when running
# pytest from the repository root without an editable install.
ROOT_DIR = Path(__file__).resolve().parents[2]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from symptomlog.app import create_app
from symptomlog.auth.jwt import create_access_token
from symptomlog.context import build_context
from symptomlog.db.session import make_engine
from symptomlog.settings import Settings
from symptomlog.storage.kv import InMemoryKeyValueStore
from symptomlog.storage.sql import SqlKeyValueStore

TEST_SECRET = "test-secret"


@pytest.fixture
def settings():
    return Settings(jwt_secret=TEST_SECRET, storage_backend="memory", cors_origins=["http://testserver"])


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def sql_kv():
    store = SqlKeyValueStore(make_engine("sqlite://"))
    yield store
    store.close()


@pytest.fixture
def context(settings, kv):
    return build_context(settings, kv=kv)


@pytest.fixture
def client(context):
    with TestClient(create_app(context)) as c:
        yield c


@pytest.fixture
def make_token():
    def _make(sub: str, email: str = "u@example.com", **claims):
        return create_access_token({"sub": sub, "email": email, **claims}, TEST_SECRET)
    return _make


@pytest.fixture
def auth_headers(make_token):
    def _headers(sub: str = "user-1", **claims):
        return {"Authorization": f"Bearer {make_token(sub, **claims)}"}
    return _headers
