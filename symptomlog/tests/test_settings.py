from dataclasses import fields

import pytest
from fastapi.testclient import TestClient

from symptomlog.app import create_app
from symptomlog.context import build_context, build_kv_store
from symptomlog.settings import Settings
from symptomlog.storage.kv import InMemoryKeyValueStore
from symptomlog.storage.sql import SqlKeyValueStore


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ("JWT_SECRET", "JWT_ALGORITHM", "STORAGE_BACKEND",
                 "DATABASE_URL", "SQL_ECHO", "CORS_ORIGINS", "LOG_LEVEL"):
        # setenv first so teardown restores the original state, even after load_dotenv writes
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    return tmp_path / "missing.env"


def test_defaults(clean_env):
    s = Settings.from_env(clean_env)
    assert s.storage_backend == "memory"
    assert s.jwt_algorithm == "HS256"
    assert s.cors_origins == ["http://localhost:5173"]


def test_env_overrides(clean_env, monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "SQL")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("SQL_ECHO", "yes")
    s = Settings.from_env(clean_env)
    assert s.storage_backend == "sql"
    assert s.cors_origins == ["https://a.example", "https://b.example"]
    assert s.sql_echo is True


def test_dotenv_file_is_read(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("JWT_SECRET=from-dotenv\nLOG_LEVEL=debug\n")
    s = Settings.from_env(env_file)
    assert s.jwt_secret == "from-dotenv"
    assert s.log_level == "DEBUG"


def test_every_setting_is_consumed():
    # all read by create_app or build_context
    assert {f.name for f in fields(Settings)} == {
        "jwt_secret", "jwt_algorithm", "storage_backend", "database_url",
        "sql_echo", "cors_origins", "log_level",
    }


def test_unknown_backend_rejected():
    with pytest.raises(ValueError):
        Settings(storage_backend="redis")


def test_backend_selection():
    assert isinstance(build_kv_store(Settings()), InMemoryKeyValueStore)
    store = build_kv_store(Settings(storage_backend="sql", database_url="sqlite://"))
    try:
        assert isinstance(store, SqlKeyValueStore)
    finally:
        store.close()


def test_end_to_end_on_sql_backend(auth_headers):
    settings = Settings(jwt_secret="test-secret", storage_backend="sql", database_url="sqlite://")
    with TestClient(create_app(build_context(settings))) as client:
        first = client.post("/analyze", headers=auth_headers("bob"), json={"symptoms": ["fever"], "severity": "mild"})
        client.post("/analyze", headers=auth_headers("bobby"), json={"symptoms": ["cough"], "severity": "severe"})
        second = client.post("/analyze", headers=auth_headers("bob"), json={"symptoms": ["nausea"], "severity": "moderate"})
        entries = client.get("/history", headers=auth_headers("bob")).json()["entries"]
    assert [e["id"] for e in entries] == [second.json()["entryId"], first.json()["entryId"]]
