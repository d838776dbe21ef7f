"""Application wiring: store selection, health and the console entry point."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from media_api import main
from media_api.config import AppConfig, StoreConfig
from media_api.db.base import dispose_engine
from media_api.logic.document_store import InMemoryDocumentStore
from media_api.logic.repository_records import SqlDocumentStore


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    for key in ("STORE_BACKEND", "DATABASE_URL", "AUTO_APPLY_MIGRATIONS", "PATCH_REVISION_MODE", "HOST", "PORT"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    yield tmp_path
    dispose_engine()


def test_build_store_selects_backend(tmp_path) -> None:
    memory = main.build_store(AppConfig(store=StoreConfig(backend="memory")))
    sql = main.build_store(AppConfig(store=StoreConfig(backend="sql", dsn=f"sqlite:///{tmp_path / 'app.db'}")))

    assert isinstance(memory, InMemoryDocumentStore)
    assert isinstance(sql, SqlDocumentStore)


def test_health_reports_backend() -> None:
    client = TestClient(main.create_app(config=AppConfig(store=StoreConfig(backend="memory"))))

    assert client.get("/health").json() == {"status": "ok", "store": "memory"}


def test_serve_runs_uvicorn_with_configured_address(monkeypatch) -> None:
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("HOST", "0.0.0.0")
    monkeypatch.setenv("PORT", "9001")
    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    main.serve()

    ((app, kwargs),) = calls
    assert isinstance(app, FastAPI)
    assert isinstance(app.state.store, InMemoryDocumentStore)
    assert kwargs == {"host": "0.0.0.0", "port": 9001, "log_config": None}
