"""Configuration loading precedence and validation."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from media_api.config import load_config
from media_api.db.base import DEFAULT_DATABASE_URL

_ENV_KEYS = [
    "STORE_BACKEND",
    "DATABASE_URL",
    "AUTO_APPLY_MIGRATIONS",
    "PATCH_REVISION_MODE",
    "UPSTREAM_TIMEOUT_SECONDS",
    "LOG_LEVEL",
    "HOST",
    "PORT",
]


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_defaults() -> None:
    cfg = load_config()

    assert cfg.store.backend == "sql"
    assert cfg.store.dsn == DEFAULT_DATABASE_URL
    assert cfg.store.auto_migrate is True
    assert cfg.concurrency.patch_revision_mode == "strict"
    assert cfg.upstream.timeout_seconds == 30.0
    assert cfg.logging.level == "INFO"
    assert cfg.server.host == "127.0.0.1"
    assert cfg.server.port == 8000


def test_precedence_env_over_files_over_json(isolated, monkeypatch) -> None:
    (isolated / "media_api_config.json").write_text(
        json.dumps(
            {
                "store": {"backend": "memory", "auto_migrate": False},
                "concurrency": {"patch_revision_mode": "overwrite"},
                "upstream": {"timeout_seconds": 5},
            }
        ),
        encoding="utf-8",
    )
    (isolated / "config").mkdir()
    (isolated / "config" / "upstream.timeout_seconds").write_text("7.5\n", encoding="utf-8")
    monkeypatch.setenv("PATCH_REVISION_MODE", "strict")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    cfg = load_config()

    assert cfg.store.backend == "memory"
    assert cfg.store.auto_migrate is False
    assert cfg.upstream.timeout_seconds == 7.5
    assert cfg.concurrency.patch_revision_mode == "strict"
    assert cfg.logging.level == "DEBUG"


@pytest.mark.parametrize(
    "key, value",
    [
        ("PATCH_REVISION_MODE", "sometimes"),
        ("STORE_BACKEND", "couch"),
        ("UPSTREAM_TIMEOUT_SECONDS", "0"),
        ("LOG_LEVEL", "LOUD"),
        ("PORT", "0"),
        ("PORT", "http"),
    ],
)
def test_invalid_values_are_rejected(monkeypatch, key: str, value: str) -> None:
    monkeypatch.setenv(key, value)

    with pytest.raises(ValidationError):
        load_config()


def test_non_numeric_timeout_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("UPSTREAM_TIMEOUT_SECONDS", "soon")

    with pytest.raises(ValueError):
        load_config()
