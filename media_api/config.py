"""Configuration for the media records service.

Loads application configuration with the following rules:
- Primary source: `media_api_config.json` at the project root.
- Overrides: text files under `config/`, then environment variables.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from media_api.db.base import DEFAULT_DATABASE_URL

CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("media_api_config.json")
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


def _as_bool(text: Optional[str]) -> bool:
    return str(text).strip().lower() in {"1", "true", "yes", "on"}


class StoreConfig(BaseModel):
    backend: str = Field(default="sql")
    dsn: str = Field(default=DEFAULT_DATABASE_URL)
    auto_migrate: bool = Field(default=True)

    @field_validator("backend")
    @classmethod
    def backend_must_be_known(cls, v: str) -> str:
        allowed = {"sql", "memory"}
        if v not in allowed:
            raise ValueError(f"store.backend must be one of {sorted(allowed)}")
        return v

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("store.dsn must be a non-empty string")
        return v


class ConcurrencyConfig(BaseModel):
    # strict: PATCH writes require the revision it read; overwrite: unconditional
    patch_revision_mode: str = Field(default="strict")

    @field_validator("patch_revision_mode")
    @classmethod
    def mode_must_be_allowed(cls, v: str) -> str:
        allowed = {"strict", "overwrite"}
        if v not in allowed:
            raise ValueError(f"concurrency.patch_revision_mode must be one of {sorted(allowed)}")
        return v


class UpstreamConfig(BaseModel):
    timeout_seconds: float = Field(default=30.0, gt=0)


class ServerConfig(BaseModel):
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")

    @field_validator("level")
    @classmethod
    def level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("logging.level must be a standard logging level name")
        return level


class AppConfig(BaseModel):
    store: StoreConfig = Field(default_factory=StoreConfig)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)
    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            data = json.loads(path.read_text(encoding="utf-8"))
            return data if isinstance(data, dict) else {}
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) media_api_config.json at project root
    4) Defaults
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    backend = _env("STORE_BACKEND") or _read_config_file("store.backend") or _base("store.backend", "sql")
    dsn = _env("DATABASE_URL") or _read_config_file("database.url") or _base("store.dsn", DEFAULT_DATABASE_URL)
    auto_migrate_text = _env("AUTO_APPLY_MIGRATIONS") or _read_config_file("store.auto_migrate") or _base("store.auto_migrate", "true")
    revision_mode = (
        _env("PATCH_REVISION_MODE")
        or _read_config_file("concurrency.patch_revision_mode")
        or _base("concurrency.patch_revision_mode", "strict")
    )
    timeout_text = (
        _env("UPSTREAM_TIMEOUT_SECONDS")
        or _read_config_file("upstream.timeout_seconds")
        or _base("upstream.timeout_seconds", "30")
    )
    log_level = _env("LOG_LEVEL") or _read_config_file("logging.level") or _base("logging.level", "INFO")
    host = _env("HOST") or _read_config_file("server.host") or _base("server.host", "127.0.0.1")
    port_text = _env("PORT") or _read_config_file("server.port") or _base("server.port", "8000")

    try:
        timeout_seconds = float(str(timeout_text).strip())
    except ValueError:
        logger.error("Invalid upstream timeout: %r", timeout_text)
        raise

    try:
        return AppConfig(
            store=StoreConfig(
                backend=str(backend).strip(),
                dsn=str(dsn),
                auto_migrate=_as_bool(auto_migrate_text),
            ),
            concurrency=ConcurrencyConfig(patch_revision_mode=str(revision_mode).strip()),
            upstream=UpstreamConfig(timeout_seconds=timeout_seconds),
            server=ServerConfig(host=str(host).strip(), port=str(port_text).strip()),
            logging=LoggingConfig(level=str(log_level)),
        )
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "StoreConfig",
    "ConcurrencyConfig",
    "UpstreamConfig",
    "ServerConfig",
    "LoggingConfig",
    "load_config",
]
