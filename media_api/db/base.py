"""SQLAlchemy engine factory for the SQL document store.

Targets PostgreSQL in production and SQLite for local development and CI.
No ORM models are defined; the store issues plain SQL text.
"""

from __future__ import annotations

import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///:memory:"


def _db_url() -> str:
    return os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL


# Module-level cache so every store built for the same URL shares one engine
_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def get_engine(url: str | None = None) -> Engine:
    """Return a cached SQLAlchemy Engine for `url`.

    SQLite in-memory URLs use a StaticPool so the single connection (and so
    the database itself) survives across worker threads.
    """
    global _ENGINE, _ENGINE_URL
    resolved_url = url or _db_url()

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        kwargs: dict = {"future": True, "pool_pre_ping": True}
        if resolved_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in resolved_url:
                kwargs["poolclass"] = StaticPool
        _ENGINE = create_engine(resolved_url, **kwargs)
        _ENGINE_URL = resolved_url
        logger.info("db.engine_created", extra={"dialect": _ENGINE.dialect.name})

    return _ENGINE


def dispose_engine() -> None:
    global _ENGINE, _ENGINE_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_URL = None


__all__ = ["DEFAULT_DATABASE_URL", "get_engine", "dispose_engine"]
