"""Database bootstrap for the SQL document store.

Exposes the engine factory and the SQL migrations runner. The DB layer does
not leak ORM models into route handlers.
"""

from media_api.db.base import dispose_engine, get_engine
from media_api.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "dispose_engine",
    "apply_migrations",
]
