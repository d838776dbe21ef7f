"""Lightweight SQL migrations runner.

Applies .sql files in lexical order from `media_api/db/migrations/` and
records applied filenames in a `schema_migrations` table so each file runs
once per database. Statements are split on ';' because SQLite's DB-API does
not accept multi-statement strings.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

_JOURNAL_DDL = (
    "CREATE TABLE IF NOT EXISTS schema_migrations ("
    "filename TEXT PRIMARY KEY, applied_at TEXT NOT NULL)"
)


def _iter_sql_files(root: Path) -> Iterable[Path]:
    for p in sorted(root.glob("*.sql")):
        if "rollback" in p.name.lower():
            continue
        yield p


def _iter_statements(sql: str) -> Iterable[str]:
    for stmt in sql.split(";"):
        lines = [line for line in stmt.splitlines() if not line.strip().startswith("--")]
        s = "\n".join(lines).strip()
        if not s or s.upper() in {"BEGIN", "COMMIT", "END"}:
            continue
        yield s


def _applied(conn: Connection) -> set[str]:
    rows = conn.execute(sql_text("SELECT filename FROM schema_migrations")).all()
    return {str(row[0]) for row in rows}


def apply_migrations(engine: Engine, migrations_dir: str | os.PathLike[str] | None = None) -> list[str]:
    """Apply pending migrations and return the filenames applied by this call."""
    root = Path(migrations_dir) if migrations_dir is not None else MIGRATIONS_DIR
    if not root.exists():
        logger.warning("db.migrations_dir_missing", extra={"path": str(root)})
        return []

    newly_applied: list[str] = []
    with engine.begin() as conn:
        conn.exec_driver_sql(_JOURNAL_DDL)
        applied = _applied(conn)
        for sql_path in _iter_sql_files(root):
            fname = sql_path.name
            if fname in applied:
                continue
            for statement in _iter_statements(sql_path.read_text(encoding="utf-8")):
                conn.exec_driver_sql(statement)
            conn.execute(
                sql_text("INSERT INTO schema_migrations (filename, applied_at) VALUES (:f, :t)"),
                {
                    "f": fname,
                    # ISO-8601 UTC without fractional seconds
                    "t": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
                },
            )
            newly_applied.append(fname)
            logger.info("db.migration_applied", extra={"migration": fname})
    return newly_applied


__all__ = ["MIGRATIONS_DIR", "apply_migrations"]
