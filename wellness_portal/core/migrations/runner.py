"""SQLite migration runner for the service's local state database."""

from __future__ import annotations

import logging
import sqlite3
import time
from pathlib import Path

LOGGER = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "sql"


def pending_migrations(connection: sqlite3.Connection) -> list[Path]:
    """Return migration files not yet recorded in ``schema_migrations``."""
    applied = {
        row[0] for row in connection.execute("SELECT migration_id FROM schema_migrations")
    }
    return [path for path in sorted(MIGRATIONS_DIR.glob("*.sql")) if path.name not in applied]


def apply_migrations(database_path: Path) -> list[str]:
    """Apply outstanding SQL migrations in filename order; return their ids."""
    database_path.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(str(database_path))
    applied: list[str] = []
    try:
        connection.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
              migration_id TEXT PRIMARY KEY,
              applied_at INTEGER NOT NULL
            )
            """
        )
        for migration_file in pending_migrations(connection):
            connection.executescript(migration_file.read_text(encoding="utf-8"))
            connection.execute(
                "INSERT INTO schema_migrations(migration_id, applied_at) VALUES (?, ?)",
                (migration_file.name, int(time.time())),
            )
            applied.append(migration_file.name)
        connection.commit()
    finally:
        connection.close()
    if applied:
        LOGGER.info("sqlite_migrations_applied: %s", ", ".join(applied))
    return applied
