"""Schema upgrades for the subscription store.

The metadata table records the integer schema version. `apply_migrations`
creates any missing tables, then runs each registered step above the stored
version in ascending order. Steps alter tables in place and keep every
existing row.
"""

from __future__ import annotations
from pathlib import Path
import logging
import sqlite3
from typing import Callable, Dict, Optional

from . import schema as schema_def
from .schema import init_db

SCHEMA_VERSION_KEY = "schema_version"
DEFAULT_CATEGORY = "Entertainment"

logger = logging.getLogger("suby.db.migrate")


def _read_version(conn: sqlite3.Connection) -> Optional[int]:
    try:
        row = conn.execute(
            "SELECT value FROM metadata WHERE key = ?", (SCHEMA_VERSION_KEY,)
        ).fetchone()
    except sqlite3.OperationalError:
        # no metadata table yet
        return None
    return int(row[0]) if row else None


def _write_version(conn: sqlite3.Connection, version: int) -> None:
    conn.execute(
        f"""
        INSERT INTO metadata (key, value) VALUES (?, ?)
        ON CONFLICT(key) DO UPDATE SET
            value = excluded.value,
            updated_at = ({schema_def.BASIC_UTC_NOW})
        """,
        (SCHEMA_VERSION_KEY, str(version)),
    )


def _has_column(conn: sqlite3.Connection, table: str, column: str) -> bool:
    return any(info[1] == column for info in conn.execute(f"PRAGMA table_info({table})"))


def _add_category_column(conn: sqlite3.Connection) -> None:
    """v2: subscriptions gain a category; older rows fall into the default one."""
    if not _has_column(conn, "subscriptions", "category"):
        conn.execute(
            "ALTER TABLE subscriptions ADD COLUMN category TEXT NOT NULL "
            f"DEFAULT '{DEFAULT_CATEGORY}'"
        )
        logger.info("added category column to subscriptions")
    conn.execute(schema_def.SUBSCRIPTIONS_CATEGORY_INDEX_DDL)


MIGRATIONS: Dict[int, Callable[[sqlite3.Connection], None]] = {
    2: _add_category_column,
}
CURRENT_SCHEMA_VERSION = max(MIGRATIONS)


def apply_migrations(db_path: Path) -> int:
    """Bring the database at ``db_path`` up to CURRENT_SCHEMA_VERSION and return it."""
    init_db(db_path)
    conn = sqlite3.connect(db_path)
    try:
        with conn:
            # a store without a recorded version predates versioning: treat as v1
            version = _read_version(conn) or 1
            for target in sorted(v for v in MIGRATIONS if v > version):
                MIGRATIONS[target](conn)
                logger.info("schema migrated", extra={"schema_version": target})
                version = target
            _write_version(conn, version)
        return version
    finally:
        conn.close()
