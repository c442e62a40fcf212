"""Database schema DDL definitions and initialization utilities.

Tables:
  - subscriptions: one row per recurring charge (UUID primary key)
  - metadata: key/value store (schema version, cached exchange rates)
"""

from __future__ import annotations
import sqlite3
from typing import Sequence
from pathlib import Path

BASIC_UTC_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"

SUBSCRIPTIONS_DDL = f"""
CREATE TABLE IF NOT EXISTS subscriptions (
    id TEXT PRIMARY KEY, -- UUID string
    name TEXT NOT NULL,
    price REAL NOT NULL CHECK (price > 0),
    currency TEXT NOT NULL DEFAULT 'USD',
    billing_cycle TEXT NOT NULL DEFAULT 'Monthly' CHECK (billing_cycle IN ('Monthly','Yearly')),
    category TEXT NOT NULL DEFAULT 'Entertainment',
    start_date TEXT NOT NULL, -- ISO date (YYYY-MM-DD)
    color_hex TEXT NOT NULL DEFAULT '#5E5CE6',
    icon_name TEXT NOT NULL DEFAULT 'creditcard.fill',
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

METADATA_DDL = f"""
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

SUBSCRIPTIONS_START_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_subscriptions_start ON subscriptions(start_date);"
)
SUBSCRIPTIONS_CATEGORY_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_subscriptions_category ON subscriptions(category);"
)

DDL_ORDER: Sequence[str] = (
    SUBSCRIPTIONS_DDL,
    METADATA_DDL,
)


def init_db(path: Path) -> None:
    """Create all tables idempotently.

    Parameters
    ----------
    path: Path to SQLite database file.
    """
    conn = sqlite3.connect(path)
    try:
        cur = conn.cursor()
        for ddl in DDL_ORDER:
            cur.execute(ddl)
        _ensure_indexes(cur)
        conn.commit()
    finally:
        conn.close()


def _ensure_indexes(cur: sqlite3.Cursor) -> None:
    """Create indexes, tolerating legacy schemas missing newer columns."""
    for ddl in (SUBSCRIPTIONS_START_INDEX_DDL, SUBSCRIPTIONS_CATEGORY_INDEX_DDL):
        try:
            cur.execute(ddl)
        except sqlite3.OperationalError:
            # Legacy tables may lack columns; migration creates the index later.
            continue
