"""Data Access Layer for the subscription store.

Responsibilities
----------------
- Own the lifetime of Subscription records: insert, replace-by-id, delete.
- Hand out read-only snapshots (lists of immutable Subscription values) to
  the scheduling and aggregation services, which never touch the store.
- Expose the metadata key/value table used for the schema version and the
  persisted exchange-rate cache.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
import sqlite3
from typing import Any, Dict, Iterator, List, Optional
from uuid import UUID

from suby.models.subscription import Subscription

UTC_NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"

_COLUMNS = (
    "id",
    "name",
    "price",
    "currency",
    "billing_cycle",
    "category",
    "start_date",
    "color_hex",
    "icon_name",
    "created_at",
    "updated_at",
)


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path

    # ------------------------------------------------------------------
    # Connection helpers
    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:  # commit on success, rollback on error
                yield conn
        finally:
            conn.close()

    @staticmethod
    def _row_to_subscription(row: sqlite3.Row) -> Subscription:
        data: Dict[str, Any] = dict(row)
        data["start_date"] = date.fromisoformat(data["start_date"])
        for key in ("created_at", "updated_at"):
            if data.get(key):
                data[key] = datetime.fromisoformat(data[key].replace("Z", "+00:00"))
        return Subscription(**data)

    @staticmethod
    def _subscription_params(sub: Subscription) -> tuple:
        now = datetime.now(timezone.utc)
        return (
            str(sub.id),
            sub.name,
            sub.price,
            sub.currency,
            sub.billing_cycle.value,
            sub.category.value,
            sub.start_date.isoformat(),
            sub.color_hex,
            sub.icon_name,
            (sub.created_at or now).isoformat(),
            (sub.updated_at or now).isoformat(),
        )

    # ------------------------------------------------------------------
    # Subscription reads
    def list_subscriptions(self) -> List[Subscription]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM subscriptions "
                "ORDER BY start_date ASC, name COLLATE NOCASE ASC"
            )
            return [self._row_to_subscription(r) for r in cur.fetchall()]

    def get_subscription(self, subscription_id: UUID) -> Optional[Subscription]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM subscriptions WHERE id = ?",
                (str(subscription_id),),
            )
            row = cur.fetchone()
            return self._row_to_subscription(row) if row else None

    def count_subscriptions(self) -> int:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM subscriptions")
            row = cur.fetchone()
            return int(row[0] if row and row[0] is not None else 0)

    # ------------------------------------------------------------------
    # Subscription writes
    def insert_subscription(self, sub: Subscription) -> Subscription:
        placeholders = ", ".join("?" for _ in _COLUMNS)
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                INSERT INTO subscriptions ({', '.join(_COLUMNS)})
                VALUES ({placeholders})
                """,
                self._subscription_params(sub),
            )
        return sub

    def replace_subscription(self, sub: Subscription) -> bool:
        """Swap the stored record carrying ``sub.id`` for ``sub``.

        Returns False when no record with that id exists.
        """
        params = self._subscription_params(sub)
        assignments = ", ".join(f"{c} = ?" for c in _COLUMNS[1:])
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"UPDATE subscriptions SET {assignments} WHERE id = ?",
                (*params[1:], params[0]),
            )
            return cur.rowcount > 0

    def delete_subscription(self, subscription_id: UUID) -> bool:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM subscriptions WHERE id = ?", (str(subscription_id),))
            return cur.rowcount > 0

    def delete_all_subscriptions(self) -> int:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM subscriptions")
            return int(cur.rowcount)

    # ------------------------------------------------------------------
    # Metadata key/value
    def get_metadata(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT value FROM metadata WHERE key = ?", (key,))
            row = cur.fetchone()
            return row[0] if row else None

    def set_metadata(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                f"""
                INSERT INTO metadata (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = ({UTC_NOW_SQL})
                """,
                (key, value),
            )


class MetadataRateStore:
    """Durable key/value store for the rate cache, backed by the metadata table."""

    def __init__(self, db: Database):
        self._db = db

    def get(self, key: str) -> Optional[str]:
        return self._db.get_metadata(key)

    def set(self, key: str, value: str) -> None:
        self._db.set_metadata(key, value)
