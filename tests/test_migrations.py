import sqlite3

from suby.db.dal import Database
from suby.db.migrate import CURRENT_SCHEMA_VERSION, apply_migrations
from suby.models.constants import Category

LEGACY_SUBSCRIPTIONS_DDL = """
CREATE TABLE subscriptions (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    price REAL NOT NULL,
    currency TEXT NOT NULL,
    billing_cycle TEXT NOT NULL,
    start_date TEXT NOT NULL,
    color_hex TEXT NOT NULL,
    icon_name TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


def _column_names(path, table):
    conn = sqlite3.connect(path)
    try:
        return [row[1] for row in conn.execute(f"PRAGMA table_info({table})")]
    finally:
        conn.close()


def test_fresh_database_lands_on_current_version(tmp_path):
    path = tmp_path / "fresh.sqlite3"

    assert apply_migrations(path) == CURRENT_SCHEMA_VERSION
    assert apply_migrations(path) == CURRENT_SCHEMA_VERSION
    assert "category" in _column_names(path, "subscriptions")
    assert Database(path).get_metadata("schema_version") == str(CURRENT_SCHEMA_VERSION)


def test_legacy_store_gains_category_column(tmp_path):
    path = tmp_path / "legacy.sqlite3"
    conn = sqlite3.connect(path)
    conn.execute(LEGACY_SUBSCRIPTIONS_DDL)
    conn.execute(
        "INSERT INTO subscriptions VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
        (
            "6f1c2a6e-2f0b-4d8e-9c7a-3b1f0e5d4c21",
            "Old Music",
            9.99,
            "USD",
            "Monthly",
            "2022-05-31",
            "#5E5CE6",
            "creditcard.fill",
            "2022-05-31T10:00:00Z",
            "2022-05-31T10:00:00Z",
        ),
    )
    conn.commit()
    conn.close()

    assert apply_migrations(path) == 2

    subs = Database(path).list_subscriptions()
    assert len(subs) == 1
    assert subs[0].category == Category.ENTERTAINMENT
    assert subs[0].created_at is not None and subs[0].created_at.tzinfo is not None


def test_metadata_upsert(db):
    assert db.get_metadata("cached_rates") is None
    db.set_metadata("cached_rates", '{"USD": 1.0}')
    db.set_metadata("cached_rates", '{"USD": 1.0, "SGD": 1.35}')

    assert db.get_metadata("cached_rates") == '{"USD": 1.0, "SGD": 1.35}'
