"""Schema creation and append-only trigger wiring for the ledger store.

Tables:
    participants  identity-keyed registry rows (never deleted)
    products      sequential-id product records with current custody status
    activities    sequential-id, append-only activity log
    ledger_meta   key/value bootstrap metadata (admin identity, schema version)

The per-product activity sequence is the ``activities`` rows for that product
ordered by id; ``idx_activities_product`` keeps that walk cheap.
"""

from __future__ import annotations

import sqlite3

SCHEMA_VERSION = "1"

# Largest value SQLite stores in an INTEGER PRIMARY KEY column.
MAX_ROW_ID = 2**63 - 1

TABLE_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS ledger_meta (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS participants (
        identity TEXT PRIMARY KEY,
        role TEXT NOT NULL
            CHECK (role IN ('admin', 'farmer', 'distributor', 'retailer', 'consumer')),
        data_hash BLOB NOT NULL CHECK (length(data_hash) = 32),
        is_active INTEGER NOT NULL DEFAULT 1 CHECK (is_active IN (0, 1)),
        registered_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS products (
        id INTEGER PRIMARY KEY CHECK (id >= 1),
        farmer TEXT NOT NULL REFERENCES participants(identity),
        data_hash BLOB NOT NULL CHECK (length(data_hash) = 32),
        status INTEGER NOT NULL CHECK (status BETWEEN 0 AND 4),
        registered_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS activities (
        id INTEGER PRIMARY KEY CHECK (id >= 1),
        product_id INTEGER NOT NULL REFERENCES products(id),
        actor TEXT NOT NULL REFERENCES participants(identity),
        operation TEXT NOT NULL,
        data_hash BLOB NOT NULL CHECK (length(data_hash) = 32),
        timestamp TEXT NOT NULL
    )
    """,
)

INDEX_STATEMENTS = (
    "CREATE INDEX IF NOT EXISTS idx_activities_product ON activities(product_id, id)",
    "CREATE INDEX IF NOT EXISTS idx_products_farmer ON products(farmer)",
)

# Storage-level guards for the history invariants. They protect direct SQL
# writes as well as the Python service paths.
TRIGGER_STATEMENTS = (
    """
    CREATE TRIGGER IF NOT EXISTS activities_no_update
    BEFORE UPDATE ON activities
    BEGIN
        SELECT RAISE(ABORT, 'activity log is append-only');
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS activities_no_delete
    BEFORE DELETE ON activities
    BEGIN
        SELECT RAISE(ABORT, 'activity log is append-only');
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS products_no_delete
    BEFORE DELETE ON products
    BEGIN
        SELECT RAISE(ABORT, 'products are never removed');
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS products_status_forward_only
    BEFORE UPDATE OF status ON products
    WHEN NEW.status < OLD.status
    BEGIN
        SELECT RAISE(ABORT, 'product status only moves forward');
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS products_identity_immutable
    BEFORE UPDATE OF id, farmer, data_hash, registered_at ON products
    BEGIN
        SELECT RAISE(ABORT, 'product identity fields are immutable');
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS participants_no_delete
    BEFORE DELETE ON participants
    BEGIN
        SELECT RAISE(ABORT, 'participants are never removed');
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS participants_role_immutable
    BEFORE UPDATE OF identity, role ON participants
    BEGIN
        SELECT RAISE(ABORT, 'participant identity and role are immutable');
    END
    """,
)


def create_schema(cursor: sqlite3.Cursor) -> None:
    """Create all tables, indexes and triggers if they do not exist yet."""
    for statement in (*TABLE_STATEMENTS, *INDEX_STATEMENTS, *TRIGGER_STATEMENTS):
        cursor.execute(statement)
    cursor.execute(
        "INSERT OR IGNORE INTO ledger_meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )


def get_meta(cursor: sqlite3.Cursor, key: str) -> str | None:
    """Return a ``ledger_meta`` value or ``None`` when unset."""
    cursor.execute("SELECT value FROM ledger_meta WHERE key = ?", (key,))
    row = cursor.fetchone()
    return row[0] if row else None


def set_meta(cursor: sqlite3.Cursor, key: str, value: str) -> None:
    """Insert a ``ledger_meta`` value; existing keys are left untouched."""
    cursor.execute(
        "INSERT OR IGNORE INTO ledger_meta (key, value) VALUES (?, ?)",
        (key, value),
    )


def schema_exists(cursor: sqlite3.Cursor) -> bool:
    """Return ``True`` when the ledger tables have been created."""
    cursor.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'activities'"
    )
    return cursor.fetchone() is not None


def is_row_id(value: int) -> bool:
    """Return ``True`` when ``value`` can name a product or activity row."""
    return 1 <= value <= MAX_ROW_ID
