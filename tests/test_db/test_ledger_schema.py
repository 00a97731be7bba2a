"""Schema tests for the ledger database.

The triggers guard the history invariants at the storage level, so even a
direct SQL write cannot rewrite or remove recorded history.
"""

from __future__ import annotations

import sqlite3

import pytest

from agritrace.core.lifecycle import ProductStatus
from agritrace.db import connection as db_connection
from agritrace.db.schema import MAX_ROW_ID, SCHEMA_VERSION, get_meta, is_row_id, schema_exists
from tests.constants import FARMER, digest


@pytest.fixture
def raw_connection(seeded_ledger, product_at):
    """Plain connection to a ledger holding one harvested product."""
    product_at(ProductStatus.HARVESTED)
    conn = db_connection.get_connection(seeded_ledger.db_path)
    yield conn
    conn.close()


@pytest.mark.unit
@pytest.mark.db
def test_get_connection_enables_foreign_keys(ledger):
    """Every DB connection should enforce SQLite foreign keys."""
    conn = db_connection.get_connection()
    row = conn.execute("PRAGMA foreign_keys").fetchone()
    conn.close()

    assert int(row[0]) == 1


@pytest.mark.unit
@pytest.mark.db
def test_schema_metadata(ledger):
    with db_connection.connection_scope("test.meta") as cursor:
        assert schema_exists(cursor)
        assert get_meta(cursor, "schema_version") == SCHEMA_VERSION
        assert get_meta(cursor, "admin_identity") is not None
        assert get_meta(cursor, "initialized_at") is not None
        assert get_meta(cursor, "missing") is None


@pytest.mark.unit
@pytest.mark.db
def test_schema_exists_false_before_initialize(temp_db_path):
    with db_connection.connection_scope("test.meta") as cursor:
        assert not schema_exists(cursor)


@pytest.mark.unit
@pytest.mark.db
@pytest.mark.parametrize(
    "statement",
    [
        "UPDATE activities SET actor = '0xforger' WHERE id = 1",
        "UPDATE activities SET data_hash = zeroblob(32) WHERE id = 2",
        "DELETE FROM activities WHERE id = 1",
        "DELETE FROM products WHERE id = 1",
        "UPDATE products SET status = 0 WHERE id = 1",
        "UPDATE products SET farmer = '0xforger' WHERE id = 1",
        "DELETE FROM participants",
        "UPDATE participants SET role = 'admin' WHERE identity = '0xfarmer'",
    ],
)
def test_history_cannot_be_rewritten(raw_connection, statement):
    with pytest.raises(sqlite3.IntegrityError):
        raw_connection.execute(statement)

    rows = raw_connection.execute("SELECT COUNT(*) FROM activities").fetchone()
    assert rows[0] == 2


@pytest.mark.unit
@pytest.mark.db
def test_status_may_move_forward_in_storage(raw_connection):
    raw_connection.execute("UPDATE products SET status = 2 WHERE id = 1")
    row = raw_connection.execute("SELECT status FROM products WHERE id = 1").fetchone()
    assert row[0] == int(ProductStatus.IN_TRANSIT)


@pytest.mark.unit
@pytest.mark.db
def test_participant_role_is_checked(raw_connection):
    with pytest.raises(sqlite3.IntegrityError):
        raw_connection.execute(
            "INSERT INTO participants (identity, role, data_hash, is_active, registered_at) "
            "VALUES (?, ?, ?, 1, '2025-01-01T00:00:00.000000+00:00')",
            ("0xmayor", "mayor", digest("mayor")),
        )


@pytest.mark.unit
@pytest.mark.db
def test_activity_requires_existing_product(raw_connection):
    with pytest.raises(sqlite3.IntegrityError):
        raw_connection.execute(
            "INSERT INTO activities (id, product_id, actor, operation, data_hash, timestamp) "
            "VALUES (99, 42, ?, 'update_farming_activity', ?, "
            "'2025-01-01T00:00:00.000000+00:00')",
            (FARMER, digest("orphan")),
        )


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "expected"),
    [(1, True), (MAX_ROW_ID, True), (0, False), (-3, False), (MAX_ROW_ID + 1, False)],
)
def test_is_row_id(value, expected):
    assert is_row_id(value) is expected
