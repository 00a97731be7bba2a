"""Tests for transaction scoping and typed DB errors (agritrace/db/connection.py)."""

import sqlite3
from unittest.mock import patch

import pytest

from agritrace.core.errors import NotFound
from agritrace.core.ledger import TraceabilityLedger
from agritrace.core.lifecycle import ProductStatus
from agritrace.db import connection as db_connection
from agritrace.db.errors import DatabaseReadError, DatabaseWriteError
from tests.constants import FARMER, digest


@pytest.mark.unit
@pytest.mark.db
def test_write_scope_commits_on_success(ledger):
    with db_connection.connection_scope("test.write", write=True) as cursor:
        cursor.execute("INSERT INTO ledger_meta (key, value) VALUES ('note', 'kept')")

    with db_connection.connection_scope("test.read") as cursor:
        cursor.execute("SELECT value FROM ledger_meta WHERE key = 'note'")
        assert cursor.fetchone()[0] == "kept"


@pytest.mark.unit
@pytest.mark.db
def test_write_scope_rolls_back_on_exception(ledger):
    with pytest.raises(NotFound):
        with db_connection.connection_scope("test.write", write=True) as cursor:
            cursor.execute("INSERT INTO ledger_meta (key, value) VALUES ('note', 'lost')")
            raise NotFound("test.write", "abort")

    with db_connection.connection_scope("test.read") as cursor:
        cursor.execute("SELECT COUNT(*) FROM ledger_meta WHERE key = 'note'")
        assert cursor.fetchone()[0] == 0


@pytest.mark.unit
@pytest.mark.db
def test_sqlite_failure_maps_to_write_error(ledger):
    with pytest.raises(DatabaseWriteError) as exc_info:
        with db_connection.connection_scope("test.write", write=True) as cursor:
            cursor.execute("INSERT INTO no_such_table VALUES (1)")

    assert exc_info.value.context.operation == "test.write"
    assert "no_such_table" in str(exc_info.value)


@pytest.mark.unit
@pytest.mark.db
def test_sqlite_failure_maps_to_read_error(ledger):
    with pytest.raises(DatabaseReadError):
        with db_connection.connection_scope("test.read") as cursor:
            cursor.execute("SELECT * FROM no_such_table")


@pytest.mark.unit
@pytest.mark.db
def test_ledger_reads_before_initialize_raise_read_error(temp_db_path):
    with pytest.raises(DatabaseReadError):
        TraceabilityLedger().get_total_products()


@pytest.mark.unit
@pytest.mark.db
def test_trigger_abort_surfaces_as_write_error(seeded_ledger, product_at):
    product_at(ProductStatus.HARVESTED)

    with pytest.raises(DatabaseWriteError):
        with db_connection.connection_scope("test.rewind", write=True) as cursor:
            cursor.execute("UPDATE products SET status = 0 WHERE id = 1")

    assert seeded_ledger.get_product(1).status is ProductStatus.HARVESTED


@pytest.mark.unit
@pytest.mark.db
def test_ledger_mutation_maps_connection_failure(seeded_ledger):
    """An unreachable database surfaces as a typed write error."""
    with patch.object(
        db_connection, "get_connection", side_effect=sqlite3.OperationalError("disk gone")
    ):
        with pytest.raises(DatabaseWriteError):
            seeded_ledger.register_product(FARMER, digest("rice"))

    assert seeded_ledger.get_total_products() == 0
