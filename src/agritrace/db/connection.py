"""SQLite connection primitives for the ledger DB layer.

This module owns connection creation, low-level SQLite runtime pragmas and
transaction scoping so repository code can stay focused on queries.

Connections are opened in autocommit mode (``isolation_level=None``) and every
scope issues its own ``BEGIN``: write scopes take ``BEGIN IMMEDIATE`` so only
one writer holds the database at a time, read scopes take a deferred
``BEGIN`` so every query in the scope sees the same snapshot.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from agritrace.db.errors import (
    DatabaseOperationContext,
    DatabaseReadError,
    DatabaseWriteError,
)


def get_db_path() -> Path:
    """Resolve the absolute SQLite database path from runtime configuration."""
    from agritrace.config import config

    return config.database.absolute_path


def configure_connection(connection: sqlite3.Connection) -> sqlite3.Connection:
    """Apply connection-level SQLite pragmas required by the ledger.

    Notes:
        - ``foreign_keys=ON`` is required because SQLite does not enforce
          foreign-key constraints by default.
        - ``busy_timeout`` lets a second process wait for the writer lock
          instead of failing immediately.
    """
    connection.execute("PRAGMA foreign_keys = ON")
    connection.execute("PRAGMA busy_timeout = 5000")
    return connection


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """Create and configure a new autocommit SQLite connection."""
    path = Path(db_path) if db_path is not None else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(str(path), isolation_level=None)
    return configure_connection(connection)


@contextmanager
def connection_scope(
    operation: str,
    *,
    write: bool = False,
    db_path: Path | str | None = None,
) -> Iterator[sqlite3.Cursor]:
    """Yield a cursor inside one transaction with guaranteed cleanup.

    Args:
        operation: Stable operation name used in error context.
        write: When True, take the write lock up front and commit on success.
        db_path: Optional explicit database path (defaults to configuration).

    Yields:
        Cursor bound to the open transaction.

    Raises:
        DatabaseWriteError / DatabaseReadError: when SQLite itself fails.
        Any other exception raised inside the block is re-raised unchanged
        after the transaction has been rolled back.
    """
    error_type = DatabaseWriteError if write else DatabaseReadError
    try:
        connection = get_connection(db_path)
    except sqlite3.Error as exc:
        raise error_type(
            context=DatabaseOperationContext(operation, "could not open database"),
            cause=exc,
        ) from exc

    try:
        cursor = connection.cursor()
        cursor.execute("BEGIN IMMEDIATE" if write else "BEGIN")
        yield cursor
        connection.commit()
    except sqlite3.Error as exc:
        _rollback_quietly(connection)
        raise error_type(
            context=DatabaseOperationContext(operation, str(exc)),
            cause=exc,
        ) from exc
    except BaseException:
        _rollback_quietly(connection)
        raise
    finally:
        connection.close()


def _rollback_quietly(connection: sqlite3.Connection) -> None:
    """Roll back the open transaction, preserving the original exception."""
    try:
        connection.rollback()
    except sqlite3.Error:
        pass
