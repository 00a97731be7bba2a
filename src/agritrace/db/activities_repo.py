"""Activity log repository operations.

The log is append-only: this module exposes an insert and reads, nothing
else, and the schema triggers reject UPDATE/DELETE on ``activities``.
Every function runs on a cursor supplied by the caller so the append shares
the transaction of the status change that triggered it.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime

from agritrace.core.models import Activity
from agritrace.db.schema import is_row_id


def format_timestamp(moment: datetime) -> str:
    """Serialise a UTC-aware datetime in a fixed, lexically sortable form."""
    return moment.isoformat(timespec="microseconds")


def parse_timestamp(text: str) -> datetime:
    """Inverse of :func:`format_timestamp`."""
    return datetime.fromisoformat(text)


def next_activity_id(cursor: sqlite3.Cursor) -> int:
    """Return the next dense activity id (1 for an empty log)."""
    cursor.execute("SELECT COALESCE(MAX(id), 0) + 1 FROM activities")
    return int(cursor.fetchone()[0])


def latest_timestamp(cursor: sqlite3.Cursor) -> datetime | None:
    """Return the timestamp of the newest activity, or ``None`` when empty."""
    cursor.execute("SELECT timestamp FROM activities ORDER BY id DESC LIMIT 1")
    row = cursor.fetchone()
    return parse_timestamp(row[0]) if row else None


def append_activity(
    cursor: sqlite3.Cursor,
    *,
    product_id: int,
    actor: str,
    operation: str,
    data_hash: bytes,
    timestamp: datetime,
) -> int:
    """Append one activity and return its id."""
    activity_id = next_activity_id(cursor)
    cursor.execute(
        """
        INSERT INTO activities (id, product_id, actor, operation, data_hash, timestamp)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (activity_id, product_id, actor, operation, data_hash, format_timestamp(timestamp)),
    )
    return activity_id


def get_activity(cursor: sqlite3.Cursor, activity_id: int) -> Activity | None:
    """Return one activity or ``None`` if the id is out of range."""
    if not is_row_id(activity_id):
        return None
    cursor.execute(
        """
        SELECT id, product_id, actor, data_hash, timestamp, operation
        FROM activities
        WHERE id = ?
        """,
        (activity_id,),
    )
    row = cursor.fetchone()
    if row is None:
        return None
    return Activity(
        id=int(row[0]),
        product_id=int(row[1]),
        actor=row[2],
        data_hash=bytes(row[3]),
        timestamp=parse_timestamp(row[4]),
        operation=row[5],
    )


def list_activity_ids(cursor: sqlite3.Cursor, product_id: int) -> tuple[int, ...]:
    """Return a product's activity ids in append order."""
    cursor.execute(
        "SELECT id FROM activities WHERE product_id = ? ORDER BY id",
        (product_id,),
    )
    return tuple(int(row[0]) for row in cursor.fetchall())


def count_activities(cursor: sqlite3.Cursor) -> int:
    """Return the total number of activities across all products."""
    cursor.execute("SELECT COUNT(*) FROM activities")
    return int(cursor.fetchone()[0])
