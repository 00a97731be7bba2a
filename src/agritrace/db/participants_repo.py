"""Participant registry repository operations."""

from __future__ import annotations

import sqlite3
from datetime import datetime

from agritrace.core.lifecycle import Role
from agritrace.core.models import Participant
from agritrace.db.activities_repo import format_timestamp


def insert_participant(
    cursor: sqlite3.Cursor,
    *,
    identity: str,
    role: Role,
    data_hash: bytes,
    registered_at: datetime,
) -> None:
    """Insert an active participant row.

    Raises:
        sqlite3.IntegrityError: If ``identity`` is already registered.
    """
    cursor.execute(
        """
        INSERT INTO participants (identity, role, data_hash, is_active, registered_at)
        VALUES (?, ?, ?, 1, ?)
        """,
        (identity, role.value, data_hash, format_timestamp(registered_at)),
    )


def get_participant(cursor: sqlite3.Cursor, identity: str) -> Participant | None:
    """Return the participant for ``identity`` or ``None`` if unregistered."""
    cursor.execute(
        "SELECT identity, role, data_hash, is_active FROM participants WHERE identity = ?",
        (identity,),
    )
    row = cursor.fetchone()
    if row is None:
        return None
    return Participant(
        identity=row[0],
        role=Role(row[1]),
        data_hash=bytes(row[2]),
        is_active=bool(row[3]),
    )


def count_participants(cursor: sqlite3.Cursor) -> int:
    """Return the number of registered participants (admin included)."""
    cursor.execute("SELECT COUNT(*) FROM participants")
    return int(cursor.fetchone()[0])
