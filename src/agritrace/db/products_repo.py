"""Product table repository operations."""

from __future__ import annotations

import sqlite3
from datetime import datetime

from agritrace.core.lifecycle import ProductStatus
from agritrace.core.models import Product
from agritrace.db.activities_repo import format_timestamp, list_activity_ids, parse_timestamp
from agritrace.db.schema import is_row_id


def next_product_id(cursor: sqlite3.Cursor) -> int:
    """Return the next dense product id (1 for an empty table)."""
    cursor.execute("SELECT COALESCE(MAX(id), 0) + 1 FROM products")
    return int(cursor.fetchone()[0])


def insert_product(
    cursor: sqlite3.Cursor,
    *,
    product_id: int,
    farmer: str,
    data_hash: bytes,
    registered_at: datetime,
) -> None:
    """Insert a new product in the ``REGISTERED`` status."""
    cursor.execute(
        """
        INSERT INTO products (id, farmer, data_hash, status, registered_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (
            product_id,
            farmer,
            data_hash,
            int(ProductStatus.REGISTERED),
            format_timestamp(registered_at),
        ),
    )


def get_product(cursor: sqlite3.Cursor, product_id: int) -> Product | None:
    """Return a product with its activity ids, or ``None`` if missing."""
    if not is_row_id(product_id):
        return None
    cursor.execute(
        """
        SELECT id, farmer, data_hash, status, registered_at
        FROM products
        WHERE id = ?
        """,
        (product_id,),
    )
    row = cursor.fetchone()
    if row is None:
        return None
    return Product(
        id=int(row[0]),
        farmer=row[1],
        data_hash=bytes(row[2]),
        status=ProductStatus(int(row[3])),
        registered_at=parse_timestamp(row[4]),
        activity_ids=list_activity_ids(cursor, int(row[0])),
    )


def set_status(cursor: sqlite3.Cursor, product_id: int, status: ProductStatus) -> None:
    """Persist a new custody status (the schema rejects backwards moves)."""
    cursor.execute(
        "UPDATE products SET status = ? WHERE id = ?",
        (int(status), product_id),
    )


def count_products(cursor: sqlite3.Cursor) -> int:
    """Return the total number of registered products."""
    cursor.execute("SELECT COUNT(*) FROM products")
    return int(cursor.fetchone()[0])
