"""Typed database exceptions for the DB package.

Repository and connection code raises these to signal infrastructure failures
(SQLite connection/query errors, trigger aborts) so the service and API layers
can tell them apart from ledger rule violations.

Design intent:
    - Ledger outcomes (unknown product, wrong role, ...) are raised by the
      core as :class:`agritrace.core.errors.LedgerError` subclasses.
    - Infrastructure failures raise the typed exceptions below so API
      boundaries can map them to deterministic HTTP 5xx responses and logs.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class DatabaseOperationContext:
    """Structured operation metadata carried by repository exceptions.

    Attributes:
        operation: Stable operation identifier (for example
            ``"ledger.register_product"``).
        details: Optional human-readable context for logs and debugging.
    """

    operation: str
    details: str | None = None


class DatabaseError(RuntimeError):
    """Base exception for DB-layer failures."""


class DatabaseOperationError(DatabaseError):
    """Base exception for repository operation failures.

    Args:
        context: Structured operation metadata.
        cause: Optional underlying exception.
    """

    def __init__(
        self,
        *,
        context: DatabaseOperationContext,
        cause: Exception | None = None,
    ) -> None:
        message = context.operation
        if context.details:
            message = f"{message}: {context.details}"
        super().__init__(message)
        self.context = context
        self.cause = cause


class DatabaseReadError(DatabaseOperationError):
    """Repository read/query failure."""


class DatabaseWriteError(DatabaseOperationError):
    """Repository mutation/transaction failure."""
