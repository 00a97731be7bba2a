"""Ledger rule violations.

Every failed ledger operation raises exactly one of the four kinds below and
leaves the ledger unchanged. Callers can switch on the exception class (or on
``error_kind`` when the error has crossed the HTTP boundary); the message
names the precondition that failed.

Malformed input that never reaches a ledger rule (a 31-byte digest, an
unknown role name, a blank identity) raises ``ValueError`` instead.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class LedgerOperationContext:
    """Structured metadata carried by ledger errors.

    Attributes:
        operation: Ledger operation name (for example ``"sell_to_consumer"``).
        details: Human-readable description of the failed precondition.
    """

    operation: str
    details: str | None = None


class LedgerError(Exception):
    """Base class for ledger rule violations."""

    error_kind = "ledger_error"

    def __init__(self, operation: str, details: str | None = None) -> None:
        self.context = LedgerOperationContext(operation, details)
        message = operation if not details else f"{operation}: {details}"
        super().__init__(message)

    @property
    def operation(self) -> str:
        return self.context.operation

    @property
    def details(self) -> str | None:
        return self.context.details


class Unauthorized(LedgerError):
    """Caller is unregistered, inactive, or does not hold the required role."""

    error_kind = "unauthorized"


class NotFound(LedgerError):
    """Referenced participant, product or activity does not exist."""

    error_kind = "not_found"


class AlreadyRegistered(LedgerError):
    """Participant identity is already present in the registry."""

    error_kind = "already_registered"


class InvalidStateTransition(LedgerError):
    """Product is not in the required status, or the caller is not its owner."""

    error_kind = "invalid_state_transition"
