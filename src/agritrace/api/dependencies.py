"""Request dependencies shared by the API routers."""

from fastapi import Header, HTTPException, Request

from agritrace.core.ledger import TraceabilityLedger

CALLER_HEADER = "X-Participant"


def get_ledger(request: Request) -> TraceabilityLedger:
    """Return the ledger instance bound to the application."""
    return request.app.state.ledger


def get_caller(x_participant: str | None = Header(default=None)) -> str:
    """
    Resolve the calling participant from the ``X-Participant`` header.

    Authentication of the identity itself is the deployment's concern; the
    ledger only checks that the presented identity holds the required role.

    Raises:
        HTTPException(401): If the header is missing or blank.
    """
    if not x_participant or not x_participant.strip():
        raise HTTPException(status_code=401, detail=f"Missing {CALLER_HEADER} header")
    return x_participant.strip()
