"""Participant registry endpoints."""

from fastapi import APIRouter, Depends

from agritrace.api.dependencies import get_caller, get_ledger
from agritrace.api.models import ParticipantResponse, RegisterParticipantRequest
from agritrace.core.ledger import TraceabilityLedger

router = APIRouter(prefix="/participants", tags=["participants"])


@router.post("", response_model=ParticipantResponse, status_code=201)
def register_participant(
    request: RegisterParticipantRequest,
    caller: str = Depends(get_caller),
    ledger: TraceabilityLedger = Depends(get_ledger),
):
    """Register a participant (admin only)."""
    ledger.register_participant(caller, request.identity, request.role, request.data_hash)
    return ParticipantResponse.from_participant(ledger.get_participant(request.identity.strip()))


@router.get("/{identity}", response_model=ParticipantResponse)
def get_participant(identity: str, ledger: TraceabilityLedger = Depends(get_ledger)):
    """Look up a participant's role and active flag."""
    return ParticipantResponse.from_participant(ledger.get_participant(identity))
