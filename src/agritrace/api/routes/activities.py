"""Activity log endpoints."""

from fastapi import APIRouter, Depends

from agritrace.api.dependencies import get_ledger
from agritrace.api.models import ActivityResponse, DigestRequest, VerifyResponse
from agritrace.core.ledger import TraceabilityLedger

router = APIRouter(prefix="/activities", tags=["activities"])


@router.get("/{activity_id}", response_model=ActivityResponse)
def get_activity(activity_id: int, ledger: TraceabilityLedger = Depends(get_ledger)):
    return ActivityResponse.from_activity(ledger.get_activity(activity_id))


@router.post("/{activity_id}/verify", response_model=VerifyResponse)
def verify_activity(
    activity_id: int,
    request: DigestRequest,
    ledger: TraceabilityLedger = Depends(get_ledger),
):
    """Compare a digest with the one stored on the activity."""
    return VerifyResponse(matches=ledger.verify_activity_hash(activity_id, request.data_hash))
