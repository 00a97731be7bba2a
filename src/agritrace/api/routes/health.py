"""Health and root endpoints.

Provides the root ``/`` endpoint (API identity and version), the ``/health``
liveness check and the ``/stats`` totals.
"""

from fastapi import APIRouter, Depends

from agritrace import __version__
from agritrace.api.dependencies import get_ledger
from agritrace.api.models import StatsResponse
from agritrace.core.ledger import TraceabilityLedger

router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint showing API identity and current version."""
    return {"message": "AgriTrace Ledger API", "version": __version__}


@router.get("/health")
def health_check(ledger: TraceabilityLedger = Depends(get_ledger)):
    """Health check endpoint with the ledger admin and totals."""
    return {
        "status": "ok",
        "admin": ledger.get_admin_identity(),
        "total_participants": ledger.get_total_participants(),
        "total_products": ledger.get_total_products(),
        "total_activities": ledger.get_total_activities(),
    }


@router.get("/stats", response_model=StatsResponse)
def stats(ledger: TraceabilityLedger = Depends(get_ledger)):
    """Ledger totals."""
    return StatsResponse(
        total_participants=ledger.get_total_participants(),
        total_products=ledger.get_total_products(),
        total_activities=ledger.get_total_activities(),
    )
