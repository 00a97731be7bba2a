"""Product endpoints: registration, custody operations and the public trace."""

from fastapi import APIRouter, Depends

from agritrace.api.dependencies import get_caller, get_ledger
from agritrace.api.models import (
    ActivityIdsResponse,
    ActivityRecordedResponse,
    DigestRequest,
    ProductResponse,
    RegisterProductResponse,
    TraceResponse,
    VerifyResponse,
)
from agritrace.core.ledger import TraceabilityLedger
from agritrace.core.lifecycle import get_transition

router = APIRouter(prefix="/products", tags=["products"])


@router.post("", response_model=RegisterProductResponse, status_code=201)
def register_product(
    request: DigestRequest,
    caller: str = Depends(get_caller),
    ledger: TraceabilityLedger = Depends(get_ledger),
):
    """Register a product (farmer only)."""
    return RegisterProductResponse(product_id=ledger.register_product(caller, request.data_hash))


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, ledger: TraceabilityLedger = Depends(get_ledger)):
    return ProductResponse.from_product(ledger.get_product(product_id))


@router.get("/{product_id}/trace", response_model=TraceResponse)
def trace_product(product_id: int, ledger: TraceabilityLedger = Depends(get_ledger)):
    """Public trace; no caller header required."""
    return TraceResponse.from_trace(ledger.trace_product(product_id))


@router.get("/{product_id}/activities", response_model=ActivityIdsResponse)
def get_product_activities(product_id: int, ledger: TraceabilityLedger = Depends(get_ledger)):
    return ActivityIdsResponse(
        product_id=product_id,
        activity_ids=list(ledger.get_activities_for_product(product_id)),
    )


@router.post("/{product_id}/verify", response_model=VerifyResponse)
def verify_product(
    product_id: int,
    request: DigestRequest,
    ledger: TraceabilityLedger = Depends(get_ledger),
):
    """Compare a digest with the product's registered commitment."""
    return VerifyResponse(matches=ledger.verify_product_hash(product_id, request.data_hash))


@router.post(
    "/{product_id}/operations/{operation}",
    response_model=ActivityRecordedResponse,
    status_code=201,
)
def apply_operation(
    product_id: int,
    operation: str,
    request: DigestRequest,
    caller: str = Depends(get_caller),
    ledger: TraceabilityLedger = Depends(get_ledger),
):
    """
    Run one custody operation (``receive_from_farmer``, ``sell_to_consumer``, ...).

    The operation name may use dashes or underscores. The reported status is
    the one the recorded operation left the product in.
    """
    name = operation.replace("-", "_")
    activity_id = ledger.apply_operation(name, caller, product_id, request.data_hash)
    rule = get_transition(name)
    status = rule.advances_to if rule.advances_to is not None else rule.requires
    return ActivityRecordedResponse(
        activity_id=activity_id,
        product_id=product_id,
        operation=name,
        status=int(status),
        status_label=status.label,
    )
