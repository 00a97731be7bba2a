"""
Pydantic models for API requests and responses.

Digests cross the wire as ``0x``-prefixed hex strings; timestamps as ISO-8601
UTC strings. Statuses are returned both as the numeric code and as a label so
clients can use whichever they prefer.

Models are organized into two categories:
1. Request models: Data sent FROM the client TO the server
2. Response models: Data sent FROM the server TO the client
"""

from datetime import datetime

from pydantic import BaseModel, field_validator

from agritrace.core.digest import normalize_digest, to_hex
from agritrace.core.lifecycle import operations_for_role
from agritrace.core.models import Activity, Participant, Product, ProductTrace

# ============================================================================
# REQUEST MODELS (Client → Server)
# ============================================================================


class DigestRequest(BaseModel):
    """
    Request body carrying one data digest.

    Attributes:
        data_hash: 32-byte digest as 64 hex characters (``0x`` prefix optional)
    """

    data_hash: str

    @field_validator("data_hash")
    @classmethod
    def _check_digest(cls, value: str) -> str:
        return to_hex(normalize_digest(value))


class RegisterParticipantRequest(DigestRequest):
    """
    Admin request to register a participant.

    Attributes:
        identity: Identity (address) of the new participant
        role: One of "admin", "farmer", "distributor", "retailer", "consumer"
        data_hash: Commitment to the participant's off-ledger profile
    """

    identity: str
    role: str


# ============================================================================
# RESPONSE MODELS (Server → Client)
# ============================================================================


class ParticipantResponse(BaseModel):
    """Registry entry for one identity and the operations its role may call."""

    identity: str
    role: str
    data_hash: str
    is_active: bool
    operations: list[str]

    @classmethod
    def from_participant(cls, participant: Participant) -> "ParticipantResponse":
        return cls(
            identity=participant.identity,
            role=participant.role.value,
            data_hash=to_hex(participant.data_hash),
            is_active=participant.is_active,
            operations=operations_for_role(participant.role),
        )


class RegisterProductResponse(BaseModel):
    """Result of product registration."""

    product_id: int


class ActivityRecordedResponse(BaseModel):
    """Result of any product operation."""

    activity_id: int
    product_id: int
    operation: str
    status: int
    status_label: str


class TraceResponse(BaseModel):
    """Public trace of a product."""

    farmer: str
    data_hash: str
    status: int
    status_label: str
    registered_at: datetime
    activity_ids: list[int]

    @classmethod
    def from_trace(cls, trace: ProductTrace) -> "TraceResponse":
        return cls(
            farmer=trace.farmer,
            data_hash=to_hex(trace.data_hash),
            status=int(trace.status),
            status_label=trace.status.label,
            registered_at=trace.registered_at,
            activity_ids=list(trace.activity_ids),
        )


class ProductResponse(TraceResponse):
    """Full product record (trace fields plus the id)."""

    id: int

    @classmethod
    def from_product(cls, product: Product) -> "ProductResponse":
        trace = TraceResponse.from_trace(ProductTrace.from_product(product))
        return cls(id=product.id, **trace.model_dump())


class ActivityIdsResponse(BaseModel):
    """Ordered activity ids of one product."""

    product_id: int
    activity_ids: list[int]


class ActivityResponse(BaseModel):
    """One activity log entry."""

    id: int
    product_id: int
    actor: str
    operation: str
    data_hash: str
    timestamp: datetime

    @classmethod
    def from_activity(cls, activity: Activity) -> "ActivityResponse":
        return cls(
            id=activity.id,
            product_id=activity.product_id,
            actor=activity.actor,
            operation=activity.operation,
            data_hash=to_hex(activity.data_hash),
            timestamp=activity.timestamp,
        )


class VerifyResponse(BaseModel):
    """Digest comparison result."""

    matches: bool


class StatsResponse(BaseModel):
    """Ledger totals."""

    total_participants: int
    total_products: int
    total_activities: int


class ErrorResponse(BaseModel):
    """
    Error body returned for every rejected request.

    Attributes:
        detail: Human-readable message naming the failed precondition
        error: Machine-friendly kind ("unauthorized", "not_found", ...)
        operation: Ledger operation that was rejected
    """

    detail: str
    error: str
    operation: str | None = None
