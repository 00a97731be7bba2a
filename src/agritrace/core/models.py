"""Ledger record types returned by the service and repository layers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from agritrace.core.lifecycle import ProductStatus, Role


@dataclass(frozen=True, slots=True)
class Participant:
    """A registered identity with its role and active flag."""

    identity: str
    role: Role
    data_hash: bytes
    is_active: bool


@dataclass(frozen=True, slots=True)
class Product:
    """
    A traced product and the ids of its activities.

    Attributes:
        id: Sequential product id, starting at 1.
        farmer: Identity of the registering farmer (the owner).
        data_hash: Commitment to the off-ledger product data.
        status: Current custody status.
        registered_at: Timestamp of the registration activity.
        activity_ids: Activity ids in append order.
    """

    id: int
    farmer: str
    data_hash: bytes
    status: ProductStatus
    registered_at: datetime
    activity_ids: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class Activity:
    """One immutable, attributed event in the activity log."""

    id: int
    product_id: int
    actor: str
    data_hash: bytes
    timestamp: datetime
    operation: str


@dataclass(frozen=True, slots=True)
class ProductTrace:
    """Public projection of a product returned by ``trace_product``."""

    farmer: str
    data_hash: bytes
    status: ProductStatus
    registered_at: datetime
    activity_ids: tuple[int, ...]

    @classmethod
    def from_product(cls, product: Product) -> "ProductTrace":
        return cls(
            farmer=product.farmer,
            data_hash=product.data_hash,
            status=product.status,
            registered_at=product.registered_at,
            activity_ids=product.activity_ids,
        )
