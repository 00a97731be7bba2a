"""
Roles, custody statuses and the product transition table.

Role Model:
    Every participant holds exactly one role from a closed set. Roles are not
    hierarchical: an admin cannot act as a farmer and a retailer cannot act as
    a distributor. Each ledger operation names the one role allowed to call it.

Custody Lifecycle (strict forward order):
    REGISTERED → HARVESTED → IN_TRANSIT → IN_STORAGE → SOLD

Operations either advance the status by one milestone or log an observation
without changing it. Every operation requires the product to be in exactly
one predecessor status; there is no skipping and no going back.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

# ============================================================================
# ROLE DEFINITIONS
# ============================================================================


class Role(Enum):
    """
    Participant roles in the custody chain.

    Stored as lowercase strings in the database. The order below follows the
    custody chain and fixes the numeric role codes accepted from clients
    (admin=0 ... consumer=4), see :meth:`from_code`.
    """

    ADMIN = "admin"
    FARMER = "farmer"
    DISTRIBUTOR = "distributor"
    RETAILER = "retailer"
    CONSUMER = "consumer"

    @classmethod
    def parse(cls, value: "Role | str | int") -> "Role":
        """Coerce a role name, numeric code or enum member to :class:`Role`.

        Raises:
            ValueError: If the value does not name a role.
        """
        if isinstance(value, Role):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls.from_code(value)
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ValueError(f"Unknown role: {value!r}")

    @classmethod
    def from_code(cls, code: int) -> "Role":
        """Map a numeric role code (0-4) to a role."""
        members = list(cls)
        if not 0 <= code < len(members):
            raise ValueError(f"Unknown role code: {code!r}")
        return members[code]


# ============================================================================
# CUSTODY STATUS
# ============================================================================


class ProductStatus(IntEnum):
    """Custody milestones of a product, in strict forward order."""

    REGISTERED = 0
    HARVESTED = 1
    IN_TRANSIT = 2
    IN_STORAGE = 3
    SOLD = 4

    @property
    def label(self) -> str:
        """Human-readable label (``InTransit`` style)."""
        return "".join(part.capitalize() for part in self.name.split("_"))


# ============================================================================
# TRANSITION TABLE
# ============================================================================


@dataclass(frozen=True, slots=True)
class TransitionRule:
    """
    One row of the custody transition table.

    Attributes:
        operation: Ledger operation name (also recorded on the activity).
        role: The only role allowed to call the operation.
        requires: Status the product must currently be in.
        advances_to: New status, or ``None`` for log-only operations.
        owner_only: When True, the caller must be the product's farmer.
    """

    operation: str
    role: Role
    requires: ProductStatus
    advances_to: ProductStatus | None = None
    owner_only: bool = False


REGISTER_PRODUCT = "register_product"

TRANSITIONS: dict[str, TransitionRule] = {
    rule.operation: rule
    for rule in (
        # Farmer: observations while growing, then the harvest milestone.
        TransitionRule(
            "update_farming_activity", Role.FARMER, ProductStatus.REGISTERED, owner_only=True
        ),
        TransitionRule(
            "record_production_process",
            Role.FARMER,
            ProductStatus.REGISTERED,
            advances_to=ProductStatus.HARVESTED,
            owner_only=True,
        ),
        # Distributor: pickup, then transport/storage observations and handoff.
        TransitionRule(
            "receive_from_farmer",
            Role.DISTRIBUTOR,
            ProductStatus.HARVESTED,
            advances_to=ProductStatus.IN_TRANSIT,
        ),
        TransitionRule("update_transport_info", Role.DISTRIBUTOR, ProductStatus.IN_TRANSIT),
        TransitionRule("record_storage_condition", Role.DISTRIBUTOR, ProductStatus.IN_TRANSIT),
        # Handoff is logged only; the product stays IN_TRANSIT until the
        # retailer confirms receipt.
        TransitionRule("transfer_to_retailer", Role.DISTRIBUTOR, ProductStatus.IN_TRANSIT),
        # Retailer: receipt, warehouse observations, sale.
        TransitionRule(
            "receive_from_distributor",
            Role.RETAILER,
            ProductStatus.IN_TRANSIT,
            advances_to=ProductStatus.IN_STORAGE,
        ),
        TransitionRule("update_warehouse_info", Role.RETAILER, ProductStatus.IN_STORAGE),
        TransitionRule(
            "sell_to_consumer",
            Role.RETAILER,
            ProductStatus.IN_STORAGE,
            advances_to=ProductStatus.SOLD,
        ),
        # Consumer: post-sale confirmations.
        TransitionRule("confirm_purchase", Role.CONSUMER, ProductStatus.SOLD),
        TransitionRule("submit_review", Role.CONSUMER, ProductStatus.SOLD),
    )
}


def get_transition(operation: str) -> TransitionRule:
    """Look up the rule for ``operation``.

    Raises:
        ValueError: If the operation is not part of the transition table.
    """
    try:
        return TRANSITIONS[operation]
    except KeyError:
        raise ValueError(f"Unknown ledger operation: {operation!r}") from None


def operations_for_role(role: Role) -> list[str]:
    """Return the operation names a role may call, in table order."""
    names = [REGISTER_PRODUCT] if role is Role.FARMER else []
    names.extend(rule.operation for rule in TRANSITIONS.values() if rule.role is role)
    return names
