"""
Traceability ledger service.

:class:`TraceabilityLedger` is the single owner of ledger state: participant
registry, product table and activity log, persisted in one SQLite database.
It is the only write path; the HTTP API, the CLI and the tests all go
through it.

Mutation model
--------------
Every mutating call:

1. takes the instance writer lock,
2. opens one ``BEGIN IMMEDIATE`` transaction (serialises writers across
   processes as well),
3. checks caller role/active flag, product existence, ownership and the
   predecessor status, in that order,
4. updates the product status (status-advancing operations only),
5. appends exactly one activity attributed to the caller,
6. commits.

Any failure rolls the transaction back, so an operation either applies fully
or leaves no trace. Reads run in their own deferred transaction and therefore
see a consistent snapshot: a status is never visible without the activity
that produced it.

Usage::

    ledger = TraceabilityLedger.initialize("0xadmin")
    ledger.register_participant("0xadmin", "0xfarmer", Role.FARMER, farmer_hash)
    product_id = ledger.register_product("0xfarmer", product_hash)
    ledger.record_production_process("0xfarmer", product_id, harvest_hash)
    trace = ledger.trace_product(product_id)
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

from agritrace.core.digest import ZERO_DIGEST, normalize_digest
from agritrace.core.errors import (
    AlreadyRegistered,
    InvalidStateTransition,
    LedgerError,
    NotFound,
    Unauthorized,
)
from agritrace.core.lifecycle import REGISTER_PRODUCT, Role, get_transition
from agritrace.core.models import Activity, Participant, Product, ProductTrace
from agritrace.db import activities_repo, participants_repo, products_repo
from agritrace.db.connection import connection_scope, get_db_path
from agritrace.db.schema import create_schema, get_meta, schema_exists, set_meta

logger = logging.getLogger(__name__)

DigestLike = bytes | str

ADMIN_META_KEY = "admin_identity"


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _require_identity(identity: str) -> str:
    """Validate an identity argument supplied for registration."""
    if not isinstance(identity, str) or not identity.strip():
        raise ValueError("Participant identity must be a non-empty string.")
    return identity.strip()


def _require_id(value: int, kind: str) -> int:
    """Validate a product/activity id argument (range is checked by lookup)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{kind} id must be an integer, got {value!r}.")
    return value


class TraceabilityLedger:
    """
    Role-gated custody ledger backed by SQLite.

    Args:
        db_path: Database file. Defaults to ``config.database.absolute_path``
            resolved at call time.
        clock: Source of "now" for activity timestamps. Must return
            timezone-aware datetimes; naive values are taken as UTC.
    """

    def __init__(
        self,
        db_path: Path | str | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._db_path = Path(db_path) if db_path is not None else None
        self._clock = clock or _utc_now
        self._write_lock = threading.Lock()

    @property
    def db_path(self) -> Path:
        return self._db_path if self._db_path is not None else get_db_path()

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    @classmethod
    def initialize(
        cls,
        admin_identity: str,
        data_hash: DigestLike = ZERO_DIGEST,
        *,
        db_path: Path | str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> "TraceabilityLedger":
        """Create the schema and seed the permanent admin.

        Calling it again with the same admin is a no-op, so deployments can
        run it on every start.

        Raises:
            AlreadyRegistered: If the ledger already belongs to another admin.
        """
        ledger = cls(db_path, clock=clock)
        ledger._bootstrap(_require_identity(admin_identity), normalize_digest(data_hash))
        return ledger

    def _bootstrap(self, admin_identity: str, digest: bytes) -> None:
        with self._mutation("initialize") as cursor:
            create_schema(cursor)
            current_admin = get_meta(cursor, ADMIN_META_KEY)
            if current_admin is None:
                now = self._now()
                participants_repo.insert_participant(
                    cursor,
                    identity=admin_identity,
                    role=Role.ADMIN,
                    data_hash=digest,
                    registered_at=now,
                )
                set_meta(cursor, ADMIN_META_KEY, admin_identity)
                set_meta(cursor, "initialized_at", activities_repo.format_timestamp(now))
                logger.info("ledger: initialized with admin %s at %s", admin_identity, self.db_path)
            elif current_admin != admin_identity:
                raise AlreadyRegistered(
                    "initialize",
                    f"ledger is already administered by {current_admin!r}",
                )

    def get_admin_identity(self) -> str:
        """Return the identity that initialized the ledger."""
        with self._read("get_admin_identity") as cursor:
            admin = get_meta(cursor, ADMIN_META_KEY) if schema_exists(cursor) else None
        if admin is None:
            raise NotFound("get_admin_identity", "ledger has not been initialized")
        return admin

    # ------------------------------------------------------------------
    # Participant registry
    # ------------------------------------------------------------------

    def register_participant(
        self,
        caller: str,
        identity: str,
        role: Role | str | int,
        data_hash: DigestLike,
    ) -> None:
        """Register ``identity`` with ``role``; only an active admin may call this."""
        operation = "register_participant"
        identity = _require_identity(identity)
        role = Role.parse(role)
        digest = normalize_digest(data_hash)

        with self._mutation(operation) as cursor:
            self._require_role(cursor, operation, caller, Role.ADMIN)
            if participants_repo.get_participant(cursor, identity) is not None:
                raise AlreadyRegistered(
                    operation, f"participant {identity!r} is already registered"
                )
            participants_repo.insert_participant(
                cursor,
                identity=identity,
                role=role,
                data_hash=digest,
                registered_at=self._now(),
            )

        logger.info("ledger: %s registered %s as %s", caller, identity, role.value)

    def get_participant(self, identity: str) -> Participant:
        """Return a registered participant.

        Raises:
            NotFound: If ``identity`` is not registered.
        """
        with self._read("get_participant") as cursor:
            participant = participants_repo.get_participant(cursor, identity)
        if participant is None:
            raise NotFound("get_participant", f"participant {identity!r} is not registered")
        return participant

    def get_total_participants(self) -> int:
        with self._read("get_total_participants") as cursor:
            return participants_repo.count_participants(cursor)

    # ------------------------------------------------------------------
    # Product ledger
    # ------------------------------------------------------------------

    def register_product(self, caller: str, data_hash: DigestLike) -> int:
        """Register a new product owned by the calling farmer.

        Appends the registration activity and returns the new product id.
        """
        digest = normalize_digest(data_hash)

        with self._mutation(REGISTER_PRODUCT) as cursor:
            self._require_role(cursor, REGISTER_PRODUCT, caller, Role.FARMER)
            timestamp = self._next_timestamp(cursor)
            product_id = products_repo.next_product_id(cursor)
            products_repo.insert_product(
                cursor,
                product_id=product_id,
                farmer=caller,
                data_hash=digest,
                registered_at=timestamp,
            )
            activity_id = activities_repo.append_activity(
                cursor,
                product_id=product_id,
                actor=caller,
                operation=REGISTER_PRODUCT,
                data_hash=digest,
                timestamp=timestamp,
            )

        logger.info(
            "ledger: %s registered product %d (activity %d)", caller, product_id, activity_id
        )
        return product_id

    def apply_operation(
        self,
        operation: str,
        caller: str,
        product_id: int,
        data_hash: DigestLike,
    ) -> int:
        """Run one transition-table operation and return the new activity id.

        Raises:
            ValueError: Unknown operation name, bad id type or malformed digest.
            Unauthorized: Caller unregistered, inactive or holding another role.
            NotFound: ``product_id`` does not exist.
            InvalidStateTransition: Wrong predecessor status, or the caller
                is not the product's farmer for owner-only operations.
        """
        rule = get_transition(operation)
        product_id = _require_id(product_id, "product")
        digest = normalize_digest(data_hash)

        with self._mutation(operation) as cursor:
            self._require_role(cursor, operation, caller, rule.role)

            product = products_repo.get_product(cursor, product_id)
            if product is None:
                raise NotFound(operation, f"product {product_id} does not exist")
            if rule.owner_only and product.farmer != caller:
                raise InvalidStateTransition(
                    operation,
                    f"{caller!r} is not the farmer of product {product_id}",
                )
            if product.status != rule.requires:
                raise InvalidStateTransition(
                    operation,
                    f"product {product_id} is {product.status.label}, "
                    f"requires {rule.requires.label}",
                )

            if rule.advances_to is not None:
                products_repo.set_status(cursor, product_id, rule.advances_to)
            activity_id = activities_repo.append_activity(
                cursor,
                product_id=product_id,
                actor=caller,
                operation=operation,
                data_hash=digest,
                timestamp=self._next_timestamp(cursor),
            )

        if rule.advances_to is not None:
            logger.info(
                "ledger: %s on product %d by %s -> %s (activity %d)",
                operation,
                product_id,
                caller,
                rule.advances_to.label,
                activity_id,
            )
        else:
            logger.info(
                "ledger: %s on product %d by %s (activity %d)",
                operation,
                product_id,
                caller,
                activity_id,
            )
        return activity_id

    def update_farming_activity(self, caller: str, product_id: int, data_hash: DigestLike) -> int:
        """Farmer logs a growing-phase observation (product stays Registered)."""
        return self.apply_operation("update_farming_activity", caller, product_id, data_hash)

    def record_production_process(
        self, caller: str, product_id: int, data_hash: DigestLike
    ) -> int:
        """Farmer records the harvest: Registered → Harvested."""
        return self.apply_operation("record_production_process", caller, product_id, data_hash)

    def receive_from_farmer(self, caller: str, product_id: int, data_hash: DigestLike) -> int:
        """Distributor picks up the harvest: Harvested → InTransit."""
        return self.apply_operation("receive_from_farmer", caller, product_id, data_hash)

    def update_transport_info(self, caller: str, product_id: int, data_hash: DigestLike) -> int:
        return self.apply_operation("update_transport_info", caller, product_id, data_hash)

    def record_storage_condition(
        self, caller: str, product_id: int, data_hash: DigestLike
    ) -> int:
        return self.apply_operation("record_storage_condition", caller, product_id, data_hash)

    def transfer_to_retailer(self, caller: str, product_id: int, data_hash: DigestLike) -> int:
        """Distributor logs the handoff; the status stays InTransit."""
        return self.apply_operation("transfer_to_retailer", caller, product_id, data_hash)

    def receive_from_distributor(
        self, caller: str, product_id: int, data_hash: DigestLike
    ) -> int:
        """Retailer confirms receipt: InTransit → InStorage."""
        return self.apply_operation("receive_from_distributor", caller, product_id, data_hash)

    def update_warehouse_info(self, caller: str, product_id: int, data_hash: DigestLike) -> int:
        return self.apply_operation("update_warehouse_info", caller, product_id, data_hash)

    def sell_to_consumer(self, caller: str, product_id: int, data_hash: DigestLike) -> int:
        """Retailer sells the product: InStorage → Sold."""
        return self.apply_operation("sell_to_consumer", caller, product_id, data_hash)

    def confirm_purchase(self, caller: str, product_id: int, data_hash: DigestLike) -> int:
        return self.apply_operation("confirm_purchase", caller, product_id, data_hash)

    def submit_review(self, caller: str, product_id: int, data_hash: DigestLike) -> int:
        return self.apply_operation("submit_review", caller, product_id, data_hash)

    def get_product(self, product_id: int) -> Product:
        """Return the full product record.

        Raises:
            NotFound: If the product does not exist.
        """
        product_id = _require_id(product_id, "product")
        with self._read("get_product") as cursor:
            product = products_repo.get_product(cursor, product_id)
        if product is None:
            raise NotFound("get_product", f"product {product_id} does not exist")
        return product

    def get_total_products(self) -> int:
        with self._read("get_total_products") as cursor:
            return products_repo.count_products(cursor)

    def verify_product_hash(self, product_id: int, data_hash: DigestLike) -> bool:
        """Return ``True`` when ``data_hash`` matches the registered product digest."""
        digest = normalize_digest(data_hash)
        return self.get_product(product_id).data_hash == digest

    # ------------------------------------------------------------------
    # Activity log
    # ------------------------------------------------------------------

    def get_activity(self, activity_id: int) -> Activity:
        """Return one activity.

        Raises:
            NotFound: If ``activity_id`` is out of range.
        """
        activity_id = _require_id(activity_id, "activity")
        with self._read("get_activity") as cursor:
            activity = activities_repo.get_activity(cursor, activity_id)
        if activity is None:
            raise NotFound("get_activity", f"activity {activity_id} does not exist")
        return activity

    def get_activities_for_product(self, product_id: int) -> tuple[int, ...]:
        """Return a product's activity ids in append order.

        Raises:
            NotFound: If the product does not exist.
        """
        product_id = _require_id(product_id, "product")
        with self._read("get_activities_for_product") as cursor:
            product = products_repo.get_product(cursor, product_id)
        if product is None:
            raise NotFound("get_activities_for_product", f"product {product_id} does not exist")
        return product.activity_ids

    def get_total_activities(self) -> int:
        with self._read("get_total_activities") as cursor:
            return activities_repo.count_activities(cursor)

    def verify_activity_hash(self, activity_id: int, data_hash: DigestLike) -> bool:
        """Return ``True`` when ``data_hash`` matches the stored activity digest."""
        digest = normalize_digest(data_hash)
        return self.get_activity(activity_id).data_hash == digest

    # ------------------------------------------------------------------
    # Trace query
    # ------------------------------------------------------------------

    def trace_product(self, product_id: int) -> ProductTrace:
        """Public projection of a product for auditors; no caller required.

        Raises:
            NotFound: If the product does not exist.
        """
        product_id = _require_id(product_id, "product")
        with self._read("trace_product") as cursor:
            product = products_repo.get_product(cursor, product_id)
        if product is None:
            raise NotFound("trace_product", f"product {product_id} does not exist")
        logger.debug(
            "ledger: traced product %d (%d activities)", product_id, len(product.activity_ids)
        )
        return ProductTrace.from_product(product)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _mutation(self, operation: str) -> Iterator[sqlite3.Cursor]:
        """Serialised write transaction; rejected calls are logged and re-raised."""
        with self._write_lock:
            try:
                with connection_scope(
                    f"ledger.{operation}", write=True, db_path=self._db_path
                ) as cursor:
                    yield cursor
            except LedgerError as exc:
                logger.warning("ledger: %s rejected (%s): %s", operation, exc.error_kind, exc)
                raise

    def _read(self, operation: str):
        return connection_scope(f"ledger.{operation}", db_path=self._db_path)

    def _require_role(
        self,
        cursor: sqlite3.Cursor,
        operation: str,
        caller: str | None,
        role: Role,
    ) -> Participant:
        participant = (
            participants_repo.get_participant(cursor, caller)
            if isinstance(caller, str) and caller
            else None
        )
        if participant is None:
            raise Unauthorized(operation, f"caller {caller!r} is not a registered participant")
        if not participant.is_active:
            raise Unauthorized(operation, f"participant {caller!r} is inactive")
        if participant.role is not role:
            raise Unauthorized(
                operation,
                f"requires role {role.value}, {caller!r} is {participant.role.value}",
            )
        return participant

    def _now(self) -> datetime:
        moment = self._clock()
        if moment.tzinfo is None:
            return moment.replace(tzinfo=UTC)
        return moment.astimezone(UTC)

    def _next_timestamp(self, cursor: sqlite3.Cursor) -> datetime:
        """Clock reading clamped so activity timestamps never decrease."""
        moment = self._now()
        latest = activities_repo.latest_timestamp(cursor)
        if latest is not None and latest > moment:
            return latest
        return moment
