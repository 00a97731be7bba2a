"""
Shared pytest fixtures for the ledger test suite.

This module provides fixtures that are automatically available to all test files:
- Temporary SQLite databases wired through ``use_test_database``
- Initialized ledgers, with and without the custody-chain participants
- Helpers that walk a product to a given custody status
- FastAPI TestClient instances bound to a seeded ledger

Every fixture is function-scoped so each test starts from an empty ledger.
"""

from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from agritrace.api.server import create_app
from agritrace.config import use_test_database
from agritrace.core.ledger import TraceabilityLedger
from agritrace.core.lifecycle import ProductStatus, Role
from tests.constants import (
    ADMIN,
    CONSUMER,
    DISTRIBUTOR,
    FARMER,
    OTHER_FARMER,
    RETAILER,
    digest,
)

# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path(tmp_path: Path) -> Generator[Path, None, None]:
    """
    Point the configuration at a fresh database file for one test.

    Yields:
        Path to the temporary database file
    """
    with use_test_database(tmp_path / "ledger.db") as db_path:
        yield db_path


@pytest.fixture(scope="function")
def ledger(temp_db_path: Path) -> TraceabilityLedger:
    """An initialized ledger administered by ``ADMIN`` with no other participants."""
    return TraceabilityLedger.initialize(ADMIN, digest("admin profile"))


@pytest.fixture(scope="function")
def seeded_ledger(ledger: TraceabilityLedger) -> TraceabilityLedger:
    """
    Ledger with one participant per custody role registered by the admin.

    Registered participants:
    - FARMER and OTHER_FARMER (role: farmer)
    - DISTRIBUTOR (role: distributor)
    - RETAILER (role: retailer)
    - CONSUMER (role: consumer)
    """
    participants = {
        FARMER: Role.FARMER,
        OTHER_FARMER: Role.FARMER,
        DISTRIBUTOR: Role.DISTRIBUTOR,
        RETAILER: Role.RETAILER,
        CONSUMER: Role.CONSUMER,
    }
    for identity, role in participants.items():
        ledger.register_participant(ADMIN, identity, role, digest(f"{identity} profile"))
    return ledger


# ============================================================================
# PRODUCT JOURNEY HELPERS
# ============================================================================

# Status-advancing step that leads into each status, in chain order.
ADVANCING_STEPS = (
    (ProductStatus.HARVESTED, "record_production_process", FARMER),
    (ProductStatus.IN_TRANSIT, "receive_from_farmer", DISTRIBUTOR),
    (ProductStatus.IN_STORAGE, "receive_from_distributor", RETAILER),
    (ProductStatus.SOLD, "sell_to_consumer", RETAILER),
)


@pytest.fixture
def product_at(seeded_ledger: TraceabilityLedger) -> Callable[[ProductStatus], int]:
    """
    Factory that registers a product and advances it to ``status``.

    Usage:
        def test_something(seeded_ledger, product_at):
            product_id = product_at(ProductStatus.IN_STORAGE)
    """

    def _make(status: ProductStatus) -> int:
        product_id = seeded_ledger.register_product(FARMER, digest("rice"))
        for target, operation, caller in ADVANCING_STEPS:
            if target > status:
                break
            seeded_ledger.apply_operation(
                operation, caller, product_id, digest(f"{operation} {product_id}")
            )
        return product_id

    return _make


# ============================================================================
# API FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def test_client(seeded_ledger: TraceabilityLedger) -> TestClient:
    """FastAPI TestClient serving the seeded ledger."""
    return TestClient(create_app(seeded_ledger))
