"""
Unit tests for roles, statuses and the transition table
(agritrace/core/lifecycle.py).

All tests are pure unit tests with no storage.
"""

import pytest

from agritrace.core.lifecycle import (
    REGISTER_PRODUCT,
    TRANSITIONS,
    ProductStatus,
    Role,
    get_transition,
    operations_for_role,
)

# ============================================================================
# ROLE ENUM TESTS
# ============================================================================


@pytest.mark.unit
def test_role_enum_values():
    """Roles are stored as lowercase names."""
    assert [role.value for role in Role] == [
        "admin",
        "farmer",
        "distributor",
        "retailer",
        "consumer",
    ]


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("farmer", Role.FARMER),
        (" Retailer ", Role.RETAILER),
        (2, Role.DISTRIBUTOR),
        (0, Role.ADMIN),
        (Role.CONSUMER, Role.CONSUMER),
    ],
)
def test_role_parse_accepts_names_codes_and_members(value, expected):
    assert Role.parse(value) is expected


@pytest.mark.unit
@pytest.mark.parametrize("value", ["superuser", "", 5, -1, True, None, 1.0])
def test_role_parse_rejects_unknown_values(value):
    with pytest.raises(ValueError):
        Role.parse(value)


# ============================================================================
# STATUS TESTS
# ============================================================================


@pytest.mark.unit
def test_status_codes_follow_forward_order():
    assert [int(status) for status in ProductStatus] == [0, 1, 2, 3, 4]
    assert ProductStatus.REGISTERED < ProductStatus.HARVESTED < ProductStatus.SOLD


@pytest.mark.unit
def test_status_labels():
    assert ProductStatus.IN_TRANSIT.label == "InTransit"
    assert ProductStatus.IN_STORAGE.label == "InStorage"
    assert ProductStatus.SOLD.label == "Sold"


# ============================================================================
# TRANSITION TABLE TESTS
# ============================================================================


@pytest.mark.unit
def test_transition_table_covers_every_custody_operation():
    assert set(TRANSITIONS) == {
        "update_farming_activity",
        "record_production_process",
        "receive_from_farmer",
        "update_transport_info",
        "record_storage_condition",
        "transfer_to_retailer",
        "receive_from_distributor",
        "update_warehouse_info",
        "sell_to_consumer",
        "confirm_purchase",
        "submit_review",
    }


@pytest.mark.unit
def test_advancing_operations_move_exactly_one_step_forward():
    advancing = [rule for rule in TRANSITIONS.values() if rule.advances_to is not None]

    assert {rule.operation for rule in advancing} == {
        "record_production_process",
        "receive_from_farmer",
        "receive_from_distributor",
        "sell_to_consumer",
    }
    for rule in advancing:
        assert rule.advances_to == rule.requires + 1


@pytest.mark.unit
def test_transfer_to_retailer_is_log_only():
    rule = get_transition("transfer_to_retailer")

    assert rule.role is Role.DISTRIBUTOR
    assert rule.requires is ProductStatus.IN_TRANSIT
    assert rule.advances_to is None


@pytest.mark.unit
def test_only_farmer_operations_are_owner_only():
    owner_only = {rule.operation for rule in TRANSITIONS.values() if rule.owner_only}
    assert owner_only == {"update_farming_activity", "record_production_process"}


@pytest.mark.unit
def test_get_transition_rejects_unknown_operation():
    with pytest.raises(ValueError, match="Unknown ledger operation"):
        get_transition("teleport")


@pytest.mark.unit
def test_operations_for_role():
    assert operations_for_role(Role.FARMER) == [
        REGISTER_PRODUCT,
        "update_farming_activity",
        "record_production_process",
    ]
    assert operations_for_role(Role.CONSUMER) == ["confirm_purchase", "submit_review"]
    assert operations_for_role(Role.ADMIN) == []
