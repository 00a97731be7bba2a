"""
Unit tests for CLI module (agritrace/cli.py).

Tests cover:
- Command parsing
- init-db command (flag and configured admin)
- run command bootstrap
- trace and demo output
"""

import argparse
from unittest.mock import patch

import pytest

from agritrace import cli
from agritrace.config import config
from agritrace.core.ledger import TraceabilityLedger
from agritrace.core.lifecycle import ProductStatus
from tests.constants import ADMIN

# ============================================================================
# PARSER TESTS
# ============================================================================


@pytest.mark.unit
def test_parser_knows_all_commands():
    parser = cli.build_parser()

    assert parser.parse_args(["init-db", "--admin", ADMIN]).func is cli.cmd_init_db
    assert parser.parse_args(["run", "-p", "9000"]).port == 9000
    assert parser.parse_args(["trace", "3"]).product_id == 3
    assert parser.parse_args(["demo"]).func is cli.cmd_demo


@pytest.mark.unit
def test_main_without_command_prints_help(capsys):
    assert cli.main([]) == 0
    assert "usage" in capsys.readouterr().out.lower()


@pytest.mark.unit
def test_trace_rejects_non_integer_id():
    with pytest.raises(SystemExit):
        cli.main(["trace", "rice"])


# ============================================================================
# INIT-DB COMMAND TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.db
def test_cmd_init_db_with_flag(temp_db_path, capsys):
    result = cli.cmd_init_db(argparse.Namespace(admin=ADMIN, db=None))

    assert result == 0
    assert ADMIN in capsys.readouterr().out
    assert TraceabilityLedger().get_admin_identity() == ADMIN


@pytest.mark.unit
@pytest.mark.db
def test_cmd_init_db_uses_configured_admin(temp_db_path, monkeypatch):
    monkeypatch.setattr(config.ledger, "admin_identity", "0xconfigured")

    assert cli.cmd_init_db(argparse.Namespace(admin=None, db=None)) == 0
    assert TraceabilityLedger().get_admin_identity() == "0xconfigured"


@pytest.mark.unit
def test_cmd_init_db_without_admin_fails(monkeypatch, capsys):
    monkeypatch.setattr(config.ledger, "admin_identity", "")

    assert cli.cmd_init_db(argparse.Namespace(admin=None, db=None)) == 1
    assert "AGRITRACE_ADMIN" in capsys.readouterr().err


@pytest.mark.unit
@pytest.mark.db
def test_cmd_init_db_conflicting_admin_fails(ledger, capsys):
    assert cli.cmd_init_db(argparse.Namespace(admin="0xintruder", db=None)) == 1
    assert "already administered" in capsys.readouterr().err


@pytest.mark.unit
@pytest.mark.db
def test_cmd_init_db_explicit_path(tmp_path):
    db_path = tmp_path / "cli.db"

    assert cli.main(["init-db", "--admin", ADMIN, "--db", str(db_path)]) == 0
    assert TraceabilityLedger(db_path).get_admin_identity() == ADMIN


# ============================================================================
# RUN COMMAND TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.db
def test_cmd_run_initializes_configured_ledger(temp_db_path, monkeypatch):
    monkeypatch.setattr(config.ledger, "admin_identity", ADMIN)

    with patch("agritrace.api.server.start_server") as mock_start:
        result = cli.cmd_run(argparse.Namespace(host="0.0.0.0", port=9000))

    assert result == 0
    mock_start.assert_called_once_with(host="0.0.0.0", port=9000)
    assert TraceabilityLedger().get_admin_identity() == ADMIN


@pytest.mark.unit
def test_cmd_run_keyboard_interrupt(monkeypatch):
    monkeypatch.setattr(config.ledger, "admin_identity", "")

    with patch("agritrace.api.server.start_server", side_effect=KeyboardInterrupt):
        assert cli.cmd_run(argparse.Namespace(host=None, port=None)) == 0


# ============================================================================
# TRACE / DEMO TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.db
def test_cmd_trace_prints_timeline(product_at, capsys):
    product_id = product_at(ProductStatus.IN_TRANSIT)

    assert cli.main(["trace", str(product_id)]) == 0

    out = capsys.readouterr().out
    assert "Status: InTransit" in out
    assert "Total Activities: 3" in out
    assert "Operation: receive_from_farmer" in out


@pytest.mark.unit
@pytest.mark.db
def test_cmd_trace_unknown_product(ledger, capsys):
    assert cli.main(["trace", "99"]) == 1
    assert "does not exist" in capsys.readouterr().err


@pytest.mark.unit
@pytest.mark.db
def test_demo_walks_product_to_consumer(tmp_path, capsys):
    db_path = tmp_path / "demo.db"

    assert cli.main(["demo", "--db", str(db_path)]) == 0

    out = capsys.readouterr().out
    assert "Status: Sold" in out
    assert "Total Products: 1" in out
    assert f"Total Activities: {len(cli.DEMO_STEPS) + 1}" in out

    ledger = TraceabilityLedger(db_path)
    assert ledger.get_product(1).status is ProductStatus.SOLD
    assert ledger.get_participant("0xconsumer").is_active is True


@pytest.mark.unit
@pytest.mark.db
def test_demo_on_existing_ledger_fails(tmp_path, capsys):
    db_path = tmp_path / "demo.db"
    assert cli.main(["demo", "--db", str(db_path)]) == 0
    capsys.readouterr()

    # Participants are already registered the second time round.
    assert cli.main(["demo", "--db", str(db_path)]) == 1
    assert "Demo failed" in capsys.readouterr().err
