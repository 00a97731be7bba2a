"""
Command-line interface for the AgriTrace ledger.

Provides CLI commands for ledger management:
- init-db: Create the ledger schema and seed the permanent admin
- run: Serve the HTTP API
- trace: Print the full history of one product
- demo: Walk one product through the whole custody chain

Usage:
    agritrace init-db --admin 0xADMIN
    agritrace run [--host HOST] [--port PORT]
    agritrace trace PRODUCT_ID
    agritrace demo [--db PATH]

Environment Variables:
    AGRITRACE_ADMIN: Admin identity used by init-db when --admin is omitted
    AGRITRACE_DB_PATH: Database file (default: data/agritrace.db)
    AGRITRACE_HOST / AGRITRACE_PORT: HTTP bind address for ``run``
"""

import argparse
import logging
import sys
import tempfile
from pathlib import Path

from agritrace.config import config, configure_logging
from agritrace.core.digest import hash_payload, to_hex
from agritrace.core.errors import LedgerError
from agritrace.core.ledger import TraceabilityLedger
from agritrace.core.lifecycle import Role
from agritrace.db.errors import DatabaseError

logger = logging.getLogger(__name__)


def cmd_init_db(args: argparse.Namespace) -> int:
    """
    Initialize the ledger database.

    The admin identity comes from ``--admin`` or ``AGRITRACE_ADMIN``. Running
    the command again with the same admin is harmless.

    Returns:
        0 on success, 1 on error
    """
    admin = getattr(args, "admin", None) or config.ledger.admin_identity
    if not admin:
        print(
            "Error: No admin identity provided.\n"
            "Pass --admin or set the AGRITRACE_ADMIN environment variable.",
            file=sys.stderr,
        )
        return 1

    try:
        ledger = TraceabilityLedger.initialize(admin, db_path=getattr(args, "db", None))
    except (LedgerError, DatabaseError, ValueError) as e:
        print(f"Error initializing ledger: {e}", file=sys.stderr)
        return 1

    print(f"Ledger initialized at {ledger.db_path} (admin: {admin}).")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """
    Serve the HTTP API.

    Initializes the ledger first when an admin identity is configured, so a
    fresh deployment can start with a single command.

    Returns:
        0 on clean shutdown (Ctrl+C), 1 on error during startup
    """
    from agritrace.api.server import start_server

    if config.ledger.admin_identity:
        try:
            TraceabilityLedger.initialize(config.ledger.admin_identity)
        except (LedgerError, DatabaseError) as e:
            print(f"Error initializing ledger: {e}", file=sys.stderr)
            return 1

    try:
        start_server(host=getattr(args, "host", None), port=getattr(args, "port", None))
        return 0
    except KeyboardInterrupt:
        print("\nServer stopped.")
        return 0


def format_trace(ledger: TraceabilityLedger, product_id: int) -> str:
    """Render a product's trace and activity timeline as text."""
    trace = ledger.trace_product(product_id)
    lines = [
        "Product Information:",
        f"- Product ID: {product_id}",
        f"- Farmer: {trace.farmer}",
        f"- Data Hash: {to_hex(trace.data_hash)}",
        f"- Status: {trace.status.label}",
        f"- Registered Time: {trace.registered_at.isoformat()}",
        f"- Total Activities: {len(trace.activity_ids)}",
        "",
        "Activity Timeline:",
    ]
    for position, activity_id in enumerate(trace.activity_ids, start=1):
        activity = ledger.get_activity(activity_id)
        lines.extend(
            [
                f"Activity {position}:",
                f"  - ID: {activity.id}",
                f"  - Operation: {activity.operation}",
                f"  - Actor: {activity.actor}",
                f"  - Hash: {to_hex(activity.data_hash)}",
                f"  - Time: {activity.timestamp.isoformat()}",
            ]
        )
    return "\n".join(lines)


def cmd_trace(args: argparse.Namespace) -> int:
    """Print one product's history. Returns 0 on success, 1 on error."""
    ledger = TraceabilityLedger(getattr(args, "db", None))
    try:
        print(format_trace(ledger, args.product_id))
    except (LedgerError, DatabaseError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


# Participants and payloads of the demo journey. Payloads are hashed with
# hash_payload; only the digests reach the ledger.
DEMO_PARTICIPANTS = (
    ("0xfarmer", Role.FARMER, {"name": "Nguyen Van A", "location": "Mekong Delta"}),
    ("0xdistributor", Role.DISTRIBUTOR, {"name": "VN Express Logistics", "location": "Hanoi"}),
    ("0xretailer", Role.RETAILER, {"name": "VinMart Supermarket", "location": "Ho Chi Minh City"}),
    ("0xconsumer", Role.CONSUMER, {"name": "Tran Thi B"}),
)

DEMO_STEPS = (
    ("update_farming_activity", "0xfarmer", {"activity": "Planted seeds", "date": "2025-01-15"}),
    (
        "update_farming_activity",
        "0xfarmer",
        {"activity": "Applied organic fertilizer", "date": "2025-02-01", "quantity": "500kg"},
    ),
    ("update_farming_activity", "0xfarmer", {"activity": "Pest control", "date": "2025-03-01"}),
    (
        "record_production_process",
        "0xfarmer",
        {"activity": "Harvested", "date": "2025-05-20", "quantity": "25 tons"},
    ),
    (
        "receive_from_farmer",
        "0xdistributor",
        {"activity": "Received from farmer", "date": "2025-05-21", "condition": "Grade A"},
    ),
    (
        "update_transport_info",
        "0xdistributor",
        {"activity": "Transport update", "location": "Highway 1", "temperature": "5C"},
    ),
    (
        "record_storage_condition",
        "0xdistributor",
        {"activity": "Storage condition", "temperature": "4C", "humidity": "55%"},
    ),
    (
        "transfer_to_retailer",
        "0xdistributor",
        {"activity": "Transfer to retailer", "date": "2025-05-22"},
    ),
    (
        "receive_from_distributor",
        "0xretailer",
        {"activity": "Received from distributor", "date": "2025-05-22"},
    ),
    (
        "update_warehouse_info",
        "0xretailer",
        {"activity": "Warehouse storage", "section": "A-12", "temperature": "18C"},
    ),
    (
        "sell_to_consumer",
        "0xretailer",
        {"activity": "Sold to consumer", "quantity": "5kg", "price": "150000 VND"},
    ),
    ("confirm_purchase", "0xconsumer", {"activity": "Purchase confirmed", "quantity": "5kg"}),
    ("submit_review", "0xconsumer", {"activity": "Product review", "rating": 5}),
)

DEMO_PRODUCT = {
    "name": "Organic ST25 Rice",
    "variety": "ST25",
    "origin": "An Giang Province",
    "farmingMethod": "Organic",
    "certifications": ["VietGAP", "Organic Cert"],
}


def run_demo(ledger: TraceabilityLedger, admin: str) -> int:
    """Register the demo participants and walk one product to the consumer.

    Returns:
        The demo product's id.
    """
    for identity, role, profile in DEMO_PARTICIPANTS:
        ledger.register_participant(admin, identity, role, hash_payload(profile))
        logger.info("demo: registered %s as %s", identity, role.value)

    product_id = ledger.register_product("0xfarmer", hash_payload(DEMO_PRODUCT))
    for operation, caller, payload in DEMO_STEPS:
        ledger.apply_operation(operation, caller, product_id, hash_payload(payload))
    return product_id


def cmd_demo(args: argparse.Namespace) -> int:
    """Run the demo journey against a fresh ledger and print its trace."""
    db_path = getattr(args, "db", None)
    if db_path is None:
        db_path = Path(tempfile.mkdtemp(prefix="agritrace-demo-")) / "demo.db"

    admin = "0xadmin"
    try:
        ledger = TraceabilityLedger.initialize(admin, db_path=db_path)
        product_id = run_demo(ledger, admin)
    except (LedgerError, DatabaseError) as e:
        print(f"Demo failed: {e}", file=sys.stderr)
        return 1

    print(format_trace(ledger, product_id))
    print("\n=== SUMMARY ===")
    print(f"Total Products: {ledger.get_total_products()}")
    print(f"Total Activities: {ledger.get_total_activities()}")
    print(f"Database: {ledger.db_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="agritrace",
        description="AgriTrace - agricultural supply-chain traceability ledger",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser(
        "init-db",
        help="Initialize the ledger database",
        description="Create the ledger schema and seed the permanent admin identity.",
    )
    init_parser.add_argument("--admin", type=str, help="Admin identity (or AGRITRACE_ADMIN)")
    init_parser.add_argument("--db", type=Path, help="Database file (default from config)")
    init_parser.set_defaults(func=cmd_init_db)

    run_parser = subparsers.add_parser("run", help="Serve the HTTP API")
    run_parser.add_argument("--host", type=str, help="Bind host (or AGRITRACE_HOST)")
    run_parser.add_argument("--port", "-p", type=int, help="Bind port (or AGRITRACE_PORT)")
    run_parser.set_defaults(func=cmd_run)

    trace_parser = subparsers.add_parser("trace", help="Print a product's history")
    trace_parser.add_argument("product_id", type=int, help="Product id")
    trace_parser.add_argument("--db", type=Path, help="Database file (default from config)")
    trace_parser.set_defaults(func=cmd_trace)

    demo_parser = subparsers.add_parser(
        "demo",
        help="Run the farmer-to-consumer demo journey",
        description="Runs against a fresh temporary database unless --db is given.",
    )
    demo_parser.add_argument("--db", type=Path, help="Database file for the demo ledger")
    demo_parser.set_defaults(func=cmd_demo)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
