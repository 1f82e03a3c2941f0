#!/usr/bin/env python3
"""
Run a receipt reconciliation operation against the ledger database.

Usage:
    python3 scripts/reconcile_receipts.py audit
    python3 scripts/reconcile_receipts.py create-missing --actor ops@example.com
    python3 scripts/reconcile_receipts.py fix-zero-amounts
    python3 scripts/reconcile_receipts.py fix-bill B-1001
    python3 scripts/reconcile_receipts.py --database-url sqlite:///ledger.db audit

Prints the result envelope as JSON.  Exit code 0 on success, 1 on failure.
"""

import argparse
import json
import sys
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


class _EnvelopeEncoder(json.JSONEncoder):
    """Decimal amounts as strings, timestamps as ISO-8601."""

    def default(self, obj):
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Audit and repair the receipt ledger against the bill ledger.",
    )
    parser.add_argument("--config", type=Path, default=None,
                        help="Settings YAML (default: packaged default.yaml)")
    parser.add_argument("--database-url", default=None,
                        help="Override the configured database URL")
    parser.add_argument("--actor", default=None,
                        help="Actor recorded in the log context")
    parser.add_argument("--create-tables", action="store_true",
                        help="Create the bill/receipt tables if missing")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("audit", help="Report missing, zero-amount, duplicate and orphaned receipts")
    sub.add_parser("create-missing", help="Create receipts for paid bills without receipts")
    sub.add_parser("fix-zero-amounts", help="Correct zero/negative receipt amounts")
    fix_bill = sub.add_parser("fix-bill", help="Correct the receipts of one bill")
    fix_bill.add_argument("bill_number")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    from recon_config import get_active_settings
    from recon_kernel.db.engine import (
        create_tables,
        get_session_factory,
        init_engine_from_url,
    )
    from recon_kernel.logging_config import configure_logging
    from recon_services.receipt_migration_service import ReceiptMigrationService

    settings = get_active_settings(args.config)
    if args.database_url:
        settings = replace(settings, database_url=args.database_url)

    configure_logging(level=settings.log_level_number)
    init_engine_from_url(
        settings.database_url,
        echo=settings.echo_sql,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )
    if args.create_tables:
        create_tables()

    service = ReceiptMigrationService.from_settings(
        settings, get_session_factory(), actor_id=args.actor,
    )

    if args.command == "audit":
        result = service.get_audit_report()
    elif args.command == "create-missing":
        result = service.create_missing_receipts()
    elif args.command == "fix-zero-amounts":
        result = service.fix_zero_amount_receipts()
    else:
        result = service.fix_specific_bill_receipt(args.bill_number)

    print(json.dumps(result.to_dict(), cls=_EnvelopeEncoder, indent=2))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
