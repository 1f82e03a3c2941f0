"""
ReceiptAuditService -- read-only audit report over both ledgers.

Loads the full bill and receipt snapshot without row locks and delegates
to ReceiptReconciliationAnalyzer.build_audit_report().  Does NOT persist
the report and does NOT modify any data.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from recon_kernel.logging_config import get_logger
from recon_kernel.selectors.ledger_selector import LedgerSnapshotSelector

from recon_engines.reconciliation.analyzer import ReceiptReconciliationAnalyzer
from recon_engines.reconciliation.types import AuditReport

logger = get_logger("services.receipt_audit")


class ReceiptAuditService:
    """Builds audit reports from the caller's session."""

    def __init__(
        self,
        session: Session,
        analyzer: ReceiptReconciliationAnalyzer | None = None,
    ) -> None:
        self._selector = LedgerSnapshotSelector(session)
        self._analyzer = analyzer or ReceiptReconciliationAnalyzer()

    def build_report(self) -> AuditReport:
        snapshot = self._selector.load_snapshot()
        report = self._analyzer.build_audit_report(snapshot.bills, snapshot.receipts)

        logger.info(
            "audit_report_generated",
            extra={
                "total_bills": report.total_bills,
                "total_receipts": report.total_receipts,
                "bills_without_receipts": len(report.bills_without_receipts),
                "zero_amount_receipts": len(report.zero_amount_receipts),
                "duplicate_receipts": len(report.duplicate_receipts),
                "orphaned_receipts": len(report.orphaned_receipts),
            },
        )
        return report
