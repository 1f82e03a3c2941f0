"""
recon_services -- imperative shell around the reconciliation analyzer.

ReceiptMigrationService is the caller-facing entry point; it opens one
transaction per operation and drives ReceiptRepairExecutor or
ReceiptAuditService inside it.
"""

from recon_services.receipt_audit_service import ReceiptAuditService
from recon_services.receipt_migration_service import (
    OperationResult,
    ReceiptMigrationService,
)
from recon_services.receipt_repair_service import (
    CreateMissingResult,
    FixAmountsResult,
    ReceiptFix,
    ReceiptRepairExecutor,
    SkippedCorrection,
)

__all__ = [
    "CreateMissingResult",
    "FixAmountsResult",
    "OperationResult",
    "ReceiptAuditService",
    "ReceiptFix",
    "ReceiptMigrationService",
    "ReceiptRepairExecutor",
    "SkippedCorrection",
]
