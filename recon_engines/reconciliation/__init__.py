"""
Reconciliation - pure bill/receipt classification.

The stateful repair and audit services live in recon_services.
"""

from recon_engines.reconciliation.types import (
    AmountCorrection,
    AuditReport,
    BillLookup,
    CorrectionOutcome,
    DuplicateReceiptGroup,
    MissingReceiptFinding,
    OrphanedReceiptFinding,
    ReceiptIndex,
    ZeroAmountFinding,
)

from recon_engines.reconciliation.analyzer import (
    ReceiptReconciliationAnalyzer,
    build_receipt_index,
    compute_correct_amount,
)

__all__ = [
    "AmountCorrection",
    "AuditReport",
    "BillLookup",
    "CorrectionOutcome",
    "DuplicateReceiptGroup",
    "MissingReceiptFinding",
    "OrphanedReceiptFinding",
    "ReceiptIndex",
    "ZeroAmountFinding",
    "ReceiptReconciliationAnalyzer",
    "build_receipt_index",
    "compute_correct_amount",
]
