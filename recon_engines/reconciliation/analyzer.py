"""
ReceiptReconciliationAnalyzer -- Pure engine for bill/receipt reconciliation.

Classifies the two ledgers into missing receipts, zero/incorrect-amount
receipts, duplicate creation receipts and orphaned receipts, and decides
what amount a wrong receipt should carry.

Architecture: recon_engines -- pure calculation, zero I/O, zero DB access.
All inputs are frozen snapshots populated by the service layer.  Repair is
"detect, then act": services call these classifications first and only
then write.

Invariants detected:
    - Every paid bill has at least one receipt (missing).
    - Creation/cancellation receipts under a paid bill carry amount > 0.
    - At most one creation receipt per bill (duplicates).
    - Every receipt's bill_number resolves to a bill (orphans).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from recon_kernel.domain.dtos import BillSnapshot, ReceiptSnapshot, ReceiptType
from recon_kernel.logging_config import get_logger
from recon_engines.tracer import traced_engine

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

logger = get_logger("engines.reconciliation.analyzer")

ENGINE_NAME = "receipt_reconciliation"
ENGINE_VERSION = "1.0"

# Receipt types whose amount mirrors the bill's paid amount.
_BILL_AMOUNT_TYPES = frozenset({ReceiptType.CREATION, ReceiptType.CANCELLATION})

# Dateless receipts sort after dated ones when picking a duplicate to keep.
_LATEST = datetime.max


def build_receipt_index(receipts: Iterable[ReceiptSnapshot]) -> ReceiptIndex:
    """Group receipts by bill number."""
    return ReceiptIndex.from_receipts(receipts)


def compute_correct_amount(
    receipt: ReceiptSnapshot,
    bill: BillSnapshot | None,
) -> AmountCorrection:
    """Decide the amount ``receipt`` should carry.

    creation / cancellation -> the bill's paid amount.
    payment                 -> UNSUPPORTED_CORRECTION (manual review).
    no bill                 -> BILL_NOT_FOUND.

    A CORRECTABLE outcome requires correct_amount > 0 and a change from
    the recorded amount; a zero or negative result is never proposed.
    """
    if bill is None:
        return AmountCorrection(
            receipt=receipt,
            outcome=CorrectionOutcome.BILL_NOT_FOUND,
            reason=f"No bill found for receipt {receipt.receipt_number}",
        )

    if receipt.type not in _BILL_AMOUNT_TYPES:
        return AmountCorrection(
            receipt=receipt,
            outcome=CorrectionOutcome.UNSUPPORTED_CORRECTION,
            reason=(
                f"{receipt.type.value.capitalize()} receipt "
                f"{receipt.receipt_number} needs manual review"
            ),
        )

    correct_amount = bill.paid
    if correct_amount <= 0:
        return AmountCorrection(
            receipt=receipt,
            outcome=CorrectionOutcome.NO_VALID_AMOUNT,
            correct_amount=correct_amount,
            reason=f"Bill {bill.bill_number} has no positive paid amount",
        )

    if correct_amount == receipt.amount:
        return AmountCorrection(
            receipt=receipt,
            outcome=CorrectionOutcome.ALREADY_CORRECT,
            correct_amount=correct_amount,
        )

    return AmountCorrection(
        receipt=receipt,
        outcome=CorrectionOutcome.CORRECTABLE,
        correct_amount=correct_amount,
    )


def _keep_order(receipt: ReceiptSnapshot) -> tuple[datetime, str]:
    date = receipt.date
    if date is not None and date.tzinfo is not None:
        date = date.astimezone(UTC).replace(tzinfo=None)
    return (date or _LATEST, receipt.receipt_number)


class ReceiptReconciliationAnalyzer:
    """Pure engine for bill/receipt reconciliation.

    All methods receive snapshots and return tuples of snapshots or
    findings.  No I/O, no database access, deterministic for equal inputs.

    Usage:
        analyzer = ReceiptReconciliationAnalyzer()
        report = analyzer.build_audit_report(bills, receipts)
    """

    def build_receipt_index(self, receipts: Iterable[ReceiptSnapshot]) -> ReceiptIndex:
        return build_receipt_index(receipts)

    @traced_engine(ENGINE_NAME, ENGINE_VERSION)
    def classify_missing(
        self,
        bills: Sequence[BillSnapshot],
        receipt_index: ReceiptIndex,
    ) -> tuple[BillSnapshot, ...]:
        """Paid bills with no receipts, in input order."""
        return tuple(
            bill for bill in bills
            if bill.is_paid and not receipt_index.get(bill.bill_number)
        )

    @traced_engine(ENGINE_NAME, ENGINE_VERSION)
    def classify_zero_amount(
        self,
        receipts: Sequence[ReceiptSnapshot],
    ) -> tuple[ReceiptSnapshot, ...]:
        """Receipts with amount <= 0."""
        return tuple(r for r in receipts if r.amount <= 0)

    def compute_correct_amount(
        self,
        receipt: ReceiptSnapshot,
        bill: BillSnapshot | None,
    ) -> AmountCorrection:
        return compute_correct_amount(receipt, bill)

    @traced_engine(ENGINE_NAME, ENGINE_VERSION)
    def plan_corrections(
        self,
        receipts: Sequence[ReceiptSnapshot],
        bills: Sequence[BillSnapshot],
    ) -> tuple[AmountCorrection, ...]:
        """Correction decision for every receipt, resolving bills by lookup."""
        lookup = BillLookup.from_bills(bills)
        corrections = tuple(
            compute_correct_amount(r, lookup.for_receipt(r)) for r in receipts
        )
        logger.debug(
            "corrections_planned",
            extra={
                "receipt_count": len(receipts),
                "correctable": sum(1 for c in corrections if c.is_correctable),
            },
        )
        return corrections

    @traced_engine(ENGINE_NAME, ENGINE_VERSION)
    def classify_duplicates(
        self,
        bills: Sequence[BillSnapshot],
        receipt_index: ReceiptIndex,
    ) -> tuple[DuplicateReceiptGroup, ...]:
        """Bills with more than one creation receipt."""
        groups: list[DuplicateReceiptGroup] = []
        for bill in bills:
            creations = [
                r for r in receipt_index.get(bill.bill_number)
                if r.type == ReceiptType.CREATION
            ]
            if len(creations) > 1:
                keep = min(creations, key=_keep_order)
                groups.append(DuplicateReceiptGroup(
                    bill_number=bill.bill_number,
                    duplicate_type=ReceiptType.CREATION,
                    receipt_numbers=tuple(r.receipt_number for r in creations),
                    suggested_keep=keep.receipt_number,
                ))
        return tuple(groups)

    @traced_engine(ENGINE_NAME, ENGINE_VERSION)
    def classify_orphans(
        self,
        bills: Sequence[BillSnapshot],
        receipts: Sequence[ReceiptSnapshot],
    ) -> tuple[ReceiptSnapshot, ...]:
        """Receipts whose bill_number matches no bill."""
        bill_numbers = {b.bill_number for b in bills}
        return tuple(r for r in receipts if r.bill_number not in bill_numbers)

    @traced_engine(ENGINE_NAME, ENGINE_VERSION)
    def classify_zero_amount_for_report(
        self,
        bills: Sequence[BillSnapshot],
        receipt_index: ReceiptIndex,
    ) -> tuple[ZeroAmountFinding, ...]:
        """Zero/negative receipts under paid bills, with the expected amount."""
        findings: list[ZeroAmountFinding] = []
        for bill in bills:
            if not bill.is_paid:
                continue
            for receipt in receipt_index.get(bill.bill_number):
                if receipt.amount <= 0:
                    findings.append(ZeroAmountFinding(
                        receipt_number=receipt.receipt_number,
                        bill_number=bill.bill_number,
                        receipt_amount=receipt.amount,
                        expected_amount=bill.paid,
                        type=receipt.type,
                    ))
        return tuple(findings)

    def build_audit_report(
        self,
        bills: Sequence[BillSnapshot],
        receipts: Sequence[ReceiptSnapshot],
    ) -> AuditReport:
        """Run every classification over one snapshot."""
        index = build_receipt_index(receipts)

        missing = self.classify_missing(bills, index)
        zero_amount = self.classify_zero_amount_for_report(bills, index)
        duplicates = self.classify_duplicates(bills, index)
        orphans = self.classify_orphans(bills, receipts)

        return AuditReport(
            total_bills=len(bills),
            total_receipts=len(receipts),
            bills_without_receipts=tuple(
                MissingReceiptFinding.from_bill(b) for b in missing
            ),
            zero_amount_receipts=zero_amount,
            duplicate_receipts=duplicates,
            orphaned_receipts=tuple(
                OrphanedReceiptFinding.from_receipt(r) for r in orphans
            ),
        )
