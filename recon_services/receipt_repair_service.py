"""
ReceiptRepairExecutor -- applies reconciliation repairs inside one transaction.

Responsibility:
    Runs the three repair modes over the caller's Session:
    ``create_missing_receipts``, ``fix_zero_amount_receipts`` and
    ``fix_specific_bill_receipt``.  Each mode reads its snapshot through
    LedgerSnapshotSelector, asks ReceiptReconciliationAnalyzer what is
    wrong, and only then writes.

Architecture position:
    Services -- imperative shell around the pure analyzer.

Invariants enforced:
    - Flush, never commit: the caller's session_scope owns commit/rollback,
      so a failure anywhere in a pass leaves nothing behind.
    - Records are never deleted.  Missing receipts are inserted; wrong
      amounts are corrected in place and no other receipt field changes.
    - A correction never writes an amount <= 0.
    - Bill rows are locked before receipts are read in the creation pass.

Failure modes:
    - BillNotFoundError from fix_specific_bill_receipt().
    - ReceiptNumberCollisionError when every minted number for a bill is
      already taken.
    - SQLAlchemyError from storage propagates to the caller's scope.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from recon_kernel.domain.dtos import BillSnapshot, ReceiptType
from recon_kernel.domain.receipt_numbers import ReceiptNumberGenerator
from recon_kernel.exceptions import ReceiptNumberCollisionError
from recon_kernel.logging_config import get_logger
from recon_kernel.models.receipt import ReceiptModel
from recon_kernel.selectors.ledger_selector import LedgerSnapshotSelector

from recon_engines.reconciliation.analyzer import ReceiptReconciliationAnalyzer
from recon_engines.reconciliation.types import (
    AmountCorrection,
    CorrectionOutcome,
)

logger = get_logger("services.receipt_repair")

DEFAULT_MIGRATION_REMARKS = "Receipt created during migration"

# Outcomes surfaced to callers as skipped; ALREADY_CORRECT is simply fine.
_SKIPPED_OUTCOMES = frozenset({
    CorrectionOutcome.UNSUPPORTED_CORRECTION,
    CorrectionOutcome.BILL_NOT_FOUND,
    CorrectionOutcome.NO_VALID_AMOUNT,
})


# =============================================================================
# Result types
# =============================================================================


@dataclass(frozen=True)
class ReceiptFix:
    """One receipt whose amount was corrected."""

    receipt_number: str
    bill_number: str
    old_amount: Decimal
    new_amount: Decimal
    type: ReceiptType

    def to_dict(self) -> dict[str, Any]:
        return {
            "receiptNumber": self.receipt_number,
            "billNumber": self.bill_number,
            "oldAmount": self.old_amount,
            "newAmount": self.new_amount,
            "type": self.type.value,
        }


@dataclass(frozen=True)
class SkippedCorrection:
    """One receipt the correction rule could not fix automatically."""

    receipt_number: str
    bill_number: str
    type: ReceiptType
    outcome: CorrectionOutcome
    reason: str

    @classmethod
    def from_correction(cls, correction: AmountCorrection) -> SkippedCorrection:
        receipt = correction.receipt
        return cls(
            receipt_number=receipt.receipt_number,
            bill_number=receipt.bill_number,
            type=receipt.type,
            outcome=correction.outcome,
            reason=correction.reason,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "receiptNumber": self.receipt_number,
            "billNumber": self.bill_number,
            "type": self.type.value,
            "outcome": self.outcome.value,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class CreateMissingResult:
    created_receipt_numbers: tuple[str, ...]
    total_bills_checked: int

    @property
    def created_count(self) -> int:
        return len(self.created_receipt_numbers)


@dataclass(frozen=True)
class FixAmountsResult:
    fixed: tuple[ReceiptFix, ...]
    skipped: tuple[SkippedCorrection, ...]
    total_checked: int

    @property
    def fixed_count(self) -> int:
        return len(self.fixed)


# =============================================================================
# Executor
# =============================================================================


class ReceiptRepairExecutor:
    """Repairs the receipt ledger against the bill ledger.

    Contract:
        Every method runs against the Session given at construction and
        returns a typed result.  The caller commits or rolls back.

    Non-goals:
        - Does NOT resolve duplicate creation receipts (reported only).
        - Does NOT correct payment receipts (reported as
          UNSUPPORTED_CORRECTION).
    """

    def __init__(
        self,
        session: Session,
        receipt_numbers: ReceiptNumberGenerator,
        analyzer: ReceiptReconciliationAnalyzer | None = None,
        migration_remarks: str = DEFAULT_MIGRATION_REMARKS,
        max_receipt_number_attempts: int = 5,
    ) -> None:
        self._session = session
        self._selector = LedgerSnapshotSelector(session)
        self._receipt_numbers = receipt_numbers
        self._analyzer = analyzer or ReceiptReconciliationAnalyzer()
        self._migration_remarks = migration_remarks
        self._max_attempts = max_receipt_number_attempts

    # -----------------------------------------------------------------
    # Create missing receipts
    # -----------------------------------------------------------------

    def create_missing_receipts(self) -> CreateMissingResult:
        """Insert one creation receipt for every paid bill without receipts."""
        snapshot = self._selector.load_snapshot(lock_bills=True)
        index = self._analyzer.build_receipt_index(snapshot.receipts)
        missing = self._analyzer.classify_missing(snapshot.bills, index)

        logger.info(
            "missing_receipts_found",
            extra={
                "missing_count": len(missing),
                "bill_count": snapshot.bill_count,
            },
        )

        created: list[str] = []
        for bill in missing:
            receipt = self._insert_creation_receipt(bill)
            created.append(receipt.receipt_number)

        logger.info(
            "missing_receipts_created",
            extra={
                "created_count": len(created),
                "total_bills_checked": snapshot.bill_count,
            },
        )
        return CreateMissingResult(
            created_receipt_numbers=tuple(created),
            total_bills_checked=snapshot.bill_count,
        )

    def _insert_creation_receipt(self, bill: BillSnapshot) -> ReceiptModel:
        """Insert the creation receipt for ``bill``, re-minting on collision.

        Each attempt runs in a savepoint so a unique violation on
        receipt_number discards only that attempt.
        """
        for attempt in range(1, self._max_attempts + 1):
            receipt_number = self._receipt_numbers.next_number()
            savepoint = self._session.begin_nested()
            try:
                receipt = ReceiptModel(
                    receipt_number=receipt_number,
                    bill_number=bill.bill_number,
                    billing_id=bill.id,
                    type=ReceiptType.CREATION.value,
                    amount=bill.paid,
                    payment_method_type=bill.payment_method.type,
                    payment_method_card_number=bill.payment_method.card_number,
                    payment_method_utr_number=bill.payment_method.utr_number,
                    new_status=bill.status,
                    remarks=self._migration_remarks,
                    created_by=bill.created_by,
                    date=bill.date,
                )
                self._session.add(receipt)
                self._session.flush()
                savepoint.commit()
            except IntegrityError:
                savepoint.rollback()
                logger.warning(
                    "receipt_number_collision",
                    extra={
                        "receipt_number": receipt_number,
                        "bill_number": bill.bill_number,
                        "attempt": attempt,
                        "max_attempts": self._max_attempts,
                    },
                )
                continue

            logger.info(
                "receipt_created",
                extra={
                    "receipt_number": receipt_number,
                    "bill_number": bill.bill_number,
                    "amount": bill.paid,
                },
            )
            return receipt

        raise ReceiptNumberCollisionError(bill.bill_number, self._max_attempts)

    # -----------------------------------------------------------------
    # Fix amounts
    # -----------------------------------------------------------------

    def fix_zero_amount_receipts(self) -> FixAmountsResult:
        """Correct every zero/negative receipt that has a deterministic rule.

        Candidates are found unlocked, their bills are locked, and the
        candidates are then re-read FOR UPDATE.  A receipt another pass
        fixed while this one waited drops out at the re-read.
        """
        candidates = self._selector.load_zero_amount_receipts()
        bills = self._selector.load_bills_for_receipts(candidates, lock=True)
        locked = self._selector.load_zero_amount_receipts(
            lock=True,
            receipt_ids=(r.id for r in candidates),
        )
        zero_amount = self._analyzer.classify_zero_amount(locked)

        logger.info(
            "zero_amount_receipts_found",
            extra={
                "receipt_count": len(zero_amount),
                "fixed_concurrently": len(candidates) - len(zero_amount),
            },
        )

        corrections = self._analyzer.plan_corrections(zero_amount, bills)
        fixed, skipped = self._apply(corrections)

        return FixAmountsResult(
            fixed=fixed,
            skipped=skipped,
            total_checked=len(zero_amount),
        )

    def fix_specific_bill_receipt(self, bill_number: str) -> FixAmountsResult:
        """Correct every creation/cancellation receipt under one bill.

        Raises:
            BillNotFoundError: no bill has ``bill_number``.
        """
        bill, receipts = self._selector.load_bill_snapshot(bill_number, lock=True)
        corrections = tuple(
            self._analyzer.compute_correct_amount(receipt, bill)
            for receipt in receipts
        )
        fixed, skipped = self._apply(corrections)

        return FixAmountsResult(
            fixed=fixed,
            skipped=skipped,
            total_checked=len(receipts),
        )

    def _apply(
        self,
        corrections: tuple[AmountCorrection, ...],
    ) -> tuple[tuple[ReceiptFix, ...], tuple[SkippedCorrection, ...]]:
        fixed: list[ReceiptFix] = []
        skipped: list[SkippedCorrection] = []

        for correction in corrections:
            receipt = correction.receipt

            if correction.outcome in _SKIPPED_OUTCOMES:
                skipped.append(SkippedCorrection.from_correction(correction))
                log = (
                    logger.warning
                    if correction.outcome == CorrectionOutcome.BILL_NOT_FOUND
                    else logger.info
                )
                log(
                    "receipt_correction_skipped",
                    extra={
                        "receipt_number": receipt.receipt_number,
                        "bill_number": receipt.bill_number,
                        "outcome": correction.outcome.value,
                        "reason": correction.reason,
                    },
                )
                continue

            if not correction.is_correctable:
                continue

            # INVARIANT: never write a non-positive amount
            assert correction.correct_amount is not None and correction.correct_amount > 0

            row = self._session.get(ReceiptModel, receipt.id)
            row.amount = correction.correct_amount
            self._session.flush()

            fixed.append(ReceiptFix(
                receipt_number=receipt.receipt_number,
                bill_number=receipt.bill_number,
                old_amount=receipt.amount,
                new_amount=correction.correct_amount,
                type=receipt.type,
            ))
            logger.info(
                "receipt_amount_fixed",
                extra={
                    "receipt_number": receipt.receipt_number,
                    "bill_number": receipt.bill_number,
                    "old_amount": receipt.amount,
                    "new_amount": correction.correct_amount,
                },
            )

        return tuple(fixed), tuple(skipped)
