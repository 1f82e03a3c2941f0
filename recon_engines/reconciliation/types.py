"""
Receipt reconciliation domain types.

Pure frozen dataclasses and enums shared by ReceiptReconciliationAnalyzer
(pure engine) and the repair / audit services (imperative shell).

Architecture: recon_engines/reconciliation -- pure domain, zero I/O.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from recon_kernel.domain.dtos import BillSnapshot, ReceiptSnapshot, ReceiptType


# =============================================================================
# Enums
# =============================================================================


class CorrectionOutcome(str, Enum):
    """What the amount-correction rule decided for one receipt."""

    CORRECTABLE = "correctable"
    ALREADY_CORRECT = "already_correct"
    NO_VALID_AMOUNT = "no_valid_amount"          # computed amount <= 0
    UNSUPPORTED_CORRECTION = "unsupported_correction"  # payment receipts
    BILL_NOT_FOUND = "bill_not_found"


# =============================================================================
# Indexes (built by the engine, consumed by classifications)
# =============================================================================


@dataclass(frozen=True)
class ReceiptIndex:
    """Receipts grouped by bill number.

    Multi-valued; the order of receipts within a bill is the order they
    were indexed in and carries no meaning.
    """

    by_bill_number: Mapping[str, tuple[ReceiptSnapshot, ...]] = field(
        default_factory=dict
    )

    @classmethod
    def from_receipts(cls, receipts: Iterable[ReceiptSnapshot]) -> ReceiptIndex:
        grouped: dict[str, list[ReceiptSnapshot]] = defaultdict(list)
        for receipt in receipts:
            grouped[receipt.bill_number].append(receipt)
        return cls(by_bill_number={k: tuple(v) for k, v in grouped.items()})

    def get(self, bill_number: str) -> tuple[ReceiptSnapshot, ...]:
        """Receipts for ``bill_number``; empty when there are none."""
        return self.by_bill_number.get(bill_number, ())

    def __len__(self) -> int:
        return sum(len(v) for v in self.by_bill_number.values())


@dataclass(frozen=True)
class BillLookup:
    """Resolves a receipt to its bill, by billing_id first, then bill_number."""

    by_id: Mapping[Any, BillSnapshot] = field(default_factory=dict)
    by_number: Mapping[str, BillSnapshot] = field(default_factory=dict)

    @classmethod
    def from_bills(cls, bills: Iterable[BillSnapshot]) -> BillLookup:
        bills = tuple(bills)
        return cls(
            by_id={b.id: b for b in bills},
            by_number={b.bill_number: b for b in bills},
        )

    def for_receipt(self, receipt: ReceiptSnapshot) -> BillSnapshot | None:
        if receipt.billing_id is not None:
            bill = self.by_id.get(receipt.billing_id)
            if bill is not None:
                return bill
        return self.by_number.get(receipt.bill_number)


# =============================================================================
# Correction decision
# =============================================================================


@dataclass(frozen=True)
class AmountCorrection:
    """Decision of the amount-correction rule for one receipt."""

    receipt: ReceiptSnapshot
    outcome: CorrectionOutcome
    correct_amount: Decimal | None = None
    reason: str = ""

    @property
    def is_correctable(self) -> bool:
        return self.outcome == CorrectionOutcome.CORRECTABLE


# =============================================================================
# Findings
# =============================================================================


@dataclass(frozen=True)
class MissingReceiptFinding:
    """A paid bill with no receipts at all."""

    bill_number: str
    paid_amount: Decimal
    status: str
    date: datetime | None

    @classmethod
    def from_bill(cls, bill: BillSnapshot) -> MissingReceiptFinding:
        return cls(
            bill_number=bill.bill_number,
            paid_amount=bill.paid,
            status=bill.status,
            date=bill.date,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "billNumber": self.bill_number,
            "paidAmount": self.paid_amount,
            "status": self.status,
            "date": self.date,
        }


@dataclass(frozen=True)
class ZeroAmountFinding:
    """A zero/negative receipt under a paid bill."""

    receipt_number: str
    bill_number: str
    receipt_amount: Decimal
    expected_amount: Decimal
    type: ReceiptType

    def to_dict(self) -> dict[str, Any]:
        return {
            "receiptNumber": self.receipt_number,
            "billNumber": self.bill_number,
            "receiptAmount": self.receipt_amount,
            "expectedAmount": self.expected_amount,
            "type": self.type.value,
        }


@dataclass(frozen=True)
class DuplicateReceiptGroup:
    """More than one receipt of the same type for one bill.

    ``suggested_keep`` is a hint for a human reviewer (earliest by date);
    nothing acts on it automatically.
    """

    bill_number: str
    duplicate_type: ReceiptType
    receipt_numbers: tuple[str, ...]
    suggested_keep: str | None = None

    @property
    def count(self) -> int:
        return len(self.receipt_numbers)

    def to_dict(self) -> dict[str, Any]:
        return {
            "billNumber": self.bill_number,
            "duplicateType": self.duplicate_type.value,
            "count": self.count,
            "receipts": list(self.receipt_numbers),
            "suggestedKeep": self.suggested_keep,
        }


@dataclass(frozen=True)
class OrphanedReceiptFinding:
    """A receipt whose bill number matches no bill."""

    receipt_number: str
    bill_number: str
    amount: Decimal
    type: ReceiptType

    @classmethod
    def from_receipt(cls, receipt: ReceiptSnapshot) -> OrphanedReceiptFinding:
        return cls(
            receipt_number=receipt.receipt_number,
            bill_number=receipt.bill_number,
            amount=receipt.amount,
            type=receipt.type,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "receiptNumber": self.receipt_number,
            "billNumber": self.bill_number,
            "amount": self.amount,
            "type": self.type.value,
        }


@dataclass(frozen=True)
class AuditReport:
    """Every classification over one snapshot of both ledgers."""

    total_bills: int
    total_receipts: int
    bills_without_receipts: tuple[MissingReceiptFinding, ...] = ()
    zero_amount_receipts: tuple[ZeroAmountFinding, ...] = ()
    duplicate_receipts: tuple[DuplicateReceiptGroup, ...] = ()
    orphaned_receipts: tuple[OrphanedReceiptFinding, ...] = ()

    @property
    def is_clean(self) -> bool:
        return not (
            self.bills_without_receipts
            or self.zero_amount_receipts
            or self.duplicate_receipts
            or self.orphaned_receipts
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalBills": self.total_bills,
            "totalReceipts": self.total_receipts,
            "billsWithoutReceipts": [f.to_dict() for f in self.bills_without_receipts],
            "zeroAmountReceipts": [f.to_dict() for f in self.zero_amount_receipts],
            "duplicateReceipts": [g.to_dict() for g in self.duplicate_receipts],
            "orphanedReceipts": [f.to_dict() for f in self.orphaned_receipts],
        }
