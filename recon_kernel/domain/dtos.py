"""
DTOs -- Pure domain data transfer objects for the bill and receipt ledgers.

Responsibility:
    Immutable snapshots of Bill and Receipt rows.  The snapshot selector
    converts ORM rows into these before they reach the reconciliation
    analyzer, so the analyzer never sees a session or an ORM entity.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  from_model() class methods are
    boundary converters invoked only by selectors.

Invariants enforced:
    - Monetary fields are Decimal, never float.
    - ``ReceiptSnapshot.bill_number`` is a plain reference.  Nothing here
      assumes it resolves to a bill; that is what orphan detection checks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from recon_kernel.models.bill import BillModel
    from recon_kernel.models.receipt import ReceiptModel


class ReceiptType(str, Enum):
    """The bill event that produced a receipt."""

    CREATION = "creation"
    PAYMENT = "payment"
    CANCELLATION = "cancellation"


@dataclass(frozen=True)
class PaymentMethod:
    """Payment method as recorded on a bill, and copied onto its receipts."""

    type: str
    card_number: str = ""
    utr_number: str = ""


@dataclass(frozen=True)
class BillSnapshot:
    """One Bill row as seen by a reconciliation pass."""

    id: UUID
    bill_number: str
    paid: Decimal
    payment_method: PaymentMethod
    status: str
    date: datetime | None
    created_by: str | None = None

    @property
    def is_paid(self) -> bool:
        """True if any amount has been paid against the bill."""
        return self.paid > 0

    @classmethod
    def from_model(cls, model: BillModel) -> BillSnapshot:
        return cls(
            id=model.id,
            bill_number=model.bill_number,
            paid=Decimal(model.payment_paid),
            payment_method=PaymentMethod(
                type=model.payment_type,
                card_number=model.payment_card_number or "",
                utr_number=model.payment_utr_number or "",
            ),
            status=model.status,
            date=model.date,
            created_by=model.created_by,
        )


@dataclass(frozen=True)
class ReceiptSnapshot:
    """One Receipt row as seen by a reconciliation pass."""

    id: UUID
    receipt_number: str
    bill_number: str
    type: ReceiptType
    amount: Decimal
    billing_id: UUID | None = None
    payment_method: PaymentMethod | None = None
    new_status: str | None = None
    remarks: str | None = None
    created_by: str | None = None
    date: datetime | None = None

    @classmethod
    def from_model(cls, model: ReceiptModel) -> ReceiptSnapshot:
        return cls(
            id=model.id,
            receipt_number=model.receipt_number,
            bill_number=model.bill_number,
            type=ReceiptType(model.type),
            amount=Decimal(model.amount),
            billing_id=model.billing_id,
            payment_method=PaymentMethod(
                type=model.payment_method_type,
                card_number=model.payment_method_card_number or "",
                utr_number=model.payment_method_utr_number or "",
            ),
            new_status=model.new_status,
            remarks=model.remarks,
            created_by=model.created_by,
            date=model.date,
        )


@dataclass(frozen=True)
class LedgerSnapshot:
    """Both ledgers as read inside a single transaction."""

    bills: tuple[BillSnapshot, ...] = ()
    receipts: tuple[ReceiptSnapshot, ...] = ()

    @property
    def bill_count(self) -> int:
        return len(self.bills)

    @property
    def receipt_count(self) -> int:
        return len(self.receipts)
