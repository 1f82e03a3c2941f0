"""
Receipt ORM model (``recon_kernel.models.receipt``).

``bill_number`` and ``billing_id`` are deliberately NOT foreign keys:
referential integrity between the ledgers is what reconciliation checks,
so the schema must be able to hold orphaned receipts.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from recon_kernel.db.base import TrackedBase, UUIDString


class ReceiptModel(TrackedBase):
    """
    ORM model for the receipt ledger.

    Guarantees:
        - receipt_number is unique (uq_receipts_receipt_number); an insert
          that collides raises IntegrityError, which repair treats as
          retryable.
        - type holds a ReceiptType value ("creation", "payment",
          "cancellation").
    """

    __tablename__ = "receipts"

    __table_args__ = (
        UniqueConstraint("receipt_number", name="uq_receipts_receipt_number"),
        Index("idx_receipts_bill_number", "bill_number"),
        Index("idx_receipts_amount", "amount"),
    )

    receipt_number: Mapped[str] = mapped_column(String(32), nullable=False)
    bill_number: Mapped[str] = mapped_column(String(64), nullable=False)
    billing_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    payment_method_type: Mapped[str] = mapped_column(String(32), nullable=False, default="cash")
    payment_method_card_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payment_method_utr_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    new_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return (
            f"<ReceiptModel {self.receipt_number}: {self.type} "
            f"{self.amount} for {self.bill_number}>"
        )
