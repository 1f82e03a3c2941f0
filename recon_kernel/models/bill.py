"""
Bill ORM model (``recon_kernel.models.bill``).

Bills are written by the billing subsystem.  The reconciliation kernel only
reads them; repair passes lock bill rows but never modify them.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from recon_kernel.db.base import TrackedBase


class BillModel(TrackedBase):
    """
    ORM model for the bill ledger.

    Guarantees:
        - bill_number is unique (uq_bills_bill_number).
        - payment_* columns flatten the bill's ``payment`` sub-document.
    """

    __tablename__ = "bills"

    __table_args__ = (
        UniqueConstraint("bill_number", name="uq_bills_bill_number"),
        Index("idx_bills_status", "status"),
    )

    bill_number: Mapped[str] = mapped_column(String(64), nullable=False)
    payment_paid: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    payment_type: Mapped[str] = mapped_column(String(32), nullable=False, default="cash")
    payment_card_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payment_utr_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    date: Mapped[datetime | None] = mapped_column(nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<BillModel {self.bill_number}: paid={self.payment_paid} {self.status}>"
