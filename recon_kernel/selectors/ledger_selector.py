"""
LedgerSnapshotSelector -- loads the bill and receipt ledgers for one pass.

Responsibility:
    Reads the Bill and Receipt sets that take part in a reconciliation pass
    and returns them as frozen snapshots.  All reads go through the
    caller's Session, so a repair classifies against exactly the state its
    writes will land on.

Architecture position:
    Kernel > Selectors -- read-only query side.

Invariants enforced:
    - Lock ordering: bill rows are locked ``SELECT ... FOR UPDATE``
      BEFORE the receipts a repair writes are read.  A second concurrent
      repair blocks on the bill locks and, once released, reads the first
      pass's committed receipts (READ COMMITTED).
    - Locked receipt reads are ``FOR UPDATE`` and refresh rows already in
      the Session's identity map, so a repair never writes from values it
      read before taking its locks.
    - Deterministic order: bills by bill_number, receipts by receipt_number.

Failure modes:
    - BillNotFoundError from load_bill_snapshot() when the bill is absent.
    - Storage errors (SQLAlchemyError) propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import or_, select

from recon_kernel.domain.dtos import BillSnapshot, LedgerSnapshot, ReceiptSnapshot
from recon_kernel.exceptions import BillNotFoundError
from recon_kernel.logging_config import get_logger
from recon_kernel.models.bill import BillModel
from recon_kernel.models.receipt import ReceiptModel
from recon_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.ledger")


class LedgerSnapshotSelector(BaseSelector):
    """Read-only access to bill and receipt snapshots."""

    def load_snapshot(self, lock_bills: bool = False) -> LedgerSnapshot:
        """Load every bill and every receipt."""
        bills = self._bills(select(BillModel), lock_bills)
        receipts = self._receipts(select(ReceiptModel))

        logger.debug(
            "ledger_snapshot_loaded",
            extra={
                "bill_count": len(bills),
                "receipt_count": len(receipts),
                "locked": lock_bills,
            },
        )
        return LedgerSnapshot(bills=bills, receipts=receipts)

    def load_bill_snapshot(
        self,
        bill_number: str,
        lock: bool = False,
    ) -> tuple[BillSnapshot, tuple[ReceiptSnapshot, ...]]:
        """Load one bill and every receipt that shares its bill number.

        Raises:
            BillNotFoundError: no bill has ``bill_number``.
        """
        bills = self._bills(
            select(BillModel).where(BillModel.bill_number == bill_number),
            lock,
        )
        if not bills:
            raise BillNotFoundError(bill_number)

        receipts = self._receipts(
            select(ReceiptModel).where(ReceiptModel.bill_number == bill_number),
            lock,
        )
        return bills[0], receipts

    def load_zero_amount_receipts(
        self,
        lock: bool = False,
        receipt_ids: Iterable[UUID] | None = None,
    ) -> tuple[ReceiptSnapshot, ...]:
        """Receipts whose recorded amount is zero or negative.

        ``receipt_ids`` narrows the read to receipts seen by an earlier,
        unlocked read; combined with ``lock`` it re-checks them once the
        caller holds their bills.
        """
        stmt = select(ReceiptModel).where(ReceiptModel.amount <= 0)
        if receipt_ids is not None:
            ids = set(receipt_ids)
            if not ids:
                return ()
            stmt = stmt.where(ReceiptModel.id.in_(ids))
        return self._receipts(stmt, lock)

    def load_bills_for_receipts(
        self,
        receipts: Iterable[ReceiptSnapshot],
        lock: bool = False,
    ) -> tuple[BillSnapshot, ...]:
        """Bills reachable from ``receipts`` by billing_id or bill_number."""
        receipts = tuple(receipts)
        if not receipts:
            return ()

        billing_ids = {r.billing_id for r in receipts if r.billing_id is not None}
        bill_numbers = {r.bill_number for r in receipts}
        stmt = select(BillModel).where(
            or_(
                BillModel.id.in_(billing_ids),
                BillModel.bill_number.in_(bill_numbers),
            )
        )
        return self._bills(stmt, lock)

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    def _bills(self, stmt, lock: bool) -> tuple[BillSnapshot, ...]:
        stmt = stmt.order_by(BillModel.bill_number)
        if lock:
            stmt = stmt.with_for_update()
        rows = self.session.execute(stmt).scalars().all()
        return tuple(BillSnapshot.from_model(row) for row in rows)

    def _receipts(self, stmt, lock: bool = False) -> tuple[ReceiptSnapshot, ...]:
        stmt = stmt.order_by(ReceiptModel.receipt_number)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        rows = self.session.execute(stmt).scalars().all()
        return tuple(ReceiptSnapshot.from_model(row) for row in rows)
