"""
Overlapping amount repairs in separate transactions (PostgreSQL required).

A per-bill fix holds its bill and receipt locks while a whole-ledger fix
starts.  The whole-ledger pass must wait for the locks and then see the
committed amount, so exactly one pass reports fixing the receipt.

Run with:
    DATABASE_URL=postgresql://... pytest tests/services/test_concurrent_repairs.py
"""

import time
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from threading import Event

import pytest

from recon_kernel.db.engine import session_scope
from recon_kernel.domain.dtos import ReceiptType
from recon_services.receipt_repair_service import ReceiptRepairExecutor

pytestmark = pytest.mark.postgres


class TestOverlappingAmountRepairs:

    def test_whole_ledger_fix_waits_for_bill_fix(
        self, pg_session_factory, receipt_numbers, ledger,
    ):
        ledger.add_bill("B2", 300)
        ledger.add_receipt("R1", "B2", amount=0)
        ledger.add_receipt("R2", "B2", type=ReceiptType.PAYMENT, amount=0)

        bill_fix_applied = Event()
        release_bill_fix = Event()

        def bill_fix():
            with session_scope(pg_session_factory) as session:
                result = ReceiptRepairExecutor(
                    session, receipt_numbers=receipt_numbers,
                ).fix_specific_bill_receipt("B2")
                bill_fix_applied.set()
                release_bill_fix.wait(timeout=30)
            return result

        def ledger_fix():
            with session_scope(pg_session_factory) as session:
                return ReceiptRepairExecutor(
                    session, receipt_numbers=receipt_numbers,
                ).fix_zero_amount_receipts()

        with ThreadPoolExecutor(max_workers=2) as pool:
            first = pool.submit(bill_fix)
            assert bill_fix_applied.wait(timeout=30)
            second = pool.submit(ledger_fix)
            # Let the second pass read R1 and block on B2's lock.
            time.sleep(0.5)
            release_bill_fix.set()
            bill_result = first.result(timeout=30)
            ledger_result = second.result(timeout=30)

        assert [f.receipt_number for f in bill_result.fixed] == ["R1"]
        assert ledger_result.fixed == ()
        assert [s.receipt_number for s in ledger_result.skipped] == ["R2"]
        assert ledger.receipt("R1").amount == Decimal("300")
