"""
Property-based tests for repair passes against a real database.

Each generated ledger gets its own in-memory database.  Checked:
- a second create-missing pass creates nothing
- after one pass every paid bill has at least one receipt
- fix passes never write an amount <= 0 and never touch payment receipts
"""

from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st
from sqlalchemy import select

from recon_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from recon_kernel.domain.dtos import ReceiptType
from recon_kernel.domain.receipt_numbers import SequentialReceiptNumberGenerator
from recon_kernel.models import BillModel, ReceiptModel
from recon_services.receipt_migration_service import ReceiptMigrationService

paid_amounts = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("5000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)

bill_rows = st.lists(
    st.tuples(
        paid_amounts,
        st.lists(
            st.tuples(
                st.sampled_from(list(ReceiptType)),
                st.decimals(
                    min_value=Decimal("-10"),
                    max_value=Decimal("5000"),
                    places=2,
                    allow_nan=False,
                    allow_infinity=False,
                ),
            ),
            max_size=3,
        ),
    ),
    max_size=6,
)


def _fresh_service(rows) -> ReceiptMigrationService:
    reset_engine()
    init_engine_from_url("sqlite://")
    create_tables()
    factory = get_session_factory()

    with session_scope(factory) as session:
        counter = 0
        for i, (paid, receipts) in enumerate(rows):
            bill_number = f"B{i}"
            session.add(BillModel(bill_number=bill_number, payment_paid=paid, status="paid"))
            for receipt_type, amount in receipts:
                counter += 1
                session.add(ReceiptModel(
                    receipt_number=f"SEED{counter:04d}",
                    bill_number=bill_number,
                    type=receipt_type.value,
                    amount=amount,
                ))

    return ReceiptMigrationService(
        factory, receipt_numbers=SequentialReceiptNumberGenerator(),
    )


def _receipts() -> list[ReceiptModel]:
    with session_scope(get_session_factory()) as session:
        return list(session.execute(select(ReceiptModel)).scalars())


@settings(max_examples=25, deadline=None)
@given(rows=bill_rows)
def test_create_missing_is_idempotent(rows):
    try:
        service = _fresh_service(rows)

        first = service.create_missing_receipts()
        second = service.create_missing_receipts()

        expected = sum(1 for paid, receipts in rows if paid > 0 and not receipts)
        assert first.payload.created_count == expected
        assert second.payload.created_count == 0

        covered = {r.bill_number for r in _receipts()}
        for i, (paid, _) in enumerate(rows):
            if paid > 0:
                assert f"B{i}" in covered
    finally:
        reset_engine()


@settings(max_examples=25, deadline=None)
@given(rows=bill_rows)
def test_fix_never_destructive(rows):
    try:
        service = _fresh_service(rows)
        before = {r.receipt_number: r.amount for r in _receipts()}

        result = service.fix_zero_amount_receipts()

        fixed = {f.receipt_number for f in result.payload.fixed}
        for receipt in _receipts():
            if receipt.receipt_number in fixed:
                assert receipt.amount > 0
                assert receipt.type != ReceiptType.PAYMENT.value
            else:
                assert receipt.amount == before[receipt.receipt_number]
    finally:
        reset_engine()
