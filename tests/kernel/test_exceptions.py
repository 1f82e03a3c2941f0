"""Tests for the typed exception hierarchy."""

import pytest

from recon_kernel.exceptions import (
    BillNotFoundError,
    ConcurrencyError,
    LedgerError,
    ReceiptError,
    ReceiptNumberCollisionError,
    ReconKernelError,
    RepairInProgressError,
)


@pytest.mark.parametrize(
    "exc, parent, code",
    [
        (BillNotFoundError("B1"), LedgerError, "BILL_NOT_FOUND"),
        (ReceiptNumberCollisionError("B1", 5), ReceiptError, "RECEIPT_NUMBER_COLLISION"),
        (RepairInProgressError("create_missing:*", 30.0), ConcurrencyError, "REPAIR_IN_PROGRESS"),
    ],
)
def test_codes_and_hierarchy(exc, parent, code):
    assert isinstance(exc, parent)
    assert isinstance(exc, ReconKernelError)
    assert exc.code == code


def test_bill_not_found_message():
    assert str(BillNotFoundError("B-1001")) == "Bill B-1001 not found"


def test_collision_carries_context():
    exc = ReceiptNumberCollisionError("B1", 3)
    assert exc.bill_number == "B1"
    assert exc.attempts == 3
    assert "3 attempts" in str(exc)
