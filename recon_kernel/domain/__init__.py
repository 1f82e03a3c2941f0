"""Pure domain types for the bill and receipt ledgers."""

from recon_kernel.domain.dtos import (
    BillSnapshot,
    LedgerSnapshot,
    PaymentMethod,
    ReceiptSnapshot,
    ReceiptType,
)
from recon_kernel.domain.receipt_numbers import (
    ReceiptNumberGenerator,
    SequentialReceiptNumberGenerator,
    UUIDReceiptNumberGenerator,
    is_valid_receipt_number,
)

__all__ = [
    "BillSnapshot",
    "LedgerSnapshot",
    "PaymentMethod",
    "ReceiptSnapshot",
    "ReceiptType",
    "ReceiptNumberGenerator",
    "SequentialReceiptNumberGenerator",
    "UUIDReceiptNumberGenerator",
    "is_valid_receipt_number",
]
