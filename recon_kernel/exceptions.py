"""
Typed Exception Hierarchy for the Reconciliation Kernel.

Every error has a typed class, a machine-readable ``code`` class attribute,
and carries its context as attributes rather than only in the message.
Callers catch by type; the migration facade maps ``code`` into the
``errorCode`` field of the failure envelope.

    ReconKernelError (base)
    |
    +-- LedgerError
    |   +-- BillNotFoundError
    |
    +-- ReceiptError
    |   +-- ReceiptNumberCollisionError
    |
    +-- ConcurrencyError
        +-- RepairInProgressError

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Ledger          | BILL_NOT_FOUND              | Single-bill repair target doesn't exist
----------------|-----------------------------|-----------------------------------------
Receipt         | RECEIPT_NUMBER_COLLISION    | Generator kept minting taken numbers
----------------|-----------------------------|-----------------------------------------
Concurrency     | REPAIR_IN_PROGRESS          | Same repair scope already running

Unresolvable corrections (payment receipts, receipts whose bill is gone)
are NOT errors.  They are reported as skipped outcomes by the analyzer.
"""


class ReconKernelError(Exception):
    """
    Base exception for all reconciliation kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "RECON_KERNEL_ERROR"


# Ledger-related exceptions


class LedgerError(ReconKernelError):
    """Base exception for bill ledger errors."""

    code: str = "LEDGER_ERROR"


class BillNotFoundError(LedgerError):
    """Bill with given bill number was not found."""

    code: str = "BILL_NOT_FOUND"

    def __init__(self, bill_number: str):
        self.bill_number = bill_number
        super().__init__(f"Bill {bill_number} not found")


# Receipt-related exceptions


class ReceiptError(ReconKernelError):
    """Base exception for receipt ledger errors."""

    code: str = "RECEIPT_ERROR"


class ReceiptNumberCollisionError(ReceiptError):
    """Every generated receipt number for a bill was already taken."""

    code: str = "RECEIPT_NUMBER_COLLISION"

    def __init__(self, bill_number: str, attempts: int):
        self.bill_number = bill_number
        self.attempts = attempts
        super().__init__(
            f"Could not mint a unique receipt number for bill {bill_number} "
            f"after {attempts} attempts"
        )


# Concurrency exceptions


class ConcurrencyError(ReconKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class RepairInProgressError(ConcurrencyError):
    """Another repair pass holds the same scope."""

    code: str = "REPAIR_IN_PROGRESS"

    def __init__(self, scope: str, timeout_seconds: float):
        self.scope = scope
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Repair '{scope}' is already running "
            f"(waited {timeout_seconds}s for it to finish)"
        )
