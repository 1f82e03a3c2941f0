"""Read-only selectors over the bill and receipt ledgers."""

from recon_kernel.selectors.base import BaseSelector
from recon_kernel.selectors.ledger_selector import LedgerSnapshotSelector

__all__ = ["BaseSelector", "LedgerSnapshotSelector"]
