"""ORM models for the bill and receipt ledgers."""

from recon_kernel.models.bill import BillModel
from recon_kernel.models.receipt import ReceiptModel

__all__ = ["BillModel", "ReceiptModel"]
