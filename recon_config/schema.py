"""
Settings schema (``recon_config.schema``).

One frozen dataclass holding every runtime knob of the reconciliation
kernel.  Values come from a YAML file through ``recon_config.loader``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# receipts.receipt_number is String(32); generated numbers add 8 characters.
_MAX_PREFIX_LENGTH = 24


@dataclass(frozen=True)
class ReconciliationSettings:
    """Runtime settings for reconciliation and repair passes."""

    database_url: str
    echo_sql: bool = False
    pool_size: int = 5
    max_overflow: int = 5
    migration_remarks: str = "Receipt created during migration"
    receipt_number_prefix: str = "REC"
    max_receipt_number_attempts: int = 5
    single_flight_timeout_seconds: float = 30.0
    log_level: str = "INFO"

    def __post_init__(self):
        if not self.database_url or not self.database_url.strip():
            raise ValueError("database_url cannot be empty")
        if self.pool_size <= 0:
            raise ValueError("pool_size must be positive")
        if self.max_overflow < 0:
            raise ValueError("max_overflow cannot be negative")
        if not self.migration_remarks.strip():
            raise ValueError("migration_remarks cannot be empty")
        if not self.receipt_number_prefix.isalpha():
            raise ValueError(
                f"receipt_number_prefix must be alphabetic, got '{self.receipt_number_prefix}'"
            )
        if len(self.receipt_number_prefix) > _MAX_PREFIX_LENGTH:
            raise ValueError(
                f"receipt_number_prefix must be at most {_MAX_PREFIX_LENGTH} characters, "
                f"got {len(self.receipt_number_prefix)}"
            )
        if self.max_receipt_number_attempts < 1:
            raise ValueError("max_receipt_number_attempts must be at least 1")
        if self.single_flight_timeout_seconds <= 0:
            raise ValueError("single_flight_timeout_seconds must be positive")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {sorted(_LOG_LEVELS)}, got '{self.log_level}'"
            )

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level.upper())
