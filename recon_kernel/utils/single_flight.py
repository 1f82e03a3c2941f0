"""
SingleFlightGuard -- in-process mutual exclusion keyed by repair scope.

Row locks taken by the snapshot selector serialize repair passes across
processes on PostgreSQL.  This guard serializes them inside one process
regardless of backend, so two threads can never both classify the same
bills as missing and both create a creation receipt for them.

Scopes are plain strings, e.g. ``"create_missing:*"`` or
``"fix_amounts:*"``.  Overlapping scopes are the caller's concern:
repairs that write the same rows must hold the same scope.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from recon_kernel.exceptions import RepairInProgressError
from recon_kernel.logging_config import get_logger

logger = get_logger("utils.single_flight")


class SingleFlightGuard:
    """Per-scope locks, created lazily and kept for the life of the guard."""

    def __init__(self, timeout_seconds: float = 30.0):
        self._timeout_seconds = timeout_seconds
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, scope: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(scope)
            if lock is None:
                lock = threading.Lock()
                self._locks[scope] = lock
            return lock

    def is_held(self, scope: str) -> bool:
        """True if some caller currently holds ``scope``."""
        return self._lock_for(scope).locked()

    @contextmanager
    def hold(self, scope: str) -> Iterator[None]:
        """Hold ``scope`` for the duration of the block.

        Raises:
            RepairInProgressError: the scope stayed busy past the timeout.
        """
        lock = self._lock_for(scope)
        if not lock.acquire(timeout=self._timeout_seconds):
            logger.warning(
                "single_flight_timeout",
                extra={"scope": scope, "timeout_seconds": self._timeout_seconds},
            )
            raise RepairInProgressError(scope, self._timeout_seconds)
        logger.debug("single_flight_acquired", extra={"scope": scope})
        try:
            yield
        finally:
            lock.release()
            logger.debug("single_flight_released", extra={"scope": scope})
