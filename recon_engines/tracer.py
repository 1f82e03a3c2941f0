"""
recon_engines.tracer -- ``@traced_engine`` emits RECON_ENGINE_TRACE.

Wraps a pure engine method so each call logs which engine ran, on how
many inputs, and for how long.  The decorator reads arguments only to
measure them; it never changes them and performs no I/O besides the log
record.

Usage:
    @traced_engine("receipt_reconciliation", "1.0")
    def classify_missing(self, bills, receipt_index):
        ...
"""

from __future__ import annotations

import functools
import inspect
import logging
import time
from collections.abc import Callable, Sized
from typing import Any

# Plain stdlib logger under the kernel namespace; engines do not configure logging.
_logger = logging.getLogger("recon_kernel.engines.tracer")


def _input_sizes(arguments: dict[str, Any]) -> dict[str, int]:
    return {
        name: len(value)
        for name, value in arguments.items()
        if name != "self" and isinstance(value, Sized) and not isinstance(value, str)
    }


def traced_engine(engine_name: str, engine_version: str) -> Callable:
    """Decorator factory for engine methods.

    The trace record carries engine_name, engine_version, function,
    input_sizes (len() of every sized argument) and duration_ms.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            sizes = _input_sizes(signature.bind(*args, **kwargs).arguments)

            started = time.monotonic()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.monotonic() - started) * 1000, 2)

            _logger.info(
                "RECON_ENGINE_TRACE",
                extra={
                    "trace_type": "RECON_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "function": func.__qualname__,
                    "input_sizes": sizes,
                    "duration_ms": elapsed_ms,
                },
            )
            return result

        return wrapper

    return decorator
