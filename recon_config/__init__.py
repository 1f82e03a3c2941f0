"""
recon_config -- single public entrypoint for reconciliation settings.

Runtime code obtains settings through ``get_active_settings()``; YAML
loading in ``recon_config.loader`` is an internal detail.  Every call
emits a ``RECON_CONFIG_TRACE`` log entry naming the file it came from.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from recon_config.loader import load_settings
from recon_config.schema import ReconciliationSettings

_logger = logging.getLogger("recon_kernel.config")

# Default settings file shipped with the package
DEFAULT_SETTINGS_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ReconciliationSettings:
    """Load settings from ``config_path`` (or the packaged default)."""
    path = config_path or DEFAULT_SETTINGS_PATH
    settings = load_settings(path, environ)
    _logger.info(
        "RECON_CONFIG_TRACE",
        extra={
            "trace_type": "RECON_CONFIG_TRACE",
            "config_path": str(path),
            "receipt_number_prefix": settings.receipt_number_prefix,
            "max_receipt_number_attempts": settings.max_receipt_number_attempts,
            "log_level": settings.log_level,
        },
    )
    return settings


__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "ReconciliationSettings",
    "get_active_settings",
]
