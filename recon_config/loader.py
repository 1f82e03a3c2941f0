"""
Settings Loader (``recon_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into a frozen
``ReconciliationSettings``.  Environment overrides are applied after the
file is parsed.  Runtime callers use ``recon_config.get_active_settings()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``reconciliation`` or ``database.url`` keys  -> ``KeyError``.
* Invalid values  -> ``ValueError`` from the schema.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from recon_config.schema import ReconciliationSettings

ENV_DATABASE_URL = "RECON_DATABASE_URL"
ENV_LOG_LEVEL = "RECON_LOG_LEVEL"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    return data or {}


def parse_settings(
    data: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
) -> ReconciliationSettings:
    """Parse a loaded YAML mapping into ReconciliationSettings.

    Expected layout::

        reconciliation:
          database:
            url: postgresql://...
            echo: false
            pool_size: 5
            max_overflow: 5
          receipts:
            migration_remarks: Receipt created during migration
            number_prefix: REC
            max_number_attempts: 5
          concurrency:
            single_flight_timeout_seconds: 30
          logging:
            level: INFO
    """
    env = os.environ if environ is None else environ
    root = data["reconciliation"]
    database = root["database"]
    receipts = root.get("receipts", {})
    concurrency = root.get("concurrency", {})
    logging_cfg = root.get("logging", {})

    return ReconciliationSettings(
        database_url=env.get(ENV_DATABASE_URL) or database["url"],
        echo_sql=bool(database.get("echo", False)),
        pool_size=int(database.get("pool_size", 5)),
        max_overflow=int(database.get("max_overflow", 5)),
        migration_remarks=str(
            receipts.get("migration_remarks", "Receipt created during migration")
        ),
        receipt_number_prefix=str(receipts.get("number_prefix", "REC")),
        max_receipt_number_attempts=int(receipts.get("max_number_attempts", 5)),
        single_flight_timeout_seconds=float(
            concurrency.get("single_flight_timeout_seconds", 30)
        ),
        log_level=env.get(ENV_LOG_LEVEL) or str(logging_cfg.get("level", "INFO")),
    )


def load_settings(
    path: Path,
    environ: Mapping[str, str] | None = None,
) -> ReconciliationSettings:
    """Load and parse the settings file at ``path``."""
    return parse_settings(load_yaml_file(path), environ)
