"""Tests for the YAML settings loader and ReconciliationSettings validation."""

import logging

import pytest
import yaml

from recon_config import DEFAULT_SETTINGS_PATH, get_active_settings
from recon_config.loader import load_settings, load_yaml_file, parse_settings
from recon_config.schema import ReconciliationSettings


FULL_YAML = """
reconciliation:
  database:
    url: sqlite:///ledger.db
    echo: true
    pool_size: 3
    max_overflow: 0
  receipts:
    migration_remarks: Backfilled receipt
    number_prefix: RCP
    max_number_attempts: 2
  concurrency:
    single_flight_timeout_seconds: 1.5
  logging:
    level: DEBUG
"""


@pytest.fixture
def settings_file(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(FULL_YAML)
    return path


class TestLoadSettings:

    def test_every_field(self, settings_file):
        settings = load_settings(settings_file, environ={})

        assert settings == ReconciliationSettings(
            database_url="sqlite:///ledger.db",
            echo_sql=True,
            pool_size=3,
            max_overflow=0,
            migration_remarks="Backfilled receipt",
            receipt_number_prefix="RCP",
            max_receipt_number_attempts=2,
            single_flight_timeout_seconds=1.5,
            log_level="DEBUG",
        )
        assert settings.log_level_number == logging.DEBUG

    def test_defaults_for_optional_sections(self):
        settings = parse_settings(
            {"reconciliation": {"database": {"url": "sqlite://"}}}, environ={}
        )

        assert settings.migration_remarks == "Receipt created during migration"
        assert settings.receipt_number_prefix == "REC"
        assert settings.max_receipt_number_attempts == 5
        assert settings.log_level == "INFO"

    def test_environment_overrides(self, settings_file):
        settings = load_settings(
            settings_file,
            environ={
                "RECON_DATABASE_URL": "postgresql://u:p@db/ledger",
                "RECON_LOG_LEVEL": "WARNING",
            },
        )

        assert settings.database_url == "postgresql://u:p@db/ledger"
        assert settings.log_level == "WARNING"

    def test_packaged_default(self):
        settings = get_active_settings(environ={})

        assert settings.database_url.startswith("postgresql://")
        assert settings.receipt_number_prefix == "REC"

    def test_config_trace_logged(self, settings_file, captured_logs):
        get_active_settings(settings_file, environ={})

        (trace,) = [r for r in captured_logs() if r["message"] == "RECON_CONFIG_TRACE"]
        assert trace["config_path"] == str(settings_file)
        assert trace["receipt_number_prefix"] == "RCP"

    def test_default_path_exists(self):
        assert DEFAULT_SETTINGS_PATH.exists()


class TestLoaderErrors:

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml_file(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("reconciliation: [unclosed")
        with pytest.raises(yaml.YAMLError):
            load_yaml_file(path)

    def test_empty_file_is_empty_mapping(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}

    def test_missing_database_url(self):
        with pytest.raises(KeyError):
            parse_settings({"reconciliation": {"database": {}}}, environ={})


class TestSettingsValidation:

    @pytest.mark.parametrize(
        "overrides",
        [
            {"database_url": "  "},
            {"pool_size": 0},
            {"max_overflow": -1},
            {"migration_remarks": ""},
            {"receipt_number_prefix": "R-1"},
            {"receipt_number_prefix": "R" * 25},
            {"max_receipt_number_attempts": 0},
            {"single_flight_timeout_seconds": 0},
            {"log_level": "LOUD"},
        ],
    )
    def test_rejects_invalid_values(self, overrides):
        kwargs = {"database_url": "sqlite://", **overrides}
        with pytest.raises(ValueError):
            ReconciliationSettings(**kwargs)

    def test_longest_prefix_fits_receipt_number_column(self):
        settings = ReconciliationSettings(
            database_url="sqlite://", receipt_number_prefix="R" * 24,
        )
        assert len(settings.receipt_number_prefix) + 8 == 32
