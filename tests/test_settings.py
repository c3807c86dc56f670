"""Tests for configuration and diagnostic logging."""

from pathlib import Path

import pytest

from waterledger.config import (
    AppSettings,
    LedgerSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from waterledger.diagnostics import DiagnosticLogger
from waterledger.models.diagnostics import DiagnosticEventBuilder


class TestSettings:

    def test_defaults(self, monkeypatch):
        """Test the built-in defaults."""
        for name in ("WATERLEDGER_LEDGER_OVERDUE_AFTER_DAYS", "WATERLEDGER_STORAGE_DATA_DIR"):
            monkeypatch.delenv(name, raising=False)

        ledger = LedgerSettings()
        storage = StorageSettings()

        assert ledger.overdue_after_days == 30
        assert ledger.week_start == 6
        assert ledger.high_balance_threshold == 1000
        assert ledger.default_rate == 120
        assert storage.data_dir == Path("data")
        assert storage.data_key_prefix == "aab_data_"
        assert storage.session_key == "aab_current_user"

    def test_env_override(self, monkeypatch):
        """Test settings read their prefixed environment variables."""
        monkeypatch.setenv("WATERLEDGER_LEDGER_OVERDUE_AFTER_DAYS", "45")
        assert LedgerSettings().overdue_after_days == 45

    def test_log_level_is_normalized(self):
        """Test log levels are upper-cased and checked."""
        assert AppSettings(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValueError):
            AppSettings(log_level="loud")

    def test_get_settings_is_cached(self):
        """Test get_settings returns one shared instance."""
        assert get_settings() is get_settings()

    def test_validate_all_settings(self):
        """Test every settings group loads."""
        results = validate_all_settings()
        assert results["storage"] is True
        assert results["ledger"] is True
        assert results["app"] is True


class TestDiagnosticLogger:

    def test_logging_never_raises(self):
        """Test events of every severity can be logged."""
        logger = DiagnosticLogger()
        logger.log(DiagnosticEventBuilder.save_failed("aab_data_x", "disk full"))
        logger.log(DiagnosticEventBuilder.load_recovered("aab_data_x", "bad json"))
        logger.log(DiagnosticEventBuilder.collections_saved("aab_data_x", ["customers"]))
        logger.log_record_added("delivery", 1, "aab_data_x", {"amount": "240"})
