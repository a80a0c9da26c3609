"""Tests for configuration and logging setup."""

import pytest
from decimal import Decimal
from pydantic import ValidationError

from payplan.audit import configure_logging
from payplan.config import EngineSettings, LoggingSettings, get_settings, validate_all_settings


class TestEngineSettings:
    """Tests for engine tunables."""

    def test_defaults(self):
        """Test the default tunables."""
        settings = EngineSettings()
        assert settings.balance_threshold == Decimal("200")
        assert settings.paycheck_count == 4
        assert settings.amortization_iteration_cap == 1000
        assert settings.payoff_iteration_cap == 1200
        assert settings.history_cap == 12
        assert settings.default_anchors == (1, 15)

    def test_environment_override(self, monkeypatch):
        """Test PAYPLAN_ variables override defaults."""
        monkeypatch.setenv("PAYPLAN_BALANCE_THRESHOLD", "50")
        monkeypatch.setenv("PAYPLAN_FIRST_ANCHOR_DAY", "20")
        monkeypatch.setenv("PAYPLAN_SECOND_ANCHOR_DAY", "5")
        settings = EngineSettings()
        assert settings.balance_threshold == Decimal("50")
        assert settings.default_anchors == (5, 20)

    def test_equal_anchor_days_rejected(self):
        """Test semimonthly anchors must differ."""
        with pytest.raises(ValidationError):
            EngineSettings(first_anchor_day=10, second_anchor_day=10)

    def test_paycheck_count_needs_two(self):
        """Test assignment needs at least two paychecks."""
        with pytest.raises(ValidationError):
            EngineSettings(paycheck_count=1)


class TestLoggingSettings:
    """Tests for logging configuration."""

    def test_level_normalized(self):
        """Test log levels are upper-cased."""
        assert LoggingSettings(level="debug").level == "DEBUG"

    def test_unknown_level_rejected(self):
        """Test unsupported levels fail validation."""
        with pytest.raises(ValidationError):
            LoggingSettings(level="chatty")

    def test_unknown_renderer_rejected(self):
        """Test unsupported renderers fail validation."""
        with pytest.raises(ValidationError):
            LoggingSettings(renderer="xml")

    def test_configure_logging(self):
        """Test structlog configuration accepts both renderers."""
        configure_logging(LoggingSettings(renderer="console"))
        configure_logging(LoggingSettings())


class TestSettingsContainer:
    """Tests for the root settings."""

    def test_get_settings_cached(self):
        """Test settings are built once."""
        get_settings.cache_clear()
        assert get_settings() is get_settings()

    def test_validate_all_settings(self, monkeypatch):
        """Test a broken group is reported, not raised."""
        monkeypatch.setenv("PAYPLAN_HISTORY_CAP", "0")
        get_settings.cache_clear()
        results = validate_all_settings()
        assert results["engine"] is False
        assert "engine_error" in results
        assert results["logging"] is True
