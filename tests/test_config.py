"""
Tests for environment-driven configuration.

Usage:
    pytest tests/test_config.py -v
"""

import pytest

from src.data.config import (
    AlertThresholds,
    AnalyticsConfig,
    LoggingConfig,
    LogThresholds,
    get_settings,
    reset_settings,
)


class TestAnalyticsConfig:

    def test_defaults(self, monkeypatch):
        for key in ("ANALYTICS_ERROR_FREQUENCY", "ANALYTICS_CLUSTER_WINDOW_MS", "ANALYTICS_STRICT_PARSING"):
            monkeypatch.delenv(key, raising=False)
        config = AnalyticsConfig()
        assert config.error_frequency == 5
        assert config.cluster_window_ms == 300_000
        assert config.strict_parsing is False

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("ANALYTICS_ERROR_FREQUENCY", "7")
        monkeypatch.setenv("ANALYTICS_STRICT_PARSING", "yes")
        config = AnalyticsConfig()
        assert config.error_frequency == 7
        assert config.strict_parsing is True

    def test_invalid_integer(self, monkeypatch):
        monkeypatch.setenv("ANALYTICS_BATCH_SIZE", "many")
        with pytest.raises(ValueError):
            AnalyticsConfig()

    def test_validation(self):
        with pytest.raises(ValueError):
            AnalyticsConfig(error_frequency=0)
        with pytest.raises(ValueError):
            AnalyticsConfig(batch_size=0)


class TestThresholds:

    def test_memory_bytes(self):
        assert LogThresholds(high_memory_mb=1).high_memory_bytes == 1024 * 1024

    def test_alert_rate_range(self):
        with pytest.raises(ValueError):
            AlertThresholds(error_rate=1.5)


class TestSettings:

    def teardown_method(self):
        reset_settings()

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_reset_rereads_environment(self, monkeypatch):
        get_settings()
        monkeypatch.setenv("ALERT_CRITICAL_ISSUES", "9")
        reset_settings()
        assert get_settings().alerts.critical_issues == 9


class TestLoggingConfig:

    def test_rotation_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_MAX_BYTES", "2048")
        monkeypatch.setenv("LOG_BACKUP_COUNT", "3")
        config = LoggingConfig()
        assert config.max_bytes == 2048
        assert config.backup_count == 3
