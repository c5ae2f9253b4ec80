"""Tests for settings and logging setup."""

import logging

import pytest

from storefront.core.config import Settings, get_settings
from storefront.core import logger as logger_module
from storefront.core.logger import configure_from_settings, setup_logger


class TestSettings:
    """Environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("STOREFRONT_LOW_STOCK_THRESHOLD", raising=False)
        settings = Settings(_env_file=None)
        assert settings.login_path == "/auth/login"
        assert settings.cashier_pos_path == "/cashier/pos"
        assert settings.high_value_order_threshold == 100.0
        assert settings.low_stock_threshold == 10
        assert settings.notification_retention_days == 90
        assert settings.read_notification_retention_days == 30

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("STOREFRONT_CASHIER_POS_PATH", "/pos")
        monkeypatch.setenv("STOREFRONT_HIGH_VALUE_ORDER_THRESHOLD", "250")
        monkeypatch.setenv("STOREFRONT_SOMETHING_ELSE", "ignored")
        settings = Settings(_env_file=None)
        assert settings.cashier_pos_path == "/pos"
        assert settings.high_value_order_threshold == 250.0

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()


class TestLogger:
    """Logger configuration."""

    def test_setup_logger_level(self):
        logger = setup_logger("storefront-test-level", level="debug")
        assert logger.level == logging.DEBUG

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            setup_logger("storefront-test-invalid", level="loud")

    def test_no_duplicate_handlers(self):
        first = setup_logger("storefront-test-dupes")
        count = len(first.handlers)
        assert len(setup_logger("storefront-test-dupes").handlers) == count

    def test_file_logging(self, tmp_path):
        log_file = tmp_path / "logs" / "storefront-test-file.log"
        logger = setup_logger("storefront-test-file", log_file=str(log_file))
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in log_file.read_text()

    def test_configure_from_settings(self, tmp_path):
        settings = Settings(_env_file=None, log_level="WARNING", log_dir=str(tmp_path))
        logger = configure_from_settings(settings)
        assert logger.name == "storefront"
        assert logger.level == logging.WARNING

    def test_configure_from_settings_log_file(self, tmp_path, monkeypatch):
        """With log_to_file set, the package log goes to storefront.log in log_dir."""
        calls = []
        monkeypatch.setattr(logger_module, "setup_logger", lambda *a, **kw: calls.append((a, kw)))
        configure_from_settings(Settings(_env_file=None, log_dir=str(tmp_path), log_to_file=True))
        configure_from_settings(Settings(_env_file=None, log_dir=str(tmp_path), log_to_file=False))
        assert calls[0][1]["log_file"] == str(tmp_path / "storefront.log")
        assert calls[1][1]["log_file"] is None
