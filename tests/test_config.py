"""Unit tests for Config class."""

import os

from mergemint_drain import Config


class TestConfig:
    """Test suite for Config class."""

    def test_config_has_required_attributes(self):
        """Test that Config class has all required configuration attributes."""
        # Database configuration
        assert hasattr(Config, "DATABASE_URL")
        assert hasattr(Config, "MERGEMINT_DATA_DIR")

        # Drain configuration
        assert hasattr(Config, "SITE_URL")
        assert hasattr(Config, "CRON_SECRET")
        assert hasattr(Config, "BACKLOG_PAGE_SIZE")
        assert hasattr(Config, "BACKLOG_WINDOW")
        assert hasattr(Config, "DISPATCH_TIMEOUT_SECONDS")
        assert hasattr(Config, "TRIGGER_BUDGET_SECONDS")
        assert hasattr(Config, "FETCH_TIMEOUT_SECONDS")
        assert hasattr(Config, "BUDGET_MARGIN_SECONDS")
        assert hasattr(Config, "BATCH_LIMIT")
        assert hasattr(Config, "BATCH_DELAY_SECONDS")
        assert hasattr(Config, "LOG_LEVEL")

        # MQTT configuration
        assert hasattr(Config, "BROADCAST_TYPE")
        assert hasattr(Config, "MQTT_BROKER")
        assert hasattr(Config, "MQTT_PORT")
        assert hasattr(Config, "MQTT_TOPIC")

    def test_config_value_types(self):
        assert isinstance(Config.BACKLOG_PAGE_SIZE, int)
        assert isinstance(Config.MQTT_PORT, int)
        assert isinstance(Config.DISPATCH_TIMEOUT_SECONDS, float)
        assert isinstance(Config.TRIGGER_BUDGET_SECONDS, float)

    def test_dispatch_deadline_below_budget(self):
        """The dispatch deadline must leave room inside the trigger budget."""
        assert Config.DISPATCH_TIMEOUT_SECONDS < Config.TRIGGER_BUDGET_SECONDS
        assert 0 <= Config.BUDGET_MARGIN_SECONDS < Config.TRIGGER_BUDGET_SECONDS

    def test_drain_defaults(self):
        assert Config.BACKLOG_PAGE_SIZE == 100 or os.getenv("BACKLOG_PAGE_SIZE")
        assert Config.BACKLOG_WINDOW == "oldest" or os.getenv("BACKLOG_WINDOW")
        assert Config.DISPATCH_TIMEOUT_SECONDS == 28 or os.getenv("DISPATCH_TIMEOUT_SECONDS")
        assert Config.BATCH_LIMIT == 50 or os.getenv("BATCH_LIMIT")
        assert Config.BATCH_DELAY_SECONDS == 0.3 or os.getenv("BATCH_DELAY_SECONDS")
        assert Config.SITE_URL == "http://localhost:3000" or os.getenv("SITE_URL") or os.getenv(
            "NEXT_PUBLIC_SITE_URL"
        )

    def test_database_url_default(self):
        if not os.getenv("DATABASE_URL"):
            assert Config.DATABASE_URL.startswith("sqlite:///")
            assert Config.DATABASE_URL.endswith("mergemint.db")

    def test_empty_cron_secret_is_none(self):
        if not os.getenv("CRON_SECRET"):
            assert Config.CRON_SECRET is None

    def test_helpers_read_environment(self, monkeypatch):
        monkeypatch.setenv("MERGEMINT_TEST_INT", "7")
        monkeypatch.setenv("MERGEMINT_TEST_FLOAT", "2.5")
        monkeypatch.setenv("MERGEMINT_TEST_BOOL", "Yes")

        assert Config._get_int("MERGEMINT_TEST_INT", 1) == 7
        assert Config._get_float("MERGEMINT_TEST_FLOAT", 1.0) == 2.5
        assert Config._get_bool("MERGEMINT_TEST_BOOL") is True
        assert Config._get_bool("MERGEMINT_TEST_MISSING") is False
        assert Config._get_value("MERGEMINT_TEST_MISSING", "fallback") == "fallback"
