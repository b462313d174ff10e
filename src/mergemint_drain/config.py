"""Configuration for the MergeMint drain service.

Usage:
    from mergemint_drain.config import Config

    # Access config values
    database_url = Config.DATABASE_URL
    deadline = Config.DISPATCH_TIMEOUT_SECONDS
"""

import os


class Config:
    """Centralized configuration for the drain service.

    All configuration values are class variables that can be accessed directly.
    Values are loaded from environment variables with sensible defaults.

    Example:
        from mergemint_drain.config import Config

        print(Config.SITE_URL)
        print(Config.BACKLOG_PAGE_SIZE)
    """

    # ========================================================================
    # Helper methods (static)
    # ========================================================================

    @staticmethod
    def _get_value(key: str, default: str | None) -> str | None:
        """Get configuration value from environment with optional default."""
        return os.getenv(key, default)

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get integer configuration value."""
        return int(os.getenv(key, str(default)))

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        """Get float configuration value."""
        return float(os.getenv(key, str(default)))

    @staticmethod
    def _get_bool(key: str, default: bool = False) -> bool:
        """Get boolean configuration value."""
        return os.getenv(key, str(default)).lower() in ("true", "1", "yes")

    # ========================================================================
    # Database Configuration
    # ========================================================================

    MERGEMINT_DATA_DIR: str = _get_value("MERGEMINT_DATA_DIR", ".")

    DATABASE_URL: str = _get_value("DATABASE_URL", f"sqlite:///{MERGEMINT_DATA_DIR}/mergemint.db")

    # ========================================================================
    # Drain Configuration
    # ========================================================================

    # Base URL of the site hosting the process-pr endpoint
    SITE_URL: str = _get_value(
        "SITE_URL", _get_value("NEXT_PUBLIC_SITE_URL", "http://localhost:3000")
    )

    # Shared secret for the cron endpoint; None leaves the endpoint open
    CRON_SECRET: str | None = _get_value("CRON_SECRET", None) or None

    BACKLOG_PAGE_SIZE: int = _get_int("BACKLOG_PAGE_SIZE", 100)
    BACKLOG_WINDOW: str = _get_value("BACKLOG_WINDOW", "oldest")

    # Must stay strictly below TRIGGER_BUDGET_SECONDS. The fetch and the
    # dispatch share the budget; the dispatch gets whatever the fetch left.
    DISPATCH_TIMEOUT_SECONDS: float = _get_float("DISPATCH_TIMEOUT_SECONDS", 28)
    TRIGGER_BUDGET_SECONDS: float = _get_float("TRIGGER_BUDGET_SECONDS", 30)
    FETCH_TIMEOUT_SECONDS: float = _get_float("FETCH_TIMEOUT_SECONDS", 10)
    BUDGET_MARGIN_SECONDS: float = _get_float("BUDGET_MARGIN_SECONDS", 0.5)

    # Batch drain of the process-unprocessed endpoint
    BATCH_LIMIT: int = _get_int("BATCH_LIMIT", 50)
    BATCH_DELAY_SECONDS: float = _get_float("BATCH_DELAY_SECONDS", 0.3)

    LOG_LEVEL: str = _get_value("LOG_LEVEL", "INFO")

    # ========================================================================
    # MQTT Configuration
    # ========================================================================

    BROADCAST_TYPE: str = _get_value("BROADCAST_TYPE", "mqtt")
    MQTT_BROKER: str = _get_value("MQTT_BROKER", "localhost")
    MQTT_PORT: int = _get_int("MQTT_PORT", 1883)
    MQTT_TOPIC: str = _get_value("MQTT_TOPIC", "mergemint/drain/events")
