"""Configuration subpackage."""

from candle_feed.config.settings import (
    DEFAULT_HISTORY_LIMIT,
    AppSettings,
    ConfigurationError,
    LoggingSettings,
    SessionConfig,
    load_settings,
)

__all__ = [
    "AppSettings",
    "ConfigurationError",
    "DEFAULT_HISTORY_LIMIT",
    "LoggingSettings",
    "SessionConfig",
    "load_settings",
]
