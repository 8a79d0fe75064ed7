"""Tests for configuration loading."""
from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from candle_feed.config import DEFAULT_HISTORY_LIMIT, ConfigurationError, SessionConfig, load_settings
from candle_feed.live import SubscriptionController
from candle_feed.protocol import SubscriptionSuccess


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    monkeypatch.chdir(tmp_path)
    for name in ("FEED__SERVER_URL", "FEED__SYMBOL", "FEED__TIMEFRAME", "LOGGING__LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


def test_session_config_defaults() -> None:
    config = SessionConfig(server_url=" ws://localhost:8080 ", symbol="BTCUSDT")

    assert config.server_url == "ws://localhost:8080"
    assert config.timeframe == "1m"
    assert config.reconnect_interval_ms == 5000
    assert config.ping_interval_ms == 30000
    assert config.history_limit == 1000
    assert config.reset_candle_state_on_reconnect is False
    assert config.reconnect_interval == 5.0
    assert config.ping_interval == 30.0


@pytest.mark.parametrize(
    "values",
    [
        {"symbol": "BTCUSDT"},
        {"server_url": "ws://localhost:8080"},
        {"server_url": "   ", "symbol": "BTCUSDT"},
        {"server_url": "ws://localhost:8080", "symbol": "BTCUSDT", "reconnect_interval_ms": 0},
        {"server_url": "ws://localhost:8080", "symbol": "BTCUSDT", "history_limit": 0},
    ],
)
def test_session_config_rejects_invalid_values(values: dict) -> None:
    with pytest.raises(ValidationError):
        SessionConfig(**values)


def test_session_config_is_immutable() -> None:
    config = SessionConfig(server_url="ws://localhost:8080", symbol="BTCUSDT")

    with pytest.raises(ValidationError):
        config.symbol = "ETHUSDT"


def test_load_settings_from_toml(clean_env: Path) -> None:
    path = clean_env / "settings.toml"
    path.write_text(
        "\n".join(
            [
                "[feed]",
                'server_url = "ws://localhost:8080"',
                'symbol = "BTCUSDT"',
                'timeframe = "5m"',
                "history_limit = 500",
                "",
                "[logging]",
                'level = "DEBUG"',
                "log_to_file = true",
            ]
        )
    )

    settings = load_settings(path)

    assert settings.feed.symbol == "BTCUSDT"
    assert settings.feed.timeframe == "5m"
    assert settings.feed.history_limit == 500
    assert settings.logging.level == "DEBUG"
    assert settings.logging.log_to_file is True


def test_load_settings_from_environment(clean_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FEED__SERVER_URL", "ws://feed.example:9000")
    monkeypatch.setenv("FEED__SYMBOL", "ETHUSDT")

    settings = load_settings(clean_env / "missing.toml")

    assert settings.feed.server_url == "ws://feed.example:9000"
    assert settings.feed.symbol == "ETHUSDT"
    assert settings.logging.level == "INFO"


def test_load_settings_without_required_fields_fails(clean_env: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_settings(clean_env / "missing.toml")


def test_load_settings_rejects_invalid_toml(clean_env: Path) -> None:
    path = clean_env / "broken.toml"
    path.write_text("[feed\nsymbol=")

    with pytest.raises(ConfigurationError):
        load_settings(path)


def test_history_limit_default_is_shared_with_subscription() -> None:
    config = SessionConfig(server_url="ws://localhost:8080", symbol="BTCUSDT")
    sent: list = []
    controller = SubscriptionController(symbol="BTCUSDT", timeframe="1m", send=lambda m: sent.append(m) or True)
    controller.on_open()
    controller.on_subscription_success(SubscriptionSuccess(symbol="BTCUSDT", timeframe="1m"))

    assert config.history_limit == DEFAULT_HISTORY_LIMIT == 1000
    assert sent[-1].limit == DEFAULT_HISTORY_LIMIT
