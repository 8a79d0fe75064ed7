"""Configuration management for the candle feed."""
from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_HISTORY_LIMIT = 1_000


class ConfigurationError(RuntimeError):
    """Raised when the feed configuration cannot be loaded or validated."""


class SessionConfig(BaseModel):
    """Immutable connection and subscription parameters for one feed session."""

    model_config = ConfigDict(frozen=True)

    server_url: str = Field(..., min_length=1, description="WebSocket URL of the feed server")
    symbol: str = Field(..., min_length=1, description="Trading symbol to subscribe to")
    timeframe: str = Field("1m", min_length=1, description="Candle bucket width, e.g. 1m or 5m")
    reconnect_interval_ms: int = Field(5_000, gt=0, description="Fixed delay before reconnecting")
    ping_interval_ms: int = Field(30_000, gt=0, description="Keepalive ping period while connected")
    history_limit: int = Field(DEFAULT_HISTORY_LIMIT, ge=1, description="Candles requested on bootstrap")
    reset_candle_state_on_reconnect: bool = Field(
        False,
        description="Forget the last candle timestamp when a reconnect attempt begins",
    )

    @field_validator("server_url", "symbol", "timeframe")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped

    @property
    def reconnect_interval(self) -> float:
        """Reconnect delay in seconds."""

        return self.reconnect_interval_ms / 1000.0

    @property
    def ping_interval(self) -> float:
        """Keepalive period in seconds."""

        return self.ping_interval_ms / 1000.0


class LoggingSettings(BaseModel):
    """Console and file logging options."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field("INFO")
    log_to_file: bool = Field(False, description="Also append log lines to a per-day file")
    log_dir: Path = Field(Path("logs"))


class AppSettings(BaseSettings):
    """Application-wide configuration composed from individual domains."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_nested_delimiter="__",
        env_file=".env",
    )

    feed: SessionConfig
    logging: LoggingSettings = LoggingSettings()


def load_settings(path: Optional[Path] = None) -> AppSettings:
    """Load settings from a TOML file, falling back to environment variables."""

    if path is None:
        path = Path("config/settings.toml")

    try:
        if path.exists():
            raw_data = tomllib.loads(path.read_text())
            return AppSettings.model_validate(raw_data)
        return AppSettings()
    except (ValidationError, tomllib.TOMLDecodeError) as exc:
        raise ConfigurationError(
            f"Unable to load configuration. Provide {path} or the FEED__* environment variables: {exc}"
        ) from exc
