"""Utility helpers."""

from candle_feed.utils.datetime import format_epoch_ms, from_epoch_ms
from candle_feed.utils.logging import configure_logging, log_file_path

__all__ = ["configure_logging", "format_epoch_ms", "from_epoch_ms", "log_file_path"]
