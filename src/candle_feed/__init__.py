"""Resilient WebSocket candle feed client."""

from candle_feed.config import SessionConfig
from candle_feed.data import Candle
from candle_feed.live import CandleConsumer, FeedSession

__all__ = ["Candle", "CandleConsumer", "FeedSession", "SessionConfig"]
