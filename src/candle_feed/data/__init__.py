"""Candle data structures."""

from candle_feed.data.memory import Candle, CandleBuffer

__all__ = ["Candle", "CandleBuffer"]
