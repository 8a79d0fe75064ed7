"""Live feed session components."""

from candle_feed.live.consolidator import CandleConsolidator, CandleEvent
from candle_feed.live.consumer import (
    CandleConsumer,
    CandleHistoryConsumer,
    CompositeConsumer,
    LoggingCandleConsumer,
)
from candle_feed.live.reconnect import KeepAlive, ReconnectPolicy
from candle_feed.live.session import FeedSession, SessionStats, SessionStoppedError, TransportState
from candle_feed.live.subscription import SubscriptionController

__all__ = [
    "CandleConsolidator",
    "CandleConsumer",
    "CandleEvent",
    "CandleHistoryConsumer",
    "CompositeConsumer",
    "FeedSession",
    "KeepAlive",
    "LoggingCandleConsumer",
    "ReconnectPolicy",
    "SessionStats",
    "SessionStoppedError",
    "SubscriptionController",
    "TransportState",
]
