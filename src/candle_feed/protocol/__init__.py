"""Feed wire protocol."""

from candle_feed.protocol.codec import ProtocolError, decode, encode
from candle_feed.protocol.messages import (
    CandleUpdate,
    Connected,
    ErrorMessage,
    HistoricalData,
    HistoryRequest,
    Message,
    MessageType,
    Ping,
    Pong,
    Subscribe,
    SubscriptionSuccess,
    Unsubscribe,
    UnsubscribeSuccess,
)

__all__ = [
    "CandleUpdate",
    "Connected",
    "ErrorMessage",
    "HistoricalData",
    "HistoryRequest",
    "Message",
    "MessageType",
    "Ping",
    "Pong",
    "ProtocolError",
    "Subscribe",
    "SubscriptionSuccess",
    "Unsubscribe",
    "UnsubscribeSuccess",
    "decode",
    "encode",
]
