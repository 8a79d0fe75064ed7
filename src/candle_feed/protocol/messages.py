"""Typed model of the JSON frames exchanged with the feed server."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from candle_feed.data import Candle


class MessageType(str, Enum):
    """Wire value of the ``type`` field."""

    PING = "ping"
    PONG = "pong"
    SUBSCRIBE = "subscribe"
    SUBSCRIPTION_SUCCESS = "subscription_success"
    UNSUBSCRIBE = "unsubscribe"
    UNSUBSCRIBE_SUCCESS = "unsubscribe_success"
    HISTORY = "history"
    HISTORICAL_DATA = "historical_data"
    CANDLE = "candle"
    ERROR = "error"
    CONNECTED = "connected"


@dataclass(frozen=True, slots=True)
class Ping:
    type: ClassVar[MessageType] = MessageType.PING

    require_response: bool = False

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type.value}
        if self.require_response:
            payload["requireResponse"] = True
        return payload


@dataclass(frozen=True, slots=True)
class Pong:
    type: ClassVar[MessageType] = MessageType.PONG

    timestamp: int | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type.value}
        if self.timestamp is not None:
            payload["timestamp"] = self.timestamp
        return payload


@dataclass(frozen=True, slots=True)
class Subscribe:
    type: ClassVar[MessageType] = MessageType.SUBSCRIBE

    symbol: str
    timeframe: str

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type.value, "symbol": self.symbol, "timeframe": self.timeframe}


@dataclass(frozen=True, slots=True)
class SubscriptionSuccess:
    type: ClassVar[MessageType] = MessageType.SUBSCRIPTION_SUCCESS

    symbol: str
    timeframe: str
    timestamp: int | None = None

    def matches(self, symbol: str, timeframe: str) -> bool:
        return self.symbol == symbol and self.timeframe == timeframe

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class Unsubscribe:
    type: ClassVar[MessageType] = MessageType.UNSUBSCRIBE

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type.value}


@dataclass(frozen=True, slots=True)
class UnsubscribeSuccess:
    type: ClassVar[MessageType] = MessageType.UNSUBSCRIBE_SUCCESS

    timestamp: int | None = None

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type.value, "timestamp": self.timestamp}


@dataclass(frozen=True, slots=True)
class HistoryRequest:
    type: ClassVar[MessageType] = MessageType.HISTORY

    symbol: str
    timeframe: str
    limit: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "limit": self.limit,
        }


@dataclass(frozen=True, slots=True)
class HistoricalData:
    """Bootstrap batch, oldest candle first."""

    type: ClassVar[MessageType] = MessageType.HISTORICAL_DATA

    symbol: str
    timeframe: str
    candles: tuple[Candle, ...] = field(default_factory=tuple)
    timestamp: int | None = None

    def matches(self, symbol: str, timeframe: str) -> bool:
        return self.symbol == symbol and self.timeframe == timeframe

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "data": [candle.to_record() for candle in self.candles],
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class CandleUpdate:
    """Single live candle frame; may describe a still-open candle."""

    type: ClassVar[MessageType] = MessageType.CANDLE

    symbol: str
    timeframe: str
    candle: Candle
    timestamp: int | None = None

    def matches(self, symbol: str, timeframe: str) -> bool:
        return self.symbol == symbol and self.timeframe == timeframe

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "data": self.candle.to_record(),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class ErrorMessage:
    type: ClassVar[MessageType] = MessageType.ERROR

    error: str

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type.value, "error": self.error}


@dataclass(frozen=True, slots=True)
class Connected:
    type: ClassVar[MessageType] = MessageType.CONNECTED

    message: str = ""
    timestamp: int | None = None

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type.value, "message": self.message, "timestamp": self.timestamp}


Message = Union[
    Ping,
    Pong,
    Subscribe,
    SubscriptionSuccess,
    Unsubscribe,
    UnsubscribeSuccess,
    HistoryRequest,
    HistoricalData,
    CandleUpdate,
    ErrorMessage,
    Connected,
]
