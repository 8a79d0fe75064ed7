"""JSON encoding and validating decoder for feed protocol frames."""
from __future__ import annotations

import json
from typing import Any, Callable, Mapping

from candle_feed.data import Candle
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


class ProtocolError(ValueError):
    """Raised when an inbound frame cannot be decoded into a known message."""

    def __init__(self, message: str, *, raw: str | bytes | None = None) -> None:
        super().__init__(message)
        self.raw = raw

    @property
    def preview(self) -> str:
        """First characters of the offending frame for log output."""

        if self.raw is None:
            return ""
        text = self.raw if isinstance(self.raw, str) else repr(self.raw)
        return text[:200]


def encode(message: Message) -> str:
    """Serialise a message into a compact JSON text frame."""

    return json.dumps(message.to_payload(), separators=(",", ":"))


def decode(raw: str | bytes) -> Message:
    """Parse and validate one inbound frame.

    Raises ``ProtocolError`` for undecodable bytes, invalid JSON, a payload that
    is not an object, a missing or unknown ``type`` and malformed fields.
    """

    if isinstance(raw, (bytes, bytearray)):
        try:
            text = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ProtocolError(f"frame is not valid UTF-8: {exc}", raw=raw) from exc
    else:
        text = raw

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProtocolError(f"invalid JSON: {exc}", raw=raw) from exc

    if not isinstance(payload, dict):
        raise ProtocolError(f"frame must be a JSON object, got {type(payload).__name__}", raw=raw)

    raw_type = payload.get("type")
    if not isinstance(raw_type, str):
        raise ProtocolError("frame has no 'type' field", raw=raw)
    try:
        message_type = MessageType(raw_type)
    except ValueError as exc:
        raise ProtocolError(f"unknown message type: {raw_type}", raw=raw) from exc

    try:
        return _PARSERS[message_type](payload)
    except ValueError as exc:
        raise ProtocolError(f"malformed '{raw_type}' frame: {exc}", raw=raw) from exc


def _require_str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise ValueError(f"field '{key}' must be a non-empty string")
    return value


def _optional_int(payload: Mapping[str, Any], key: str) -> int | None:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"field '{key}' must be numeric")
    return int(value)


def _parse_candles(value: Any) -> tuple[Candle, ...]:
    if not isinstance(value, list):
        raise ValueError("field 'data' must be a list of candles")
    return tuple(Candle.from_record(item) for item in value)


def _parse_ping(payload: Mapping[str, Any]) -> Ping:
    return Ping(require_response=bool(payload.get("requireResponse", False)))


def _parse_pong(payload: Mapping[str, Any]) -> Pong:
    return Pong(timestamp=_optional_int(payload, "timestamp"))


def _parse_subscribe(payload: Mapping[str, Any]) -> Subscribe:
    return Subscribe(symbol=_require_str(payload, "symbol"), timeframe=_require_str(payload, "timeframe"))


def _parse_subscription_success(payload: Mapping[str, Any]) -> SubscriptionSuccess:
    return SubscriptionSuccess(
        symbol=_require_str(payload, "symbol"),
        timeframe=_require_str(payload, "timeframe"),
        timestamp=_optional_int(payload, "timestamp"),
    )


def _parse_unsubscribe(payload: Mapping[str, Any]) -> Unsubscribe:
    return Unsubscribe()


def _parse_unsubscribe_success(payload: Mapping[str, Any]) -> UnsubscribeSuccess:
    return UnsubscribeSuccess(timestamp=_optional_int(payload, "timestamp"))


def _parse_history(payload: Mapping[str, Any]) -> HistoryRequest:
    limit = _optional_int(payload, "limit")
    if limit is None or limit < 1:
        raise ValueError("field 'limit' must be a positive integer")
    return HistoryRequest(
        symbol=_require_str(payload, "symbol"),
        timeframe=_require_str(payload, "timeframe"),
        limit=limit,
    )


def _parse_historical_data(payload: Mapping[str, Any]) -> HistoricalData:
    return HistoricalData(
        symbol=_require_str(payload, "symbol"),
        timeframe=_require_str(payload, "timeframe"),
        candles=_parse_candles(payload.get("data")),
        timestamp=_optional_int(payload, "timestamp"),
    )


def _parse_candle(payload: Mapping[str, Any]) -> CandleUpdate:
    return CandleUpdate(
        symbol=_require_str(payload, "symbol"),
        timeframe=_require_str(payload, "timeframe"),
        candle=Candle.from_record(payload.get("data")),
        timestamp=_optional_int(payload, "timestamp"),
    )


def _parse_error(payload: Mapping[str, Any]) -> ErrorMessage:
    error = payload.get("error")
    return ErrorMessage(error=str(error) if error is not None else "unspecified server error")


def _parse_connected(payload: Mapping[str, Any]) -> Connected:
    message = payload.get("message")
    return Connected(
        message=str(message) if message is not None else "",
        timestamp=_optional_int(payload, "timestamp"),
    )


_PARSERS: dict[MessageType, Callable[[Mapping[str, Any]], Message]] = {
    MessageType.PING: _parse_ping,
    MessageType.PONG: _parse_pong,
    MessageType.SUBSCRIBE: _parse_subscribe,
    MessageType.SUBSCRIPTION_SUCCESS: _parse_subscription_success,
    MessageType.UNSUBSCRIBE: _parse_unsubscribe,
    MessageType.UNSUBSCRIBE_SUCCESS: _parse_unsubscribe_success,
    MessageType.HISTORY: _parse_history,
    MessageType.HISTORICAL_DATA: _parse_historical_data,
    MessageType.CANDLE: _parse_candle,
    MessageType.ERROR: _parse_error,
    MessageType.CONNECTED: _parse_connected,
}
