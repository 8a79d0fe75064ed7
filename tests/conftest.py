from __future__ import annotations

import json
from typing import Any

import pytest

from candle_feed.config import SessionConfig
from candle_feed.data import Candle
from candle_feed.live import FeedSession
from candle_feed.network import ManualScheduler


def make_candle(timestamp: int, close: float = 100.0, volume: float = 1.0) -> Candle:
    return Candle(
        timestamp=timestamp,
        open=close,
        high=close + 1.0,
        low=close - 1.0,
        close=close,
        volume=volume,
    )


class RecordingConsumer:
    """Consumer that records every event as a (kind, payload) tuple."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    def on_ready(self) -> None:
        self.events.append(("ready", None))

    def on_historical_batch(self, candles) -> None:
        self.events.append(("history", list(candles)))

    def on_new_candle(self, candle: Candle) -> None:
        self.events.append(("new", candle))

    def on_candle_update(self, candle: Candle) -> None:
        self.events.append(("update", candle))

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.events]


class FakeTransport:
    """In-memory transport driven explicitly by the test."""

    def __init__(self, url: str, listener) -> None:
        self.url = url
        self.listener = listener
        self.sent: list[dict] = []
        self.closed = False
        self.detached = False

    @property
    def is_open(self) -> bool:
        return not self.closed

    def send(self, payload: str) -> bool:
        self.sent.append(json.loads(payload))
        return True

    def close(self) -> None:
        self.closed = True

    def detach(self) -> None:
        self.detached = True

    def open(self) -> None:
        self.listener.on_open()

    def receive(self, frame: dict | str | bytes) -> None:
        payload = json.dumps(frame) if isinstance(frame, dict) else frame
        self.listener.on_message(payload)

    def fail(self, error: BaseException) -> None:
        self.listener.on_error(error)

    def drop(self, code: int | None = 1006, reason: str = "") -> None:
        self.listener.on_close(code, reason)

    def sent_types(self) -> list[str]:
        return [frame["type"] for frame in self.sent]


class FakeTransportFactory:
    def __init__(self) -> None:
        self.transports: list[FakeTransport] = []

    def __call__(self, url: str, listener) -> FakeTransport:
        transport = FakeTransport(url, listener)
        self.transports.append(transport)
        return transport

    @property
    def latest(self) -> FakeTransport:
        return self.transports[-1]


class SessionHarness:
    """Feed session wired to fake transports and a virtual clock."""

    def __init__(self, **config_overrides: Any) -> None:
        values: dict[str, Any] = {
            "server_url": "ws://feed.test/ws",
            "symbol": "BTCUSDT",
            "timeframe": "5m",
        }
        values.update(config_overrides)
        self.config = SessionConfig(**values)
        self.consumer = RecordingConsumer()
        self.factory = FakeTransportFactory()
        self.scheduler = ManualScheduler()
        self.session = FeedSession(
            self.config,
            self.consumer,
            transport_factory=self.factory,
            scheduler=self.scheduler,
        )

    @property
    def transport(self) -> FakeTransport:
        return self.factory.latest

    def confirm(self) -> None:
        self.transport.receive(
            {
                "type": "subscription_success",
                "symbol": self.config.symbol,
                "timeframe": self.config.timeframe,
                "timestamp": 1,
            }
        )

    def history(self, *timestamps: int) -> None:
        self.transport.receive(
            {
                "type": "historical_data",
                "symbol": self.config.symbol,
                "timeframe": self.config.timeframe,
                "data": [make_candle(ts).to_record() for ts in timestamps],
                "timestamp": 2,
            }
        )

    def candle(self, timestamp: int, close: float = 100.0) -> None:
        self.transport.receive(
            {
                "type": "candle",
                "symbol": self.config.symbol,
                "timeframe": self.config.timeframe,
                "data": make_candle(timestamp, close=close).to_record(),
                "timestamp": 3,
            }
        )

    def connect_and_bootstrap(self, *timestamps: int) -> None:
        self.session.start()
        self.transport.open()
        self.confirm()
        self.history(*timestamps)


@pytest.fixture
def consumer() -> RecordingConsumer:
    return RecordingConsumer()


@pytest.fixture
def harness() -> SessionHarness:
    return SessionHarness()
