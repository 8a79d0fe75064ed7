"""Tests for candle buffers and the bundled consumers."""
from __future__ import annotations

import logging

import pytest

from candle_feed.data import Candle, CandleBuffer
from candle_feed.live import CandleHistoryConsumer, CompositeConsumer, LoggingCandleConsumer

from conftest import RecordingConsumer, make_candle


def test_candle_buffer_replaces_in_progress_candle_and_evicts() -> None:
    buffer = CandleBuffer(capacity=3)
    buffer.extend([make_candle(1), make_candle(2), make_candle(2, close=105.0), make_candle(3), make_candle(4)])

    assert [c.timestamp for c in buffer.to_list()] == [2, 3, 4]
    assert buffer.to_list()[0].close == 105.0
    assert buffer.latest() == make_candle(4)


def test_candle_buffer_requires_positive_capacity() -> None:
    with pytest.raises(ValueError):
        CandleBuffer(0)


def test_candle_record_round_trip_keeps_fields() -> None:
    candle = Candle.from_record({"timestamp": 60000, "open": "1", "high": 2, "low": 0.5, "close": 1.5, "volume": 3})

    assert candle.to_record() == {
        "timestamp": 60000,
        "open": 1.0,
        "high": 2.0,
        "low": 0.5,
        "close": 1.5,
        "volume": 3.0,
    }


def test_candle_from_record_rejects_booleans() -> None:
    with pytest.raises(ValueError):
        Candle.from_record({"timestamp": True, "open": 1, "high": 1, "low": 1, "close": 1, "volume": 1})
    with pytest.raises(ValueError):
        Candle.from_record({"timestamp": 1, "open": False, "high": 1, "low": 1, "close": 1, "volume": 1})


def test_history_consumer_tracks_consolidated_sequence() -> None:
    history = CandleHistoryConsumer(capacity=10)
    history.on_historical_batch([make_candle(100), make_candle(200)])
    history.on_ready()
    history.on_candle_update(make_candle(200, close=110.0))
    history.on_new_candle(make_candle(300))
    history.on_candle_update(make_candle(300, close=120.0))

    assert history.ready is True
    assert [c.timestamp for c in history.candles()] == [100, 200, 300]
    assert [c.timestamp for c in history.finalized()] == [100, 200]
    assert history.finalized()[-1].close == 110.0
    assert history.current() == make_candle(300, close=120.0)

    history.on_historical_batch([make_candle(300), make_candle(400)])
    assert [c.timestamp for c in history.candles()] == [300, 400]


def test_composite_consumer_fans_out_in_order() -> None:
    first = RecordingConsumer()
    second = RecordingConsumer()
    composite = CompositeConsumer(first, second)

    composite.on_historical_batch([make_candle(1)])
    composite.on_ready()
    composite.on_new_candle(make_candle(2))
    composite.on_candle_update(make_candle(2))

    assert first.kinds() == second.kinds() == ["history", "ready", "new", "update"]


def test_logging_consumer_reports_events(caplog: pytest.LogCaptureFixture) -> None:
    consumer = LoggingCandleConsumer(logger=logging.getLogger("tests.consumer"))

    with caplog.at_level(logging.DEBUG, logger="tests.consumer"):
        consumer.on_historical_batch([make_candle(0), make_candle(60_000)])
        consumer.on_historical_batch([])
        consumer.on_ready()
        consumer.on_new_candle(make_candle(120_000))
        consumer.on_candle_update(make_candle(120_000))

    assert "Received 2 historical candles" in caplog.text
    assert "1970-01-01T00:01:00.000Z" in caplog.text
    assert "empty historical batch" in caplog.text
    assert "New candle: 1970-01-01T00:02:00.000Z" in caplog.text
    assert "Candle update: 1970-01-01T00:02:00.000Z" in caplog.text
