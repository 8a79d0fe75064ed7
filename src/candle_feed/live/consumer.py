"""Downstream consumers of consolidated candle events."""
from __future__ import annotations

import logging
from typing import Protocol, Sequence

from candle_feed.data import Candle, CandleBuffer

LOGGER = logging.getLogger(__name__)


class CandleConsumer(Protocol):
    """Receiver of consolidated candle events.

    ``on_candle_update`` may be invoked many times for the same open candle and
    must be safe to repeat.
    """

    def on_ready(self) -> None:
        ...

    def on_historical_batch(self, candles: Sequence[Candle]) -> None:
        ...

    def on_new_candle(self, candle: Candle) -> None:
        ...

    def on_candle_update(self, candle: Candle) -> None:
        ...


class LoggingCandleConsumer:
    """Consumer that only logs the events it receives."""

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._logger = logger or LOGGER

    def on_ready(self) -> None:
        self._logger.info("Candle history bootstrapped; consumer ready")

    def on_historical_batch(self, candles: Sequence[Candle]) -> None:
        if candles:
            self._logger.info(
                "Received %d historical candles (%s .. %s)",
                len(candles),
                candles[0].describe(),
                candles[-1].describe(),
            )
        else:
            self._logger.info("Received an empty historical batch")

    def on_new_candle(self, candle: Candle) -> None:
        self._logger.debug("New candle: %s", candle.describe())

    def on_candle_update(self, candle: Candle) -> None:
        self._logger.debug("Candle update: %s", candle.describe())


class CandleHistoryConsumer:
    """Maintain the consolidated candle sequence in a bounded buffer.

    The last element is the in-progress candle; everything before it is final.
    """

    def __init__(self, capacity: int = 2_000) -> None:
        self._buffer = CandleBuffer(capacity)
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    def on_ready(self) -> None:
        self._ready = True

    def on_historical_batch(self, candles: Sequence[Candle]) -> None:
        self._buffer.clear()
        self._buffer.extend(candles)

    def on_new_candle(self, candle: Candle) -> None:
        self._buffer.append(candle)

    def on_candle_update(self, candle: Candle) -> None:
        self._buffer.append(candle)

    def current(self) -> Candle | None:
        """Latest, possibly still open, candle."""

        return self._buffer.latest()

    def finalized(self) -> list[Candle]:
        """Candles that can no longer change."""

        return self._buffer.to_list()[:-1]

    def candles(self) -> list[Candle]:
        return self._buffer.to_list()


class CompositeConsumer:
    """Fan every event out to several consumers in registration order."""

    def __init__(self, *consumers: CandleConsumer) -> None:
        self._consumers = list(consumers)

    def on_ready(self) -> None:
        for consumer in self._consumers:
            consumer.on_ready()

    def on_historical_batch(self, candles: Sequence[Candle]) -> None:
        for consumer in self._consumers:
            consumer.on_historical_batch(candles)

    def on_new_candle(self, candle: Candle) -> None:
        for consumer in self._consumers:
            consumer.on_new_candle(candle)

    def on_candle_update(self, candle: Candle) -> None:
        for consumer in self._consumers:
            consumer.on_candle_update(candle)


__all__ = ["CandleConsumer", "CandleHistoryConsumer", "CompositeConsumer", "LoggingCandleConsumer"]
