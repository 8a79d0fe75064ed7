"""Split the live candle stream into new-candle boundaries and in-progress updates."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Sequence

from candle_feed.data import Candle
from candle_feed.live.consumer import CandleConsumer

LOGGER = logging.getLogger(__name__)


class CandleEvent(str, Enum):
    NEW = "new"
    UPDATE = "update"


class CandleConsolidator:
    """Classify candle frames against the timestamp of the last candle seen.

    A frame whose timestamp differs from the last one opens a new candle; a
    frame with the same timestamp revises the candle still in progress. The
    last timestamp is seeded from the tail of each historical batch.
    """

    def __init__(self, consumer: CandleConsumer, *, logger: logging.Logger | None = None) -> None:
        self._consumer = consumer
        self._logger = logger or LOGGER
        self._last_timestamp: int | None = None

    @property
    def last_timestamp(self) -> int | None:
        return self._last_timestamp

    def ingest_history(self, candles: Sequence[Candle]) -> None:
        """Forward a bootstrap batch (oldest first) and signal readiness."""

        batch = list(candles)
        if batch:
            self._last_timestamp = batch[-1].timestamp
        try:
            self._consumer.on_historical_batch(batch)
        finally:
            self._consumer.on_ready()

    def classify(self, candle: Candle) -> CandleEvent:
        """Classify a frame against the last timestamp without recording it."""

        if self._last_timestamp is not None and candle.timestamp == self._last_timestamp:
            return CandleEvent.UPDATE
        return CandleEvent.NEW

    def ingest(self, candle: Candle) -> CandleEvent:
        """Route one live frame to the consumer and report how it was classified.

        The last timestamp is recorded before the consumer runs, even if it raises.
        """

        event = self.classify(candle)
        if event is CandleEvent.UPDATE:
            self._consumer.on_candle_update(candle)
            return event

        previous = self._last_timestamp
        if previous is not None and candle.timestamp < previous:
            self._logger.warning(
                "Candle timestamp %d is older than the previous candle %d; treating it as a new candle",
                candle.timestamp,
                previous,
            )
        self._last_timestamp = candle.timestamp
        self._consumer.on_new_candle(candle)
        return event

    def reset(self) -> None:
        """Forget the last candle timestamp."""

        self._last_timestamp = None


__all__ = ["CandleConsolidator", "CandleEvent"]
