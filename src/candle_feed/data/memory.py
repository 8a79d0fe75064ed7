"""In-memory data structures for live candle processing."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Iterable, Iterator, List, Mapping

from candle_feed.utils import format_epoch_ms


@dataclass(frozen=True, slots=True)
class Candle:
    """OHLCV candle keyed by its bucket start in epoch milliseconds."""

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    def to_record(self) -> dict[str, Any]:
        """Convert the candle into the wire dictionary structure."""

        return {
            "timestamp": self.timestamp,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Candle":
        """Instantiate a candle from the wire dictionary format.

        Raises ``ValueError`` when a field is missing or not numeric.
        """

        if not isinstance(record, Mapping):
            raise ValueError(f"candle must be an object, got {type(record).__name__}")

        def _extract_float(key: str) -> float:
            value = record.get(key)
            if value is None or isinstance(value, bool):
                raise ValueError(f"candle field '{key}' is missing or not numeric")
            try:
                return float(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"candle field '{key}' is not numeric: {value!r}") from exc

        raw_ts = record.get("timestamp")
        if raw_ts is None or isinstance(raw_ts, bool):
            raise ValueError("candle field 'timestamp' is missing")
        try:
            timestamp = int(raw_ts)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"candle field 'timestamp' is not an integer: {raw_ts!r}") from exc
        if isinstance(raw_ts, float) and raw_ts != timestamp:
            raise ValueError(f"candle field 'timestamp' is not an integer: {raw_ts!r}")

        return cls(
            timestamp=timestamp,
            open=_extract_float("open"),
            high=_extract_float("high"),
            low=_extract_float("low"),
            close=_extract_float("close"),
            volume=_extract_float("volume"),
        )

    def describe(self) -> str:
        """Short human readable summary used in log lines."""

        return (
            f"{format_epoch_ms(self.timestamp)}, O: {self.open}, H: {self.high}, "
            f"L: {self.low}, C: {self.close}, V: {self.volume}"
        )


class CandleBuffer:
    """Bounded in-memory store retaining the latest candles in arrival order."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._items: Deque[Candle] = deque(maxlen=capacity)

    def append(self, candle: Candle) -> None:
        """Insert a new candle, replacing the latest one when it shares the timestamp."""
        if self._items and self._items[-1].timestamp == candle.timestamp:
            self._items[-1] = candle
        else:
            self._items.append(candle)

    def extend(self, candles: Iterable[Candle]) -> None:
        """Bulk insert candles preserving their order."""

        for candle in candles:
            self.append(candle)

    def latest(self) -> Candle | None:
        """Return the most recent candle if available."""

        if not self._items:
            return None
        return self._items[-1]

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._items)

    def __iter__(self) -> Iterator[Candle]:  # pragma: no cover - trivial
        return iter(self._items)

    def to_list(self) -> List[Candle]:
        """Realise a copy of the buffered candles."""

        return list(self._items)

    def clear(self) -> None:
        """Remove all retained candles."""

        self._items.clear()
