"""Datetime helpers shared across the project."""
from __future__ import annotations

from datetime import datetime, timezone


def from_epoch_ms(value: int | float) -> datetime:
    """Convert epoch milliseconds into a timezone-aware UTC datetime."""

    return datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)


def format_epoch_ms(value: int | float) -> str:
    """Render epoch milliseconds as an ISO8601 string, falling back to the raw value."""

    try:
        return from_epoch_ms(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    except (OverflowError, OSError, ValueError):
        return str(value)
