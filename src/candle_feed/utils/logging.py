"""Logging configuration for console and optional per-day log files."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def log_file_path(log_dir: Path, symbol: str | None, *, today: datetime | None = None) -> Path:
    """Return the per-day log file for ``symbol`` inside ``log_dir``."""

    day = (today or datetime.now(timezone.utc)).date().isoformat()
    suffix = f"-{symbol.upper()}" if symbol else ""
    return Path(log_dir) / f"{day}{suffix}.log"


def configure_logging(
    level: str = "INFO",
    *,
    log_dir: Path | None = None,
    symbol: str | None = None,
) -> Path | None:
    """Install console logging and, when ``log_dir`` is given, a file handler.

    Returns the log file path when file logging is enabled.
    """

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    path: Path | None = None
    if log_dir is not None:
        path = log_file_path(log_dir, symbol)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT, handlers=handlers, force=True)
    # websockets logs every frame at DEBUG
    logging.getLogger("websockets").setLevel(max(numeric_level, logging.INFO))
    return path
