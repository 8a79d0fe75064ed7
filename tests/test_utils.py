"""Tests for datetime and logging helpers."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from candle_feed.utils import configure_logging, format_epoch_ms, from_epoch_ms, log_file_path


def test_from_epoch_ms_returns_utc() -> None:
    result = from_epoch_ms(1_577_836_800_000)
    assert result == datetime(2020, 1, 1, tzinfo=timezone.utc)


def test_format_epoch_ms_uses_z_suffix() -> None:
    assert format_epoch_ms(0) == "1970-01-01T00:00:00.000Z"
    assert format_epoch_ms(1_500) == "1970-01-01T00:00:01.500Z"


def test_format_epoch_ms_falls_back_for_out_of_range_values() -> None:
    assert format_epoch_ms(10**20) == str(10**20)


def test_log_file_path_is_per_day_and_symbol(tmp_path: Path) -> None:
    path = log_file_path(tmp_path, "btcusdt", today=datetime(2024, 3, 5, tzinfo=timezone.utc))
    assert path == tmp_path / "2024-03-05-BTCUSDT.log"


@contextmanager
def isolated_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    websockets_level = logging.getLogger("websockets").level
    try:
        yield
    finally:
        for handler in list(root.handlers):
            if handler not in handlers:
                root.removeHandler(handler)
                handler.close()
        for handler in handlers:
            if handler not in root.handlers:
                root.addHandler(handler)
        root.setLevel(level)
        logging.getLogger("websockets").setLevel(websockets_level)


def test_configure_logging_writes_log_file(tmp_path: Path) -> None:
    with isolated_root_logger():
        path = configure_logging("DEBUG", log_dir=tmp_path / "logs", symbol="ethusdt")

        assert path is not None
        assert path.parent == tmp_path / "logs"
        assert path.name.endswith("-ETHUSDT.log")

        logging.getLogger("candle_feed.test").info("feed online")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "feed online" in path.read_text()
        assert logging.getLogger("websockets").level == logging.INFO


def test_configure_logging_console_only() -> None:
    with isolated_root_logger():
        assert configure_logging("warning") is None
        assert logging.getLogger().level == logging.WARNING
