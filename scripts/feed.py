"""Live candle feed CLI: keep a subscription alive and report session statistics."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from candle_feed.config import ConfigurationError, LoggingSettings, SessionConfig, load_settings
from candle_feed.live import (
    CandleHistoryConsumer,
    CompositeConsumer,
    FeedSession,
    LoggingCandleConsumer,
    SessionStats,
)
from candle_feed.utils import configure_logging, format_epoch_ms

app = typer.Typer(help="Live candle feed utilities")
console = Console()


@app.command()
def run(
    config_path: Optional[Path] = typer.Option(None, "--config", help="TOML settings file (default config/settings.toml)."),
    url: Optional[str] = typer.Option(None, help="Override the feed server WebSocket URL."),
    symbol: Optional[str] = typer.Option(None, help="Override the subscribed symbol."),
    timeframe: Optional[str] = typer.Option(None, help="Override the candle timeframe."),
    history_limit: Optional[int] = typer.Option(None, min=1, help="Candles requested on bootstrap."),
    stats_interval: float = typer.Option(60.0, min=1.0, help="Seconds between statistics reports."),
    log_level: Optional[str] = typer.Option(None, help="Override the log level."),
) -> None:
    """Connect to the feed server and stream candles until interrupted."""

    overrides = {
        key: value
        for key, value in {
            "server_url": url,
            "symbol": symbol.upper() if symbol else None,
            "timeframe": timeframe,
            "history_limit": history_limit,
        }.items()
        if value is not None
    }
    try:
        try:
            settings = load_settings(config_path)
            base = settings.feed.model_dump()
            logging_settings = settings.logging
        except ConfigurationError:
            # url and symbol on the command line are enough to run without a settings file
            if url is None or symbol is None:
                raise
            base = {}
            logging_settings = LoggingSettings()
        feed_config = SessionConfig.model_validate({**base, **overrides})
    except (ConfigurationError, ValueError) as error:
        console.print(f"[red]Configuration error:[/red] {error}")
        raise typer.Exit(code=2) from error

    log_path = configure_logging(
        log_level or logging_settings.level,
        log_dir=logging_settings.log_dir if logging_settings.log_to_file else None,
        symbol=feed_config.symbol,
    )
    if log_path is not None:
        logging.getLogger("candle_feed").info("Logging to %s", log_path)

    console.rule(f"Candle feed {feed_config.symbol} {feed_config.timeframe}")
    console.print(f"Server: {feed_config.server_url}  Press Ctrl+C to exit")

    try:
        asyncio.run(_run_feed(feed_config, stats_interval=stats_interval))
    except KeyboardInterrupt:  # pragma: no cover - console stop
        console.print("Feed interrupted by user")


async def _run_feed(config: SessionConfig, *, stats_interval: float) -> None:
    logger = logging.getLogger("candle_feed.cli")
    history = CandleHistoryConsumer(capacity=max(config.history_limit, 100) + 100)
    session = FeedSession(config, CompositeConsumer(history, LoggingCandleConsumer(logger=logger)), logger=logger)
    session.start()
    try:
        while True:
            await asyncio.sleep(stats_interval)
            console.print(_stats_table(session.stats(), history))
    finally:
        session.stop()
        console.print(_stats_table(session.stats(), history))


def _stats_table(stats: SessionStats, history: CandleHistoryConsumer) -> Table:
    table = Table(title="Feed session", show_header=False)
    table.add_column("metric")
    table.add_column("value", justify="right")
    table.add_row("state", stats.state)
    table.add_row("connections", f"{stats.connections_opened}/{stats.connection_attempts}")
    table.add_row("reconnects scheduled", str(stats.reconnects_scheduled))
    table.add_row("frames", str(stats.frames_received))
    table.add_row("decode errors", str(stats.decode_errors))
    table.add_row("transport errors", str(stats.transport_errors))
    table.add_row("server errors", str(stats.server_errors))
    table.add_row("new candles", str(stats.new_candles))
    table.add_row("candle updates", str(stats.candle_updates))
    table.add_row("buffered candles", str(len(history.candles())))
    if stats.last_candle_timestamp is not None:
        table.add_row("last candle", format_epoch_ms(stats.last_candle_timestamp))
    current = history.current()
    if current is not None:
        table.add_row("last close", f"{current.close:.4f}")
    return table


if __name__ == "__main__":
    app()
