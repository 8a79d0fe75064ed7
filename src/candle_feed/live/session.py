"""Long-lived feed session: connection lifecycle, subscription and candle routing."""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from candle_feed.config import SessionConfig
from candle_feed.live.consolidator import CandleConsolidator, CandleEvent
from candle_feed.live.consumer import CandleConsumer
from candle_feed.live.reconnect import KeepAlive, ReconnectPolicy
from candle_feed.live.subscription import SubscriptionController
from candle_feed.network import AsyncioScheduler, Scheduler, Transport, TransportFactory, WebSocketTransport
from candle_feed.protocol import (
    CandleUpdate,
    Connected,
    ErrorMessage,
    HistoricalData,
    Message,
    Ping,
    Pong,
    ProtocolError,
    SubscriptionSuccess,
    UnsubscribeSuccess,
    decode,
    encode,
)

LOGGER = logging.getLogger(__name__)


class TransportState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    STOPPED = "stopped"


class SessionStoppedError(RuntimeError):
    """Raised when a stopped session is started again."""


@dataclass(slots=True)
class SessionStats:
    """Counters describing the session since it was created."""

    connection_attempts: int = 0
    connections_opened: int = 0
    reconnects_scheduled: int = 0
    frames_received: int = 0
    decode_errors: int = 0
    transport_errors: int = 0
    server_errors: int = 0
    historical_batches: int = 0
    new_candles: int = 0
    candle_updates: int = 0
    pings_sent: int = 0
    pongs_sent: int = 0
    state: str = TransportState.IDLE.value
    last_candle_timestamp: int | None = None


class _TransportBinding:
    """Listener handed to one transport; tags its events with their origin."""

    def __init__(self, session: "FeedSession") -> None:
        self._session = session
        self.transport: Transport | None = None
        # set when the factory reports open before returning the transport
        self.open_pending = False

    def on_open(self) -> None:
        self._session._handle_open(self)

    def on_message(self, payload: str | bytes) -> None:
        self._session._handle_message(self, payload)

    def on_error(self, error: BaseException) -> None:
        self._session._handle_error(self, error)

    def on_close(self, code: int | None, reason: str) -> None:
        self._session._handle_close(self, code, reason)


class FeedSession:
    """Keep one (symbol, timeframe) subscription alive and deliver consolidated candles.

    All transport callbacks and timer firings are expected on a single event
    loop thread. Events from any transport other than the current one are
    ignored, as is everything after ``stop()``.
    """

    def __init__(
        self,
        config: SessionConfig | Mapping[str, Any],
        consumer: CandleConsumer,
        *,
        transport_factory: TransportFactory | None = None,
        scheduler: Scheduler | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if not isinstance(config, SessionConfig):
            config = SessionConfig.model_validate(config)
        self._config = config
        self._logger = logger or LOGGER
        self._transport_factory: TransportFactory = transport_factory or WebSocketTransport
        self._scheduler = scheduler or AsyncioScheduler()
        self._state = TransportState.IDLE
        self._binding: _TransportBinding | None = None
        self._stats = SessionStats()

        self._consolidator = CandleConsolidator(consumer, logger=self._logger)
        self._subscription = SubscriptionController(
            symbol=config.symbol,
            timeframe=config.timeframe,
            send=self._send,
            history_limit=config.history_limit,
            logger=self._logger,
        )
        self._reconnect = ReconnectPolicy(
            self._scheduler,
            config.reconnect_interval,
            self._on_reconnect_timer,
            logger=self._logger,
        )
        self._keepalive = KeepAlive(self._scheduler, config.ping_interval, self._send_ping)

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def state(self) -> TransportState:
        return self._state

    @property
    def stopped(self) -> bool:
        return self._state is TransportState.STOPPED

    @property
    def subscription_confirmed(self) -> bool:
        return self._subscription.confirmed

    @property
    def reconnecting(self) -> bool:
        return self._reconnect.reconnecting

    @property
    def last_candle_timestamp(self) -> int | None:
        return self._consolidator.last_timestamp

    def stats(self) -> SessionStats:
        """Return a snapshot of the session counters."""

        return dataclasses.replace(
            self._stats,
            state=self._state.value,
            last_candle_timestamp=self._consolidator.last_timestamp,
        )

    def start(self) -> None:
        """Open the first connection."""

        if self._state is TransportState.STOPPED:
            raise SessionStoppedError("a stopped session cannot be restarted")
        if self._state is not TransportState.IDLE:
            self._logger.warning("Feed session already started (state=%s)", self._state.value)
            return
        self._logger.info(
            "Starting feed session for %s %s", self._config.symbol, self._config.timeframe
        )
        self._connect()

    def stop(self) -> None:
        """Cancel timers, close the transport and make the session terminal."""

        if self._state is TransportState.STOPPED:
            return
        self._state = TransportState.STOPPED
        self._reconnect.cancel()
        self._keepalive.cancel()
        self._subscription.reset()

        binding, self._binding = self._binding, None
        if binding is not None and binding.transport is not None:
            self._logger.info("Closing WebSocket connection")
            binding.transport.detach()
            binding.transport.close()
        self._logger.info("Feed session stopped")

    def unsubscribe(self) -> bool:
        """Ask the server to stop streaming the subscribed pair."""

        if self._state is not TransportState.OPEN:
            self._logger.warning("Cannot unsubscribe: WebSocket not connected")
            return False
        return self._subscription.unsubscribe()

    def _connect(self) -> None:
        if self._binding is not None:
            self._logger.warning("Connection attempt skipped: previous transport has not closed")
            return

        is_reconnect = self._stats.connection_attempts > 0
        self._reconnect.begin_attempt()
        if is_reconnect and self._config.reset_candle_state_on_reconnect:
            self._consolidator.reset()

        self._state = TransportState.CONNECTING
        self._stats.connection_attempts += 1
        self._logger.info("Connecting to WebSocket server at %s", self._config.server_url)

        binding = _TransportBinding(self)
        self._binding = binding
        try:
            binding.transport = self._transport_factory(self._config.server_url, binding)
        except Exception as error:
            self._logger.error("WebSocket connection error: %s", error)
            if self._binding is binding:
                self._binding = None
                self._state = TransportState.CLOSED
                self._schedule_reconnect()
        else:
            if binding.open_pending and self._binding is binding:
                binding.open_pending = False
                self._handle_open(binding)

    def _schedule_reconnect(self) -> None:
        if self._reconnect.schedule():
            self._stats.reconnects_scheduled += 1

    def _on_reconnect_timer(self) -> None:
        if self._state is TransportState.STOPPED:
            return
        self._connect()

    def _send(self, message: Message) -> bool:
        transport = self._binding.transport if self._binding is not None else None
        if self._state is not TransportState.OPEN or transport is None:
            self._logger.warning("Cannot send %s: WebSocket not connected", message.type.value)
            return False
        return transport.send(encode(message))

    def _send_ping(self) -> None:
        if self._state is not TransportState.OPEN:
            return
        if self._send(Ping()):
            self._stats.pings_sent += 1

    def _handle_open(self, binding: _TransportBinding) -> None:
        if binding is not self._binding or self._state is TransportState.STOPPED:
            return
        if binding.transport is None:
            binding.open_pending = True
            return
        self._state = TransportState.OPEN
        self._stats.connections_opened += 1
        self._logger.info("WebSocket connection established")
        self._subscription.on_open()
        self._keepalive.start()

    def _handle_message(self, binding: _TransportBinding, payload: str | bytes) -> None:
        if binding is not self._binding or self._state is TransportState.STOPPED:
            return
        self._stats.frames_received += 1
        try:
            message = decode(payload)
        except ProtocolError as error:
            self._stats.decode_errors += 1
            self._logger.warning("Dropping frame: %s (%s)", error, error.preview)
            return

        try:
            self._dispatch(message)
        except Exception:
            self._logger.exception("Error processing %s message", message.type.value)

    def _dispatch(self, message: Message) -> None:
        if isinstance(message, CandleUpdate):
            self._on_candle(message)
        elif isinstance(message, HistoricalData):
            self._on_historical_data(message)
        elif isinstance(message, Ping):
            if message.require_response and self._send(Pong()):
                self._stats.pongs_sent += 1
        elif isinstance(message, SubscriptionSuccess):
            self._subscription.on_subscription_success(message)
        elif isinstance(message, UnsubscribeSuccess):
            self._subscription.on_unsubscribe_success()
        elif isinstance(message, ErrorMessage):
            self._stats.server_errors += 1
            self._logger.error("Server error: %s", message.error)
        elif isinstance(message, Connected):
            self._logger.info("Server greeting: %s", message.message)
        elif isinstance(message, Pong):
            self._logger.debug("Received pong")
        else:
            self._logger.warning("Ignoring unexpected %s message from server", message.type.value)

    def _on_historical_data(self, message: HistoricalData) -> None:
        if not message.matches(self._config.symbol, self._config.timeframe):
            self._logger.warning(
                "Ignoring historical data for %s %s", message.symbol, message.timeframe
            )
            return
        self._stats.historical_batches += 1
        self._logger.info("Received %d historical candles", len(message.candles))
        self._consolidator.ingest_history(message.candles)

    def _on_candle(self, message: CandleUpdate) -> None:
        if not message.matches(self._config.symbol, self._config.timeframe):
            self._logger.warning("Ignoring candle for %s %s", message.symbol, message.timeframe)
            return
        if self._consolidator.classify(message.candle) is CandleEvent.NEW:
            self._stats.new_candles += 1
        else:
            self._stats.candle_updates += 1
        self._consolidator.ingest(message.candle)

    def _handle_error(self, binding: _TransportBinding, error: BaseException) -> None:
        if binding is not self._binding or self._state is TransportState.STOPPED:
            return
        self._stats.transport_errors += 1
        self._logger.error("WebSocket error: %s", error)

    def _handle_close(self, binding: _TransportBinding, code: int | None, reason: str) -> None:
        if binding is not self._binding:
            return
        self._binding = None
        if binding.transport is not None:
            binding.transport.detach()
        self._keepalive.cancel()
        self._subscription.reset()
        if self._state is TransportState.STOPPED:
            return
        self._logger.warning("WebSocket connection closed: %s %s", code, reason)
        self._state = TransportState.CLOSED
        self._schedule_reconnect()


__all__ = ["FeedSession", "SessionStats", "SessionStoppedError", "TransportState"]
