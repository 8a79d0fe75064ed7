"""Subscription negotiation and historical bootstrap requests."""
from __future__ import annotations

import logging
from typing import Callable

from candle_feed.config import DEFAULT_HISTORY_LIMIT
from candle_feed.protocol import HistoryRequest, Message, Subscribe, SubscriptionSuccess, Unsubscribe

LOGGER = logging.getLogger(__name__)

SendFn = Callable[[Message], bool]


class SubscriptionController:
    """Track the desired (symbol, timeframe) pair and its confirmation state.

    ``send`` delivers a message on the current transport and returns False when
    no open transport is available.
    """

    def __init__(
        self,
        *,
        symbol: str,
        timeframe: str,
        send: SendFn,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        logger: logging.Logger | None = None,
    ) -> None:
        if history_limit < 1:
            raise ValueError("history_limit must be positive")
        self._symbol = symbol
        self._timeframe = timeframe
        self._send = send
        self._history_limit = history_limit
        self._logger = logger or LOGGER
        self._confirmed = False

    @property
    def symbol(self) -> str:
        return self._symbol

    @property
    def timeframe(self) -> str:
        return self._timeframe

    @property
    def confirmed(self) -> bool:
        return self._confirmed

    def on_open(self) -> bool:
        """Issue the subscribe request for a freshly opened transport."""

        self._confirmed = False
        self._logger.info("Subscribing to %s %s data", self._symbol, self._timeframe)
        return self._send(Subscribe(symbol=self._symbol, timeframe=self._timeframe))

    def on_subscription_success(self, message: SubscriptionSuccess) -> bool:
        """Confirm the subscription and request history; returns True if requested."""

        if not message.matches(self._symbol, self._timeframe):
            self._logger.warning(
                "Ignoring subscription confirmation for %s %s (expected %s %s)",
                message.symbol,
                message.timeframe,
                self._symbol,
                self._timeframe,
            )
            return False
        if self._confirmed:
            self._logger.info("Duplicate subscription confirmation for %s %s ignored", self._symbol, self._timeframe)
            return False

        self._confirmed = True
        self._logger.info("Successfully subscribed to %s %s", self._symbol, self._timeframe)
        return self.request_history()

    def request_history(self) -> bool:
        self._logger.info(
            "Requesting %d historical candles for %s %s", self._history_limit, self._symbol, self._timeframe
        )
        return self._send(
            HistoryRequest(symbol=self._symbol, timeframe=self._timeframe, limit=self._history_limit)
        )

    def unsubscribe(self) -> bool:
        if not self._confirmed:
            self._logger.warning("Cannot unsubscribe: no confirmed subscription")
            return False
        self._logger.info("Unsubscribing from %s %s", self._symbol, self._timeframe)
        return self._send(Unsubscribe())

    def on_unsubscribe_success(self) -> None:
        self._confirmed = False
        self._logger.info("Unsubscribed from %s %s", self._symbol, self._timeframe)

    def reset(self) -> None:
        """Drop the confirmation when the transport goes away."""

        self._confirmed = False


__all__ = ["SubscriptionController"]
