"""Fixed-delay reconnect scheduling and the application keepalive timer."""
from __future__ import annotations

import logging
from typing import Callable

from candle_feed.network.timers import Scheduler, TimerHandle

LOGGER = logging.getLogger(__name__)


class ReconnectPolicy:
    """Schedule reconnect attempts with a fixed delay, one at a time.

    The ``reconnecting`` guard is raised when a timer is scheduled and lowered
    only by ``begin_attempt``, so overlapping close signals schedule a single
    reconnect. There is no backoff and no retry cap.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        interval: float,
        on_reconnect: Callable[[], None],
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._scheduler = scheduler
        self._interval = interval
        self._on_reconnect = on_reconnect
        self._logger = logger or LOGGER
        self._reconnecting = False
        self._timer: TimerHandle | None = None

    @property
    def reconnecting(self) -> bool:
        return self._reconnecting

    def schedule(self) -> bool:
        """Arm the reconnect timer unless one is already pending."""

        if self._reconnecting:
            self._logger.debug("Reconnect already scheduled")
            return False
        self._reconnecting = True
        self._logger.info("Scheduling reconnect in %dms", round(self._interval * 1000))
        self._timer = self._scheduler.call_later(self._interval, self._fire)
        return True

    def begin_attempt(self) -> None:
        """Lower the guard as a new connection attempt starts."""

        self._reconnecting = False
        self._timer = None

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._reconnecting = False

    def _fire(self) -> None:
        self._timer = None
        self._logger.info("Attempting to reconnect...")
        self._on_reconnect()


class KeepAlive:
    """Periodic ping timer that only exists while a transport is open."""

    def __init__(self, scheduler: Scheduler, interval: float, send_ping: Callable[[], None]) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._scheduler = scheduler
        self._interval = interval
        self._send_ping = send_ping
        self._timer: TimerHandle | None = None

    @property
    def active(self) -> bool:
        return self._timer is not None

    def start(self) -> None:
        """(Re)create the timer, discarding any previous one."""

        self.cancel()
        self._timer = self._scheduler.call_every(self._interval, self._send_ping)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


__all__ = ["KeepAlive", "ReconnectPolicy"]
