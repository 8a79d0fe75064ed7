"""Cancelable timers backed by the asyncio loop or by a virtual clock."""
from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, Protocol

TimerCallback = Callable[[], None]


class TimerHandle(Protocol):
    """Handle returned by a scheduler; cancelling it prevents further firings."""

    @property
    def cancelled(self) -> bool:
        ...

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Source of one-shot and repeating timers."""

    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle:
        ...

    def call_every(self, interval: float, callback: TimerCallback) -> TimerHandle:
        ...


class _AsyncioTimer:
    """One-shot or repeating timer on an asyncio event loop."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        delay: float,
        callback: TimerCallback,
        *,
        repeat: bool,
    ) -> None:
        self._loop = loop
        self._delay = delay
        self._callback = callback
        self._repeat = repeat
        self._cancelled = False
        self._handle: asyncio.TimerHandle | None = loop.call_later(delay, self._fire)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        if self._cancelled:
            return
        if self._repeat:
            # re-arm first so a cancel() from inside the callback sticks
            self._handle = self._loop.call_later(self._delay, self._fire)
        else:
            self._cancelled = True
        self._callback()


class AsyncioScheduler:
    """Scheduler using ``loop.call_later``; resolves the running loop lazily."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle:
        return _AsyncioTimer(self._resolve_loop(), delay, callback, repeat=False)

    def call_every(self, interval: float, callback: TimerCallback) -> TimerHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        return _AsyncioTimer(self._resolve_loop(), interval, callback, repeat=True)


class _ManualTimer:
    def __init__(self, due: float, interval: float | None, callback: TimerCallback) -> None:
        self.due = due
        self.interval = interval
        self.callback = callback
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class ManualScheduler:
    """Virtual clock scheduler; timers fire only when ``advance`` is called."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)
        self._queue: list[tuple[float, int, _ManualTimer]] = []
        self._sequence = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle:
        return self._push(_ManualTimer(self._now + max(delay, 0.0), None, callback))

    def call_every(self, interval: float, callback: TimerCallback) -> TimerHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        return self._push(_ManualTimer(self._now + interval, interval, callback))

    def pending(self) -> int:
        """Number of live timers still waiting to fire."""

        return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due timers in order. Returns the firing count."""

        if seconds < 0:
            raise ValueError("cannot move the clock backwards")
        deadline = self._now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= deadline:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = due
            if timer.interval is not None:
                timer.due = due + timer.interval
                self._push(timer)
            else:
                timer.cancel()
            timer.callback()
            fired += 1
        self._now = deadline
        return fired

    def _push(self, timer: _ManualTimer) -> _ManualTimer:
        heapq.heappush(self._queue, (timer.due, next(self._sequence), timer))
        return timer
