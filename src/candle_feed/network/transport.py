"""Callback-driven WebSocket transport used by the feed session."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Protocol

import websockets
from websockets.exceptions import ConnectionClosed

LOGGER = logging.getLogger(__name__)


class TransportListener(Protocol):
    """Receiver of transport lifecycle events, invoked on the event loop thread."""

    def on_open(self) -> None:
        ...

    def on_message(self, payload: str | bytes) -> None:
        ...

    def on_error(self, error: BaseException) -> None:
        ...

    def on_close(self, code: int | None, reason: str) -> None:
        ...


class Transport(Protocol):
    """Single connection attempt; emits ``on_close`` exactly once when it ends."""

    @property
    def is_open(self) -> bool:
        ...

    def send(self, payload: str) -> bool:
        ...

    def close(self) -> None:
        ...

    def detach(self) -> None:
        ...


TransportFactory = Callable[[str, TransportListener], Transport]


class WebSocketTransport:
    """Drive one ``websockets`` client connection and report events to a listener.

    The connection is opened by a background task created at construction, so
    the constructor must run inside an event loop. Outbound frames go through a
    queue drained by a single writer task, preserving ``send`` order.
    Application-level keepalive is handled by the session, so the library's own
    ping frames are disabled.
    """

    def __init__(
        self,
        url: str,
        listener: TransportListener,
        *,
        open_timeout: float = 10.0,
        close_timeout: float = 5.0,
        max_size: int = 10 * 1024 * 1024,
        logger: logging.Logger | None = None,
    ) -> None:
        self._url = url
        self._listener: TransportListener | None = listener
        self._open_timeout = open_timeout
        self._close_timeout = close_timeout
        self._max_size = max_size
        self._logger = logger or LOGGER
        self._ws: Any = None
        self._closing = False
        self._outbox: asyncio.Queue[str] = asyncio.Queue()
        self._close_task: asyncio.Task | None = None
        self._task = asyncio.get_running_loop().create_task(self._run(), name=f"ws-transport:{url}")
        self._task.add_done_callback(self._on_task_done)

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._closing

    def send(self, payload: str) -> bool:
        """Queue a text frame; returns False when the connection is not open."""

        if not self.is_open:
            self._logger.debug("Dropping outbound frame, transport not open: %s", payload[:200])
            return False
        self._outbox.put_nowait(payload)
        return True

    def close(self) -> None:
        """Request the connection to close; ``on_close`` follows asynchronously."""

        if self._closing:
            return
        self._closing = True
        if self._ws is not None:
            self._close_task = asyncio.ensure_future(self._ws.close())
        elif not self._task.done():
            self._task.cancel()

    def detach(self) -> None:
        """Stop delivering events to the listener."""

        self._listener = None

    async def _run(self) -> None:
        writer: asyncio.Task | None = None
        try:
            async with websockets.connect(
                self._url,
                ping_interval=None,
                open_timeout=self._open_timeout,
                close_timeout=self._close_timeout,
                max_size=self._max_size,
            ) as ws:
                self._ws = ws
                if self._closing:
                    return
                writer = asyncio.create_task(self._drain_outbox(ws))
                self._emit_open()
                async for payload in ws:
                    self._emit_message(payload)
        except asyncio.CancelledError:
            raise
        except Exception as error:
            self._emit_error(error)
        finally:
            if writer is not None:
                writer.cancel()
            code: int | None = None
            reason = ""
            if self._ws is not None:
                code = self._ws.close_code
                reason = self._ws.close_reason or ""
            self._ws = None
            self._closing = True
            self._emit_close(code, reason)

    def _on_task_done(self, task: asyncio.Task) -> None:
        # a task cancelled before its first step never reaches the finally in _run
        self._ws = None
        self._closing = True
        self._emit_close(None, "")

    async def _drain_outbox(self, ws: Any) -> None:
        while True:
            payload = await self._outbox.get()
            try:
                await ws.send(payload)
            except ConnectionClosed:
                return
            except Exception as error:
                self._emit_error(error)
                return

    def _emit_open(self) -> None:
        if self._listener is not None:
            self._listener.on_open()

    def _emit_message(self, payload: str | bytes) -> None:
        if self._listener is not None:
            self._listener.on_message(payload)

    def _emit_error(self, error: BaseException) -> None:
        if self._listener is not None:
            self._listener.on_error(error)

    def _emit_close(self, code: int | None, reason: str) -> None:
        listener = self._listener
        self._listener = None
        if listener is not None:
            listener.on_close(code, reason)


__all__ = ["Transport", "TransportFactory", "TransportListener", "WebSocketTransport"]
