"""Transport and timer primitives."""

from candle_feed.network.timers import AsyncioScheduler, ManualScheduler, Scheduler, TimerHandle
from candle_feed.network.transport import Transport, TransportFactory, TransportListener, WebSocketTransport

__all__ = [
    "AsyncioScheduler",
    "ManualScheduler",
    "Scheduler",
    "TimerHandle",
    "Transport",
    "TransportFactory",
    "TransportListener",
    "WebSocketTransport",
]
