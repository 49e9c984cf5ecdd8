# humancadence/core/hooks/event_source.py
from __future__ import annotations
from abc import ABC, abstractmethod
from queue import Queue
from typing import Callable, Dict, List, Optional
import structlog

from .events import BaseEvent, EventType
from humancadence.core.utils.queueing import drain

log = structlog.get_logger()

Handler = Callable[[BaseEvent], None]

class EventSource(ABC):
    """Anything a session can subscribe to for KEY/PASTE/INPUT events."""

    @abstractmethod
    def subscribe(self, etype: EventType, handler: Handler) -> None:
        ...

    @abstractmethod
    def unsubscribe(self, etype: EventType, handler: Handler) -> None:
        ...


class LocalEventSource(EventSource):
    """
    In-process dispatcher. Handlers run synchronously, in subscription order,
    on the thread that calls emit(). A failing handler is logged and skipped.
    """
    def __init__(self):
        self._handlers: Dict[EventType, List[Handler]] = {et: [] for et in EventType}

    def subscribe(self, etype: EventType, handler: Handler) -> None:
        handlers = self._handlers[etype]
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, etype: EventType, handler: Handler) -> None:
        handlers = self._handlers[etype]
        if handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, etype: Optional[EventType] = None) -> int:
        if etype is not None:
            return len(self._handlers[etype])
        return sum(len(h) for h in self._handlers.values())

    def emit(self, ev: BaseEvent) -> None:
        # copy: a handler may unsubscribe while we iterate
        for handler in list(self._handlers[ev.etype]):
            try:
                handler(ev)
            except Exception as e:
                log.warning("event_source.handler.error", etype=ev.etype.name, err=str(e))


class QueuedEventSource(LocalEventSource):
    """
    Dispatcher fed by a producer thread through a bounded queue.
    Nothing is delivered until the owning thread calls pump().
    """
    def __init__(self, q: Optional[Queue] = None, maxsize: int = 5000):
        super().__init__()
        self.queue: Queue = q if q is not None else Queue(maxsize=maxsize)

    def pump(self, limit: Optional[int] = None) -> int:
        count = 0
        for ev in drain(self.queue, limit):
            self.emit(ev)
            count += 1
        return count
