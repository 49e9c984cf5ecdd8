# humancadence/app/controller/scheduling.py
from __future__ import annotations
import asyncio
import time
from typing import Callable, Optional, Tuple
import structlog

log = structlog.get_logger()

FALLBACK_DELAY_S = 0.1

class Scheduler:
    """
    Decides when a requested recomputation actually runs. Every scheduler
    runs its callback on the thread that delivers events; none of them
    starts a thread of its own.
    """
    def request(self, fn: Callable[[], None]) -> None:
        raise NotImplementedError

    def cancel(self) -> None:
        pass

    def run_pending(self, now: Optional[float] = None) -> bool:
        return False

    @property
    def pending(self) -> bool:
        return False

class ManualScheduler(Scheduler):
    """Never runs anything on its own; the caller drives analyze()."""
    def request(self, fn: Callable[[], None]) -> None:
        return None

class DeferredScheduler(Scheduler):
    """
    Keeps at most one pending low-priority run. A new request replaces the
    pending one, so a burst of keystrokes costs a single recomputation.

    With an asyncio loop the run goes through loop.call_soon, after the
    loop's already-queued work; requests must come from the loop thread.
    Without one there is no idle primitive to lean on: the run becomes due
    fallback_delay_s after the latest request and fires from run_pending(),
    which the event-pumping thread calls after each pump.
    """
    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        fallback_delay_s: float = FALLBACK_DELAY_S,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.loop = loop
        self.fallback_delay_s = fallback_delay_s
        self.clock = clock
        self._handle: Optional[asyncio.Handle] = None
        self._due: Optional[Tuple[float, Callable[[], None]]] = None
        if loop is None:
            log.debug("scheduler.polled_fallback", delay_s=fallback_delay_s)

    @property
    def pending(self) -> bool:
        return self._handle is not None or self._due is not None

    def request(self, fn: Callable[[], None]) -> None:
        self.cancel()
        if self.loop is not None:
            self._handle = self.loop.call_soon(self._fire, fn)
        else:
            self._due = (self.clock() + self.fallback_delay_s, fn)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._due = None

    def run_pending(self, now: Optional[float] = None) -> bool:
        """Fire the polled run if its delay has elapsed. True if it ran."""
        if self._due is None:
            return False
        due_at, fn = self._due
        if (self.clock() if now is None else now) < due_at:
            return False
        self._due = None
        fn()
        return True

    def _fire(self, fn: Callable[[], None]) -> None:
        self._handle = None
        fn()
