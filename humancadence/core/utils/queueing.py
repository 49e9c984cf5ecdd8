# humancadence/core/utils/queueing.py
from __future__ import annotations
from queue import Queue, Full, Empty
from typing import Iterator

def safe_put(q: Queue, item) -> None:
    """
    Put without blocking; if the queue is full, drop the oldest item and retry.
    Keeps the OS hook thread from ever stalling on a slow consumer.
    """
    try:
        q.put_nowait(item)
    except Full:
        try:
            q.get_nowait()  # drop oldest
        except Empty:
            pass
        q.put_nowait(item)

def drain(q: Queue, limit: int | None = None) -> Iterator:
    """Yield queued items without blocking, at most `limit` of them."""
    n = 0
    while limit is None or n < limit:
        try:
            item = q.get_nowait()
        except Empty:
            return
        n += 1
        yield item
