# humancadence/core/utils/ring_buffer.py
from __future__ import annotations
from typing import Callable, Iterator, List
import numpy as np

class RingBuffer:
    """
    Fixed-capacity float window backed by a preallocated numpy array.
    push() is O(1) and overwrites the oldest value once full; every read
    (iteration, to_array, to_list) is oldest-first.
    """
    __slots__ = ("capacity", "_data", "_head", "_count")

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = int(capacity)
        self._data = np.zeros(self.capacity, dtype=np.float64)
        self._head = 0   # next write slot
        self._count = 0

    def push(self, value: float) -> None:
        self._data[self._head] = value
        self._head = (self._head + 1) % self.capacity
        if self._count < self.capacity:
            self._count += 1

    def _start(self) -> int:
        return 0 if self._count < self.capacity else self._head

    def __iter__(self) -> Iterator[float]:
        start = self._start()
        for i in range(self._count):
            yield float(self._data[(start + i) % self.capacity])

    def for_each(self, fn: Callable[[float], None]) -> None:
        for v in self:
            fn(v)

    def to_array(self) -> np.ndarray:
        """Snapshot copy, oldest first."""
        if self._count < self.capacity:
            return self._data[:self._count].copy()
        return np.roll(self._data, -self._head)

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        # the window is always materialised fresh, so copy=False cannot be honoured
        if copy is False:
            raise ValueError("RingBuffer has no contiguous view; a copy is required")
        arr = self.to_array()
        return arr if dtype is None else arr.astype(dtype, copy=False)

    def to_list(self) -> List[float]:
        return self.to_array().tolist()

    def clear(self) -> None:
        self._head = 0
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return f"RingBuffer(capacity={self.capacity}, values={self.to_list()!r})"
