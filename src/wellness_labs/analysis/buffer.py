"""Fixed-capacity rolling buffers of timestamped samples."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Generic, Iterator, TypeVar

import numpy as np

T = TypeVar("T")


@dataclass(frozen=True)
class TimedSample:
    """One measurement in a rolling window."""

    t: float  # ms
    y: float


class RollingBuffer(Generic[T]):
    """
    Ordered FIFO window holding at most ``capacity`` items.

    Pushing past capacity evicts the oldest items. ``snapshot()`` hands
    analyzers an immutable copy so later pushes never affect a computation.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._items: deque[T] = deque(maxlen=capacity)

    def push(self, item: T) -> None:
        self._items.append(item)

    def snapshot(self) -> tuple[T, ...]:
        return tuple(self._items)

    def clear(self) -> None:
        self._items.clear()

    @property
    def last(self) -> T | None:
        return self._items[-1] if self._items else None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"RollingBuffer(capacity={self.capacity}, size={len(self)})"


def sample_arrays(samples: tuple[TimedSample, ...] | list[TimedSample]) -> tuple[np.ndarray, np.ndarray]:
    """Split samples into ``(t, y)`` float arrays."""
    if not samples:
        return np.empty(0), np.empty(0)
    t = np.fromiter((s.t for s in samples), dtype=np.float64, count=len(samples))
    y = np.fromiter((s.y for s in samples), dtype=np.float64, count=len(samples))
    return t, y
