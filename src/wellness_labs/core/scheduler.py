"""
Cooperative Scheduling
======================

A single-threaded, virtual-clock scheduler for the lab timers (trial
timeouts, inter-trial delays, recording tickers) and the per-frame loop.

Nothing runs concurrently: callbacks fire one at a time, in due-time order,
when the owner advances the clock. Time is measured in milliseconds.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(order=True)
class Timer:
    """A pending callback."""

    due: float
    seq: int
    callback: Callable[..., Any] = field(compare=False)
    args: tuple = field(default=(), compare=False)
    interval: float | None = field(default=None, compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        """Prevent this timer from firing."""
        self.cancelled = True


class Scheduler:
    """
    Virtual-clock timer queue.

    Usage:
        scheduler = Scheduler()
        scheduler.call_later(400, advance_trial)
        scheduler.advance(1000)  # fires advance_trial at t=400
    """

    def __init__(self, start_ms: float = 0.0):
        self._now = float(start_ms)
        self._queue: list[Timer] = []
        self._counter = itertools.count()

    @property
    def now(self) -> float:
        """Current virtual time in milliseconds."""
        return self._now

    @property
    def pending(self) -> int:
        """Number of live timers."""
        return sum(1 for t in self._queue if not t.cancelled)

    def call_later(self, delay_ms: float, callback: Callable[..., Any], *args: Any) -> Timer:
        """Schedule ``callback(*args)`` after ``delay_ms``."""
        timer = Timer(self._now + max(0.0, delay_ms), next(self._counter), callback, args)
        heapq.heappush(self._queue, timer)
        return timer

    def call_every(self, interval_ms: float, callback: Callable[..., Any], *args: Any) -> Timer:
        """Schedule ``callback(*args)`` every ``interval_ms`` until cancelled."""
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        timer = Timer(
            self._now + interval_ms, next(self._counter), callback, args, interval=interval_ms
        )
        heapq.heappush(self._queue, timer)
        return timer

    def cancel(self, timer: Timer | None) -> None:
        """Cancel a timer (``None`` is accepted and ignored)."""
        if timer is not None:
            timer.cancel()

    def advance(self, ms: float) -> int:
        """
        Move the clock forward, firing every timer that falls due.

        Args:
            ms: Milliseconds to advance

        Returns:
            Number of callbacks fired
        """
        target = self._now + max(0.0, ms)
        fired = 0
        while self._queue and self._queue[0].due <= target:
            timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = timer.due
            if timer.interval is not None:
                timer.due += timer.interval
                timer.seq = next(self._counter)
                heapq.heappush(self._queue, timer)
            timer.callback(*timer.args)
            fired += 1
        self._now = target
        return fired

    def run_until_idle(self, limit_ms: float = 3_600_000.0) -> int:
        """Fire timers until none are pending or ``limit_ms`` elapses."""
        deadline = self._now + limit_ms
        fired = 0
        while True:
            live = [t for t in self._queue if not t.cancelled]
            if not live:
                break
            due = min(t.due for t in live)
            if due > deadline:
                self._now = deadline
                break
            fired += self.advance(due - self._now)
        return fired


class TimerSlot:
    """
    Holds at most one live timer for a role (trial timeout, recording ticker).

    Starting a new timer cancels the previous one first.
    """

    def __init__(self, scheduler: Scheduler, name: str = "timer"):
        self.scheduler = scheduler
        self.name = name
        self._timer: Timer | None = None

    @property
    def active(self) -> bool:
        return self._timer is not None and not self._timer.cancelled

    def start(self, delay_ms: float, callback: Callable[..., Any], *args: Any) -> Timer:
        self.cancel()
        self._timer = self.scheduler.call_later(delay_ms, self._fire, callback, args)
        return self._timer

    def start_every(self, interval_ms: float, callback: Callable[..., Any], *args: Any) -> Timer:
        self.cancel()
        self._timer = self.scheduler.call_every(interval_ms, callback, *args)
        return self._timer

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, callback: Callable[..., Any], args: tuple) -> None:
        self._timer = None
        callback(*args)


class FrameLoop:
    """
    Per-frame processing loop.

    Calls ``step(now_ms)`` every ``period_ms`` while active. A failing frame is
    logged and reported through ``status`` until the next good frame; the
    loop keeps running.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        step: Callable[[float], Any],
        period_ms: float = 1000.0 / 30.0,
        name: str = "frame-loop",
    ):
        self.scheduler = scheduler
        self.step = step
        self.period_ms = period_ms
        self.name = name
        self.active = False
        self.status: str | None = None
        self.frames = 0
        self.errors = 0
        self._slot = TimerSlot(scheduler, name)

    def start(self) -> None:
        if self.active:
            return
        self.active = True
        self._slot.start_every(self.period_ms, self._tick)

    def stop(self) -> None:
        self.active = False
        self._slot.cancel()

    def _tick(self) -> None:
        if not self.active:
            return
        try:
            self.step(self.scheduler.now)
        except Exception as e:  # a single bad frame must not halt the session
            self.errors += 1
            self.status = f"Frame processing error: {e}"
            logger.warning("%s: frame at %.0f ms failed: %s", self.name, self.scheduler.now, e)
        else:
            self.frames += 1
            self.status = None
