"""Lab sessions: capture source + shared model handle + frame loop."""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

from ..core.exceptions import CaptureError
from ..core.resources import SharedHandle
from ..core.scheduler import FrameLoop, Scheduler

logger = logging.getLogger(__name__)


class SteppableLab(Protocol):
    recording: bool
    status: str

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def step(self, frame: Any) -> Any: ...


FrameSource = Callable[[Any, float], Any]


class LabSession:
    """
    Run a lab against a capture source on the cooperative scheduler.

    ``source(handle, now_ms)`` returns the next frame (or None when no frame
    is ready). The handle comes from ``SharedHandle.acquire()`` and is passed
    explicitly on every call.
    """

    def __init__(
        self,
        lab: SteppableLab,
        source: FrameSource,
        scheduler: Scheduler,
        handle: SharedHandle | None = None,
        period_ms: float = 1000.0 / 30.0,
    ):
        self.lab = lab
        self.source = source
        self.scheduler = scheduler
        self.handle = handle
        self.loop = FrameLoop(scheduler, self._tick, period_ms, name=type(lab).__name__)
        self._status = "Idle"
        self._resource: Any = None
        self._opened = False

    @property
    def opened(self) -> bool:
        return self._opened

    @property
    def status(self) -> str:
        """Frame errors take precedence until the next good frame."""
        return self.loop.status or self._status

    @status.setter
    def status(self, value: str) -> None:
        self._status = value

    def open(self) -> bool:
        """
        Acquire capture resources.

        Capture failures become a status message; the lab state is untouched.
        """
        if self._opened:
            return True
        try:
            self._resource = self.handle.acquire() if self.handle is not None else None
        except CaptureError as e:
            self.status = e.status
            logger.warning("Capture unavailable: %s", e.message)
            return False
        self._opened = True
        self.status = "Ready. Start the test to begin measurement."
        return True

    def start(self) -> bool:
        if not self._opened and not self.open():
            return False
        self.lab.start()
        self.loop.start()
        self.status = self.lab.status
        return True

    def stop(self) -> None:
        self.loop.stop()
        self.lab.stop()
        self.status = self.lab.status

    def close(self) -> None:
        """Tear down: cancel timers and release the shared handle."""
        self.stop()
        if self._opened and self.handle is not None:
            self.handle.release()
        self._resource = None
        self._opened = False

    def _tick(self, now: float) -> None:
        if not self.lab.recording:
            self.loop.stop()
            self.status = self.lab.status
            return
        frame = self.source(self._resource, now)
        if frame is not None:
            self.lab.step(frame)
        self.status = self.lab.status
