"""Reference-counted process-wide resources (e.g. a hand-landmark model)."""

from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar

from .exceptions import BackendInitError, CaptureError, StateError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SharedHandle(Generic[T]):
    """
    Lazily created resource shared by lab sessions.

    The factory runs on the first ``acquire()``; the closer runs when the last
    holder calls ``release()``. Holders pass the returned object explicitly to
    whatever needs it.
    """

    def __init__(
        self,
        factory: Callable[[], T],
        closer: Callable[[T], None] | None = None,
        name: str = "resource",
    ):
        self._factory = factory
        self._closer = closer
        self.name = name
        self._value: T | None = None
        self._refs = 0

    @property
    def refcount(self) -> int:
        return self._refs

    @property
    def loaded(self) -> bool:
        return self._value is not None

    def acquire(self) -> T:
        if self._value is None:
            try:
                self._value = self._factory()
            except CaptureError:
                raise
            except Exception as e:
                logger.error("Failed to initialise %s: %s", self.name, e)
                raise BackendInitError(details={"resource": self.name, "reason": str(e)}) from e
            logger.debug("Initialised %s", self.name)
        self._refs += 1
        return self._value

    def release(self) -> None:
        if self._refs == 0:
            raise StateError(f"{self.name} released more times than acquired")
        self._refs -= 1
        if self._refs == 0 and self._value is not None:
            value, self._value = self._value, None
            if self._closer is not None:
                self._closer(value)
            logger.debug("Closed %s", self.name)
