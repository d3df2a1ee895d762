"""
Finger Tap Detection
====================

Turn per-frame thumb/index fingertip distances into discrete tap events with
a refractory period, and keep the inter-tap interval history used for
coordination scoring.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from .buffer import RollingBuffer

logger = logging.getLogger(__name__)

# MediaPipe hand landmark indices
WRIST = 0
THUMB_TIP = 4
INDEX_TIP = 8


@dataclass(frozen=True)
class TapEvent:
    """A detected tap."""

    timestamp: float  # ms
    interval_since_last_ms: float


def fingertip_distance(
    landmarks: Sequence[tuple[float, float]],
    width: float,
    height: float,
) -> float | None:
    """
    Pixel distance between thumb tip and index fingertip.

    Args:
        landmarks: Normalized (x, y) hand landmarks (21 points)
        width: Frame width in pixels
        height: Frame height in pixels

    Returns:
        Distance in pixels, or None if the fingertips are missing
    """
    if len(landmarks) <= INDEX_TIP:
        return None
    x8, y8 = landmarks[INDEX_TIP][0] * width, landmarks[INDEX_TIP][1] * height
    x4, y4 = landmarks[THUMB_TIP][0] * width, landmarks[THUMB_TIP][1] * height
    return math.hypot(x8 - x4, y8 - y4)


def tap_threshold_px(width: float, height: float, fraction: float = 0.05) -> float:
    """Tap threshold as a fraction of the smaller frame dimension."""
    return min(width, height) * fraction


class TapDetector:
    """
    Debounced tap detector.

    A tap fires when the measured distance drops below the threshold and more
    than ``refractory_ms`` has passed since the previous tap.
    """

    def __init__(self, refractory_ms: float = 200.0, interval_capacity: int = 600):
        self.refractory_ms = refractory_ms
        self.intervals: RollingBuffer[float] = RollingBuffer(interval_capacity)
        self.count = 0
        self.last_event_time: float | None = None

    def detect(self, measurement: float, threshold_px: float, now: float) -> TapEvent | None:
        """
        Feed one measurement.

        Args:
            measurement: Fingertip distance in pixels
            threshold_px: Distance below which the fingers are touching
            now: Timestamp in ms

        Returns:
            TapEvent if a tap fired, otherwise None (state unchanged)
        """
        if not measurement < threshold_px:
            return None
        if self.last_event_time is not None and now - self.last_event_time <= self.refractory_ms:
            return None

        interval = 0.0 if self.last_event_time is None else now - self.last_event_time
        self.last_event_time = now
        self.intervals.push(interval)
        self.count += 1
        logger.debug("Tap %d at %.0f ms (interval %.0f ms)", self.count, now, interval)
        return TapEvent(timestamp=now, interval_since_last_ms=interval)

    def reset(self) -> None:
        self.intervals.clear()
        self.count = 0
        self.last_event_time = None


def tap_rate(count: int, duration_s: float) -> float:
    """Taps per second (0 before any time has elapsed)."""
    return count / duration_s if duration_s > 0 else 0.0
