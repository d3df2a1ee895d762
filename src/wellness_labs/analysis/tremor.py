"""
Tremor Frequency Analysis
=========================

Estimate tremor amplitude and dominant oscillation frequency from a rolling
window of wrist y-positions.

The frequency search is a direct DFT over the achievable harmonics of the
window rather than an FFT: windows are small (<= 300 samples) and samples
are not uniformly spaced in time, so the effective sample rate is derived
from the window span.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np

from .buffer import TimedSample, sample_arrays


class TremorLevel(Enum):
    """Tremor activity level by dominant frequency."""

    NONE = "none"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


@dataclass(frozen=True)
class TremorMetrics:
    """Tremor metrics for one analysis window."""

    amplitude_normalized: float  # std of y / frame height
    dominant_frequency_hz: float

    @property
    def amplitude_percent(self) -> float:
        return self.amplitude_normalized * 100.0

    @property
    def level(self) -> TremorLevel:
        return classify_tremor(self.dominant_frequency_hz)

    def to_dict(self) -> dict[str, float | str]:
        """Convert to dictionary."""
        return {
            "amplitude_normalized": self.amplitude_normalized,
            "dominant_frequency_hz": self.dominant_frequency_hz,
            "level": self.level.value,
        }


EMPTY_TREMOR = TremorMetrics(amplitude_normalized=0.0, dominant_frequency_hz=0.0)


class FrequencyAnalyzer:
    """Dominant-frequency and amplitude analysis of a sample window."""

    # Pathological tremor band
    PATHOLOGICAL_RANGE = (4.0, 12.0)

    def __init__(self, reference_scale: float = 1.0, min_samples: int = 6):
        """
        Initialize analyzer.

        Args:
            reference_scale: Normalization for the amplitude (frame height in px)
            min_samples: Windows shorter than this give an empty result
        """
        self.reference_scale = reference_scale
        self.min_samples = min_samples

    def analyze(self, samples: Sequence[TimedSample]) -> TremorMetrics:
        """
        Analyze a window of samples.

        Args:
            samples: Samples in acquisition order

        Returns:
            TremorMetrics
        """
        n = len(samples)
        if n < self.min_samples or self.reference_scale <= 0:
            return EMPTY_TREMOR

        t, y = sample_arrays(tuple(samples))
        std = float(np.std(y))
        amplitude = std / self.reference_scale

        duration_ms = t[-1] - t[0]
        if duration_ms <= 0 or std == 0:
            return TremorMetrics(amplitude_normalized=amplitude, dominant_frequency_hz=0.0)

        fs = (n - 1) / (duration_ms / 1000.0)
        k = dominant_harmonic(y)
        frequency = k * fs / n if k > 0 else 0.0

        return TremorMetrics(amplitude_normalized=amplitude, dominant_frequency_hz=float(frequency))

    def is_pathological_band(self, frequency: float) -> bool:
        low, high = self.PATHOLOGICAL_RANGE
        return low <= frequency <= high


def harmonic_magnitudes(y: np.ndarray) -> np.ndarray:
    """
    DFT magnitudes at harmonics ``k = 1 .. floor(n/2)``.

    Element ``i`` holds the magnitude of harmonic ``i + 1``.
    """
    n = len(y)
    k = np.arange(1, n // 2 + 1, dtype=np.float64)[:, None]
    j = np.arange(n, dtype=np.float64)[None, :]
    angle = -2.0 * np.pi * k * j / n
    re = np.cos(angle) @ y
    im = np.sin(angle) @ y
    return np.sqrt(re**2 + im**2)


def dominant_harmonic(y: np.ndarray) -> int:
    """Harmonic index with the largest magnitude; the lowest wins ties, 0 if none."""
    mags = harmonic_magnitudes(np.asarray(y, dtype=np.float64))
    if mags.size == 0:
        return 0
    best = int(np.argmax(mags))
    if not mags[best] > 0:
        return 0
    return best + 1


def classify_tremor(frequency: float) -> TremorLevel:
    """Classify tremor activity from its dominant frequency."""
    if frequency == 0:
        return TremorLevel.NONE
    if frequency < 4:
        return TremorLevel.LOW
    if frequency < 8:
        return TremorLevel.MODERATE
    return TremorLevel.HIGH


def analyze_tremor(samples: Sequence[TimedSample], reference_scale: float) -> TremorMetrics:
    """
    Convenience function to analyze a tremor window.

    Args:
        samples: Timestamped y-positions (px)
        reference_scale: Frame height (px)

    Returns:
        TremorMetrics
    """
    return FrequencyAnalyzer(reference_scale).analyze(samples)
