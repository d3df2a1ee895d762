"""
Pitch Estimation
================

Fundamental frequency and loudness of raw audio frames via normalized
autocorrelation, with a spectral-peak fallback, plus pitch jitter over an
accepted-pitch history.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from scipy.fft import rfft
from scipy.signal import get_window

logger = logging.getLogger(__name__)

NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]


@dataclass(frozen=True)
class PitchEstimate:
    """Result of analyzing one audio frame."""

    fundamental_hz: float | None
    rms: float
    correlation: float = 0.0
    method: str | None = None  # "autocorrelation", "spectral" or None

    @property
    def voiced(self) -> bool:
        return self.fundamental_hz is not None


def frame_rms(frame: np.ndarray) -> float:
    """Root-mean-square amplitude of a frame."""
    if frame.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(frame * frame)))


class PitchEstimator:
    """Autocorrelation pitch detector with a spectral fallback."""

    def __init__(
        self,
        silence_rms: float = 0.001,
        min_correlation: float = 0.01,
        min_pitch_hz: float = 50.0,
        max_pitch_hz: float = 800.0,
        fallback_min_hz: float = 80.0,
        fallback_min_db: float = -86.27,
    ):
        """
        Initialize estimator.

        Args:
            silence_rms: Frames quieter than this have no pitch
            min_correlation: Minimum normalized autocorrelation for a voiced frame
            min_pitch_hz: Lowest candidate pitch (sets the longest lag)
            max_pitch_hz: Highest candidate pitch (sets the shortest lag)
            fallback_min_hz: Lower edge of the spectral fallback search
            fallback_min_db: Minimum peak level (dBFS) for the spectral fallback
        """
        self.silence_rms = silence_rms
        self.min_correlation = min_correlation
        self.min_pitch_hz = min_pitch_hz
        self.max_pitch_hz = max_pitch_hz
        self.fallback_min_hz = fallback_min_hz
        self.fallback_min_db = fallback_min_db

    def estimate(self, frame: Sequence[float] | np.ndarray, sample_rate: float) -> PitchEstimate:
        """
        Estimate pitch and loudness of one frame.

        Args:
            frame: Raw audio samples in [-1, 1]
            sample_rate: Sample rate in Hz

        Returns:
            PitchEstimate
        """
        buf = np.asarray(frame, dtype=np.float64).ravel()
        rms = frame_rms(buf)
        if rms < self.silence_rms or sample_rate <= 0:
            return PitchEstimate(fundamental_hz=None, rms=rms)

        f0, corr = self.autocorrelate(buf, sample_rate)
        if f0 is not None:
            logger.debug("Pitch %.1f Hz (corr %.3f, rms %.4f)", f0, corr, rms)
            return PitchEstimate(f0, rms, corr, "autocorrelation")

        f0 = self.spectral_peak(buf, sample_rate)
        if f0 is not None:
            logger.debug("Spectral fallback pitch %.1f Hz", f0)
            return PitchEstimate(f0, rms, corr, "spectral")

        return PitchEstimate(fundamental_hz=None, rms=rms, correlation=corr)

    def autocorrelate(self, buf: np.ndarray, sample_rate: float) -> tuple[float | None, float]:
        """
        Normalized autocorrelation pitch.

        Returns:
            (pitch in Hz or None, best correlation)
        """
        norm = buf - buf.mean()
        n = norm.size
        energy = float(np.dot(norm, norm))
        if energy <= 0:
            return None, 0.0

        min_lag = max(1, int(math.floor(sample_rate / self.max_pitch_hz)))
        max_lag = min(int(math.floor(sample_rate / self.min_pitch_hz)), n - 1)
        if max_lag < min_lag:
            return None, 0.0

        full = np.correlate(norm, norm, mode="full")[n - 1:]
        corr = full[min_lag:max_lag + 1] / energy
        best = int(np.argmax(corr))
        best_corr = float(corr[best])
        if best_corr < self.min_correlation:
            return None, max(best_corr, 0.0)
        return sample_rate / (min_lag + best), best_corr

    def spectral_peak(self, buf: np.ndarray, sample_rate: float) -> float | None:
        """
        Loudest spectral bin between ``fallback_min_hz`` and ``max_pitch_hz``.

        The frame is Blackman-windowed and levels are in dBFS; the peak must
        exceed ``fallback_min_db``.
        """
        n = buf.size
        if n < 2:
            return None
        window = get_window("blackman", n, fftbins=False)
        magnitude = np.abs(rfft(buf * window))[: n // 2] / n
        with np.errstate(divide="ignore"):
            levels = 20.0 * np.log10(magnitude)

        bin_count = n // 2
        min_bin = int(math.floor(self.fallback_min_hz * bin_count / (sample_rate / 2)))
        max_bin = min(int(math.floor(self.max_pitch_hz * bin_count / (sample_rate / 2))), bin_count)
        if max_bin <= min_bin:
            return None

        band = levels[min_bin:max_bin]
        best = int(np.argmax(band))
        if not band[best] > self.fallback_min_db:
            return None
        return (min_bin + best) * sample_rate / n

    def accept_pitch(self, f0: float | None) -> bool:
        """Plausibility band check applied before a pitch enters the history."""
        return f0 is not None and self.min_pitch_hz <= f0 <= self.max_pitch_hz


def consecutive_deltas(history: Sequence[float]) -> np.ndarray:
    values = np.asarray(history, dtype=np.float64)
    return np.abs(np.diff(values))


def relative_jitter(history: Sequence[float], min_history: int = 10) -> float | None:
    """
    Relative pitch jitter: std of consecutive deltas over their mean.

    Args:
        history: Accepted pitch values, oldest first
        min_history: The history must hold more than this many values

    Returns:
        Jitter ratio, 0 when the deltas average 0, or None for short histories
    """
    if len(history) <= min_history:
        return None
    deltas = consecutive_deltas(history)
    mean = float(np.mean(deltas))
    if mean == 0:
        return 0.0
    return float(np.std(deltas)) / mean


def hz_to_note(frequency: float) -> str:
    """Equal-tempered note name for a frequency (A4 = 440 Hz)."""
    n = round(12 * math.log2(frequency / 440.0))
    name = NOTE_NAMES[(n + 9 + 1200) % 12]
    octave = 4 + (n + 9) // 12
    return f"{name}{octave}"
