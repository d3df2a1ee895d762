"""
Scoring Engine
==============

Deterministic composite scores derived from already-computed lab signals.
Scores are clamped to [0, 100] and rounded half-up to integers unless noted.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

# Acklam's rational approximation of the inverse normal CDF
_A = (
    -39.6968302866538,
    220.946098424521,
    -275.928510446969,
    138.357751867269,
    -30.6647980661472,
    2.50662827745924,
)
_B = (
    -54.4760987982241,
    161.585836858041,
    -155.698979859887,
    66.8013118877197,
    -13.2806815528857,
)
_C = (
    -0.00778489400243029,
    -0.322396458041136,
    -2.40075827716184,
    -2.54973253934373,
    4.37466414146497,
    2.93816398269878,
)
_D = (
    0.00778469570904146,
    0.32246712907004,
    2.445134137143,
    3.75440866190742,
)
_P_LOW = 0.02425
_P_HIGH = 1 - _P_LOW


@dataclass(frozen=True)
class RiskLevel:
    """Qualitative rating attached to a score."""

    level: str
    description: str


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def coordination_score(intervals: Sequence[float]) -> int:
    """
    Tapping regularity score from inter-tap intervals.

    ``100 / (1 + cv)`` where ``cv`` is the coefficient of variation; 0 for one
    or no interval, or when the intervals average 0.
    """
    if len(intervals) <= 1:
        return 0
    values = np.asarray(intervals, dtype=np.float64)
    mean = float(np.mean(values))
    if mean == 0:
        return 0
    cv = float(np.std(values)) / mean
    return round_half_up(clamp(100.0 / (1.0 + cv), 0.0, 100.0))


def movement_quality(coordination: float, tremor_amplitude_normalized: float) -> int:
    """Blend coordination (70%) with a tremor-amplitude penalty (30%)."""
    tremor_penalty = min(100.0, tremor_amplitude_normalized * 300 * 100) / 100
    return round_half_up(clamp(coordination * 0.7 + (100 - tremor_penalty) * 0.3, 0.0, 100.0))


def inv_norm_cdf(p: float) -> float:
    """Inverse of the standard normal CDF for ``0 < p < 1``."""
    if not 0.0 < p < 1.0:
        raise ValueError(f"p must be in (0, 1), got {p}")
    c1, c2, c3, c4, c5, c6 = _C
    d1, d2, d3, d4 = _D
    if p < _P_LOW:
        q = math.sqrt(-2 * math.log(p))
        return (((((c1 * q + c2) * q + c3) * q + c4) * q + c5) * q + c6) / (
            (((d1 * q + d2) * q + d3) * q + d4) * q + 1
        )
    if p > _P_HIGH:
        q = math.sqrt(-2 * math.log(1 - p))
        return -(((((c1 * q + c2) * q + c3) * q + c4) * q + c5) * q + c6) / (
            (((d1 * q + d2) * q + d3) * q + d4) * q + 1
        )
    a1, a2, a3, a4, a5, a6 = _A
    b1, b2, b3, b4, b5 = _B
    q = p - 0.5
    r = q * q
    return (((((a1 * r + a2) * r + a3) * r + a4) * r + a5) * r + a6) * q / (
        ((((b1 * r + b2) * r + b3) * r + b4) * r + b5) * r + 1
    )


def d_prime(
    hits: int,
    misses: int,
    false_alarms: int,
    correct_rejections: int,
    total_trials: int,
) -> float:
    """
    Signal-detection sensitivity index.

    Rates default to 0.5 when their denominator is 0 and are clamped to
    ``[1/(2T), 1 - 1/(2T)]`` so the inverse CDF stays finite.

    Returns:
        d' rounded to 2 decimals
    """
    hit_rate = hits / (hits + misses) if hits + misses > 0 else 0.5
    fa_rate = false_alarms / (false_alarms + correct_rejections) if false_alarms + correct_rejections > 0 else 0.5

    correction = 1 / (2 * max(1, total_trials))
    hit_rate = clamp(hit_rate, correction, 1 - correction)
    fa_rate = clamp(fa_rate, correction, 1 - correction)
    return round(inv_norm_cdf(hit_rate) - inv_norm_cdf(fa_rate), 2)


def voice_risk_score(rms: float, jitter: float | None, pitch: float | None) -> float:
    """Weighted risk in [0, 1] from loudness, jitter and pitch presence."""
    score = 0.0
    if rms < 0.001:
        score += 0.4
    elif rms < 0.01:
        score += 0.2

    if jitter and jitter > 0.1:
        score += 0.4
    elif jitter and jitter > 0.06:
        score += 0.3

    if not pitch:
        score += 0.3

    return min(1.0, score)


def voice_quality_score(rms: float, jitter: float | None, pitch: float | None) -> int:
    """``(1 - risk) * 100``."""
    return round_half_up((1 - voice_risk_score(rms, jitter, pitch)) * 100)


def voice_risk_level(risk: float) -> RiskLevel:
    if risk < 0.3:
        return RiskLevel("Low", "Voice characteristics within typical range")
    if risk < 0.6:
        return RiskLevel("Medium", "Some voice irregularities detected")
    return RiskLevel("High", "Marked voice irregularities detected")


def coordination_level(score: float) -> RiskLevel:
    if score >= 80:
        return RiskLevel("Excellent", "Very good motor coordination")
    if score >= 60:
        return RiskLevel("Good", "Normal coordination patterns")
    if score >= 40:
        return RiskLevel("Fair", "Mild coordination irregularities")
    return RiskLevel("Poor", "Significant coordination issues detected")


def speed_level(taps_per_second: float) -> RiskLevel:
    if taps_per_second >= 8:
        return RiskLevel("Fast", "Excellent movement speed")
    if taps_per_second >= 5:
        return RiskLevel("Normal", "Normal movement speed")
    if taps_per_second >= 3:
        return RiskLevel("Slow", "Reduced movement speed")
    return RiskLevel("Very Slow", "Significantly reduced movement speed")


TREMOR_LEVEL_DESCRIPTIONS = {
    "none": RiskLevel("None", "No significant tremor detected"),
    "low": RiskLevel("Low", "Minimal tremor activity"),
    "moderate": RiskLevel("Moderate", "Moderate tremor detected"),
    "high": RiskLevel("High", "Significant tremor activity"),
}
