"""Signal analysis and scoring shared by the labs."""

from .buffer import RollingBuffer, TimedSample
from .pitch import PitchEstimate, PitchEstimator, hz_to_note, relative_jitter
from .scoring import (
    RiskLevel,
    coordination_level,
    coordination_score,
    d_prime,
    inv_norm_cdf,
    movement_quality,
    speed_level,
    voice_quality_score,
    voice_risk_level,
    voice_risk_score,
)
from .tapping import TapDetector, TapEvent, fingertip_distance, tap_rate, tap_threshold_px
from .tremor import FrequencyAnalyzer, TremorLevel, TremorMetrics, analyze_tremor, classify_tremor

__all__ = [
    "FrequencyAnalyzer",
    "PitchEstimate",
    "PitchEstimator",
    "RiskLevel",
    "RollingBuffer",
    "TapDetector",
    "TapEvent",
    "TimedSample",
    "TremorLevel",
    "TremorMetrics",
    "analyze_tremor",
    "classify_tremor",
    "coordination_level",
    "coordination_score",
    "d_prime",
    "fingertip_distance",
    "hz_to_note",
    "inv_norm_cdf",
    "movement_quality",
    "relative_jitter",
    "speed_level",
    "tap_rate",
    "tap_threshold_px",
    "voice_quality_score",
    "voice_risk_level",
    "voice_risk_score",
]
