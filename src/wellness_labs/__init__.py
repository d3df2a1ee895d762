"""Wellness Labs: browser-lab signal processing and scoring.

Finger-tapping and tremor analysis, sustained-vowel pitch and jitter, and the
saccade / Stroop / n-back trial state machine, with reports and a CLI.
"""

__version__ = "0.1.0"

from wellness_labs.core import Settings, get_settings
from wellness_labs.labs import CognitionBattery, LabSession, MotorLab, VoiceLab

__all__ = [
    "CognitionBattery",
    "LabSession",
    "MotorLab",
    "Settings",
    "VoiceLab",
    "__version__",
    "get_settings",
]
