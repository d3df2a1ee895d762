"""The motor, voice and eye & cognition labs."""

from .cognition import (
    CognitionBattery,
    CognitionTest,
    Outcome,
    Phase,
    SaccadeTarget,
    SessionSummary,
    StroopStimulus,
    Trial,
    is_nback_target,
    make_nback_sequence,
    make_saccade_trials,
    make_stroop_trials,
)
from .motor import HandLandmarks, MotorAssessment, MotorFrame, MotorLab, MotorMetrics, assess_motor
from .session import LabSession
from .voice import FallbackPolicy, VoiceAnalysis, VoiceLab, VoiceMetrics

__all__ = [
    "CognitionBattery",
    "CognitionTest",
    "FallbackPolicy",
    "HandLandmarks",
    "LabSession",
    "MotorAssessment",
    "MotorFrame",
    "MotorLab",
    "MotorMetrics",
    "Outcome",
    "Phase",
    "SaccadeTarget",
    "SessionSummary",
    "StroopStimulus",
    "Trial",
    "VoiceAnalysis",
    "VoiceLab",
    "VoiceMetrics",
    "assess_motor",
    "is_nback_target",
    "make_nback_sequence",
    "make_saccade_trials",
    "make_stroop_trials",
]
