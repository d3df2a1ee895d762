"""Report generation for lab sessions."""

from .generator import (
    ReportGenerator,
    SessionReport,
    build_cognition_report,
    build_motor_report,
    build_voice_report,
    generate_session_report,
)

__all__ = [
    "ReportGenerator",
    "SessionReport",
    "build_cognition_report",
    "build_motor_report",
    "build_voice_report",
    "generate_session_report",
]
