"""Core infrastructure modules."""

from .config import (
    CognitionConfig,
    LoggingConfig,
    MotorConfig,
    Settings,
    VoiceConfig,
    get_settings,
    reload_settings,
)
from .exceptions import (
    BackendInitError,
    CaptureError,
    DeviceNotFoundError,
    LabError,
    PermissionDeniedError,
    StateError,
    UnsupportedDeviceError,
)
from .logging import setup_logging
from .resources import SharedHandle
from .scheduler import FrameLoop, Scheduler, Timer, TimerSlot

__all__ = [
    "BackendInitError",
    "CaptureError",
    "CognitionConfig",
    "DeviceNotFoundError",
    "FrameLoop",
    "LabError",
    "LoggingConfig",
    "MotorConfig",
    "PermissionDeniedError",
    "Scheduler",
    "Settings",
    "SharedHandle",
    "StateError",
    "Timer",
    "TimerSlot",
    "UnsupportedDeviceError",
    "VoiceConfig",
    "get_settings",
    "reload_settings",
    "setup_logging",
]
