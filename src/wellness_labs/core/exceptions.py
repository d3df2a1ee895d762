"""
Exception hierarchy for the labs.

Analysis functions never raise on degenerate input; these types cover
capture-layer failures (permissions, devices, inference backends) and misuse
of the stateful lab objects.
"""

from __future__ import annotations

from typing import Any


class LabError(Exception):
    """Base exception for all lab errors."""

    def __init__(
        self,
        message: str,
        code: str = "LAB_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class CaptureError(LabError):
    """Camera, microphone or inference backend could not be used."""

    default_status = "{Device} access failed. Please check permissions and try again."

    def __init__(
        self,
        message: str = "",
        device: str = "camera",
        code: str = "CAPTURE_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message or self.default_status.format(Device=device.capitalize(), device=device),
            code=code,
            details={"device": device, **(details or {})},
        )
        self.device = device

    @property
    def status(self) -> str:
        """User-facing status line."""
        return self.message


class PermissionDeniedError(CaptureError):
    default_status = "{Device} permission denied. Please allow {device} access and try again."

    def __init__(self, message: str = "", device: str = "camera", details: dict | None = None):
        super().__init__(message, device=device, code="PERMISSION_DENIED", details=details)


class DeviceNotFoundError(CaptureError):
    default_status = "No {device} found. Please connect a {device} and try again."

    def __init__(self, message: str = "", device: str = "camera", details: dict | None = None):
        super().__init__(message, device=device, code="DEVICE_NOT_FOUND", details=details)


class UnsupportedDeviceError(CaptureError):
    default_status = "{Device} not supported. Please use HTTPS or a modern browser."

    def __init__(self, message: str = "", device: str = "camera", details: dict | None = None):
        super().__init__(message, device=device, code="DEVICE_UNSUPPORTED", details=details)


class BackendInitError(CaptureError):
    default_status = "Failed to load model. Check the model path."

    def __init__(self, message: str = "", device: str = "model", details: dict | None = None):
        super().__init__(message, device=device, code="BACKEND_INIT_FAILED", details=details)


class StateError(LabError):
    """A lab object was driven from a state that does not allow the call."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code="INVALID_STATE", details=details)
