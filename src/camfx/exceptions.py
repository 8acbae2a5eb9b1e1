from __future__ import annotations

from enum import Enum


class CamfxError(Exception):
    """Base exception for the effects viewer."""


class CameraFailure(Enum):
    PERMISSION_DENIED = "permission_denied"
    NO_DEVICE = "no_device"
    DEVICE_BUSY = "device_busy"
    OVERCONSTRAINED = "overconstrained"
    OTHER = "other"


_CAMERA_MESSAGES = {
    CameraFailure.PERMISSION_DENIED: "Please grant camera permission and try again.",
    CameraFailure.NO_DEVICE: "No camera found on this device.",
    CameraFailure.DEVICE_BUSY: "Camera may be in use by another application.",
    CameraFailure.OVERCONSTRAINED: "Camera does not support the requested settings.",
    CameraFailure.OTHER: "Please check your camera and permissions.",
}


class CameraError(CamfxError):
    """Raised when the camera cannot be acquired or stops delivering frames."""

    def __init__(self, category: CameraFailure, detail: str = "") -> None:
        self.category = category
        self.detail = detail
        super().__init__(self.user_message)

    @property
    def user_message(self) -> str:
        return "Unable to access camera. " + _CAMERA_MESSAGES[self.category]


class DetectorUnavailableError(CamfxError):
    """Raised when the face landmark detector cannot be created."""
