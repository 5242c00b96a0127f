"""Error taxonomy shared by capture, agent, store and HTTP layers"""
from enum import Enum
from typing import Optional


class CivicGuardError(Exception):
    """Base error. Every error is scoped to the current flow and recoverable."""


# --- Device capture ---

class CaptureError(CivicGuardError):
    """Camera / microphone / geolocation could not be used"""

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        self.kind = kind


class PermissionDenied(CaptureError):
    pass


class DeviceUnavailable(CaptureError):
    pass


class Unsupported(CaptureError):
    pass


class GeolocationErrorCode(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"


class GeolocationError(CaptureError):
    def __init__(self, code: GeolocationErrorCode, message: str = ""):
        super().__init__(message or code.value, kind="geolocation")
        self.code = code


# --- Remote collaborators ---

class RemoteServiceError(CivicGuardError):
    def __init__(self, service: str, message: str):
        super().__init__(f"{service}: {message}")
        self.service = service


# --- Domain ---

class ValidationError(CivicGuardError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class AuthorizationError(CivicGuardError):
    pass


class NotFoundError(CivicGuardError):
    pass


class InvalidTransitionError(CivicGuardError):
    pass
