from enum import Enum

class LocationErrorCode(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"

LOCATION_ERROR_MESSAGES = {
    LocationErrorCode.PERMISSION_DENIED: "Location permission denied",
    LocationErrorCode.UNAVAILABLE: "Location unavailable",
    LocationErrorCode.TIMEOUT: "Location request timed out",
    LocationErrorCode.UNSUPPORTED: "Geolocation is not supported on this device",
}

class MotoSOSError(Exception):
    """Base class for application errors"""

class LocationUnavailable(MotoSOSError):
    """The device position could not be obtained"""

    def __init__(self, code: LocationErrorCode, detail: str = ""):
        self.code = code
        self.detail = detail
        message = LOCATION_ERROR_MESSAGES[code]
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

class StorageError(MotoSOSError):
    """The key-value backend failed to read or write a record"""

class EmergencyStateError(MotoSOSError):
    """The requested action is not allowed in the current emergency state"""

class InvalidStatusTransition(MotoSOSError, ValueError):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change session status from {current} to {requested}")
