"""Error taxonomy for the tracking session.

``LocationPermissionError`` ends a start attempt. ``PositionError`` and
``TransmissionError`` only fail the current tick.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class TrackingError(Exception):
    """Base class for every failure the session controller reports."""


class PermissionFailure(str, Enum):
    UNSUPPORTED = "unsupported"
    DENIED = "denied"


class LocationPermissionError(TrackingError):
    def __init__(self, reason: PermissionFailure, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


class PositionFailure(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"


class PositionError(TrackingError):
    def __init__(self, reason: PositionFailure, platform_message: str):
        super().__init__(f"Location error: {platform_message}")
        self.reason = reason
        self.platform_message = platform_message


class TransmissionError(TrackingError):
    def __init__(self, message: str, http_status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.http_status = http_status

    @property
    def is_network_error(self) -> bool:
        return self.http_status is None


__all__ = [
    "LocationPermissionError",
    "PermissionFailure",
    "PositionError",
    "PositionFailure",
    "TrackingError",
    "TransmissionError",
]
