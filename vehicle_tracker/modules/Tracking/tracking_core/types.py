"""Tracking session data types."""

from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


@dataclass(frozen=True, slots=True)
class Sample:
    """One position fix, immutable once captured."""

    latitude: float
    longitude: float
    speed_mps: float = 0.0
    captured_at_ms: int = 0

    def __post_init__(self) -> None:
        # Unknown, negative or non-finite speeds collapse to 0
        speed = self.speed_mps
        if speed is None or not math.isfinite(speed) or speed < 0:
            object.__setattr__(self, "speed_mps", 0.0)
        else:
            object.__setattr__(self, "speed_mps", float(speed))
        object.__setattr__(self, "captured_at_ms", int(self.captured_at_ms))


class PermissionStatus(str, Enum):
    PROMPT = "prompt"
    GRANTED = "granted"
    DENIED = "denied"


class SessionPhase(str, Enum):
    IDLE = "idle"
    AWAITING_PERMISSION = "awaiting_permission"
    ACTIVE = "active"


class Health(str, Enum):
    """Connectivity health as presented to the operator."""

    NEVER_SENT = "never_sent"
    ERROR = "error"
    HEALTHY = "healthy"


@dataclass(slots=True)
class SessionState:
    """Mutable session record owned by the SessionController.

    Status sinks only ever see copies produced by :meth:`snapshot`.
    """

    tracking_enabled: bool = False
    last_sample: Optional[Sample] = None
    last_send_timestamp: Optional[dt.datetime] = None
    permission_status: PermissionStatus = PermissionStatus.PROMPT
    last_error: Optional[str] = None
    phase: SessionPhase = SessionPhase.IDLE

    def snapshot(self) -> "SessionState":
        return replace(self)

    @property
    def health(self) -> Health:
        return describe_health(self)


def describe_health(state: SessionState) -> Health:
    """Classify a snapshot as never-sent, error or healthy."""
    if state.last_error:
        return Health.ERROR
    if state.last_send_timestamp is None:
        return Health.NEVER_SENT
    return Health.HEALTHY


__all__ = [
    "Health",
    "PermissionStatus",
    "Sample",
    "SessionPhase",
    "SessionState",
    "describe_health",
]
