"""Receiver fix state accumulated from NMEA sentences."""

from dataclasses import dataclass, replace
import datetime as dt
import time
from typing import Optional


@dataclass(slots=True)
class FixSnapshot:
    """Latest receiver state, updated incrementally sentence by sentence."""

    timestamp: Optional[dt.datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    speed_mps: Optional[float] = None
    course_deg: Optional[float] = None
    fix_quality: Optional[int] = None
    fix_mode: Optional[str] = None
    satellites_in_use: Optional[int] = None
    hdop: Optional[float] = None
    fix_valid: bool = False
    last_sentence: Optional[str] = None
    # Local clocks at the last position update
    position_monotonic: float = 0.0
    position_wall_ms: int = 0

    def age_seconds(self) -> Optional[float]:
        """Return seconds since the last position update, or None if never."""
        if not self.position_monotonic:
            return None
        return max(0.0, time.monotonic() - self.position_monotonic)

    def has_position(self) -> bool:
        """Return True if we have a valid position fix."""
        return (
            self.latitude is not None
            and self.longitude is not None
            and self.fix_valid
        )

    def copy(self) -> "FixSnapshot":
        return replace(self)
