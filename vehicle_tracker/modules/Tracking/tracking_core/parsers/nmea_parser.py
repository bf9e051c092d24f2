"""NMEA sentence parsing for GNSS receivers.

Stateful parser that folds RMC, GGA, VTG, GLL and GSA sentences into a
single :class:`FixSnapshot`.
"""

from __future__ import annotations

import datetime as dt
import math
import time
from typing import Any, Callable, Dict, Optional

from ..constants import FIX_MODE_MAP, MPS_PER_KNOT, POSITION_SENTENCES
from .nmea_types import FixSnapshot


def _parse_float(value: str | None) -> Optional[float]:
    if not value:
        return None
    try:
        result = float(value)
    except ValueError:
        return None
    return result if math.isfinite(result) else None


def _parse_int(value: str | None) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_latlon(
    value: str | None,
    direction: str | None,
    *,
    is_lat: bool
) -> Optional[float]:
    """Parse NMEA lat/lon format (DDMM.MMMM or DDDMM.MMMM) to decimal degrees."""
    if not value or not direction:
        return None
    try:
        deg_len = 2 if is_lat else 3
        if len(value) < deg_len:
            return None
        degrees = int(value[:deg_len])
        minutes = float(value[deg_len:])
    except ValueError:
        return None
    if not math.isfinite(minutes):
        return None
    decimal = degrees + minutes / 60.0
    if direction.upper() in {"S", "W"}:
        decimal *= -1.0
    return decimal


def _parse_hms(value: str | None) -> Optional[dt.time]:
    """Parse NMEA time format (HHMMSS.sss) to datetime.time."""
    if not value or not value.strip():
        return None
    main, dot, frac = value.strip().partition(".")
    main = main.rjust(6, "0")
    try:
        hour = int(main[0:2])
        minute = int(main[2:4])
        second = int(main[4:6])
        micro = int((frac[:6] if dot else "0").ljust(6, "0"))
        return dt.time(hour, minute, second, micro, tzinfo=dt.timezone.utc)
    except ValueError:
        return None


def _parse_date(value: str | None) -> Optional[dt.date]:
    """Parse NMEA date format (DDMMYY) to datetime.date."""
    if not value or len(value) != 6:
        return None
    try:
        return dt.date(2000 + int(value[4:6]), int(value[2:4]), int(value[0:2]))
    except ValueError:
        return None


def _knots_to_mps(knots: Optional[float]) -> Optional[float]:
    return knots * MPS_PER_KNOT if knots is not None else None


def validate_checksum(sentence: str) -> bool:
    """Validate NMEA checksum."""
    if not sentence.startswith("$") or "*" not in sentence:
        return False
    try:
        payload, checksum_str = sentence[1:].split("*", 1)
        expected = int(checksum_str[:2], 16)
    except (ValueError, IndexError):
        return False
    calculated = 0
    for char in payload:
        calculated ^= ord(char)
    return calculated == expected


class NMEAParser:
    """Stateful NMEA sentence parser.

    ``on_position`` fires whenever a sentence carries a valid position, which
    is what the position source waits on.
    """

    def __init__(
        self,
        on_position: Optional[Callable[[FixSnapshot], None]] = None,
        validate_checksums: bool = True,
    ):
        self._fix = FixSnapshot()
        self._last_known_date: Optional[dt.date] = None
        self._on_position = on_position
        self._validate_checksums = validate_checksums

    @property
    def fix(self) -> FixSnapshot:
        return self._fix

    def reset(self) -> None:
        self._fix = FixSnapshot()
        self._last_known_date = None

    def parse_sentence(self, sentence: str) -> Optional[Dict[str, Any]]:
        """Parse one NMEA sentence and update the fix. Returns parsed values or None."""
        if not sentence or not sentence.startswith("$"):
            return None

        if self._validate_checksums and not validate_checksum(sentence):
            return None

        payload = sentence[1:].split("*", 1)[0]
        parts = payload.split(",")

        # Talker prefix varies (GP, GN, GL...); the last three chars name the sentence
        message_type = parts[0][-3:].upper()
        handler = getattr(self, f"_parse_{message_type.lower()}", None)
        if handler is None:
            return None

        data = handler(parts[1:])
        if data is None:
            return None

        data["sentence_type"] = message_type
        self._apply_update(data)

        if (
            message_type in POSITION_SENTENCES
            and data.get("latitude") is not None
            and self._fix.has_position()
            and self._on_position
        ):
            self._on_position(self._fix)

        return data

    def _apply_update(self, update: Dict[str, Any]) -> None:
        fix = self._fix

        if "fix_valid" in update:
            fix.fix_valid = bool(update["fix_valid"])

        lat = update.get("latitude")
        lon = update.get("longitude")
        if lat is not None and lon is not None:
            fix.latitude = lat
            fix.longitude = lon
            if fix.fix_valid:
                fix.position_monotonic = time.monotonic()
                fix.position_wall_ms = int(time.time() * 1000)

        if update.get("timestamp"):
            fix.timestamp = update["timestamp"]

        for key in ("fix_quality", "fix_mode", "satellites_in_use", "hdop", "course_deg"):
            if update.get(key) is not None:
                setattr(fix, key, update[key])

        # RMC and VTG both report ground speed; whichever arrives last wins
        if "speed_mps" in update:
            fix.speed_mps = update["speed_mps"]

        fix.last_sentence = update.get("sentence_type") or fix.last_sentence

    def _timestamp(self, time_str: str, date_obj: Optional[dt.date] = None) -> Optional[dt.datetime]:
        if date_obj:
            self._last_known_date = date_obj
        time_obj = _parse_hms(time_str)
        if not time_obj:
            return self._fix.timestamp
        date_value = self._last_known_date or dt.datetime.now(dt.timezone.utc).date()
        return dt.datetime.combine(date_value, time_obj)

    # ------------------------------------------------------------------
    # Sentence-specific parsers
    # ------------------------------------------------------------------

    def _parse_rmc(self, fields: list[str]) -> Optional[Dict[str, Any]]:
        """$xxRMC: time, status, position, speed, course, date."""
        if len(fields) < 9:
            return None

        status = (fields[1] or "").upper()
        mode = fields[11] if len(fields) > 11 else None
        return {
            "latitude": _parse_latlon(fields[2], fields[3], is_lat=True),
            "longitude": _parse_latlon(fields[4], fields[5], is_lat=False),
            "speed_mps": _knots_to_mps(_parse_float(fields[6])),
            "course_deg": _parse_float(fields[7]),
            "timestamp": self._timestamp(fields[0], _parse_date(fields[8])),
            "fix_valid": status == "A",
            "fix_mode": mode or None,
        }

    def _parse_gga(self, fields: list[str]) -> Optional[Dict[str, Any]]:
        """$xxGGA: time, position, fix quality, satellites, HDOP."""
        if len(fields) < 9:
            return None

        fix_quality = _parse_int(fields[5])
        return {
            "latitude": _parse_latlon(fields[1], fields[2], is_lat=True),
            "longitude": _parse_latlon(fields[3], fields[4], is_lat=False),
            "fix_quality": fix_quality,
            "satellites_in_use": _parse_int(fields[6]),
            "hdop": _parse_float(fields[7]),
            "timestamp": self._timestamp(fields[0]),
            "fix_valid": (fix_quality or 0) > 0,
        }

    def _parse_vtg(self, fields: list[str]) -> Optional[Dict[str, Any]]:
        """$xxVTG: course and ground speed."""
        if len(fields) < 7:
            return None

        speed_mps = _knots_to_mps(_parse_float(fields[4]))
        if speed_mps is None:
            speed_kmh = _parse_float(fields[6])
            speed_mps = speed_kmh / 3.6 if speed_kmh is not None else None
        return {
            "course_deg": _parse_float(fields[0]),
            "speed_mps": speed_mps,
        }

    def _parse_gll(self, fields: list[str]) -> Optional[Dict[str, Any]]:
        """$xxGLL: position, time, status."""
        if len(fields) < 5:
            return None

        status = (fields[5] or "").upper() if len(fields) > 5 else ""
        return {
            "latitude": _parse_latlon(fields[0], fields[1], is_lat=True),
            "longitude": _parse_latlon(fields[2], fields[3], is_lat=False),
            "timestamp": self._timestamp(fields[4]),
            "fix_valid": status == "A",
        }

    def _parse_gsa(self, fields: list[str]) -> Optional[Dict[str, Any]]:
        """$xxGSA: fix mode and HDOP."""
        if len(fields) < 16:
            return None

        return {
            "fix_mode": FIX_MODE_MAP.get(_parse_int(fields[1]) or 0),
            "hdop": _parse_float(fields[15]),
        }
