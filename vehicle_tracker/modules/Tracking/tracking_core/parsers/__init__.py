"""NMEA parsing for the position source."""

from .nmea_parser import NMEAParser, validate_checksum
from .nmea_types import FixSnapshot

__all__ = ["FixSnapshot", "NMEAParser", "validate_checksum"]
