"""Tracking core package - session controller and its collaborators."""

from .constants import (
    DEFAULT_BAUD_RATE,
    DEFAULT_ENDPOINT_URL,
    DEFAULT_FIX_MAX_AGE_S,
    DEFAULT_FIX_TIMEOUT_S,
    DEFAULT_SAMPLE_INTERVAL_S,
    DEFAULT_SEND_TIMEOUT_S,
    DEFAULT_SERIAL_PORT,
    KMH_PER_MPS,
    MPS_PER_KNOT,
)
from .errors import (
    LocationPermissionError,
    PermissionFailure,
    PositionError,
    PositionFailure,
    TrackingError,
    TransmissionError,
)
from .types import (
    Health,
    PermissionStatus,
    Sample,
    SessionPhase,
    SessionState,
    describe_health,
)
from .parsers import FixSnapshot, NMEAParser
from .transports import BaseReceiverTransport, SerialReceiverTransport
from .permission_gate import PermissionGate, SerialPermissionGate
from .position_source import NMEAPositionSource, PositionSource
from .transmission import (
    HttpTransmissionChannel,
    TransmissionChannel,
    decode_envelope,
    encode_envelope,
)
from .status import LoggingStatusSink, StatusSink, summarize
from .session_controller import SessionController

__all__ = [
    # Constants
    "DEFAULT_BAUD_RATE",
    "DEFAULT_ENDPOINT_URL",
    "DEFAULT_FIX_MAX_AGE_S",
    "DEFAULT_FIX_TIMEOUT_S",
    "DEFAULT_SAMPLE_INTERVAL_S",
    "DEFAULT_SEND_TIMEOUT_S",
    "DEFAULT_SERIAL_PORT",
    "KMH_PER_MPS",
    "MPS_PER_KNOT",
    # Errors
    "LocationPermissionError",
    "PermissionFailure",
    "PositionError",
    "PositionFailure",
    "TrackingError",
    "TransmissionError",
    # Types
    "Health",
    "PermissionStatus",
    "Sample",
    "SessionPhase",
    "SessionState",
    "describe_health",
    "FixSnapshot",
    # Parser / transports
    "NMEAParser",
    "BaseReceiverTransport",
    "SerialReceiverTransport",
    # Collaborators
    "PermissionGate",
    "SerialPermissionGate",
    "PositionSource",
    "NMEAPositionSource",
    "TransmissionChannel",
    "HttpTransmissionChannel",
    "decode_envelope",
    "encode_envelope",
    "StatusSink",
    "LoggingStatusSink",
    "summarize",
    # Controller
    "SessionController",
]
