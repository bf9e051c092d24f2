"""Tracking session defaults and NMEA/unit constants."""

# Sampling cadence and fix acquisition
DEFAULT_SAMPLE_INTERVAL_S = 5.0
DEFAULT_FIX_TIMEOUT_S = 10.0
DEFAULT_FIX_MAX_AGE_S = 1.0

# Remote collection endpoint
DEFAULT_ENDPOINT_URL = "https://your-backend-url.com/api/positions"
DEFAULT_SEND_TIMEOUT_S = 10.0
JSON_CONTENT_TYPE = "application/json"

# Serial receiver
DEFAULT_SERIAL_PORT = "/dev/serial0"
DEFAULT_BAUD_RATE = 9600
DEFAULT_READ_TIMEOUT_S = 1.0

# Speed conversion factors
MPS_PER_KNOT = 0.514444
KMH_PER_MPS = 3.6

# Fix mode mapping (from NMEA GSA sentence)
FIX_MODE_MAP = {
    1: "No fix",
    2: "2D",
    3: "3D",
}

# Sentences that can carry a position
POSITION_SENTENCES = frozenset({"RMC", "GGA", "GLL"})
