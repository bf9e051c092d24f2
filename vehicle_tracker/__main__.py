"""Allow ``python -m vehicle_tracker``."""

import sys

from vehicle_tracker import run

if __name__ == "__main__":
    sys.exit(run())
