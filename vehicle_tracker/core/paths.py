"""Centralized path constants for the tracker."""

from __future__ import annotations

import os
from pathlib import Path


# User-specific state (allows running from read-only install locations)
_USER_STATE_ENV = os.environ.get("VEHICLE_TRACKER_STATE_DIR")
USER_STATE_DIR = Path(_USER_STATE_ENV).expanduser() if _USER_STATE_ENV else (Path.home() / ".vehicle_tracker")
USER_CONFIG_DIR = USER_STATE_DIR / "config"
LOGS_DIR = USER_STATE_DIR / "logs"

# Persisted unit identifier (survives restarts; session state does not)
IDENTITY_FILE = USER_STATE_DIR / "identity.txt"


def ensure_directories() -> None:
    """Create the user state directories if they don't exist."""

    USER_STATE_DIR.mkdir(parents=True, exist_ok=True)
    USER_CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    LOGS_DIR.mkdir(parents=True, exist_ok=True)


__all__ = [
    "USER_STATE_DIR",
    "USER_CONFIG_DIR",
    "LOGS_DIR",
    "IDENTITY_FILE",
    "ensure_directories",
]
