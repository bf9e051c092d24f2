"""Status sinks and the formatting used to present session snapshots."""

from __future__ import annotations

import datetime as dt
from typing import Optional, Protocol, runtime_checkable

from vehicle_tracker.core.logging_utils import LoggerLike, ensure_structured_logger

from .constants import KMH_PER_MPS
from .types import Health, SessionState


@runtime_checkable
class StatusSink(Protocol):
    """Receives a read-only snapshot after every session state change."""

    def on_update(self, snapshot: SessionState) -> None:
        ...


def format_coordinate(value: float) -> str:
    return f"{value:.6f}"


def speed_kmh(speed_mps: float) -> int:
    return round(speed_mps * KMH_PER_MPS)


def format_last_update(timestamp: Optional[dt.datetime]) -> str:
    if timestamp is None:
        return "Never"
    return timestamp.astimezone().strftime("%H:%M:%S")


def connection_label(state: SessionState) -> str:
    return "Error" if state.health is Health.ERROR else "Connected"


def summarize(state: SessionState) -> str:
    """One-line dashboard rendering of a snapshot."""
    parts = ["Tracking Active" if state.tracking_enabled else "Tracking Inactive"]

    sample = state.last_sample
    if sample is not None:
        parts.append(
            f"Lat {format_coordinate(sample.latitude)} Lon {format_coordinate(sample.longitude)}"
        )
        parts.append(f"{speed_kmh(sample.speed_mps)} km/h")
    else:
        parts.append("No location data")

    parts.append(f"Last Update {format_last_update(state.last_send_timestamp)}")
    parts.append(connection_label(state))
    return " | ".join(parts)


class LoggingStatusSink:
    """Renders snapshots through the logger, skipping unchanged lines."""

    def __init__(self, logger: LoggerLike = None):
        self._logger = ensure_structured_logger(logger, fallback_name="Status")
        self._last_line: Optional[str] = None
        self._last_error: Optional[str] = None

    def on_update(self, snapshot: SessionState) -> None:
        line = summarize(snapshot)
        if line != self._last_line:
            self._logger.info(line)
            self._last_line = line

        if snapshot.last_error and snapshot.last_error != self._last_error:
            self._logger.warning("Error: %s", snapshot.last_error)
        self._last_error = snapshot.last_error


__all__ = [
    "LoggingStatusSink",
    "StatusSink",
    "connection_label",
    "format_coordinate",
    "format_last_update",
    "speed_kmh",
    "summarize",
]
