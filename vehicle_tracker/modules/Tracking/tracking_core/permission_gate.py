"""Authorization check for the positioning capability."""

from __future__ import annotations

import asyncio
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from vehicle_tracker.core.logging_utils import get_module_logger

from .errors import LocationPermissionError, PermissionFailure
from .types import PermissionStatus

logger = get_module_logger("PermissionGate")

UNSUPPORTED_MESSAGE = "Geolocation is not supported on this host"
DENIED_MESSAGE = "Location permission denied"


class PermissionGate(ABC):
    """Decides whether tracking may use the position source.

    ``acquire()`` returns ``PermissionStatus.GRANTED`` or raises
    :class:`LocationPermissionError`. Implementations must not cache: a
    user may fix permissions out of band between two calls.
    """

    @abstractmethod
    async def acquire(self) -> PermissionStatus:
        ...


class SerialPermissionGate(PermissionGate):
    """Checks that the receiver's device node exists and is openable.

    A missing port is "unsupported" (there is nothing to ask permission
    for); a device the process may not open read/write is "denied", which
    on Linux usually means the user is not in the ``dialout`` group.
    """

    def __init__(self, port: Optional[str]):
        self.port = port

    async def acquire(self) -> PermissionStatus:
        reason, detail = await asyncio.to_thread(self._check)

        if reason is PermissionFailure.UNSUPPORTED:
            message = f"{UNSUPPORTED_MESSAGE}: {detail}"
            logger.error(message)
            raise LocationPermissionError(reason, message)
        if reason is PermissionFailure.DENIED:
            message = f"{DENIED_MESSAGE}: {detail}"
            logger.error(message)
            raise LocationPermissionError(reason, message)

        logger.debug("Access to %s granted", self.port)
        return PermissionStatus.GRANTED

    def _check(self) -> tuple[Optional[PermissionFailure], str]:
        port = (self.port or "").strip()
        if not port:
            return PermissionFailure.UNSUPPORTED, "no receiver port configured"

        # pyserial URL handlers (socket://, rfc2217://) have no device node to inspect
        if "://" in port:
            return None, ""

        path = Path(port)
        if not path.exists():
            return PermissionFailure.UNSUPPORTED, f"receiver device {port} not found"
        if not os.access(path, os.R_OK | os.W_OK):
            return PermissionFailure.DENIED, f"cannot open {port} for reading and writing"
        return None, ""


__all__ = [
    "DENIED_MESSAGE",
    "PermissionGate",
    "SerialPermissionGate",
    "UNSUPPORTED_MESSAGE",
]
