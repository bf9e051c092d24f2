"""Serial UART transport for NMEA receivers.

Uses serial_asyncio so the receiver is read without blocking the loop that
also runs the HTTP transmissions.
"""

from __future__ import annotations

import asyncio
import contextlib
import errno
from typing import Optional

import serial
import serial_asyncio

from vehicle_tracker.core.logging_utils import get_module_logger

from .base_transport import BaseReceiverTransport
from ..constants import DEFAULT_BAUD_RATE

logger = get_module_logger("SerialTransport")

_ACCESS_ERRNOS = {errno.EACCES, errno.EPERM}


def _is_access_error(exc: BaseException) -> bool:
    if isinstance(exc, PermissionError):
        return True
    return getattr(exc, "errno", None) in _ACCESS_ERRNOS


class SerialReceiverTransport(BaseReceiverTransport):
    """Serial transport for receivers such as the BerryGPS or u-blox USB dongles.

    Example:
        transport = SerialReceiverTransport("/dev/serial0", 9600)
        async with transport:
            while True:
                line = await transport.read_line()
    """

    def __init__(self, port: str, baudrate: int = DEFAULT_BAUD_RATE):
        super().__init__()
        self.port = port
        self.baudrate = baudrate

        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    @property
    def is_connected(self) -> bool:
        return self._connected and self._reader is not None

    async def connect(self) -> bool:
        if self.is_connected:
            logger.debug("Already connected to %s", self.port)
            return True

        try:
            self._reader, self._writer = await serial_asyncio.open_serial_connection(
                url=self.port,
                baudrate=self.baudrate,
            )
        except asyncio.CancelledError:
            raise
        except (serial.SerialException, OSError, ValueError) as exc:
            self._last_error = str(exc)
            self._access_denied = _is_access_error(exc)
            self._connected = False
            logger.warning(
                "Cannot open %s at %d baud: %s", self.port, self.baudrate, exc
            )
            return False

        self._connected = True
        self._last_error = None
        self._access_denied = False
        logger.info("Connected to receiver on %s at %d baud", self.port, self.baudrate)
        return True

    async def disconnect(self) -> None:
        if self._writer is None:
            self._connected = False
            return

        writer = self._writer
        self._writer = None
        self._reader = None
        self._connected = False

        with contextlib.suppress(Exception):
            writer.close()

        try:
            await asyncio.wait_for(writer.wait_closed(), timeout=1.0)
        except asyncio.TimeoutError:
            logger.debug("Timeout waiting for serial close on %s", self.port)
        except (OSError, serial.SerialException):
            logger.debug("Error closing serial on %s", self.port)

        logger.info("Disconnected from receiver on %s", self.port)

    async def read_line(self, timeout: float = 1.0) -> Optional[str]:
        if not self.is_connected or self._reader is None:
            return None

        try:
            line = await asyncio.wait_for(self._reader.readline(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
        except asyncio.CancelledError:
            raise
        except (OSError, serial.SerialException) as exc:
            self._last_error = str(exc)
            self._access_denied = _is_access_error(exc)
            self._connected = False
            logger.warning("Read error on %s: %s", self.port, exc)
            return None
        except ValueError as exc:
            # readline() buffer overrun: no line ending, usually a baud mismatch
            self._last_error = f"Unreadable receiver data: {exc}"
            self._connected = False
            logger.warning("Garbled data on %s (check baud rate): %s", self.port, exc)
            return None

        if not line:
            logger.warning("Serial stream ended on %s (EOF)", self.port)
            self._last_error = "Stream ended (EOF)"
            self._connected = False
            return None

        # NMEA is ASCII
        decoded = line.decode("ascii", errors="ignore").strip()
        return decoded or None
