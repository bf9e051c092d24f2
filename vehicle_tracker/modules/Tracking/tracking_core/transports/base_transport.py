"""Abstract line-oriented, read-only transport for positioning receivers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class BaseReceiverTransport(ABC):
    """Connection to a receiver that streams text lines (NMEA sentences).

    Usable as an async context manager::

        async with transport:
            line = await transport.read_line()
    """

    def __init__(self) -> None:
        self._connected = False
        self._last_error: Optional[str] = None
        self._access_denied = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def last_error(self) -> Optional[str]:
        """The last connect/read error message, if any."""
        return self._last_error

    @property
    def access_denied(self) -> bool:
        """True when the last connect attempt was refused by the OS."""
        return self._access_denied

    @abstractmethod
    async def connect(self) -> bool:
        """Open the connection. Returns True on success."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection; safe to call when already closed."""

    @abstractmethod
    async def read_line(self, timeout: float = 1.0) -> Optional[str]:
        """Read one decoded line, or None on timeout/error/EOF."""

    async def __aenter__(self) -> "BaseReceiverTransport":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()
