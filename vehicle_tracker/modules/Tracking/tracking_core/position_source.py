"""Position source backed by a streaming NMEA receiver.

The receiver is read continuously in the background so the parser always
holds the freshest fix. ``fetch_current`` either reuses a fix younger than
``max_age`` or waits up to ``timeout`` for the next one.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from vehicle_tracker.core.asyncio_utils import cancel_and_wait, create_logged_task
from vehicle_tracker.core.logging_utils import get_module_logger

from .constants import DEFAULT_FIX_MAX_AGE_S, DEFAULT_FIX_TIMEOUT_S, DEFAULT_READ_TIMEOUT_S
from .errors import PositionError, PositionFailure
from .parsers import FixSnapshot, NMEAParser
from .transports import BaseReceiverTransport
from .types import Sample

logger = get_module_logger("PositionSource")


class PositionSource(ABC):
    """Produces one :class:`Sample` on demand or raises :class:`PositionError`."""

    async def start(self) -> bool:
        return True

    async def stop(self) -> None:
        return None

    @abstractmethod
    async def fetch_current(
        self,
        timeout: float = DEFAULT_FIX_TIMEOUT_S,
        max_age: float = DEFAULT_FIX_MAX_AGE_S,
    ) -> Sample:
        ...


def sample_from_fix(fix: FixSnapshot) -> Sample:
    """Freeze the parser's current fix into a Sample."""
    return Sample(
        latitude=fix.latitude,
        longitude=fix.longitude,
        speed_mps=fix.speed_mps if fix.speed_mps is not None else 0.0,
        captured_at_ms=fix.position_wall_ms,
    )


class NMEAPositionSource(PositionSource):
    """Position source for any receiver that emits standard NMEA-0183.

    Example:
        source = NMEAPositionSource(SerialReceiverTransport("/dev/serial0"))
        sample = await source.fetch_current(timeout=10.0, max_age=1.0)
        await source.stop()
    """

    def __init__(
        self,
        transport: BaseReceiverTransport,
        *,
        read_timeout: float = DEFAULT_READ_TIMEOUT_S,
    ):
        self.transport = transport
        self._read_timeout = read_timeout
        self._parser = NMEAParser(on_position=self._on_position)
        self._running = False
        self._read_task: Optional[asyncio.Task] = None
        self._waiters: set[asyncio.Future] = set()
        self._start_lock = asyncio.Lock()

    @property
    def fix(self) -> FixSnapshot:
        return self._parser.fix

    @property
    def is_running(self) -> bool:
        return self._running and self._read_task is not None and not self._read_task.done()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> bool:
        """Connect the transport and start the background read loop.

        Concurrent callers share one connect; only one read loop ever runs.
        """
        if self.is_running:
            return True

        async with self._start_lock:
            if self.is_running:
                return True

            if not self.transport.is_connected:
                # Release any half-closed handle left behind by a dropped stream
                await self.transport.disconnect()
                if not await self.transport.connect():
                    return False

            self._running = True
            self._read_task = create_logged_task(
                self._read_loop(), logger=logger, context="nmea-read-loop"
            )
        logger.info("Position source started")
        return True

    async def stop(self) -> None:
        self._running = False
        await cancel_and_wait(self._read_task)
        self._read_task = None
        await self.transport.disconnect()
        logger.info("Position source stopped")

    # =========================================================================
    # Fix acquisition
    # =========================================================================

    async def fetch_current(
        self,
        timeout: float = DEFAULT_FIX_TIMEOUT_S,
        max_age: float = DEFAULT_FIX_MAX_AGE_S,
    ) -> Sample:
        fix = self._parser.fix
        age = fix.age_seconds()
        if fix.has_position() and age is not None and age <= max_age:
            return sample_from_fix(fix)

        # A dropped receiver is reopened here, so the next tick recovers on its own
        if not self.is_running and not await self.start():
            raise self._unavailable_error()

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.add(waiter)
        try:
            return await asyncio.wait_for(waiter, timeout=timeout)
        except asyncio.TimeoutError:
            raise PositionError(PositionFailure.TIMEOUT, "Timeout expired") from None
        finally:
            self._waiters.discard(waiter)

    def _on_position(self, fix: FixSnapshot) -> None:
        if not self._waiters:
            return
        sample = sample_from_fix(fix)
        for waiter in list(self._waiters):
            if not waiter.done():
                waiter.set_result(sample)

    def _fail_waiters(self, error: PositionError) -> None:
        for waiter in list(self._waiters):
            if not waiter.done():
                waiter.set_exception(error)

    def _unavailable_error(self) -> PositionError:
        detail = self.transport.last_error or "Position unavailable"
        if self.transport.access_denied:
            return PositionError(PositionFailure.PERMISSION_DENIED, detail)
        return PositionError(PositionFailure.POSITION_UNAVAILABLE, detail)

    # =========================================================================
    # Read loop
    # =========================================================================

    async def _read_loop(self) -> None:
        logger.debug("Read loop started")
        try:
            while self._running:
                line = await self.transport.read_line(timeout=self._read_timeout)
                if line is None:
                    if not self.transport.is_connected:
                        logger.warning("Receiver disconnected: %s", self.transport.last_error)
                        break
                    continue
                if line.startswith("$"):
                    self._parser.parse_sentence(line)
        finally:
            self._running = False
            self._fail_waiters(self._unavailable_error())
            logger.debug("Read loop ended")


__all__ = ["NMEAPositionSource", "PositionSource", "sample_from_fix"]
