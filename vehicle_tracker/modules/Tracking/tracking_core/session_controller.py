"""Tracking session state machine.

``IDLE -> AWAITING_PERMISSION -> ACTIVE -> IDLE``, with a direct return to
``IDLE`` when the permission gate refuses. While ``ACTIVE`` one repeating
timer drives the sample-and-send tick: fetch a fix from the position source,
then hand it to the transmission channel.

Every failure is caught at the tick boundary and stored in ``last_error``;
only a permission failure ends a session attempt.
"""

from __future__ import annotations

import asyncio
import datetime as dt
from typing import Callable, Optional, Union

from vehicle_tracker.core.asyncio_utils import create_logged_task
from vehicle_tracker.core.logging_utils import get_module_logger

from .constants import DEFAULT_FIX_MAX_AGE_S, DEFAULT_FIX_TIMEOUT_S, DEFAULT_SAMPLE_INTERVAL_S
from .errors import LocationPermissionError, PermissionFailure, PositionError, TransmissionError
from .permission_gate import PermissionGate
from .position_source import PositionSource
from .status import StatusSink, format_last_update
from .transmission import TransmissionChannel
from .types import PermissionStatus, SessionPhase, SessionState

logger = get_module_logger("SessionController")

SinkLike = Union[StatusSink, Callable[[SessionState], None]]

_TEARDOWN_WAIT_S = 2.0


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class SessionController:
    """Owns the session state, the repeating timer and the tick pipeline.

    Example:
        controller = SessionController(gate, source, channel)
        controller.subscribe(LoggingStatusSink())
        async with controller:
            await controller.start("BUS-001")
            ...
            await controller.stop()

    Overlapping ticks are never run: when the timer fires while the previous
    tick is still awaiting the receiver or the network, that firing is
    skipped.
    """

    def __init__(
        self,
        gate: PermissionGate,
        source: PositionSource,
        channel: TransmissionChannel,
        *,
        interval: float = DEFAULT_SAMPLE_INTERVAL_S,
        fix_timeout: float = DEFAULT_FIX_TIMEOUT_S,
        fix_max_age: float = DEFAULT_FIX_MAX_AGE_S,
        clock: Callable[[], dt.datetime] = _utcnow,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")

        self._gate = gate
        self._source = source
        self._channel = channel
        self._interval = interval
        self._fix_timeout = fix_timeout
        self._fix_max_age = fix_max_age
        self._clock = clock

        self._state = SessionState()
        self._identifier: Optional[str] = None
        self._sinks: list[Callable[[SessionState], None]] = []

        # Bumped on every start/stop/teardown; a tick only applies results
        # when its generation is still current.
        self._generation = 0
        self._timer_task: Optional[asyncio.Task] = None
        self._tick_task: Optional[asyncio.Task] = None
        self._pending_ticks: set[asyncio.Task] = set()
        self._closed = False

    # =========================================================================
    # Observation
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state.snapshot()

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    @property
    def identifier(self) -> Optional[str]:
        return self._identifier

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def timer_armed(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    @property
    def is_closed(self) -> bool:
        return self._closed

    def subscribe(self, sink: SinkLike) -> Callable[[], None]:
        """Register a status sink; returns a callable that unsubscribes it."""
        callback = getattr(sink, "on_update", sink)
        self._sinks.append(callback)

        def _unsubscribe() -> None:
            if callback in self._sinks:
                self._sinks.remove(callback)

        return _unsubscribe

    def _notify(self) -> None:
        snapshot = self._state.snapshot()
        for callback in list(self._sinks):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Status sink %r failed", callback)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self, identifier: str) -> SessionState:
        """Acquire permission, then begin periodic sampling for ``identifier``.

        Returns the snapshot at the end of the attempt. Calling this while a
        session is already starting or active is a no-op.
        """
        if self._closed:
            raise RuntimeError("SessionController has been closed")

        identifier = (identifier or "").strip()
        if not identifier:
            raise ValueError("identifier must be a non-empty string")

        if self._state.phase is not SessionPhase.IDLE:
            logger.warning("start(%s) ignored: session is %s", identifier, self._state.phase.value)
            return self.state

        self._generation += 1
        generation = self._generation
        self._identifier = identifier
        self._state = SessionState(phase=SessionPhase.AWAITING_PERMISSION)
        self._notify()

        try:
            status = await self._gate.acquire()
        except LocationPermissionError as exc:
            if generation == self._generation:
                self._fail_start(exc.message, denied=exc.reason is PermissionFailure.DENIED)
            return self.state
        except Exception as exc:
            logger.exception("Permission check failed")
            if generation == self._generation:
                self._fail_start(str(exc) or "Failed to get location permission", denied=False)
            return self.state

        if generation != self._generation:
            # Torn down while the gate was pending
            return self.state

        self._state.permission_status = status
        self._state.phase = SessionPhase.ACTIVE
        self._state.tracking_enabled = True
        self._state.last_error = None
        self._arm_timer(generation)
        self._notify()
        logger.info("Tracking started for %s (every %.1fs)", identifier, self._interval)

        # The immediate first sample; the timer's first firing is one interval out
        self._tick_task = self._spawn_tick(generation)
        await asyncio.wait({self._tick_task})
        return self.state

    def _fail_start(self, message: str, *, denied: bool) -> None:
        if denied:
            self._state.permission_status = PermissionStatus.DENIED
        self._state.tracking_enabled = False
        self._state.phase = SessionPhase.IDLE
        self._state.last_error = message
        self._identifier = None
        logger.error("Location Error: %s", message)
        self._notify()

    async def stop(self) -> SessionState:
        """Disarm the timer and reset the session; a no-op unless active.

        A tick already in flight finishes, but its results are discarded.
        """
        if self._state.phase is not SessionPhase.ACTIVE:
            logger.debug("stop() ignored: session is %s", self._state.phase.value)
            return self.state

        self._generation += 1
        timer = self._disarm_timer()
        self._identifier = None
        self._state = SessionState()
        self._notify()
        logger.info("Tracking stopped")

        if timer is not None:
            await asyncio.wait({timer}, timeout=_TEARDOWN_WAIT_S)
        return self.state

    async def reset(self) -> SessionState:
        """Stop any session and clear all state (the operator changed vehicle)."""
        if self._state.phase is SessionPhase.ACTIVE:
            return await self.stop()
        self._generation += 1
        self._identifier = None
        self._state = SessionState()
        self._notify()
        return self.state

    async def aclose(self) -> None:
        """Tear down: disarm the timer and cancel any in-flight tick. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._generation += 1

        waits: set[asyncio.Task] = set()
        timer = self._disarm_timer()
        if timer is not None:
            waits.add(timer)
        for task in list(self._pending_ticks):
            if not task.done():
                task.cancel()
                waits.add(task)

        if self._state.phase is not SessionPhase.IDLE:
            self._identifier = None
            self._state = SessionState()
            self._notify()

        if waits:
            await asyncio.wait(waits, timeout=_TEARDOWN_WAIT_S)
        logger.debug("Controller closed")

    async def __aenter__(self) -> "SessionController":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # =========================================================================
    # Timer
    # =========================================================================

    def _arm_timer(self, generation: int) -> None:
        if self.timer_armed:
            logger.warning("Timer already armed; not arming a second one")
            return
        self._timer_task = create_logged_task(
            self._run_timer(generation), logger=logger, context="tracking-timer"
        )

    def _disarm_timer(self) -> Optional[asyncio.Task]:
        timer, self._timer_task = self._timer_task, None
        if timer is None or timer.done():
            return None
        timer.cancel()
        return timer

    async def _run_timer(self, generation: int) -> None:
        loop = asyncio.get_running_loop()
        next_fire = loop.time() + self._interval

        while generation == self._generation:
            await asyncio.sleep(max(0.0, next_fire - loop.time()))
            if generation != self._generation:
                break

            if self._tick_task is not None and not self._tick_task.done():
                logger.debug("Previous tick still running; skipping this one")
            else:
                self._tick_task = self._spawn_tick(generation)

            # Fixed rate; slots missed by a slow tick are dropped, not replayed
            now = loop.time()
            next_fire += self._interval
            while next_fire <= now:
                next_fire += self._interval

    # =========================================================================
    # Tick
    # =========================================================================

    def _spawn_tick(self, generation: int) -> asyncio.Task:
        return create_logged_task(
            self._tick(generation),
            logger=logger,
            context="tracking-tick",
            pending=self._pending_ticks,
        )

    def _is_current(self, generation: int) -> bool:
        return (
            generation == self._generation
            and not self._closed
            and self._state.phase is SessionPhase.ACTIVE
        )

    def _record_failure(self, generation: int, message: str) -> None:
        if not self._is_current(generation):
            return
        self._state.last_error = message
        self._notify()

    async def _tick(self, generation: int) -> None:
        identifier = self._identifier

        try:
            sample = await self._source.fetch_current(
                timeout=self._fix_timeout, max_age=self._fix_max_age
            )
        except PositionError as exc:
            logger.warning("Tracking error: %s", exc)
            self._record_failure(generation, str(exc))
            return
        except Exception as exc:
            logger.exception("Unexpected error while fetching position")
            self._record_failure(generation, f"Location error: {exc}")
            return

        if not self._is_current(generation):
            logger.debug("Discarding sample from a stopped session")
            return

        self._state.last_sample = sample
        self._notify()

        try:
            await self._channel.send(identifier, sample)
        except TransmissionError as exc:
            logger.error("Failed to send location: %s", exc.message)
            self._record_failure(generation, exc.message)
            return
        except Exception as exc:
            logger.exception("Unexpected error while sending location")
            self._record_failure(generation, str(exc) or "Failed to send location")
            return

        if not self._is_current(generation):
            return

        sent_at = self._clock()
        previous = self._state.last_send_timestamp
        if previous is not None and sent_at < previous:
            # Wall clock stepped backwards; the timestamp only advances
            sent_at = previous
        self._state.last_send_timestamp = sent_at
        self._state.last_error = None
        self._notify()
        logger.info("Location sent, updated at %s", format_last_update(sent_at))


__all__ = ["SessionController"]
