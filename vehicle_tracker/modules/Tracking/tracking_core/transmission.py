"""HTTP delivery of samples to the collection endpoint."""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import aiohttp

from vehicle_tracker.core.logging_utils import get_module_logger

from .constants import DEFAULT_SEND_TIMEOUT_S, JSON_CONTENT_TYPE
from .errors import TransmissionError
from .types import Sample

logger = get_module_logger("Transmission")


def build_envelope(identifier: str, sample: Sample) -> Dict[str, Any]:
    """Wire payload for one sample; ``ts`` is the capture time, not the send time."""
    return {
        "vehicleId": identifier,
        "lat": sample.latitude,
        "lon": sample.longitude,
        "speed": sample.speed_mps,
        "ts": sample.captured_at_ms,
    }


def encode_envelope(identifier: str, sample: Sample) -> bytes:
    return json.dumps(build_envelope(identifier, sample)).encode("utf-8")


def decode_envelope(body: bytes | str) -> tuple[str, Sample]:
    """Inverse of :func:`encode_envelope`, used by receivers and tests."""
    payload = json.loads(body)
    sample = Sample(
        latitude=float(payload["lat"]),
        longitude=float(payload["lon"]),
        speed_mps=float(payload["speed"]),
        captured_at_ms=int(payload["ts"]),
    )
    return str(payload["vehicleId"]), sample


class TransmissionChannel(ABC):
    """Delivers one sample; raises :class:`TransmissionError` on any failure."""

    @abstractmethod
    async def send(self, identifier: str, sample: Sample) -> None:
        ...

    async def close(self) -> None:
        return None


class HttpTransmissionChannel(TransmissionChannel):
    """POSTs each envelope as JSON with an aiohttp client session.

    No retries and no queueing: a failed sample is dropped and the caller
    moves on to the next tick.

    Example:
        async with HttpTransmissionChannel("https://example.com/api/positions") as channel:
            await channel.send("BUS-001", sample)
    """

    def __init__(
        self,
        endpoint_url: str,
        *,
        timeout: float = DEFAULT_SEND_TIMEOUT_S,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.endpoint_url = endpoint_url
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def send(self, identifier: str, sample: Sample) -> None:
        body = encode_envelope(identifier, sample)
        session = self._get_session()

        try:
            async with session.post(
                self.endpoint_url,
                data=body,
                headers={"Content-Type": JSON_CONTENT_TYPE},
                timeout=self._timeout,
            ) as response:
                status = response.status
                # Drain so the connection can be reused
                await response.read()
        except asyncio.TimeoutError:
            raise TransmissionError(
                f"Request to {self.endpoint_url} timed out after {self._timeout.total:g}s"
            ) from None
        except aiohttp.ClientError as exc:
            raise TransmissionError(
                f"Failed to send location: {str(exc) or type(exc).__name__}"
            ) from exc

        if not 200 <= status < 300:
            raise TransmissionError(f"HTTP error! status: {status}", http_status=status)

        logger.debug("Delivered sample for %s (ts=%d)", identifier, sample.captured_at_ms)

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "HttpTransmissionChannel":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


__all__ = [
    "HttpTransmissionChannel",
    "TransmissionChannel",
    "build_envelope",
    "decode_envelope",
    "encode_envelope",
]
