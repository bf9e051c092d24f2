"""Receiver transports."""

from .base_transport import BaseReceiverTransport
from .serial_transport import SerialReceiverTransport

__all__ = ["BaseReceiverTransport", "SerialReceiverTransport"]
