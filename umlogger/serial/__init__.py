"""Serial communication package for umlogger."""

from .config import SerialConfig
from .handler import SerialPortHandler
from .transport import DeviceTransport
from .reader import SerialReader, Session
from .discovery import PortDiscovery

__all__ = [
    "SerialConfig",
    "SerialPortHandler",
    "DeviceTransport",
    "SerialReader",
    "Session",
    "PortDiscovery",
]
