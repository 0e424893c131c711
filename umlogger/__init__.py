"""umlogger package."""

from .version import __version__, __version_info__, APP_NAME
from .core import (
    AppSettings,
    MeasurementRecord,
    OutputFormatter,
    SampleScheduler,
    SessionStatistics,
    ShutdownToken,
    decode_frame,
)
from .serial import DeviceTransport, SerialConfig, SerialReader, Session

__all__ = [
    "__version__",
    "__version_info__",
    "APP_NAME",
    "AppSettings",
    "MeasurementRecord",
    "OutputFormatter",
    "SampleScheduler",
    "SessionStatistics",
    "ShutdownToken",
    "decode_frame",
    "DeviceTransport",
    "SerialConfig",
    "SerialReader",
    "Session",
]
