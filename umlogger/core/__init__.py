"""Core data structures and sampling logic for umlogger."""

from .errors import ClockError, MeterError, ShutdownRequested, TransportError
from .measurement import (
    FRAME_SIZE,
    EnergySlot,
    MeasurementRecord,
    SampleEvent,
    decode_frame,
    encode_frame,
)
from .formatter import OutputFormatter, render
from .scheduler import SampleScheduler, ShutdownToken
from .statistics import SessionStatistics
from .settings import AppSettings

__all__ = [
    'FRAME_SIZE',
    'EnergySlot',
    'MeasurementRecord',
    'SampleEvent',
    'decode_frame',
    'encode_frame',
    'OutputFormatter',
    'render',
    'SampleScheduler',
    'ShutdownToken',
    'SessionStatistics',
    'AppSettings',
    'MeterError',
    'TransportError',
    'ClockError',
    'ShutdownRequested',
]
