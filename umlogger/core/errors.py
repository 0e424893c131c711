"""Error taxonomy for the sampling loop."""

from __future__ import annotations


class MeterError(Exception):
    """Base class for errors raised while talking to the meter."""


class TransportError(MeterError):
    """Write or read failure, or the stream closed during an exchange."""


class ClockError(MeterError):
    """The monotonic clock could not be read or waited on."""


class ShutdownRequested(MeterError):
    """Shutdown was requested; not a failure."""
