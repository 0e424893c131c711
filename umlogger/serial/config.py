"""Serial link and device protocol constants."""

from __future__ import annotations

from ..core.measurement import FRAME_SIZE


class SerialConfig:
    """Configuration for the meter's serial link."""
    DEFAULT_DEVICE = "/dev/rfcomm0"  # Bluetooth SPP binding
    DEFAULT_BAUD = 9600

    CMD_DATA_DUMP = 0xF0  # answered with one status frame
    CMD_CLEAR_SUMS = 0xF4  # no answer
    CLEAR_SETTLE_SECONDS = 0.2  # device needs this before the next dump request

    FRAME_SIZE = FRAME_SIZE
