"""Half-duplex command/response exchange with the meter.

One command byte goes out; for a data dump exactly one status frame comes
back. Serial reads may return any number of bytes up to the requested size,
so the response is collected in a loop.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Protocol

from ..core.errors import ShutdownRequested, TransportError
from ..core.scheduler import ShutdownToken
from .config import SerialConfig

logger = logging.getLogger(__name__)


class ByteStream(Protocol):
    def write(self, data: bytes) -> int: ...

    def read(self, size: int) -> bytes: ...


class DeviceTransport:
    """Sends commands to the meter and collects fixed-size responses."""

    def __init__(self, port: ByteStream):
        self._port = port

    def exchange(
        self,
        command: int,
        expected: int = SerialConfig.FRAME_SIZE,
        cancel: Optional[ShutdownToken] = None,
    ) -> bytes:
        """Send ``command`` and read exactly ``expected`` response bytes.

        Raises:
            ShutdownRequested: If ``cancel`` was set before the command went out.
            TransportError: On write/read failure or if the stream closes early.
        """
        if cancel is not None and cancel.is_set():
            raise ShutdownRequested()

        self._send(command)

        buf = bytearray()
        while len(buf) < expected:
            try:
                chunk = self._port.read(expected - len(buf))
            except OSError as e:
                raise TransportError(f"Failed to read from serial port: {e}") from e
            if not chunk:
                raise TransportError(
                    f"Serial stream closed after {len(buf)} of {expected} bytes"
                )
            buf.extend(chunk)
            if len(buf) < expected:
                logger.debug(
                    "Partial read",
                    extra={"command": f"0x{command:02X}", "received": len(buf)},
                )
        return bytes(buf)

    def request_frame(self, cancel: Optional[ShutdownToken] = None) -> bytes:
        return self.exchange(SerialConfig.CMD_DATA_DUMP, cancel=cancel)

    def clear_sums(self, cancel: Optional[ShutdownToken] = None) -> None:
        """Reset the device's accumulated sums and wait for it to settle."""
        if cancel is not None and cancel.is_set():
            raise ShutdownRequested()
        self._send(SerialConfig.CMD_CLEAR_SUMS)
        logger.info("Cleared accumulated sums")
        if cancel is not None:
            cancel.wait(SerialConfig.CLEAR_SETTLE_SECONDS)
        else:
            time.sleep(SerialConfig.CLEAR_SETTLE_SECONDS)

    def _send(self, command: int) -> None:
        try:
            written = self._port.write(bytes([command]))
        except OSError as e:
            raise TransportError(f"Failed to write to serial port: {e}") from e
        if written != 1:
            raise TransportError(f"Command 0x{command:02X} not written ({written} bytes)")
