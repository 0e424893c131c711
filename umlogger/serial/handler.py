"""Low-level serial port handler."""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

import serial

from .config import SerialConfig

# Platform-specific imports for direct serial access (Linux only)
_IS_LINUX = sys.platform.startswith('linux')
if _IS_LINUX:
    import fcntl
    import termios

logger = logging.getLogger(__name__)


class SerialPortHandler:
    """Handles low-level serial port operations.

    Reads block until at least one byte is available; there is no read
    timeout. Closing restores the terminal attributes found at open time.
    """

    def __init__(self, port: str, baud: int = SerialConfig.DEFAULT_BAUD):
        self.port = port
        self.baud = baud
        self._fd: Optional[int] = None
        self._saved_attrs: Optional[list] = None
        self._ser: Optional[serial.Serial] = None
        self._use_direct = False

    @property
    def is_open(self) -> bool:
        """Check if port is open."""
        if self._use_direct:
            return self._fd is not None
        return self._ser is not None and self._ser.is_open

    def __enter__(self) -> 'SerialPortHandler':
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        """Open serial port, trying direct method first (Linux), then pyserial."""
        # On other platforms, only use pyserial
        if not _IS_LINUX:
            try:
                self._open_pyserial()
                self._use_direct = False
                logger.info("Opened %s using pyserial", self.port, extra={"device": self.port})
            except (OSError, ValueError) as e:
                raise ConnectionError(
                    f"Cannot open {self.port}: {e}\n"
                    "Check that the device exists and permissions are correct."
                ) from e
            return

        # On Linux, try direct method first, then pyserial
        try:
            self._open_direct()
            self._use_direct = True
            logger.info("Opened %s using direct file descriptor", self.port, extra={"device": self.port})
        except (OSError, termios.error) as e1:
            logger.warning("Direct open failed: %s, trying pyserial...", e1)
            try:
                self._open_pyserial()
                self._use_direct = False
                logger.info("Opened %s using pyserial", self.port, extra={"device": self.port})
            except (OSError, ValueError) as e2:
                raise ConnectionError(
                    f"Cannot open {self.port}:\n"
                    f"  Direct: {e1}\n"
                    f"  PySerial: {e2}\n"
                    "Check that the device exists and permissions are correct."
                ) from e2

    def _open_direct(self) -> None:
        """Open serial port using direct file descriptor (Linux)."""
        self._fd = os.open(self.port, os.O_RDWR | os.O_NOCTTY | os.O_NONBLOCK)

        try:
            if os.isatty(self._fd):
                self._configure_tty()

            # Clear non-blocking flag
            flags = fcntl.fcntl(self._fd, fcntl.F_GETFL)
            fcntl.fcntl(self._fd, fcntl.F_SETFL, flags & ~os.O_NONBLOCK)
        except (OSError, termios.error):
            self._close_fd()
            raise

    def _configure_tty(self) -> None:
        attrs = termios.tcgetattr(self._fd)
        self._saved_attrs = [list(a) if isinstance(a, list) else a for a in attrs]
        baud_constant = getattr(termios, f'B{self.baud}', termios.B9600)

        # Set baud rate
        attrs[4] = baud_constant  # ispeed
        attrs[5] = baud_constant  # ospeed

        # Configure for raw mode (8N1), block until one byte arrives
        attrs[0] = 0  # iflag
        attrs[1] = 0  # oflag
        attrs[2] = termios.CS8 | termios.CREAD | termios.CLOCAL  # cflag
        attrs[3] = 0  # lflag
        attrs[6][termios.VMIN] = 1
        attrs[6][termios.VTIME] = 0

        termios.tcsetattr(self._fd, termios.TCSANOW, attrs)

        # Flush buffers
        termios.tcflush(self._fd, termios.TCIOFLUSH)

    def _open_pyserial(self) -> None:
        """Open serial port using pyserial."""
        self._ser = serial.Serial(
            self.port,
            self.baud,
            timeout=None,
        )
        self._ser.reset_input_buffer()  # Flush any old data

    def write(self, data: bytes) -> int:
        """Write bytes, returning how many were accepted."""
        if self._use_direct and self._fd is not None:
            return os.write(self._fd, data)
        if self._ser:
            written = self._ser.write(data)
            self._ser.flush()
            return len(data) if written is None else written
        raise OSError(f"Serial port {self.port} is not open")

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes; returns b'' when the stream is closed."""
        if self._use_direct and self._fd is not None:
            return os.read(self._fd, size)
        if self._ser:
            return self._ser.read(size)
        raise OSError(f"Serial port {self.port} is not open")

    def close(self) -> None:
        """Restore the link and close all serial connections."""
        self._close_fd()
        self._close_pyserial()

    def _close_fd(self) -> None:
        """Restore terminal attributes and close file descriptor."""
        if self._fd is not None:
            if self._saved_attrs is not None:
                try:
                    termios.tcflush(self._fd, termios.TCIOFLUSH)
                    termios.tcsetattr(self._fd, termios.TCSANOW, self._saved_attrs)
                except (OSError, termios.error) as e:
                    logger.warning("Could not restore %s settings: %s", self.port, e)
                self._saved_attrs = None
            try:
                os.close(self._fd)
            except OSError as e:
                logger.warning("Error closing %s: %s", self.port, e)
            self._fd = None

    def _close_pyserial(self) -> None:
        """Close pyserial connection."""
        if self._ser:
            try:
                if self._ser.is_open:
                    self._ser.reset_output_buffer()
                    self._ser.close()
            except (OSError, serial.SerialException) as e:
                logger.warning("Error closing %s: %s", self.port, e)
            self._ser = None
