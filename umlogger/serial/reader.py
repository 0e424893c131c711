"""Sampling loop for the meter.

Each cycle requests a status frame, stamps it with the monotonic clock,
decodes it and emits one formatted line. The scheduler decides when the next
cycle starts; the shutdown token decides whether it starts at all.
"""

from __future__ import annotations

import logging
import sys
import time
from typing import Callable, Optional

from ..core.errors import ClockError, ShutdownRequested
from ..core.formatter import OutputFormatter
from ..core.measurement import SampleEvent, decode_frame
from ..core.scheduler import SampleScheduler, ShutdownToken
from ..core.statistics import SessionStatistics
from .config import SerialConfig
from .handler import SerialPortHandler
from .transport import DeviceTransport

logger = logging.getLogger(__name__)


def _stdout_emit(line: str) -> None:
    sys.stdout.write(line)
    sys.stdout.flush()


class SerialReader:
    """Drives request, decode, render and emit once per scheduler cycle."""

    def __init__(
        self,
        transport: DeviceTransport,
        formatter: OutputFormatter,
        scheduler: SampleScheduler,
        cancel: ShutdownToken,
        emit: Callable[[str], None] = _stdout_emit,
        clock: Callable[[], int] = time.monotonic_ns,
    ):
        self._transport = transport
        self._formatter = formatter
        self._scheduler = scheduler
        self._cancel = cancel
        self._emit = emit
        self._clock = clock
        self._sequence = 0
        self.statistics = SessionStatistics()

    def run(self) -> SessionStatistics:
        """Sample until shutdown is requested.

        Raises:
            TransportError: The exchange with the device failed.
            ClockError: The clock could not be read or waited on.
        """
        try:
            self._scheduler.run(self._cycle)
        except ShutdownRequested:
            logger.debug("Shutdown before request", extra={"cycle": self._sequence})
        return self.statistics

    def _cycle(self) -> None:
        raw = self._transport.request_frame(cancel=self._cancel)
        try:
            now = self._clock()
        except OSError as e:
            raise ClockError(f"Failed to get time: {e}") from e

        event = SampleEvent(decode_frame(raw), now, self._sequence)
        self._sequence += 1
        self._emit(self._formatter.render(event.record, event.timestamp_ns))
        self.statistics.add(event)


class Session:
    """Owns the open device for one sampling run.

    Usable as a context manager; the link is restored and closed on every exit
    path.
    """

    def __init__(
        self,
        device: str,
        template: str,
        interval: float,
        baud: int = SerialConfig.DEFAULT_BAUD,
        cancel: Optional[ShutdownToken] = None,
        emit: Callable[[str], None] = _stdout_emit,
        handler_factory: Callable[[str, int], SerialPortHandler] = SerialPortHandler,
    ):
        self.device = device
        self.cancel = cancel if cancel is not None else ShutdownToken()
        self._formatter = OutputFormatter(template)
        self._scheduler = SampleScheduler(interval, self.cancel)
        self._emit = emit
        self._handler = handler_factory(device, baud)
        self.transport = DeviceTransport(self._handler)

    def __enter__(self) -> 'Session':
        logger.info("Connecting...", extra={"device": self.device})
        self._handler.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        logger.info("Quitting...")
        self._handler.close()

    def clear_sums(self) -> None:
        self.transport.clear_sums(cancel=self.cancel)

    def run(self) -> SessionStatistics:
        logger.info("Starting...", extra={"interval": self._scheduler.interval})
        reader = SerialReader(
            self.transport,
            self._formatter,
            self._scheduler,
            self.cancel,
            emit=self._emit,
        )
        stats = reader.run()
        logger.info(stats.summary())
        return stats
