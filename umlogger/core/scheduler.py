"""Drift-free periodic sampling.

The scheduler keeps a single absolute deadline on the monotonic clock and
advances it by the interval from the previous deadline, never from the time
the cycle finished. A slow cycle therefore shortens the following wait
instead of shifting every later sample.
"""

from __future__ import annotations

import logging
import math
import signal
import threading
import time
from typing import Callable, Optional, Tuple

from .errors import ClockError

logger = logging.getLogger(__name__)

NANOS_PER_SECOND = 1_000_000_000


class ShutdownToken:
    """Cooperative cancellation flag shared by the scheduler and transport."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._previous_handlers: dict = {}

    def set(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True if the token was set meanwhile."""
        if seconds <= 0:
            return self._event.is_set()
        return self._event.wait(seconds)

    def install_signal_handlers(self) -> None:
        """Set the token on SIGINT/SIGTERM.

        A second SIGINT raises KeyboardInterrupt, which is the only way out of
        a read that the device never answers.
        """
        for signum in (signal.SIGINT, signal.SIGTERM):
            self._previous_handlers[signum] = signal.signal(signum, self._handle_signal)

    def restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def _handle_signal(self, signum, frame) -> None:
        if self.is_set() and signum == signal.SIGINT:
            signal.default_int_handler(signum, frame)
        logger.info("Interrupt received, finishing current sample")
        self.set()


def split_interval(interval: float) -> Tuple[int, int]:
    """Split an interval in seconds into whole seconds and nanoseconds.

    Raises:
        ValueError: If the interval is not a positive finite number.
    """
    if not math.isfinite(interval) or interval <= 0:
        raise ValueError(f"Sampling interval must be a positive number of seconds, got {interval!r}")
    seconds = math.trunc(interval)
    nanos = round((interval - seconds) * NANOS_PER_SECOND)
    if nanos >= NANOS_PER_SECOND:
        seconds += 1
        nanos -= NANOS_PER_SECOND
    return seconds, nanos


class SampleScheduler:
    """Runs a cycle every ``interval`` seconds against absolute deadlines."""

    def __init__(
        self,
        interval: float,
        cancel: ShutdownToken,
        clock: Callable[[], int] = time.monotonic_ns,
    ):
        seconds, nanos = split_interval(interval)
        self.interval = interval
        self._step_ns = seconds * NANOS_PER_SECOND + nanos
        self._cancel = cancel
        self._clock = clock
        self._deadline: Optional[int] = None

    @property
    def deadline(self) -> Optional[int]:
        """Next absolute deadline in monotonic nanoseconds."""
        return self._deadline

    def now(self) -> int:
        try:
            return self._clock()
        except OSError as e:
            raise ClockError(f"Failed to get time: {e}") from e

    def start(self) -> int:
        self._deadline = self.now()
        return self._deadline

    def advance(self) -> int:
        if self._deadline is None:
            raise RuntimeError("Scheduler not started")
        self._deadline += self._step_ns
        return self._deadline

    def wait(self) -> bool:
        """Block until the current deadline.

        Returns:
            False if shutdown was requested before or during the wait.
        """
        if self._deadline is None:
            raise RuntimeError("Scheduler not started")

        remaining = self._deadline - self.now()
        if remaining < -self._step_ns:
            logger.warning(
                "Sampling overran by %.3f s",
                -remaining / NANOS_PER_SECOND,
                extra={"interval": self.interval},
            )
        try:
            interrupted = self._cancel.wait(remaining / NANOS_PER_SECOND)
        except OSError as e:
            raise ClockError(f"Failed to sleep: {e}") from e
        return not interrupted

    def run(self, cycle: Callable[[], None]) -> int:
        """Call ``cycle`` once per interval until the token is set.

        Returns:
            Number of completed cycles.
        """
        completed = 0
        self.start()
        while not self._cancel.is_set():
            cycle()
            completed += 1
            if self._cancel.is_set():
                break
            self.advance()
            if not self.wait():
                break
        return completed
