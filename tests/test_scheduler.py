from __future__ import annotations

import random
import threading
import time

import pytest

from umlogger.core.errors import ClockError
from umlogger.core.scheduler import SampleScheduler, ShutdownToken, split_interval

from conftest import ClockToken, FakeClock


@pytest.mark.parametrize(
    "interval, expected",
    [
        (1.0, (1, 0)),
        (0.5, (0, 500_000_000)),
        (2.25, (2, 250_000_000)),
        (0.001, (0, 1_000_000)),
    ],
)
def test_split_interval(interval: float, expected) -> None:
    assert split_interval(interval) == expected


@pytest.mark.parametrize("interval", [0, -1.0, float("nan"), float("inf")])
def test_split_interval_rejects_invalid(interval: float) -> None:
    with pytest.raises(ValueError):
        split_interval(interval)


def test_no_drift_with_random_processing_time(fake_clock: FakeClock) -> None:
    rng = random.Random(42)
    token = ClockToken(fake_clock)
    scheduler = SampleScheduler(0.5, token, clock=fake_clock)
    starts = []

    def cycle() -> None:
        starts.append(fake_clock())
        fake_clock.advance(rng.uniform(0.0, 0.4))
        if len(starts) == 100:
            token.set()

    assert scheduler.run(cycle) == 100

    gaps = [b - a for a, b in zip(starts, starts[1:])]
    assert all(abs(gap - 500_000_000) <= 2 for gap in gaps)
    assert abs((starts[-1] - starts[0]) - 99 * 500_000_000) <= 2


def test_deadline_advances_from_previous_deadline(fake_clock: FakeClock) -> None:
    scheduler = SampleScheduler(1.0, ClockToken(fake_clock), clock=fake_clock)
    first = scheduler.start()

    fake_clock.advance(0.7)

    assert scheduler.advance() == first + 1_000_000_000


def test_overrun_does_not_wait(fake_clock: FakeClock) -> None:
    token = ClockToken(fake_clock)
    scheduler = SampleScheduler(0.5, token, clock=fake_clock)
    scheduler.start()
    fake_clock.advance(0.8)
    scheduler.advance()

    assert scheduler.wait() is True
    assert token.waits[-1] < 0


def test_interrupt_during_wait_stops_loop(fake_clock: FakeClock) -> None:
    token = ClockToken(fake_clock)
    token.set_during_wait_after = 2
    scheduler = SampleScheduler(0.5, token, clock=fake_clock)
    calls = []

    completed = scheduler.run(lambda: calls.append(fake_clock()))

    assert completed == 3
    assert len(calls) == 3


def test_preset_token_runs_nothing(fake_clock: FakeClock) -> None:
    token = ClockToken(fake_clock)
    token.set()
    calls = []

    assert SampleScheduler(0.5, token, clock=fake_clock).run(lambda: calls.append(1)) == 0
    assert calls == []


def test_clock_failure_is_clock_error() -> None:
    def broken_clock() -> int:
        raise OSError(22, "Invalid argument")

    scheduler = SampleScheduler(1.0, ShutdownToken(), clock=broken_clock)

    with pytest.raises(ClockError, match="Invalid argument"):
        scheduler.start()


def test_wait_before_start_is_an_error() -> None:
    with pytest.raises(RuntimeError):
        SampleScheduler(1.0, ShutdownToken()).wait()


def test_real_token_wakes_waiting_scheduler() -> None:
    token = ShutdownToken()
    scheduler = SampleScheduler(30.0, token)
    scheduler.start()
    scheduler.advance()
    timer = threading.Timer(0.05, token.set)
    timer.start()

    started = time.monotonic()
    try:
        assert scheduler.wait() is False
    finally:
        timer.cancel()

    assert time.monotonic() - started < 5.0
