from __future__ import annotations

import random
from dataclasses import fields
from typing import List, Optional

import pytest

from umlogger.core.measurement import (
    ENERGY_SLOT_COUNT,
    EnergySlot,
    MeasurementRecord,
    encode_frame,
)
from umlogger.core.scheduler import ShutdownToken


def make_record(**overrides) -> MeasurementRecord:
    values = {f.name: 0 for f in fields(MeasurementRecord)}
    values["energy_slots"] = tuple(EnergySlot(0, 0) for _ in range(ENERGY_SLOT_COUNT))
    values.update(overrides)
    return MeasurementRecord(**values)


class FakeStream:
    """In-memory serial port answering each 0xF0 with a queued frame."""

    def __init__(
        self,
        frames: List[bytes],
        max_chunk: int = 130,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.frames = list(frames)
        self.max_chunk = max_chunk
        self.rng = rng
        self.written = bytearray()
        self.pending = bytearray()
        self.opened = False
        self.closed = False
        self.on_read = None

    def __enter__(self) -> "FakeStream":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        self.opened = True

    def close(self) -> None:
        self.closed = True

    def write(self, data: bytes) -> int:
        self.written.extend(data)
        for byte in data:
            if byte == 0xF0 and self.frames:
                self.pending.extend(self.frames.pop(0))
        return len(data)

    def read(self, size: int) -> bytes:
        if self.on_read is not None:
            self.on_read(self)
        if not self.pending:
            return b""
        limit = min(size, self.max_chunk, len(self.pending))
        if self.rng is not None:
            limit = self.rng.randint(1, limit)
        chunk = bytes(self.pending[:limit])
        del self.pending[:limit]
        return chunk


class FakeClock:
    """Monotonic nanosecond clock that only moves when told to."""

    def __init__(self, start_ns: int = 5_000_000_000) -> None:
        self.now_ns = start_ns

    def __call__(self) -> int:
        return self.now_ns

    def advance(self, seconds: float) -> None:
        self.now_ns += round(seconds * 1_000_000_000)


class ClockToken(ShutdownToken):
    """Shutdown token whose waits move a FakeClock instead of sleeping."""

    def __init__(self, clock: FakeClock) -> None:
        super().__init__()
        self.clock = clock
        self.waits: List[float] = []
        self.set_during_wait_after: Optional[int] = None

    def wait(self, seconds: float) -> bool:
        self.waits.append(seconds)
        if self.set_during_wait_after is not None and len(self.waits) > self.set_during_wait_after:
            self.set()
            return True
        if seconds > 0:
            self.clock.advance(seconds)
        return self.is_set()


@pytest.fixture()
def record_factory():
    return make_record


@pytest.fixture()
def sample_record() -> MeasurementRecord:
    slots = [EnergySlot(i * 10, i * 20) for i in range(ENERGY_SLOT_COUNT)]
    slots[3] = EnergySlot(123456, 654321)
    return make_record(
        millivolts=20000,
        tenths_milliamps=15000,
        milliwatts=300000,
        temp_celsius=27,
        temp_fahrenheit=80,
        data_group=3,
        energy_slots=tuple(slots),
        resistance_deciohms=133,
    )


@pytest.fixture()
def sample_frame(sample_record) -> bytes:
    return encode_frame(sample_record)


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()
