from __future__ import annotations

import random
import struct

import pytest

from umlogger.core.measurement import (
    ENERGY_SLOTS_OFFSET,
    FRAME_LAYOUT,
    FRAME_SIZE,
    EnergySlot,
    decode_frame,
    encode_frame,
)

from conftest import make_record


def test_layout_covers_every_byte_once() -> None:
    covered = [0] * FRAME_SIZE
    for f in FRAME_LAYOUT:
        for i in range(f.offset, f.offset + f.width):
            covered[i] += 1
    for i in range(ENERGY_SLOTS_OFFSET, ENERGY_SLOTS_OFFSET + 80):
        covered[i] += 1
    assert covered == [1] * FRAME_SIZE


def test_decode_reads_big_endian_fields() -> None:
    raw = bytearray(FRAME_SIZE)
    struct.pack_into(">H", raw, 2, 5123)
    struct.pack_into(">H", raw, 4, 12345)
    struct.pack_into(">I", raw, 6, 63_245)
    struct.pack_into(">h", raw, 10, 31)
    struct.pack_into(">h", raw, 12, 88)
    struct.pack_into(">H", raw, 14, 7)
    struct.pack_into(">II", raw, 16 + 7 * 8, 1000, 5000)
    struct.pack_into(">H", raw, 96, 59)
    struct.pack_into(">H", raw, 98, 61)
    struct.pack_into(">H", raw, 100, 2)
    struct.pack_into(">I", raw, 102, 30)
    struct.pack_into(">I", raw, 112, 3600)
    struct.pack_into(">H", raw, 116, 1)
    struct.pack_into(">I", raw, 122, 99999)
    struct.pack_into(">H", raw, 126, 4)

    record = decode_frame(bytes(raw))

    assert record.millivolts == 5123
    assert record.tenths_milliamps == 12345
    assert record.milliwatts == 63_245
    assert record.temp_celsius == 31
    assert record.temp_fahrenheit == 88
    assert record.data_group == 7
    assert record.energy_slots[7] == EnergySlot(1000, 5000)
    assert record.active_slot == EnergySlot(1000, 5000)
    assert record.dplus_centivolts == 59
    assert record.dminus_centivolts == 61
    assert record.charge_mode == 2
    assert record.milliamps_threshold == 30
    assert record.recording_seconds == 3600
    assert record.is_recording is True
    assert record.resistance_deciohms == 99999
    assert record.current_screen == 4


def test_decode_keeps_raw_units_and_exposes_scaled_properties(sample_frame) -> None:
    record = decode_frame(sample_frame)

    assert record.millivolts == 20000
    assert record.voltage == pytest.approx(20.0)
    assert record.current == pytest.approx(1.5)
    assert record.power == pytest.approx(300.0)
    assert record.resistance == pytest.approx(13.3)


def test_negative_temperature_decodes_signed() -> None:
    raw = bytearray(FRAME_SIZE)
    raw[10:12] = b"\xff\xf6"

    assert decode_frame(bytes(raw)).temp_celsius == -10


def test_active_slot_is_none_for_out_of_range_group() -> None:
    record = make_record(data_group=12)

    assert record.active_slot is None


@pytest.mark.parametrize("size", [0, 129, 131])
def test_decode_rejects_wrong_size(size: int) -> None:
    with pytest.raises(ValueError):
        decode_frame(bytes(size))


def test_round_trip_reproduces_random_frames() -> None:
    rng = random.Random(1234)
    for _ in range(200):
        raw = bytes(rng.getrandbits(8) for _ in range(FRAME_SIZE))
        assert encode_frame(decode_frame(raw)) == raw


def test_round_trip_extreme_frames() -> None:
    for raw in (bytes(FRAME_SIZE), b"\xff" * FRAME_SIZE):
        assert encode_frame(decode_frame(raw)) == raw


def test_encode_requires_ten_slots() -> None:
    record = make_record(energy_slots=(EnergySlot(1, 1),))

    with pytest.raises(ValueError):
        encode_frame(record)
