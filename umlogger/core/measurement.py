"""Measurement data structures and the device status frame codec.

The meter answers a data-dump command with a fixed 130 byte frame. Every
multi-byte field is big-endian. Offsets are listed explicitly in
``FRAME_LAYOUT``, which drives both decoding and encoding.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Optional, Tuple

FRAME_SIZE = 130
FRAME_LAYOUT_VERSION = 1

ENERGY_SLOTS_OFFSET = 16
ENERGY_SLOT_COUNT = 10
_SLOT_FORMAT = struct.Struct(">II")


@dataclass(frozen=True)
class FrameField:
    """One scalar field of the status frame."""
    name: str
    offset: int
    fmt: str  # big-endian struct code
    unit: str = ""
    scale: float = 1.0  # divide raw value by this to get the display unit

    @property
    def width(self) -> int:
        return struct.calcsize(self.fmt)


FRAME_LAYOUT: Tuple[FrameField, ...] = (
    FrameField("reserved_head", 0, ">H"),
    FrameField("millivolts", 2, ">H", "V", 1000.0),
    FrameField("tenths_milliamps", 4, ">H", "A", 10000.0),
    FrameField("milliwatts", 6, ">I", "W", 1000.0),
    # Temperatures are signed: 0xFFF6 is -10, where the vendor's C logger prints 65526.
    FrameField("temp_celsius", 10, ">h", "°C"),
    FrameField("temp_fahrenheit", 12, ">h", "°F"),
    FrameField("data_group", 14, ">H"),
    # 16..95: energy slots, see ENERGY_SLOTS_OFFSET
    FrameField("dplus_centivolts", 96, ">H", "V", 100.0),
    FrameField("dminus_centivolts", 98, ">H", "V", 100.0),
    FrameField("charge_mode", 100, ">H"),
    FrameField("milliamps_threshold", 102, ">I", "A", 1000.0),
    FrameField("milliwatts_threshold", 106, ">I", "W", 1000.0),
    FrameField("centivolts_threshold", 110, ">H", "V", 100.0),
    FrameField("recording_seconds", 112, ">I", "s"),
    FrameField("recording_active", 116, ">H"),
    FrameField("screen_timeout", 118, ">H", "s"),
    FrameField("screen_backlight", 120, ">H"),
    FrameField("resistance_deciohms", 122, ">I", "Ω", 10.0),
    FrameField("current_screen", 126, ">H"),
    FrameField("reserved_tail", 128, ">H"),
)


@dataclass(frozen=True)
class EnergySlot:
    """Accumulated charge and energy of one data group."""
    milliamp_hours: int
    milliwatt_hours: int

    @property
    def amp_hours(self) -> float:
        return self.milliamp_hours / 1000.0

    @property
    def watt_hours(self) -> float:
        return self.milliwatt_hours / 1000.0


@dataclass(frozen=True)
class MeasurementRecord:
    """Decoded status frame, host-endian and in the device's raw units."""
    reserved_head: int
    millivolts: int
    tenths_milliamps: int
    milliwatts: int
    temp_celsius: int
    temp_fahrenheit: int
    data_group: int
    energy_slots: Tuple[EnergySlot, ...]
    dplus_centivolts: int
    dminus_centivolts: int
    charge_mode: int
    milliamps_threshold: int
    milliwatts_threshold: int
    centivolts_threshold: int
    recording_seconds: int
    recording_active: int
    screen_timeout: int
    screen_backlight: int
    resistance_deciohms: int
    current_screen: int
    reserved_tail: int

    @property
    def voltage(self) -> float:
        """Bus voltage in volts."""
        return self.millivolts / 1000.0

    @property
    def current(self) -> float:
        """Bus current in amps."""
        return self.tenths_milliamps / 10000.0

    @property
    def power(self) -> float:
        """Instantaneous power in watts."""
        return self.milliwatts / 1000.0

    @property
    def resistance(self) -> float:
        return self.resistance_deciohms / 10.0

    @property
    def is_recording(self) -> bool:
        return self.recording_active != 0

    @property
    def active_slot(self) -> Optional[EnergySlot]:
        """Energy slot selected by the data-group index, if the index is valid."""
        if 0 <= self.data_group < len(self.energy_slots):
            return self.energy_slots[self.data_group]
        return None

    def __str__(self) -> str:
        return (
            f"MeasurementRecord("
            f"V={self.voltage:.3f}, "
            f"I={self.current:.4f}, "
            f"P={self.power:.3f}, "
            f"T={self.temp_celsius}, "
            f"group={self.data_group})"
        )


@dataclass(frozen=True)
class SampleEvent:
    """A decoded record paired with the monotonic time its frame arrived."""
    record: MeasurementRecord
    timestamp_ns: int
    sequence: int = 0


def decode_frame(raw: bytes) -> MeasurementRecord:
    """Decode a complete status frame.

    Args:
        raw: Exactly FRAME_SIZE bytes as received from the device.

    Returns:
        The decoded record. No value is clamped or validated.

    Raises:
        ValueError: If the buffer is not FRAME_SIZE bytes long.
    """
    if len(raw) != FRAME_SIZE:
        raise ValueError(f"Status frame must be {FRAME_SIZE} bytes, got {len(raw)}")

    values = {
        f.name: struct.unpack_from(f.fmt, raw, f.offset)[0]
        for f in FRAME_LAYOUT
    }
    values["energy_slots"] = tuple(
        EnergySlot(*_SLOT_FORMAT.unpack_from(raw, ENERGY_SLOTS_OFFSET + i * _SLOT_FORMAT.size))
        for i in range(ENERGY_SLOT_COUNT)
    )
    return MeasurementRecord(**values)


def encode_frame(record: MeasurementRecord) -> bytes:
    """Serialize a record back into the wire layout.

    Raises:
        ValueError: If the record does not carry ENERGY_SLOT_COUNT slots.
        struct.error: If a field does not fit its wire width.
    """
    if len(record.energy_slots) != ENERGY_SLOT_COUNT:
        raise ValueError(
            f"Expected {ENERGY_SLOT_COUNT} energy slots, got {len(record.energy_slots)}"
        )

    buf = bytearray(FRAME_SIZE)
    for f in FRAME_LAYOUT:
        struct.pack_into(f.fmt, buf, f.offset, getattr(record, f.name))
    for i, slot in enumerate(record.energy_slots):
        _SLOT_FORMAT.pack_into(
            buf, ENERGY_SLOTS_OFFSET + i * _SLOT_FORMAT.size,
            slot.milliamp_hours, slot.milliwatt_hours,
        )
    return bytes(buf)

