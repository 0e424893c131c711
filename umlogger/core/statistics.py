"""Statistical summary of a sampling session."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .measurement import EnergySlot, SampleEvent


@dataclass
class _Range:
    minimum: float = float("inf")
    maximum: float = float("-inf")
    total: float = 0.0

    def add(self, value: float) -> None:
        self.minimum = min(self.minimum, value)
        self.maximum = max(self.maximum, value)
        self.total += value


@dataclass
class SessionStatistics:
    """Running summary of a session.

    Only aggregates are kept, so memory use does not grow with the number of
    samples.
    """
    count: int = 0
    first_ns: Optional[int] = None
    last_ns: Optional[int] = None
    voltage: _Range = field(default_factory=_Range)
    current: _Range = field(default_factory=_Range)
    power: _Range = field(default_factory=_Range)
    first_group: Optional[int] = None
    first_slot: Optional[EnergySlot] = None
    last_slot: Optional[EnergySlot] = None

    def add(self, event: SampleEvent) -> None:
        record = event.record
        self.count += 1
        if self.first_ns is None:
            self.first_ns = event.timestamp_ns
            self.first_group = record.data_group
            self.first_slot = record.active_slot
        self.last_ns = event.timestamp_ns
        # Sums are compared within the group selected when the session started.
        if 0 <= self.first_group < len(record.energy_slots):
            self.last_slot = record.energy_slots[self.first_group]
        else:
            self.last_slot = None
        self.voltage.add(record.voltage)
        self.current.add(record.current)
        self.power.add(record.power)

    @property
    def duration_seconds(self) -> float:
        if self.first_ns is None or self.last_ns is None:
            return 0.0
        return (self.last_ns - self.first_ns) / 1e9

    def average(self, which: str) -> float:
        if self.count == 0:
            return 0.0
        return getattr(self, which).total / self.count

    @property
    def charge_ah(self) -> Optional[float]:
        """Change of the starting group's charge between first and last sample."""
        if self.first_slot is None or self.last_slot is None:
            return None
        return self.last_slot.amp_hours - self.first_slot.amp_hours

    @property
    def energy_wh(self) -> Optional[float]:
        if self.first_slot is None or self.last_slot is None:
            return None
        return self.last_slot.watt_hours - self.first_slot.watt_hours

    def summary(self) -> str:
        if self.count == 0:
            return "No samples collected"
        text = (
            f"{self.count} samples over {self.duration_seconds:.1f} s | "
            f"V {self.voltage.minimum:.3f}/{self.average('voltage'):.3f}/{self.voltage.maximum:.3f} | "
            f"A {self.current.minimum:.4f}/{self.average('current'):.4f}/{self.current.maximum:.4f} | "
            f"W {self.power.minimum:.3f}/{self.average('power'):.3f}/{self.power.maximum:.3f}"
        )
        if self.charge_ah is not None and self.energy_wh is not None:
            text += f" | +{self.charge_ah:.3f} Ah, +{self.energy_wh:.3f} Wh"
        return text
