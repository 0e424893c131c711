"""Template-driven rendering of measurement lines.

A template is plain text in which the token names below are replaced by
values, e.g. ``"Time Volt V, Amp A"``. Anything that is not a token is copied
verbatim, so no template can make rendering fail.
"""

from __future__ import annotations

from typing import Callable, List, Sequence, Tuple, Union

from .measurement import MeasurementRecord

Renderer = Callable[[MeasurementRecord, int], str]


def format_timestamp(timestamp_ns: int) -> str:
    """Render monotonic nanoseconds as ``seconds.milliseconds``."""
    seconds, rest = divmod(timestamp_ns, 1_000_000_000)
    return f"{seconds}.{rest // 1_000_000:03d}"


def _sum_amp(record: MeasurementRecord, _ts: int) -> str:
    slot = record.active_slot
    return f"{slot.amp_hours:.3f}" if slot else f"{float('nan'):.3f}"


def _sum_watt(record: MeasurementRecord, _ts: int) -> str:
    slot = record.active_slot
    return f"{slot.watt_hours:.3f}" if slot else f"{float('nan'):.3f}"


# (token, renderer, help). Kept longest-first so SumAmp is never read as Sum + Amp.
TOKENS: Tuple[Tuple[str, Renderer, str], ...] = (
    ("SumWatt", _sum_watt, "Accumulated energy of the active data group (Wh)"),
    ("SumAmp", _sum_amp, "Accumulated charge of the active data group (Ah)"),
    ("Time", lambda r, ts: format_timestamp(ts), "Monotonic timestamp (s.ms)"),
    ("Volt", lambda r, ts: f"{r.millivolts / 1000.0:.3f}", "Voltage (V)"),
    ("Watt", lambda r, ts: f"{r.milliwatts / 1000.0:.3f}", "Power (W)"),
    ("Temp", lambda r, ts: f"{r.temp_celsius:d}", "Temperature (Celsius)"),
    ("Amp", lambda r, ts: f"{r.tenths_milliamps / 10000.0:.4f}", "Current (A)"),
)

Segment = Union[str, Renderer]


def parse_template(template: str, tokens: Sequence[Tuple[str, Renderer, str]] = TOKENS) -> List[Segment]:
    """Split a template into literal strings and token renderers.

    Scans left to right, trying the longest token first at each position.
    Adjacent literal characters are merged into one segment.
    """
    ordered = sorted(tokens, key=lambda t: len(t[0]), reverse=True)
    segments: List[Segment] = []
    literal: List[str] = []
    pos = 0
    while pos < len(template):
        for name, renderer, _help in ordered:
            if template.startswith(name, pos):
                if literal:
                    segments.append("".join(literal))
                    literal = []
                segments.append(renderer)
                pos += len(name)
                break
        else:
            literal.append(template[pos])
            pos += 1
    if literal:
        segments.append("".join(literal))
    return segments


class OutputFormatter:
    """Renders one line per sample from a fixed template."""

    def __init__(self, template: str):
        self.template = template
        self._segments = parse_template(template)

    def render(self, record: MeasurementRecord, timestamp_ns: int) -> str:
        parts = [
            seg if isinstance(seg, str) else seg(record, timestamp_ns)
            for seg in self._segments
        ]
        parts.append("\n")
        return "".join(parts)


def render(template: str, record: MeasurementRecord, timestamp_ns: int) -> str:
    return OutputFormatter(template).render(record, timestamp_ns)


def token_help() -> str:
    """Describe the available tokens, one per line."""
    width = max(len(name) for name, _, _ in TOKENS)
    return "\n".join(f" * {name:<{width}} - {text}" for name, _, text in TOKENS)
