"""Signal sources: constants, impulse trains, noise and breakpoint envelopes."""

from __future__ import annotations

import math
import sys
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field, replace
from itertools import islice
from typing import TypeVar

from .node import (
    Buffer,
    Inputs,
    Message,
    Node,
    SetBPM,
    SetPattern,
    SetPoints,
    SetToBool,
    SetToNumber,
    TimeList,
)

_MASK64 = (1 << 64) - 1

_N = TypeVar("_N", bound=Node)


def _to_count(value: float, limit: int = sys.maxsize) -> int:
    """Truncate to a non-negative integer, saturating like an unsigned cast."""
    if math.isnan(value) or value <= 0:
        return 0
    if math.isinf(value):
        return limit
    return min(int(value), limit)


def _div(a: float, b: float) -> float:
    """Floating division that yields inf or nan instead of raising on zero."""
    if b == 0:
        if a == 0:
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _cycle_dur(bpm: float) -> float:
    """Length of one four-beat cycle in seconds."""
    return 60.0 / bpm * 4.0


def _copy_with(node: _N, **changes: object) -> _N:
    """A copy of a dataclass node with its own input order list."""
    return replace(node, input_order=list(node.input_order), **changes)  # type: ignore[type-var]


def _noise(seed: int) -> Iterator[float]:
    """Deterministic hash noise in the range (-1, 1]."""
    while True:
        x = seed
        seed = (seed + 1) & _MASK64
        x = ((x << 13) ^ x) & _MASK64
        inner = (x * x * 15_731 + 789_221) & _MASK64
        n = (x * inner + 1_376_312_589) & 0x7FFFFFFF
        yield 1.0 - n / 1_073_741_824.0


@dataclass
class ConstSig(Node):
    """A constant value that events and a looping pattern can change over time."""

    val: float
    events: list[tuple[float, float]] = field(default_factory=list)
    pattern: list[tuple[float, float]] = field(default_factory=list)
    span: float = 1.0
    bpm: float = 120.0
    sr: int = 44100
    step: int = 0
    input_order: list[int] = field(default_factory=list)

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        cycle_dur = _cycle_dur(self.bpm)
        bar_len = _to_count(cycle_dur * self.span * self.sr)
        targets = [
            (value, _to_count(at * cycle_dur * self.sr))
            for value, at in (*self.events, *self.pattern)
        ]
        out = output[0]
        values = []
        for _ in out:
            position = self.step % bar_len
            for value, at in targets:
                if position == at:
                    self.val = value
            values.append(self.val)
            self.step += 1
        out[:] = values

    def send_msg(self, info: Message) -> None:
        match info:
            case SetPattern(pattern=pattern, span=span):
                self.pattern = list(pattern)
                self.span = span
            case SetToNumber(pos=0, value=value):
                self.val = value
            case SetBPM(bpm=bpm):
                self.bpm = bpm
            case _:
                self._update_order(info, allow_reset=False)


def _period(sr: int, freq: float) -> int:
    return _to_count(_div(float(sr), freq))


@dataclass
class Impulse(Node):
    """Emits 1.0 once every ``period`` samples and 0.0 otherwise."""

    period: int = 44100
    sr: int = 44100
    clock: int = 0
    input_order: list[int] = field(default_factory=list)

    def with_freq(self, freq: float) -> Impulse:
        """A copy whose period matches ``freq`` at the current sample rate."""
        return _copy_with(self, period=_period(self.sr, freq))

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        out = output[0]
        start = self.clock
        out[:] = [1.0 if (start + k) % self.period == 0 else 0.0 for k in range(len(out))]
        self.clock += len(out)

    def send_msg(self, info: Message) -> None:
        match info:
            case SetToNumber(pos=0, value=value):
                self.period = _period(self.sr, value)
            case _:
                self._update_order(info, allow_reset=False)


class Noise(Node):
    """White noise from a seeded deterministic generator."""

    def __init__(self, seed: int) -> None:
        self.seed = seed
        self._stream = _noise(seed & _MASK64)
        self.input_order: list[int] = []

    def __repr__(self) -> str:
        return f"Noise(seed={self.seed!r})"

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        for buf in output:
            buf[:] = list(islice(self._stream, len(buf)))

    def send_msg(self, info: Message) -> None:
        match info:
            case SetToNumber(pos=0, value=value):
                self.seed = _to_count(value, _MASK64)
                self._stream = _noise(self.seed)
            case _:
                self._update_order(info, allow_reset=False)


@dataclass
class Points(Node):
    """Linear interpolation between timed breakpoints, optionally looping."""

    point_list: list[tuple[int, float]] = field(default_factory=list)
    span: float = 1.0
    bpm: float = 120.0
    sr: int = 44100
    step: int = 0
    is_looping: bool = False
    input_order: list[int] = field(default_factory=list)

    def _bar_dur(self) -> float:
        return _cycle_dur(self.bpm) * self.span * self.sr

    def _make_point_list(self, points: Sequence[tuple[TimeList, float]]) -> list[tuple[int, float]]:
        if not points:
            raise ValueError("a point list needs at least one point")
        bar_dur = self._bar_dur()
        point_list = [(time.to_samples(bar_dur, self.sr), float(value)) for time, value in points]
        if point_list[0][0] != 0:
            point_list.insert(0, (0, 0.0))
        return point_list

    def with_points(self, points: Sequence[tuple[TimeList, float]]) -> Points:
        """A copy holding ``points`` converted with the current bpm, rate and span."""
        return _copy_with(self, point_list=self._make_point_list(points))

    def _once(self, samples: list[tuple[int, float]]) -> float:
        pos = self.step
        found = next((k for k, (at, _) in enumerate(samples) if pos <= at), None)
        index = 0 if found is None else found - 1
        # At the very first point the index falls before the list and the
        # last value is produced, as does any index at or past the final point.
        if 0 <= index < len(samples) - 1:
            prev_pos, prev_val = samples[index]
            next_pos, next_val = samples[index + 1]
            t = _div(pos - prev_pos, next_pos - prev_pos)
            return prev_val + t * (next_val - prev_val)
        return samples[-1][1]

    def _looped(self, samples: list[tuple[int, float]], period: int) -> float:
        pos = self.step % period
        found = next(((k, p) for k, p in enumerate(samples) if pos <= p[0]), None)
        if found is None:
            index, (prev_pos, prev_val) = len(samples) - 1, samples[-1]
        else:
            index, (prev_pos, prev_val) = found
        next_pos, next_val = samples[(index + 1) % len(samples)]
        if found is None:
            t = _div(pos - prev_pos, period - prev_pos + next_pos)
        else:
            t = _div(pos - prev_pos, next_pos - prev_pos)
        return prev_val + t * (next_val - prev_val)

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        samples = self.point_list
        if not samples:
            return
        out = output[0]
        period = _to_count(self._bar_dur())
        values = []
        for _ in out:
            if self.is_looping:
                values.append(self._looped(samples, period))
            else:
                values.append(self._once(samples))
            self.step += 1
        out[:] = values

    def send_msg(self, info: Message) -> None:
        match info:
            case SetPoints(pos=0, points=points):
                self.point_list = self._make_point_list(points)
                self.step = 0
            case SetToNumber(pos=1, value=value):
                self.span = value
                self.step = 0
            case SetToBool(pos=2, value=value):
                self.is_looping = value
                self.step = 0
            case SetBPM(bpm=bpm):
                self.bpm = bpm
            case _:
                self._update_order(info, allow_reset=False)


__all__ = ["ConstSig", "Impulse", "Noise", "Points"]