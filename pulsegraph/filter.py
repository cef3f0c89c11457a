"""Filters: resonant low/high pass biquads, a one-pole smoother and an all-pass."""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import InitVar, dataclass, field, replace
from typing import NamedTuple

from .node import (
    Buffer,
    Input,
    Inputs,
    Message,
    Node,
    SetPattern,
    SetToNumber,
)
from .signal import _div, _to_count

_TWO_PI = 2.0 * math.pi


class FixedRing:
    """A fixed-size ring buffer whose read position wraps around its length."""

    __slots__ = ("_data", "_first")

    def __init__(self, data: Iterable[float] = ()) -> None:
        self._data = [float(x) for x in data]
        self._first = 0

    @classmethod
    def zeros(cls, size: int) -> FixedRing:
        """A ring of ``size`` zeros."""
        return cls([0.0] * size)

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[float]:
        for offset in range(len(self._data)):
            yield self.get(offset)

    def __getitem__(self, index: int) -> float:
        return self.get(index)

    def __repr__(self) -> str:
        return f"FixedRing({list(self)!r})"

    @property
    def first(self) -> int:
        """Position of the oldest element in the underlying storage."""
        return self._first

    def _wrap(self, index: int) -> int:
        if not self._data:
            raise IndexError("ring buffer is empty")
        return (self._first + index) % len(self._data)

    def get(self, index: int) -> float:
        """The element ``index`` places after the oldest one, wrapping around."""
        return self._data[self._wrap(index)]

    def push(self, value: float) -> float:
        """Overwrite the oldest element with ``value`` and return what it held."""
        slot = self._wrap(0)
        old = self._data[slot]
        self._data[slot] = float(value)
        self._first = (slot + 1) % len(self._data)
        return old

    def set_first(self, index: int) -> None:
        """Move the read position to ``index``, modulo the ring length."""
        if not self._data:
            raise IndexError("ring buffer is empty")
        self._first = index % len(self._data)


class _Coefficients(NamedTuple):
    a0: float
    a1: float
    a2: float
    b1: float
    b2: float


def _coefficients(cutoff: float, q: float, sr: float, *, high: bool) -> _Coefficients:
    theta = _TWO_PI * _div(cutoff, sr)
    d = _div(1.0, q)
    s = d * math.sin(theta) / 2.0
    beta = 0.5 * _div(1.0 - s, 1.0 + s)
    gama = (0.5 + beta) * math.cos(theta)
    if high:
        a0 = (0.5 + beta + gama) / 2.0
        a1 = -0.5 - beta - gama
    else:
        a0 = (0.5 + beta - gama) / 2.0
        a1 = 0.5 + beta - gama
    return _Coefficients(a0, a1, a0, -2.0 * gama, 2.0 * beta)


def _first_input(inputs: Inputs) -> Input:
    return next(iter(inputs.values()))


@dataclass
class _Biquad(Node):
    x0: float = field(default=0.0, init=False)
    x1: float = field(default=0.0, init=False)
    x2: float = field(default=0.0, init=False)
    y1: float = field(default=0.0, init=False)
    y2: float = field(default=0.0, init=False)

    def _step(self, c: _Coefficients, x: float) -> float:
        y = (
            c.a0 * self.x0
            + c.a1 * self.x1
            + c.a2 * self.x2
            - c.b1 * self.y1
            - c.b2 * self.y2
        )
        self.x2 = self.x1
        self.x1 = x
        self.y2 = self.y1
        self.y1 = y
        return y


@dataclass
class ResonantLowPassFilter(_Biquad):
    """Resonant low-pass biquad whose cutoff can follow a looping pattern."""

    cutoff: float = 20.0
    q: float = 1.0
    pattern: list[tuple[float, float]] = field(default_factory=list)
    span: float = 1.0
    bpm: float = 120.0
    sr: int = 44100
    step: int = 0
    input_order: list[int] = field(default_factory=list)

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        out = output[0]
        if len(inputs) == 1:
            cycle_dur = _div(60.0, self.bpm) * 4.0
            bar_len = _to_count(cycle_dur * self.span * self.sr)
            targets = [
                (value, _to_count(at * cycle_dur * self.sr)) for value, at in self.pattern
            ]
            values = []
            for x in _first_input(inputs).buffers[0][: len(out)]:
                for value, at in targets:
                    if self.step % bar_len == at:
                        self.cutoff = value
                coeffs = _coefficients(self.cutoff, self.q, self.sr, high=False)
                values.append(self._step(coeffs, x))
                self.step += 1
            out[: len(values)] = values
        elif len(inputs) == 2:
            main = inputs[self.input_order[0]].buffers[0]
            ref = inputs[self.input_order[1]].buffers[0]
            coeffs = _coefficients(ref[0], self.q, self.sr, high=False)
            values = []
            for x in main[: len(out)]:
                values.append(self._step(coeffs, x))
                self.step += 1
            out[: len(values)] = values

    def send_msg(self, info: Message) -> None:
        match info:
            case SetPattern(pattern=pattern, span=span):
                self.pattern = list(pattern)
                self.span = span
            case SetToNumber(pos=0, value=value):
                self.cutoff = value
            case SetToNumber(pos=1, value=value):
                self.q = value
            case _:
                self._update_order(info)


@dataclass
class ResonantHighPassFilter(_Biquad):
    """Resonant high-pass biquad; a second input supplies the cutoff."""

    cutoff: float = 20.0
    q: float = 1.0
    sr: int = 44100
    input_order: list[int] = field(default_factory=list)

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        out = output[0]
        if len(inputs) == 1:
            main = _first_input(inputs).buffers[0]
            cutoff = self.cutoff
        elif len(inputs) == 2:
            main = inputs[self.input_order[0]].buffers[0]
            cutoff = inputs[self.input_order[1]].buffers[0][0]
        else:
            return
        coeffs = _coefficients(cutoff, self.q, self.sr, high=True)
        values = [self._step(coeffs, x) for x in main[: len(out)]]
        out[: len(values)] = values

    def send_msg(self, info: Message) -> None:
        match info:
            case SetToNumber(pos=0, value=value):
                self.cutoff = value
            case SetToNumber(pos=1, value=value):
                self.q = value
            case _:
                self._update_order(info)


@dataclass
class OnePole(Node):
    """One-pole low-pass smoother; ``rate`` sets the pole position."""

    rate: InitVar[float]
    a: float = field(init=False)
    b: float = field(init=False)
    y1: float = field(default=0.0, init=False)
    input_order: list[int] = field(default_factory=list, init=False)

    def __post_init__(self, rate: float) -> None:
        self._set_rate(rate)

    def _set_rate(self, rate: float) -> None:
        self.b = math.exp(-_TWO_PI * rate)
        self.a = 1.0 - self.b

    def _run(self, pairs: Iterable[tuple[float, float | None]]) -> list[float]:
        values = []
        for x, rate in pairs:
            if rate is not None:
                self._set_rate(rate)
            y = x * self.a + self.b * self.y1
            self.y1 = y
            values.append(y)
        return values

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        out = output[0]
        if len(inputs) == 1:
            main = _first_input(inputs).buffers[0][: len(out)]
            values = self._run((x, None) for x in main)
        elif len(inputs) == 2:
            # The first ordered input drives the rate, the second is the signal.
            rates = inputs[self.input_order[0]].buffers[0]
            signal = inputs[self.input_order[1]].buffers[0]
            values = self._run(
                (x, rate) for (x, rate), _ in zip(zip(signal, rates), out)
            )
        else:
            return
        out[: len(values)] = values

    def send_msg(self, info: Message) -> None:
        match info:
            case SetToNumber(pos=0, value=value):
                self._set_rate(value)
            case _:
                self._update_order(info)


def _interpolate(ring: FixedRing, index: int, frac: float) -> float:
    return ring.get(index) * frac + ring.get(index + 1) * (1.0 - frac)


@dataclass
class AllPassFilterGain(Node):
    """All-pass filter with a feedback gain; a second input modulates the delay in ms."""

    gain: float = 0.5
    sr: int = 44100
    bufx: FixedRing = field(default_factory=lambda: FixedRing([0.0]))
    bufy: FixedRing = field(default_factory=lambda: FixedRing([0.0]))
    input_order: list[int] = field(default_factory=list)

    def with_delay(self, delay: float) -> AllPassFilterGain:
        """A copy whose delay lines hold ``delay`` ms; zero means three seconds."""
        seconds = 3.0 if delay == 0.0 else delay / 1000.0
        size = _to_count(seconds * self.sr)
        return replace(
            self,
            bufx=FixedRing.zeros(size),
            bufy=FixedRing.zeros(size),
            input_order=list(self.input_order),
        )

    def _tick(self, xn: float, xdelay: float, ydelay: float) -> float:
        yn = -self.gain * xn + xdelay + self.gain * ydelay
        self.bufx.push(xn)
        self.bufy.push(yn)
        return yn

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        out = output[0]
        if len(inputs) == 1:
            main = inputs[self.input_order[0]].buffers[0]
            values = [
                self._tick(xn, self.bufx.get(0), self.bufy.get(0))
                for xn in main[: len(out)]
            ]
        elif len(inputs) == 2:
            main = inputs[self.input_order[0]].buffers[0]
            mod = inputs[self.input_order[1]].buffers[0]
            length = len(self.bufx)
            if length == 0:
                raise IndexError("ring buffer is empty")
            values = []
            for (xn, delay_ms), _ in zip(zip(main, mod), out):
                pos = -delay_ms / 1000.0 * self.sr
                while pos < 0.0:
                    pos += length
                pos_int = _to_count(pos)
                frac = pos - pos_int
                xdelay = _interpolate(self.bufx, pos_int, frac)
                ydelay = _interpolate(self.bufy, pos_int, frac)
                values.append(self._tick(xn, xdelay, ydelay))
        else:
            return
        out[: len(values)] = values

    def send_msg(self, info: Message) -> None:
        match info:
            case SetToNumber(pos=0, value=value):
                delay_n = _to_count(value / 1000.0 * self.sr)
                self.bufx.set_first(delay_n)
                self.bufy.set_first(delay_n)
            case SetToNumber(pos=1, value=value):
                self.gain = value
            case _:
                self._update_order(info)


__all__ = [
    "FixedRing",
    "ResonantLowPassFilter",
    "ResonantHighPassFilter",
    "OnePole",
    "AllPassFilterGain",
]