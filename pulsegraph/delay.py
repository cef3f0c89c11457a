"""Delay lines measured in samples or in milliseconds."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace

from .filter import FixedRing
from .node import Buffer, Inputs, Message, Node, Pass, SetToNumber, _copy_into
from .signal import _to_count


class DelayN(Node):
    """Delays a mono input by a whole number of samples; zero passes it through."""

    def __init__(self, n: int) -> None:
        if n < 0:
            raise ValueError(f"delay length must not be negative, got {n}")
        self.delay_n = n
        self.buf = FixedRing.zeros(max(n, 1))
        self.input_order: list[int] = []

    def __repr__(self) -> str:
        return f"DelayN(delay_n={self.delay_n!r}, input_order={self.input_order!r})"

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        if len(inputs) != 1:
            return
        if self.delay_n == 0:
            Pass().process(inputs, output)
            return
        main = next(iter(inputs.values())).buffers
        out = output[0]
        values = [self.buf.push(x) for x, _ in zip(main[0], out)]
        out[: len(values)] = values
        if len(main) == 1 and len(output) == 2:
            output[1][: len(values)] = values

    def send_msg(self, info: Message) -> None:
        match info:
            case SetToNumber(pos=0, value=value):
                self.delay_n = _to_count(value)
                self.buf = FixedRing.zeros(self.delay_n)
            case _:
                self._update_order(info)


@dataclass
class DelayMs(Node):
    """Per-channel delay in milliseconds; a second input modulates the read position."""

    sr: int = 44100
    delay_n: int = 1
    buf: list[FixedRing] = field(default_factory=list)
    input_order: list[int] = field(default_factory=list)

    def with_delay(self, delay: float, channels: int) -> DelayMs:
        """A copy with ``channels`` delay lines of ``delay`` ms, at least one sample long."""
        delay_n = max(_to_count(delay / 1000.0 * self.sr), 1)
        return replace(
            self,
            delay_n=delay_n,
            buf=[FixedRing.zeros(delay_n) for _ in range(channels)],
            input_order=list(self.input_order),
        )

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        if not inputs:
            raise ValueError("DelayMs needs at least one input")
        main = next(iter(inputs.values())).buffers
        if not 1 <= len(main) <= 2:
            return
        if len(inputs) == 1:
            if self.delay_n == 0:
                _copy_into(output[0], main[0])
                return
            for ring, out_buf, in_buf in zip(self.buf, output, main):
                values = [ring.push(x) for x, _ in zip(in_buf, out_buf)]
                out_buf[: len(values)] = values
        elif len(inputs) == 2:
            main = inputs[self.input_order[0]].buffers
            modulation = inputs[self.input_order[1]].buffers[0]
            if not self.buf or len(self.buf[0]) == 0:
                raise IndexError("delay line is empty")
            length = len(self.buf[0])
            for i in range(len(output[0])):
                pos = -modulation[i] / 1000.0 * self.sr
                while pos < 0.0:
                    pos += length
                pos_int = math.floor(pos)
                frac = pos - pos_int
                for ring, out_buf, in_buf in zip(self.buf, output, main):
                    out_buf[i] = ring.get(pos_int) * frac + ring.get(pos_int + 1) * (1.0 - frac)
                    ring.push(in_buf[i])

    def send_msg(self, info: Message) -> None:
        match info:
            case SetToNumber(pos=0, value=value):
                delay_n = _to_count(value / 1000.0 * self.sr)
                self.delay_n = delay_n
                if delay_n == 0:
                    self.buf.clear()
                else:
                    self.buf = [FixedRing.zeros(delay_n) for _ in self.buf]
            case _:
                self._update_order(info)


__all__ = ["DelayN", "DelayMs"]