"""Envelope generators triggered by their input signal."""

from __future__ import annotations

from dataclasses import dataclass, field

from .node import Buffer, Inputs, Message, Node, SetToNumber
from .signal import _to_count


@dataclass
class EnvPerc(Node):
    """Percussive attack/decay envelope, retriggered by any positive input sample."""

    attack: float = 0.01
    decay: float = 0.1
    scale: float = 1.0
    sr: int = 44100
    pos: int = field(default=0, init=False)
    input_order: list[int] = field(default_factory=list)

    def _level(self, attack_len: int, decay_len: int) -> float:
        dur = attack_len + decay_len
        if self.pos <= attack_len:
            return 0.0 if attack_len == 0 else self.pos / attack_len
        if self.pos <= dur:
            return 0.0 if decay_len == 0 else (dur - self.pos) / decay_len
        return 0.0

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        if len(inputs) != 1:
            return
        attack_len = _to_count(self.attack * self.sr)
        decay_len = _to_count(self.decay * self.sr)
        trigger = inputs[self.input_order[0]].buffers[0]
        out = output[0]
        values = []
        for x, _ in zip(trigger, out):
            if x > 0.0:
                self.pos = 0
                self.scale = x
            values.append(self._level(attack_len, decay_len) * self.scale)
            self.pos += 1
        out[: len(values)] = values

    def send_msg(self, info: Message) -> None:
        match info:
            case SetToNumber(pos=0, value=value):
                self.attack = value
            case SetToNumber(pos=1, value=value):
                self.decay = value
            case _:
                self._update_order(info)


_IDLE, _HELD, _RELEASED = 0, 1, 2


@dataclass
class Adsr(Node):
    """Attack/decay/sustain/release envelope following a gate input."""

    attack: float = 0.01
    decay: float = 0.1
    sustain: float = 0.3
    release: float = 0.1
    gate: float = 0.0
    sr: int = 44100
    pos: int = field(default=0, init=False)
    step: int = field(default=0, init=False)
    lastx: float = field(default=0.0, init=False)
    lasty: float = field(default=0.0, init=False)
    state_change_y: float = field(default=0.0, init=False)
    phase: int = field(default=_IDLE, init=False)
    input_order: list[int] = field(default_factory=list)

    def _level(self, attack_len: int, decay_len: int, release_len: int) -> float:
        if self.phase == _HELD:
            if self.pos <= attack_len:
                if attack_len == 0:
                    return 0.0
                return self.pos / attack_len * (1.0 - self.state_change_y)
            if self.pos <= attack_len + decay_len:
                if decay_len == 0:
                    return self.sustain
                remaining = attack_len + decay_len - self.pos
                return remaining / decay_len * (1.0 - self.sustain) + self.sustain
            return self.sustain
        if self.phase == _RELEASED:
            if self.pos >= release_len:
                return 0.0
            return (release_len - self.pos) / release_len * self.state_change_y
        return 0.0

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        if len(inputs) != 1:
            return
        attack_len = _to_count(self.attack * self.sr)
        decay_len = _to_count(self.decay * self.sr)
        release_len = _to_count(self.release * self.sr)
        gate_in = inputs[self.input_order[0]].buffers[0]
        out = output[0]
        values = []
        for x, _ in zip(gate_in, out):
            if x > 0.0 and self.lastx == 0.0:
                self.gate = 1.0
                self.phase = _HELD
                self.pos = 0
                self.state_change_y = self.lasty
            elif x == 0.0 and self.lastx > 0.0:
                self.gate = 0.0
                self.phase = _RELEASED
                self.pos = 0
                self.state_change_y = self.lasty
            y = self._level(attack_len, decay_len, release_len)
            values.append(y)
            self.lasty = y
            self.lastx = x
            self.step += 1
            self.pos += 1
        out[: len(values)] = values
        if len(output) == 2:
            _, right = output
            right[:] = list(out)

    def send_msg(self, info: Message) -> None:
        match info:
            case SetToNumber(pos=0, value=value):
                self.attack = value
            case SetToNumber(pos=1, value=value):
                self.decay = value
            case SetToNumber(pos=2, value=value):
                self.sustain = value
            case SetToNumber(pos=3, value=value):
                self.release = value
            case _:
                self._update_order(info)


__all__ = ["EnvPerc", "Adsr"]