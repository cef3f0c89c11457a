"""Sample playback nodes: a triggered sampler and a pattern-driven sampler."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from .node import (
    Buffer,
    Inputs,
    Message,
    Node,
    Sample,
    SetSamplePattern,
    SetToSamples,
    silence,
)
from .signal import _div, _to_count


def _check_sample(sample: Sample) -> None:
    if sample.channels <= 0:
        raise ValueError(f"a sample needs at least one channel, got {sample.channels}")
    if not sample.data:
        raise ValueError("a sample needs at least one value")


def _interpolate(data: Sequence[float], pos_index: float, offset: int = 0) -> float:
    left = math.floor(pos_index)
    right = math.ceil(pos_index)
    left_portion = pos_index - left
    right_portion = 1.0 - left_portion
    return data[left + offset] * left_portion + data[right + offset] * right_portion


def _mono_value(data: Sequence[float], pos: float) -> float:
    """Value of a one-channel sample at relative position ``pos`` in [0, 1]."""
    if pos == 0.0:
        return data[0]
    if pos == 1.0:
        return data[-1]
    if 0.0 < pos < 1.0:
        return _interpolate(data, pos * (len(data) - 1))
    return 0.0


def _stereo_values(data: Sequence[float], frames: int, pos: float) -> tuple[float, float]:
    """Left and right values of a two-channel planar sample at position ``pos``."""
    if pos == 0.0:
        return data[0], data[frames]
    if pos == 1.0:
        return data[frames - 1], data[-1]
    if 0.0 < pos < 1.0:
        if frames < 2:
            raise ValueError("a stereo sample needs at least two frames to interpolate")
        pos_index = pos * (frames - 2)
        return _interpolate(data, pos_index), _interpolate(data, pos_index, frames + 1)
    return 0.0, 0.0


def _mix_into(output: list[Buffer], i: int, sample: Sample, pos: float) -> bool:
    """Add the sample's value at ``pos`` to frame ``i``; False if the layout is unsupported."""
    if sample.channels == 1:
        output[0][i] += _mono_value(sample.data, pos)
        output[1][i] = output[0][i]
        return True
    if sample.channels == 2:
        left, right = _stereo_values(sample.data, sample.frames, pos)
        output[0][i] += left
        output[1][i] += right
        return True
    return False


@dataclass
class _Voice:
    begin: int
    dur: float


class Sampler(Node):
    """Plays a sample each time the input is positive; the input value is the pitch."""

    def __init__(self, sample: Sample, sr: int) -> None:
        _check_sample(sample)
        self.sample = sample
        self.sr = sr
        self.clock = 0
        self.playback: list[_Voice] = []
        self.input_order: list[int] = []

    def __repr__(self) -> str:
        return f"Sampler(sample={self.sample!r}, sr={self.sr!r})"

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        silence(output[0])
        silence(output[1])
        if len(inputs) != 1:
            return
        trigger = next(iter(inputs.values())).buffers[0]
        rate = _div(float(self.sample.sr), float(self.sr))
        for i in range(len(output[0])):
            pitch = trigger[i]
            if pitch > 0.0:
                dur = _div(_div(float(self.sample.frames), pitch), rate)
                self.playback.append(_Voice(self.clock, dur))
            alive = []
            for voice in self.playback:
                pos = _div(float(self.clock - voice.begin), voice.dur)
                if pos <= 1.0:
                    alive.append(voice)
                    _mix_into(output, i, self.sample, pos)
            self.playback = alive
            self.clock += 1

    def send_msg(self, info: Message) -> None:
        match info:
            case SetToSamples(pos=0, sample=sample):
                _check_sample(sample)
                self.sample = sample
            case _:
                self._update_order(info)


@dataclass
class _NamedVoice:
    begin: int
    name: str
    dur: float


class PSampler(Node):
    """Plays named samples at fractions of a cycle, looping every ``period_in_cycle`` cycles."""

    def __init__(
        self,
        samples_dict: Mapping[str, Sample],
        sr: int,
        bpm: float,
        events: Sequence[tuple[str, float]],
        pattern: Sequence[tuple[str, float]],
        period_in_cycle: float,
    ) -> None:
        self.samples_dict = dict(samples_dict)
        self.sr = sr
        self.cycle_dur = _div(60.0, bpm) * 4.0
        self.events = list(events)
        self.pattern = list(pattern)
        self.period_in_cycle = period_in_cycle
        self.step = 0
        self.playback: list[_NamedVoice] = []
        self.input_order: list[int] = []

    def __repr__(self) -> str:
        return (
            f"PSampler(pattern={self.pattern!r}, period_in_cycle={self.period_in_cycle!r}, "
            f"sr={self.sr!r})"
        )

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        silence(output[0])
        silence(output[1])
        bar_len = _to_count(self.cycle_dur * self.period_in_cycle * self.sr)
        targets = [
            (name, _to_count(at * self.cycle_dur * self.sr)) for name, at in self.pattern
        ]
        for i in range(len(output[0])):
            for name, target in targets:
                if self.step % bar_len == target:
                    sample = self.samples_dict[name]
                    dur = _div(float(sample.frames), _div(float(sample.sr), float(self.sr)))
                    self.playback.append(_NamedVoice(self.step, name, dur))
            alive = []
            for voice in self.playback:
                pos = _div(float(self.step - voice.begin), voice.dur)
                if pos <= 1.0:
                    alive.append(voice)
                    if not _mix_into(output, i, self.samples_dict[voice.name], pos):
                        return
            self.playback = alive
            self.step += 1

    def send_msg(self, info: Message) -> None:
        match info:
            case SetSamplePattern(pattern=pattern, span=span, samples=samples):
                self.playback.clear()
                self.pattern = list(pattern)
                self.samples_dict = dict(samples)
                self.period_in_cycle = span
            case _:
                self._update_order(info)


__all__ = ["Sampler", "PSampler"]