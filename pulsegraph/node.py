"""Core node protocol, control messages and the basic routing nodes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, MutableSequence, Sequence
from dataclasses import dataclass
from typing import Union

Buffer = MutableSequence[float]

_DURATION_UNITS = ("bar", "s", "ms")

_message = dataclass(frozen=True)


@_message
class Sample:
    """Interleaved-by-channel sample data with its channel count and rate."""

    data: tuple[float, ...]
    channels: int
    sr: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", tuple(self.data))

    @property
    def frames(self) -> int:
        """Number of frames, i.e. total samples divided by channels."""
        return len(self.data) // self.channels


@_message
class Duration:
    """A time offset measured in bars, seconds (``"s"``) or milliseconds (``"ms"``)."""

    amount: float
    unit: str = "bar"

    def __post_init__(self) -> None:
        if self.unit not in _DURATION_UNITS:
            raise ValueError(f"unknown duration unit {self.unit!r}")

    def to_samples(self, bar_dur: float, sr: int) -> float:
        """Length of this duration in samples."""
        if self.unit == "bar":
            return self.amount * bar_dur
        if self.unit == "s":
            return self.amount * sr
        return self.amount / 1000.0 * sr


@_message
class TimeList:
    """A point in time: a bar position plus an optional extra duration."""

    bar: float
    time: Duration | None = None

    def to_samples(self, bar_dur: float, sr: int) -> int:
        """Absolute position in samples, truncated and never negative."""
        offset = self.time.to_samples(bar_dur, sr) if self.time is not None else 0.0
        return max(int(self.bar * bar_dur + offset), 0)


@_message
class SetToNumber:
    pos: int
    value: float


@_message
class SetToSymbol:
    pos: int
    symbol: str


@_message
class SetToNumberList:
    pos: int
    values: list[float]


@_message
class SetToSeq:
    pos: int
    events: list[tuple[float, Union[int, str]]]


@_message
class SetToSamples:
    pos: int
    sample: Sample


@_message
class SetToBool:
    pos: int
    value: bool


@_message
class SetPattern:
    pattern: list[tuple[float, float]]
    span: float


@_message
class SetSamplePattern:
    pattern: list[tuple[str, float]]
    span: float
    samples: dict[str, Sample]


@_message
class SetRefOrder:
    ref_order: dict[str, int]


@_message
class SetBPM:
    bpm: float


@_message
class SetPoints:
    pos: int
    points: list[tuple[TimeList, float]]


@_message
class Index:
    index: int


@_message
class IndexOrder:
    pos: int
    index: int


@_message
class ResetOrder:
    pass


Message = Union[
    SetToNumber,
    SetToSymbol,
    SetToNumberList,
    SetToSeq,
    SetToSamples,
    SetToBool,
    SetPattern,
    SetSamplePattern,
    SetRefOrder,
    SetBPM,
    SetPoints,
    Index,
    IndexOrder,
    ResetOrder,
]


@_message
class Input:
    """The buffers produced by an upstream node, tagged with that node's id."""

    buffers: Sequence[Sequence[float]]
    node_id: int


Inputs = Mapping[int, Input]


def silence(buffer: Buffer) -> None:
    """Set every sample of ``buffer`` to zero in place."""
    buffer[:] = [0.0] * len(buffer)


def _check_same_length(dst: Buffer, src: Sequence[float]) -> None:
    if len(dst) != len(src):
        raise ValueError(f"buffer length mismatch: {len(dst)} != {len(src)}")


def _copy_into(dst: Buffer, src: Sequence[float]) -> None:
    _check_same_length(dst, src)
    dst[:] = src


def _add_into(dst: Buffer, src: Sequence[float]) -> None:
    _check_same_length(dst, src)
    dst[:] = [a + b for a, b in zip(dst, src)]


class Node(ABC):
    """A processing unit that renders one block of audio at a time."""

    @abstractmethod
    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        """Render one block into ``output`` from the given ``inputs``."""

    def send_msg(self, info: Message) -> None:
        """Handle a control message; the default ignores it."""

    def _update_order(self, info: Message, *, allow_reset: bool = True) -> bool:
        """Apply an input-ordering message to ``self.input_order``."""
        order: list[int] = self.input_order  # type: ignore[attr-defined]
        match info:
            case Index(index=index):
                order.append(index)
            case IndexOrder(pos=pos, index=index):
                if pos > len(order):
                    raise IndexError(f"insertion index {pos} exceeds length {len(order)}")
                order.insert(pos, index)
            case ResetOrder() if allow_reset:
                order.clear()
            case _:
                return False
        return True


@dataclass
class Pass(Node):
    """Copies the first input straight to the output; mono input fills a stereo pair."""

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        first = next(iter(inputs.values()), None)
        if first is None:
            return
        in_buffers = first.buffers
        if len(in_buffers) == 1 and len(output) == 2:
            in_buffers = [in_buffers[0], in_buffers[0]]
        for out_buf, in_buf in zip(output, in_buffers):
            _copy_into(out_buf, in_buf)


def _sum_channels(inputs: Inputs, output: list[Buffer], *, fallback_to_first: bool) -> None:
    for channel, out_buf in enumerate(output):
        silence(out_buf)
        for source in inputs.values():
            buffers = source.buffers
            if channel < len(buffers):
                _add_into(out_buf, buffers[channel])
            elif fallback_to_first:
                _add_into(out_buf, buffers[0])


@dataclass
class Sum(Node):
    """Sums the inputs channel by channel; missing channels are skipped."""

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        _sum_channels(inputs, output, fallback_to_first=False)


@dataclass
class Sum2(Node):
    """Sums the inputs channel by channel; missing channels use the input's first one."""

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        _sum_channels(inputs, output, fallback_to_first=True)


@dataclass
class SumBuffers(Node):
    """Sums every buffer of every input and writes the result to each output buffer."""

    def process(self, inputs: Inputs, output: list[Buffer]) -> None:
        if not output:
            return
        first, *rest = output
        silence(first)
        for source in inputs.values():
            for in_buf in source.buffers:
                _add_into(first, in_buf)
        for out_buf in rest:
            _copy_into(out_buf, first)


__all__ = [
    "Buffer",
    "Sample",
    "Duration",
    "TimeList",
    "SetToNumber",
    "SetToSymbol",
    "SetToNumberList",
    "SetToSeq",
    "SetToSamples",
    "SetToBool",
    "SetPattern",
    "SetSamplePattern",
    "SetRefOrder",
    "SetBPM",
    "SetPoints",
    "Index",
    "IndexOrder",
    "ResetOrder",
    "Message",
    "Input",
    "Inputs",
    "Node",
    "silence",
    "Pass",
    "Sum",
    "Sum2",
    "SumBuffers",
]