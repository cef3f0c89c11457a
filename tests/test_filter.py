import math

import pytest

from pulsegraph.filter import (
    AllPassFilterGain,
    FixedRing,
    OnePole,
    ResonantHighPassFilter,
    ResonantLowPassFilter,
)
from pulsegraph.node import Index, Input, SetPattern, SetToNumber


def _inputs(*signals):
    return {node_id: Input(buffers=[list(sig)], node_id=node_id) for node_id, sig in signals}


def _run(node, signal, block=16):
    out = []
    for start in range(0, len(signal), block):
        chunk = signal[start : start + block]
        buf = [0.0] * len(chunk)
        node.process(_inputs((1, chunk)), [buf])
        out.extend(buf)
    return out


def _ordered(node, *ids):
    for node_id in ids:
        node.send_msg(Index(node_id))
    return node


SIGNAL = [math.sin(k * 0.37) + 0.5 * math.cos(k * 1.3) for k in range(64)]


# FixedRing


def test_ring_push_returns_overwritten_values():
    ring = FixedRing([1.0, 2.0, 3.0])
    assert [ring.push(v) for v in (4.0, 5.0, 6.0, 7.0)] == [1.0, 2.0, 3.0, 4.0]
    assert list(ring) == [5.0, 6.0, 7.0]


def test_ring_get_wraps_around():
    ring = FixedRing([1.0, 2.0, 3.0])
    for k in range(6):
        assert ring.get(k) == ring.get(k + 3)
    assert ring[1] == ring.get(1) == 2.0


def test_ring_set_first_is_modulo_length():
    ring = FixedRing([1.0, 2.0, 3.0])
    ring.set_first(5)
    assert ring.first == 2
    assert list(ring) == [3.0, 1.0, 2.0]


def test_empty_ring_raises():
    ring = FixedRing()
    assert len(ring) == 0
    with pytest.raises(IndexError):
        ring.push(1.0)
    with pytest.raises(IndexError):
        ring.get(0)
    with pytest.raises(IndexError):
        ring.set_first(1)


# OnePole


def test_onepole_coefficients_sum_to_one():
    pole = OnePole(0.3)
    assert pole.a + pole.b == pytest.approx(1.0)
    still = OnePole(0.0)
    assert still.a == 0.0
    assert still.b == 1.0


def test_onepole_first_sample_and_convergence():
    pole = OnePole(0.05)
    out = _run(pole, [1.0] * 2000)
    assert out[0] == pytest.approx(pole.a)
    assert out[-1] == pytest.approx(1.0, abs=1e-9)
    assert all(a <= b + 1e-12 for a, b in zip(out, out[1:]))


def test_onepole_set_rate_matches_fresh_instance():
    pole = OnePole(0.9)
    pole.send_msg(SetToNumber(0, 0.2))
    fresh = OnePole(0.2)
    assert (pole.a, pole.b) == (fresh.a, fresh.b)


def test_onepole_two_inputs_rate_then_signal():
    rate = 0.1
    modulated = _ordered(OnePole(0.5), 1, 2)
    buf = [0.0] * len(SIGNAL)
    modulated.process(_inputs((1, [rate] * len(SIGNAL)), (2, SIGNAL)), [buf])
    plain = _run(OnePole(rate), SIGNAL, block=len(SIGNAL))
    assert buf == pytest.approx(plain)


# Resonant filters


@pytest.mark.parametrize("cls", [ResonantHighPassFilter, ResonantLowPassFilter])
def test_biquad_silence_in_silence_out(cls):
    assert _run(cls(cutoff=1000.0), [0.0] * 48) == [0.0] * 48


@pytest.mark.parametrize("cls", [ResonantHighPassFilter, ResonantLowPassFilter])
def test_biquad_first_sample_is_zero_and_is_linear(cls):
    base = _run(cls(cutoff=800.0, q=2.0), SIGNAL)
    scaled = _run(cls(cutoff=800.0, q=2.0), [3.0 * x for x in SIGNAL])
    assert base[0] == 0.0
    assert scaled == pytest.approx([3.0 * y for y in base])


@pytest.mark.parametrize("cls", [ResonantHighPassFilter, ResonantLowPassFilter])
def test_biquad_second_input_sets_cutoff(cls):
    modulated = _ordered(cls(cutoff=20.0), 1, 2)
    buf = [0.0] * len(SIGNAL)
    modulated.process(_inputs((1, SIGNAL), (2, [1500.0] * len(SIGNAL))), [buf])
    plain = _run(cls(cutoff=1500.0), SIGNAL, block=len(SIGNAL))
    assert buf == pytest.approx(plain)


@pytest.mark.parametrize("cls", [ResonantHighPassFilter, ResonantLowPassFilter])
def test_biquad_messages_set_cutoff_and_q(cls):
    filt = cls()
    filt.send_msg(SetToNumber(0, 440.0))
    filt.send_msg(SetToNumber(1, 4.0))
    assert (filt.cutoff, filt.q) == (440.0, 4.0)


def test_lowpass_pattern_sets_cutoff_and_counts_steps():
    filt = ResonantLowPassFilter()
    filt.send_msg(SetPattern([(500.0, 0.0)], 1.0))
    _run(filt, SIGNAL[:16])
    assert filt.cutoff == 500.0
    assert filt.step == 16
    assert filt.span == 1.0


def test_lowpass_zero_bar_with_pattern_raises():
    filt = ResonantLowPassFilter()
    filt.send_msg(SetPattern([(500.0, 0.0)], 0.0))
    with pytest.raises(ZeroDivisionError):
        _run(filt, SIGNAL[:4])


def test_highpass_ignores_three_inputs():
    filt = ResonantHighPassFilter()
    buf = [7.0] * 4
    filt.process(_inputs((1, [1.0] * 4), (2, [1.0] * 4), (3, [1.0] * 4)), [buf])
    assert buf == [7.0] * 4


# AllPassFilterGain


def test_allpass_delay_sizes():
    filt = AllPassFilterGain(sr=1000)
    assert len(filt.bufx) == 1
    assert len(filt.with_delay(5.0).bufx) == 5
    three_seconds = filt.with_delay(0.0)
    assert len(three_seconds.bufx) == len(three_seconds.bufy) == 3 * 1000


def test_allpass_impulse_response_keeps_energy():
    gain = 0.5
    filt = _ordered(AllPassFilterGain(gain=gain, sr=1000).with_delay(2.0), 1)
    out = _run(filt, [1.0] + [0.0] * 199)
    assert out[0] == pytest.approx(-gain)
    assert sum(y * y for y in out) == pytest.approx(1.0, abs=1e-9)


def test_allpass_zero_modulation_reads_one_sample_later():
    modulated = _ordered(AllPassFilterGain(gain=0.6, sr=1000).with_delay(4.0), 1, 2)
    buf = [0.0] * len(SIGNAL)
    modulated.process(_inputs((1, SIGNAL), (2, [0.0] * len(SIGNAL))), [buf])
    plain = _ordered(AllPassFilterGain(gain=0.6, sr=1000).with_delay(3.0), 1)
    assert buf == pytest.approx(_run(plain, SIGNAL, block=len(SIGNAL)))


def test_allpass_requires_input_order():
    filt = AllPassFilterGain()
    with pytest.raises(IndexError):
        filt.process(_inputs((1, [1.0])), [[0.0]])


def test_allpass_messages_move_read_position_and_gain():
    filt = AllPassFilterGain(sr=1000).with_delay(4.0)
    filt.send_msg(SetToNumber(0, 2.0))
    filt.send_msg(SetToNumber(1, 0.25))
    assert filt.bufx.first == filt.bufy.first == 2
    assert filt.gain == 0.25


def test_with_delay_leaves_original_untouched():
    original = AllPassFilterGain(sr=1000)
    original.send_msg(Index(3))
    copy = original.with_delay(5.0)
    copy.send_msg(Index(4))
    assert len(original.bufx) == 1
    assert original.input_order == [3]
    assert copy.input_order == [3, 4]