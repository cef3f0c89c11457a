import pytest

from pulsegraph.delay import DelayMs, DelayN
from pulsegraph.node import Index, IndexOrder, Input, ResetOrder, SetToNumber


def _inputs(*buffers, node_id=3):
    return {node_id: Input(buffers=[list(b) for b in buffers], node_id=node_id)}


def test_delayn_shifts_by_n_samples():
    node = DelayN(2)
    out = [[9.0] * 4]
    node.process(_inputs([1.0, 2.0, 3.0, 4.0]), out)
    assert out[0] == [0.0, 0.0, 1.0, 2.0]
    node.process(_inputs([5.0, 6.0, 7.0, 8.0]), out)
    assert out[0] == [3.0, 4.0, 5.0, 6.0]


def test_delayn_mono_to_stereo_duplicates():
    node = DelayN(1)
    out = [[0.0] * 3, [0.0] * 3]
    node.process(_inputs([1.0, 2.0, 3.0]), out)
    assert out[0] == [0.0, 1.0, 2.0]
    assert out[1] == out[0]


def test_delayn_zero_is_pass_through():
    node = DelayN(0)
    out = [[0.0] * 3, [0.0] * 3]
    node.process(_inputs([1.0, 2.0, 3.0]), out)
    assert out == [[1.0, 2.0, 3.0], [1.0, 2.0, 3.0]]


def test_delayn_ignores_multiple_inputs():
    node = DelayN(1)
    out = [[7.0, 7.0]]
    inputs = {1: Input([[1.0, 1.0]], 1), 2: Input([[2.0, 2.0]], 2)}
    node.process(inputs, out)
    assert out == [[7.0, 7.0]]


def test_delayn_message_changes_length():
    node = DelayN(1)
    node.send_msg(SetToNumber(0, 3.0))
    assert node.delay_n == 3
    out = [[0.0] * 4]
    node.process(_inputs([1.0, 2.0, 3.0, 4.0]), out)
    assert out[0] == [0.0, 0.0, 0.0, 1.0]


def test_delayn_negative_length_rejected():
    with pytest.raises(ValueError):
        DelayN(-1)


def test_delayn_order_messages():
    node = DelayN(1)
    node.send_msg(Index(4))
    node.send_msg(IndexOrder(0, 2))
    assert node.input_order == [2, 4]
    with pytest.raises(IndexError):
        node.send_msg(IndexOrder(5, 1))
    node.send_msg(ResetOrder())
    assert node.input_order == []


def test_delayms_with_delay_sets_length_and_channels():
    node = DelayMs(sr=1000).with_delay(2.0, 2)
    assert node.delay_n == 2
    assert [len(ring) for ring in node.buf] == [2, 2]


def test_delayms_with_delay_is_at_least_one_sample():
    node = DelayMs(sr=1000).with_delay(0.0, 1)
    assert node.delay_n == 1
    assert len(node.buf[0]) == 1


def test_delayms_delays_each_channel():
    node = DelayMs(sr=1000).with_delay(2.0, 2)
    out = [[0.0] * 4, [0.0] * 4]
    node.process(_inputs([1.0, 2.0, 3.0, 4.0], [5.0, 6.0, 7.0, 8.0]), out)
    assert out[0] == [0.0, 0.0, 1.0, 2.0]
    assert out[1] == [0.0, 0.0, 5.0, 6.0]


def test_delayms_zero_message_passes_through():
    node = DelayMs(sr=1000).with_delay(2.0, 1)
    node.send_msg(SetToNumber(0, 0.0))
    assert node.buf == []
    out = [[0.0] * 3]
    node.process(_inputs([1.0, 2.0, 3.0]), out)
    assert out[0] == [1.0, 2.0, 3.0]


def test_delayms_message_keeps_channel_count():
    node = DelayMs(sr=1000).with_delay(1.0, 2)
    node.send_msg(SetToNumber(0, 3.0))
    assert node.delay_n == 3
    assert [len(ring) for ring in node.buf] == [3, 3]


def test_delayms_without_input_raises():
    with pytest.raises(ValueError):
        DelayMs().process({}, [[0.0]])


def test_delayms_ignores_three_channel_input():
    node = DelayMs(sr=1000).with_delay(1.0, 3)
    out = [[5.0, 5.0]] * 3
    node.process(_inputs([1.0, 1.0], [1.0, 1.0], [1.0, 1.0]), out)
    assert out == [[5.0, 5.0]] * 3


def test_delayms_modulated_zero_reads_one_behind():
    node = DelayMs(sr=1000).with_delay(2.0, 1)
    node.send_msg(Index(1))
    node.send_msg(Index(2))
    inputs = {1: Input([[1.0, 2.0, 3.0]], 1), 2: Input([[0.0, 0.0, 0.0]], 2)}
    out = [[0.0] * 3]
    node.process(inputs, out)
    assert out[0] == [0.0, 1.0, 2.0]