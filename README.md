# pulsegraph

Audio signal nodes that work on fixed-size blocks of samples. A node reads the buffers of its inputs and fills its output buffers once per block. Messages sent to a node change its settings while it runs.

The package has no dependencies beyond the standard library.

## Installation

```
pip install pulsegraph
```

## Modules and nodes

| Module | Contents |
| --- | --- |
| `pulsegraph.node` | The `Node` base class, `Input`, `silence`, the message types, the data types `Sample`, `Duration` and `TimeList`, and the routing nodes `Pass`, `Sum`, `Sum2` and `SumBuffers` |
| `pulsegraph.signal` | `ConstSig`, `Impulse`, `Noise`, `Points` |
| `pulsegraph.filter` | `ResonantLowPassFilter`, `ResonantHighPassFilter`, `OnePole`, `AllPassFilterGain`, and the ring buffer `FixedRing` |
| `pulsegraph.delay` | `DelayN` (delay in samples), `DelayMs` (delay in milliseconds) |
| `pulsegraph.envelope` | `EnvPerc` (percussive attack/decay), `Adsr` |
| `pulsegraph.sampling` | `Sampler` (plays a sample when its input is positive), `PSampler` (plays named samples from a looping pattern) |

## How a node is driven

Every node has two methods:

- `process(inputs, output)`: `inputs` maps a source node id to an `Input`, which holds that source's buffers. `output` is a list of buffers, one per channel. The node fills these buffers in place.
- `send_msg(info)`: changes a setting or the input order. The messages are `SetToNumber`, `SetToSymbol`, `SetToNumberList`, `SetToSeq`, `SetToSamples`, `SetToBool`, `SetPattern`, `SetSamplePattern`, `SetRefOrder`, `SetBPM`, `SetPoints`, `Index`, `IndexOrder` and `ResetOrder`. A node ignores any message it does not handle.

Some nodes take more than one input. They tell the inputs apart by the order set with `Index` (append an id) and `IndexOrder` (insert an id at a position). For most of these nodes the first id is the main signal and the second id is the modulator. Nodes that read their input through this order need an `Index` message even when they have only one input. `EnvPerc`, `Adsr` and `AllPassFilterGain` are such nodes.

```python
from pulsegraph.delay import DelayN
from pulsegraph.node import Input
from pulsegraph.signal import Impulse

# A delay of two samples
delay = DelayN(2)
out = [[0.0] * 4]
delay.process({1: Input([[1.0, 2.0, 3.0, 4.0]], node_id=1)}, out)
# out == [[0.0, 0.0, 1.0, 2.0]]

# An impulse every four samples at a sample rate of 8
pulse = Impulse(sr=8).with_freq(2.0)
out = [[0.0] * 8]
pulse.process({}, out)
# out == [[1.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0]]
```

```python
from pulsegraph.envelope import EnvPerc
from pulsegraph.node import Index, Input, SetToNumber

env = EnvPerc(attack=0.0, decay=0.5, sr=4)
env.send_msg(Index(7))
env.send_msg(SetToNumber(1, 1.0))  # position 1 sets the decay in seconds
out = [[0.0] * 4]
env.process({7: Input([[1.0, 0.0, 0.0, 0.0]], node_id=7)}, out)
```

## What the package does not do

The package provides the nodes only. It does not:

- connect nodes into a graph or decide the order in which they run. The caller passes each node its inputs and output buffers.
- parse code in a live-coding language.
- play audio on a device.
- read audio files. A `Sample` is built from values already in memory.

## Running the tests

```
pip install -e ".[test]"
pytest
```