"""Block-based audio signal nodes: routing, signal sources, filters, envelopes, delays and samplers."""

__version__ = "0.1.0"