"""Building blocks for dBFT consensus: messages, payloads, blocks, Merkle trees, keys and a timer."""

__version__ = "0.1.0"