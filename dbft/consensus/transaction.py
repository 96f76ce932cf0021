"""Small fixed-size transaction."""

from __future__ import annotations

import struct
from dataclasses import dataclass

_UINT64 = struct.Struct("<Q")
_HASH_SIZE = 32


@dataclass(frozen=True)
class Tx64:
    """A transaction holding a single unsigned 64-bit value."""

    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value < 1 << 64:
            raise ValueError("value must fit in 64 unsigned bits")

    def hash(self) -> bytes:
        """Return the value in little-endian order padded to 32 bytes."""
        return self.to_bytes().ljust(_HASH_SIZE, b"\x00")

    def to_bytes(self) -> bytes:
        """Return the value as 8 little-endian bytes."""
        return _UINT64.pack(self.value)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Tx64":
        """Decode 8 little-endian bytes; raise ValueError on another length."""
        if len(data) != _UINT64.size:
            raise ValueError("length must equal 8 bytes")
        (value,) = _UINT64.unpack(bytes(data))
        return cls(value)