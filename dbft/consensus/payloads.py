"""Bodies of consensus messages and their binary encoding."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Iterable, Tuple

from ..interfaces import ChangeViewReason

_NANOSECONDS = 1_000_000_000
_UINT32_MASK = 0xFFFFFFFF
HASH_SIZE = 32
SIGNATURE_SIZE = 64
AMEV_DATA_SIZE = 64

_UINT32 = struct.Struct(">I")
_REQUEST_HEADER = struct.Struct(">QII")


def sec_to_nanosec(seconds: int) -> int:
    """Convert whole seconds to nanoseconds."""
    return seconds * _NANOSECONDS


def nanosec_to_sec(nanoseconds: int) -> int:
    """Convert nanoseconds to whole seconds truncated to 32 bits."""
    return (nanoseconds // _NANOSECONDS) & _UINT32_MASK


def _pack(layout: struct.Struct, *values: int) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(f"value out of range: {exc}") from exc


def _unpack(layout: struct.Struct, data: bytes) -> Tuple[int, ...]:
    data = bytes(data)
    if len(data) != layout.size:
        raise ValueError(f"expected {layout.size} bytes, got {len(data)}")
    return layout.unpack(data)


def _fixed(data: bytes, size: int, what: str) -> bytes:
    data = bytes(data)
    if len(data) != size:
        raise ValueError(f"{what} must be {size} bytes, got {len(data)}")
    return data


@dataclass(frozen=True)
class ChangeView:
    """ChangeView body; only the timestamp goes on the wire."""

    new_view_number: int = 0
    timestamp_sec: int = 0

    def encode(self) -> bytes:
        """Return the wire form of the body."""
        return _pack(_UINT32, self.timestamp_sec)

    @classmethod
    def decode(cls, data: bytes) -> "ChangeView":
        """Decode the body; the new view number is left at zero."""
        (timestamp,) = _unpack(_UINT32, data)
        return cls(timestamp_sec=timestamp)

    def reason(self) -> ChangeViewReason:
        """Return the reason of the view change, which is not transmitted."""
        return ChangeViewReason.UNKNOWN


@dataclass(frozen=True)
class Commit:
    """Commit body holding a 64-byte block signature."""

    signature: bytes = bytes(SIGNATURE_SIZE)

    def __post_init__(self) -> None:
        object.__setattr__(self, "signature", _fixed(self.signature, SIGNATURE_SIZE, "signature"))

    def encode(self) -> bytes:
        """Return the wire form of the body."""
        return self.signature

    @classmethod
    def decode(cls, data: bytes) -> "Commit":
        """Decode the body; raise ValueError on a wrong length."""
        return cls(_fixed(data, SIGNATURE_SIZE, "commit"))


@dataclass(frozen=True)
class PrepareRequest:
    """PrepareRequest body; the timestamp is kept in whole seconds."""

    transaction_hashes: Tuple[bytes, ...] = field(default_factory=tuple)
    nonce: int = 0
    timestamp_sec: int = 0

    def __post_init__(self) -> None:
        hashes: Iterable[bytes] = self.transaction_hashes
        object.__setattr__(
            self,
            "transaction_hashes",
            tuple(_fixed(h, HASH_SIZE, "transaction hash") for h in hashes),
        )

    @property
    def timestamp(self) -> int:
        """Timestamp in nanoseconds."""
        return sec_to_nanosec(self.timestamp_sec)

    def encode(self) -> bytes:
        """Return the wire form of the body."""
        header = _pack(
            _REQUEST_HEADER, self.nonce, self.timestamp_sec, len(self.transaction_hashes)
        )
        return header + b"".join(self.transaction_hashes)

    @classmethod
    def decode(cls, data: bytes) -> "PrepareRequest":
        """Decode the body; raise ValueError if it is malformed."""
        data = bytes(data)
        if len(data) < _REQUEST_HEADER.size:
            raise ValueError("prepare request is too short")
        nonce, timestamp, count = _REQUEST_HEADER.unpack_from(data)
        body = data[_REQUEST_HEADER.size:]
        if len(body) != count * HASH_SIZE:
            raise ValueError("prepare request hash list has a wrong length")
        hashes = tuple(body[i:i + HASH_SIZE] for i in range(0, len(body), HASH_SIZE))
        return cls(transaction_hashes=hashes, nonce=nonce, timestamp_sec=timestamp)


@dataclass(frozen=True)
class PrepareResponse:
    """PrepareResponse body holding the hash of the PrepareRequest payload."""

    preparation_hash: bytes = bytes(HASH_SIZE)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "preparation_hash", _fixed(self.preparation_hash, HASH_SIZE, "preparation hash")
        )

    def encode(self) -> bytes:
        """Return the wire form of the body."""
        return self.preparation_hash

    @classmethod
    def decode(cls, data: bytes) -> "PrepareResponse":
        """Decode the body; raise ValueError on a wrong length."""
        return cls(_fixed(data, HASH_SIZE, "prepare response"))


@dataclass(frozen=True)
class RecoveryRequest:
    """RecoveryRequest body; the timestamp is kept in whole seconds."""

    timestamp_sec: int = 0

    @property
    def timestamp(self) -> int:
        """Timestamp in nanoseconds."""
        return sec_to_nanosec(self.timestamp_sec)

    def encode(self) -> bytes:
        """Return the wire form of the body."""
        return _pack(_UINT32, self.timestamp_sec)

    @classmethod
    def decode(cls, data: bytes) -> "RecoveryRequest":
        """Decode the body; raise ValueError on a wrong length."""
        (timestamp,) = _unpack(_UINT32, data)
        return cls(timestamp_sec=timestamp)


@dataclass(frozen=True)
class AMEVCommit:
    """Commit body of the anti-MEV extension holding 64 bytes of data."""

    data: bytes = bytes(AMEV_DATA_SIZE)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _fixed(self.data, AMEV_DATA_SIZE, "commit data"))

    @property
    def signature(self) -> bytes:
        """The commit data, used in place of a signature."""
        return self.data

    def encode(self) -> bytes:
        """Return the wire form of the body."""
        return self.data

    @classmethod
    def decode(cls, data: bytes) -> "AMEVCommit":
        """Decode the body; raise ValueError on a wrong length."""
        return cls(_fixed(data, AMEV_DATA_SIZE, "commit"))


@dataclass(frozen=True)
class PreCommit:
    """PreCommit body holding a 32-bit magic value."""

    magic: int = 0

    def data(self) -> bytes:
        """Return the magic value as 4 big-endian bytes."""
        return _pack(_UINT32, self.magic)

    def encode(self) -> bytes:
        """Return the wire form of the body."""
        return self.data()

    @classmethod
    def decode(cls, data: bytes) -> "PreCommit":
        """Decode the body; raise ValueError on a wrong length."""
        (magic,) = _unpack(_UINT32, data)
        return cls(magic=magic)