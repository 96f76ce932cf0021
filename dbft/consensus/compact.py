"""Compact forms of payloads packed into a recovery message."""

from __future__ import annotations

import struct
from dataclasses import dataclass

SIGNATURE_SIZE = 64

_CHANGE_VIEW = struct.Struct(">HBI")
_PRE_COMMIT_HEADER = struct.Struct(">BHI")
_COMMIT_HEADER = struct.Struct(">BH")
_PREPARATION = struct.Struct(">H")


def _pack(layout: struct.Struct, *values: int) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(f"value out of range: {exc}") from exc


def _unpack(layout: struct.Struct, data: bytes):
    data = bytes(data)
    if len(data) != layout.size:
        raise ValueError(f"expected {layout.size} bytes, got {len(data)}")
    return layout.unpack(data)


@dataclass(frozen=True)
class ChangeViewCompact:
    """ChangeView reduced to its sender, original view and timestamp."""

    validator_index: int = 0
    original_view_number: int = 0
    timestamp: int = 0

    def encode(self) -> bytes:
        """Return the wire form."""
        return _pack(_CHANGE_VIEW, self.validator_index, self.original_view_number, self.timestamp)

    @classmethod
    def decode(cls, data: bytes) -> "ChangeViewCompact":
        """Decode the wire form; raise ValueError on a wrong length."""
        index, view, timestamp = _unpack(_CHANGE_VIEW, data)
        return cls(validator_index=index, original_view_number=view, timestamp=timestamp)


@dataclass(frozen=True)
class PreCommitCompact:
    """PreCommit reduced to its view, sender and data."""

    view_number: int = 0
    validator_index: int = 0
    data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))

    def encode(self) -> bytes:
        """Return the wire form."""
        header = _pack(_PRE_COMMIT_HEADER, self.view_number, self.validator_index, len(self.data))
        return header + self.data

    @classmethod
    def decode(cls, data: bytes) -> "PreCommitCompact":
        """Decode the wire form; raise ValueError if it is malformed."""
        data = bytes(data)
        if len(data) < _PRE_COMMIT_HEADER.size:
            raise ValueError("pre-commit compact is too short")
        view, index, size = _PRE_COMMIT_HEADER.unpack_from(data)
        body = data[_PRE_COMMIT_HEADER.size:]
        if len(body) != size:
            raise ValueError("pre-commit compact data has a wrong length")
        return cls(view_number=view, validator_index=index, data=body)


@dataclass(frozen=True)
class CommitCompact:
    """Commit reduced to its view, sender and signature."""

    view_number: int = 0
    validator_index: int = 0
    signature: bytes = bytes(SIGNATURE_SIZE)

    def __post_init__(self) -> None:
        signature = bytes(self.signature)
        if len(signature) != SIGNATURE_SIZE:
            raise ValueError(f"signature must be {SIGNATURE_SIZE} bytes")
        object.__setattr__(self, "signature", signature)

    def encode(self) -> bytes:
        """Return the wire form."""
        return _pack(_COMMIT_HEADER, self.view_number, self.validator_index) + self.signature

    @classmethod
    def decode(cls, data: bytes) -> "CommitCompact":
        """Decode the wire form; raise ValueError on a wrong length."""
        data = bytes(data)
        if len(data) != _COMMIT_HEADER.size + SIGNATURE_SIZE:
            raise ValueError("commit compact has a wrong length")
        view, index = _COMMIT_HEADER.unpack_from(data)
        return cls(view_number=view, validator_index=index, signature=data[_COMMIT_HEADER.size:])


@dataclass(frozen=True)
class PreparationCompact:
    """PrepareResponse reduced to its sender."""

    validator_index: int = 0

    def encode(self) -> bytes:
        """Return the wire form."""
        return _pack(_PREPARATION, self.validator_index)

    @classmethod
    def decode(cls, data: bytes) -> "PreparationCompact":
        """Decode the wire form; raise ValueError on a wrong length."""
        (index,) = _unpack(_PREPARATION, data)
        return cls(validator_index=index)