"""Blocks built by consensus nodes, including the anti-MEV draft and final blocks."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from ..crypto.hashes import UINT160_SIZE, UINT256_SIZE, hash256
from ..interfaces import Transaction
from ..merkle import merkle_tree
from .transaction import Tx64

_BASE = struct.Struct(">QIII32s32s20s")
_UINT32 = struct.Struct(">I")
_NANOSECONDS = 1_000_000_000
_UINT32_MASK = 0xFFFFFFFF
_MAX_INT64 = (1 << 63) - 1
_ZERO_HASH = bytes(UINT256_SIZE)
_CANARY = 0xFF

# Implementation-specific value every node fills in on its own and nobody verifies.
DEFAULT_NEXT_CONSENSUS = bytes([1, 2, 3]).ljust(UINT160_SIZE, b"\x00")


@dataclass
class BlockBase:
    """All hashable and signable fields of a block."""

    consensus_data: int = 0
    index: int = 0
    timestamp: int = 0
    version: int = 0
    merkle_root: bytes = _ZERO_HASH
    prev_hash: bytes = _ZERO_HASH
    next_consensus: bytes = field(default=bytes(UINT160_SIZE))

    def encode(self) -> bytes:
        """Return the wire form of the fields."""
        try:
            return _BASE.pack(
                self.consensus_data,
                self.index,
                self.timestamp,
                self.version,
                _exact(self.merkle_root, UINT256_SIZE, "merkle root"),
                _exact(self.prev_hash, UINT256_SIZE, "previous hash"),
                _exact(self.next_consensus, UINT160_SIZE, "next consensus"),
            )
        except struct.error as exc:
            raise ValueError(f"value out of range: {exc}") from exc

    @classmethod
    def decode(cls, data: bytes) -> "BlockBase":
        """Decode the wire form; raise ValueError on a wrong length."""
        data = bytes(data)
        if len(data) != _BASE.size:
            raise ValueError(f"expected {_BASE.size} bytes, got {len(data)}")
        nonce, index, timestamp, version, root, prev, next_consensus = _BASE.unpack(data)
        return cls(
            consensus_data=nonce,
            index=index,
            timestamp=timestamp,
            version=version,
            merkle_root=root,
            prev_hash=prev,
            next_consensus=next_consensus,
        )


def _exact(value: bytes, size: int, what: str) -> bytes:
    value = bytes(value)
    if len(value) != size:
        raise ValueError(f"{what} must be {size} bytes, got {len(value)}")
    return value


def _merkle_root(hashes: Sequence[bytes]) -> bytes:
    tree = merkle_tree(*hashes)
    return _ZERO_HASH if tree is None else tree.root.hash


def _new_base(timestamp: int, index: int, prev_hash: bytes, nonce: int,
              tx_hashes: Optional[Sequence[bytes]]) -> BlockBase:
    return BlockBase(
        consensus_data=nonce,
        index=index,
        timestamp=(timestamp // _NANOSECONDS) & _UINT32_MASK,
        version=0,
        merkle_root=_merkle_root(tx_hashes or ()),
        prev_hash=bytes(prev_hash),
        next_consensus=DEFAULT_NEXT_CONSENSUS,
    )


class _BlockHeader:
    """Shared state and read-only fields of signed blocks."""

    def __init__(self, base: Optional[BlockBase] = None) -> None:
        self.base = base if base is not None else BlockBase()
        self.signature: Optional[bytes] = None
        self._hash: Optional[bytes] = None
        self._transactions: Optional[List[Transaction]] = None

    @property
    def prev_hash(self) -> bytes:
        """Hash of the previous block."""
        return self.base.prev_hash

    @property
    def index(self) -> int:
        """Height of the block."""
        return self.base.index

    @property
    def merkle_root(self) -> bytes:
        """Merkle root of the block's transactions."""
        return self.base.merkle_root

    def _cached_hash(self) -> bytes:
        if self._hash is not None:
            return self._hash
        if self._transactions is None:
            return _ZERO_HASH
        self._hash = hash256(self.base.encode())
        return self._hash


class NeoBlock(_BlockHeader):
    """A block of the basic consensus."""

    def __init__(self, base: Optional[BlockBase] = None,
                 transactions: Optional[List[Transaction]] = None) -> None:
        super().__init__(base)
        self._transactions = transactions

    @property
    def transactions(self) -> Optional[List[Transaction]]:
        """Transactions of the block."""
        return self._transactions

    @transactions.setter
    def transactions(self, txs: Optional[List[Transaction]]) -> None:
        self._transactions = txs

    def hash_data(self) -> bytes:
        """Return the data that is hashed and signed."""
        return self.base.encode()

    def sign(self, key: Any) -> None:
        """Sign the block with ``key``; errors of the key propagate."""
        self.signature = key.sign(self.hash_data())

    def verify(self, pub: Any, signature: bytes) -> None:
        """Raise if ``signature`` is not a valid signature of the block by ``pub``."""
        pub.verify(self.hash_data(), signature)

    def hash(self) -> bytes:
        """Return the block hash; all zeros while no transactions are set."""
        return self._cached_hash()


class PreBlock:
    """Draft of a block completed with data exchanged in PreCommit messages."""

    def __init__(self, base: Optional[BlockBase] = None,
                 transactions: Optional[List[Transaction]] = None) -> None:
        self.base = base if base is not None else BlockBase()
        self.magic = _CANARY
        self.transactions = transactions

    def data(self) -> bytes:
        """Return the exchanged value as 4 big-endian bytes."""
        return _UINT32.pack(self.magic & _UINT32_MASK)

    def set_data(self, key: Any) -> None:
        """Generate the exchanged value, which is the block height."""
        self.magic = self.base.index

    def verify(self, pub: Any, data: bytes) -> None:
        """Raise ValueError if ``data`` is not the expected exchanged value."""
        data = bytes(data)
        if len(data) != _UINT32.size:
            raise ValueError("invalid data len")
        (value,) = _UINT32.unpack(data)
        if value != self.base.index:
            raise ValueError("invalid data")


class AMEVBlock(_BlockHeader):
    """Final block of the anti-MEV extension built from a PreBlock."""

    def __init__(self, base: Optional[BlockBase] = None,
                 transactions: Optional[List[Transaction]] = None) -> None:
        super().__init__(base)
        self._transactions = transactions

    @property
    def transactions(self) -> Optional[List[Transaction]]:
        """Transactions of the block."""
        return self._transactions

    @transactions.setter
    def transactions(self, txs: Optional[List[Transaction]]) -> None:
        # The final transaction list comes from the PreBlock; assignments are ignored.
        pass

    def hash_data(self) -> bytes:
        """Return the data that is hashed and signed."""
        return self.base.encode()

    def sign(self, key: Any) -> None:
        """Sign the block with ``key``; errors of the key propagate."""
        self.signature = key.sign(self.hash_data())

    def verify(self, pub: Any, signature: bytes) -> None:
        """Raise if ``signature`` is not a valid signature of the block by ``pub``."""
        pub.verify(self.hash_data(), signature)

    def hash(self) -> bytes:
        """Return the block hash; all zeros while no transactions are set."""
        return self._cached_hash()


def new_block(timestamp: int, index: int, prev_hash: bytes, nonce: int,
              tx_hashes: Optional[Sequence[bytes]]) -> NeoBlock:
    """Return a block; ``timestamp`` is in nanoseconds."""
    return NeoBlock(_new_base(timestamp, index, prev_hash, nonce, tx_hashes))


def new_pre_block(timestamp: int, index: int, prev_hash: bytes, nonce: int,
                  tx_hashes: Optional[Sequence[bytes]]) -> PreBlock:
    """Return a draft block; ``timestamp`` is in nanoseconds."""
    return PreBlock(_new_base(timestamp, index, prev_hash, nonce, tx_hashes))


def new_amev_block(pre: PreBlock, cn_data: Sequence[bytes], m: int) -> AMEVBlock:
    """Build the final block from ``pre`` and the data of ``m`` consensus nodes.

    One extra transaction derived from the nodes' data is appended and the
    Merkle root is rebuilt over the resulting list.
    """
    total = 0
    for chunk in cn_data[:m]:
        chunk = bytes(chunk)
        if len(chunk) < _UINT32.size:
            raise ValueError("consensus node data must hold at least 4 bytes")
        (value,) = _UINT32.unpack_from(chunk)
        total = (total + value) & _UINT32_MASK
    if len(cn_data) < m:
        raise ValueError(f"expected data from {m} nodes, got {len(cn_data)}")

    transactions: List[Transaction] = list(pre.transactions or [])
    transactions.append(Tx64(_MAX_INT64 - total))

    base = BlockBase(**vars(pre.base))
    base.merkle_root = _merkle_root([tx.hash() for tx in transactions])
    return AMEVBlock(base, transactions)