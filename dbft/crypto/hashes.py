"""Hash helpers used for blocks, payloads and Merkle trees."""

import hashlib

UINT256_SIZE = 32
UINT160_SIZE = 20


def hash256(data: bytes) -> bytes:
    """Return the double SHA-256 digest of ``data``."""
    return hashlib.sha256(hashlib.sha256(bytes(data)).digest()).digest()


def hash160(data: bytes) -> bytes:
    """Return the first 20 bytes of the SHA-256 digest of ``data``."""
    return hashlib.sha256(bytes(data)).digest()[:UINT160_SIZE]


def to_hex(value: bytes) -> str:
    """Return the lower-case hexadecimal form of a hash value."""
    return bytes(value).hex()