"""ECDSA keys over the P-256 curve with 64-byte raw signatures."""

from __future__ import annotations

import os
from enum import IntEnum
from typing import BinaryIO, Optional, Tuple

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

_CURVE_ORDER = 0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551
_SCALAR_SIZE = 32
_SIGNATURE_SIZE = 2 * _SCALAR_SIZE
_SEED_SIZE = _SCALAR_SIZE + 8
_COMPRESSED_SIZE = 1 + _SCALAR_SIZE


class Suite(IntEnum):
    """Supported signature suites."""

    ECDSA = 1


DEFAULT_SUITE = Suite.ECDSA


class SignatureError(Exception):
    """Raised when a signature does not match the message and key."""


class ECDSAPublicKey:
    """A P-256 public key."""

    __slots__ = ("_key",)

    def __init__(self, key: ec.EllipticCurvePublicKey) -> None:
        self._key = key

    def verify(self, msg: bytes, sig: bytes) -> None:
        """Check ``sig`` over the SHA-256 of ``msg``; raise SignatureError if bad."""
        if len(sig) < _SIGNATURE_SIZE:
            raise SignatureError("bad signature")
        r = int.from_bytes(sig[:_SCALAR_SIZE], "big")
        s = int.from_bytes(sig[_SCALAR_SIZE:_SIGNATURE_SIZE], "big")
        try:
            self._key.verify(encode_dss_signature(r, s), bytes(msg), ec.ECDSA(hashes.SHA256()))
        except (InvalidSignature, ValueError) as exc:
            raise SignatureError("bad signature") from exc

    def to_bytes(self) -> bytes:
        """Return the compressed point encoding."""
        return self._key.public_bytes(
            serialization.Encoding.X962, serialization.PublicFormat.CompressedPoint
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "ECDSAPublicKey":
        """Decode a compressed point; raise ValueError if it is not one."""
        data = bytes(data)
        if len(data) != _COMPRESSED_SIZE or data[0] not in (2, 3):
            raise ValueError("can't unmarshal ECDSA public key")
        try:
            key = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), data)
        except ValueError as exc:
            raise ValueError("can't unmarshal ECDSA public key") from exc
        return cls(key)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ECDSAPublicKey):
            return NotImplemented
        return self._key.public_numbers() == other._key.public_numbers()

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        return f"ECDSAPublicKey({self.to_bytes().hex()})"


class ECDSAPrivateKey:
    """A P-256 private key."""

    __slots__ = ("_key",)

    def __init__(self, key: ec.EllipticCurvePrivateKey) -> None:
        self._key = key

    def sign(self, msg: bytes) -> bytes:
        """Sign the SHA-256 of ``msg``; return r and s as 64 big-endian bytes."""
        der = self._key.sign(bytes(msg), ec.ECDSA(hashes.SHA256()))
        r, s = decode_dss_signature(der)
        return r.to_bytes(_SCALAR_SIZE, "big") + s.to_bytes(_SCALAR_SIZE, "big")

    def public_key(self) -> ECDSAPublicKey:
        """Return the matching public key."""
        return ECDSAPublicKey(self._key.public_key())

    def __repr__(self) -> str:
        return "ECDSAPrivateKey(...)"


KeyPair = Tuple[Optional[ECDSAPrivateKey], Optional[ECDSAPublicKey]]


def _read_full(reader: BinaryIO, size: int) -> bytes:
    buf = bytearray()
    while len(buf) < size:
        chunk = reader.read(size - len(buf))
        if not chunk:
            raise EOFError("entropy source exhausted")
        buf += chunk
    return bytes(buf)


def _generate_ecdsa(reader: Optional[BinaryIO]) -> KeyPair:
    try:
        seed = os.urandom(_SEED_SIZE) if reader is None else _read_full(reader, _SEED_SIZE)
    except (OSError, EOFError):
        return None, None
    scalar = int.from_bytes(seed, "big") % (_CURVE_ORDER - 1) + 1
    priv = ECDSAPrivateKey(ec.derive_private_key(scalar, ec.SECP256R1()))
    return priv, priv.public_key()


def generate_with(suite: int, reader: Optional[BinaryIO] = None) -> KeyPair:
    """Generate a key pair for ``suite`` from ``reader``'s bytes.

    Returns ``(None, None)`` for an unknown suite or when the reader fails.
    """
    if suite == Suite.ECDSA:
        return _generate_ecdsa(reader)
    return None, None


def generate(reader: Optional[BinaryIO] = None) -> KeyPair:
    """Generate a key pair of the default suite from ``reader``'s bytes."""
    return generate_with(DEFAULT_SUITE, reader)