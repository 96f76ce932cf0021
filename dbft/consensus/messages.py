"""Consensus messages, payloads, recovery messages and their constructors."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type, Union

from ..crypto.hashes import hash256
from ..interfaces import ChangeViewReason, MessageType
from .compact import (
    ChangeViewCompact,
    CommitCompact,
    PreCommitCompact,
    PreparationCompact,
)
from .payloads import (
    HASH_SIZE,
    SIGNATURE_SIZE,
    AMEV_DATA_SIZE,
    AMEVCommit,
    ChangeView,
    Commit,
    PreCommit,
    PrepareRequest,
    PrepareResponse,
    RecoveryRequest,
    nanosec_to_sec,
)

_LENGTH = struct.Struct(">I")
_FLAG = struct.Struct(">B")
_MESSAGE_HEADER = struct.Struct(">BB")
_PAYLOAD_HEADER = struct.Struct(">IH32sI")


class DecodeError(ValueError):
    """Raised when binary data is not a valid consensus message."""


def _pack(layout: struct.Struct, *values: Any) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(f"value out of range: {exc}") from exc


def _chunk(data: bytes) -> bytes:
    return _pack(_LENGTH, len(data)) + data


def _fit(data: bytes, size: int) -> bytes:
    """Copy ``data`` into ``size`` bytes, truncating or zero-padding it."""
    return bytes(data)[:size].ljust(size, b"\x00")


class _Reader:
    """Sequential reader over a byte string that raises DecodeError on short data."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise DecodeError("unexpected end of data")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def unpack(self, layout: struct.Struct) -> Tuple[Any, ...]:
        return layout.unpack(self.take(layout.size))

    def chunk(self) -> bytes:
        (size,) = self.unpack(_LENGTH)
        return self.take(size)

    def items(self, decode: Callable[[bytes], Any]) -> List[Any]:
        (count,) = self.unpack(_LENGTH)
        try:
            return [decode(self.chunk()) for _ in range(count)]
        except DecodeError:
            raise
        except ValueError as exc:
            raise DecodeError(str(exc)) from exc

    def finish(self) -> None:
        if self._pos != len(self._data):
            raise DecodeError("trailing data")


@dataclass
class RecoveryMessage:
    """Recovery message body carrying compact payloads of an epoch.

    PreCommit payloads are kept in memory but are not part of the wire form.
    """

    preparation_hash: Optional[bytes] = None
    preparation_payloads: List[PreparationCompact] = field(default_factory=list)
    pre_commit_payloads: List[PreCommitCompact] = field(default_factory=list)
    commit_payloads: List[CommitCompact] = field(default_factory=list)
    change_view_payloads: List[ChangeViewCompact] = field(default_factory=list)
    prepare_request: Optional[PrepareRequest] = None

    def add_payload(self, payload: Any) -> None:
        """Add a payload of this epoch; recovery payloads are ignored."""
        kind = payload.message_type
        if kind == MessageType.PREPARE_REQUEST:
            self.prepare_request = payload.get_prepare_request()
            self.preparation_hash = payload.hash()
        elif kind == MessageType.PREPARE_RESPONSE:
            self.preparation_payloads.append(
                PreparationCompact(validator_index=payload.validator_index)
            )
        elif kind == MessageType.CHANGE_VIEW:
            self.change_view_payloads.append(
                ChangeViewCompact(
                    validator_index=payload.validator_index,
                    original_view_number=payload.view_number,
                    timestamp=0,
                )
            )
        elif kind == MessageType.PRE_COMMIT:
            self.pre_commit_payloads.append(
                PreCommitCompact(
                    view_number=payload.view_number,
                    validator_index=payload.validator_index,
                    data=payload.get_pre_commit().data(),
                )
            )
        elif kind == MessageType.COMMIT:
            self.commit_payloads.append(
                CommitCompact(
                    view_number=payload.view_number,
                    validator_index=payload.validator_index,
                    signature=_fit(payload.get_commit().signature, SIGNATURE_SIZE),
                )
            )

    @staticmethod
    def _restore(kind: MessageType, recovery: Any, body: Any, index: int) -> "Payload":
        return Payload(
            message_type=kind,
            view_number=recovery.view_number,
            body=body,
            validator_index=index,
            height=recovery.height,
        )

    def get_prepare_request(
        self, payload: Any, validators: Sequence[Any], primary: int
    ) -> Optional["Payload"]:
        """Return the PrepareRequest payload from the primary, or None."""
        if self.prepare_request is None:
            return None
        request = self.prepare_request
        body = PrepareRequest(
            transaction_hashes=request.transaction_hashes,
            nonce=request.nonce,
            timestamp_sec=nanosec_to_sec(request.timestamp),
        )
        return self._restore(MessageType.PREPARE_REQUEST, payload, body, primary)

    def get_prepare_responses(self, payload: Any, validators: Sequence[Any]) -> List["Payload"]:
        """Return PrepareResponse payloads; empty when the preparation hash is unknown."""
        if self.preparation_hash is None:
            return []
        return [
            self._restore(
                MessageType.PREPARE_RESPONSE,
                payload,
                PrepareResponse(self.preparation_hash),
                compact.validator_index,
            )
            for compact in self.preparation_payloads
        ]

    def get_change_views(self, payload: Any, validators: Sequence[Any]) -> List["Payload"]:
        """Return ChangeView payloads."""
        return [
            self._restore(
                MessageType.CHANGE_VIEW,
                payload,
                ChangeView(
                    new_view_number=(compact.original_view_number + 1) & 0xFF,
                    timestamp_sec=compact.timestamp,
                ),
                compact.validator_index,
            )
            for compact in self.change_view_payloads
        ]

    def get_pre_commits(self, payload: Any, validators: Sequence[Any]) -> List["Payload"]:
        """Return PreCommit payloads."""
        return [
            self._restore(
                MessageType.PRE_COMMIT,
                payload,
                PreCommit.decode(compact.data[:4]),
                compact.validator_index,
            )
            for compact in self.pre_commit_payloads
        ]

    def get_commits(self, payload: Any, validators: Sequence[Any]) -> List["Payload"]:
        """Return Commit payloads."""
        return [
            self._restore(
                MessageType.COMMIT,
                payload,
                Commit(signature=compact.signature),
                compact.validator_index,
            )
            for compact in self.commit_payloads
        ]

    def encode(self) -> bytes:
        """Return the wire form of the recovery message."""
        parts = [_pack(_FLAG, int(self.prepare_request is not None))]
        if self.prepare_request is not None:
            parts.append(_chunk(self.prepare_request.encode()))
        elif self.preparation_hash is None:
            parts.append(_pack(_LENGTH, 0))
        else:
            if len(self.preparation_hash) != HASH_SIZE:
                raise ValueError("wrong preparation hash length")
            parts.append(_pack(_LENGTH, HASH_SIZE) + bytes(self.preparation_hash))
        for items in (self.preparation_payloads, self.commit_payloads, self.change_view_payloads):
            parts.append(_pack(_LENGTH, len(items)))
            parts.extend(_chunk(item.encode()) for item in items)
        return b"".join(parts)

    @classmethod
    def decode(cls, data: bytes) -> "RecoveryMessage":
        """Decode the wire form; raise DecodeError if it is malformed."""
        reader = _Reader(data)
        (has_request,) = reader.unpack(_FLAG)
        message = cls()
        if has_request:
            try:
                message.prepare_request = PrepareRequest.decode(reader.chunk())
            except DecodeError:
                raise
            except ValueError as exc:
                raise DecodeError(str(exc)) from exc
        else:
            (size,) = reader.unpack(_LENGTH)
            if size == HASH_SIZE:
                message.preparation_hash = reader.take(HASH_SIZE)
            elif size != 0:
                raise DecodeError("wrong hash length")
        message.preparation_payloads = reader.items(PreparationCompact.decode)
        message.commit_payloads = reader.items(CommitCompact.decode)
        message.change_view_payloads = reader.items(ChangeViewCompact.decode)
        reader.finish()
        return message


def _decode_change_view(data: bytes, view: int) -> ChangeView:
    return replace(ChangeView.decode(data), new_view_number=(view + 1) & 0xFF)


_BODY_DECODERS: Dict[MessageType, Callable[[bytes, int], Any]] = {
    MessageType.CHANGE_VIEW: _decode_change_view,
    MessageType.PREPARE_REQUEST: lambda data, _view: PrepareRequest.decode(data),
    MessageType.PREPARE_RESPONSE: lambda data, _view: PrepareResponse.decode(data),
    MessageType.COMMIT: lambda data, _view: Commit.decode(data),
    MessageType.RECOVERY_REQUEST: lambda data, _view: RecoveryRequest.decode(data),
    MessageType.RECOVERY_MESSAGE: lambda data, _view: RecoveryMessage.decode(data),
}


@dataclass
class Payload:
    """A consensus message together with its sender, height and version."""

    message_type: MessageType
    view_number: int
    body: Any
    validator_index: int = 0
    height: int = 0
    version: int = 0
    prev_hash: bytes = bytes(HASH_SIZE)

    def _encode_message(self) -> bytes:
        encode = getattr(self.body, "encode", None)
        if encode is None:
            raise TypeError(f"message body {type(self.body).__name__} is not serializable")
        header = _pack(_MESSAGE_HEADER, int(self.message_type), self.view_number)
        return header + _chunk(encode())

    def encode(self) -> bytes:
        """Return the wire form of the payload."""
        header = _pack(
            _PAYLOAD_HEADER,
            self.version,
            self.validator_index,
            bytes(self.prev_hash),
            self.height,
        )
        return header + _chunk(self._encode_message())

    @classmethod
    def decode(cls, data: bytes) -> "Payload":
        """Decode the wire form; raise DecodeError if it is malformed."""
        reader = _Reader(data)
        version, index, prev_hash, height = reader.unpack(_PAYLOAD_HEADER)
        message = _Reader(reader.chunk())
        reader.finish()

        raw_type, view = message.unpack(_MESSAGE_HEADER)
        body_data = message.chunk()
        message.finish()

        try:
            kind = MessageType(raw_type)
            decoder = _BODY_DECODERS[kind]
        except (ValueError, KeyError):
            raise DecodeError(f"invalid type: 0x{raw_type:02x}") from None
        try:
            body = decoder(body_data, view)
        except DecodeError:
            raise
        except ValueError as exc:
            raise DecodeError(str(exc)) from exc

        return cls(
            message_type=kind,
            view_number=view,
            body=body,
            validator_index=index,
            height=height,
            version=version,
            prev_hash=prev_hash,
        )

    def marshal_unsigned(self) -> bytes:
        """Return the unsigned wire form of the payload."""
        return self.encode()

    @classmethod
    def unmarshal_unsigned(cls, data: bytes) -> "Payload":
        """Decode the unsigned wire form of a payload."""
        return cls.decode(data)

    def hash(self) -> bytes:
        """Return the double SHA-256 of the unsigned wire form."""
        return hash256(self.marshal_unsigned())

    def _body_as(self, kinds: Union[Type[Any], Tuple[Type[Any], ...]]) -> Any:
        if not isinstance(self.body, kinds):
            raise TypeError(f"payload holds {type(self.body).__name__}")
        return self.body

    def get_change_view(self) -> ChangeView:
        """Return the body as a ChangeView."""
        return self._body_as(ChangeView)

    def get_prepare_request(self) -> PrepareRequest:
        """Return the body as a PrepareRequest."""
        return self._body_as(PrepareRequest)

    def get_prepare_response(self) -> PrepareResponse:
        """Return the body as a PrepareResponse."""
        return self._body_as(PrepareResponse)

    def get_commit(self) -> Union[Commit, AMEVCommit]:
        """Return the body as a Commit."""
        return self._body_as((Commit, AMEVCommit))

    def get_pre_commit(self) -> PreCommit:
        """Return the body as a PreCommit."""
        return self._body_as(PreCommit)

    def get_recovery_request(self) -> RecoveryRequest:
        """Return the body as a RecoveryRequest."""
        return self._body_as(RecoveryRequest)

    def get_recovery_message(self) -> RecoveryMessage:
        """Return the body as a RecoveryMessage."""
        return self._body_as(RecoveryMessage)


def new_consensus_payload(
    message_type: MessageType, height: int, validator_index: int, view_number: int, body: Any
) -> Payload:
    """Return a payload holding ``body``."""
    return Payload(
        message_type=MessageType(message_type),
        view_number=view_number,
        body=body,
        validator_index=validator_index,
        height=height,
    )


def new_prepare_request(
    timestamp: int, nonce: int, transaction_hashes: Sequence[bytes]
) -> PrepareRequest:
    """Return a PrepareRequest; ``timestamp`` is in nanoseconds."""
    return PrepareRequest(
        transaction_hashes=tuple(transaction_hashes),
        nonce=nonce,
        timestamp_sec=nanosec_to_sec(timestamp),
    )


def new_prepare_response(preparation_hash: bytes) -> PrepareResponse:
    """Return a PrepareResponse for ``preparation_hash``."""
    return PrepareResponse(preparation_hash=preparation_hash)


def new_change_view(
    new_view_number: int, reason: ChangeViewReason, timestamp: int
) -> ChangeView:
    """Return a ChangeView; the reason is not kept and ``timestamp`` is in nanoseconds."""
    return ChangeView(new_view_number=new_view_number, timestamp_sec=nanosec_to_sec(timestamp))


def new_commit(signature: bytes) -> Commit:
    """Return a Commit with ``signature`` fitted into 64 bytes."""
    return Commit(signature=_fit(signature, SIGNATURE_SIZE))


def new_pre_commit(data: bytes) -> PreCommit:
    """Return a PreCommit from the first 4 big-endian bytes of ``data``."""
    data = bytes(data)
    if len(data) < 4:
        raise ValueError("pre-commit data must hold at least 4 bytes")
    return PreCommit.decode(data[:4])


def new_amev_commit(data: bytes) -> AMEVCommit:
    """Return an anti-MEV Commit with ``data`` fitted into 64 bytes."""
    return AMEVCommit(data=_fit(data, AMEV_DATA_SIZE))


def new_recovery_request(timestamp: int) -> RecoveryRequest:
    """Return a RecoveryRequest; ``timestamp`` is in nanoseconds."""
    return RecoveryRequest(timestamp_sec=nanosec_to_sec(timestamp))


def new_recovery_message(preparation_hash: Optional[bytes] = None) -> RecoveryMessage:
    """Return an empty RecoveryMessage with an optional preparation hash."""
    return RecoveryMessage(preparation_hash=preparation_hash)