"""Message types and the structural interfaces of consensus objects."""

from __future__ import annotations

from enum import IntEnum
from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable


class MessageType(IntEnum):
    """Type of a consensus message."""

    CHANGE_VIEW = 0x00
    PREPARE_REQUEST = 0x20
    PREPARE_RESPONSE = 0x21
    COMMIT = 0x30
    PRE_COMMIT = 0x31
    RECOVERY_REQUEST = 0x40
    RECOVERY_MESSAGE = 0x41

    def __str__(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))


class ChangeViewReason(IntEnum):
    """Reason a node asks for a view change."""

    TIMEOUT = 0x00
    CHANGE_AGREEMENT = 0x01
    TX_NOT_FOUND = 0x02
    TX_REJECTED_BY_POLICY = 0x03
    TX_INVALID = 0x04
    BLOCK_REJECTED_BY_POLICY = 0x05
    UNKNOWN = 0xFF

    def __str__(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))


@runtime_checkable
class Transaction(Protocol):
    """A transaction; transactions with equal hashes are equal."""

    def hash(self) -> bytes:
        """Return the cryptographic hash of the transaction."""
        ...


@runtime_checkable
class PreBlock(Protocol):
    """Draft block completed with data exchanged in PreCommit messages."""

    transactions: List[Transaction]

    def data(self) -> bytes:
        """Return the data exchanged during the PreCommit phase."""
        ...

    def set_data(self, key: Any) -> None:
        """Generate and store the PreCommit-phase data."""
        ...

    def verify(self, key: Any, data: bytes) -> None:
        """Raise if ``data`` from the holder of ``key`` is not correct."""
        ...


@runtime_checkable
class PreCommitBody(Protocol):
    """Body of a PreCommit message."""

    def data(self) -> bytes:
        """Return the data used to build the final block."""
        ...


@runtime_checkable
class PrepareRequestBody(Protocol):
    """Body of a PrepareRequest message."""

    @property
    def timestamp(self) -> int:
        """Timestamp in nanoseconds."""
        ...

    @property
    def nonce(self) -> int:
        """Random nonce."""
        ...

    @property
    def transaction_hashes(self) -> Sequence[bytes]:
        """Hashes of the transactions in the proposed block."""
        ...


@runtime_checkable
class PrepareResponseBody(Protocol):
    """Body of a PrepareResponse message."""

    @property
    def preparation_hash(self) -> bytes:
        """Hash of the PrepareRequest payload of this epoch."""
        ...


@runtime_checkable
class RecoveryRequestBody(Protocol):
    """Body of a RecoveryRequest message."""

    @property
    def timestamp(self) -> int:
        """Timestamp in nanoseconds."""
        ...


@runtime_checkable
class RecoveryMessageBody(Protocol):
    """Body of a Recovery message."""

    @property
    def preparation_hash(self) -> Optional[bytes]:
        """Hash of the PrepareRequest payload of this epoch, if known."""
        ...

    def add_payload(self, payload: Any) -> None:
        """Add a payload of this epoch to be recovered."""
        ...

    def get_prepare_request(self, payload: Any, validators: Sequence[Any], primary: int) -> Any:
        """Return the PrepareRequest payload to process, or None."""
        ...

    def get_prepare_responses(self, payload: Any, validators: Sequence[Any]) -> List[Any]:
        """Return PrepareResponse payloads in any order."""
        ...

    def get_change_views(self, payload: Any, validators: Sequence[Any]) -> List[Any]:
        """Return ChangeView payloads in any order."""
        ...

    def get_pre_commits(self, payload: Any, validators: Sequence[Any]) -> List[Any]:
        """Return PreCommit payloads in any order."""
        ...

    def get_commits(self, payload: Any, validators: Sequence[Any]) -> List[Any]:
        """Return Commit payloads in any order."""
        ...