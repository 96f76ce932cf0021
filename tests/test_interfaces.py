import pytest

from dbft.consensus.block import new_pre_block
from dbft.consensus.transaction import Tx64
from dbft.interfaces import (
    ChangeViewReason,
    MessageType,
    PreBlock,
    PrepareRequestBody,
    Transaction,
)


@pytest.mark.parametrize(
    ("message_type", "name"),
    [
        (MessageType.CHANGE_VIEW, "ChangeView"),
        (MessageType.PREPARE_REQUEST, "PrepareRequest"),
        (MessageType.PREPARE_RESPONSE, "PrepareResponse"),
        (MessageType.COMMIT, "Commit"),
        (MessageType.RECOVERY_REQUEST, "RecoveryRequest"),
        (MessageType.RECOVERY_MESSAGE, "RecoveryMessage"),
    ],
)
def test_message_type_string(message_type, name):
    assert str(message_type) == name


def test_message_type_values_round_trip_and_are_distinct():
    values = [int(m) for m in MessageType]
    assert len(set(values)) == len(values)
    assert [MessageType(v) for v in values] == list(MessageType)
    assert all(0 <= v <= 0xFF for v in values)


def test_unknown_message_type_is_rejected():
    with pytest.raises(ValueError):
        MessageType(0x99)


def test_change_view_reason_round_trip():
    assert ChangeViewReason(int(ChangeViewReason.TX_NOT_FOUND)) is ChangeViewReason.TX_NOT_FOUND
    assert str(ChangeViewReason.TX_NOT_FOUND) == "TxNotFound"


class _Request:
    timestamp = 0
    nonce = 0
    transaction_hashes = ()


def test_structural_protocols_match_implementations():
    tx = Tx64(1)
    draft = new_pre_block(0, 1, bytes(32), 0, [])
    assert isinstance(tx, Transaction)
    assert isinstance(draft, PreBlock)
    assert isinstance(_Request(), PrepareRequestBody)
    assert draft.data() == bytes([0, 0, 0, 0xFF])


def test_structural_protocols_reject_unrelated_objects():
    tx = Tx64(7)
    assert not isinstance(object(), Transaction)
    assert not isinstance(tx, PreBlock)
    assert not isinstance(tx, PrepareRequestBody)
    assert tx.hash()[0] == 7