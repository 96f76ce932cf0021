import os

import pytest

from dbft.consensus.compact import (
    ChangeViewCompact,
    CommitCompact,
    PreCommitCompact,
    PreparationCompact,
)
from dbft.consensus.messages import (
    DecodeError,
    Payload,
    RecoveryMessage,
    new_amev_commit,
    new_change_view,
    new_commit,
    new_consensus_payload,
    new_pre_commit,
    new_prepare_request,
    new_prepare_response,
    new_recovery_message,
    new_recovery_request,
)
from dbft.consensus.payloads import (
    ChangeView,
    Commit,
    PreCommit,
    PrepareRequest,
    PrepareResponse,
    RecoveryRequest,
    sec_to_nanosec,
)
from dbft.crypto.ecdsa import generate
from dbft.interfaces import ChangeViewReason, MessageType


def _hash(*prefix):
    return bytes(prefix).ljust(32, b"\x00")


def _request():
    return PrepareRequest(
        transaction_hashes=(_hash(1, 2, 3), _hash(5, 6, 7)), nonce=123, timestamp_sec=345
    )


def _message(kind, body):
    return new_consensus_payload(kind, 77, 10, 3, body)


def _recovery_body():
    return RecoveryMessage(
        change_view_payloads=[
            ChangeViewCompact(validator_index=1, original_view_number=3, timestamp=123)
        ],
        commit_payloads=[],
        preparation_payloads=[
            PreparationCompact(),
            PreparationCompact(validator_index=1),
            PreparationCompact(),
            PreparationCompact(validator_index=3),
            PreparationCompact(validator_index=4),
        ],
        prepare_request=_request(),
    )


@pytest.mark.parametrize(
    "kind, body",
    [
        (MessageType.PREPARE_REQUEST, _request()),
        (MessageType.PREPARE_RESPONSE, PrepareResponse(_hash(3))),
        (MessageType.COMMIT, Commit(os.urandom(64))),
        (MessageType.CHANGE_VIEW, ChangeView(new_view_number=4, timestamp_sec=12345)),
        (MessageType.RECOVERY_MESSAGE, _recovery_body()),
        (MessageType.RECOVERY_REQUEST, RecoveryRequest(timestamp_sec=17334)),
    ],
)
def test_payload_encode_decode(kind, body):
    message = _message(kind, body)
    decoded = Payload.decode(message.encode())
    assert decoded == message

    restored = Payload.unmarshal_unsigned(message.marshal_unsigned())
    assert restored.hash() == message.hash()


def test_recovery_message_no_payloads():
    message = new_consensus_payload(MessageType.RECOVERY_REQUEST, 77, 0, 3, RecoveryMessage())
    _, pub = generate()
    validators = [pub]

    recovery = message.get_recovery_message()
    assert recovery == RecoveryMessage()

    assert recovery.get_prepare_request(None, validators, 0) is None
    assert recovery.get_prepare_responses(None, validators) == []
    assert recovery.get_commits(None, validators) == []
    assert recovery.get_change_views(None, validators) == []


def test_constructors_setters():
    cv = new_change_view(4, ChangeViewReason.TIMEOUT, sec_to_nanosec(1234))
    assert cv.new_view_number == 4
    assert cv.timestamp_sec == 1234

    request = new_recovery_request(sec_to_nanosec(321))
    assert request.timestamp == sec_to_nanosec(321)

    recovery = new_recovery_message(_hash(1, 2, 3))
    assert recovery.preparation_hash == _hash(1, 2, 3)


def test_new_prepare_request_converts_timestamp():
    req = new_prepare_request(sec_to_nanosec(42) + 999, 7, [_hash(9)])
    assert req.timestamp_sec == 42
    assert req.timestamp == sec_to_nanosec(42)
    assert req.nonce == 7
    assert req.transaction_hashes == (_hash(9),)


def test_new_commit_pads_signature():
    commit = new_commit(b"\x01\x02")
    assert commit.signature == b"\x01\x02" + bytes(62)
    amev = new_amev_commit(b"\xff" * 70)
    assert amev.data == b"\xff" * 64


def test_new_pre_commit_reads_big_endian():
    assert new_pre_commit(b"\x00\x00\x01\x02").magic == 0x0102
    with pytest.raises(ValueError):
        new_pre_commit(b"\x01")


def test_new_prepare_response():
    assert new_prepare_response(_hash(5)).preparation_hash == _hash(5)


def test_decode_invalid_type():
    message = _message(MessageType.RECOVERY_REQUEST, RecoveryRequest(timestamp_sec=1))
    data = bytearray(message.encode())
    # Message type byte follows the 42-byte payload header and 4-byte length.
    data[46] = 0xFF
    with pytest.raises(DecodeError, match="invalid type: 0xff"):
        Payload.decode(bytes(data))


def test_pre_commit_payload_is_not_decodable():
    message = _message(MessageType.PRE_COMMIT, PreCommit(magic=5))
    with pytest.raises(DecodeError):
        Payload.decode(message.encode())


def test_decode_truncated_data():
    message = _message(MessageType.PREPARE_REQUEST, _request())
    with pytest.raises(DecodeError):
        Payload.decode(message.encode()[:-1])


def test_decode_trailing_data():
    message = _message(MessageType.PREPARE_RESPONSE, PrepareResponse(_hash(1)))
    with pytest.raises(DecodeError):
        Payload.decode(message.encode() + b"\x00")


def test_hash_depends_on_validator_index():
    message = _message(MessageType.PREPARE_RESPONSE, PrepareResponse(_hash(1)))
    before = message.hash()
    message.validator_index = 11
    assert message.hash() != before
    assert len(before) == 32


def test_getter_type_mismatch():
    message = _message(MessageType.COMMIT, Commit())
    with pytest.raises(TypeError):
        message.get_prepare_request()
    assert message.get_commit() == Commit()


def test_recovery_add_and_restore():
    recovery = RecoveryMessage()
    request = _message(MessageType.PREPARE_REQUEST, _request())
    recovery.add_payload(request)
    assert recovery.preparation_hash == request.hash()

    recovery.add_payload(new_consensus_payload(
        MessageType.PREPARE_RESPONSE, 77, 2, 3, PrepareResponse(request.hash())))
    recovery.add_payload(new_consensus_payload(
        MessageType.CHANGE_VIEW, 77, 4, 3, ChangeView(new_view_number=4, timestamp_sec=9)))
    signature = os.urandom(64)
    recovery.add_payload(new_consensus_payload(MessageType.COMMIT, 77, 5, 3, Commit(signature)))
    recovery.add_payload(new_consensus_payload(
        MessageType.PRE_COMMIT, 77, 6, 3, PreCommit(magic=77)))
    recovery.add_payload(new_consensus_payload(
        MessageType.RECOVERY_REQUEST, 77, 1, 3, RecoveryRequest()))

    carrier = new_consensus_payload(MessageType.RECOVERY_MESSAGE, 78, 1, 2, recovery)

    req = recovery.get_prepare_request(carrier, [], 7)
    assert req.validator_index == 7
    assert req.height == 78
    assert req.view_number == 2
    assert req.get_prepare_request() == _request()

    responses = recovery.get_prepare_responses(carrier, [])
    assert [p.validator_index for p in responses] == [2]
    assert responses[0].get_prepare_response().preparation_hash == request.hash()

    views = recovery.get_change_views(carrier, [])
    assert [p.validator_index for p in views] == [4]
    assert views[0].get_change_view() == ChangeView(new_view_number=4, timestamp_sec=0)

    commits = recovery.get_commits(carrier, [])
    assert [p.get_commit().signature for p in commits] == [signature]
    assert commits[0].validator_index == 5

    pre_commits = recovery.get_pre_commits(carrier, [])
    assert [p.get_pre_commit().magic for p in pre_commits] == [77]
    assert pre_commits[0].validator_index == 6


def test_recovery_hash_only_round_trip():
    recovery = RecoveryMessage(
        preparation_hash=_hash(8, 9),
        commit_payloads=[CommitCompact(view_number=1, validator_index=2, signature=bytes(64))],
    )
    assert RecoveryMessage.decode(recovery.encode()) == recovery


def test_recovery_request_drops_hash_and_pre_commits():
    recovery = RecoveryMessage(
        preparation_hash=_hash(1),
        prepare_request=_request(),
        pre_commit_payloads=[PreCommitCompact(view_number=1, validator_index=2, data=b"abcd")],
    )
    decoded = RecoveryMessage.decode(recovery.encode())
    assert decoded.preparation_hash is None
    assert decoded.prepare_request == _request()
    assert decoded.pre_commit_payloads == []


def test_recovery_decode_bad_hash_length():
    data = b"\x00" + (5).to_bytes(4, "big") + bytes(5) + bytes(12)
    with pytest.raises(DecodeError, match="wrong hash length"):
        RecoveryMessage.decode(data)