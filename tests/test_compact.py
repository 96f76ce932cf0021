import os

import pytest

from dbft.consensus.compact import (
    ChangeViewCompact,
    CommitCompact,
    PreCommitCompact,
    PreparationCompact,
)


def test_change_view_compact_round_trip():
    p = ChangeViewCompact(validator_index=10, original_view_number=31, timestamp=98765)
    assert ChangeViewCompact.decode(p.encode()) == p


def test_preparation_compact_round_trip():
    p = PreparationCompact(validator_index=10)
    assert PreparationCompact.decode(p.encode()) == p


def test_commit_compact_round_trip():
    p = CommitCompact(validator_index=10, view_number=77, signature=os.urandom(64))
    assert CommitCompact.decode(p.encode()) == p


def test_pre_commit_compact_round_trip():
    p = PreCommitCompact(view_number=3, validator_index=1, data=b"\x00\x00\x00\x05")
    decoded = PreCommitCompact.decode(p.encode())
    assert decoded == p
    assert decoded.data == b"\x00\x00\x00\x05"


def test_pre_commit_compact_empty_data():
    p = PreCommitCompact(view_number=1, validator_index=2)
    assert PreCommitCompact.decode(p.encode()).data == b""


def test_pre_commit_compact_truncated():
    p = PreCommitCompact(view_number=3, validator_index=1, data=b"\x01\x02\x03\x04")
    with pytest.raises(ValueError):
        PreCommitCompact.decode(p.encode()[:-1])


def test_commit_compact_rejects_bad_signature():
    with pytest.raises(ValueError):
        CommitCompact(signature=b"\x01\x02")


def test_commit_compact_decode_wrong_length():
    p = CommitCompact(validator_index=1, view_number=2)
    with pytest.raises(ValueError):
        CommitCompact.decode(p.encode() + b"\x00")


def test_change_view_compact_out_of_range():
    with pytest.raises(ValueError):
        ChangeViewCompact(validator_index=1, original_view_number=256).encode()


def test_preparation_compact_decode_wrong_length():
    with pytest.raises(ValueError):
        PreparationCompact.decode(b"\x00")