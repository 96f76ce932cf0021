import pytest

from dbft.consensus.transaction import Tx64


def test_to_bytes_is_little_endian():
    assert Tx64(1).to_bytes() == b"\x01" + b"\x00" * 7


@pytest.mark.parametrize("value", [0, 1, 123456789, (1 << 63) - 1, (1 << 64) - 1])
def test_round_trip(value):
    tx = Tx64(value)
    assert Tx64.from_bytes(tx.to_bytes()) == tx


def test_hash_is_value_padded_to_32_bytes():
    tx = Tx64(0xDEADBEEF)
    h = tx.hash()
    assert len(h) == 32
    assert h[:8] == tx.to_bytes()
    assert h[8:] == bytes(24)


def test_distinct_values_have_distinct_hashes():
    assert Tx64(1).hash() != Tx64(2).hash()
    assert Tx64(7).hash() == Tx64(7).hash()


@pytest.mark.parametrize("data", [b"", b"\x00" * 7, b"\x00" * 9])
def test_from_bytes_rejects_wrong_length(data):
    with pytest.raises(ValueError, match="8 bytes"):
        Tx64.from_bytes(data)


@pytest.mark.parametrize("value", [-1, 1 << 64])
def test_out_of_range_value_is_rejected(value):
    with pytest.raises(ValueError):
        Tx64(value)