import pytest
from eth_abi import encode
from eth_utils.crypto import keccak

from core.base_types import MAX_UINT, Address
from core.storage import StorageLayout, storage_value

HOLDER = Address("0x000000000000000000000000000000000000beef")
SPENDER = Address("0x6a000f20005980200259b80c5102003040001068")


def test_solidity_balance_slot_hashes_key_then_slot():
    layout = StorageLayout(balance_slot=9, allowance_slot=10)
    expected = keccak(encode(["address", "uint256"], [HOLDER.checksum, 9]))
    assert layout.balance_key(HOLDER) == "0x" + expected.hex()


def test_vyper_balance_slot_hashes_slot_then_key():
    layout = StorageLayout(balance_slot=3, allowance_slot=4, language="vyper")
    expected = keccak(encode(["uint256", "address"], [3, HOLDER.checksum]))
    assert layout.balance_key(HOLDER) == "0x" + expected.hex()


def test_allowance_slot_is_nested_mapping():
    layout = StorageLayout(balance_slot=9, allowance_slot=10)
    outer = keccak(encode(["address", "uint256"], [HOLDER.checksum, 10]))
    inner = keccak(encode(["address"], [SPENDER.checksum]) + outer)
    assert layout.allowance_key(HOLDER, SPENDER) == "0x" + inner.hex()


def test_layout_rejects_unknown_language():
    with pytest.raises(ValueError, match="language"):
        StorageLayout(0, 1, language="huff")


def test_storage_value_is_32_byte_word():
    assert storage_value(1) == "0x" + "00" * 31 + "01"
    assert storage_value(MAX_UINT) == "0x" + "ff" * 32


def test_storage_value_rejects_out_of_range():
    with pytest.raises(ValueError):
        storage_value(-1)
    with pytest.raises(ValueError):
        storage_value(MAX_UINT + 1)
    with pytest.raises(TypeError):
        storage_value(True)
