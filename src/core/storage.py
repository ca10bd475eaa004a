"""Storage-slot derivation for ERC-20 balance and allowance mappings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from eth_abi import encode as abi_encode
from eth_utils.crypto import keccak

from .base_types import Address, MAX_UINT


@dataclass(frozen=True)
class StorageLayout:
    """
    Where a token keeps ``balanceOf`` and ``allowance``.

    ``balance_slot`` / ``allowance_slot`` are the declaration slots of the
    mappings. Solidity hashes ``key ‖ slot``; (pre-0.3) Vyper hashes
    ``slot ‖ key``.
    """

    balance_slot: int
    allowance_slot: int
    language: Literal["solidity", "vyper"] = "solidity"

    def __post_init__(self) -> None:
        if self.balance_slot < 0 or self.allowance_slot < 0:
            raise ValueError("storage slots must be non-negative")
        if self.language not in ("solidity", "vyper"):
            raise ValueError("language must be solidity or vyper")

    def balance_key(self, account: Address) -> str:
        return _hex_word(self._mapping_slot(self.balance_slot, account))

    def allowance_key(self, owner: Address, spender: Address) -> str:
        outer = self._mapping_slot(self.allowance_slot, owner)
        return _hex_word(self._mapping_slot(outer, spender))

    def _mapping_slot(self, slot: int | bytes, key: Address) -> bytes:
        slot_word = slot if isinstance(slot, bytes) else abi_encode(["uint256"], [slot])
        key_word = abi_encode(["address"], [key.checksum])
        if self.language == "solidity":
            return keccak(key_word + slot_word)
        return keccak(slot_word + key_word)


def storage_value(amount: int) -> str:
    """32-byte big-endian word for a uint256 storage value."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TypeError("amount must be an int")
    if amount < 0 or amount > MAX_UINT:
        raise ValueError("amount must fit in uint256")
    return _hex_word(amount.to_bytes(32, "big"))


def _hex_word(raw: bytes) -> str:
    return f"0x{raw.hex()}"
