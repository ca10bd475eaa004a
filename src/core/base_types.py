"""Core type definitions shared by the pricing, simulation and harness modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Optional, Union

from eth_utils.address import is_address, to_checksum_address

if TYPE_CHECKING:
    from core.storage import StorageLayout

ETHER_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
NULL_ADDRESS = "0x0000000000000000000000000000000000000000"
MAX_UINT = 2**256 - 1


@dataclass(frozen=True)
class Address:
    """Ethereum address with validation and checksumming."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise TypeError("Address value must be a string")
        if not is_address(self.value):
            raise ValueError("Invalid Ethereum address")
        object.__setattr__(self, "value", to_checksum_address(self.value))

    @classmethod
    def coerce(cls, value: "Address | str") -> "Address":
        if isinstance(value, Address):
            return value
        return cls(value)

    @property
    def checksum(self) -> str:
        return self.value

    @property
    def lower(self) -> str:
        return self.value.lower()

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Address):
            return self.lower == other.lower
        if isinstance(other, str):
            return self.lower == other.lower()
        return False

    def __hash__(self) -> int:
        return hash(self.lower)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Token:
    """A plain ERC-20 (or native) token, identified by address within a network."""

    address: Address
    decimals: int
    symbol: Optional[str] = None
    kind: Literal["plain"] = "plain"

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", Address.coerce(self.address))
        if not isinstance(self.decimals, int) or self.decimals < 0:
            raise ValueError("decimals must be a non-negative integer")

    @property
    def is_native(self) -> bool:
        return self.address == ETHER_ADDRESS

    def __str__(self) -> str:
        return self.symbol or self.address.checksum


@dataclass(frozen=True)
class SimulatedToken:
    """
    A token whose balance/allowance storage layout is known up front, so it
    can be funded through state overrides without a registry lookup.
    """

    token: Token
    layout: "StorageLayout"
    kind: Literal["simulated"] = "simulated"

    @property
    def address(self) -> Address:
        return self.token.address

    @property
    def decimals(self) -> int:
        return self.token.decimals

    @property
    def symbol(self) -> Optional[str]:
        return self.token.symbol

    @property
    def is_native(self) -> bool:
        return self.token.is_native

    def __str__(self) -> str:
        return str(self.token)


AnyToken = Union[Token, SimulatedToken]


def plain_token(token: AnyToken) -> Token:
    """Strip simulation metadata, e.g. before handing a token to a pricer."""
    if token.kind == "plain":
        return token
    if token.kind == "simulated":
        return token.token
    raise TypeError(f"Unknown token kind: {token.kind!r}")


@dataclass(frozen=True)
class TransactionRequest:
    """A transaction to be simulated. ``to`` is None for contract creation."""

    sender: Address
    to: Optional[Address]
    data: bytes
    value: int = 0
    gas: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "sender", Address.coerce(self.sender))
        if self.to is not None:
            object.__setattr__(self, "to", Address.coerce(self.to))
        if not isinstance(self.data, (bytes, bytearray)):
            raise TypeError("data must be bytes")
        object.__setattr__(self, "data", bytes(self.data))
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("value must be an int")
        if self.value < 0:
            raise ValueError("value must be non-negative")

    @property
    def is_deployment(self) -> bool:
        return self.to is None

    def to_rpc(self) -> dict:
        """Convert to a JSON-RPC / web3 call object."""
        payload: dict[str, object] = {
            "from": self.sender.checksum,
            "data": f"0x{self.data.hex()}",
            "value": self.value,
        }
        if self.to is not None:
            payload["to"] = self.to.checksum
        if self.gas is not None:
            payload["gas"] = self.gas
        return payload

    def to_tenderly(self) -> dict:
        """Convert to the field names used by the Tenderly simulate API."""
        payload: dict[str, object] = {
            "from": self.sender.lower,
            "input": f"0x{self.data.hex()}",
            "value": str(self.value),
        }
        if self.to is not None:
            payload["to"] = self.to.lower
        if self.gas is not None:
            payload["gas"] = self.gas
        return payload

    @classmethod
    def from_api(cls, payload: dict) -> "TransactionRequest":
        """Parse a ``{from, to, data, value, gas?}`` object returned by a pricing API."""
        try:
            data_hex = str(payload.get("data") or "0x")
            to_value = payload.get("to")
            gas_value = payload.get("gas") or payload.get("gasLimit")
            return cls(
                sender=Address(payload["from"]),
                to=Address(to_value) if to_value else None,
                data=_hex_to_bytes(data_hex),
                value=_to_int(payload.get("value", 0)),
                gas=_to_int(gas_value) if gas_value else None,
            )
        except (KeyError, ValueError, TypeError) as exc:
            raise ValueError(f"Invalid transaction payload: {payload!r}") from exc


def _to_int(value: object) -> int:
    if isinstance(value, bool):
        raise ValueError("Expected integer-like value")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    raise ValueError("Expected integer-like value")


def _hex_to_bytes(value: str) -> bytes:
    normalized = value[2:] if value.startswith("0x") else value
    if normalized == "":
        return b""
    return bytes.fromhex(normalized)
