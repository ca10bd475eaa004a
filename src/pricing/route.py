from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from core.base_types import Address


class SwapSide(str, Enum):
    SELL = "SELL"
    BUY = "BUY"


class ProtocolVersion(str, Enum):
    V5 = "5"
    V6 = "6.2"


class ContractMethod(str, Enum):
    """Router entrypoints a route can be priced for."""

    SIMPLE_SWAP = "simpleSwap"
    MULTI_SWAP = "multiSwap"
    MEGA_SWAP = "megaSwap"
    SIMPLE_BUY = "simpleBuy"
    BUY = "buy"
    SWAP_EXACT_AMOUNT_IN = "swapExactAmountIn"
    SWAP_EXACT_AMOUNT_OUT = "swapExactAmountOut"

    @property
    def signature(self) -> Optional[str]:
        return METHOD_SIGNATURES.get(self)


# Direct-router entrypoints, used to derive the selector for setImplementation.
METHOD_SIGNATURES: dict[ContractMethod, str] = {
    ContractMethod.SWAP_EXACT_AMOUNT_IN: (
        "swapExactAmountIn(address,(address,address,uint256,uint256,uint256,"
        "bytes32,address),uint256,bytes,bytes)"
    ),
    ContractMethod.SWAP_EXACT_AMOUNT_OUT: (
        "swapExactAmountOut(address,(address,address,uint256,uint256,uint256,"
        "bytes32,address),uint256,bytes,bytes)"
    ),
}


@dataclass(frozen=True)
class PriceRoute:
    """
    A priced route as returned by a quote provider.

    All amounts are raw integer token amounts. The provider payload is kept
    in ``raw`` because the transaction endpoint expects it back verbatim.
    """

    side: SwapSide
    src_token: Address
    src_decimals: int
    src_amount: int
    dest_token: Address
    dest_decimals: int
    dest_amount: int
    gas_cost: int
    contract_method: str
    version: ProtocolVersion
    token_transfer_proxy: Optional[Address] = None
    contract_address: Optional[Address] = None
    block_number: Optional[int] = None
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        for name in ("src_amount", "dest_amount", "gas_cost"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be int")

    @property
    def quoted_amount(self) -> int:
        """The amount the provider computed: dest for SELL, src for BUY."""
        return self.dest_amount if self.side == SwapSide.SELL else self.src_amount

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "PriceRoute":
        """Parse a ``priceRoute`` object from the pricing API."""
        try:
            proxy = payload.get("tokenTransferProxy")
            contract = payload.get("contractAddress")
            block = payload.get("blockNumber")
            return cls(
                side=SwapSide(str(payload["side"]).upper()),
                src_token=Address(payload["srcToken"]),
                src_decimals=int(payload["srcDecimals"]),
                src_amount=_parse_amount(payload["srcAmount"]),
                dest_token=Address(payload["destToken"]),
                dest_decimals=int(payload["destDecimals"]),
                dest_amount=_parse_amount(payload["destAmount"]),
                gas_cost=_parse_amount(payload.get("gasCost", "0")),
                contract_method=str(payload["contractMethod"]),
                version=ProtocolVersion(str(payload.get("version", "6.2"))),
                token_transfer_proxy=Address(proxy) if proxy else None,
                contract_address=Address(contract) if contract else None,
                block_number=int(block) if block is not None else None,
                raw=dict(payload),
            )
        except (KeyError, ValueError, TypeError) as exc:
            raise ValueError(f"Unexpected price route schema: {payload}") from exc


def _parse_amount(value: Any) -> int:
    """Amounts arrive as decimal strings; floats would silently lose precision."""
    if isinstance(value, float):
        raise TypeError("amount must not be a float")
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        return int(value)
    raise TypeError("amount must be a decimal string or int")


def method_name(contract_method: "ContractMethod | str") -> str:
    """Wire name of a contract method (``str()`` of a str-Enum is not its value)."""
    if isinstance(contract_method, Enum):
        return str(contract_method.value)
    return str(contract_method)
