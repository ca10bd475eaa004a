from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from core.base_types import Address, AnyToken, TransactionRequest

from .route import PriceRoute, SwapSide

logger = logging.getLogger(__name__)

PoolIdentifiers = dict[str, Optional[list[str]]]


@dataclass(frozen=True)
class TransferFees:
    """Fee-on-transfer charges in basis points, as the pricer expects them."""

    src_fee: int = 0
    dest_fee: int = 0
    src_dex_fee: int = 0
    dest_dex_fee: int = 0

    def __post_init__(self) -> None:
        for name in ("src_fee", "dest_fee", "src_dex_fee", "dest_dex_fee"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be int (bps)")
            if not 0 <= value < 10_000:
                raise ValueError(f"{name} must be in [0, 10000) bps")

    def to_params(self) -> Dict[str, Any]:
        return {
            "srcFee": self.src_fee,
            "destFee": self.dest_fee,
            "srcDexFee": self.src_dex_fee,
            "destDexFee": self.dest_dex_fee,
        }


class QuoteProvider:
    """
    Capability interface for pricing a swap and turning the route into a
    transaction. Two variants exist: ``ApiQuoteProvider`` (remote service)
    and ``LocalQuoteProvider`` (in-process pricer).

    ``initialize_pricing`` / ``release_resources`` / ``bind_rpc`` are optional
    lifecycle hooks; the defaults do nothing.
    """

    supports_forced_route: bool = False
    supports_pool_identifiers: bool = False

    def initialize_pricing(self) -> None:
        return None

    def release_resources(self) -> None:
        return None

    def bind_rpc(self, rpc_url: str) -> None:
        """Point any on-chain reads at the simulator's fork."""
        return None

    def get_prices(
        self,
        src: AnyToken,
        dest: AnyToken,
        amount: int,
        side: SwapSide,
        contract_method: str,
        force_route: Optional[Sequence[str]] = None,
        pool_identifiers: Optional[PoolIdentifiers] = None,
        transfer_fees: Optional[TransferFees] = None,
    ) -> PriceRoute:
        raise NotImplementedError

    def build_transaction(
        self,
        route: PriceRoute,
        min_max_amount: int,
        sender: Address,
        deadline: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> TransactionRequest:
        raise NotImplementedError


def select_quote_provider(
    network: int,
    dex_keys: str | Sequence[str],
    endpoint: Optional[str] = None,
    pool_identifiers: Optional[PoolIdentifiers] = None,
    engine=None,
    encoder=None,
    w3=None,
) -> QuoteProvider:
    """
    Remote pricer when an endpoint is configured and the caller does not pin
    pool identifiers (the API cannot take them); in-process pricer otherwise.
    """
    from .api_provider import ApiQuoteProvider
    from .local_provider import LocalQuoteProvider

    if endpoint and not pool_identifiers:
        logger.info("Using remote pricing API at %s", endpoint)
        return ApiQuoteProvider(network, dex_keys, endpoint)
    if engine is None or encoder is None:
        raise ValueError(
            "An in-process pricing engine and encoder are required when no "
            "pricing endpoint is configured"
        )
    logger.info("Using in-process pricer for %s", dex_keys)
    return LocalQuoteProvider(network, dex_keys, engine, encoder, w3=w3)


def normalize_dex_keys(dex_keys: str | Sequence[str]) -> list[str]:
    if isinstance(dex_keys, str):
        return [dex_keys]
    return list(dex_keys)
