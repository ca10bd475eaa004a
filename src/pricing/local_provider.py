from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from web3 import Web3

from core.base_types import NULL_ADDRESS, Address, AnyToken, TransactionRequest, plain_token
from core.errors import ProviderError, QuoteEmptyError, UnsupportedFeatureError

from .provider import PoolIdentifiers, QuoteProvider, TransferFees, normalize_dex_keys
from .route import PriceRoute, SwapSide, method_name

logger = logging.getLogger(__name__)


class LocalQuoteProvider(QuoteProvider):
    """
    In-process pricer.

    Wraps a pricing engine and a transaction encoder that live in the same
    process. The engine holds pool state (and may refresh it in the
    background), so ``initialize_pricing`` must run before the first quote
    and ``release_resources`` must always run afterwards.

    Engine contract::

        engine.initialize(block_number, dex_keys)
        engine.get_price_route(src, dest, amount, side, contract_method,
                               pool_identifiers, transfer_fees)
            -> dict | PriceRoute | None
        engine.release(dex_keys)
        engine.replace_provider_with_rpc(url)      # optional

    Encoder contract::

        encoder.build(price_route=..., min_max_amount=..., user_address=...,
                      partner_address=..., partner_fee_percent=...,
                      deadline=..., uuid=...) -> {from, to, data, value}
    """

    supports_forced_route = False
    supports_pool_identifiers = True

    def __init__(
        self,
        network: int,
        dex_keys: str | Sequence[str],
        engine: Any,
        encoder: Any,
        w3: Optional[Web3] = None,
    ) -> None:
        self._network = int(network)
        self._dex_keys = normalize_dex_keys(dex_keys)
        self._engine = engine
        self._encoder = encoder
        self._w3 = w3
        self._initialized = False

    @property
    def dex_keys(self) -> list[str]:
        return list(self._dex_keys)

    def initialize_pricing(self) -> None:
        block_number = self._w3.eth.block_number if self._w3 is not None else None
        logger.info(
            "Initializing in-process pricing for %s at block %s",
            ",".join(self._dex_keys),
            block_number,
        )
        self._engine.initialize(block_number, self._dex_keys)
        self._initialized = True

    def release_resources(self) -> None:
        if not self._initialized:
            return
        self._engine.release(self._dex_keys)
        self._initialized = False

    def bind_rpc(self, rpc_url: str) -> None:
        replace = getattr(self._engine, "replace_provider_with_rpc", None)
        if replace is not None and rpc_url:
            replace(rpc_url)

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
        if force_route:
            raise UnsupportedFeatureError(
                "Route-constrained quoting is not supported by the in-process pricer"
            )
        if not self._initialized:
            raise ProviderError("initialize_pricing() must be called before quoting")

        result = self._engine.get_price_route(
            plain_token(src),
            plain_token(dest),
            amount,
            SwapSide(side),
            method_name(contract_method),
            pool_identifiers,
            transfer_fees,
        )
        if result is None:
            raise QuoteEmptyError(f"No route found for {src} -> {dest} ({amount})")
        if isinstance(result, PriceRoute):
            return result
        try:
            return PriceRoute.from_api(result)
        except ValueError as exc:
            raise ProviderError(str(exc), body=result) from exc

    def build_transaction(
        self,
        route: PriceRoute,
        min_max_amount: int,
        sender: Address,
        deadline: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> TransactionRequest:
        payload = self._encoder.build(
            price_route=route.raw,
            min_max_amount=str(min_max_amount),
            user_address=sender.checksum,
            partner_address=NULL_ADDRESS,
            partner_fee_percent="0",
            deadline=str(deadline) if deadline is not None else None,
            uuid=correlation_id,
        )
        payload = dict(payload)
        payload.setdefault("from", sender.checksum)
        try:
            return TransactionRequest.from_api(payload)
        except ValueError as exc:
            raise ProviderError(str(exc), body=payload) from exc
