from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import requests

from core.base_types import NULL_ADDRESS, Address, AnyToken, TransactionRequest
from core.errors import ProviderError, UnsupportedFeatureError

from .provider import PoolIdentifiers, QuoteProvider, TransferFees, normalize_dex_keys
from .route import PriceRoute, ProtocolVersion, SwapSide, method_name

logger = logging.getLogger(__name__)


class ApiQuoteProvider(QuoteProvider):
    """
    Pricing API client (``/prices`` + ``/transactions``).

    Prices are restricted to ``dex_keys`` and the requested contract method so
    the route exercises exactly the integration under test. Forced routes are
    passed through as ``route=tokenA-tokenB-...``.
    """

    supports_forced_route = True
    supports_pool_identifiers = False

    def __init__(
        self,
        network: int,
        dex_keys: str | Sequence[str],
        base_url: str,
        version: ProtocolVersion = ProtocolVersion.V6,
        timeout_seconds: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required for the pricing API")
        self._network = int(network)
        self._dex_keys = normalize_dex_keys(dex_keys)
        self._base_url = base_url.rstrip("/")
        self._version = version
        self._timeout = timeout_seconds
        self._session = session or requests.Session()

    @property
    def dex_keys(self) -> list[str]:
        return list(self._dex_keys)

    def release_resources(self) -> None:
        self._session.close()

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self._base_url}{path}"
        resp = self._session.request(
            method, url, params=params, json=json_body, timeout=self._timeout
        )
        try:
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise ProviderError(
                f"Pricing API request failed: {exc}  body={resp.text!r}",
                status=resp.status_code,
                body=resp.text,
            ) from exc
        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderError(
                f"Invalid JSON from pricing API: {resp.text!r}",
                status=resp.status_code,
                body=resp.text,
            ) from exc
        if isinstance(data, dict) and data.get("error"):
            raise ProviderError(
                f"Pricing API error: {data['error']}", status=resp.status_code, body=data
            )
        return data

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
        if pool_identifiers:
            # Only the in-process pricer can pin individual pools.
            raise UnsupportedFeatureError(
                "Pool identifiers are not supported by the pricing API"
            )
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise TypeError("amount must be int")

        params: Dict[str, Any] = {
            "amount": str(amount),
            "side": SwapSide(side).value,
            "network": self._network,
            "srcDecimals": src.decimals,
            "destDecimals": dest.decimals,
            "includeDEXS": ",".join(self._dex_keys),
            "includeContractMethods": method_name(contract_method),
            "partner": "any",
            "maxImpact": 100,
            "version": self._version.value,
        }
        if transfer_fees is not None:
            params.update(transfer_fees.to_params())
        if force_route:
            params["route"] = "-".join(str(hop) for hop in force_route)
        else:
            params["srcToken"] = src.address.checksum
            params["destToken"] = dest.address.checksum

        data = self._request("GET", "/prices", params=params)
        try:
            route = PriceRoute.from_api(data["priceRoute"])
        except (KeyError, ValueError, TypeError) as exc:
            raise ProviderError(
                f"Unexpected pricing API response schema: {data}", body=data
            ) from exc

        logger.debug(
            "Price route %s %s -> %s: src=%s dest=%s gas=%s method=%s",
            route.side.value,
            src,
            dest,
            route.src_amount,
            route.dest_amount,
            route.gas_cost,
            route.contract_method,
        )
        return route

    def build_transaction(
        self,
        route: PriceRoute,
        min_max_amount: int,
        sender: Address,
        deadline: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> TransactionRequest:
        body: Dict[str, Any] = {
            "srcToken": route.src_token.checksum,
            "srcDecimals": route.src_decimals,
            "destToken": route.dest_token.checksum,
            "destDecimals": route.dest_decimals,
            "priceRoute": route.raw,
            "userAddress": sender.checksum,
            "partner": "any",
            "partnerAddress": NULL_ADDRESS,
            "partnerFeeBps": "0",
        }
        if route.side == SwapSide.SELL:
            body["srcAmount"] = str(route.src_amount)
            body["destAmount"] = str(min_max_amount)
        else:
            body["srcAmount"] = str(min_max_amount)
            body["destAmount"] = str(route.dest_amount)
        if deadline is not None:
            body["deadline"] = str(deadline)
        if correlation_id is not None:
            body["uuid"] = correlation_id

        data = self._request(
            "POST",
            f"/transactions/{self._network}",
            params={"ignoreChecks": "true", "ignoreGasEstimate": "true"},
            json_body=body,
        )
        try:
            return TransactionRequest.from_api(data)
        except ValueError as exc:
            raise ProviderError(
                f"Unexpected transaction response schema: {data}", body=data
            ) from exc
