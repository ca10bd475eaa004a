import pytest

from pricing.route import ContractMethod, PriceRoute, ProtocolVersion, SwapSide, method_name

PAYLOAD = {
    "blockNumber": 19000000,
    "network": 1,
    "srcToken": "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee",
    "srcDecimals": 18,
    "srcAmount": "1000000000000000000",
    "destToken": "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",
    "destDecimals": 6,
    "destAmount": "3012345678",
    "gasCost": "154000",
    "side": "SELL",
    "contractMethod": "swapExactAmountIn",
    "tokenTransferProxy": "0x6a000f20005980200259b80c5102003040001068",
    "contractAddress": "0x6a000f20005980200259b80c5102003040001068",
    "version": "6.2",
}


def test_from_api_parses_amounts_as_int():
    route = PriceRoute.from_api(PAYLOAD)
    assert route.side == SwapSide.SELL
    assert route.src_amount == 10**18
    assert route.dest_amount == 3_012_345_678
    assert route.quoted_amount == 3_012_345_678
    assert route.gas_cost == 154_000
    assert route.version == ProtocolVersion.V6
    assert route.block_number == 19_000_000
    assert route.raw == PAYLOAD


def test_buy_quoted_amount_is_src():
    route = PriceRoute.from_api({**PAYLOAD, "side": "BUY"})
    assert route.quoted_amount == 10**18


def test_from_api_rejects_float_amount():
    with pytest.raises(ValueError, match="schema"):
        PriceRoute.from_api({**PAYLOAD, "destAmount": 3012.5})


def test_from_api_missing_field():
    payload = dict(PAYLOAD)
    del payload["srcToken"]
    with pytest.raises(ValueError):
        PriceRoute.from_api(payload)


def test_method_name():
    assert method_name(ContractMethod.SWAP_EXACT_AMOUNT_OUT) == "swapExactAmountOut"
    assert method_name("megaSwap") == "megaSwap"
    assert ContractMethod.SIMPLE_SWAP.signature is None
