import pytest

from core.base_types import (
    ETHER_ADDRESS,
    NULL_ADDRESS,
    Address,
    SimulatedToken,
    Token,
    TransactionRequest,
    plain_token,
)
from core.storage import StorageLayout


def test_address_invalid_raises():
    with pytest.raises(ValueError, match="Invalid Ethereum address"):
        Address("invalid")


def test_address_case_insensitive_equality():
    lower = Address("0x000000000000000000000000000000000000dead")
    upper = Address("0x000000000000000000000000000000000000DEAD")
    assert lower == upper
    assert hash(lower) == hash(upper)
    assert lower == "0x000000000000000000000000000000000000DeAd"


def test_native_token_detected_case_insensitively():
    token = Token(Address(ETHER_ADDRESS.lower()), 18, "ETH")
    assert token.is_native


def test_simulated_token_proxies_underlying(usdc):
    simulated = SimulatedToken(usdc, StorageLayout(9, 10))
    assert simulated.kind == "simulated"
    assert simulated.address == usdc.address
    assert simulated.decimals == 6
    assert not simulated.is_native
    assert plain_token(simulated) is usdc
    assert plain_token(usdc) is usdc


def test_transaction_request_rejects_negative_value(sender):
    with pytest.raises(ValueError, match="non-negative"):
        TransactionRequest(sender=sender, to=sender, data=b"", value=-1)


def test_transaction_request_tenderly_fields(sender, usdc):
    tx = TransactionRequest(sender=sender, to=usdc.address, data=b"\x01\x02", value=5)
    payload = tx.to_tenderly()
    assert payload == {
        "from": sender.lower,
        "to": usdc.address.lower,
        "input": "0x0102",
        "value": "5",
    }


def test_transaction_request_deployment_has_no_to(sender):
    tx = TransactionRequest(sender=sender, to=None, data=b"\x60\x80")
    assert tx.is_deployment
    assert "to" not in tx.to_rpc()


def test_transaction_request_from_api_parses_hex_and_decimal():
    tx = TransactionRequest.from_api(
        {
            "from": "0x000000000000000000000000000000000000beef",
            "to": "0x6a000f20005980200259b80c5102003040001068",
            "data": "0xabcdef",
            "value": "1000",
            "gas": "0x5208",
        }
    )
    assert tx.data == bytes.fromhex("abcdef")
    assert tx.value == 1000
    assert tx.gas == 21000


def test_transaction_request_from_api_missing_from():
    with pytest.raises(ValueError, match="Invalid transaction payload"):
        TransactionRequest.from_api({"to": NULL_ADDRESS, "data": "0x"})
