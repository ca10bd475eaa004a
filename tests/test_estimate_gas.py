import pytest
from eth_abi import decode

from core.abi import ERC20_BALANCE_OF, selector
from core.base_types import TransactionRequest
from core.errors import ConfigurationError, SimulationFailure, UnsupportedFeatureError
from harness.overrides import StateOverrideBuilder
from harness.runner import SwapExecutionHarness
from pricing.provider import QuoteProvider
from simulation.base import TransactionSimulator
from simulation.estimate_gas import EstimateGasSimulator


class _FakeEth:
    def __init__(self, gas=None, error=None, output=b""):
        self._gas = gas
        self._error = error
        self._output = output
        self.calls = []
        self.blocks = []

    def estimate_gas(self, tx, block_identifier=None):
        self.calls.append(tx)
        self.blocks.append(block_identifier)
        if self._error is not None:
            raise self._error
        return self._gas

    def call(self, tx):
        self.calls.append(tx)
        if self._error is not None:
            raise self._error
        return self._output


class _FakeWeb3:
    def __init__(self, eth):
        self.eth = eth


def _session(eth):
    return EstimateGasSimulator("https://rpc.example", w3=_FakeWeb3(eth)).setup()


def test_estimate_success(sender, usdc):
    eth = _FakeEth(gas=46_000)
    tx = TransactionRequest(sender=sender, to=usdc.address, data=b"\x01", value=3)

    result = _session(eth).simulate(tx)

    assert result.success
    assert result.gas_used == 46_000
    assert eth.calls[0] == tx.to_rpc()
    assert eth.blocks == [None]


def test_estimate_pinned_to_block(sender, usdc):
    eth = _FakeEth(gas=46_000)
    tx = TransactionRequest(sender=sender, to=usdc.address, data=b"\x01")

    _session(eth).simulate(tx, block_number=19_000_000)

    assert eth.blocks == [19_000_000]


def test_revert_is_failed_result(sender, usdc):
    eth = _FakeEth(error=ValueError("execution reverted"))
    tx = TransactionRequest(sender=sender, to=usdc.address, data=b"\x01")

    result = _session(eth).simulate(tx)

    assert not result.success
    assert result.gas_used == 0
    assert "execution reverted" in result.error


def test_overrides_rejected(mainnet_config, sender, usdc):
    overrides = StateOverrideBuilder(mainnet_config).set_native_balance(sender, 1).build()
    tx = TransactionRequest(sender=sender, to=usdc.address, data=b"")
    session = _session(_FakeEth(gas=21_000))

    assert not session.supports_state_overrides
    with pytest.raises(UnsupportedFeatureError):
        session.simulate(tx, overrides)
    with pytest.raises(UnsupportedFeatureError):
        session.call(tx, overrides)
    assert session.simulate(tx, StateOverrideBuilder(mainnet_config).build()).success


def test_balance_query_uses_eth_call(mainnet_config, usdc, sender):
    eth = _FakeEth(output=(5_000_000).to_bytes(32, "big"))
    harness = SwapExecutionHarness(mainnet_config, TransactionSimulator(), QuoteProvider())

    balance = harness.query_balance(_session(eth), usdc, sender)

    assert balance == 5_000_000
    tx = eth.calls[0]
    assert tx["to"].lower() == usdc.address.lower
    data = bytes.fromhex(tx["data"][2:])
    assert data[:4] == selector(ERC20_BALANCE_OF)
    assert decode(["address"], data[4:])[0].lower() == sender.lower


def test_balance_query_failure_is_harness_error(mainnet_config, usdc, sender):
    harness = SwapExecutionHarness(mainnet_config, TransactionSimulator(), QuoteProvider())

    with pytest.raises(SimulationFailure) as exc_info:
        harness.query_balance(_session(_FakeEth(output=b"")), usdc, sender)
    assert exc_info.value.step == "balanceOf"

    reverting = _FakeEth(error=ValueError("execution reverted"))
    with pytest.raises(SimulationFailure, match="execution reverted"):
        harness.query_balance(_session(reverting), usdc, sender)


def test_requires_rpc_url():
    with pytest.raises(ConfigurationError):
        EstimateGasSimulator("")
