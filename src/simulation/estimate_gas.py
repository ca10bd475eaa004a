from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from web3 import Web3
from web3.exceptions import Web3Exception

from core.base_types import TransactionRequest
from core.errors import ConfigurationError, SimulationFailure, UnsupportedFeatureError

from .base import SimulationResult, SimulationSession, TransactionSimulator

if TYPE_CHECKING:
    from harness.overrides import StateOverride

logger = logging.getLogger(__name__)


class EstimateGasSimulator(TransactionSimulator):
    """
    Plain node simulator: a transaction "succeeds" when ``eth_estimateGas``
    does not revert. State is not carried between calls and overrides are
    not available, so it only suits scenarios whose sender really holds
    the funds.
    """

    supports_state_overrides = False

    def __init__(self, rpc_url: str, timeout_seconds: float = 30.0, w3: Optional[Web3] = None):
        if w3 is None and not rpc_url:
            raise ConfigurationError("rpc_url is required for estimate-gas simulation")
        self._rpc_url = rpc_url
        self._w3 = w3 or Web3(
            Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout_seconds})
        )

    def setup(self) -> "EstimateGasSession":
        return EstimateGasSession(self._w3, self._rpc_url)


class EstimateGasSession(SimulationSession):
    supports_state_overrides = False

    def __init__(self, w3: Web3, rpc_url: str):
        self.w3 = w3
        self._rpc_url = rpc_url

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    @staticmethod
    def _reject_overrides(overrides: Optional["StateOverride"]) -> None:
        if overrides is not None and not overrides.is_empty:
            raise UnsupportedFeatureError(
                "State overrides require a forked-state simulator"
            )

    def simulate(
        self,
        tx: TransactionRequest,
        overrides: Optional["StateOverride"] = None,
        block_number: Optional[int] = None,
    ) -> SimulationResult:
        self._reject_overrides(overrides)
        try:
            gas_used = int(
                self.w3.eth.estimate_gas(tx.to_rpc(), block_identifier=block_number)
            )
        except (Web3Exception, ValueError) as exc:
            logger.info("eth_estimateGas reverted: %s", exc)
            return SimulationResult(success=False, gas_used=0, error=str(exc))
        logger.info("eth_estimateGas ok gas=%d block=%s", gas_used, block_number or "latest")
        return SimulationResult(success=True, gas_used=gas_used)

    def call(
        self,
        tx: TransactionRequest,
        overrides: Optional["StateOverride"] = None,
    ) -> bytes:
        # eth_estimateGas returns no output, so reads go through eth_call.
        self._reject_overrides(overrides)
        try:
            return bytes(self.w3.eth.call(tx.to_rpc()))
        except (Web3Exception, ValueError) as exc:
            raise SimulationFailure(
                "call", SimulationResult(success=False, gas_used=0, error=str(exc))
            ) from exc
