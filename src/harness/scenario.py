from __future__ import annotations

import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, auto
from typing import Optional, Sequence

from core.base_types import Address, AnyToken, TransactionRequest
from pricing.provider import PoolIdentifiers, TransferFees
from pricing.route import PriceRoute, SwapSide
from simulation.base import SimulationResult

from .gas import GasReport
from .overrides import StateOverride
from .slippage import DEFAULT_SLIPPAGE_BPS, SlippageBound


class ScenarioState(Enum):
    INIT = auto()
    PREFLIGHT = auto()
    QUOTE = auto()
    OVERRIDE = auto()
    BUILD = auto()
    SIMULATE = auto()
    ASSERT = auto()
    RELEASE = auto()
    DONE = auto()
    FAILED = auto()


@dataclass(frozen=True)
class SwapScenario:
    """One end-to-end swap check."""

    src_token: AnyToken
    dest_token: AnyToken
    sender: Address
    amount: int
    side: SwapSide
    contract_method: str
    slippage_bps: int = DEFAULT_SLIPPAGE_BPS
    force_route: Optional[Sequence[str]] = None
    pool_identifiers: Optional[PoolIdentifiers] = None
    # Fee-on-transfer tokens: charges the pricer must account for.
    transfer_fees: Optional[TransferFees] = None
    # Gas accuracy target in percent of observed gas; None skips the check.
    target_gas_deviation: Optional[Decimal] = None
    # Preflight inputs: an already deployed contract, or bytecode to deploy.
    deployed_contract: Optional[Address] = None
    contract_bytecode: Optional[bytes] = None
    contract_type: str = "adapter"
    # Fund this account with the destination token before the swap.
    third_party: Optional[Address] = None
    seed_destination_dust: bool = False
    settle_seconds: float = 0.0

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise TypeError("amount must be int (base units)")
        if self.amount <= 0:
            raise ValueError("amount must be positive")
        object.__setattr__(self, "sender", Address.coerce(self.sender))
        object.__setattr__(self, "side", SwapSide(self.side))
        if self.contract_type not in ("adapter", "router"):
            raise ValueError("contract_type must be adapter or router")
        if self.target_gas_deviation is not None and isinstance(
            self.target_gas_deviation, float
        ):
            raise TypeError("target_gas_deviation must be Decimal, int or str")


@dataclass
class ScenarioContext:
    scenario: SwapScenario
    state: ScenarioState = ScenarioState.INIT
    history: list[ScenarioState] = field(default_factory=list)

    preflight_results: list[SimulationResult] = field(default_factory=list)
    deployed_contract: Optional[Address] = None
    route: Optional[PriceRoute] = None
    overrides: Optional[StateOverride] = None
    bound: Optional[SlippageBound] = None
    deadline: Optional[int] = None
    correlation_id: Optional[str] = None
    transaction: Optional[TransactionRequest] = None
    result: Optional[SimulationResult] = None
    gas_report: Optional[GasReport] = None

    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None
    failed_state: Optional[ScenarioState] = None
    error: Optional[str] = None
    release_errors: list[str] = field(default_factory=list)

    def enter(self, state: ScenarioState) -> None:
        self.state = state
        self.history.append(state)

    @property
    def succeeded(self) -> bool:
        return self.state == ScenarioState.DONE
