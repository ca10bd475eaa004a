from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from core.base_types import Address, TransactionRequest
from core.errors import SimulationFailure

if TYPE_CHECKING:
    from harness.overrides import StateOverride


@dataclass(frozen=True)
class SimulationResult:
    success: bool
    gas_used: int
    url: Optional[str] = None  # Diagnostic handle (dashboard link)
    contract_address: Optional[Address] = None
    return_data: bytes = b""
    error: Optional[str] = None


class SimulationSession:
    """
    One simulator session per scenario. Every simulate call in the scenario
    goes through the same session; ``release`` ends it exactly once.
    """

    supports_state_overrides: bool = False

    @property
    def rpc_url(self) -> Optional[str]:
        """Endpoint for follow-up balance/state queries against this session."""
        return None

    def simulate(
        self,
        tx: TransactionRequest,
        overrides: Optional["StateOverride"] = None,
        block_number: Optional[int] = None,
    ) -> SimulationResult:
        raise NotImplementedError

    def call(
        self,
        tx: TransactionRequest,
        overrides: Optional["StateOverride"] = None,
    ) -> bytes:
        """Return data of a read-only call against the session state."""
        result = self.simulate(tx, overrides)
        if not result.success:
            raise SimulationFailure("call", result)
        return result.return_data

    def release(self) -> None:
        return None


class TransactionSimulator:
    """Factory for simulation sessions."""

    supports_state_overrides: bool = False

    def setup(self) -> SimulationSession:
        raise NotImplementedError
