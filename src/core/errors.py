"""Harness exceptions. None of these are retried internally."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from harness.gas import GasReport
    from harness.scenario import ScenarioContext
    from simulation.base import SimulationResult


class HarnessError(Exception):
    """Base class for harness errors."""

    context: Optional["ScenarioContext"] = None


class ConfigurationError(HarnessError):
    """A per-network address (router, proxy, deployer, multisig) is missing."""


class QuoteEmptyError(HarnessError):
    """The provider returned a route with a non-positive relevant amount."""


class QuoteMismatchError(QuoteEmptyError):
    """The route was priced for a different contract method than requested."""


class UnsupportedFeatureError(HarnessError):
    """The active provider or simulator variant cannot do what was asked."""


class UnsupportedTokenLayoutError(HarnessError):
    """Balance/allowance storage layout of a token cannot be determined."""

    def __init__(self, token: str, network: int):
        self.token = token
        self.network = network
        super().__init__(
            f"Cannot synthesize balance override for {token} on network {network}: "
            "unknown storage layout"
        )


class ProviderError(HarnessError):
    """Remote pricing/simulation service returned an error or a bad payload."""

    def __init__(self, message: str, status: Optional[int] = None, body: Any = None):
        self.status = status
        self.body = body
        super().__init__(message)


class SimulationFailure(HarnessError):
    """Simulator reported a failed execution."""

    def __init__(self, step: str, result: "SimulationResult"):
        self.step = step
        self.result = result
        self.url = result.url
        detail = f" ({result.error})" if result.error else ""
        super().__init__(f"{step} simulation failed{detail}: {result.url or '<no url>'}")


class InvalidGasMeasurement(HarnessError):
    """Observed gas is zero or negative, so a deviation is undefined."""


class GasDeviationExceeded(HarnessError):
    """Predicted gas is further from the observed gas than the target allows."""

    def __init__(self, report: "GasReport"):
        self.report = report
        super().__init__(
            f"Gas deviation {report.deviation_percent:.4f}% is outside target "
            f"{report.target_percent}% (predicted={report.predicted}, "
            f"actual={report.actual})"
        )
