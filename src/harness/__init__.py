from .gas import GasAccuracyEvaluator, GasReport
from .overrides import AccountOverride, StateOverride, StateOverrideBuilder
from .preflight import PreflightAuthorizer
from .runner import SwapExecutionHarness
from .scenario import ScenarioContext, ScenarioState, SwapScenario
from .slippage import DEFAULT_SLIPPAGE_BPS, SlippageBound

__all__ = [
    "SwapExecutionHarness",
    "SwapScenario",
    "ScenarioContext",
    "ScenarioState",
    "PreflightAuthorizer",
    "StateOverride",
    "StateOverrideBuilder",
    "AccountOverride",
    "SlippageBound",
    "DEFAULT_SLIPPAGE_BPS",
    "GasAccuracyEvaluator",
    "GasReport",
]
