from .base import SimulationResult, SimulationSession, TransactionSimulator
from .estimate_gas import EstimateGasSimulator
from .tenderly import TenderlySimulator

__all__ = [
    "SimulationResult",
    "SimulationSession",
    "TransactionSimulator",
    "TenderlySimulator",
    "EstimateGasSimulator",
]
