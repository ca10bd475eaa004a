from .base_types import (
    ETHER_ADDRESS,
    MAX_UINT,
    NULL_ADDRESS,
    Address,
    AnyToken,
    SimulatedToken,
    Token,
    TransactionRequest,
)
from .errors import (
    ConfigurationError,
    GasDeviationExceeded,
    HarnessError,
    InvalidGasMeasurement,
    ProviderError,
    QuoteEmptyError,
    QuoteMismatchError,
    SimulationFailure,
    UnsupportedFeatureError,
    UnsupportedTokenLayoutError,
)
from .networks import Network, NetworkConfig, load_network_config
from .storage import StorageLayout

__all__ = [
    "Address",
    "AnyToken",
    "Token",
    "SimulatedToken",
    "TransactionRequest",
    "StorageLayout",
    "Network",
    "NetworkConfig",
    "load_network_config",
    "ETHER_ADDRESS",
    "NULL_ADDRESS",
    "MAX_UINT",
    "HarnessError",
    "ConfigurationError",
    "QuoteEmptyError",
    "QuoteMismatchError",
    "UnsupportedFeatureError",
    "UnsupportedTokenLayoutError",
    "ProviderError",
    "SimulationFailure",
    "InvalidGasMeasurement",
    "GasDeviationExceeded",
]
