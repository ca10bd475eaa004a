from .api_provider import ApiQuoteProvider
from .local_provider import LocalQuoteProvider
from .provider import QuoteProvider, TransferFees, select_quote_provider
from .route import ContractMethod, PriceRoute, ProtocolVersion, SwapSide

__all__ = [
    "QuoteProvider",
    "ApiQuoteProvider",
    "LocalQuoteProvider",
    "select_quote_provider",
    "TransferFees",
    "PriceRoute",
    "SwapSide",
    "ProtocolVersion",
    "ContractMethod",
]
