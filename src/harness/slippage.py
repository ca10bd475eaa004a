from __future__ import annotations

from dataclasses import dataclass

from pricing.route import PriceRoute, SwapSide

BPS_DENOMINATOR = 10_000
DEFAULT_SLIPPAGE_BPS = 100  # 1%


@dataclass(frozen=True)
class SlippageBound:
    """
    Worst acceptable counter-amount for a route.

    SELL: minimum ``dest`` accepted. BUY: maximum ``src`` the sender will pay.
    Integer math with truncating division, matching what the router checks.
    """

    side: SwapSide
    amount: int
    tolerance_bps: int

    @classmethod
    def from_route(
        cls, route: PriceRoute, tolerance_bps: int = DEFAULT_SLIPPAGE_BPS
    ) -> "SlippageBound":
        if isinstance(tolerance_bps, bool) or not isinstance(tolerance_bps, int):
            raise TypeError("tolerance_bps must be int")
        if tolerance_bps < 0 or tolerance_bps > BPS_DENOMINATOR:
            raise ValueError("tolerance_bps must be in [0, 10000]")

        if route.side == SwapSide.SELL:
            amount = route.dest_amount * (BPS_DENOMINATOR - tolerance_bps) // BPS_DENOMINATOR
        else:
            amount = route.src_amount * (BPS_DENOMINATOR + tolerance_bps) // BPS_DENOMINATOR
        return cls(side=route.side, amount=amount, tolerance_bps=tolerance_bps)

    @property
    def min_accepted(self) -> int:
        if self.side != SwapSide.SELL:
            raise AttributeError("min_accepted is only defined for SELL routes")
        return self.amount

    @property
    def max_required(self) -> int:
        if self.side != SwapSide.BUY:
            raise AttributeError("max_required is only defined for BUY routes")
        return self.amount
