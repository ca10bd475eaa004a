from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from core.errors import GasDeviationExceeded, InvalidGasMeasurement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GasReport:
    """Predicted vs. observed gas for one swap."""

    predicted: int
    actual: int
    deviation_percent: Decimal
    target_percent: Optional[Decimal]
    ok: bool

    @property
    def difference(self) -> int:
        return self.predicted - self.actual


class GasAccuracyEvaluator:
    """
    Checks that the route's predicted gas stays close to what the simulator
    measured.

    A positive deviation means the prediction overestimates. The check
    passes when ``|deviation| <= target``: the target is the largest
    acceptable error, in percent of the observed gas.
    """

    @staticmethod
    def deviation_percent(predicted: int, actual: int) -> Decimal:
        if isinstance(predicted, bool) or not isinstance(predicted, int):
            raise TypeError("predicted gas must be int")
        if isinstance(actual, bool) or not isinstance(actual, int):
            raise TypeError("actual gas must be int")
        if actual <= 0:
            raise InvalidGasMeasurement(
                f"Observed gas must be positive to compute a deviation (got {actual})"
            )
        return Decimal(predicted - actual) / Decimal(actual) * Decimal(100)

    @staticmethod
    def within_target(deviation: Decimal, target_percent: Decimal | int | str) -> bool:
        target = _to_decimal(target_percent)
        if target < 0:
            raise ValueError("target_percent must be non-negative")
        return abs(deviation) <= target

    def evaluate(
        self,
        predicted: int,
        actual: int,
        target_percent: Decimal | int | str | None = None,
    ) -> GasReport:
        deviation = self.deviation_percent(predicted, actual)
        target = _to_decimal(target_percent) if target_percent is not None else None
        ok = True if target is None else self.within_target(deviation, target)
        logger.info(
            "Estimated gas cost: %d, actual gas cost: %d, diff: %.4f%%",
            predicted,
            actual,
            deviation,
        )
        return GasReport(
            predicted=predicted,
            actual=actual,
            deviation_percent=deviation,
            target_percent=target,
            ok=ok,
        )

    def check(
        self,
        predicted: int,
        actual: int,
        target_percent: Decimal | int | str,
    ) -> GasReport:
        """Like ``evaluate`` but raises ``GasDeviationExceeded`` on a miss."""
        report = self.evaluate(predicted, actual, target_percent)
        if not report.ok:
            raise GasDeviationExceeded(report)
        return report


def _to_decimal(value: Decimal | int | str) -> Decimal:
    if isinstance(value, float):
        raise TypeError("target_percent must be Decimal, int or str, not float")
    return value if isinstance(value, Decimal) else Decimal(value)
