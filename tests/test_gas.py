from decimal import Decimal

import pytest

from core.errors import GasDeviationExceeded, InvalidGasMeasurement
from harness.gas import GasAccuracyEvaluator


def test_overestimate_outside_target():
    evaluator = GasAccuracyEvaluator()
    deviation = evaluator.deviation_percent(100_000, 90_000)
    assert deviation.quantize(Decimal("0.0001")) == Decimal("11.1111")

    with pytest.raises(GasDeviationExceeded) as exc_info:
        evaluator.check(100_000, 90_000, 5)
    assert exc_info.value.report.ok is False
    assert "11.1111%" in str(exc_info.value)


def test_within_target_passes():
    report = GasAccuracyEvaluator().check(100_000, 90_000, Decimal("12"))
    assert report.ok
    assert report.difference == 10_000


def test_underestimate_uses_absolute_deviation():
    evaluator = GasAccuracyEvaluator()
    report = evaluator.evaluate(90_000, 100_000, 10)
    assert report.deviation_percent == Decimal("-10")
    assert report.ok
    assert not evaluator.evaluate(80_000, 100_000, 10).ok


def test_evaluate_without_target_never_fails():
    report = GasAccuracyEvaluator().evaluate(1, 1_000_000)
    assert report.ok
    assert report.target_percent is None


def test_zero_actual_is_invalid():
    with pytest.raises(InvalidGasMeasurement):
        GasAccuracyEvaluator().evaluate(100_000, 0, 5)


def test_float_target_rejected():
    with pytest.raises(TypeError):
        GasAccuracyEvaluator().check(100, 100, 5.0)
