from decimal import Decimal

import pytest

from app.cashdesk.domain.reconciliation import VarianceStatus, reconcile


def test_matching_count_has_zero_variance():
    result = reconcile(Decimal("137.50"), Decimal("137.50"))
    assert result.variance == Decimal("0")
    assert result.status is VarianceStatus.EVEN
    assert result.is_clean


@pytest.mark.parametrize(
    ("expected", "counted", "variance", "status"),
    [
        ("295", "290", Decimal("-5.00"), VarianceStatus.SHORT),
        ("295", "300.25", Decimal("5.25"), VarianceStatus.OVER),
        ("0", "0", Decimal("0.00"), VarianceStatus.EVEN),
    ],
)
def test_variance_is_counted_minus_expected(expected, counted, variance, status):
    result = reconcile(expected, counted)
    assert result.variance == variance
    assert result.status is status


def test_comparison_happens_at_cent_precision():
    result = reconcile(Decimal("10.004"), Decimal("10"))
    assert result.expected == Decimal("10.00")
    assert result.status is VarianceStatus.EVEN

    rounded_up = reconcile(Decimal("10.005"), Decimal("10"))
    assert rounded_up.expected == Decimal("10.01")
    assert rounded_up.variance == Decimal("-0.01")
    assert rounded_up.status is VarianceStatus.SHORT
