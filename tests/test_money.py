from decimal import Decimal

import pytest

from app.cashdesk.domain.money import MAX_AMOUNT, to_money


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("100.005", Decimal("100.01")),
        ("100.004", Decimal("100.00")),
        ("0.001", Decimal("0.00")),
        (Decimal("-2.675"), Decimal("-2.68")),
        (12, Decimal("12.00")),
    ],
)
def test_amounts_are_rounded_half_up_to_cents(raw, expected):
    assert to_money(raw) == expected


def test_missing_amount_stays_missing():
    assert to_money(None) is None


def test_largest_storable_amount_is_accepted():
    assert to_money(MAX_AMOUNT) == MAX_AMOUNT


@pytest.mark.parametrize("raw", ["1e15", "9999999999.995", "-10000000000", "NaN", "Infinity", "abc"])
def test_unstorable_amounts_are_rejected(raw):
    with pytest.raises(ValueError):
        to_money(raw)
