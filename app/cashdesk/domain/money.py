from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0")
CENT = Decimal("0.01")

# Matches the Numeric(12, 2) money columns.
MAX_AMOUNT = Decimal("9999999999.99")
_MAGNITUDE_LIMIT = Decimal("1E10")


def to_amount(value: Decimal | int | float | str | None) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc


def quantize_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value: Decimal | int | float | str | None) -> Decimal | None:
    """Parse ``value`` and round it to cents, the precision it is stored at.

    Raises ``ValueError`` for non-finite values and for values the money
    columns cannot hold.
    """
    amount = to_amount(value)
    if amount is None:
        return None
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    if abs(amount) >= _MAGNITUDE_LIMIT:
        raise ValueError(f"Amount exceeds {MAX_AMOUNT}")
    amount = quantize_cents(amount)
    if abs(amount) > MAX_AMOUNT:
        raise ValueError(f"Amount exceeds {MAX_AMOUNT}")
    return amount
