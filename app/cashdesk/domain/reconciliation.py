from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from app.cashdesk.domain.money import ZERO, quantize_cents, to_amount


class VarianceStatus(str, Enum):
    EVEN = "EVEN"
    SHORT = "SHORT"
    OVER = "OVER"


@dataclass(frozen=True)
class ReconciliationResult:
    expected: Decimal
    counted: Decimal
    variance: Decimal
    status: VarianceStatus

    @property
    def is_clean(self) -> bool:
        return self.status is VarianceStatus.EVEN


def reconcile(expected: Decimal | float | str, counted: Decimal | float | str) -> ReconciliationResult:
    """Counted minus expected, compared at cent precision.

    The variance is reported, never corrected: a short or over drawer is
    information for whoever closes the shift.
    """
    expected_amount = quantize_cents(to_amount(expected) or ZERO)
    counted_amount = quantize_cents(to_amount(counted) or ZERO)
    variance = counted_amount - expected_amount
    if variance == 0:
        status = VarianceStatus.EVEN
    elif variance < 0:
        status = VarianceStatus.SHORT
    else:
        status = VarianceStatus.OVER
    return ReconciliationResult(expected=expected_amount, counted=counted_amount, variance=variance, status=status)
