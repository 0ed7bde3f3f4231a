from __future__ import annotations

from enum import Enum


class SessionStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class TransactionType(str, Enum):
    OPENING_BALANCE = "OPENING_BALANCE"
    CLOSING_BALANCE = "CLOSING_BALANCE"
    CASH_IN = "CASH_IN"
    CASH_OUT = "CASH_OUT"
    EXPENSE = "EXPENSE"
    REFUND = "REFUND"
    SALE = "SALE"


class DrawerEffect(str, Enum):
    INFLOW = "INFLOW"
    OUTFLOW = "OUTFLOW"
    # Only when tendered in cash.
    TENDER_INFLOW = "TENDER_INFLOW"
    # Unless tendered with a non-cash payment method.
    TENDER_OUTFLOW = "TENDER_OUTFLOW"
    SNAPSHOT = "SNAPSHOT"


DRAWER_EFFECTS: dict[TransactionType, DrawerEffect] = {
    TransactionType.OPENING_BALANCE: DrawerEffect.INFLOW,
    TransactionType.CASH_IN: DrawerEffect.INFLOW,
    TransactionType.CASH_OUT: DrawerEffect.OUTFLOW,
    TransactionType.EXPENSE: DrawerEffect.OUTFLOW,
    TransactionType.REFUND: DrawerEffect.TENDER_OUTFLOW,
    TransactionType.SALE: DrawerEffect.TENDER_INFLOW,
    TransactionType.CLOSING_BALANCE: DrawerEffect.SNAPSHOT,
}

_undecided = [member.value for member in TransactionType if member not in DRAWER_EFFECTS]
if _undecided:
    raise RuntimeError(f"Drawer effect not defined for transaction types: {', '.join(_undecided)}")

CASH_IN_TYPES = frozenset(kind for kind, effect in DRAWER_EFFECTS.items() if effect is DrawerEffect.INFLOW)
CASH_OUT_TYPES = frozenset(
    kind
    for kind, effect in DRAWER_EFFECTS.items()
    if effect in {DrawerEffect.OUTFLOW, DrawerEffect.TENDER_OUTFLOW}
)

# Written by the session lifecycle only; excluded from the running balance and from cash flow totals.
LIFECYCLE_TYPES = frozenset({TransactionType.OPENING_BALANCE, TransactionType.CLOSING_BALANCE})

# Recorded by hand from the drawer dialog: strictly positive amount and a description.
MANUAL_MOVEMENT_TYPES = frozenset({TransactionType.CASH_IN, TransactionType.CASH_OUT, TransactionType.EXPENSE})

CASH_PAYMENT_METHOD = "cash"


def parse_transaction_type(value: object) -> TransactionType | None:
    if isinstance(value, TransactionType):
        return value
    if value is None:
        return None
    try:
        return TransactionType(str(value).strip())
    except ValueError:
        return None


def is_cash_payment(payment_method: str | None) -> bool:
    return payment_method is not None and payment_method.strip().lower() == CASH_PAYMENT_METHOD
