"""Drawer balance derivation.

Every cash effect is derived from the stored transaction at read time; nothing
signed is ever persisted. The functions accept any object exposing the ledger
fields (ORM rows on the service side, pydantic models in the SDK).

Conventions:

* ``amount_in`` / ``amount_out`` are unsigned magnitudes.
* ``net_amount`` is signed relative to the drawer: cash leaving the drawer is
  negative, including bare ``CASH_OUT``/``EXPENSE``/``REFUND`` amounts.
* ``cash_in - cash_out`` always equals the sum of ``net_amount`` over the
  non-lifecycle entries, so ``current_balance == opening_balance + net_cash_flow``.
* The fold skips ``CLOSING_BALANCE`` as well as ``OPENING_BALANCE``: the counted
  closing figure is a reference point, so a closed session still reports its
  expected balance.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from app.cashdesk.core.logging import log_json
from app.cashdesk.domain.cash_types import (
    CASH_IN_TYPES,
    CASH_OUT_TYPES,
    DRAWER_EFFECTS,
    LIFECYCLE_TYPES,
    DrawerEffect,
    TransactionType,
    is_cash_payment,
    parse_transaction_type,
)
from app.cashdesk.domain.money import ZERO, to_amount

logger = logging.getLogger("cashdesk.balance")


class LedgerEntry(Protocol):
    transaction_type: object
    amount: Decimal | float | str | None
    amount_in: Decimal | float | str | None
    amount_out: Decimal | float | str | None
    payment_method: str | None
    transaction_date: datetime | None


@dataclass(frozen=True)
class CashAggregates:
    cash_in: Decimal
    cash_out: Decimal
    net_cash_flow: Decimal
    todays_cash_sale: Decimal


@dataclass(frozen=True)
class DrawerBalance:
    opening_balance: Decimal
    current_balance: Decimal
    aggregates: CashAggregates


def _bare_amount(entry: LedgerEntry) -> Decimal:
    return to_amount(entry.amount) or ZERO


def _effect(entry: LedgerEntry) -> DrawerEffect | None:
    """Effect on the drawer after applying the payment-method rule, or None if the entry moves no cash."""
    kind = parse_transaction_type(entry.transaction_type)
    if kind is None:
        return None
    effect = DRAWER_EFFECTS[kind]
    if effect is DrawerEffect.TENDER_INFLOW and not is_cash_payment(entry.payment_method):
        return None
    if effect is DrawerEffect.TENDER_OUTFLOW and entry.payment_method is not None and not is_cash_payment(
        entry.payment_method
    ):
        return None
    return effect


def is_cash_sale(entry: LedgerEntry) -> bool:
    return (
        parse_transaction_type(entry.transaction_type) is TransactionType.SALE
        and is_cash_payment(entry.payment_method)
    )


def is_cash_refund(entry: LedgerEntry) -> bool:
    return (
        parse_transaction_type(entry.transaction_type) is TransactionType.REFUND
        and is_cash_payment(entry.payment_method)
    )


def is_lifecycle_entry(entry: LedgerEntry) -> bool:
    return parse_transaction_type(entry.transaction_type) in LIFECYCLE_TYPES


def _brings_cash_in(entry: LedgerEntry, effect: DrawerEffect | None) -> bool:
    if effect is None:
        return False
    return effect is DrawerEffect.TENDER_INFLOW or parse_transaction_type(entry.transaction_type) in CASH_IN_TYPES


def _takes_cash_out(entry: LedgerEntry, effect: DrawerEffect | None) -> bool:
    # A card refund has no effect and never reaches the type check.
    return effect is not None and parse_transaction_type(entry.transaction_type) in CASH_OUT_TYPES


def amount_in(entry: LedgerEntry) -> Decimal:
    if not _brings_cash_in(entry, _effect(entry)):
        return ZERO
    explicit = to_amount(entry.amount_in)
    return explicit if explicit is not None else _bare_amount(entry)


def amount_out(entry: LedgerEntry) -> Decimal:
    effect = _effect(entry)
    explicit = to_amount(entry.amount_out)
    if effect is DrawerEffect.TENDER_INFLOW:
        # A cash sale with a change/refund component is pre-netted upstream unless split explicitly.
        return explicit if explicit is not None else ZERO
    if _takes_cash_out(entry, effect):
        return explicit if explicit is not None else _bare_amount(entry)
    return ZERO


def net_amount(entry: LedgerEntry) -> Decimal:
    effect = _effect(entry)
    if effect is None:
        return ZERO
    if effect is DrawerEffect.SNAPSHOT:
        return _bare_amount(entry)
    if entry.amount_in is None and entry.amount_out is None:
        return _bare_amount(entry) if _brings_cash_in(entry, effect) else -_bare_amount(entry)
    return amount_in(entry) - amount_out(entry)


def unknown_types(entries: Iterable[LedgerEntry]) -> list[str]:
    return sorted(
        {str(entry.transaction_type) for entry in entries if parse_transaction_type(entry.transaction_type) is None}
    )


def _flag_unknown(entries: list[LedgerEntry], context: str) -> None:
    unknown = unknown_types(entries)
    if unknown:
        log_json(
            logger,
            {"event": "cash_balance.unknown_type", "context": context, "transaction_types": unknown},
            level=logging.WARNING,
        )


def fold_balance(opening_balance: Decimal | float | str, entries: Iterable[LedgerEntry]) -> Decimal:
    """Opening balance plus the net effect of every movement, in ledger order.

    The ``OPENING_BALANCE`` entry is skipped because the session record already
    seeds the fold with it; the ``CLOSING_BALANCE`` entry is a counted snapshot,
    not a movement.
    """
    entries = list(entries)
    _flag_unknown(entries, "fold_balance")
    balance = to_amount(opening_balance) or ZERO
    for entry in entries:
        if is_lifecycle_entry(entry):
            continue
        balance += net_amount(entry)
    return balance


def _within(entry: LedgerEntry, window_start: datetime | None, window_end: datetime | None) -> bool:
    moment = entry.transaction_date
    if moment is None:
        return window_start is None and window_end is None
    if window_start is not None and moment < window_start:
        return False
    if window_end is not None and moment > window_end:
        return False
    return True


def compute_aggregates(
    entries: Iterable[LedgerEntry],
    *,
    window_start: datetime | None = None,
    window_end: datetime | None = None,
) -> CashAggregates:
    entries = list(entries)
    _flag_unknown(entries, "compute_aggregates")
    cash_in = ZERO
    cash_out = ZERO
    cash_sales = ZERO
    cash_refunds = ZERO
    for entry in entries:
        if is_lifecycle_entry(entry):
            continue
        inbound = amount_in(entry)
        if inbound > 0:
            cash_in += inbound
        outbound = amount_out(entry)
        if outbound > 0:
            cash_out += outbound
        if not _within(entry, window_start, window_end):
            continue
        if is_cash_sale(entry):
            cash_sales += net_amount(entry)
        elif is_cash_refund(entry):
            cash_refunds += abs(net_amount(entry))
    return CashAggregates(
        cash_in=cash_in,
        cash_out=cash_out,
        net_cash_flow=cash_in - cash_out,
        todays_cash_sale=cash_sales - cash_refunds,
    )


def summarize(
    opening_balance: Decimal | float | str,
    entries: Iterable[LedgerEntry],
    *,
    window_start: datetime | None = None,
    window_end: datetime | None = None,
) -> DrawerBalance:
    entries = list(entries)
    return DrawerBalance(
        opening_balance=to_amount(opening_balance) or ZERO,
        current_balance=fold_balance(opening_balance, entries),
        aggregates=compute_aggregates(entries, window_start=window_start, window_end=window_end),
    )


def cash_related_entries(entries: Iterable[LedgerEntry]) -> list[LedgerEntry]:
    """Entries worth showing on the drawer screen, newest first."""
    related = [entry for entry in entries if is_lifecycle_entry(entry) or _effect(entry) is not None]
    return sorted(related, key=lambda entry: entry.transaction_date or datetime.min, reverse=True)
