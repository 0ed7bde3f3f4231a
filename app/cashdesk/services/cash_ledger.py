from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from app.cashdesk.core.error_catalog import InvalidStateError, NotFoundError, ValidationError
from app.cashdesk.core.logging import log_json
from app.cashdesk.db.models import CashierSession, CashTransaction
from app.cashdesk.domain.cash_types import (
    LIFECYCLE_TYPES,
    MANUAL_MOVEMENT_TYPES,
    SessionStatus,
    TransactionType,
    parse_transaction_type,
)
from app.cashdesk.domain.money import to_money
from app.cashdesk.repos.cash_sessions import CashSessionRepository
from app.cashdesk.repos.cash_transactions import CashTransactionRepository

logger = logging.getLogger("cashdesk.ledger")


@dataclass
class TransactionFilters:
    outlet_id: int | None = None
    cashier_id: int | None = None
    session_id: int | None = None
    transaction_type: str | None = None
    from_ts: datetime | None = None
    to_ts: datetime | None = None


def validated_amount(value, field: str) -> Decimal | None:
    """Amount rounded to cents, or None. Rejects negatives and values the ledger cannot store."""
    try:
        amount = to_money(value)
    except ValueError as exc:
        raise ValidationError(f"{field} is not a valid amount: {exc}", field=field) from exc
    if amount is not None and amount < 0:
        raise ValidationError(f"{field} must not be negative", field=field)
    return amount


class TransactionLedger:
    """Append-only store of cash-affecting events.

    There is no update or delete: a mistake is corrected by recording an
    offsetting transaction.
    """

    def __init__(self, db):
        self.db = db
        self.sessions = CashSessionRepository(db)
        self.transactions = CashTransactionRepository(db)

    def record(
        self,
        session_id: int,
        transaction_type: str | TransactionType,
        amount,
        *,
        description: str | None = None,
        payment_method: str | None = None,
        reference_number: str | None = None,
        amount_in=None,
        amount_out=None,
        order_id: int | None = None,
        client_transaction_id: str | None = None,
        transaction_date: datetime | None = None,
    ) -> CashTransaction:
        kind = parse_transaction_type(transaction_type)
        if kind is None:
            raise ValidationError(f"Unsupported transaction type: {transaction_type}", field="transaction_type")
        if kind in LIFECYCLE_TYPES:
            raise ValidationError(
                f"{kind.value} is written by the session lifecycle only",
                field="transaction_type",
            )
        value = validated_amount(amount, "amount")
        if value is None:
            raise ValidationError("amount is required", field="amount")
        explicit_in = validated_amount(amount_in, "amount_in")
        explicit_out = validated_amount(amount_out, "amount_out")
        description = (description or "").strip()
        if kind in MANUAL_MOVEMENT_TYPES:
            if value <= 0:
                raise ValidationError("amount must be greater than 0", field="amount")
            if not description:
                raise ValidationError("description is required", field="description")

        session = self.sessions.get(session_id, for_update=True)
        if session is None:
            raise NotFoundError("Cashier session not found", session_id=session_id)
        if session.status != SessionStatus.OPEN.value:
            raise InvalidStateError("Cashier session is not open", session_id=session_id, status=session.status)

        transaction = self.append_entry(
            session,
            kind,
            value,
            description=description,
            payment_method=payment_method.strip() if payment_method else None,
            reference_number=reference_number,
            amount_in=explicit_in,
            amount_out=explicit_out,
            order_id=order_id,
            client_transaction_id=client_transaction_id,
            transaction_date=transaction_date,
        )
        self.db.commit()
        log_json(
            logger,
            {
                "event": "cash_transaction.recorded",
                "transaction_id": transaction.id,
                "session_id": session.id,
                "transaction_type": kind.value,
                "amount": value,
                "payment_method": transaction.payment_method,
            },
        )
        return transaction

    def append_entry(
        self,
        session: CashierSession,
        kind: TransactionType,
        amount: Decimal,
        *,
        description: str = "",
        payment_method: str | None = None,
        reference_number: str | None = None,
        amount_in: Decimal | None = None,
        amount_out: Decimal | None = None,
        order_id: int | None = None,
        client_transaction_id: str | None = None,
        transaction_date: datetime | None = None,
    ) -> CashTransaction:
        """Add a ledger row for an already validated amount. Flushes only; the caller owns the commit."""
        now = datetime.utcnow()
        return self.transactions.add(
            CashTransaction(
                session_id=session.id,
                outlet_id=session.outlet_id,
                cashier_id=session.cashier_id,
                transaction_type=kind.value,
                amount=amount,
                amount_in=amount_in,
                amount_out=amount_out,
                payment_method=payment_method,
                description=description,
                reference_number=reference_number,
                order_id=order_id,
                client_transaction_id=client_transaction_id,
                transaction_date=transaction_date or now,
                created_at=now,
            )
        )

    def list_by_session(self, session_id: int) -> list[CashTransaction]:
        if self.sessions.get(session_id) is None:
            raise NotFoundError("Cashier session not found", session_id=session_id)
        return self.transactions.list_by_session(session_id)

    def list_transactions(
        self, filters: TransactionFilters, *, limit: int, offset: int
    ) -> tuple[list[CashTransaction], int]:
        if filters.transaction_type and parse_transaction_type(filters.transaction_type) is None:
            raise ValidationError(
                f"Unsupported transaction type: {filters.transaction_type}", field="transaction_type"
            )
        if filters.from_ts and filters.to_ts and filters.from_ts > filters.to_ts:
            raise ValidationError("from_ts must not be after to_ts", field="from_ts")
        return self.transactions.list(
            outlet_id=filters.outlet_id,
            cashier_id=filters.cashier_id,
            session_id=filters.session_id,
            transaction_type=filters.transaction_type.strip() if filters.transaction_type else None,
            from_ts=filters.from_ts,
            to_ts=filters.to_ts,
            limit=limit,
            offset=offset,
        )
