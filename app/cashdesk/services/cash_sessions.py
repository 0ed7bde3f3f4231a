from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from app.cashdesk.core.error_catalog import ConflictError, InvalidStateError, NotFoundError, ValidationError
from app.cashdesk.core.logging import log_json
from app.cashdesk.db.models import CashierSession
from app.cashdesk.domain.cash_types import SessionStatus, TransactionType
from app.cashdesk.domain.reconciliation import ReconciliationResult
from app.cashdesk.repos.cash_sessions import CashSessionRepository
from app.cashdesk.services.cash_balance import BalanceCalculator
from app.cashdesk.services.cash_ledger import TransactionLedger
from app.cashdesk.services.cash_reconciliation import ReconciliationService, counted_amount

logger = logging.getLogger("cashdesk.sessions")


@dataclass(frozen=True)
class CloseOutcome:
    session: CashierSession
    reconciliation: ReconciliationResult


class SessionLifecycleManager:
    """Opens and closes cashier shifts.

    ``OPEN -> CLOSED`` is the only transition and ``CLOSED`` is terminal. Each
    transition writes its lifecycle ledger entry in the same commit as the
    session change.
    """

    def __init__(self, db):
        self.db = db
        self.sessions = CashSessionRepository(db)
        self.ledger = TransactionLedger(db)
        self.balances = BalanceCalculator(db)
        self.reconciliation = ReconciliationService(db)

    def start_session(self, cashier_id: int, outlet_id: int, opening_balance) -> CashierSession:
        opening = counted_amount(opening_balance, "opening_balance")
        if self.sessions.get_open(cashier_id=cashier_id, outlet_id=outlet_id, for_update=True):
            raise ConflictError(
                "An open cashier session already exists", cashier_id=cashier_id, outlet_id=outlet_id
            )

        now = datetime.utcnow()
        try:
            session = self.sessions.add(
                CashierSession(
                    cashier_id=cashier_id,
                    outlet_id=outlet_id,
                    status=SessionStatus.OPEN.value,
                    opening_balance=opening,
                    opening_time=now,
                    created_at=now,
                    updated_at=now,
                )
            )
            self.ledger.append_entry(session, TransactionType.OPENING_BALANCE, opening, description="Opening balance")
            self.db.commit()
        except IntegrityError as exc:
            # Lost the race against a concurrent open for the same cashier and outlet.
            self.db.rollback()
            raise ConflictError(
                "An open cashier session already exists", cashier_id=cashier_id, outlet_id=outlet_id
            ) from exc

        log_json(
            logger,
            {
                "event": "cash_session.opened",
                "session_id": session.id,
                "cashier_id": cashier_id,
                "outlet_id": outlet_id,
                "opening_balance": opening,
            },
        )
        return session

    def close_session(self, session_id: int, counted_closing_balance, notes: str | None = None) -> CloseOutcome:
        counted = counted_amount(counted_closing_balance, "closing_balance")
        session = self.sessions.get(session_id, for_update=True)
        if session is None:
            raise NotFoundError("Cashier session not found", session_id=session_id)
        if session.status != SessionStatus.OPEN.value:
            raise InvalidStateError("Cashier session is already closed", session_id=session_id, status=session.status)

        result = self.reconciliation.reconcile(self.balances.current_balance(session_id), counted)
        now = datetime.utcnow()
        session.status = SessionStatus.CLOSED.value
        session.closing_balance = result.counted
        session.closing_time = now
        session.expected_balance = result.expected
        session.variance = result.variance
        session.notes = notes
        session.updated_at = now
        self.ledger.append_entry(
            session,
            TransactionType.CLOSING_BALANCE,
            result.counted,
            description=notes or "Closing balance",
            transaction_date=now,
        )
        self.db.commit()

        log_json(
            logger,
            {
                "event": "cash_session.closed",
                "session_id": session.id,
                "expected": result.expected,
                "counted": result.counted,
                "variance": result.variance,
                "status": result.status.value,
            },
        )
        return CloseOutcome(session=session, reconciliation=result)

    def get_active_session(self, cashier_id: int, outlet_id: int) -> CashierSession | None:
        return self.sessions.get_open(cashier_id=cashier_id, outlet_id=outlet_id)

    def get_session(self, session_id: int) -> CashierSession:
        session = self.sessions.get(session_id)
        if session is None:
            raise NotFoundError("Cashier session not found", session_id=session_id)
        return session

    def list_sessions(
        self,
        *,
        status: str | None = None,
        cashier_id: int | None = None,
        outlet_id: int | None = None,
        from_ts: datetime | None = None,
        to_ts: datetime | None = None,
        limit: int,
        offset: int,
    ) -> tuple[list[CashierSession], int]:
        if status:
            try:
                status = SessionStatus(status.strip().upper()).value
            except ValueError as exc:
                raise ValidationError(f"Unsupported session status: {status}", field="status") from exc
        if from_ts and to_ts and from_ts > to_ts:
            raise ValidationError("from_ts must not be after to_ts", field="from_ts")
        return self.sessions.list(
            status=status,
            cashier_id=cashier_id,
            outlet_id=outlet_id,
            from_ts=from_ts,
            to_ts=to_ts,
            limit=limit,
            offset=offset,
        )
