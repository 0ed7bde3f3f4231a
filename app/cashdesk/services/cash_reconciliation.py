from __future__ import annotations

from decimal import Decimal

from app.cashdesk.core.error_catalog import InvalidStateError, NotFoundError, ValidationError
from app.cashdesk.domain.cash_types import SessionStatus
from app.cashdesk.domain.reconciliation import ReconciliationResult, reconcile
from app.cashdesk.repos.cash_sessions import CashSessionRepository
from app.cashdesk.services.cash_balance import BalanceCalculator
from app.cashdesk.services.cash_ledger import validated_amount


def counted_amount(value, field: str = "counted") -> Decimal:
    amount = validated_amount(value, field)
    if amount is None:
        raise ValidationError(f"{field} is required", field=field)
    return amount


class ReconciliationService:
    def __init__(self, db):
        self.sessions = CashSessionRepository(db)
        self.balances = BalanceCalculator(db)

    @staticmethod
    def reconcile(expected, counted) -> ReconciliationResult:
        return reconcile(expected, counted)

    def preview(self, session_id: int, counted) -> ReconciliationResult:
        """What closing now with ``counted`` in the drawer would report. Persists nothing."""
        counted = counted_amount(counted)
        session = self.sessions.get(session_id)
        if session is None:
            raise NotFoundError("Cashier session not found", session_id=session_id)
        if session.status != SessionStatus.OPEN.value:
            raise InvalidStateError("Cashier session is not open", session_id=session_id, status=session.status)
        return self.reconcile(self.balances.current_balance(session_id), counted)
