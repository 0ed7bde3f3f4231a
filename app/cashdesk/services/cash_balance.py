from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from app.cashdesk.core.error_catalog import NotFoundError, ValidationError
from app.cashdesk.db.models import CashierSession, CashTransaction
from app.cashdesk.domain.balance import CashAggregates, DrawerBalance, compute_aggregates, fold_balance, summarize
from app.cashdesk.repos.cash_sessions import CashSessionRepository
from app.cashdesk.repos.cash_transactions import CashTransactionRepository


@dataclass(frozen=True)
class ReportingWindow:
    from_ts: datetime | None = None
    to_ts: datetime | None = None

    def __post_init__(self):
        if self.from_ts and self.to_ts and self.from_ts > self.to_ts:
            raise ValidationError("from_ts must not be after to_ts", field="from_ts")


@dataclass(frozen=True)
class DrawerReport:
    session: CashierSession
    balance: DrawerBalance
    as_of: datetime


class BalanceCalculator:
    """Reads a session and its ledger and folds them with the pure balance rules."""

    def __init__(self, db):
        self.sessions = CashSessionRepository(db)
        self.transactions = CashTransactionRepository(db)

    def _load(self, session_id: int) -> tuple[CashierSession, list[CashTransaction]]:
        session = self.sessions.get(session_id)
        if session is None:
            raise NotFoundError("Cashier session not found", session_id=session_id)
        return session, self.transactions.list_by_session(session_id)

    def current_balance(self, session_id: int) -> Decimal:
        session, entries = self._load(session_id)
        return fold_balance(session.opening_balance, entries)

    def aggregates(self, session_id: int, window: ReportingWindow | None = None) -> CashAggregates:
        window = window or ReportingWindow()
        _, entries = self._load(session_id)
        return compute_aggregates(entries, window_start=window.from_ts, window_end=window.to_ts)

    def drawer_report(self, session_id: int, window: ReportingWindow | None = None) -> DrawerReport:
        window = window or ReportingWindow()
        session, entries = self._load(session_id)
        balance = summarize(session.opening_balance, entries, window_start=window.from_ts, window_end=window.to_ts)
        return DrawerReport(session=session, balance=balance, as_of=datetime.utcnow())
