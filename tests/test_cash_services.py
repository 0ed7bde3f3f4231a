import logging
from decimal import Decimal

import pytest

from app.cashdesk.core.error_catalog import ConflictError, InvalidStateError, NotFoundError, ValidationError
from app.cashdesk.domain.reconciliation import VarianceStatus
from app.cashdesk.repos.cash_sessions import CashSessionRepository
from app.cashdesk.services.cash_balance import BalanceCalculator
from app.cashdesk.services.cash_ledger import TransactionFilters, TransactionLedger
from app.cashdesk.services.cash_reconciliation import ReconciliationService
from app.cashdesk.services.cash_sessions import SessionLifecycleManager


def test_lost_race_on_open_surfaces_conflict(db_session, monkeypatch):
    manager = SessionLifecycleManager(db_session)
    manager.start_session(11, 12, Decimal("10"))

    monkeypatch.setattr(CashSessionRepository, "get_open", lambda self, **kwargs: None)
    with pytest.raises(ConflictError):
        manager.start_session(11, 12, Decimal("20"))

    sessions, total = manager.list_sessions(cashier_id=11, limit=10, offset=0)
    assert total == 1
    assert sessions[0].opening_balance == Decimal("10")


def test_shift_lifecycle_through_services(db_session, caplog):
    manager = SessionLifecycleManager(db_session)
    ledger = TransactionLedger(db_session)
    balances = BalanceCalculator(db_session)

    with caplog.at_level(logging.INFO):
        session = manager.start_session(1, 2, Decimal("200"))
        ledger.record(session.id, "CASH_IN", Decimal("50"), description="Float")
        ledger.record(session.id, "EXPENSE", Decimal("30"), description="Supplies")
        ledger.record(session.id, "SALE", Decimal("75"), payment_method="Cash")
    assert "cash_session.opened" in caplog.text
    assert "cash_transaction.recorded" in caplog.text

    assert balances.current_balance(session.id) == Decimal("295")
    aggregates = balances.aggregates(session.id)
    assert aggregates.net_cash_flow == Decimal("95")

    assert ReconciliationService(db_session).preview(session.id, Decimal("295")).status is VarianceStatus.EVEN

    outcome = manager.close_session(session.id, Decimal("290"))
    assert outcome.reconciliation.variance == Decimal("-5.00")
    assert outcome.reconciliation.status is VarianceStatus.SHORT
    assert outcome.session.status == "CLOSED"

    with pytest.raises(InvalidStateError):
        manager.close_session(session.id, Decimal("1"))
    with pytest.raises(InvalidStateError):
        ledger.record(session.id, "CASH_IN", Decimal("1"), description="late")
    assert manager.get_session(session.id).closing_balance == Decimal("290")


def test_ledger_rejects_lifecycle_types(db_session):
    session = SessionLifecycleManager(db_session).start_session(1, 1, Decimal("0"))
    with pytest.raises(ValidationError):
        TransactionLedger(db_session).record(session.id, "OPENING_BALANCE", Decimal("5"))


def test_unknown_session_lookups(db_session):
    with pytest.raises(NotFoundError):
        BalanceCalculator(db_session).current_balance(404)
    with pytest.raises(NotFoundError):
        TransactionLedger(db_session).list_by_session(404)
    with pytest.raises(NotFoundError):
        SessionLifecycleManager(db_session).get_session(404)
    assert SessionLifecycleManager(db_session).get_active_session(404, 404) is None


def test_list_transactions_rejects_inverted_range(db_session):
    from datetime import datetime

    filters = TransactionFilters(from_ts=datetime(2026, 1, 2), to_ts=datetime(2026, 1, 1))
    with pytest.raises(ValidationError):
        TransactionLedger(db_session).list_transactions(filters, limit=10, offset=0)


def test_close_hands_expected_and_counted_to_reconciliation(db_session, monkeypatch):
    seen = []
    original = ReconciliationService.reconcile

    def spy(expected, counted):
        seen.append((expected, counted))
        return original(expected, counted)

    monkeypatch.setattr(ReconciliationService, "reconcile", staticmethod(spy))
    manager = SessionLifecycleManager(db_session)
    session = manager.start_session(3, 3, Decimal("40"))
    outcome = manager.close_session(session.id, "39.995")

    assert seen == [(Decimal("40.00"), Decimal("40.00"))]
    assert outcome.reconciliation.status is VarianceStatus.EVEN


def test_lifecycle_entries_go_through_the_ledger_append(db_session):
    session = SessionLifecycleManager(db_session).start_session(4, 4, Decimal("0.005"))
    rows = TransactionLedger(db_session).list_by_session(session.id)
    assert [(row.transaction_type, row.amount) for row in rows] == [("OPENING_BALANCE", Decimal("0.01"))]
