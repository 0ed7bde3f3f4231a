from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal

import pytest
import responses

from app.cashdesk_sdk.drawer_monitor import CashDrawerMonitor
from app.cashdesk_sdk.exceptions import RequestCancelledError
from app.cashdesk_sdk.request_cache import RequestCoalescer
from tests.sdk.sdk_helpers import CASH_URL, ledger_payload, make_client, session_payload

FIXED_NOW = datetime(2026, 3, 2, 12, 0, 0)


def _register_session(session_id: int = 1) -> None:
    responses.add(responses.GET, f"{CASH_URL}/sessions/{session_id}", json=session_payload(session_id), status=200)
    responses.add(
        responses.GET, f"{CASH_URL}/sessions/{session_id}/transactions", json=ledger_payload(), status=200
    )


@responses.activate
def test_snapshot_folds_the_ledger_locally() -> None:
    _register_session()
    monitor = CashDrawerMonitor(make_client(), 1, now=lambda: FIXED_NOW)

    snapshot = monitor.fetch_snapshot()

    assert snapshot.current_balance == Decimal("295.00")
    assert snapshot.aggregates.cash_in == Decimal("125.00")
    assert snapshot.aggregates.cash_out == Decimal("30.00")
    assert snapshot.aggregates.net_cash_flow == Decimal("95.00")
    assert snapshot.aggregates.todays_cash_sale == Decimal("75.00")
    assert snapshot.fetched_at == FIXED_NOW
    assert snapshot.recent_movements[0].id == 4


@responses.activate
def test_snapshot_reconciles_a_count() -> None:
    _register_session()
    snapshot = CashDrawerMonitor(make_client(), 1).fetch_snapshot()
    result = snapshot.reconcile("290")
    assert result.variance == Decimal("-5.00")
    assert result.status.value == "SHORT"


@responses.activate
def test_cash_sale_window_only_narrows_the_sale_figure() -> None:
    _register_session()
    monitor = CashDrawerMonitor(make_client(), 1, window_start=datetime(2026, 3, 2, 9, 5, 0))
    snapshot = monitor.fetch_snapshot()
    assert snapshot.aggregates.todays_cash_sale == Decimal("0")
    assert snapshot.current_balance == Decimal("295.00")


@responses.activate
def test_repeated_snapshots_are_coalesced_until_invalidated() -> None:
    _register_session()
    monitor = CashDrawerMonitor(make_client(), 1, coalescer=RequestCoalescer(ttl_seconds=60))

    monitor.fetch_snapshot()
    monitor.fetch_snapshot()
    assert len(responses.calls) == 2

    monitor.invalidate()
    monitor.fetch_snapshot()
    assert len(responses.calls) == 4


@responses.activate
def test_switching_session_drops_in_flight_results() -> None:
    client = make_client()
    monitor = CashDrawerMonitor(client, 1, coalescer=RequestCoalescer(ttl_seconds=60))

    def switch_mid_flight(request):
        monitor.switch_session(2)
        return (200, {}, json.dumps(session_payload(1)))

    responses.add_callback(responses.GET, f"{CASH_URL}/sessions/1", callback=switch_mid_flight)
    _register_session(2)

    poller = monitor.poller(interval_seconds=30)
    assert poller.refresh() is None
    assert poller.current.value is None

    with pytest.raises(RequestCancelledError):
        client.get_session(1, context_key=monitor.context_key, context_version=0)

    snapshot = monitor.fetch_snapshot()
    assert snapshot.session.id == 2


@responses.activate
def test_poller_keeps_last_snapshot_when_the_server_fails() -> None:
    _register_session()
    monitor = CashDrawerMonitor(make_client(), 1, coalescer=RequestCoalescer(ttl_seconds=0))
    poller = monitor.poller()
    first = poller.refresh()
    assert first.value.current_balance == Decimal("295.00")

    responses.replace(
        responses.GET,
        f"{CASH_URL}/sessions/1",
        json={"code": "DB_UNAVAILABLE", "message": "down", "details": None, "trace_id": "t"},
        status=503,
    )
    second = poller.refresh()
    assert second.is_stale is True
    assert second.value.current_balance == Decimal("295.00")
    assert second.error.code == "DB_UNAVAILABLE"
