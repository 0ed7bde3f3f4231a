from __future__ import annotations

import json
from decimal import Decimal

import pytest
import requests
import responses

from app.cashdesk_sdk.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    RequestCancelledError,
    TransientError,
    ValidationError,
)
from app.cashdesk_sdk.pos_cash_validation import ClientValidationError
from tests.sdk.sdk_helpers import CASH_URL, make_client, session_payload, transaction_payload


@responses.activate
def test_start_session_sends_idempotency_header() -> None:
    responses.add(responses.POST, f"{CASH_URL}/sessions/actions", json=session_payload(), status=200)
    client = make_client()
    session = client.start_session(cashier_id=5, outlet_id=9, opening_balance="200", idempotency_key="idem-1")

    assert session.id == 1
    assert session.opening_balance == Decimal("200.00")
    request = responses.calls[0].request
    assert request.headers["Idempotency-Key"] == "idem-1"
    assert request.headers["X-Trace-ID"]
    body = json.loads(request.body)
    assert body["action"] == "OPEN"
    assert body["opening_balance"] == "200"
    assert body["transaction_id"]


@responses.activate
def test_close_session_returns_reconciliation() -> None:
    closed = session_payload(status="CLOSED")
    closed.update({"closing_balance": "290.00", "expected_balance": "295.00", "variance": "-5.00"})
    responses.add(
        responses.POST,
        f"{CASH_URL}/sessions/actions",
        json={
            "session": closed,
            "reconciliation": {"session_id": 1, "expected": "295.00", "counted": "290.00", "variance": "-5.00", "status": "SHORT"},
        },
        status=200,
    )
    outcome = make_client().close_session(1, "290", notes="short")
    assert outcome.reconciliation.variance == Decimal("-5.00")
    assert outcome.session.status == "CLOSED"
    body = json.loads(responses.calls[0].request.body)
    assert body == {
        "transaction_id": body["transaction_id"],
        "action": "CLOSE",
        "session_id": 1,
        "closing_balance": "290",
        "notes": "short",
    }


@responses.activate
def test_close_twice_maps_to_invalid_state() -> None:
    responses.add(
        responses.POST,
        f"{CASH_URL}/sessions/actions",
        json={"code": "INVALID_SESSION_STATE", "message": "closed", "details": None, "trace_id": "trace-409"},
        status=409,
    )
    with pytest.raises(InvalidStateError) as excinfo:
        make_client().close_session(1, "10")
    assert excinfo.value.trace_id == "trace-409"


@responses.activate
def test_double_open_maps_to_conflict() -> None:
    responses.add(
        responses.POST,
        f"{CASH_URL}/sessions/actions",
        json={"code": "SESSION_ALREADY_OPEN", "message": "open", "details": None, "trace_id": "t"},
        status=409,
    )
    with pytest.raises(ConflictError) as excinfo:
        make_client().start_session(cashier_id=1, outlet_id=1, opening_balance="0")
    assert not isinstance(excinfo.value, InvalidStateError)


@responses.activate
def test_cash_out_shortcut_records_manual_movement() -> None:
    responses.add(
        responses.POST,
        f"{CASH_URL}/transactions",
        json=transaction_payload(2, "CASH_OUT", "40.00", description="Bank drop", net_amount="-40.00"),
        status=201,
    )
    created = make_client().cash_out(1, "40", "Bank drop")
    assert created.net_amount == Decimal("-40.00")
    body = json.loads(responses.calls[0].request.body)
    assert body["transaction_type"] == "CASH_OUT"
    assert body["description"] == "Bank drop"
    assert responses.calls[0].request.headers["Idempotency-Key"]


@pytest.mark.parametrize(
    ("payload", "field"),
    [
        ({"session_id": 1, "transaction_type": "CASH_IN", "amount": "0", "description": "x"}, "amount"),
        ({"session_id": 1, "transaction_type": "EXPENSE", "amount": "5", "description": " "}, "description"),
        ({"session_id": 1, "transaction_type": "SALE", "amount": "-1"}, "amount"),
        ({"session_id": 1, "transaction_type": "CLOSING_BALANCE", "amount": "1"}, "transaction_type"),
    ],
)
def test_client_validation_happens_before_any_request(payload, field) -> None:
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        with pytest.raises(ClientValidationError) as excinfo:
            make_client().record_transaction(payload)
        assert len(rsps.calls) == 0
    assert excinfo.value.issues[0].field == field


@responses.activate
def test_read_endpoints() -> None:
    responses.add(responses.GET, f"{CASH_URL}/sessions/active", json={"session": None}, status=200)
    responses.add(
        responses.GET,
        f"{CASH_URL}/sessions/1/balance",
        json={
            "session_id": 1,
            "status": "OPEN",
            "opening_balance": "200.00",
            "current_balance": "295.00",
            "aggregates": {"cash_in": "125.00", "cash_out": "30.00", "net_cash_flow": "95.00", "todays_cash_sale": "75.00"},
            "as_of": "2026-03-02T10:00:00",
        },
        status=200,
    )
    responses.add(
        responses.GET,
        f"{CASH_URL}/sessions/1/reconciliation",
        json={"session_id": 1, "expected": "295.00", "counted": "295.00", "variance": "0.00", "status": "EVEN"},
        status=200,
    )
    client = make_client()
    assert client.get_active_session(cashier_id=5, outlet_id=9) is None
    assert client.get_balance(1).current_balance == Decimal("295.00")
    assert client.preview_reconciliation(1, Decimal("295")).status == "EVEN"
    assert "cashier_id=5" in responses.calls[0].request.url
    assert "counted=295" in responses.calls[2].request.url


@responses.activate
def test_list_transactions_passes_filters() -> None:
    responses.add(responses.GET, f"{CASH_URL}/transactions", json={"rows": [], "total": 0}, status=200)
    make_client().list_transactions(outlet_id=9, transaction_type="SALE", limit=10)
    url = responses.calls[0].request.url
    assert "outlet_id=9" in url
    assert "transaction_type=SALE" in url
    assert "limit=10" in url
    assert "cashier_id" not in url


@responses.activate
def test_server_and_transport_failures_are_transient() -> None:
    responses.add(
        responses.GET,
        f"{CASH_URL}/sessions/1",
        json={"code": "DB_UNAVAILABLE", "message": "Database unavailable", "details": None, "trace_id": "t"},
        status=503,
    )
    responses.add(responses.GET, f"{CASH_URL}/sessions/2", body=requests.ConnectionError("down"))
    client = make_client()
    with pytest.raises(TransientError):
        client.get_session(1)
    with pytest.raises(TransientError) as excinfo:
        client.get_session(2)
    assert excinfo.value.code == "TRANSPORT_ERROR"
    assert len(responses.calls) == 2


@responses.activate
def test_not_found_and_validation_errors() -> None:
    responses.add(
        responses.GET,
        f"{CASH_URL}/sessions/9",
        json={"code": "NOT_FOUND", "message": "Resource not found", "details": {"session_id": 9}, "trace_id": "t"},
        status=404,
    )
    responses.add(
        responses.GET,
        f"{CASH_URL}/sessions/1/reconciliation",
        json={"code": "VALIDATION_ERROR", "message": "Validation error", "details": None, "trace_id": "t"},
        status=422,
    )
    client = make_client()
    with pytest.raises(NotFoundError):
        client.get_session(9)
    with pytest.raises(ValidationError):
        client.preview_reconciliation(1, "-1")


@responses.activate
def test_switched_context_drops_late_response() -> None:
    client = make_client()
    version = client.http.get_context_version("drawer")

    def _switch_while_in_flight(request):
        client.http.switch_context("drawer")
        return (200, {}, json.dumps(session_payload()))

    responses.add_callback(responses.GET, f"{CASH_URL}/sessions/1", callback=_switch_while_in_flight)
    with pytest.raises(RequestCancelledError):
        client.get_session(1, context_key="drawer", context_version=version)

    with pytest.raises(RequestCancelledError):
        client.get_session(1, context_key="drawer", context_version=version)
    assert len(responses.calls) == 1
