from decimal import Decimal

from tests.cash_helpers import (
    SESSIONS_URL,
    balance,
    close_session,
    open_session,
    opened_session_id,
    record,
)


def test_open_session_records_opening_balance_once(client):
    response = open_session(client, cashier_id=7, outlet_id=3, opening_balance="100.00")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "OPEN"
    assert Decimal(payload["opening_balance"]) == Decimal("100")
    assert Decimal(payload["current_balance"]) == Decimal("100")
    assert payload["closing_balance"] is None

    transactions = client.get(f"{SESSIONS_URL}/{payload['id']}/transactions").json()
    assert [row["transaction_type"] for row in transactions["rows"]] == ["OPENING_BALANCE"]
    assert Decimal(balance(client, payload["id"])["current_balance"]) == Decimal("100")


def test_second_open_for_same_cashier_and_outlet_conflicts(client):
    first = open_session(client, cashier_id=1, outlet_id=1)
    assert first.status_code == 200

    second = open_session(client, cashier_id=1, outlet_id=1)
    assert second.status_code == 409
    assert second.json()["code"] == "SESSION_ALREADY_OPEN"
    assert second.json()["trace_id"]

    other_outlet = open_session(client, cashier_id=1, outlet_id=2)
    assert other_outlet.status_code == 200
    listing = client.get(SESSIONS_URL, params={"cashier_id": 1, "status": "OPEN"}).json()
    assert listing["total"] == 2


def test_negative_opening_balance_is_rejected(client):
    response = open_session(client, opening_balance="-1")
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert client.get(SESSIONS_URL).json()["total"] == 0


def test_open_requires_cashier_and_outlet(client):
    response = client.post(
        f"{SESSIONS_URL}/actions",
        headers={"Idempotency-Key": "missing-outlet"},
        json={"transaction_id": "txn-1", "action": "OPEN", "cashier_id": 1, "opening_balance": "10"},
    )
    assert response.status_code == 422
    assert response.json()["details"]["field"] == "outlet_id"


def test_session_actions_require_idempotency_key(client):
    response = client.post(
        f"{SESSIONS_URL}/actions",
        json={
            "transaction_id": "txn-no-key",
            "action": "OPEN",
            "cashier_id": 1,
            "outlet_id": 1,
            "opening_balance": "10",
        },
    )
    assert response.status_code == 400
    assert response.json()["code"] == "IDEMPOTENCY_KEY_REQUIRED"


def test_close_is_terminal(client):
    session_id = opened_session_id(client, opening_balance="50")
    first = close_session(client, session_id, "50")
    assert first.status_code == 200
    assert first.json()["session"]["status"] == "CLOSED"

    second = close_session(client, session_id, "999")
    assert second.status_code == 409
    assert second.json()["code"] == "INVALID_SESSION_STATE"

    session = client.get(f"{SESSIONS_URL}/{session_id}").json()
    assert session["status"] == "CLOSED"
    assert Decimal(session["closing_balance"]) == Decimal("50")


def test_close_unknown_session_is_not_found(client):
    response = close_session(client, 4242, "10")
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_negative_counted_closing_balance_is_rejected(client):
    session_id = opened_session_id(client)
    response = close_session(client, session_id, "-0.01")
    assert response.status_code == 422
    assert client.get(f"{SESSIONS_URL}/{session_id}").json()["status"] == "OPEN"


def test_end_to_end_shift_reports_variance(client):
    session_id = opened_session_id(client, cashier_id=5, outlet_id=9, opening_balance="200")
    assert record(client, session_id, "CASH_IN", "50", description="Float top-up").status_code == 201
    assert record(client, session_id, "EXPENSE", "30", description="Cleaning supplies").status_code == 201
    assert record(client, session_id, "SALE", "75", payment_method="cash", order_id=1001).status_code == 201

    assert Decimal(balance(client, session_id)["current_balance"]) == Decimal("295")

    response = close_session(client, session_id, "290", notes="Short five")
    assert response.status_code == 200
    payload = response.json()
    assert Decimal(payload["reconciliation"]["expected"]) == Decimal("295")
    assert Decimal(payload["reconciliation"]["counted"]) == Decimal("290")
    assert Decimal(payload["reconciliation"]["variance"]) == Decimal("-5")
    assert payload["reconciliation"]["status"] == "SHORT"
    assert payload["session"]["notes"] == "Short five"
    assert Decimal(payload["session"]["expected_balance"]) == Decimal("295")
    assert Decimal(payload["session"]["variance"]) == Decimal("-5")

    after_close = balance(client, session_id)
    assert after_close["status"] == "CLOSED"
    assert Decimal(after_close["current_balance"]) == Decimal("295")

    rows = client.get(f"{SESSIONS_URL}/{session_id}/transactions").json()["rows"]
    assert rows[-1]["transaction_type"] == "CLOSING_BALANCE"
    assert Decimal(rows[-1]["amount"]) == Decimal("290")


def test_active_session_lookup(client):
    assert client.get(f"{SESSIONS_URL}/active", params={"cashier_id": 3, "outlet_id": 4}).json() == {"session": None}

    session_id = opened_session_id(client, cashier_id=3, outlet_id=4)
    active = client.get(f"{SESSIONS_URL}/active", params={"cashier_id": 3, "outlet_id": 4}).json()
    assert active["session"]["id"] == session_id

    close_session(client, session_id, "100")
    assert client.get(f"{SESSIONS_URL}/active", params={"cashier_id": 3, "outlet_id": 4}).json() == {"session": None}

    reopened = open_session(client, cashier_id=3, outlet_id=4)
    assert reopened.status_code == 200
    assert reopened.json()["id"] != session_id


def test_list_sessions_filters_by_status(client):
    open_id = opened_session_id(client, cashier_id=1, outlet_id=1)
    closed_id = opened_session_id(client, cashier_id=2, outlet_id=1)
    close_session(client, closed_id, "100")

    closed = client.get(SESSIONS_URL, params={"status": "closed"}).json()
    assert [row["id"] for row in closed["rows"]] == [closed_id]
    opened = client.get(SESSIONS_URL, params={"status": "OPEN", "outlet_id": 1}).json()
    assert [row["id"] for row in opened["rows"]] == [open_id]

    invalid = client.get(SESSIONS_URL, params={"status": "PAUSED"})
    assert invalid.status_code == 422


def test_get_unknown_session_is_not_found(client):
    response = client.get(f"{SESSIONS_URL}/999")
    assert response.status_code == 404
    assert response.json()["details"]["session_id"] == 999


def test_opening_balance_is_rounded_half_up(client):
    response = open_session(client, opening_balance="100.005")
    assert response.status_code == 200
    assert Decimal(response.json()["opening_balance"]) == Decimal("100.01")
    assert Decimal(balance(client, response.json()["id"])["current_balance"]) == Decimal("100.01")


def test_oversized_balances_are_rejected(client):
    assert open_session(client, opening_balance="1e15").status_code == 422
    assert client.get(SESSIONS_URL).json()["total"] == 0

    session_id = opened_session_id(client)
    response = close_session(client, session_id, "1e15")
    assert response.status_code == 422
    assert response.json()["details"]["field"] == "closing_balance"
    assert client.get(f"{SESSIONS_URL}/{session_id}").json()["status"] == "OPEN"
