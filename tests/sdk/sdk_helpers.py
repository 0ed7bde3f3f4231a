from __future__ import annotations

from app.cashdesk_sdk.clients.pos_cash_client import PosCashClient
from app.cashdesk_sdk.config import ClientConfig
from app.cashdesk_sdk.http_client import HttpClient

BASE_URL = "https://api.example.com"
CASH_URL = f"{BASE_URL}/cashdesk/cash"


def make_client() -> PosCashClient:
    return PosCashClient(http=HttpClient(ClientConfig(env_name="test", api_base_url=BASE_URL)))


def session_payload(session_id: int = 1, *, status: str = "OPEN", opening_balance: str = "200.00") -> dict:
    return {
        "id": session_id,
        "cashier_id": 5,
        "outlet_id": 9,
        "status": status,
        "opening_balance": opening_balance,
        "current_balance": opening_balance,
        "closing_balance": None,
        "expected_balance": None,
        "variance": None,
        "opening_time": "2026-03-02T08:00:00",
        "closing_time": None,
        "notes": None,
        "created_at": "2026-03-02T08:00:00",
        "updated_at": "2026-03-02T08:00:00",
    }


def transaction_payload(transaction_id: int, transaction_type: str, amount: str, **fields) -> dict:
    payload = {
        "id": transaction_id,
        "session_id": 1,
        "outlet_id": 9,
        "cashier_id": 5,
        "transaction_type": transaction_type,
        "amount": amount,
        "amount_in": None,
        "amount_out": None,
        "net_amount": amount,
        "payment_method": None,
        "description": "",
        "reference_number": None,
        "order_id": None,
        "transaction_id": f"txn-{transaction_id}",
        "transaction_date": f"2026-03-02T09:{transaction_id:02d}:00",
        "created_at": f"2026-03-02T09:{transaction_id:02d}:00",
    }
    payload.update(fields)
    return payload


def ledger_payload() -> dict:
    rows = [
        transaction_payload(1, "OPENING_BALANCE", "200.00"),
        transaction_payload(2, "CASH_IN", "50.00", description="Float"),
        transaction_payload(3, "EXPENSE", "30.00", description="Supplies", net_amount="-30.00"),
        transaction_payload(4, "SALE", "75.00", payment_method="cash"),
        transaction_payload(5, "SALE", "40.00", payment_method="card", net_amount="0"),
    ]
    return {"rows": rows, "total": len(rows)}
