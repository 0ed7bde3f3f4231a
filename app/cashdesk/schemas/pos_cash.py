from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel


class CashSessionActionRequest(BaseModel):
    transaction_id: str | None
    action: Literal["OPEN", "CLOSE"]
    cashier_id: int | None = None
    outlet_id: int | None = None
    opening_balance: Decimal | None = None
    session_id: int | None = None
    closing_balance: Decimal | None = None
    notes: str | None = None


class CashSessionSummary(BaseModel):
    id: int
    cashier_id: int
    outlet_id: int
    status: str
    opening_balance: Decimal
    current_balance: Decimal
    closing_balance: Decimal | None
    expected_balance: Decimal | None
    variance: Decimal | None
    opening_time: datetime
    closing_time: datetime | None
    notes: str | None
    created_at: datetime
    updated_at: datetime


class CashSessionCurrentResponse(BaseModel):
    session: CashSessionSummary | None


class CashSessionListResponse(BaseModel):
    rows: list[CashSessionSummary]
    total: int


class ReconciliationResponse(BaseModel):
    session_id: int | None = None
    expected: Decimal
    counted: Decimal
    variance: Decimal
    status: Literal["EVEN", "SHORT", "OVER"]


class CashSessionCloseResponse(BaseModel):
    session: CashSessionSummary
    reconciliation: ReconciliationResponse


class CashTransactionCreateRequest(BaseModel):
    transaction_id: str | None
    session_id: int
    transaction_type: str
    amount: Decimal
    description: str | None = None
    payment_method: str | None = None
    reference_number: str | None = None
    amount_in: Decimal | None = None
    amount_out: Decimal | None = None
    order_id: int | None = None
    transaction_date: datetime | None = None


class CashTransactionResponse(BaseModel):
    id: int
    session_id: int
    outlet_id: int
    cashier_id: int
    transaction_type: str
    amount: Decimal
    amount_in: Decimal | None
    amount_out: Decimal | None
    net_amount: Decimal
    payment_method: str | None
    description: str
    reference_number: str | None
    order_id: int | None
    transaction_id: str | None
    transaction_date: datetime
    created_at: datetime


class CashTransactionListResponse(BaseModel):
    rows: list[CashTransactionResponse]
    total: int


class CashAggregatesResponse(BaseModel):
    cash_in: Decimal
    cash_out: Decimal
    net_cash_flow: Decimal
    todays_cash_sale: Decimal


class CashBalanceResponse(BaseModel):
    session_id: int
    status: str
    opening_balance: Decimal
    current_balance: Decimal
    aggregates: CashAggregatesResponse
    from_ts: datetime | None = None
    to_ts: datetime | None = None
    as_of: datetime
