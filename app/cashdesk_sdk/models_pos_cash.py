from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict


class CashSessionSummary(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    cashier_id: int
    outlet_id: int
    status: str
    opening_balance: Decimal
    current_balance: Decimal | None = None
    closing_balance: Decimal | None = None
    expected_balance: Decimal | None = None
    variance: Decimal | None = None
    opening_time: datetime | None = None
    closing_time: datetime | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CashSessionCurrentResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    session: CashSessionSummary | None = None


class CashSessionListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    rows: list[CashSessionSummary]
    total: int


class CashSessionActionRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    transaction_id: str | None = None
    action: Literal["OPEN", "CLOSE"]
    cashier_id: int | None = None
    outlet_id: int | None = None
    opening_balance: Decimal | None = None
    session_id: int | None = None
    closing_balance: Decimal | None = None
    notes: str | None = None


class ReconciliationResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    session_id: int | None = None
    expected: Decimal
    counted: Decimal
    variance: Decimal
    status: str


class CashSessionCloseResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    session: CashSessionSummary
    reconciliation: ReconciliationResponse


class CashTransactionCreateRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    transaction_id: str | None = None
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


class CashTransaction(BaseModel):
    """Ledger row as served by the API; satisfies the balance fold's entry shape."""

    model_config = ConfigDict(extra="allow")

    id: int
    session_id: int
    outlet_id: int | None = None
    cashier_id: int | None = None
    transaction_type: str
    amount: Decimal
    amount_in: Decimal | None = None
    amount_out: Decimal | None = None
    net_amount: Decimal | None = None
    payment_method: str | None = None
    description: str | None = None
    reference_number: str | None = None
    order_id: int | None = None
    transaction_id: str | None = None
    transaction_date: datetime | None = None
    created_at: datetime | None = None


class CashTransactionListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    rows: list[CashTransaction]
    total: int


class CashAggregates(BaseModel):
    model_config = ConfigDict(extra="allow")

    cash_in: Decimal
    cash_out: Decimal
    net_cash_flow: Decimal
    todays_cash_sale: Decimal


class CashBalanceResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    session_id: int
    status: str
    opening_balance: Decimal
    current_balance: Decimal
    aggregates: CashAggregates
    from_ts: datetime | None = None
    to_ts: datetime | None = None
    as_of: datetime | None = None
