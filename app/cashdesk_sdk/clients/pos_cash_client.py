from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping

from ..idempotency import ActionKeys
from ..models_pos_cash import (
    CashBalanceResponse,
    CashSessionActionRequest,
    CashSessionCloseResponse,
    CashSessionCurrentResponse,
    CashSessionListResponse,
    CashSessionSummary,
    CashTransaction,
    CashTransactionCreateRequest,
    CashTransactionListResponse,
    ReconciliationResponse,
)
from ..pos_cash_validation import validate_close_session, validate_open_session, validate_transaction
from .base import BaseClient, _params

CASH_API_PREFIX = "/cashdesk/cash"


def _iso(value: datetime | str | None) -> str | None:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass
class PosCashClient(BaseClient):
    def start_session(
        self,
        *,
        cashier_id: int,
        outlet_id: int,
        opening_balance: Decimal | int | str,
        transaction_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> CashSessionSummary:
        opening = Decimal(str(opening_balance))
        validate_open_session(cashier_id=cashier_id, outlet_id=outlet_id, opening_balance=opening)
        keys = ActionKeys.resolve(transaction_id, idempotency_key)
        request = CashSessionActionRequest(
            transaction_id=keys.transaction_id,
            action="OPEN",
            cashier_id=cashier_id,
            outlet_id=outlet_id,
            opening_balance=opening,
        )
        return self._request_model(
            CashSessionSummary,
            "POST",
            f"{CASH_API_PREFIX}/sessions/actions",
            json_body=request.model_dump(mode="json", exclude_none=True),
            headers=keys.headers(),
            operation="start_session",
        )

    def close_session(
        self,
        session_id: int,
        closing_balance: Decimal | int | str,
        *,
        notes: str | None = None,
        transaction_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> CashSessionCloseResponse:
        counted = Decimal(str(closing_balance))
        validate_close_session(session_id=session_id, closing_balance=counted)
        keys = ActionKeys.resolve(transaction_id, idempotency_key)
        request = CashSessionActionRequest(
            transaction_id=keys.transaction_id,
            action="CLOSE",
            session_id=session_id,
            closing_balance=counted,
            notes=notes,
        )
        return self._request_model(
            CashSessionCloseResponse,
            "POST",
            f"{CASH_API_PREFIX}/sessions/actions",
            json_body=request.model_dump(mode="json", exclude_none=True),
            headers=keys.headers(),
            operation="close_session",
        )

    def get_active_session(self, *, cashier_id: int, outlet_id: int, **kwargs) -> CashSessionSummary | None:
        response = self._request_model(
            CashSessionCurrentResponse,
            "GET",
            f"{CASH_API_PREFIX}/sessions/active",
            params=_params(cashier_id=cashier_id, outlet_id=outlet_id),
            operation="get_active_session",
            **kwargs,
        )
        return response.session

    def get_session(self, session_id: int, **kwargs) -> CashSessionSummary:
        return self._request_model(
            CashSessionSummary,
            "GET",
            f"{CASH_API_PREFIX}/sessions/{session_id}",
            operation="get_session",
            **kwargs,
        )

    def list_sessions(
        self,
        *,
        status: str | None = None,
        cashier_id: int | None = None,
        outlet_id: int | None = None,
        from_ts: datetime | str | None = None,
        to_ts: datetime | str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> CashSessionListResponse:
        return self._request_model(
            CashSessionListResponse,
            "GET",
            f"{CASH_API_PREFIX}/sessions",
            params=_params(
                status=status,
                cashier_id=cashier_id,
                outlet_id=outlet_id,
                from_ts=_iso(from_ts),
                to_ts=_iso(to_ts),
                limit=limit,
                offset=offset,
            ),
            operation="list_sessions",
        )

    def record_transaction(
        self,
        payload: CashTransactionCreateRequest | Mapping[str, Any],
        *,
        transaction_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> CashTransaction:
        request = _coerce_model(payload, CashTransactionCreateRequest)
        validate_transaction(
            transaction_type=request.transaction_type,
            amount=request.amount,
            description=request.description,
            amount_in=request.amount_in,
            amount_out=request.amount_out,
        )
        keys = ActionKeys.resolve(transaction_id or request.transaction_id, idempotency_key)
        request = request.model_copy(update={"transaction_id": keys.transaction_id})
        return self._request_model(
            CashTransaction,
            "POST",
            f"{CASH_API_PREFIX}/transactions",
            json_body=request.model_dump(mode="json", exclude_none=True),
            headers=keys.headers(),
            operation="record_transaction",
        )

    def cash_in(self, session_id: int, amount: Decimal | int | str, description: str, **kwargs) -> CashTransaction:
        """Money added to the drawer by hand (float top-up, change delivery)."""
        return self.record_transaction(
            {"session_id": session_id, "transaction_type": "CASH_IN", "amount": amount, "description": description},
            **kwargs,
        )

    def cash_out(self, session_id: int, amount: Decimal | int | str, description: str, **kwargs) -> CashTransaction:
        """Money taken out of the drawer by hand (bank drop, petty cash)."""
        return self.record_transaction(
            {"session_id": session_id, "transaction_type": "CASH_OUT", "amount": amount, "description": description},
            **kwargs,
        )

    def list_session_transactions(self, session_id: int, **kwargs) -> list[CashTransaction]:
        response = self._request_model(
            CashTransactionListResponse,
            "GET",
            f"{CASH_API_PREFIX}/sessions/{session_id}/transactions",
            operation="list_session_transactions",
            **kwargs,
        )
        return response.rows

    def list_transactions(
        self,
        *,
        outlet_id: int | None = None,
        cashier_id: int | None = None,
        session_id: int | None = None,
        transaction_type: str | None = None,
        from_ts: datetime | str | None = None,
        to_ts: datetime | str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> CashTransactionListResponse:
        return self._request_model(
            CashTransactionListResponse,
            "GET",
            f"{CASH_API_PREFIX}/transactions",
            params=_params(
                outlet_id=outlet_id,
                cashier_id=cashier_id,
                session_id=session_id,
                transaction_type=transaction_type,
                from_ts=_iso(from_ts),
                to_ts=_iso(to_ts),
                limit=limit,
                offset=offset,
            ),
            operation="list_transactions",
        )

    def get_balance(
        self,
        session_id: int,
        *,
        from_ts: datetime | str | None = None,
        to_ts: datetime | str | None = None,
        **kwargs,
    ) -> CashBalanceResponse:
        return self._request_model(
            CashBalanceResponse,
            "GET",
            f"{CASH_API_PREFIX}/sessions/{session_id}/balance",
            params=_params(from_ts=_iso(from_ts), to_ts=_iso(to_ts)),
            operation="get_balance",
            **kwargs,
        )

    def preview_reconciliation(self, session_id: int, counted: Decimal | int | str) -> ReconciliationResponse:
        return self._request_model(
            ReconciliationResponse,
            "GET",
            f"{CASH_API_PREFIX}/sessions/{session_id}/reconciliation",
            params={"counted": str(counted)},
            operation="preview_reconciliation",
        )


def _coerce_model(value: Any, model_type: type[Any]):
    if isinstance(value, model_type):
        return value
    return model_type.model_validate(value)
