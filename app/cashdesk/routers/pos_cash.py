from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.cashdesk.core.config import settings
from app.cashdesk.core.error_catalog import ErrorCatalog, ValidationError
from app.cashdesk.db.models import CashierSession, CashTransaction
from app.cashdesk.db.session import get_db
from app.cashdesk.domain.balance import fold_balance, net_amount
from app.cashdesk.domain.reconciliation import ReconciliationResult
from app.cashdesk.schemas.pos_cash import (
    CashAggregatesResponse,
    CashBalanceResponse,
    CashSessionActionRequest,
    CashSessionCloseResponse,
    CashSessionCurrentResponse,
    CashSessionListResponse,
    CashSessionSummary,
    CashTransactionCreateRequest,
    CashTransactionListResponse,
    CashTransactionResponse,
    ReconciliationResponse,
)
from app.cashdesk.services.audit import AuditEventPayload, AuditService
from app.cashdesk.services.cash_balance import BalanceCalculator, ReportingWindow
from app.cashdesk.services.cash_ledger import TransactionFilters, TransactionLedger
from app.cashdesk.services.cash_reconciliation import ReconciliationService
from app.cashdesk.services.cash_sessions import SessionLifecycleManager
from app.cashdesk.services.idempotency import IdempotencyService, extract_idempotency_key


router = APIRouter()


def _require_transaction_id(transaction_id: str | None) -> None:
    if not transaction_id:
        raise ValidationError("transaction_id is required", field="transaction_id")


def _require(value, field: str):
    if value is None:
        raise ValidationError(f"{field} is required", field=field)
    return value


def _page(limit: int | None, offset: int) -> tuple[int, int]:
    limit = settings.CASH_LIST_DEFAULT_PAGE_SIZE if limit is None else limit
    return max(1, min(limit, settings.CASH_LIST_MAX_PAGE_SIZE)), max(0, offset)


def _session_summary(session: CashierSession) -> CashSessionSummary:
    return CashSessionSummary(
        id=session.id,
        cashier_id=session.cashier_id,
        outlet_id=session.outlet_id,
        status=session.status,
        opening_balance=Decimal(str(session.opening_balance)),
        current_balance=fold_balance(session.opening_balance, session.transactions),
        closing_balance=Decimal(str(session.closing_balance)) if session.closing_balance is not None else None,
        expected_balance=Decimal(str(session.expected_balance)) if session.expected_balance is not None else None,
        variance=Decimal(str(session.variance)) if session.variance is not None else None,
        opening_time=session.opening_time,
        closing_time=session.closing_time,
        notes=session.notes,
        created_at=session.created_at,
        updated_at=session.updated_at,
    )


def _transaction_response(transaction: CashTransaction) -> CashTransactionResponse:
    return CashTransactionResponse(
        id=transaction.id,
        session_id=transaction.session_id,
        outlet_id=transaction.outlet_id,
        cashier_id=transaction.cashier_id,
        transaction_type=transaction.transaction_type,
        amount=Decimal(str(transaction.amount)),
        amount_in=Decimal(str(transaction.amount_in)) if transaction.amount_in is not None else None,
        amount_out=Decimal(str(transaction.amount_out)) if transaction.amount_out is not None else None,
        net_amount=net_amount(transaction),
        payment_method=transaction.payment_method,
        description=transaction.description,
        reference_number=transaction.reference_number,
        order_id=transaction.order_id,
        transaction_id=transaction.client_transaction_id,
        transaction_date=transaction.transaction_date,
        created_at=transaction.created_at,
    )


def _reconciliation_response(result: ReconciliationResult, session_id: int | None = None) -> ReconciliationResponse:
    return ReconciliationResponse(
        session_id=session_id,
        expected=result.expected,
        counted=result.counted,
        variance=result.variance,
        status=result.status.value,
    )


def _start_idempotent(request: Request, db, *, scope: str, payload):
    idempotency_key = extract_idempotency_key(request.headers, required=True)
    context, replay = IdempotencyService(db).start(
        scope=scope,
        endpoint=str(request.url.path),
        method=request.method,
        idempotency_key=idempotency_key,
        request_hash=IdempotencyService.fingerprint(payload.model_dump(mode="json")),
    )
    if replay:
        return JSONResponse(
            status_code=replay.status_code,
            content=replay.response_body,
            headers={"X-Idempotency-Result": ErrorCatalog.IDEMPOTENCY_REPLAY.code},
        )
    request.state.idempotency = context
    return None


def _audit(request: Request, db, session: CashierSession, *, action: str, entity_type: str, entity_id, before, after, metadata):
    AuditService(db).record_event(
        AuditEventPayload(
            outlet_id=session.outlet_id,
            cashier_id=session.cashier_id,
            trace_id=getattr(request.state, "trace_id", None),
            actor=f"cashier:{session.cashier_id}",
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            before=before,
            after=after,
            metadata=metadata,
            result="success",
        )
    )


@router.post("/sessions/actions")
def cash_session_action(request: Request, payload: CashSessionActionRequest, db=Depends(get_db)):
    _require_transaction_id(payload.transaction_id)
    if payload.action == "OPEN":
        cashier_id = _require(payload.cashier_id, "cashier_id")
        outlet_id = _require(payload.outlet_id, "outlet_id")
        opening_balance = _require(payload.opening_balance, "opening_balance")
        scope = f"outlet:{outlet_id}"
    else:
        session_id = _require(payload.session_id, "session_id")
        closing_balance = _require(payload.closing_balance, "closing_balance")
        scope = f"session:{session_id}"

    replay = _start_idempotent(request, db, scope=scope, payload=payload)
    if replay:
        return replay
    context = request.state.idempotency
    manager = SessionLifecycleManager(db)

    if payload.action == "OPEN":
        session = manager.start_session(cashier_id, outlet_id, opening_balance)
        response = _session_summary(session)
        body = response.model_dump(mode="json")
        context.record_success(status_code=200, response_body=body)
        _audit(
            request,
            db,
            session,
            action="cash_session.open",
            entity_type="cashier_session",
            entity_id=response.id,
            before=None,
            after={"status": response.status, "opening_balance": str(response.opening_balance)},
            metadata={"transaction_id": payload.transaction_id},
        )
        return body

    outcome = manager.close_session(session_id, closing_balance, payload.notes)
    response = CashSessionCloseResponse(
        session=_session_summary(outcome.session),
        reconciliation=_reconciliation_response(outcome.reconciliation, outcome.session.id),
    )
    body = response.model_dump(mode="json")
    context.record_success(status_code=200, response_body=body)
    _audit(
        request,
        db,
        outcome.session,
        action="cash_session.close",
        entity_type="cashier_session",
        entity_id=session_id,
        before={"status": "OPEN", "expected_balance": str(outcome.reconciliation.expected)},
        after={
            "status": response.session.status,
            "closing_balance": str(outcome.reconciliation.counted),
            "variance": str(outcome.reconciliation.variance),
        },
        metadata={"transaction_id": payload.transaction_id, "notes": payload.notes},
    )
    return body


@router.get("/sessions/active", response_model=CashSessionCurrentResponse)
def get_active_session(cashier_id: int, outlet_id: int, db=Depends(get_db)):
    session = SessionLifecycleManager(db).get_active_session(cashier_id, outlet_id)
    return CashSessionCurrentResponse(session=_session_summary(session) if session else None)


@router.get("/sessions", response_model=CashSessionListResponse)
def list_sessions(
    status: str | None = None,
    cashier_id: int | None = None,
    outlet_id: int | None = None,
    from_ts: datetime | None = None,
    to_ts: datetime | None = None,
    limit: int | None = None,
    offset: int = 0,
    db=Depends(get_db),
):
    limit, offset = _page(limit, offset)
    rows, total = SessionLifecycleManager(db).list_sessions(
        status=status,
        cashier_id=cashier_id,
        outlet_id=outlet_id,
        from_ts=from_ts,
        to_ts=to_ts,
        limit=limit,
        offset=offset,
    )
    return CashSessionListResponse(rows=[_session_summary(row) for row in rows], total=total)


@router.get("/sessions/{session_id}", response_model=CashSessionSummary)
def get_session(session_id: int, db=Depends(get_db)):
    return _session_summary(SessionLifecycleManager(db).get_session(session_id))


@router.get("/sessions/{session_id}/transactions", response_model=CashTransactionListResponse)
def list_session_transactions(session_id: int, db=Depends(get_db)):
    rows = TransactionLedger(db).list_by_session(session_id)
    return CashTransactionListResponse(rows=[_transaction_response(row) for row in rows], total=len(rows))


@router.get("/sessions/{session_id}/balance", response_model=CashBalanceResponse)
def get_session_balance(
    session_id: int,
    from_ts: datetime | None = None,
    to_ts: datetime | None = None,
    db=Depends(get_db),
):
    report = BalanceCalculator(db).drawer_report(session_id, ReportingWindow(from_ts=from_ts, to_ts=to_ts))
    aggregates = report.balance.aggregates
    return CashBalanceResponse(
        session_id=report.session.id,
        status=report.session.status,
        opening_balance=report.balance.opening_balance,
        current_balance=report.balance.current_balance,
        aggregates=CashAggregatesResponse(
            cash_in=aggregates.cash_in,
            cash_out=aggregates.cash_out,
            net_cash_flow=aggregates.net_cash_flow,
            todays_cash_sale=aggregates.todays_cash_sale,
        ),
        from_ts=from_ts,
        to_ts=to_ts,
        as_of=report.as_of,
    )


@router.get("/sessions/{session_id}/reconciliation", response_model=ReconciliationResponse)
def preview_reconciliation(session_id: int, counted: Decimal, db=Depends(get_db)):
    result = ReconciliationService(db).preview(session_id, counted)
    return _reconciliation_response(result, session_id)


@router.post("/transactions")
def record_transaction(request: Request, payload: CashTransactionCreateRequest, db=Depends(get_db)):
    _require_transaction_id(payload.transaction_id)
    replay = _start_idempotent(request, db, scope=f"session:{payload.session_id}", payload=payload)
    if replay:
        return replay
    context = request.state.idempotency

    transaction = TransactionLedger(db).record(
        payload.session_id,
        payload.transaction_type,
        payload.amount,
        description=payload.description,
        payment_method=payload.payment_method,
        reference_number=payload.reference_number,
        amount_in=payload.amount_in,
        amount_out=payload.amount_out,
        order_id=payload.order_id,
        client_transaction_id=payload.transaction_id,
        transaction_date=payload.transaction_date,
    )
    response = _transaction_response(transaction)
    body = response.model_dump(mode="json")
    context.record_success(status_code=201, response_body=body)
    _audit(
        request,
        db,
        transaction.session,
        action=f"cash_transaction.{response.transaction_type.lower()}",
        entity_type="cash_transaction",
        entity_id=response.id,
        before=None,
        after={
            "transaction_type": response.transaction_type,
            "amount": str(response.amount),
            "net_amount": str(response.net_amount),
            "payment_method": response.payment_method,
        },
        metadata={"transaction_id": payload.transaction_id, "reference_number": payload.reference_number},
    )
    return JSONResponse(status_code=201, content=body)


@router.get("/transactions", response_model=CashTransactionListResponse)
def list_transactions(
    outlet_id: int | None = None,
    cashier_id: int | None = None,
    session_id: int | None = None,
    transaction_type: str | None = None,
    from_ts: datetime | None = None,
    to_ts: datetime | None = None,
    limit: int | None = None,
    offset: int = 0,
    db=Depends(get_db),
):
    limit, offset = _page(limit, offset)
    rows, total = TransactionLedger(db).list_transactions(
        TransactionFilters(
            outlet_id=outlet_id,
            cashier_id=cashier_id,
            session_id=session_id,
            transaction_type=transaction_type,
            from_ts=from_ts,
            to_ts=to_ts,
        ),
        limit=limit,
        offset=offset,
    )
    return CashTransactionListResponse(rows=[_transaction_response(row) for row in rows], total=total)
