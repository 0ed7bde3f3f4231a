from datetime import datetime

from sqlalchemy import func, select

from app.cashdesk.db.models import CashTransaction


class CashTransactionRepository:
    def __init__(self, db):
        self.db = db

    def add(self, transaction: CashTransaction) -> CashTransaction:
        self.db.add(transaction)
        self.db.flush()
        return transaction

    def list_by_session(self, session_id: int) -> list[CashTransaction]:
        query = select(CashTransaction).where(CashTransaction.session_id == session_id).order_by(CashTransaction.id.asc())
        return list(self.db.execute(query).scalars().all())

    def list(
        self,
        *,
        outlet_id: int | None = None,
        cashier_id: int | None = None,
        session_id: int | None = None,
        transaction_type: str | None = None,
        from_ts: datetime | None = None,
        to_ts: datetime | None = None,
        limit: int,
        offset: int,
    ) -> tuple[list[CashTransaction], int]:
        filters = []
        if outlet_id is not None:
            filters.append(CashTransaction.outlet_id == outlet_id)
        if cashier_id is not None:
            filters.append(CashTransaction.cashier_id == cashier_id)
        if session_id is not None:
            filters.append(CashTransaction.session_id == session_id)
        if transaction_type:
            filters.append(CashTransaction.transaction_type == transaction_type)
        if from_ts:
            filters.append(CashTransaction.transaction_date >= from_ts)
        if to_ts:
            filters.append(CashTransaction.transaction_date <= to_ts)

        total = self.db.execute(select(func.count()).select_from(CashTransaction).where(*filters)).scalar_one()
        query = (
            select(CashTransaction)
            .where(*filters)
            .order_by(CashTransaction.transaction_date.desc(), CashTransaction.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self.db.execute(query).scalars().all()), total
