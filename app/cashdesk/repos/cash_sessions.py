from datetime import datetime

from sqlalchemy import func, select

from app.cashdesk.db.models import CashierSession
from app.cashdesk.domain.cash_types import SessionStatus


class CashSessionRepository:
    def __init__(self, db):
        self.db = db

    def get(self, session_id: int, *, for_update: bool = False) -> CashierSession | None:
        query = select(CashierSession).where(CashierSession.id == session_id)
        if for_update:
            query = query.with_for_update()
        return self.db.execute(query).scalars().first()

    def get_open(self, *, cashier_id: int, outlet_id: int, for_update: bool = False) -> CashierSession | None:
        query = select(CashierSession).where(
            CashierSession.cashier_id == cashier_id,
            CashierSession.outlet_id == outlet_id,
            CashierSession.status == SessionStatus.OPEN.value,
        )
        if for_update:
            query = query.with_for_update()
        return self.db.execute(query).scalars().first()

    def add(self, session: CashierSession) -> CashierSession:
        self.db.add(session)
        self.db.flush()
        return session

    def list(
        self,
        *,
        status: str | None = None,
        cashier_id: int | None = None,
        outlet_id: int | None = None,
        from_ts: datetime | None = None,
        to_ts: datetime | None = None,
        limit: int,
        offset: int,
    ) -> tuple[list[CashierSession], int]:
        filters = []
        if status:
            filters.append(CashierSession.status == status)
        if cashier_id is not None:
            filters.append(CashierSession.cashier_id == cashier_id)
        if outlet_id is not None:
            filters.append(CashierSession.outlet_id == outlet_id)
        if from_ts:
            filters.append(CashierSession.opening_time >= from_ts)
        if to_ts:
            filters.append(CashierSession.opening_time <= to_ts)

        count_query = select(func.count()).select_from(CashierSession).where(*filters)
        total = self.db.execute(count_query).scalar_one()
        query = (
            select(CashierSession)
            .where(*filters)
            .order_by(CashierSession.opening_time.desc(), CashierSession.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self.db.execute(query).scalars().all()), total
