from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from app.cashdesk.domain.balance import CashAggregates, DrawerBalance, cash_related_entries, summarize
from app.cashdesk.domain.reconciliation import ReconciliationResult, reconcile

from .clients.pos_cash_client import PosCashClient
from .models_pos_cash import CashSessionSummary, CashTransaction
from .request_cache import RequestCoalescer
from .staleness import StaleValue
from .sync_poller import DEFAULT_POLL_INTERVAL_SECONDS, SyncPoller


@dataclass(frozen=True)
class DrawerSnapshot:
    session: CashSessionSummary
    transactions: list[CashTransaction]
    balance: DrawerBalance
    fetched_at: datetime

    @property
    def current_balance(self) -> Decimal:
        return self.balance.current_balance

    @property
    def aggregates(self) -> CashAggregates:
        return self.balance.aggregates

    @property
    def recent_movements(self) -> list[CashTransaction]:
        return cash_related_entries(self.transactions)

    def reconcile(self, counted: Decimal | int | str) -> ReconciliationResult:
        return reconcile(self.current_balance, counted)


class CashDrawerMonitor:
    """Keeps the cashier's drawer figure current from the session and its ledger.

    The balance is folded locally from the fetched ledger with the same rules
    the service uses, so the figure on screen and the figure at close agree.
    """

    def __init__(
        self,
        client: PosCashClient,
        session_id: int,
        *,
        coalescer: RequestCoalescer | None = None,
        window_start: datetime | None = None,
        window_end: datetime | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.client = client
        self.session_id = session_id
        self.coalescer = coalescer or RequestCoalescer()
        self.window_start = window_start
        self.window_end = window_end
        self._now = now or datetime.utcnow
        self.context_key = f"cash-drawer:{id(self)}"
        self._context_version = client.http.get_context_version(self.context_key)

    def fetch_snapshot(self) -> DrawerSnapshot:
        context = {"context_key": self.context_key, "context_version": self._context_version}
        session = self.coalescer.get_or_fetch(
            f"session:{self.session_id}",
            lambda: self.client.get_session(self.session_id, **context),
        )
        transactions = self.coalescer.get_or_fetch(
            f"transactions:{self.session_id}",
            lambda: self.client.list_session_transactions(self.session_id, **context),
        )
        balance = summarize(
            session.opening_balance,
            transactions,
            window_start=self.window_start,
            window_end=self.window_end,
        )
        return DrawerSnapshot(session=session, transactions=transactions, balance=balance, fetched_at=self._now())

    def switch_session(self, session_id: int) -> None:
        """Follow another session; responses still in flight for the old one are dropped."""
        self._context_version = self.client.http.switch_context(self.context_key)
        self.coalescer.clear()
        self.session_id = session_id

    def invalidate(self) -> None:
        """Call after recording a transaction so the next poll reads the new ledger."""
        self.coalescer.invalidate_prefix(f"transactions:{self.session_id}")
        self.coalescer.invalidate_prefix(f"session:{self.session_id}")

    def poller(
        self,
        *,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        stale_after_seconds: float | None = None,
        on_update: Callable[[StaleValue[DrawerSnapshot]], None] | None = None,
    ) -> SyncPoller[DrawerSnapshot]:
        return SyncPoller(
            self.fetch_snapshot,
            interval_seconds=interval_seconds,
            stale_after_seconds=stale_after_seconds,
            on_update=on_update,
            now=self._now,
            name=f"session-{self.session_id}",
        )
