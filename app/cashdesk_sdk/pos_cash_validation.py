from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from app.cashdesk.domain.cash_types import LIFECYCLE_TYPES, MANUAL_MOVEMENT_TYPES, parse_transaction_type


@dataclass(frozen=True)
class CashValidationIssue:
    field: str
    reason: str


class ClientValidationError(ValueError):
    """Raised before any request is sent."""

    def __init__(self, issues: list[CashValidationIssue]) -> None:
        self.issues = issues
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.issues:
            return "Validation failed"
        return "; ".join(f"{issue.field}: {issue.reason}" for issue in self.issues)


def _raise_if_any(issues: list[CashValidationIssue]) -> None:
    if issues:
        raise ClientValidationError(issues)


def _require_non_negative(value: Decimal | None, field: str, issues: list[CashValidationIssue]) -> None:
    if value is None:
        issues.append(CashValidationIssue(field=field, reason="is required"))
    elif value < 0:
        issues.append(CashValidationIssue(field=field, reason="must be >= 0"))


def validate_open_session(*, cashier_id: int | None, outlet_id: int | None, opening_balance: Decimal | None) -> None:
    issues: list[CashValidationIssue] = []
    if cashier_id is None:
        issues.append(CashValidationIssue(field="cashier_id", reason="is required"))
    if outlet_id is None:
        issues.append(CashValidationIssue(field="outlet_id", reason="is required"))
    _require_non_negative(opening_balance, "opening_balance", issues)
    _raise_if_any(issues)


def validate_close_session(*, session_id: int | None, closing_balance: Decimal | None) -> None:
    issues: list[CashValidationIssue] = []
    if session_id is None:
        issues.append(CashValidationIssue(field="session_id", reason="is required"))
    _require_non_negative(closing_balance, "closing_balance", issues)
    _raise_if_any(issues)


def validate_transaction(
    *,
    transaction_type: str | None,
    amount: Decimal | None,
    description: str | None,
    amount_in: Decimal | None = None,
    amount_out: Decimal | None = None,
) -> None:
    issues: list[CashValidationIssue] = []
    kind = parse_transaction_type(transaction_type)
    if kind is None:
        issues.append(CashValidationIssue(field="transaction_type", reason="is not a known transaction type"))
    elif kind in LIFECYCLE_TYPES:
        issues.append(CashValidationIssue(field="transaction_type", reason="is written when a session opens or closes"))
    _require_non_negative(amount, "amount", issues)
    for field, value in (("amount_in", amount_in), ("amount_out", amount_out)):
        if value is not None and value < 0:
            issues.append(CashValidationIssue(field=field, reason="must be >= 0"))
    if kind in MANUAL_MOVEMENT_TYPES:
        if amount is not None and amount == 0:
            issues.append(CashValidationIssue(field="amount", reason="must be greater than 0"))
        if description is None or not description.strip():
            issues.append(CashValidationIssue(field="description", reason="is required"))
    _raise_if_any(issues)
