from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    trace_id: str | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"


class ValidationError(ApiError):
    """Rejected input; nothing was recorded."""


class NotFoundError(ApiError):
    pass


class ConflictError(ApiError):
    """An open session already exists, or an idempotency key clash."""


class InvalidStateError(ConflictError):
    """The session is not in a state that allows the action (e.g. already closed)."""


class TransientError(ApiError):
    """Network failure, 5xx or lock timeout. The same action may be retried by the user."""


class RequestCancelledError(TransientError):
    """The response belongs to a context that has since been switched away from."""
