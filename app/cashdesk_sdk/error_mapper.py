from __future__ import annotations

from typing import Mapping

from .exceptions import (
    ApiError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    TransientError,
    ValidationError,
)

_TRANSIENT_CODES = {"DB_UNAVAILABLE", "LOCK_TIMEOUT"}


def map_error(status_code: int, payload: Mapping[str, object] | None, trace_id: str | None) -> ApiError:
    payload = payload or {}
    code = str(payload.get("code") or "HTTP_ERROR")
    message = str(payload.get("message") or "Request failed")
    details = payload.get("details")
    payload_trace_id = payload.get("trace_id")
    resolved_trace_id = str(payload_trace_id) if payload_trace_id is not None else trace_id
    mapped: type[ApiError]
    if code in _TRANSIENT_CODES or status_code >= 500:
        mapped = TransientError
    elif status_code == 404:
        mapped = NotFoundError
    elif status_code in {400, 422}:
        mapped = ValidationError
    elif status_code == 409 and code == "INVALID_SESSION_STATE":
        mapped = InvalidStateError
    elif status_code == 409:
        mapped = ConflictError
    else:
        mapped = ApiError
    return mapped(
        code=code,
        message=message,
        details=details,
        trace_id=resolved_trace_id,
        status_code=status_code,
        raw_payload=dict(payload),
    )
