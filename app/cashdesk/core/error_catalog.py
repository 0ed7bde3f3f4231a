from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    NOT_FOUND = ErrorDefinition(
        "NOT_FOUND",
        "Resource not found",
        status.HTTP_404_NOT_FOUND,
    )
    SESSION_ALREADY_OPEN = ErrorDefinition(
        "SESSION_ALREADY_OPEN",
        "An open cashier session already exists for this cashier and outlet",
        status.HTTP_409_CONFLICT,
    )
    INVALID_SESSION_STATE = ErrorDefinition(
        "INVALID_SESSION_STATE",
        "Cashier session is not in a valid state for this action",
        status.HTTP_409_CONFLICT,
    )
    DB_UNAVAILABLE = ErrorDefinition(
        "DB_UNAVAILABLE",
        "Database unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    LOCK_TIMEOUT = ErrorDefinition(
        "LOCK_TIMEOUT",
        "Lock wait timeout",
        status.HTTP_409_CONFLICT,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    IDEMPOTENCY_KEY_REQUIRED = ErrorDefinition(
        "IDEMPOTENCY_KEY_REQUIRED",
        "Idempotency key required",
        status.HTTP_400_BAD_REQUEST,
    )
    IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD = ErrorDefinition(
        "IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD",
        "Idempotency key reused with different payload",
        status.HTTP_409_CONFLICT,
    )
    IDEMPOTENCY_REQUEST_IN_PROGRESS = ErrorDefinition(
        "IDEMPOTENCY_REQUEST_IN_PROGRESS",
        "Idempotency request already in progress",
        status.HTTP_409_CONFLICT,
    )
    IDEMPOTENCY_REPLAY = ErrorDefinition(
        "IDEMPOTENCY_REPLAY",
        "Idempotent replay",
        status.HTTP_200_OK,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)


def _message_details(message: str, extra: dict | None) -> dict:
    details = {"message": message}
    if extra:
        details.update(extra)
    return details


class ValidationError(AppError):
    """Malformed input; never reaches the ledger."""

    def __init__(self, message: str, *, field: str | None = None, **extra):
        if field:
            extra["field"] = field
        super().__init__(ErrorCatalog.VALIDATION_ERROR, details=_message_details(message, extra))


class NotFoundError(AppError):
    def __init__(self, message: str, **extra):
        super().__init__(ErrorCatalog.NOT_FOUND, details=_message_details(message, extra))


class ConflictError(AppError):
    def __init__(self, message: str, **extra):
        super().__init__(ErrorCatalog.SESSION_ALREADY_OPEN, details=_message_details(message, extra))


class InvalidStateError(AppError):
    def __init__(self, message: str, **extra):
        super().__init__(ErrorCatalog.INVALID_SESSION_STATE, details=_message_details(message, extra))


class TransientError(AppError):
    """Storage or lock failure; the caller may retry the same action manually."""

    def __init__(self, error: ErrorDefinition = ErrorCatalog.DB_UNAVAILABLE, details: object | None = None):
        super().__init__(error, details=details)
