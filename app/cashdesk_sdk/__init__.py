from .clients.pos_cash_client import PosCashClient
from .config import ClientConfig, ConfigError, load_config
from .drawer_monitor import CashDrawerMonitor, DrawerSnapshot
from .exceptions import (
    ApiError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    RequestCancelledError,
    TransientError,
    ValidationError,
)
from .http_client import HttpClient
from .idempotency import ActionKeys
from .pos_cash_validation import ClientValidationError
from .request_cache import RequestCoalescer
from .staleness import StaleValue
from .sync_poller import SyncPoller

__all__ = [
    "ActionKeys",
    "ApiError",
    "CashDrawerMonitor",
    "ClientConfig",
    "ClientValidationError",
    "ConfigError",
    "ConflictError",
    "DrawerSnapshot",
    "HttpClient",
    "InvalidStateError",
    "NotFoundError",
    "PosCashClient",
    "RequestCancelledError",
    "RequestCoalescer",
    "StaleValue",
    "SyncPoller",
    "TransientError",
    "ValidationError",
    "load_config",
]
