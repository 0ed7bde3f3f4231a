from __future__ import annotations

import json
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import RequestCancelledError, TransientError

TRACE_HEADER = "X-Trace-ID"


@dataclass
class LastOperation:
    operation: str
    duration_ms: int
    result: str
    trace_id: str | None


@dataclass
class HttpClient:
    """Blocking JSON transport for the cash API.

    Every call is a single attempt: mutations are never resent automatically
    and reads are simply fetched again on the next poll. Callers that run on
    worker threads pass a ``context_key`` so a response that lands after the
    UI moved on (``switch_context``) is dropped instead of applied.
    """

    config: ClientConfig
    session: requests.Session | None = None
    trace_id: str | None = None
    last_operation: LastOperation | None = None
    _context_versions: dict[str, int] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=self.config.max_connections,
                pool_maxsize=self.config.max_connections,
            )
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)

    def _build_url(self, path: str) -> str:
        base = self.config.api_base_url.rstrip("/") + "/"
        return urljoin(base, path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        operation: str = "unknown",
        context_key: str | None = None,
        context_version: int | None = None,
    ) -> dict[str, Any] | list[Any] | None:
        request_headers = {"Accept": "application/json", TRACE_HEADER: self.trace_id or str(uuid.uuid4())}
        if headers:
            request_headers.update(headers)
        trace_id = request_headers[TRACE_HEADER]

        if context_key and context_version is None:
            context_version = self.get_context_version(context_key)
        if context_key and not self._context_is_current(context_key, context_version):
            raise RequestCancelledError(
                code="REQUEST_CANCELLED",
                message="Request cancelled before dispatch",
                details={"type": "context_switched", "context": context_key},
                trace_id=trace_id,
                status_code=0,
            )

        started = time.monotonic()
        try:
            response = self.session.request(
                method=method.upper(),
                url=self._build_url(path),
                headers=request_headers,
                json=json_body,
                params=params,
                timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                verify=self.config.verify_ssl,
            )
        except requests.RequestException as exc:
            self._record_operation(operation, started, "error", trace_id)
            raise TransientError(
                code="TRANSPORT_ERROR",
                message=str(exc),
                details={"type": type(exc).__name__},
                trace_id=trace_id,
                status_code=0,
            ) from exc

        trace_id = response.headers.get(TRACE_HEADER) or trace_id
        if context_key and not self._context_is_current(context_key, context_version):
            self._record_operation(operation, started, "cancelled", trace_id)
            raise RequestCancelledError(
                code="REQUEST_CANCELLED",
                message="Request cancelled due to context switch",
                details={"type": "context_switched", "context": context_key},
                trace_id=trace_id,
                status_code=0,
            )

        if response.ok:
            self._record_operation(operation, started, "success", trace_id)
            if not response.content:
                return None
            return response.json()

        try:
            payload = response.json()
        except (json.JSONDecodeError, ValueError):
            payload = {"message": response.text}
        self._record_operation(operation, started, "error", trace_id)
        raise map_error(response.status_code, payload if isinstance(payload, dict) else None, trace_id)

    def switch_context(self, context_key: str) -> int:
        with self._lock:
            new_version = self._context_versions.get(context_key, 0) + 1
            self._context_versions[context_key] = new_version
            return new_version

    def get_context_version(self, context_key: str) -> int:
        with self._lock:
            return self._context_versions.get(context_key, 0)

    def _context_is_current(self, context_key: str, context_version: int | None) -> bool:
        if context_version is None:
            return True
        return self.get_context_version(context_key) == context_version

    def _record_operation(self, operation: str, started: float, result: str, trace_id: str | None) -> None:
        self.last_operation = LastOperation(
            operation=operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
            trace_id=trace_id,
        )
