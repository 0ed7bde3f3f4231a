from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from ..http_client import HttpClient


@dataclass
class BaseClient:
    http: HttpClient
    default_headers: dict[str, str] = field(default_factory=dict)

    def _request(self, method: str, path: str, **kwargs):
        headers = kwargs.pop("headers", None) or {}
        merged = {**self.default_headers, **headers}
        return self.http.request(method, path, headers=merged, **kwargs)

    def _request_model(self, model_type: type[BaseModel], method: str, path: str, **kwargs):
        data = self._request(method, path, **kwargs)
        if not isinstance(data, dict):
            raise ValueError(f"Expected {model_type.__name__} response to be a JSON object")
        return model_type.model_validate(data)


def _params(**values: Any) -> dict[str, Any] | None:
    params = {key: value for key, value in values.items() if value is not None}
    return params or None
