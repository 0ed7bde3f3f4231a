from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable

from dotenv import load_dotenv


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    max_connections: int = 20
    verify_ssl: bool = True
    poll_interval_seconds: float = 30.0
    stale_after_seconds: float = 90.0

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()


def _require(values: dict[str, str | None], required: Iterable[str]) -> None:
    missing = [key for key in required if not values.get(key)]
    if missing:
        raise ConfigError(f"Missing required config values: {', '.join(missing)}")


def _coerce_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected a number, got {raw!r}") from exc


def _read_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected an integer, got {raw!r}") from exc


def _validate(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


def load_config(env_file: str | None = None) -> ClientConfig:
    """Load config from environment with optional .env override."""
    load_dotenv(env_file)

    env_name = (os.getenv("CASHDESK_ENV") or "dev").strip()
    env_key = env_name.upper()

    api_base_url = (
        (os.getenv(f"CASHDESK_API_BASE_URL_{env_key}") or "").strip()
        or (os.getenv("CASHDESK_API_BASE_URL") or "").strip()
    )

    timeout_seconds = _read_float("CASHDESK_TIMEOUT_SECONDS", "10")
    _validate(timeout_seconds > 0, f"Invalid CASHDESK_TIMEOUT_SECONDS: expected > 0, got {timeout_seconds}")

    connect_timeout_seconds = _read_float("CASHDESK_CONNECT_TIMEOUT_SECONDS", str(min(timeout_seconds, 5.0)))
    _validate(
        connect_timeout_seconds > 0,
        f"Invalid CASHDESK_CONNECT_TIMEOUT_SECONDS: expected > 0, got {connect_timeout_seconds}",
    )

    read_timeout_seconds = _read_float(
        "CASHDESK_READ_TIMEOUT_SECONDS",
        str(max(timeout_seconds, connect_timeout_seconds)),
    )
    _validate(
        read_timeout_seconds > 0,
        f"Invalid CASHDESK_READ_TIMEOUT_SECONDS: expected > 0, got {read_timeout_seconds}",
    )

    max_connections = _read_int("CASHDESK_MAX_CONNECTIONS", "20")
    _validate(max_connections >= 1, f"Invalid CASHDESK_MAX_CONNECTIONS: expected >= 1, got {max_connections}")

    poll_interval_seconds = _read_float("CASHDESK_POLL_INTERVAL_SECONDS", "30")
    _validate(
        poll_interval_seconds > 0,
        f"Invalid CASHDESK_POLL_INTERVAL_SECONDS: expected > 0, got {poll_interval_seconds}",
    )

    stale_after_seconds = _read_float("CASHDESK_STALE_AFTER_SECONDS", str(poll_interval_seconds * 3))
    _validate(
        stale_after_seconds >= poll_interval_seconds,
        (
            "Invalid CASHDESK_STALE_AFTER_SECONDS: "
            f"expected >= CASHDESK_POLL_INTERVAL_SECONDS, got {stale_after_seconds}"
        ),
    )

    verify_ssl = _coerce_bool(os.getenv("CASHDESK_VERIFY_SSL"), True)

    _require({"CASHDESK_API_BASE_URL": api_base_url}, ["CASHDESK_API_BASE_URL"])

    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url.rstrip("/"),
        connect_timeout_seconds=connect_timeout_seconds,
        read_timeout_seconds=read_timeout_seconds,
        max_connections=max_connections,
        verify_ssl=verify_ssl,
        poll_interval_seconds=poll_interval_seconds,
        stale_after_seconds=stale_after_seconds,
    )
