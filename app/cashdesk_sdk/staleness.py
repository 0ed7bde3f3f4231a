from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class StaleValue(Generic[T]):
    """A displayed value together with how much it can be trusted.

    ``value`` is the last successfully fetched value (``None`` until the first
    good fetch). ``error`` carries the failure of the latest attempt, if any.
    """

    value: T | None = None
    as_of: datetime | None = None
    is_stale: bool = True
    error: Exception | None = None

    @classmethod
    def fresh(cls, value: T, as_of: datetime) -> StaleValue[T]:
        return cls(value=value, as_of=as_of, is_stale=False, error=None)

    def failed(self, error: Exception) -> StaleValue[T]:
        return replace(self, is_stale=True, error=error)

    def age(self, now: datetime) -> timedelta | None:
        if self.as_of is None:
            return None
        return now - self.as_of

    def aged(self, now: datetime, stale_after_seconds: float) -> StaleValue[T]:
        """Same value, marked stale once it is older than ``stale_after_seconds``."""
        age = self.age(now)
        if self.is_stale or age is None or age.total_seconds() <= stale_after_seconds:
            return self
        return replace(self, is_stale=True)
