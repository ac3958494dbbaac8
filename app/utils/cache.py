from __future__ import annotations

import time
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class TTLCache(Generic[T]):
    """
    Single-slot in-memory cache with a freshness window.

    Writes replace the value and timestamp wholesale; concurrent writers are
    not synchronized (last write wins).
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.time) -> None:
        if ttl < 0:
            raise ValueError("ttl must be >= 0")
        self.ttl = float(ttl)
        self._clock = clock
        self._value: Optional[T] = None
        self._captured_at: Optional[float] = None

    @property
    def populated(self) -> bool:
        return self._captured_at is not None

    @property
    def captured_at(self) -> Optional[float]:
        return self._captured_at

    def age(self) -> Optional[float]:
        if self._captured_at is None:
            return None
        return self._clock() - self._captured_at

    def is_fresh(self) -> bool:
        age = self.age()
        return age is not None and age < self.ttl

    def read(self) -> Optional[T]:
        """
        Return the stored value regardless of age.
        """
        return self._value

    def write(self, value: T) -> None:
        self._value = value
        self._captured_at = self._clock()

    def get(self) -> Optional[T]:
        """
        Return cached value if it exists and is not expired.
        """
        if not self.is_fresh():
            return None
        return self._value

    def clear(self) -> None:
        self._value = None
        self._captured_at = None

    def info(self) -> dict[str, Any]:
        age = self.age()
        return {
            "populated": self.populated,
            "fresh": self.is_fresh(),
            "ttl_s": self.ttl,
            "age_s": round(age, 3) if age is not None else None,
        }
