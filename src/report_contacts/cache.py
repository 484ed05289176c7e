"""Single-slot TTL cache."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")

Clock = Callable[[], float]


class CacheCell(Generic[T]):
    """Holds one value and the time it was stored.

    Expiry is checked lazily: a stale value stays in the slot until it is
    replaced or cleared, it just stops being reported as valid.
    """

    def __init__(self, ttl: float, *, clock: Clock = time.time) -> None:
        self._ttl = ttl
        self._clock = clock
        self._value: T | None = None
        self._fetched_at: float | None = None

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def value(self) -> T | None:
        return self._value

    @property
    def fetched_at(self) -> float | None:
        return self._fetched_at

    def is_valid(self) -> bool:
        if self._value is None or self._fetched_at is None:
            return False
        return self._clock() - self._fetched_at < self._ttl

    def store(self, value: T) -> None:
        self._value = value
        self._fetched_at = self._clock()

    def clear(self) -> None:
        self._value = None
        self._fetched_at = None
