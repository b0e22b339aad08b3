"""Minimal TTL cache with lazy eviction on read."""

import time
from typing import Any, Callable


class TTLCache:
    """Key to (value, expiry) map.

    Injected into services that want short-lived memoization of backing
    store reads. The clock is injectable so tests can advance time.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl
        self._clock = clock
        self._store: dict[str, tuple[Any, float]] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: str) -> Any | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expiry = entry
        if self._clock() > expiry:
            del self._store[key]
            return None
        return value

    def put(self, key: str, value: Any) -> None:
        self._store[key] = (value, self._clock() + self._ttl)

    def invalidate(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
