"""
Key/value cache with per-entry time-to-live.

Services receive a cache instance instead of reaching for module state, so tests
can pass a fresh cache (and a fake clock) per case.
"""
from __future__ import annotations

import threading
import time
from typing import Any, Callable, Protocol


class Cache(Protocol):
    """What the aggregators need from a cache."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl: float | None = None) -> None: ...


class TTLCache:
    """Simple thread-safe in-memory cache with per-entry time-to-live."""

    def __init__(self, ttl_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl_seconds
        self._clock = clock
        self._store: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._store[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        now = self._clock()
        expires_at = now + (self._ttl if ttl is None else ttl)
        with self._lock:
            self._prune(now)
            self._store[key] = (expires_at, value)

    def _prune(self, now: float) -> None:
        """Drop every expired entry, read or not. Caller holds the lock."""
        expired = [k for k, (expires_at, _) in self._store.items() if now >= expires_at]
        for k in expired:
            del self._store[k]

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
