from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any, Protocol


class TtlCache(Protocol):
    """
    Abstraction for a key/value cache with per-key expiry.

    ``ttl`` is expressed in whole seconds. ``incr`` MUST be atomic and only
    set the expiry when it creates the key.
    """

    def get(self, key: str) -> Any | None: ...
    def set(self, key: str, value: Any, ttl: int) -> None: ...
    def delete(self, key: str) -> None: ...
    def incr(self, key: str, ttl: int) -> int: ...
    def exists(self, key: str) -> bool: ...


class InMemoryTtlCache(TtlCache):
    """
    Process-local TTL cache.

    .. note::
       Used when ``REDIS_URL`` is unset and in unit tests. State is not
       shared between worker processes.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def _live(self, key: str) -> tuple[Any, float] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry[1] <= self._clock():
            # lazily evicted
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._live(key)
            return entry[0] if entry else None

    def set(self, key: str, value: Any, ttl: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def incr(self, key: str, ttl: int) -> int:
        with self._lock:
            entry = self._live(key)
            if entry is None:
                self._entries[key] = (1, self._clock() + ttl)
                return 1
            count = int(entry[0]) + 1
            self._entries[key] = (count, entry[1])
            return count

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live(key) is not None
