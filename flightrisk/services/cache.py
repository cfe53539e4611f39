"""
In-process TTL cache for provider payloads
"""

import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Hashable, Optional, Tuple


class TTLCache:
    """
    Small thread-safe key/value cache with per-entry expiry

    Provider calls run in worker threads, so reads and writes take a lock.
    A TTL of 0 disables caching for that entry. Expired entries are swept on
    every write, so keys that are never read again do not accumulate.
    """

    def __init__(self, default_ttl: float = 60, clock: Optional[Callable[[], datetime]] = None):
        self.default_ttl = default_ttl
        self._clock = clock or datetime.now
        self._entries: Dict[Hashable, Tuple[Any, datetime]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return default
            return value

    def set(self, key: Hashable, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            return
        with self._lock:
            now = self._clock()
            self._sweep(now)
            self._entries[key] = (value, now + timedelta(seconds=ttl))

    def _sweep(self, now: datetime) -> None:
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]

    def __contains__(self, key: Hashable) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
