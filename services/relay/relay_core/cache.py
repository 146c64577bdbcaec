from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, TypeVar

from .coercion import normalize_country_code

V = TypeVar("V")

KEY_SEPARATOR = "|"


@dataclass
class CacheEntry(Generic[V]):
    expires_at: float
    value: V


class TTLCache(Generic[V]):
    """Process-owned key/value store with read-time expiry and a capacity bound.

    Expired entries are dropped when their key is read or rewritten; when a
    write pushes the store past ``max_entries`` the expired entries go first,
    then the ones closest to expiry.
    """

    def __init__(
        self,
        ttl_s: float,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_s = ttl_s
        self.max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: Dict[str, CacheEntry[V]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Optional[V]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= now:
                self._entries.pop(key, None)
                return None
            return entry.value

    def put(self, key: str, value: V, ttl_s: Optional[float] = None) -> None:
        now = self._clock()
        expires_at = now + (self.ttl_s if ttl_s is None else ttl_s)
        with self._lock:
            self._entries[key] = CacheEntry(expires_at=expires_at, value=value)
            if len(self._entries) > self.max_entries:
                self._evict(now)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict(self, now: float) -> None:
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            self._entries.pop(key, None)
        overflow = len(self._entries) - self.max_entries
        if overflow <= 0:
            return
        oldest = sorted(self._entries.items(), key=lambda item: item[1].expires_at)
        for key, _ in oldest[:overflow]:
            self._entries.pop(key, None)


def price_cache_key(subscription_name: str, country_code: str) -> str:
    return f"{subscription_name.strip().lower()}{KEY_SEPARATOR}{normalize_country_code(country_code)}"
