'''
In-memory key/value cache with per-entry time-to-live.

Shared by the feed fetcher (raw item lists) and the summarizer (generated
summaries). Expired entries are dropped lazily when `get` touches them, or in
bulk by `sweep`.
'''

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

# 24 hours
DEFAULT_TTL = 24 * 60 * 60.0


@dataclass
class _Entry:
    value: Any
    created: float
    ttl: float

    def expired(self, now: float) -> bool:
        return now > self.created + self.ttl


class TTLCache:
    '''
    Expiring cache. Durations are in seconds.

    An entry is readable while `now <= created + ttl`. When disabled, `set` is
    a no-op and every lookup reports the key as absent.
    '''

    def __init__(
        self,
        enabled: bool = True,
        default_ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self.enabled = enabled
        self.default_ttl = default_ttl

    def configure(self, enabled: bool | None = None, default_ttl: float | None = None) -> None:
        '''
        Toggle caching and change the default TTL. Existing entries keep the TTL
        they were stored with. Values of the wrong type, or a non-positive TTL, are ignored.
        '''
        if isinstance(enabled, bool):
            self.enabled = enabled
        if isinstance(default_ttl, (int, float)) and not isinstance(default_ttl, bool) and default_ttl > 0:
            self.default_ttl = float(default_ttl)

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        '''Store value under key, replacing any existing entry and resetting its age.'''
        if not self.enabled:
            return
        entry = _Entry(value=value, created=self._clock(), ttl=self.default_ttl if ttl is None else ttl)
        with self._lock:
            self._entries[key] = entry

    def get(self, key: str, default: Any = None) -> Any:
        '''Return the cached value, or default if absent or expired. Expired entries are removed.'''
        if not self.enabled:
            return default
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if entry.expired(self._clock()):
                del self._entries[key]
                return default
            return entry.value

    def has(self, key: str) -> bool:
        '''Whether key is present and unexpired. Does not remove anything.'''
        if not self.enabled:
            return False
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.expired(self._clock())

    def ttl(self, key: str) -> float:
        '''Remaining time-to-live in seconds, or -1 if absent or expired.'''
        if not self.enabled:
            return -1
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return -1
            remaining = entry.created + entry.ttl - self._clock()
        return remaining if remaining >= 0 else -1

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        '''Number of stored entries, including expired ones not yet removed.'''
        with self._lock:
            return len(self._entries)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def sweep(self) -> int:
        '''Remove every expired entry. Returns how many were removed.'''
        now = self._clock()
        with self._lock:
            stale = [k for k, e in self._entries.items() if e.expired(now)]
            for k in stale:
                del self._entries[k]
        return len(stale)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)
