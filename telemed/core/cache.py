"""In-process key/value cache with per-entry expiration."""

import time
from threading import Lock
from typing import Any, Callable, Hashable

_MISSING = object()


class TTLCache:
    """Cache entries for a bounded time.

    Each entry stores its absolute expiry, computed from the clock when it is
    written. Expired entries are dropped the next time they are read. When a
    write pushes the cache past ``max_size``, expired entries are purged first
    and then the oldest writes are evicted.
    """

    def __init__(
        self,
        default_ttl_seconds: float = 3600,
        clock: Callable[[], float] = time.monotonic,
        max_size: int | None = None,
    ):
        if default_ttl_seconds <= 0:
            raise ValueError('default_ttl_seconds must be positive.')
        if max_size is not None and max_size <= 0:
            raise ValueError('max_size must be positive.')
        self.default_ttl_seconds = default_ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: dict[Hashable, tuple[Any, float]] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def _lookup(self, key: Hashable) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return _MISSING

            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return _MISSING

            return value

    def _enforce_max_size(self) -> None:
        # Caller holds the lock.
        if self.max_size is None or len(self._entries) <= self.max_size:
            return

        now = self._clock()
        expired_keys = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired_keys:
            del self._entries[key]

        # Dicts keep insertion order, so the first keys are the oldest writes.
        overflow = len(self._entries) - self.max_size
        if overflow > 0:
            for key in list(self._entries)[:overflow]:
                del self._entries[key]

    def get(self, key: Hashable, default: Any = None) -> Any:
        value = self._lookup(key)
        return default if value is _MISSING else value

    def set(self, key: Hashable, value: Any, ttl_seconds: float | None = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError('ttl_seconds must be positive.')

        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (value, self._clock() + ttl)
            self._enforce_max_size()

    def remove(self, key: Hashable) -> bool:
        with self._lock:
            return self._entries.pop(key, _MISSING) is not _MISSING

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_or_fetch(self, key: Hashable, fetch: Callable[[], Any], ttl_seconds: float | None = None) -> Any:
        """Return the cached value for ``key``, calling ``fetch`` on a miss.

        Errors raised by ``fetch`` propagate and nothing is cached.
        """
        value = self._lookup(key)
        if value is not _MISSING:
            return value

        value = fetch()
        self.set(key, value, ttl_seconds)
        return value
