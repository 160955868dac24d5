"""TTL-aware in-memory cache for provider responses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

from agrisat.clock import Clock, SystemClock
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="response_cache")

DEFAULT_TTL_SECONDS = 300.0


def make_cache_key(endpoint: str, params: Mapping[str, Any] | None = None) -> str:
    """Canonical key for a request: the endpoint plus its parameters sorted by name."""
    params = params or {}
    query = urlencode(sorted(params.items()))
    return f"{endpoint}?{query}"


@dataclass
class CacheEntry:
    """A cached payload and the clock time after which it is stale."""
    key: str
    value: Any
    expires_at: float


class ResponseCache:
    """Unbounded key/value store where every entry expires `ttl` seconds after it is written.

    A read strictly after an entry's expiry evicts it and reports a miss. There is no
    size-based eviction; entries leave only on an expired read, `clear_expired()` or
    `clear()`.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, *, clock: Clock | None = None) -> None:
        self.ttl = ttl_seconds
        self._clock = clock or SystemClock()
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        if self._clock.now() > entry.expires_at:
            self._entries.pop(key, None)
            self._misses += 1
            logger.debug("Cache entry expired", extra={"key": key})
            return None
        self._hits += 1
        return entry.value

    def put(self, key: str, value: Any, ttl: float | None = None) -> CacheEntry:
        """Store `value` under `key`, replacing any previous entry."""
        ttl = self.ttl if ttl is None else ttl
        entry = CacheEntry(key=key, value=value, expires_at=self._clock.now() + ttl)
        self._entries[key] = entry
        return entry

    def clear_expired(self) -> int:
        """Drop every stale entry and return how many were removed."""
        now = self._clock.now()
        stale = [key for key, entry in self._entries.items() if now > entry.expires_at]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()
        logger.info("Response cache cleared")

    def stats(self) -> dict[str, Any]:
        """Size and hit-rate counters since construction."""
        lookups = self._hits + self._misses
        return {
            "size": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / lookups if lookups else 0.0,
        }
