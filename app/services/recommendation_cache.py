from __future__ import annotations
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.core.clock import Clock, system_clock
from app.core.config import settings


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    created_at: float

    def is_valid(self, now: float, ttl_seconds: float) -> bool:
        return now - self.created_at <= ttl_seconds


class RecommendationCache:
    """
    In-process store of recommendation result sets with a fixed TTL.

    Expired entries are evicted lazily: whichever `get`/`has` call first
    observes one deletes it. There is no background sweep.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Clock = system_clock,
    ):
        self.ttl_seconds = settings.RECOMMENDATION_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, CacheEntry] = {}

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value=value, created_at=self._clock())
        logger.debug("Cached %s (%d items)", key, _size_of(value))

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._lookup(key)
        if entry is None:
            logger.debug("Cache miss for %s", key)
            return None
        logger.debug("Cache hit for %s (%d items)", key, _size_of(entry.value))
        return entry.value

    def has(self, key: str) -> bool:
        with self._lock:
            return self._lookup(key) is not None

    def clear_key(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("Recommendation cache cleared")

    def __len__(self) -> int:
        return len(self._entries)

    def _lookup(self, key: str) -> Optional[CacheEntry]:
        # Caller holds the lock.
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_valid(self._clock(), self.ttl_seconds):
            del self._entries[key]
            logger.debug("Evicted expired cache entry %s", key)
            return None
        return entry


def _size_of(value: Any) -> int:
    try:
        return len(value)
    except TypeError:
        return 0
