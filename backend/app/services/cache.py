"""In-memory TTL cache and provider error memory.

Both stores evict lazily: an expired entry is dropped when it is read, not by
a background sweeper. Keys are tuples whose second element is the entity id,
which is what per-entity clearing matches on.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from app.domain.models import DataSource
from core.structured_logger import get_structured_logger

logger = get_structured_logger("Cache")

CacheKey = Tuple[Hashable, ...]


@dataclass
class CacheEntry:
    payload: Any
    created_at: float
    source: DataSource
    ttl_seconds: float
    message: Optional[str] = None

    def is_expired(self, now: float) -> bool:
        return now - self.created_at >= self.ttl_seconds


def _matches(key: CacheKey, namespace: Optional[str], entity_id: Optional[str]) -> bool:
    if namespace is not None and key[0] != namespace:
        return False
    if entity_id is not None and (len(key) < 2 or key[1] != entity_id):
        return False
    return True


class TTLCacheStore:
    """Keyed payload cache with per-entry TTL and origin.

    Callers that fetch-then-populate hold ``lock(key)`` so concurrent requests
    for one key produce a single provider call.
    """

    def __init__(self, default_ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.default_ttl_seconds = default_ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._locks: Dict[CacheKey, asyncio.Lock] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            self.misses += 1
            logger.debug(f"Cache entry expired: {key}")
            return None
        self.hits += 1
        return entry

    def set(
        self,
        key: CacheKey,
        payload: Any,
        source: DataSource,
        ttl_seconds: Optional[float] = None,
        message: Optional[str] = None,
    ) -> CacheEntry:
        """Store a payload; ``message`` is the advisory to repeat on later hits."""
        entry = CacheEntry(
            payload=payload,
            created_at=self._clock(),
            source=source,
            ttl_seconds=self.default_ttl_seconds if ttl_seconds is None else ttl_seconds,
            message=message,
        )
        self._entries[key] = entry
        return entry

    def lock(self, key: CacheKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def clear(self, namespace: Optional[str] = None, entity_id: Optional[str] = None) -> int:
        """Drop entries matching the namespace and/or entity; both None clears everything.

        Returns:
            Number of entries removed
        """
        doomed = [k for k in self._entries if _matches(k, namespace, entity_id)]
        for key in doomed:
            del self._entries[key]
        logger.info(f"Cleared {len(doomed)} cache entries")
        return len(doomed)

    def stats(self) -> Dict[str, Any]:
        now = self._clock()
        live = sum(1 for e in self._entries.values() if not e.is_expired(now))
        return {
            "entries": live,
            "hits": self.hits,
            "misses": self.misses,
        }

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class ErrorRecord:
    error: str
    recorded_at: float


class ErrorMemory:
    """Remembers recent provider failures per (series, entity).

    While a failure is remembered the entity is served mock data without
    touching the provider. A record expires after ``ttl_seconds``; a TTL of
    None keeps it until cleared.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._records: Dict[CacheKey, ErrorRecord] = {}

    def record(self, key: CacheKey, error: Exception) -> None:
        self._records[key] = ErrorRecord(error=str(error), recorded_at=self._clock())

    def get(self, key: CacheKey) -> Optional[ErrorRecord]:
        record = self._records.get(key)
        if record is None:
            return None
        if self.ttl_seconds is not None and self._clock() - record.recorded_at >= self.ttl_seconds:
            del self._records[key]
            return None
        return record

    def forget(self, key: CacheKey) -> None:
        self._records.pop(key, None)

    def clear(self, namespace: Optional[str] = None, entity_id: Optional[str] = None) -> int:
        doomed = [k for k in self._records if _matches(k, namespace, entity_id)]
        for key in doomed:
            del self._records[key]
        return len(doomed)

    def snapshot(self) -> Dict[str, str]:
        """Remembered errors keyed ``series:entity`` (expired ones excluded)."""
        for key in list(self._records):
            self.get(key)
        return {":".join(str(part) for part in key): r.error for key, r in self._records.items()}

    def __len__(self) -> int:
        return len(self._records)
