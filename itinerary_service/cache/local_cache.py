"""In-process bounded TTL cache for serialized itineraries."""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from cachetools import FIFOCache

from itinerary_service.schemas import Itinerary


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: str
    created_at: float
    ttl: float

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def remaining(self, now: float) -> float:
        return max(0.0, self.expires_at - now)


class LocalItineraryCache:
    """Insertion-ordered cache that evicts its oldest entry when full.

    Entries carry their own TTL, so expiry is checked on every lookup rather
    than by the underlying store. Itineraries are stored as JSON so a caller
    mutating a returned model never changes what is cached.
    """

    def __init__(self, capacity: int = 50, clock: Callable[[], float] = time.time):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._clock = clock
        self._entries: FIFOCache = FIFOCache(maxsize=capacity)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return None
            return entry

    def get(self, key: str) -> Optional[Itinerary]:
        entry = self.get_entry(key)
        if entry is None:
            return None
        return Itinerary.model_validate_json(entry.value)

    def set(
        self,
        key: str,
        itinerary: Itinerary,
        ttl_seconds: float,
        *,
        created_at: Optional[float] = None,
    ) -> None:
        """Store ``itinerary`` under ``key``.

        ``created_at`` lets an entry copied from another tier keep its
        original expiry instead of starting a fresh TTL.
        """
        if ttl_seconds <= 0:
            return
        entry = CacheEntry(
            key=key,
            value=itinerary.model_dump_json(by_alias=True),
            created_at=self._clock() if created_at is None else created_at,
            ttl=float(ttl_seconds),
        )
        with self._lock:
            # a rewritten key counts as the newest insertion
            self._entries.pop(key, None)
            if len(self._entries) >= self.capacity:
                self._purge_expired()
            self._entries[key] = entry

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            self._purge_expired()
            keys: List[str] = list(self._entries)
        return {"size": len(keys), "capacity": self.capacity, "keys": keys}

    def _purge_expired(self) -> None:
        now = self._clock()
        for key in [k for k, e in self._entries.items() if e.is_expired(now)]:
            del self._entries[key]
