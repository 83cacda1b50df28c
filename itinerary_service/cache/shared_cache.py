"""Shared (cross-process) itinerary store backed by Redis."""
from __future__ import annotations

import json
import logging
import os
import time
from typing import Any, Optional, Protocol

import redis.asyncio as redis

from itinerary_service.cache.local_cache import CacheEntry

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False


class SharedItineraryStore(Protocol):
    async def get(self, key: str) -> Optional[CacheEntry]:
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        ...


def encode_envelope(value: str, ttl_seconds: int, created_at: Optional[float] = None) -> str:
    return json.dumps(
        {
            "createdAt": time.time() if created_at is None else created_at,
            "ttl": ttl_seconds,
            "value": json.loads(value),
        },
        separators=(",", ":"),
    )


def decode_envelope(key: str, raw: Any) -> Optional[CacheEntry]:
    """Turn a stored envelope back into a :class:`CacheEntry`.

    Returns None for anything that does not look like an envelope.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        data = json.loads(raw)
        return CacheEntry(
            key=key,
            value=json.dumps(data["value"]),
            created_at=float(data["createdAt"]),
            ttl=float(data["ttl"]),
        )
    except (TypeError, ValueError, KeyError):
        logger.warning("Discarding malformed shared cache entry %s", key)
        return None


class RedisItineraryStore:
    """Itinerary store on ``redis.asyncio``.

    Values are JSON envelopes ``{createdAt, ttl, value}`` written with a native
    Redis expiry. Connection and command errors are logged and reported as a
    miss (reads) or ignored (writes).
    """

    def __init__(
        self,
        client: "redis.Redis",
        *,
        key_prefix: str = "trip:",
        clock=time.time,
    ):
        self._client = client
        self._prefix = key_prefix
        self._clock = clock

    @classmethod
    def from_url(cls, url: str, *, key_prefix: str = "trip:") -> "RedisItineraryStore":
        client = redis.from_url(url, decode_responses=True, socket_timeout=2, socket_connect_timeout=2)
        logger.info("Shared itinerary cache configured at %s", url.split("@")[-1])
        return cls(client, key_prefix=key_prefix)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = await self._client.get(self._key(key))
        except Exception:
            logger.warning("Shared cache read failed for %s; treating as miss", key, exc_info=True)
            return None
        if raw is None:
            return None
        entry = decode_envelope(key, raw)
        if entry is None or entry.is_expired(self._clock()):
            return None
        return entry

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        payload = encode_envelope(value, ttl_seconds, self._clock())
        try:
            await self._client.set(self._key(key), payload, ex=int(ttl_seconds))
        except Exception:
            logger.warning("Shared cache write failed for %s; skipping", key, exc_info=True)

    async def close(self) -> None:
        await self._client.aclose()
