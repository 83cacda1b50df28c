"""Local + shared itinerary cache with a configurable lookup order."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from itinerary_service.cache.local_cache import LocalItineraryCache
from itinerary_service.cache.shared_cache import SharedItineraryStore
from itinerary_service.schemas import Itinerary

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False


class TwoTierCache:
    """Reads from both tiers, writes through to both.

    By default the shared tier is consulted first so every process sees the
    freshest entry; ``local_first=True`` checks the in-process tier first.
    A shared hit is copied into the local tier with its original expiry.
    """

    def __init__(
        self,
        local: LocalItineraryCache,
        shared: Optional[SharedItineraryStore] = None,
        *,
        local_first: bool = False,
    ):
        self.local = local
        self.shared = shared
        self.local_first = local_first

    async def get(self, key: str) -> Optional[Itinerary]:
        if self.local_first:
            hit = self.local.get(key)
            if hit is not None:
                logger.debug("Local cache hit for %s", key)
                return hit
            return await self._get_shared(key)

        hit = await self._get_shared(key)
        if hit is not None:
            return hit
        hit = self.local.get(key)
        if hit is not None:
            logger.debug("Local cache hit for %s", key)
        return hit

    async def set(self, key: str, itinerary: Itinerary, ttl_seconds: int) -> None:
        self.local.set(key, itinerary, ttl_seconds)
        if self.shared is None:
            return
        try:
            await self.shared.set(key, itinerary.model_dump_json(by_alias=True), ttl_seconds)
        except Exception:
            logger.warning("Shared cache write failed for %s", key, exc_info=True)

    async def close(self) -> None:
        close = getattr(self.shared, "close", None)
        if close is not None:
            await close()

    def stats(self) -> Dict[str, Any]:
        data = self.local.stats()
        data["shared"] = self.shared is not None
        data["lookupOrder"] = "local_first" if self.local_first else "shared_first"
        return data

    async def _get_shared(self, key: str) -> Optional[Itinerary]:
        if self.shared is None:
            return None
        try:
            entry = await self.shared.get(key)
        except Exception:
            logger.warning("Shared cache read failed for %s", key, exc_info=True)
            return None
        if entry is None:
            return None
        try:
            itinerary = Itinerary.model_validate_json(entry.value)
        except PydanticValidationError:
            logger.warning("Shared cache entry %s no longer matches the itinerary model", key)
            return None
        logger.debug("Shared cache hit for %s", key)
        self.local.set(key, itinerary, entry.ttl, created_at=entry.created_at)
        return itinerary
