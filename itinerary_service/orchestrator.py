# itinerary_service/orchestrator.py
from __future__ import annotations

import asyncio
import logging
import os
from datetime import timedelta
from typing import Any, Dict, Optional

from itinerary_service.agents.cost_aggregator import reconcile_costs, score_engagement
from itinerary_service.agents.enrichment import enrich_itinerary
from itinerary_service.agents.fallback_generator import build_fallback_itinerary
from itinerary_service.agents.request_normalizer import normalize_request
from itinerary_service.agents.template_catalog import TemplateCatalog
from itinerary_service.cache.local_cache import LocalItineraryCache
from itinerary_service.cache.shared_cache import RedisItineraryStore
from itinerary_service.cache.two_tier import TwoTierCache
from itinerary_service.config import Settings
from itinerary_service.llm import GenerationClient, GenerationContext, OpenAICompletionBackend
from itinerary_service.schemas import Itinerary, LeadContact, TripRequest
from itinerary_service.tools.places import GooglePlacesClient, PlaceLookup

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False


def rebase_itinerary(
    itinerary: Itinerary, request: TripRequest, *, source: Optional[str] = "cache"
) -> Itinerary:
    """Re-apply the request's dates, travelers and budget to a stored itinerary.

    Day numbers and content are kept; ``generated_at`` is preserved and
    ``metadata.source`` is replaced when ``source`` is given.
    """
    start = request.dates.start_date
    days = [
        day.model_copy(update={"date": start + timedelta(days=day.day - 1)}, deep=True)
        for day in itinerary.days
    ]
    metadata = itinerary.metadata
    if source is not None:
        metadata = metadata.model_copy(update={"source": source})
    rebased = itinerary.model_copy(
        update={
            "days": days,
            "start_date": start,
            "end_date": request.dates.end_date,
            "travelers": request.travelers,
            "total_budget": request.total_budget,
            "metadata": metadata,
        }
    )
    return reconcile_costs(rebased)


class ItineraryOrchestrator:
    """Decides how each itinerary is produced.

    The order is fixed: template, cache, model, deterministic fallback. Every
    path that produces a fresh itinerary is enriched, has its costs
    reconciled and is written back to the cache. Only
    :class:`~itinerary_service.errors.ValidationError` escapes ``generate``.
    """

    def __init__(
        self,
        catalog: TemplateCatalog,
        cache: TwoTierCache,
        generator: Optional[GenerationClient],
        places: Optional[PlaceLookup] = None,
        settings: Optional[Settings] = None,
    ):
        self.catalog = catalog
        self.cache = cache
        self.generator = generator
        self.places = places
        self.settings = settings or Settings()
        self._inflight: Dict[str, asyncio.Future] = {}

    async def generate(self, payload: Any) -> Itinerary:
        normalized = normalize_request(payload)
        request, key = normalized.request, normalized.cache_key
        logger.info(
            "Itinerary request: destination=%s, dates=%s..%s, travelers=%d+%d, interests=%s",
            request.destination,
            request.dates.start_date,
            request.dates.end_date,
            request.travelers.adults,
            request.travelers.children,
            list(request.interests),
        )

        template = self.catalog.lookup(request.destination)
        if template is not None:
            logger.info("Template hit for %s (%d days)", template.destination, template.duration)
            itinerary = await self.catalog.build_for_request(
                template,
                request,
                self.generator,
                GenerationContext.for_adaptation(self.settings),
            )
            return await self._finish(itinerary, request, key, self.settings.TEMPLATE_CACHE_TTL)

        cached = await self._cache_get(key)
        if cached is not None:
            logger.info("Cache hit for %s (%s)", request.destination, key)
            return rebase_itinerary(cached, request)

        if not self.settings.SINGLE_FLIGHT_ENABLED:
            return await self._generate_fresh(request, key)
        return await self._generate_single_flight(request, key)

    def score(self, request: Any, contact: Optional[LeadContact] = None) -> int:
        if not isinstance(request, TripRequest):
            request = normalize_request(request).request
        return score_engagement(request, contact)

    async def close(self) -> None:
        await self.cache.close()

    async def _generate_fresh(self, request: TripRequest, key: str) -> Itinerary:
        itinerary: Optional[Itinerary] = None
        if self.generator is not None:
            try:
                itinerary = await self.generator.generate_itinerary(
                    request, GenerationContext.for_generation(self.settings)
                )
            except Exception:
                logger.warning(
                    "Model generation failed for %s; using deterministic fallback",
                    request.destination,
                    exc_info=True,
                )

        if itinerary is None:
            itinerary = build_fallback_itinerary(request)
            return await self._finish(itinerary, request, key, self.settings.FALLBACK_CACHE_TTL)
        return await self._finish(itinerary, request, key, self.settings.AI_CACHE_TTL)

    async def _generate_single_flight(self, request: TripRequest, key: str) -> Itinerary:
        pending = self._inflight.get(key)
        if pending is not None:
            await asyncio.wait({pending})
            if not pending.cancelled():
                logger.info("Joined in-flight generation for %s", key)
                result: Itinerary = pending.result()
                return rebase_itinerary(result, request, source=None)
            return await self._generate_fresh(request, key)

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            itinerary = await self._generate_fresh(request, key)
            future.set_result(itinerary)
            return itinerary
        finally:
            if not future.done():
                future.cancel()
            if self._inflight.get(key) is future:
                del self._inflight[key]

    async def _finish(
        self, itinerary: Itinerary, request: TripRequest, key: str, ttl: int
    ) -> Itinerary:
        if self.places is not None and self.settings.ENRICHMENT_ENABLED:
            itinerary = await enrich_itinerary(
                itinerary,
                self.places,
                destination=request.destination,
                concurrency=self.settings.ENRICHMENT_CONCURRENCY,
            )
        itinerary = reconcile_costs(itinerary)
        try:
            await self.cache.set(key, itinerary, ttl)
        except Exception:
            logger.warning("Cache write failed for %s", key, exc_info=True)
        logger.info(
            "Itinerary for %s ready: source=%s, days=%d, estimated=%.2f",
            itinerary.destination,
            itinerary.metadata.source,
            len(itinerary.days),
            itinerary.estimated_total_cost,
        )
        return itinerary

    async def _cache_get(self, key: str) -> Optional[Itinerary]:
        try:
            return await self.cache.get(key)
        except Exception:
            logger.warning("Cache read failed for %s; treating as miss", key, exc_info=True)
            return None


def build_orchestrator(settings: Optional[Settings] = None) -> ItineraryOrchestrator:
    """Create the production collaborators from ``settings`` and wire them up."""
    settings = settings or Settings()

    shared = None
    if settings.REDIS_URL:
        shared = RedisItineraryStore.from_url(settings.REDIS_URL, key_prefix=settings.REDIS_KEY_PREFIX)
    else:
        logger.info("REDIS_URL not set; using the in-process cache only")
    cache = TwoTierCache(
        LocalItineraryCache(settings.LOCAL_CACHE_CAPACITY),
        shared,
        local_first=settings.local_cache_first,
    )

    backend = None
    if settings.OPENAI_API_KEY:
        backend = OpenAICompletionBackend(settings.OPENAI_API_KEY)
    else:
        logger.warning("OPENAI_API_KEY not set; uncached requests will use the deterministic fallback")

    places = None
    if settings.ENRICHMENT_ENABLED and settings.GOOGLE_PLACES_API_KEY:
        places = GooglePlacesClient(settings.GOOGLE_PLACES_API_KEY, timeout=settings.PLACES_TIMEOUT_S)
    else:
        logger.info("Place enrichment disabled")

    return ItineraryOrchestrator(
        TemplateCatalog(),
        cache,
        GenerationClient(backend, settings),
        places,
        settings,
    )
