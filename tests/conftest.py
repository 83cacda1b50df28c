import asyncio
import json
import time
from datetime import date, timedelta
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from itinerary_service.agents.template_catalog import TemplateCatalog
from itinerary_service.cache.local_cache import CacheEntry, LocalItineraryCache
from itinerary_service.cache.two_tier import TwoTierCache
from itinerary_service.config import Settings
from itinerary_service.llm import GenerationClient
from itinerary_service.orchestrator import ItineraryOrchestrator
from itinerary_service.schemas import PlaceResult


class FakeBackend:
    """Completion backend returning canned replies, failures or delays."""

    def __init__(self, reply: Any = "{}", *, delay: float = 0.0):
        self.reply = reply
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []
        self.cancelled = False

    async def complete(self, prompt, *, system, model, max_tokens, temperature, timeout_s):
        self.calls.append({"prompt": prompt, "system": system, "model": model, "timeout_s": timeout_s})
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if isinstance(self.reply, BaseException):
            raise self.reply
        return self.reply


class FakeSharedStore:
    def __init__(self, *, fail: bool = False):
        self.entries: Dict[str, CacheEntry] = {}
        self.fail = fail
        self.writes: List[str] = []

    async def get(self, key):
        if self.fail:
            raise ConnectionError("redis down")
        entry = self.entries.get(key)
        if entry is None or entry.is_expired(time.time()):
            return None
        return entry

    async def set(self, key, value, ttl_seconds):
        if self.fail:
            raise ConnectionError("redis down")
        self.writes.append(key)
        self.entries[key] = CacheEntry(key=key, value=value, created_at=time.time(), ttl=ttl_seconds)


class FakePlaces:
    """Place lookup keyed by a substring of the query; ``failing`` substrings raise."""

    def __init__(self, results: Optional[Dict[str, PlaceResult]] = None, failing: tuple = ()):
        self.results = results or {}
        self.failing = failing
        self.queries: List[str] = []

    async def search(self, query, limit=1):
        self.queries.append(query)
        for needle in self.failing:
            if needle in query:
                raise RuntimeError(f"lookup failed for {query}")
        for needle, place in self.results.items():
            if needle in query:
                return [place][:limit]
        return []


def itinerary_reply(days: int, *, destination: str = "Nowhereland", price: float = 20) -> str:
    """A well-formed model reply with ``days`` days."""
    start = date(2025, 3, 15)
    return json.dumps(
        {
            "destination": destination,
            "duration": days,
            "days": [
                {
                    "day": n + 1,
                    "date": (start + timedelta(days=n)).isoformat(),
                    "title": f"Day {n + 1} in {destination}",
                    "activities": [
                        {
                            "id": f"act-{n + 1}",
                            "time": "9:30",
                            "title": "Old Town Walk",
                            "duration": "2 hours",
                            "location": "Old Town",
                            "category": "sightseeing",
                            "price": price,
                        },
                        {
                            "id": f"meal-{n + 1}",
                            "time": "13:00",
                            "title": "Market Lunch",
                            "type": "restaurant",
                            "price": 15,
                        },
                    ],
                    "meals": [{"type": "dinner", "venue": "Harbour Grill", "cuisine": "Seafood", "price": 30}],
                    "totalCost": 9999,
                }
                for n in range(days)
            ],
            "highlights": ["Old Town", "Harbour"],
            "tips": ["Carry cash"],
            "estimatedTotalCost": 123456,
        }
    )


@pytest.fixture
def settings():
    return Settings(
        OPENAI_API_KEY="",
        REDIS_URL=None,
        GENERATION_TIMEOUT_S=0.2,
        ADAPTATION_TIMEOUT_S=0.2,
        CACHE_LOOKUP_ORDER="shared_first",
        ENRICHMENT_ENABLED=True,
        SINGLE_FLIGHT_ENABLED=False,
    )


@pytest.fixture
def trip_payload():
    def build(destination="Paris", start="2025-03-15", end="2025-03-18", **extra):
        payload = {
            "destination": destination,
            "dates": {"startDate": start, "endDate": end},
            "travelers": {"adults": 2, "children": 0},
            "interests": ["culture"],
        }
        payload.update(extra)
        return payload

    return build


@pytest.fixture
def make_orchestrator(settings):
    def build(backend=None, places=None, shared=None, local=None, **overrides):
        conf = settings
        if overrides:
            conf = Settings(**{**vars(settings), **overrides})
        cache = TwoTierCache(
            local if local is not None else LocalItineraryCache(conf.LOCAL_CACHE_CAPACITY),
            shared,
            local_first=conf.local_cache_first,
        )
        generator = GenerationClient(backend, conf)
        return ItineraryOrchestrator(TemplateCatalog(), cache, generator, places, conf)

    return build


@pytest.fixture
def fakes():
    return SimpleNamespace(
        Backend=FakeBackend,
        SharedStore=FakeSharedStore,
        Places=FakePlaces,
        itinerary_reply=itinerary_reply,
    )
