"""Best-effort place enrichment for itinerary activities."""
from __future__ import annotations

import asyncio
import logging
import os
from typing import Dict, List, Optional

from itinerary_service.schemas import Activity, Itinerary, PlaceResult
from itinerary_service.tools.places import PlaceLookup

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

SKIPPED_CATEGORIES = ("transport", "accommodation")
MAX_TIPS = 3


def merge_place(activity: Activity, place: PlaceResult) -> Activity:
    """Fill gaps in ``activity`` from ``place``; existing activity data wins."""
    tips: List[str] = []
    for tip in [*activity.tips, *place.tips]:
        if tip and tip not in tips:
            tips.append(tip)
    update = {
        "place_id": activity.place_id or place.place_id,
        "image_url": activity.image_url or place.image_url,
        "rating": activity.rating if activity.rating is not None else place.rating,
        "location": activity.location or place.address,
        "tips": tips[:MAX_TIPS],
    }
    return activity.model_copy(update=update)


async def enrich_itinerary(
    itinerary: Itinerary,
    places: Optional[PlaceLookup],
    *,
    destination: Optional[str] = None,
    concurrency: int = 5,
) -> Itinerary:
    """Attach place data to every sightseeing and dining activity.

    One lookup per eligible activity, at most ``concurrency`` in flight.
    A failed or empty lookup leaves that activity as it was.
    """
    if places is None:
        return itinerary

    where = destination or itinerary.destination
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def enrich_one(activity: Activity) -> Activity:
        if activity.category in SKIPPED_CATEGORIES:
            return activity
        query = f"{activity.title} {activity.location or where}".strip()
        async with semaphore:
            try:
                results = await places.search(query, limit=1)
            except Exception:
                logger.warning("Place lookup failed for activity %s", activity.id, exc_info=True)
                return activity
        if not results:
            logger.debug("No place found for %r", query)
            return activity
        return merge_place(activity, results[0])

    activities = [a for day in itinerary.days for a in day.activities]
    enriched = await asyncio.gather(*(enrich_one(a) for a in activities))
    by_id: Dict[str, Activity] = {a.id: a for a in enriched}

    days = [
        day.model_copy(update={"activities": [by_id[a.id] for a in day.activities]})
        for day in itinerary.days
    ]
    hits = sum(1 for before, after in zip(activities, enriched) if after is not before)
    logger.info("Enriched %d of %d activities for %s", hits, len(activities), itinerary.destination)
    return itinerary.model_copy(update={"days": days})
