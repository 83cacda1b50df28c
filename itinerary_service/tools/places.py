import logging
import os
from typing import Any, Dict, List, Optional, Protocol

import httpx

from itinerary_service.errors import EnrichmentError
from itinerary_service.schemas import PlaceResult

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False


class PlaceLookup(Protocol):
    async def search(self, query: str, limit: int = 1) -> List[PlaceResult]:
        ...


class GooglePlacesClient:
    """
    Google Places Text Search. One request per query; results are mapped onto
    ``PlaceResult`` with a photo URL built from the first photo reference.
    """
    SEARCH_ENDPOINT = "https://maps.googleapis.com/maps/api/place/textsearch/json"
    PHOTO_ENDPOINT = "https://maps.googleapis.com/maps/api/place/photo"

    def __init__(
        self,
        api_key: str,
        *,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError("Google Places API key is required")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    async def search(self, query: str, limit: int = 1) -> List[PlaceResult]:
        """Run a text search and return at most ``limit`` places.

        Raises ``EnrichmentError`` on transport failures, non-2xx responses and
        error statuses reported by the API. ``ZERO_RESULTS`` is an empty list.
        """
        params = {"query": query, "key": self.api_key}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.SEARCH_ENDPOINT, params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise EnrichmentError(f"Place search failed for {query!r}: {exc}") from exc

        status = data.get("status", "OK")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            raise EnrichmentError(
                f"Place search for {query!r} returned {status}: {data.get('error_message', '')}".rstrip(": ")
            )

        results: List[PlaceResult] = []
        for raw in data.get("results", [])[: max(0, limit)]:
            place = self._to_place(raw)
            if place is not None:
                results.append(place)
        logger.debug("Place search %r returned %d result(s)", query, len(results))
        return results

    def _to_place(self, raw: Dict[str, Any]) -> Optional[PlaceResult]:
        place_id = raw.get("place_id")
        if not place_id:
            return None
        return PlaceResult(
            place_id=place_id,
            name=raw.get("name", ""),
            address=raw.get("formatted_address", ""),
            rating=raw.get("rating"),
            image_url=self._photo_url(raw.get("photos")),
            tips=self._tips(raw),
        )

    def _photo_url(self, photos: Any) -> Optional[str]:
        if not isinstance(photos, list) or not photos:
            return None
        reference = photos[0].get("photo_reference") if isinstance(photos[0], dict) else None
        if not reference:
            return None
        return f"{self.PHOTO_ENDPOINT}?maxwidth=800&photo_reference={reference}&key={self.api_key}"

    @staticmethod
    def _tips(raw: Dict[str, Any]) -> List[str]:
        tips: List[str] = []
        total = raw.get("user_ratings_total")
        rating = raw.get("rating")
        if rating and total:
            tips.append(f"Rated {rating} by {total} visitors")
        if raw.get("price_level"):
            tips.append("Price level " + "$" * int(raw["price_level"]))
        return tips
