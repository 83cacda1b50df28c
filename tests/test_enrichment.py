import asyncio

import httpx
import pytest

from itinerary_service.agents.enrichment import enrich_itinerary, merge_place
from itinerary_service.agents.fallback_generator import build_fallback_itinerary
from itinerary_service.agents.request_normalizer import normalize_request
from itinerary_service.errors import EnrichmentError
from itinerary_service.schemas import Activity, PlaceResult
from itinerary_service.tools.places import GooglePlacesClient


def _itinerary(trip_payload):
    request = normalize_request(
        trip_payload(destination="Nowhereland", start="2025-03-15", end="2025-03-17")
    ).request
    return build_fallback_itinerary(request)


def _place(place_id, **kwargs):
    return PlaceResult(place_id=place_id, name=place_id, **kwargs)


def test_merge_keeps_original_data_and_caps_tips():
    activity = Activity(
        id="a1", time="09:00", title="Museum", location="Old Town", rating=4.1, tips=["Go early", "Free Sundays"]
    )
    place = _place("p1", address="1 Main St", rating=4.8, image_url="http://img", tips=["Go early", "Cafe inside", "Closed Mondays"])

    merged = merge_place(activity, place)

    assert merged.place_id == "p1"
    assert merged.image_url == "http://img"
    assert merged.rating == 4.1
    assert merged.location == "Old Town"
    assert merged.tips == ["Go early", "Free Sundays", "Cafe inside"]
    assert activity.place_id is None


def test_transport_and_accommodation_are_skipped(trip_payload, fakes):
    places = fakes.Places()
    itinerary = _itinerary(trip_payload)

    asyncio.run(enrich_itinerary(itinerary, places))

    # arrival: dinner only; standard: 4; departure: none
    assert len(places.queries) == 5
    assert "Welcome Dinner Nowhereland" in places.queries


def test_one_failed_lookup_does_not_affect_others(trip_payload, fakes):
    places = fakes.Places(
        results={"Lunch Break": _place("lunch-place"), "Dinner": _place("dinner-place")},
        failing=("Cultural Experience",),
    )
    itinerary = _itinerary(trip_payload)

    enriched = asyncio.run(enrich_itinerary(itinerary, places))

    standard = enriched.days[1].activities
    by_title = {a.title: a for a in standard}
    assert by_title["Lunch Break"].place_id == "lunch-place"
    assert by_title["Dinner"].place_id == "dinner-place"
    assert by_title["Nowhereland Cultural Experience"].place_id is None
    assert by_title["Nowhereland Cultural Experience"] == itinerary.days[1].activities[2]
    assert [a.id for a in standard] == [a.id for a in itinerary.days[1].activities]


def test_no_place_client_returns_itinerary_unchanged(trip_payload):
    itinerary = _itinerary(trip_payload)
    assert asyncio.run(enrich_itinerary(itinerary, None)) is itinerary


def test_lookups_respect_concurrency_bound(trip_payload):
    class SlowPlaces:
        def __init__(self):
            self.active = 0
            self.peak = 0

        async def search(self, query, limit=1):
            self.active += 1
            self.peak = max(self.peak, self.active)
            await asyncio.sleep(0.01)
            self.active -= 1
            return []

    places = SlowPlaces()
    asyncio.run(enrich_itinerary(_itinerary(trip_payload), places, concurrency=2))
    assert places.peak == 2


def _places_client(handler):
    return GooglePlacesClient("test-key", transport=httpx.MockTransport(handler))


def test_google_places_maps_first_result():
    def handler(request):
        assert request.url.params["query"] == "Louvre Paris"
        assert request.url.params["key"] == "test-key"
        return httpx.Response(
            200,
            json={
                "status": "OK",
                "results": [
                    {
                        "place_id": "abc",
                        "name": "Louvre Museum",
                        "formatted_address": "Rue de Rivoli, Paris",
                        "rating": 4.7,
                        "user_ratings_total": 250000,
                        "photos": [{"photo_reference": "ref123"}],
                    },
                    {"place_id": "def", "name": "Other"},
                ],
            },
        )

    results = asyncio.run(_places_client(handler).search("Louvre Paris", limit=1))
    assert len(results) == 1
    place = results[0]
    assert place.place_id == "abc"
    assert place.address == "Rue de Rivoli, Paris"
    assert "photo_reference=ref123" in place.image_url
    assert place.tips == ["Rated 4.7 by 250000 visitors"]


def test_google_places_zero_results_is_empty():
    client = _places_client(lambda request: httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []}))
    assert asyncio.run(client.search("Nowhere")) == []


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="server error"),
        httpx.Response(200, json={"status": "REQUEST_DENIED", "error_message": "bad key"}),
    ],
)
def test_google_places_failures_raise_enrichment_error(response):
    client = _places_client(lambda request: response)

    async def run():
        with pytest.raises(EnrichmentError):
            await client.search("Louvre")

    asyncio.run(run())
