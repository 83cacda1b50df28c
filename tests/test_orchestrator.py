import asyncio
import json
from datetime import date

import pytest

from itinerary_service.errors import GenerationError, ValidationError
from itinerary_service.schemas import PlaceResult


def _assert_structurally_valid(itinerary):
    assert [d.day for d in itinerary.days] == list(range(1, itinerary.duration + 1))
    assert itinerary.estimated_total_cost >= 0
    for day in itinerary.days:
        assert day.total_cost == day.itemized_cost()


def test_paris_template_scenario_never_calls_the_model(trip_payload, make_orchestrator, fakes):
    backend = fakes.Backend(fakes.itinerary_reply(4))
    orchestrator = make_orchestrator(backend=backend)

    itinerary = asyncio.run(
        orchestrator.generate(trip_payload(destination="Paris", start="2025-03-15", end="2025-03-18"))
    )

    assert itinerary.metadata.source == "template"
    assert itinerary.duration == 4
    assert len(itinerary.days) == 4
    assert itinerary.days[0].date == date(2025, 3, 15)
    assert itinerary.days[3].date == date(2025, 3, 18)
    assert backend.calls == []
    _assert_structurally_valid(itinerary)


def test_template_result_is_written_to_cache(trip_payload, make_orchestrator, fakes, settings):
    shared = fakes.SharedStore()
    orchestrator = make_orchestrator(shared=shared)

    asyncio.run(orchestrator.generate(trip_payload(destination="Tokyo", start="2025-03-15", end="2025-03-19")))

    assert len(shared.writes) == 1
    assert shared.entries[shared.writes[0]].ttl == settings.TEMPLATE_CACHE_TTL
    assert orchestrator.cache.stats()["size"] == 1


def test_nowhereland_timeout_scenario_falls_back(trip_payload, make_orchestrator, fakes, settings):
    backend = fakes.Backend(fakes.itinerary_reply(3), delay=5)
    shared = fakes.SharedStore()
    orchestrator = make_orchestrator(backend=backend, shared=shared)

    itinerary = asyncio.run(
        orchestrator.generate(trip_payload(destination="Nowhereland", start="2025-03-15", end="2025-03-17"))
    )

    assert itinerary.metadata.source == "fallback"
    assert len(itinerary.days) == 3
    assert itinerary.days[0].activities[0].title == "Airport Transfer & Hotel Check-in"
    assert len(itinerary.days[1].activities) == 4
    assert itinerary.days[2].activities[0].title == "Hotel Check-out"
    assert backend.cancelled
    assert shared.entries[shared.writes[0]].ttl == settings.FALLBACK_CACHE_TTL
    _assert_structurally_valid(itinerary)


@pytest.mark.parametrize(
    "reply",
    ["this is not json", '{"days": []}', GenerationError("upstream 500"), ConnectionError("reset")],
)
def test_unusable_model_output_falls_back(trip_payload, make_orchestrator, fakes, reply):
    orchestrator = make_orchestrator(backend=fakes.Backend(reply))

    itinerary = asyncio.run(
        orchestrator.generate(trip_payload(destination="Nowhereland", start="2025-03-15", end="2025-03-20"))
    )

    assert itinerary.metadata.source == "fallback"
    assert len(itinerary.days) == 6
    _assert_structurally_valid(itinerary)


def test_no_backend_configured_falls_back(trip_payload, make_orchestrator):
    itinerary = asyncio.run(make_orchestrator().generate(trip_payload(destination="Atlantis")))
    assert itinerary.metadata.source == "fallback"


def test_ai_itinerary_is_reconciled_and_cached(trip_payload, make_orchestrator, fakes, settings):
    shared = fakes.SharedStore()
    orchestrator = make_orchestrator(backend=fakes.Backend(fakes.itinerary_reply(2)), shared=shared)

    itinerary = asyncio.run(
        orchestrator.generate(trip_payload(destination="Nowhereland", start="2025-03-15", end="2025-03-16"))
    )

    assert itinerary.metadata.source == "ai"
    # 20 + 15 activities, 30 dinner; two adults
    assert [d.total_cost for d in itinerary.days] == [65, 65]
    assert itinerary.estimated_total_cost == 260
    assert shared.entries[shared.writes[0]].ttl == settings.AI_CACHE_TTL


def test_identical_request_is_served_from_cache(trip_payload, make_orchestrator, fakes):
    backend = fakes.Backend(fakes.itinerary_reply(3))
    orchestrator = make_orchestrator(backend=backend)
    payload = trip_payload(destination="Nowhereland", start="2025-03-15", end="2025-03-17")

    async def run():
        first = await orchestrator.generate(payload)
        second = await orchestrator.generate(payload)
        return first, second

    first, second = asyncio.run(run())

    assert len(backend.calls) == 1
    assert first.metadata.source == "ai"
    assert second.metadata.source == "cache"
    first_wire, second_wire = first.to_wire(), second.to_wire()
    first_wire["metadata"]["source"] = "cache"
    assert first_wire == second_wire


def test_cache_hit_is_rebased_onto_new_dates(trip_payload, make_orchestrator, fakes):
    backend = fakes.Backend(fakes.itinerary_reply(3))
    orchestrator = make_orchestrator(backend=backend)

    async def run():
        await orchestrator.generate(
            trip_payload(destination="Nowhereland", start="2025-03-15", end="2025-03-17")
        )
        return await orchestrator.generate(
            trip_payload(
                destination=" nowhereland ",
                start="2025-07-01",
                end="2025-07-03",
                budget={"amount": 2000},
            )
        )

    rebased = asyncio.run(run())
    assert len(backend.calls) == 1
    assert rebased.metadata.source == "cache"
    assert rebased.start_date == date(2025, 7, 1)
    assert [d.date for d in rebased.days] == [date(2025, 7, 1), date(2025, 7, 2), date(2025, 7, 3)]
    assert rebased.total_budget == 2000


def test_shared_cache_outage_never_fails_a_request(trip_payload, make_orchestrator, fakes):
    orchestrator = make_orchestrator(
        backend=fakes.Backend(fakes.itinerary_reply(2)), shared=fakes.SharedStore(fail=True)
    )
    payload = trip_payload(destination="Nowhereland", start="2025-03-15", end="2025-03-16")

    async def run():
        return [await orchestrator.generate(payload) for _ in range(2)]

    first, second = asyncio.run(run())
    assert first.metadata.source == "ai"
    assert second.metadata.source == "cache"


def test_enrichment_failure_is_isolated(trip_payload, make_orchestrator, fakes):
    places = fakes.Places(
        results={"Market Lunch": PlaceResult(place_id="lunch", rating=4.5)},
        failing=("Old Town Walk",),
    )
    orchestrator = make_orchestrator(backend=fakes.Backend(fakes.itinerary_reply(2)), places=places)

    itinerary = asyncio.run(
        orchestrator.generate(trip_payload(destination="Nowhereland", start="2025-03-15", end="2025-03-16"))
    )

    assert itinerary.metadata.source == "ai"
    for day in itinerary.days:
        walk, lunch = day.activities
        assert walk.place_id is None
        assert lunch.place_id == "lunch"
        assert lunch.rating == 4.5


def test_place_details_come_from_enrichment_only(trip_payload, make_orchestrator, fakes):
    payload = json.loads(fakes.itinerary_reply(2))
    for day in payload["days"]:
        day["activities"][0].update({"placeId": "invented", "imageUrl": "http://made.up/x.jpg"})
    places = fakes.Places(results={"Old Town Walk": PlaceResult(place_id="real", image_url="http://img/real")})
    orchestrator = make_orchestrator(backend=fakes.Backend(json.dumps(payload)), places=places)

    itinerary = asyncio.run(
        orchestrator.generate(trip_payload(destination="Nowhereland", start="2025-03-15", end="2025-03-16"))
    )

    assert itinerary.metadata.source == "ai"
    for day in itinerary.days:
        walk = day.activities[0]
        assert walk.place_id == "real"
        assert walk.image_url == "http://img/real"


def test_enrichment_can_be_disabled(trip_payload, make_orchestrator, fakes):
    places = fakes.Places()
    orchestrator = make_orchestrator(places=places, ENRICHMENT_ENABLED=False)
    asyncio.run(orchestrator.generate(trip_payload(destination="Nowhereland")))
    assert places.queries == []


def test_invalid_request_is_the_only_error(make_orchestrator):
    orchestrator = make_orchestrator()

    async def run():
        with pytest.raises(ValidationError):
            await orchestrator.generate({"destination": "", "dates": {}})

    asyncio.run(run())


def test_single_flight_shares_one_model_call(trip_payload, make_orchestrator, fakes):
    backend = fakes.Backend(fakes.itinerary_reply(2), delay=0.05)
    orchestrator = make_orchestrator(backend=backend, SINGLE_FLIGHT_ENABLED=True)
    payload = trip_payload(destination="Nowhereland", start="2025-03-15", end="2025-03-16")

    async def run():
        return await asyncio.gather(*(orchestrator.generate(payload) for _ in range(3)))

    results = asyncio.run(run())
    assert len(backend.calls) == 1
    assert {r.metadata.source for r in results} == {"ai"}
    assert orchestrator._inflight == {}


def test_without_single_flight_concurrent_misses_each_call_model(trip_payload, make_orchestrator, fakes):
    backend = fakes.Backend(fakes.itinerary_reply(2), delay=0.05)
    orchestrator = make_orchestrator(backend=backend)
    payload = trip_payload(destination="Nowhereland", start="2025-03-15", end="2025-03-16")

    async def run():
        return await asyncio.gather(*(orchestrator.generate(payload) for _ in range(2)))

    asyncio.run(run())
    assert len(backend.calls) == 2


def test_score_is_bounded(trip_payload, make_orchestrator):
    orchestrator = make_orchestrator()
    assert 0 <= orchestrator.score(trip_payload()) <= 100
