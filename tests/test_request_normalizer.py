import pytest

from itinerary_service.agents.request_normalizer import build_cache_key, normalize_request
from itinerary_service.errors import ValidationError


def test_duration_is_inclusive_day_count(trip_payload):
    normalized = normalize_request(trip_payload(start="2025-03-15", end="2025-03-18"))
    assert normalized.request.duration == 4

    same_day = normalize_request(trip_payload(start="2025-03-15", end="2025-03-15"))
    assert same_day.request.duration == 1


def test_defaults_are_applied():
    normalized = normalize_request(
        {"destination": "  Lisbon ", "dates": {"startDate": "2025-05-01", "endDate": "2025-05-03"}}
    )
    request = normalized.request
    assert request.destination == "Lisbon"
    assert request.travelers.adults == 2
    assert request.travelers.children == 0
    assert request.interests == ()
    assert request.budget is None
    assert request.total_budget is None


def test_snake_case_payload_is_accepted():
    normalized = normalize_request(
        {
            "destination": "Lisbon",
            "dates": {"start_date": "2025-05-01", "end_date": "2025-05-02"},
            "budget": {"amount": 800, "per_person": True},
            "travelers": {"adults": 1, "children": 2},
        }
    )
    assert normalized.request.budget.currency == "USD"
    assert normalized.request.total_budget == 2400


def test_interests_form_an_ordered_set(trip_payload):
    request = normalize_request(
        trip_payload(interests=[" Food ", "culture", "food", "", "CULTURE", "Night life"])
    ).request
    assert request.interests == ("Food", "culture", "Night life")


def test_equivalent_requests_share_a_cache_key(trip_payload):
    a = normalize_request(trip_payload(destination="Buenos Aires", interests=["food", "Tango"]))
    b = normalize_request(trip_payload(destination="  buenos   AIRES ", interests=["tango", "FOOD"]))
    assert a.cache_key == b.cache_key
    assert a.cache_key.startswith("itinerary:v1:")
    assert len(a.cache_key) == len("itinerary:v1:") + 64


def test_dates_and_budget_are_not_key_components(trip_payload):
    a = normalize_request(trip_payload(start="2025-03-15", end="2025-03-18"))
    b = normalize_request(
        trip_payload(start="2025-06-01", end="2025-06-04", budget={"amount": 9000})
    )
    assert a.cache_key == b.cache_key


def test_party_and_duration_change_the_key(trip_payload):
    base = normalize_request(trip_payload())
    more_people = normalize_request(trip_payload(travelers={"adults": 3}))
    longer = normalize_request(trip_payload(end="2025-03-19"))
    assert base.cache_key != more_people.cache_key
    assert base.cache_key != longer.cache_key
    assert build_cache_key(base.request) == base.cache_key


def test_existing_request_passes_through(trip_payload):
    first = normalize_request(trip_payload())
    again = normalize_request(first.request)
    assert again.request is first.request
    assert again.cache_key == first.cache_key


@pytest.mark.parametrize(
    "override, field",
    [
        ({"destination": "   "}, "destination"),
        ({"dates": {"startDate": "2025-03-18", "endDate": "2025-03-15"}}, ""),
        ({"dates": {"startDate": "not-a-date", "endDate": "2025-03-15"}}, "dates.startDate"),
        ({"travelers": {"adults": 0}}, "travelers.adults"),
        ({"travelers": {"adults": 2, "children": -1}}, "travelers.children"),
        ({"budget": {"amount": -5}}, "budget.amount"),
    ],
)
def test_invalid_requests_raise_validation_error(trip_payload, override, field):
    payload = trip_payload()
    payload.update(override)
    with pytest.raises(ValidationError) as excinfo:
        normalize_request(payload)
    assert excinfo.value.errors
    assert any(err["field"] == field for err in excinfo.value.errors)


def test_null_traveler_counts_take_defaults(trip_payload):
    request = normalize_request(trip_payload(travelers={"adults": None, "children": None})).request
    assert request.travelers.adults == 2
    assert request.travelers.children == 0


def test_missing_dates_and_destination_are_reported():
    with pytest.raises(ValidationError) as excinfo:
        normalize_request({"travelers": {"adults": 2}})
    fields = {err["field"] for err in excinfo.value.errors}
    assert {"destination", "dates"} <= fields


def test_non_mapping_payload_is_rejected():
    with pytest.raises(ValidationError):
        normalize_request(["Paris"])
