"""Cost reconciliation and engagement scoring for generated itineraries."""
from __future__ import annotations

from typing import Optional

from itinerary_service.schemas import Itinerary, LeadContact, Travelers, TripRequest

ADULT_COST_FACTOR = 1.0
CHILD_COST_FACTOR = 0.5

HIGH_INTENT_INTERESTS = ("luxury", "spa", "fine-dining", "private-tours")


def traveler_multiplier(travelers: Travelers) -> float:
    return travelers.adults * ADULT_COST_FACTOR + travelers.children * CHILD_COST_FACTOR


def reconcile_costs(itinerary: Itinerary) -> Itinerary:
    """Recompute every day total and the estimated trip cost.

    Totals supplied by templates, the model or a cache entry are ignored; the
    numbers always come from the itemized activity and meal prices.
    """
    days = [
        day.model_copy(update={"total_cost": day.itemized_cost()}, deep=True)
        for day in itinerary.days
    ]
    subtotal = sum(day.total_cost for day in days)
    estimated = round(subtotal * traveler_multiplier(itinerary.travelers), 2)
    return itinerary.model_copy(update={"days": days, "estimated_total_cost": estimated})


def score_engagement(request: TripRequest, contact: Optional[LeadContact] = None) -> int:
    """Score how promising a trip request is as a sales lead, in [0, 100]."""
    score = 0

    budget = request.total_budget or 0.0
    if budget > 5000:
        score += 30
    elif budget > 3000:
        score += 20
    elif budget > 1500:
        score += 10

    if request.duration > 14:
        score += 25
    elif request.duration > 7:
        score += 15
    elif request.duration > 3:
        score += 10

    party = request.travelers.party_size
    if party > 4:
        score += 20
    elif party > 2:
        score += 10
    elif party > 1:
        score += 5

    if contact is not None:
        if contact.email:
            score += 10
        if contact.name:
            score += 5
        if contact.phone:
            score += 10

    for interest in request.interests:
        slug = "-".join(interest.lower().replace("_", " ").split())
        if any(term in slug for term in HIGH_INTENT_INTERESTS):
            score += 5

    return max(0, min(score, 100))
