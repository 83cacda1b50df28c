"""Deterministic itinerary used when no template, cache entry or model reply is available."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from itinerary_service.agents.cost_aggregator import traveler_multiplier
from itinerary_service.schemas import Activity, Day, Itinerary, ItineraryMetadata, TripRequest


def _arrival(day: int, destination: str) -> List[Activity]:
    return [
        Activity(
            id=f"day-{day}-arrival",
            time="14:00",
            title="Airport Transfer & Hotel Check-in",
            description="Arrive at your destination and settle into your accommodation",
            duration="2 hours",
            location=destination,
            category="transport",
            price=50,
        ),
        Activity(
            id=f"day-{day}-dinner",
            time="19:00",
            title="Welcome Dinner",
            description="Enjoy local cuisine at a recommended restaurant",
            duration="2 hours",
            location=destination,
            category="dining",
            price=40,
        ),
    ]


def _departure(day: int, destination: str) -> List[Activity]:
    return [
        Activity(
            id=f"day-{day}-checkout",
            time="10:00",
            title="Hotel Check-out",
            description="Check out from your accommodation",
            duration="30 minutes",
            location=destination,
            category="accommodation",
            price=0,
        ),
        Activity(
            id=f"day-{day}-departure",
            time="12:00",
            title="Airport Transfer",
            description="Transfer to the airport for departure",
            duration="1 hour",
            location=destination,
            category="transport",
            price=50,
        ),
    ]


def _standard(day: int, destination: str) -> List[Activity]:
    return [
        Activity(
            id=f"day-{day}-morning",
            time="09:00",
            title=f"Explore {destination} - Morning",
            description="Discover popular attractions and landmarks",
            duration="3 hours",
            location=destination,
            category="activity",
            price=30,
        ),
        Activity(
            id=f"day-{day}-lunch",
            time="12:30",
            title="Lunch Break",
            description="Enjoy lunch at a local restaurant",
            duration="1.5 hours",
            location=destination,
            category="dining",
            price=25,
        ),
        Activity(
            id=f"day-{day}-afternoon",
            time="14:30",
            title=f"{destination} Cultural Experience",
            description="Immerse yourself in local culture and traditions",
            duration="3 hours",
            location=destination,
            category="activity",
            price=40,
        ),
        Activity(
            id=f"day-{day}-dinner",
            time="19:00",
            title="Dinner",
            description="Evening meal at a recommended restaurant",
            duration="2 hours",
            location=destination,
            category="dining",
            price=35,
        ),
    ]


def build_fallback_itinerary(
    request: TripRequest, *, generated_at: Optional[datetime] = None
) -> Itinerary:
    """Build a structurally complete itinerary from fixed day patterns.

    Multi-day trips open with an arrival day and close with a departure day;
    every other day (and a single-day trip) follows the standard pattern.
    """
    destination = request.destination
    duration = request.duration
    start = request.dates.start_date

    days: List[Day] = []
    for index in range(duration):
        number = index + 1
        if duration > 1 and index == 0:
            activities = _arrival(number, destination)
            title = f"Arrival in {destination}"
        elif duration > 1 and index == duration - 1:
            activities = _departure(number, destination)
            title = "Departure Day"
        else:
            activities = _standard(number, destination)
            title = f"Exploring {destination}"
        days.append(
            Day(
                day=number,
                date=start + timedelta(days=index),
                title=title,
                description=f"Day {number} of your {destination} adventure",
                activities=activities,
                total_cost=sum(a.price or 0.0 for a in activities),
            )
        )

    subtotal = sum(d.total_cost for d in days)
    return Itinerary(
        destination=destination,
        duration=duration,
        start_date=start,
        end_date=request.dates.end_date,
        travelers=request.travelers,
        total_budget=request.total_budget,
        days=days,
        highlights=[
            f"Explore the best of {destination}",
            "Experience local culture and cuisine",
            "Visit top attractions",
            "Enjoy comfortable accommodations",
        ],
        tips=[
            "Book accommodations in advance",
            "Check visa requirements",
            "Purchase travel insurance",
            "Learn basic local phrases",
        ],
        estimated_total_cost=round(subtotal * traveler_multiplier(request.travelers), 2),
        metadata=ItineraryMetadata(
            generated_at=generated_at or datetime.now(timezone.utc),
            source="fallback",
        ),
    )
