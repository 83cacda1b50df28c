# debug_orchestrator.py
import asyncio
import json

from itinerary_service.config import settings
from itinerary_service.orchestrator import build_orchestrator


async def main():
    payload = {
        "destination": "Kyoto",
        "dates": {"startDate": "2025-10-10", "endDate": "2025-10-14"},
        "travelers": {"adults": 2, "children": 1},
        "budget": {"amount": 4500, "currency": "USD", "perPerson": False},
        "interests": ["culture", "food", "temples", "kid-friendly"],
    }

    orchestrator = build_orchestrator(settings)
    try:
        # First call generates, second should be served from the cache
        for attempt in (1, 2):
            itinerary = await orchestrator.generate(payload)
            print(f"➡️ Attempt {attempt}: source={itinerary.metadata.source}\n")
        print(json.dumps(itinerary.to_wire(), indent=2))
        print(f"\nEngagement score: {orchestrator.score(payload)}")
        print(f"Cache: {json.dumps(orchestrator.cache.stats())}")
    finally:
        await orchestrator.close()


if __name__ == "__main__":
    asyncio.run(main())
