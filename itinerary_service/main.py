from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError as PydanticValidationError

from itinerary_service.config import settings
from itinerary_service.errors import ValidationError
from itinerary_service.orchestrator import ItineraryOrchestrator, build_orchestrator
from itinerary_service.schemas import LeadContact


@asynccontextmanager
async def lifespan(app: FastAPI):
    owned = getattr(app.state, "orchestrator", None) is None
    if owned:
        app.state.orchestrator = build_orchestrator(settings)
    try:
        yield
    finally:
        if owned:
            await app.state.orchestrator.close()
            app.state.orchestrator = None


app = FastAPI(title="Itinerary Generation API", lifespan=lifespan)

# Operators can scope browser access via ITINERARY_ALLOWED_ORIGINS.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _orchestrator(request: Request) -> ItineraryOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        orchestrator = build_orchestrator(settings)
        request.app.state.orchestrator = orchestrator
    return orchestrator


@app.post("/api/itinerary")
async def api_itinerary(request: Request, payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """Generate an itinerary and score the request as a lead."""
    payload = dict(payload)
    raw_contact = payload.pop("contact", None)
    try:
        contact = LeadContact.model_validate(raw_contact) if raw_contact else None
    except PydanticValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False)) from exc

    orchestrator = _orchestrator(request)
    try:
        itinerary = await orchestrator.generate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors) from exc

    return {
        "itinerary": itinerary.to_wire(),
        "engagementScore": orchestrator.score(payload, contact),
    }


@app.get("/api/itinerary/cache")
async def api_cache_stats(request: Request) -> Dict[str, Any]:
    """Local cache occupancy, for operators."""
    return _orchestrator(request).cache.stats()
