"""Utility agent that validates raw trip payloads and derives their cache key."""
from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from itinerary_service.errors import ValidationError
from itinerary_service.schemas import TripRequest

CACHE_KEY_PREFIX = "itinerary:v1:"


@dataclass(frozen=True)
class NormalizedRequest:
    request: TripRequest
    cache_key: str


def normalize_destination(destination: str) -> str:
    """Casefold and collapse whitespace so equivalent spellings compare equal."""
    return " ".join(str(destination).split()).casefold()


def build_cache_key(request: TripRequest) -> str:
    """Return a stable key for every request that should share an itinerary.

    Dates and budget are not part of the key; a cached itinerary is rebased
    onto the caller's dates and budget when it is served.
    """
    components = {
        "destination": normalize_destination(request.destination),
        "duration": request.duration,
        "adults": request.travelers.adults,
        "children": request.travelers.children,
        "interests": sorted(i.casefold() for i in request.interests),
    }
    canonical = json.dumps(components, sort_keys=True, separators=(",", ":"), ensure_ascii=True)
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"{CACHE_KEY_PREFIX}{digest}"


def normalize_request(payload: Any) -> NormalizedRequest:
    """Validate ``payload`` into a :class:`TripRequest` and compute its cache key.

    ``payload`` may be the parsed JSON body or an existing ``TripRequest``.
    Raises :class:`ValidationError` with one entry per offending field.
    """
    if isinstance(payload, TripRequest):
        request = payload
    elif isinstance(payload, dict):
        try:
            request = TripRequest.model_validate(payload)
        except PydanticValidationError as exc:
            errors = _field_errors(exc)
            summary = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
            raise ValidationError(f"Invalid trip request: {summary}", errors) from exc
    else:
        raise ValidationError(
            "Invalid trip request: expected a JSON object",
            [{"field": "", "message": f"unsupported payload type {type(payload).__name__}"}],
        )
    return NormalizedRequest(request=request, cache_key=build_cache_key(request))


def _field_errors(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    errors: List[Dict[str, Any]] = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()))
        message = str(err.get("msg", "invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": field, "message": message, "type": err.get("type")})
    return errors
