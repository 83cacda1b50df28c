# itinerary_service/llm.py
from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Protocol

from openai import AsyncOpenAI
from pydantic import ValidationError as PydanticValidationError

from itinerary_service.agents.destination_templates import Template
from itinerary_service.config import Settings
from itinerary_service.errors import GenerationError, GenerationTimeoutError
from itinerary_service.schemas import Itinerary, TripRequest, assign_activity_ids
from itinerary_service.tools.json_extract import extract_json_object

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

SYSTEM_PROMPT = """You are an expert travel planner creating personalized, detailed itineraries.
Key guidelines:
1. Create realistic, well-paced days with specific times and durations.
2. Mix popular attractions with local experiences.
3. Account for travel time between locations, meal times and rest.
4. Respect the traveler's budget and the needs of every traveler (adults and children).
5. Provide practical tips and local insights.
Always respond with a valid JSON object matching the requested format.
Do not include any explanatory text outside the JSON.
"""

ITINERARY_SHAPE = """{
  "destination": "{destination}",
  "duration": {duration},
  "days": [
    {
      "day": 1,
      "date": "YYYY-MM-DD",
      "title": "Arrival and City Orientation",
      "description": "Brief description of the day",
      "activities": [
        {
          "id": "unique-id",
          "time": "14:00",
          "title": "Activity name",
          "description": "Detailed description",
          "duration": "2 hours",
          "location": "Specific location",
          "category": "dining|activity|transport|accommodation|tour",
          "price": 50,
          "tips": ["Tip 1", "Tip 2"]
        }
      ],
      "accommodation": {"name": "Hotel", "type": "hotel", "price": 120, "location": "Area"},
      "meals": [{"type": "dinner", "venue": "Restaurant", "cuisine": "Local", "price": 30}]
    }
  ],
  "highlights": ["Key experience 1", "Key experience 2"],
  "tips": ["Practical tip 1", "Practical tip 2"]
}"""

ADAPTATION_SYSTEM = """You adjust existing travel itineraries to a new trip length.
Keep the style, venues and pacing of the original days where possible.
Respond ONLY with a JSON object of the form {"days": [...]} where every day has
title, description, activities (id, time, title, description, duration, location,
category, price, tips), accommodation and meals.
"""

ADAPTATION_TEMPLATE = """The {destination} itinerary below covers {template_days} days.
Rewrite it as exactly {duration} days for {travelers}.
Interests: {interests}

Original days:
{days}
"""


class CompletionBackend(Protocol):
    async def complete(
        self,
        prompt: str,
        *,
        system: str,
        model: str,
        max_tokens: int,
        temperature: float,
        timeout_s: float,
    ) -> str:
        ...


class OpenAICompletionBackend:
    """Chat completions through the async OpenAI SDK, always in JSON mode."""

    def __init__(self, api_key: str, *, client: Optional[AsyncOpenAI] = None):
        self._client = client or AsyncOpenAI(api_key=api_key)

    async def complete(
        self,
        prompt: str,
        *,
        system: str,
        model: str,
        max_tokens: int,
        temperature: float,
        timeout_s: float,
    ) -> str:
        resp = await self._client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
            response_format={"type": "json_object"},
            timeout=timeout_s,
        )
        return resp.choices[0].message.content or ""


@dataclass(frozen=True)
class GenerationContext:
    timeout_s: float
    model: str
    max_tokens: int
    temperature: float

    @classmethod
    def for_generation(cls, settings: Settings) -> "GenerationContext":
        return cls(
            timeout_s=settings.GENERATION_TIMEOUT_S,
            model=settings.OPENAI_MODEL,
            max_tokens=settings.OPENAI_MAX_TOKENS,
            temperature=settings.OPENAI_TEMPERATURE,
        )

    @classmethod
    def for_adaptation(cls, settings: Settings) -> "GenerationContext":
        return cls(
            timeout_s=settings.ADAPTATION_TIMEOUT_S,
            model=settings.OPENAI_MODEL,
            max_tokens=settings.ADAPTATION_MAX_TOKENS,
            temperature=settings.OPENAI_TEMPERATURE,
        )


def _format_date(value) -> str:
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def _summarise_travelers(request: TripRequest) -> str:
    adults = request.travelers.adults
    children = request.travelers.children
    text = f"{adults} adult{'s' if adults != 1 else ''}"
    if children:
        text += f", {children} child{'ren' if children != 1 else ''}"
    return text


def build_itinerary_prompt(request: TripRequest) -> str:
    """Render the user prompt for a full itinerary."""
    lines = [
        f"Create a {request.duration}-day itinerary for {request.destination}.",
        "",
        f"Travel dates: {_format_date(request.dates.start_date)} to {_format_date(request.dates.end_date)}",
        f"Travelers: {_summarise_travelers(request)}",
    ]
    if request.budget is not None and request.budget.amount is not None:
        scope = "per person" if request.budget.per_person else "total"
        lines.append(f"Budget: {request.budget.amount:g} {request.budget.currency} {scope}")
    else:
        lines.append("Budget: flexible")
    if request.interests:
        lines.append(f"Interests: {', '.join(request.interests)}")
    lines.append("")
    lines.append(f"Return exactly {request.duration} days in a JSON object with this structure:")
    lines.append(
        ITINERARY_SHAPE.replace("{destination}", request.destination).replace(
            "{duration}", str(request.duration)
        )
    )
    return "\n".join(lines)


class GenerationClient:
    """Time-bounded access to the completion backend.

    Every call is raced against a wall-clock bound; on expiry the in-flight
    call is cancelled and :class:`GenerationTimeoutError` is raised.
    """

    def __init__(self, backend: Optional[CompletionBackend], settings: Settings):
        self.backend = backend
        self.settings = settings

    async def complete_bounded(self, prompt: str, system: str, context: GenerationContext) -> str:
        if self.backend is None:
            raise GenerationError("No completion backend configured")

        logger.info("Invoking model %s (timeout %.1fs)", context.model, context.timeout_s)
        task = asyncio.ensure_future(
            self.backend.complete(
                prompt,
                system=system,
                model=context.model,
                max_tokens=context.max_tokens,
                temperature=context.temperature,
                timeout_s=context.timeout_s,
            )
        )
        try:
            return await asyncio.wait_for(task, timeout=context.timeout_s)
        except asyncio.TimeoutError:
            raise GenerationTimeoutError(
                f"Completion exceeded {context.timeout_s:.1f}s and was cancelled"
            ) from None
        except GenerationError:
            raise
        except Exception as exc:
            raise GenerationError(f"Completion call failed: {exc}") from exc

    async def generate_itinerary(
        self, request: TripRequest, context: Optional[GenerationContext] = None
    ) -> Itinerary:
        context = context or GenerationContext.for_generation(self.settings)
        raw = await self.complete_bounded(build_itinerary_prompt(request), SYSTEM_PROMPT, context)
        parsed = extract_json_object(raw)
        if not parsed.ok:
            raise GenerationError(f"Model reply was not usable JSON: {parsed.error}")
        itinerary = self._to_itinerary(parsed.value, request)
        logger.info(
            "Model itinerary parsed for %s with %d days", request.destination, len(itinerary.days)
        )
        return itinerary

    async def adapt_template_days(
        self,
        template: Template,
        request: TripRequest,
        context: Optional[GenerationContext] = None,
    ) -> List[Dict[str, Any]]:
        """Ask the model to stretch or shrink ``template`` to the request's length.

        Returns dateless day dicts with unique activity ids.
        """
        context = context or GenerationContext.for_adaptation(self.settings)
        prompt = ADAPTATION_TEMPLATE.format(
            destination=template.destination,
            template_days=template.duration,
            duration=request.duration,
            travelers=_summarise_travelers(request),
            interests=", ".join(request.interests) if request.interests else "none stated",
            days=json.dumps(list(template.days), ensure_ascii=False),
        )
        raw = await self.complete_bounded(prompt, ADAPTATION_SYSTEM, context)
        parsed = extract_json_object(raw)
        if not parsed.ok:
            raise GenerationError(f"Adaptation reply was not usable JSON: {parsed.error}")
        days = _day_list(parsed.value, request.duration)
        for day in days:
            day.pop("day", None)
            day.pop("date", None)
        return assign_activity_ids(days)

    def _to_itinerary(self, payload: Dict[str, Any], request: TripRequest) -> Itinerary:
        if isinstance(payload.get("itinerary"), dict):
            payload = payload["itinerary"]
        days = _day_list(payload, request.duration)
        start = request.dates.start_date
        for offset, day in enumerate(days):
            day["day"] = offset + 1
            day["date"] = (start + timedelta(days=offset)).isoformat()
            if not day.get("title"):
                day["title"] = f"Day {offset + 1}"
        days = assign_activity_ids(days)

        data = {
            "destination": str(payload.get("destination") or request.destination),
            "duration": request.duration,
            "start_date": request.dates.start_date,
            "end_date": request.dates.end_date,
            "travelers": request.travelers,
            "total_budget": request.total_budget,
            "days": days,
            "highlights": _strings(payload.get("highlights")),
            "tips": _strings(payload.get("tips")),
            "metadata": {"generated_at": datetime.now(timezone.utc), "source": "ai"},
        }
        try:
            return Itinerary.model_validate(data)
        except PydanticValidationError as exc:
            raise GenerationError(f"Model itinerary failed validation: {exc}") from exc


# Only place enrichment may set these on an activity.
_PLACE_FIELDS = frozenset({"placeId", "place_id", "imageUrl", "image_url", "rating"})


def _day_list(payload: Dict[str, Any], duration: int) -> List[Dict[str, Any]]:
    days = payload.get("days")
    if not isinstance(days, list) or not all(isinstance(d, dict) for d in days):
        raise GenerationError("Model reply has no list of day objects")
    if len(days) != duration:
        raise GenerationError(f"Model returned {len(days)} days, expected {duration}")
    cleaned: List[Dict[str, Any]] = []
    for day in days:
        day = dict(day)
        day.pop("totalCost", None)
        day.pop("total_cost", None)
        activities = day.get("activities")
        if isinstance(activities, list):
            day["activities"] = [
                {k: v for k, v in act.items() if k not in _PLACE_FIELDS} if isinstance(act, dict) else act
                for act in activities
            ]
        cleaned.append(day)
    return cleaned


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]
