"""Lookup and materialization of pre-built destination templates."""
from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from itinerary_service.agents.cost_aggregator import reconcile_costs
from itinerary_service.agents.destination_templates import DEFAULT_TEMPLATES, Template
from itinerary_service.agents.request_normalizer import normalize_destination
from itinerary_service.schemas import Day, Itinerary, ItineraryMetadata, TripRequest

if TYPE_CHECKING:
    from itinerary_service.llm import GenerationClient, GenerationContext

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False


def adapt_days_deterministically(template: Template, duration: int) -> List[Dict[str, Any]]:
    """Truncate or cyclically repeat the template's days to ``duration`` days.

    Activities on repeated days get a ``-d<N>`` id suffix, N being the new day
    number, so ids stay unique across the itinerary.
    """
    if duration < 1:
        raise ValueError("duration must be at least 1")
    days: List[Dict[str, Any]] = []
    size = len(template.days)
    for index in range(duration):
        source = template.days[index % size]
        day = dict(source)
        activities = [dict(a) for a in source.get("activities") or []]
        if index >= size:
            for activity in activities:
                activity["id"] = f"{activity['id']}-d{index + 1}"
        day["activities"] = activities
        days.append(day)
    return days


def merge_adapted_days(template: Template, adapted: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Fill accommodation and meals missing from model-adapted days.

    Gaps are taken from the template day at the same cyclic position.
    """
    merged: List[Dict[str, Any]] = []
    size = len(template.days)
    for index, raw in enumerate(adapted):
        source = template.days[index % size]
        day = dict(raw)
        if not day.get("accommodation") and source.get("accommodation"):
            day["accommodation"] = dict(source["accommodation"])
        if not day.get("meals") and source.get("meals"):
            day["meals"] = [dict(m) for m in source["meals"]]
        day.setdefault("title", source.get("title", f"Day {index + 1}"))
        merged.append(day)
    return merged


class TemplateCatalog:
    """Exact-match index of destination templates.

    Templates are validated once at construction; each lookup hands back the
    shared immutable :class:`Template` and ``materialize`` builds fresh models
    from it.
    """

    def __init__(self, templates: Iterable[Template] = DEFAULT_TEMPLATES):
        self._templates: List[Template] = []
        self._index: Dict[str, Template] = {}
        for template in templates:
            if len(template.days) != template.duration:
                raise ValueError(
                    f"Template {template.destination!r} declares {template.duration} days "
                    f"but ships {len(template.days)}"
                )
            self._templates.append(template)
            for name in (template.destination, *template.aliases):
                self._index.setdefault(normalize_destination(name), template)

    @property
    def templates(self) -> List[Template]:
        return list(self._templates)

    def lookup(self, destination: str) -> Optional[Template]:
        return self._index.get(normalize_destination(destination))

    def materialize(
        self,
        template: Template,
        request: TripRequest,
        days: Optional[List[Dict[str, Any]]] = None,
        *,
        generated_at: Optional[datetime] = None,
    ) -> Itinerary:
        """Date the template (or adapted) day skeletons for ``request``."""
        skeletons = list(days) if days is not None else list(template.days)
        start = request.dates.start_date
        built: List[Day] = []
        for offset, skeleton in enumerate(skeletons):
            data = dict(skeleton)
            data["day"] = offset + 1
            data["date"] = start + timedelta(days=offset)
            data.pop("totalCost", None)
            data.pop("total_cost", None)
            built.append(Day.model_validate(data))

        itinerary = Itinerary(
            destination=template.destination,
            duration=request.duration,
            start_date=start,
            end_date=request.dates.end_date,
            travelers=request.travelers,
            total_budget=request.total_budget,
            days=built,
            highlights=list(template.highlights),
            tips=list(template.tips),
            metadata=ItineraryMetadata(
                generated_at=generated_at or datetime.now(timezone.utc),
                source="template",
            ),
        )
        return reconcile_costs(itinerary)

    async def build_for_request(
        self,
        template: Template,
        request: TripRequest,
        generator: Optional["GenerationClient"] = None,
        context: Optional["GenerationContext"] = None,
    ) -> Itinerary:
        """Materialize ``template`` for ``request``, adapting its length if needed.

        A different trip length is first handed to the model; any failure there
        falls back to truncating or repeating the template's days. Never raises
        for generation problems.
        """
        if request.duration == template.duration:
            return self.materialize(template, request)

        if generator is not None:
            try:
                adapted = await generator.adapt_template_days(template, request, context)
                return self.materialize(template, request, merge_adapted_days(template, adapted))
            except Exception:
                logger.warning(
                    "Template adaptation for %s (%d -> %d days) failed; repeating template days",
                    template.destination,
                    template.duration,
                    request.duration,
                    exc_info=True,
                )

        return self.materialize(
            template, request, adapt_days_deterministically(template, request.duration)
        )
