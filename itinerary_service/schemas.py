from __future__ import annotations

import datetime as dt
import re
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

ActivityCategory = Literal["dining", "activity", "transport", "accommodation", "tour"]
GenerationSource = Literal["template", "cache", "ai", "fallback"]

# Model output and legacy templates use a looser vocabulary than the five
# categories the itinerary exposes.
_CATEGORY_SYNONYMS: Dict[str, str] = {
    "dining": "dining",
    "restaurant": "dining",
    "food": "dining",
    "meal": "dining",
    "cafe": "dining",
    "transport": "transport",
    "transfer": "transport",
    "transportation": "transport",
    "flight": "transport",
    "train": "transport",
    "accommodation": "accommodation",
    "hotel": "accommodation",
    "lodging": "accommodation",
    "check-in": "accommodation",
    "tour": "tour",
    "guided tour": "tour",
    "excursion": "tour",
}

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")


class _WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python; either is accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# ------- Request models -------
class Dates(_WireModel):
    model_config = ConfigDict(frozen=True)

    start_date: dt.date
    end_date: dt.date


class Travelers(_WireModel):
    model_config = ConfigDict(frozen=True)

    adults: int = Field(2, ge=1)
    children: int = Field(0, ge=0)

    @field_validator("adults", "children", mode="before")
    @classmethod
    def _default_when_unset(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @property
    def party_size(self) -> int:
        return self.adults + self.children


class Budget(_WireModel):
    model_config = ConfigDict(frozen=True)

    amount: Optional[float] = Field(None, ge=0)
    currency: str = "USD"
    per_person: bool = False


class TripRequest(_WireModel):
    model_config = ConfigDict(frozen=True)

    destination: str
    dates: Dates
    travelers: Travelers = Field(default_factory=Travelers)
    budget: Optional[Budget] = None
    interests: Tuple[str, ...] = ()

    @field_validator("destination", mode="before")
    @classmethod
    def _strip_destination(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = " ".join(value.split())
            if not value:
                raise ValueError("destination must not be empty")
        return value

    @field_validator("travelers", mode="before")
    @classmethod
    def _default_travelers(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("interests", mode="before")
    @classmethod
    def _ordered_interest_set(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        seen: set[str] = set()
        ordered: List[str] = []
        for item in value:
            if item is None:
                continue
            text = " ".join(str(item).split())
            if not text or text.casefold() in seen:
                continue
            seen.add(text.casefold())
            ordered.append(text)
        return tuple(ordered)

    @model_validator(mode="after")
    def _check_date_range(self) -> "TripRequest":
        if self.dates.end_date < self.dates.start_date:
            raise ValueError("dates.endDate must not be before dates.startDate")
        return self

    @property
    def duration(self) -> int:
        return (self.dates.end_date - self.dates.start_date).days + 1

    @property
    def total_budget(self) -> Optional[float]:
        if self.budget is None or self.budget.amount is None:
            return None
        if self.budget.per_person:
            return round(self.budget.amount * self.travelers.party_size, 2)
        return self.budget.amount


class LeadContact(_WireModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


# ------- Itinerary models -------
class Activity(_WireModel):
    id: str
    time: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    title: str
    description: str = ""
    duration: str = ""
    location: str = ""
    category: ActivityCategory = Field("activity", validation_alias=AliasChoices("category", "type"))
    price: Optional[float] = Field(None, ge=0)
    tips: List[str] = Field(default_factory=list)
    place_id: Optional[str] = None
    image_url: Optional[str] = None
    rating: Optional[float] = None

    @field_validator("time", mode="before")
    @classmethod
    def _pad_time(cls, value: Any) -> Any:
        if isinstance(value, str):
            match = _TIME_RE.match(value.strip())
            if match:
                hour, minute = int(match.group(1)), int(match.group(2))
                if hour > 23 or minute > 59:
                    raise ValueError(f"time {value!r} is not a valid HH:MM clock time")
                return f"{hour:02d}:{minute:02d}"
        return value

    @field_validator("duration", mode="before")
    @classmethod
    def _minutes_to_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            minutes = int(value) if float(value).is_integer() else value
            return f"{minutes} minutes"
        return value

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> Any:
        if value is None:
            return "activity"
        return _CATEGORY_SYNONYMS.get(str(value).strip().lower(), "activity")


class Meal(_WireModel):
    type: str
    venue: str = ""
    cuisine: str = ""
    price: float = Field(0.0, ge=0)


class Accommodation(_WireModel):
    name: str
    type: str = "hotel"
    price: float = Field(0.0, ge=0)
    location: str = ""


class Day(_WireModel):
    day: int = Field(..., ge=1)
    date: dt.date
    title: str
    description: str = ""
    activities: List[Activity] = Field(default_factory=list)
    accommodation: Optional[Accommodation] = None
    meals: List[Meal] = Field(default_factory=list)
    total_cost: float = Field(0.0, ge=0)

    def itemized_cost(self) -> float:
        """Sum of activity and meal prices; accommodation is quoted separately."""
        activities = sum(a.price or 0.0 for a in self.activities)
        meals = sum(m.price for m in self.meals)
        return round(activities + meals, 2)


class ItineraryMetadata(_WireModel):
    generated_at: dt.datetime
    source: GenerationSource
    version: str = "1.0"


class Itinerary(_WireModel):
    destination: str
    duration: int = Field(..., ge=1)
    start_date: dt.date
    end_date: dt.date
    travelers: Travelers
    total_budget: Optional[float] = None
    days: List[Day]
    highlights: List[str] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)
    estimated_total_cost: float = Field(0.0, ge=0)
    metadata: ItineraryMetadata

    @model_validator(mode="after")
    def _check_structure(self) -> "Itinerary":
        numbers = [d.day for d in self.days]
        if numbers != list(range(1, self.duration + 1)):
            raise ValueError(
                f"day numbers must be 1..{self.duration} without gaps, got {numbers}"
            )
        ids = [a.id for d in self.days for a in d.activities]
        if len(ids) != len(set(ids)):
            raise ValueError("activity ids must be unique within an itinerary")
        return self

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def assign_activity_ids(days: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Give every raw activity dict an id that is unique across ``days``.

    Missing ids become ``day<N>-act<M>``; repeated ids get a ``-d<N>`` suffix
    (and a counter if that still collides). Returns new day dicts.
    """
    seen: set[str] = set()
    result: List[Dict[str, Any]] = []
    for day_index, raw_day in enumerate(days, start=1):
        day = dict(raw_day)
        activities: List[Dict[str, Any]] = []
        for act_index, raw_act in enumerate(day.get("activities") or [], start=1):
            if not isinstance(raw_act, dict):
                continue
            act = dict(raw_act)
            ident = str(act.get("id") or "").strip() or f"day{day_index}-act{act_index}"
            if ident in seen:
                base = f"{ident}-d{day_index}"
                ident, counter = base, 2
                while ident in seen:
                    ident = f"{base}-{counter}"
                    counter += 1
            seen.add(ident)
            act["id"] = ident
            activities.append(act)
        day["activities"] = activities
        result.append(day)
    return result


class PlaceResult(_WireModel):
    place_id: str
    name: str = ""
    address: str = ""
    rating: Optional[float] = None
    image_url: Optional[str] = None
    tips: List[str] = Field(default_factory=list)
