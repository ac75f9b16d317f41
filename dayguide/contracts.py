"""Structured data contracts for the hours and plan engines."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from dayguide.instants import as_instant


Interest = Literal[
    "history",
    "food",
    "shopping",
    "nature",
    "culture",
    "architecture",
    "relaxation",
    "nightlife",
    "general",
]
Pace = Literal["relaxed", "standard", "active"]
BudgetTier = Literal["budget", "mid", "splurge"]
ChangeType = Literal["opens", "closes"]

KNOWN_INTERESTS: tuple[str, ...] = (
    "history",
    "food",
    "shopping",
    "nature",
    "culture",
    "architecture",
    "relaxation",
    "nightlife",
    "general",
)

# Largest 32-bit signed minute count; larger windows overflow the calendar.
MAX_AVAILABLE_MINUTES = 2**31 - 1


class _Contract(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Coordinate(_Contract):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    lat: float
    lng: float


class Place(_Contract):
    """Content record for a point of interest, read-only for the engines."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    id: str
    name: str
    aliases: list[str] = Field(default_factory=list)
    region_id: str | None = None
    category: str | None = None
    lat: float | None = None
    lng: float | None = None
    hours_text: str | None = None
    hours_weekly: list[str] = Field(default_factory=list)
    hours_verified_at: str | None = None
    visit_min_minutes: int | None = None
    visit_max_minutes: int | None = None
    best_time_windows: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    tourist_trap_level: str | None = None

    @property
    def coordinate(self) -> Coordinate | None:
        if self.lat is None or self.lng is None:
            return None
        return Coordinate(lat=self.lat, lng=self.lng)


class ExceptionRule(_Contract):
    date: str | None = None
    period: str | None = None
    open: str | None = None
    close: str | None = None
    closed: bool = False


class OpenNow(_Contract):
    state: Literal["open"] = "open"
    closes_at: datetime


class ClosedNow(_Contract):
    state: Literal["closed"] = "closed"
    opens_at: datetime | None = None


class UnknownHours(_Contract):
    state: Literal["unknown"] = "unknown"


OpenStatus = Annotated[Union[OpenNow, ClosedNow, UnknownHours], Field(discriminator="state")]


class HoursChange(_Contract):
    time: datetime
    type: ChangeType


class PlanInput(_Contract):
    available_minutes: int = Field(le=MAX_AVAILABLE_MINUTES)
    start_point: Coordinate | None = None
    interests: list[Interest] = Field(default_factory=list)
    pace: Pace
    budget_tier: BudgetTier
    current_time: datetime
    places: list[Place] = Field(default_factory=list)
    recent_place_ids: set[str] = Field(default_factory=set)

    @field_validator("interests", mode="before")
    @classmethod
    def _known_interests(cls, value: Any) -> Any:
        if not isinstance(value, (list, tuple)):
            return value
        normalized = [str(item).lower() for item in value]
        return [item for item in normalized if item in KNOWN_INTERESTS]

    @field_validator("pace", "budget_tier", mode="before")
    @classmethod
    def _lowercase(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @field_validator("current_time")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_instant(value)


class PlanStop(_Contract):
    place_id: str
    arrival_time: datetime
    departure_time: datetime
    travel_minutes_from_previous: int = Field(ge=0)
    visit_minutes: int = Field(ge=0)


class PriceRange(_Contract):
    min_amount: int = Field(ge=0)
    max_amount: int = Field(ge=0)
    currency: str = Field(default="MAD", min_length=3, max_length=3)


class PlanOutput(_Contract):
    stops: list[PlanStop] = Field(default_factory=list)
    total_minutes: int = 0
    estimated_cost_range: PriceRange = Field(
        default_factory=lambda: PriceRange(min_amount=0, max_amount=0)
    )
    warnings: list[str] = Field(default_factory=list)
