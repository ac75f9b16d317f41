"""Scoring tables and helpers used by the day-plan engine."""

from __future__ import annotations

from datetime import datetime
import math
from typing import Iterable, Literal

from dayguide.contracts import BudgetTier, Interest, Pace, Place
from dayguide.instants import CITY_ZONE, as_instant, plus_minutes, to_local


MealSlot = Literal["breakfast", "lunch", "dinner"]

MEAL_WINDOWS: tuple[tuple[MealSlot, int, int], ...] = (
    ("breakfast", 7, 11),
    ("lunch", 12, 15),
    ("dinner", 19, 22),
)

INTEREST_CATEGORIES: dict[str, frozenset[str]] = {
    "history": frozenset({"museum", "historic_site", "landmark", "neighborhood"}),
    "food": frozenset({"restaurant", "cafe", "market"}),
    "shopping": frozenset({"market", "neighborhood"}),
    "nature": frozenset({"garden", "nature"}),
    "culture": frozenset({"museum", "historic_site", "landmark", "neighborhood"}),
    "architecture": frozenset({"museum", "historic_site", "landmark"}),
    "relaxation": frozenset({"garden", "nature", "cafe"}),
    "nightlife": frozenset({"restaurant", "cafe", "market", "landmark"}),
}

INTEREST_TOKENS: dict[str, tuple[str, ...]] = {
    "history": ("history", "heritage", "palace", "madrasa", "museum", "historic"),
    "food": ("food", "eat", "restaurant", "cafe", "snack"),
    "shopping": ("shop", "shopping", "souk", "market", "artisan"),
    "nature": ("garden", "park", "nature"),
    "culture": ("culture", "heritage", "tradition", "architecture"),
    "architecture": ("architecture", "design", "mosaic", "riads"),
    "relaxation": ("relax", "calm", "garden", "spa"),
    "nightlife": ("night", "evening", "music", "rooftop"),
}

BASE_COST_RANGES: dict[str, tuple[int, int]] = {
    "restaurant": (80, 180),
    "cafe": (20, 60),
    "museum": (70, 120),
    "historic_site": (40, 90),
    "garden": (40, 100),
    "market": (0, 40),
    "landmark": (0, 30),
    "neighborhood": (0, 30),
    "nature": (0, 30),
}
DEFAULT_COST_RANGE = (20, 80)

BUDGET_MULTIPLIERS: dict[str, float] = {"budget": 0.80, "mid": 1.00, "splurge": 1.25}

PACE_DEFAULT_VISIT_MINUTES: dict[str, int] = {"relaxed": 90, "standard": 60, "active": 45}
PACE_MIN_STOP_MINUTES: dict[str, int] = {"relaxed": 40, "standard": 30, "active": 20}
PACE_STOP_CAPS: dict[str, int] = {"relaxed": 6, "standard": 7, "active": 8}
VISIT_FLOOR_MINUTES = 20
MINUTES_PER_STOP_CAP = 40

INTEREST_WEIGHT = 10.0
BEST_TIME_BONUS = 5.0
DIVERSITY_BONUS = 3.0
MEAL_SLOT_BONUS = 12.0
TRAVEL_PENALTY_PER_MINUTE = 0.35


def _lowered(values: Iterable[str]) -> set[str]:
    return {value.lower() for value in values}


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


# MARK: Interests and budget


def interest_match_count(place: Place, interests: list[Interest]) -> int:
    """Number of interests the place satisfies; 1 when no interests were given."""
    if not interests:
        return 1

    category = (place.category or "").lower()
    tags = _lowered(place.tags)
    name = place.name.lower()

    count = 0
    for interest in interests:
        if interest == "general":
            count += 1
            continue
        tokens = INTEREST_TOKENS.get(interest, ())
        category_match = category in INTEREST_CATEGORIES.get(interest, frozenset())
        tag_match = any(token in tag for tag in tags for token in tokens)
        name_match = any(token in name for token in tokens)
        if category_match or tag_match or name_match:
            count += 1
    return count


def budget_allows(place: Place, tier: BudgetTier) -> bool:
    tags = _lowered(place.tags)
    if tier == "budget":
        return not any(
            "luxury" in tag or "fine-dining" in tag or "upscale" in tag for tag in tags
        )
    if tier == "mid":
        return not any("ultra-luxury" in tag for tag in tags)
    return True


def budget_fit_bonus(place: Place, tier: BudgetTier) -> float:
    tags = _lowered(place.tags)
    premium = any("luxury" in tag or "fine-dining" in tag for tag in tags)
    if tier == "budget":
        if any("budget" in tag or "local" in tag for tag in tags):
            return 2.0
        return -4.0 if premium else 0.0
    if tier == "splurge":
        return 3.0 if premium else 0.0
    return 0.0


def tourist_trap_penalty(place: Place) -> float:
    level = (place.tourist_trap_level or "").lower()
    if level == "high":
        return -5.0
    if level == "mixed":
        return -2.0
    return 0.0


# MARK: Time of day


def time_window(at: datetime) -> str:
    hour = to_local(at).hour
    if 6 <= hour < 11:
        return "morning"
    if 11 <= hour < 15:
        return "lunch"
    if 15 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 23:
        return "evening"
    return "night"


def best_time_bonus(place: Place, at: datetime) -> float:
    return BEST_TIME_BONUS if time_window(at) in _lowered(place.best_time_windows) else 0.0


def base_score(place: Place, interests: list[Interest], tier: BudgetTier, arrival: datetime) -> float:
    return (
        interest_match_count(place, interests) * INTEREST_WEIGHT
        + tourist_trap_penalty(place)
        + best_time_bonus(place, arrival)
        + budget_fit_bonus(place, tier)
    )


# MARK: Meals


def meal_slots_overlapping(start: datetime, duration_minutes: int) -> set[MealSlot]:
    """Meal windows on the start's local date that overlap ``[start, start + duration)``."""
    start_utc = as_instant(start)
    end_utc = plus_minutes(start_utc, duration_minutes)
    start_local = start_utc.astimezone(CITY_ZONE)

    slots: set[MealSlot] = set()
    for slot, hour_start, hour_end in MEAL_WINDOWS:
        window_start = as_instant(start_local.replace(hour=hour_start, minute=0, second=0, microsecond=0))
        window_end = as_instant(start_local.replace(hour=hour_end, minute=0, second=0, microsecond=0))
        if max(start_utc, window_start) < min(end_utc, window_end):
            slots.add(slot)
    return slots


def meal_slots(place: Place) -> set[MealSlot]:
    """Meal slots a restaurant or cafe can cover, from its tags and best-time windows."""
    category = (place.category or "").lower()
    if category not in {"restaurant", "cafe"}:
        return set()

    tags = _lowered(place.tags)
    windows = _lowered(place.best_time_windows)

    slots: set[MealSlot] = set()
    if any("breakfast" in tag or "brunch" in tag for tag in tags) or "morning" in windows:
        slots.add("breakfast")
    if any("lunch" in tag for tag in tags) or "lunch" in windows or "afternoon" in windows:
        slots.add("lunch")
    if any("dinner" in tag or "evening" in tag for tag in tags) or "evening" in windows:
        slots.add("dinner")
    return slots


def served_meal_slots(places: Iterable[Place]) -> set[MealSlot]:
    slots: set[MealSlot] = set()
    for place in places:
        slots |= meal_slots(place)
    return slots


# MARK: Durations


def recommended_visit_minutes(place: Place, pace: Pace) -> int:
    min_visit = max(VISIT_FLOOR_MINUTES, _or_default(place.visit_min_minutes, PACE_DEFAULT_VISIT_MINUTES[pace]))
    max_visit = max(min_visit, _or_default(place.visit_max_minutes, min_visit))
    if pace == "relaxed":
        return max_visit
    if pace == "active":
        return min_visit
    return round_half_up((min_visit + max_visit) / 2.0)


def min_stop_minutes(pace: Pace) -> int:
    return PACE_MIN_STOP_MINUTES[pace]


def max_stops(pace: Pace, available_minutes: int) -> int:
    time_cap = max(1, available_minutes // MINUTES_PER_STOP_CAP)
    return min(PACE_STOP_CAPS[pace], time_cap)


def _or_default(value: int | None, default: int) -> int:
    return default if value is None else value


# MARK: Cost


def estimated_cost_bounds(places: Iterable[Place], tier: BudgetTier) -> tuple[int, int]:
    total_min = 0
    total_max = 0
    for place in places:
        low, high = BASE_COST_RANGES.get((place.category or "").lower(), DEFAULT_COST_RANGE)
        total_min += low
        total_max += high
    multiplier = BUDGET_MULTIPLIERS[tier]
    return (
        max(0, round_half_up(total_min * multiplier)),
        max(0, round_half_up(total_max * multiplier)),
    )
