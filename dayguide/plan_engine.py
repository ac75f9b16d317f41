"""Deterministic "my day" plan generation from user constraints."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from dayguide.contracts import (
    ClosedNow,
    Coordinate,
    Pace,
    Place,
    PlanInput,
    PlanOutput,
    PlanStop,
    PriceRange,
)
from dayguide.geo import determine_region, distance_meters, estimate_walk_minutes
from dayguide.hours_engine import is_open_for_place
from dayguide.instants import plus_minutes
from dayguide.plan_scoring import (
    DIVERSITY_BONUS,
    MEAL_SLOT_BONUS,
    TRAVEL_PENALTY_PER_MINUTE,
    MealSlot,
    base_score,
    budget_allows,
    estimated_cost_bounds,
    interest_match_count,
    max_stops,
    meal_slots,
    meal_slots_overlapping,
    min_stop_minutes,
    recommended_visit_minutes,
    served_meal_slots,
)


UNLOCATED_TRAVEL_MINUTES = 10
SAME_SPOT_METERS = 20.0
MIN_TRAVEL_MINUTES = 1
MAX_TRAVEL_MINUTES = 60
UNLOCATED_DISTANCE_METERS = 1_000_000.0
LONG_FOOD_DAY_MINUTES = 360

WARNING_TOO_SHORT = "Available time is too short to generate a plan."
WARNING_NO_MATCH = "No places match your constraints right now."
WARNING_CLOSED_EXCLUDED = "Some places were excluded because they are closed at the planned visit time."
WARNING_NO_FIT = (
    "No plan could fit your time and constraints. "
    "Try increasing available time or broadening interests."
)
WARNING_DROPPED = "Some candidate stops were dropped during schedule construction."


@dataclass
class _Candidate:
    place: Place
    travel_minutes: int
    visit_minutes: int
    score: float

    @property
    def required_minutes(self) -> int:
        return self.travel_minutes + self.visit_minutes


@dataclass
class SelectionResult:
    places: list[Place] = field(default_factory=list)
    closed_exclusion_count: int = 0


@dataclass
class ScheduleResult:
    stops: list[PlanStop] = field(default_factory=list)
    places: list[Place] = field(default_factory=list)
    total_minutes: int = 0
    dropped_count: int = 0


class PlanEngine:
    """Select, order and schedule places into a feasible day plan.

    Selection is greedy on a per-step score. A nearest-neighbour reordering of
    the same places is scheduled as an alternative and kept only when it covers
    more required meals, fits more stops, or uses fewer minutes.
    """

    def generate(self, plan_input: PlanInput) -> PlanOutput:
        available_minutes = max(0, plan_input.available_minutes)
        if available_minutes <= 0:
            return _empty_output([WARNING_TOO_SHORT])

        required_meals = meal_slots_overlapping(plan_input.current_time, available_minutes)
        warnings: list[str] = []

        candidates = self._filter_candidates(plan_input)

        # Long food-focused days must not skip a meal just because the
        # window overlap left it out.
        if "food" in plan_input.interests and available_minutes >= LONG_FOOD_DAY_MINUTES:
            required_meals = required_meals | served_meal_slots(candidates)

        if not candidates:
            return _empty_output([WARNING_NO_MATCH])

        selection = self.select(candidates, plan_input, available_minutes, required_meals)
        if selection.closed_exclusion_count > 0:
            warnings.append(WARNING_CLOSED_EXCLUDED)

        if not selection.places:
            warnings.append(WARNING_NO_FIT)
            return _empty_output(warnings)

        direct = self.build_schedule(
            selection.places,
            start_time=plan_input.current_time,
            start_point=plan_input.start_point,
            available_minutes=available_minutes,
            pace=plan_input.pace,
        )
        reordered_places = reorder_nearest_neighbor(selection.places, plan_input.start_point)
        if [place.id for place in reordered_places] == [place.id for place in selection.places]:
            scheduled = direct
        else:
            reordered = self.build_schedule(
                reordered_places,
                start_time=plan_input.current_time,
                start_point=plan_input.start_point,
                available_minutes=available_minutes,
                pace=plan_input.pace,
            )
            scheduled = preferred_schedule(direct, reordered, required_meals)

        if scheduled.dropped_count > 0:
            warnings.append(WARNING_DROPPED)

        missing_meals = required_meals - served_meal_slots(scheduled.places)
        if missing_meals:
            warnings.append(f"Could not schedule meal stop(s): {', '.join(sorted(missing_meals))}.")

        min_amount, max_amount = estimated_cost_bounds(scheduled.places, plan_input.budget_tier)
        return PlanOutput(
            stops=scheduled.stops,
            total_minutes=scheduled.total_minutes,
            estimated_cost_range=PriceRange(min_amount=min_amount, max_amount=max_amount),
            warnings=warnings,
        )

    def _filter_candidates(self, plan_input: PlanInput) -> list[Place]:
        candidates = [place for place in plan_input.places if place.id not in plan_input.recent_place_ids]
        if plan_input.interests:
            candidates = [
                place for place in candidates if interest_match_count(place, plan_input.interests) > 0
            ]
        return [place for place in candidates if budget_allows(place, plan_input.budget_tier)]

    def select(
        self,
        candidates: list[Place],
        plan_input: PlanInput,
        available_minutes: int,
        required_meals: set[MealSlot],
    ) -> SelectionResult:
        """Greedy scored selection under the time and stop-count budgets."""
        remaining = available_minutes
        elapsed = 0
        anchor = plan_input.start_point
        result = SelectionResult()
        selected_ids: set[str] = set()
        selected_categories: set[str | None] = set()
        covered_meals: set[MealSlot] = set()

        minimum_stop = min_stop_minutes(plan_input.pace)
        stop_cap = max_stops(plan_input.pace, available_minutes)

        while remaining >= minimum_stop and len(result.places) < stop_cap:
            pending_meals = required_meals - covered_meals
            evaluations: list[_Candidate] = []

            for place in candidates:
                if place.id in selected_ids:
                    continue
                travel = travel_minutes(anchor, place)
                visit = recommended_visit_minutes(place, plan_input.pace)
                if travel + visit > remaining:
                    continue

                arrival = plus_minutes(plan_input.current_time, elapsed + travel)
                if _is_closed(place, arrival):
                    result.closed_exclusion_count += 1
                    continue

                score = base_score(place, plan_input.interests, plan_input.budget_tier, arrival)
                if place.category not in selected_categories:
                    score += DIVERSITY_BONUS
                meal_matches = len(meal_slots(place) & pending_meals)
                score += meal_matches * MEAL_SLOT_BONUS
                score -= travel * TRAVEL_PENALTY_PER_MINUTE

                evaluations.append(_Candidate(place=place, travel_minutes=travel, visit_minutes=visit, score=score))

            if not evaluations:
                break
            best = min(evaluations, key=lambda item: (-item.score, item.required_minutes, item.place.id))

            result.places.append(best.place)
            selected_ids.add(best.place.id)
            selected_categories.add(best.place.category)
            covered_meals |= meal_slots(best.place)
            remaining -= best.required_minutes
            elapsed += best.required_minutes
            anchor = best.place.coordinate or anchor

        return result

    def build_schedule(
        self,
        places: list[Place],
        *,
        start_time: datetime,
        start_point: Coordinate | None,
        available_minutes: int,
        pace: Pace,
    ) -> ScheduleResult:
        """Turn an ordered place list into timed stops, dropping what no longer fits."""
        result = ScheduleResult()
        anchor = start_point

        for place in places:
            travel = travel_minutes(anchor, place)
            visit = recommended_visit_minutes(place, pace)
            required = travel + visit

            if result.total_minutes + required > available_minutes:
                result.dropped_count += 1
                continue

            arrival = plus_minutes(start_time, result.total_minutes + travel)
            if _is_closed(place, arrival):
                result.dropped_count += 1
                continue

            result.stops.append(
                PlanStop(
                    place_id=place.id,
                    arrival_time=arrival,
                    departure_time=plus_minutes(arrival, visit),
                    travel_minutes_from_previous=travel,
                    visit_minutes=visit,
                )
            )
            result.places.append(place)
            result.total_minutes += required
            anchor = place.coordinate or anchor

        return result


def generate_plan(plan_input: PlanInput) -> PlanOutput:
    return PlanEngine().generate(plan_input)


def travel_minutes(origin: Coordinate | None, place: Place) -> int:
    """Walking minutes from the anchor; a flat penalty when the place cannot be located."""
    if origin is None:
        return 0
    destination = place.coordinate
    if destination is None:
        return UNLOCATED_TRAVEL_MINUTES

    meters = distance_meters(origin, destination)
    if meters <= SAME_SPOT_METERS:
        return 0

    region = place.region_id or determine_region(destination)
    estimate = estimate_walk_minutes(meters, region)
    return max(MIN_TRAVEL_MINUTES, min(MAX_TRAVEL_MINUTES, estimate))


def reorder_nearest_neighbor(places: list[Place], start_point: Coordinate | None) -> list[Place]:
    if start_point is None or len(places) <= 1:
        return list(places)

    remaining = list(places)
    ordered: list[Place] = []
    current = start_point
    while remaining:
        origin = current
        nearest = min(remaining, key=lambda place: (_linear_distance(origin, place), place.id))
        remaining.remove(nearest)
        ordered.append(nearest)
        current = nearest.coordinate or current
    return ordered


def preferred_schedule(
    primary: ScheduleResult,
    alternative: ScheduleResult,
    required_meals: set[MealSlot],
) -> ScheduleResult:
    primary_meals = covered_required_meals(primary, required_meals)
    alternative_meals = covered_required_meals(alternative, required_meals)
    if alternative_meals != primary_meals:
        return alternative if alternative_meals > primary_meals else primary

    if len(alternative.stops) != len(primary.stops):
        return alternative if len(alternative.stops) > len(primary.stops) else primary

    if alternative.total_minutes != primary.total_minutes:
        return alternative if alternative.total_minutes < primary.total_minutes else primary

    return primary


def covered_required_meals(schedule: ScheduleResult, required_meals: set[MealSlot]) -> int:
    if not required_meals:
        return 0
    return len(served_meal_slots(schedule.places) & required_meals)


def _linear_distance(origin: Coordinate, place: Place) -> float:
    destination = place.coordinate
    if destination is None:
        return UNLOCATED_DISTANCE_METERS
    return distance_meters(origin, destination)


def _is_closed(place: Place, at: datetime) -> bool:
    return isinstance(is_open_for_place(place, at), ClosedNow)


def _empty_output(warnings: list[str]) -> PlanOutput:
    return PlanOutput(
        stops=[],
        total_minutes=0,
        estimated_cost_range=PriceRange(min_amount=0, max_amount=0),
        warnings=warnings,
    )
