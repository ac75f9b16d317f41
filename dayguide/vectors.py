"""Shared cross-platform test vectors for the hours and plan engines."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from dayguide.contracts import ClosedNow, ExceptionRule, OpenNow, PlanInput
from dayguide.hours_engine import format_for_display, get_next_change, is_open
from dayguide.instants import format_local_minute, parse_instant
from dayguide.plan_engine import generate_plan


class VectorFileError(ValueError):
    """Raised when a vector file cannot be read or does not match the schema."""


class HoursExpectation(BaseModel):
    state: str
    next_change_local: str | None = None
    display: str


class HoursCase(BaseModel):
    name: str
    at: str
    weekly: list[str] = Field(default_factory=list)
    hours_text: str | None = None
    hours_verified_at: str | None = None
    exceptions: list[ExceptionRule] = Field(default_factory=list)
    expected: HoursExpectation


class PlanExpectation(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    min_stops: int = 0
    max_stops: int
    max_total_minutes: int
    allowed_categories: list[str] = Field(default_factory=list)
    required_place_ids: list[str] = Field(default_factory=list)
    excluded_place_ids: list[str] = Field(default_factory=list)
    required_warning_substrings: list[str] = Field(default_factory=list)


class PlanCase(BaseModel):
    name: str
    input: PlanInput
    expected: PlanExpectation


def _read_json(path: str | Path) -> Any:
    vector_path = Path(path)
    try:
        return json.loads(vector_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise VectorFileError(f"Cannot read vector file '{vector_path}': {exc}") from exc


def load_hours_vectors(path: str | Path) -> list[HoursCase]:
    payload = _read_json(path)
    rows = payload.get("cases") if isinstance(payload, dict) else None
    if not isinstance(rows, list):
        raise VectorFileError("Hours vector file must contain a 'cases' list.")
    try:
        return [HoursCase.model_validate(row) for row in rows]
    except ValidationError as exc:
        raise VectorFileError(f"Invalid hours vector: {exc}") from exc


def load_plan_vectors(path: str | Path) -> list[PlanCase]:
    payload = _read_json(path)
    rows = payload.get("vectors") if isinstance(payload, dict) else None
    if not isinstance(rows, list):
        raise VectorFileError("Plan vector file must contain a 'vectors' list.")
    try:
        return [PlanCase.model_validate(row) for row in rows]
    except ValidationError as exc:
        raise VectorFileError(f"Invalid plan vector: {exc}") from exc


def check_hours_case(case: HoursCase) -> list[str]:
    """Return mismatch descriptions for one hours case; empty when it passes."""
    at = parse_instant(case.at)
    expected = case.expected
    issues: list[str] = []

    status = is_open(case.weekly, case.hours_text, at, case.exceptions)
    if status.state != expected.state:
        issues.append(f"{case.name}: state {status.state!r} != {expected.state!r}")

    status_time = None
    if isinstance(status, OpenNow):
        status_time = format_local_minute(status.closes_at)
    elif isinstance(status, ClosedNow) and status.opens_at is not None:
        status_time = format_local_minute(status.opens_at)
    if status_time != expected.next_change_local:
        issues.append(f"{case.name}: status time {status_time!r} != {expected.next_change_local!r}")

    change = get_next_change(case.weekly, case.hours_text, at, case.exceptions)
    change_time = format_local_minute(change.time) if change is not None else None
    if change_time != expected.next_change_local:
        issues.append(f"{case.name}: next change {change_time!r} != {expected.next_change_local!r}")

    display = format_for_display(case.weekly, case.hours_text, case.hours_verified_at, at, case.exceptions)
    if display != expected.display:
        issues.append(f"{case.name}: display {display!r} != {expected.display!r}")
    return issues


def check_plan_case(case: PlanCase) -> list[str]:
    """Return mismatch descriptions for one plan case; empty when it passes."""
    output = generate_plan(case.input)
    expected = case.expected
    issues: list[str] = []
    stop_count = len(output.stops)

    if not expected.min_stops <= stop_count <= expected.max_stops:
        issues.append(
            f"{case.name}: {stop_count} stop(s) outside [{expected.min_stops}, {expected.max_stops}]"
        )
    if output.total_minutes > expected.max_total_minutes:
        issues.append(f"{case.name}: total {output.total_minutes} > {expected.max_total_minutes} minutes")

    selected_ids = {stop.place_id for stop in output.stops}
    for place_id in expected.required_place_ids:
        if place_id not in selected_ids:
            issues.append(f"{case.name}: missing required stop {place_id}")
    for place_id in expected.excluded_place_ids:
        if place_id in selected_ids:
            issues.append(f"{case.name}: excluded stop present {place_id}")

    allowed = {category.lower() for category in expected.allowed_categories}
    if allowed:
        categories = {
            place.id: place.category.lower() for place in case.input.places if place.category is not None
        }
        for place_id in sorted(selected_ids):
            category = categories.get(place_id)
            if category is not None and category not in allowed:
                issues.append(f"{case.name}: stop {place_id} has unexpected category {category}")

    warning_blob = "\n".join(output.warnings).lower()
    for substring in expected.required_warning_substrings:
        if substring.lower() not in warning_blob:
            issues.append(f"{case.name}: missing warning substring {substring!r}")
    return issues
