"""Command line interface for the day guide engines."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys
from typing import Any, Sequence

from pydantic import TypeAdapter, ValidationError

from dayguide.contracts import ExceptionRule, PlanInput, PlanOutput
from dayguide.hours_engine import format_for_display, get_next_change, is_open
from dayguide.instants import InstantParseError, format_local_minute, parse_instant_expression, to_local
from dayguide.plan_engine import generate_plan
from dayguide.settings import load_env_file, reference_now
from dayguide.telemetry import record_attributes, start_span
from dayguide.vectors import (
    VectorFileError,
    check_hours_case,
    check_plan_case,
    load_hours_vectors,
    load_plan_vectors,
)


_EXCEPTIONS_ADAPTER = TypeAdapter(list[ExceptionRule])


class InputFileError(ValueError):
    """Raised when a JSON input file cannot be read."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dayguide",
        description="Opening hours and day-plan engines.",
    )
    subparsers = parser.add_subparsers(dest="command")

    hours_parser = subparsers.add_parser(
        "hours",
        help="Evaluate open/closed status for a schedule.",
    )
    hours_parser.add_argument(
        "--weekly",
        action="append",
        default=[],
        help='Weekly rule line, e.g. "Mon-Fri 09:00-18:00". Repeatable.',
    )
    hours_parser.add_argument("--hours-text", default=None, help="Free-text fallback schedule.")
    hours_parser.add_argument("--verified-at", default=None, help="Date hours were verified (YYYY-MM-DD).")
    hours_parser.add_argument(
        "--at",
        default=None,
        help="Instant to evaluate: ISO-8601 or a relative expression like 'tomorrow 10:00'.",
    )
    hours_parser.add_argument(
        "--exceptions",
        default=None,
        help="Path to a JSON list of exception rules.",
    )

    plan_parser = subparsers.add_parser(
        "plan",
        help="Generate a day plan from a JSON input file.",
    )
    plan_parser.add_argument("input", help="Path to plan input JSON.")
    plan_parser.add_argument(
        "--format",
        choices=["json", "text"],
        default="json",
        help="Output format for the plan.",
    )

    vectors_parser = subparsers.add_parser(
        "check-vectors",
        help="Check a shared test-vector file against the engines.",
    )
    vectors_parser.add_argument("kind", choices=["hours", "plan"])
    vectors_parser.add_argument("path", help="Path to the vector JSON file.")
    return parser


def run_hours(
    *,
    weekly: list[str],
    hours_text: str | None,
    verified_at: str | None,
    at_expression: str | None,
    exceptions_path: str | None,
) -> dict[str, Any]:
    at = parse_instant_expression(at_expression, reference_now()) if at_expression else reference_now()
    exceptions = _load_exceptions(exceptions_path) if exceptions_path else []

    with start_span("cli.hours") as span:
        status = is_open(weekly, hours_text, at, exceptions)
        change = get_next_change(weekly, hours_text, at, exceptions)
        display = format_for_display(weekly, hours_text, verified_at, at, exceptions)
        record_attributes(
            span,
            {
                "hours.state": status.state,
                "hours.next_change": format_local_minute(change.time) if change else None,
            },
        )

    return {
        "at_local": to_local(at).isoformat(),
        "status": status.model_dump(mode="json"),
        "next_change": change.model_dump(mode="json") if change else None,
        "display": display,
    }


def run_plan(input_path: str) -> PlanOutput:
    raw = _read_json(input_path)
    plan_input = PlanInput.model_validate(raw)

    with start_span("cli.plan") as span:
        output = generate_plan(plan_input)
        record_attributes(
            span,
            {
                "plan.candidates": len(plan_input.places),
                "plan.stop_count": len(output.stops),
                "plan.total_minutes": output.total_minutes,
                "plan.warning_count": len(output.warnings),
            },
        )
    return output


def run_check_vectors(kind: str, path: str) -> dict[str, Any]:
    with start_span("cli.check_vectors") as span:
        if kind == "hours":
            cases = load_hours_vectors(path)
            results = [(case.name, check_hours_case(case)) for case in cases]
        else:
            plan_cases = load_plan_vectors(path)
            results = [(case.name, check_plan_case(case)) for case in plan_cases]

        failures = {name: issues for name, issues in results if issues}
        record_attributes(
            span,
            {"vectors.kind": kind, "vectors.total": len(results), "vectors.failed": len(failures)},
        )

    return {
        "kind": kind,
        "total": len(results),
        "passed": len(results) - len(failures),
        "failures": failures,
    }


def render_plan_text(output: PlanOutput) -> str:
    lines: list[str] = []
    for index, stop in enumerate(output.stops, start=1):
        arrival = to_local(stop.arrival_time).strftime("%H:%M")
        departure = to_local(stop.departure_time).strftime("%H:%M")
        lines.append(
            f"{index}. {arrival}-{departure} {stop.place_id} "
            f"(walk {stop.travel_minutes_from_previous} min, visit {stop.visit_minutes} min)"
        )
    if not lines:
        lines.append("No stops planned.")
    cost = output.estimated_cost_range
    lines.append(f"Total: {output.total_minutes} min | Cost: {cost.min_amount}-{cost.max_amount} {cost.currency}")
    lines.extend(f"! {warning}" for warning in output.warnings)
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    load_env_file(".env")
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "hours":
            payload = run_hours(
                weekly=args.weekly,
                hours_text=args.hours_text,
                verified_at=args.verified_at,
                at_expression=args.at,
                exceptions_path=args.exceptions,
            )
            print(json.dumps(payload, ensure_ascii=False))
            return 0

        if args.command == "plan":
            output = run_plan(args.input)
            if args.format == "text":
                print(render_plan_text(output))
            else:
                print(json.dumps(output.model_dump(mode="json", by_alias=True), ensure_ascii=False))
            return 0

        if args.command == "check-vectors":
            summary = run_check_vectors(args.kind, args.path)
            print(json.dumps(summary, ensure_ascii=False))
            return 0 if not summary["failures"] else 1
    except (InputFileError, InstantParseError, VectorFileError, ValidationError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    parser.print_help()
    return 0


def _read_json(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InputFileError(f"Cannot read JSON file '{path}': {exc}") from exc


def _load_exceptions(path: str) -> list[ExceptionRule]:
    return _EXCEPTIONS_ADAPTER.validate_python(_read_json(path))
