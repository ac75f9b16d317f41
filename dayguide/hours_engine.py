"""Deterministic opening-hours evaluator.

Rules are evaluated in the fixed city zone (``Africa/Casablanca``) with this
precedence for any local date:

1. date-specific exception
2. period exception (currently only Ramadan)
3. weekly schedule

The engine never raises on malformed schedule data; it degrades to
``UnknownHours`` or to "no rule" for the affected day.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
import re
from typing import Sequence

from dayguide.contracts import (
    ClosedNow,
    ExceptionRule,
    HoursChange,
    OpenNow,
    OpenStatus,
    Place,
    UnknownHours,
)
from dayguide.hours_parser import WeeklyRule, parse_time, parse_weekly_rules
from dayguide.instants import (
    clamped_date,
    local_instant,
    minutes_since_midnight,
    subtract_months,
    to_local,
)


RAMADAN_START = date(2026, 3, 1)
RAMADAN_END = date(2026, 3, 30)
SEARCH_HORIZON_DAYS = 8
STALE_AFTER_MONTHS = 6

STALE_SUFFIX = " · Hours may be outdated"
UNKNOWN_PLACEHOLDER = "Check hours locally"

_DATE_ONLY = re.compile(r"(\d{4})-(\d{2})-(\d{2})", re.ASCII)
_WEEKDAY_ABBREVIATIONS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass(frozen=True)
class _Evaluation:
    status: OpenStatus
    next_change: HoursChange | None


# MARK: Public API (raw schedule)


def is_open(
    weekly: Sequence[str],
    hours_text: str | None,
    at: datetime,
    exceptions: Sequence[ExceptionRule] = (),
) -> OpenStatus:
    return _evaluate(weekly, hours_text, at, exceptions).status


def get_next_change(
    weekly: Sequence[str],
    hours_text: str | None,
    from_ts: datetime,
    exceptions: Sequence[ExceptionRule] = (),
) -> HoursChange | None:
    return _evaluate(weekly, hours_text, from_ts, exceptions).next_change


def format_for_display(
    weekly: Sequence[str],
    hours_text: str | None,
    hours_verified_at: str | None,
    at: datetime,
    exceptions: Sequence[ExceptionRule] = (),
) -> str:
    """Render the status line shown on place cards, e.g. ``"Open now · Closes 18:00"``."""
    status = is_open(weekly, hours_text, at, exceptions)

    if isinstance(status, OpenNow):
        output = f"Open now · Closes {_format_time(status.closes_at)}"
    elif isinstance(status, ClosedNow):
        output = _closed_text(status.opens_at, at)
    else:
        output = _sanitized(hours_text) or UNKNOWN_PLACEHOLDER

    if is_stale(hours_verified_at, at):
        return output + STALE_SUFFIX
    return output


def is_stale(verified_at: str | None, at: datetime) -> bool:
    """True when ``verified_at`` is more than six calendar months before ``at``."""
    if verified_at is None or not verified_at.strip():
        return False
    match = _DATE_ONLY.fullmatch(verified_at)
    if match is None:
        return False
    year, month, day = (int(part) for part in match.groups())
    # Days 29-31 past the month end resolve to its last day; other out-of-range
    # fields make the date unreadable.
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return False
    try:
        verified = clamped_date(year, month, day)
    except ValueError:
        return False

    threshold = subtract_months(to_local(at).date(), STALE_AFTER_MONTHS)
    return verified < threshold


# MARK: Public API (place records)


def is_open_for_place(
    place: Place,
    at: datetime,
    exceptions: Sequence[ExceptionRule] = (),
) -> OpenStatus:
    return is_open(place.hours_weekly, place.hours_text, at, exceptions)


def next_change_for_place(
    place: Place,
    from_ts: datetime,
    exceptions: Sequence[ExceptionRule] = (),
) -> HoursChange | None:
    return get_next_change(place.hours_weekly, place.hours_text, from_ts, exceptions)


def format_place_hours(
    place: Place,
    at: datetime,
    exceptions: Sequence[ExceptionRule] = (),
) -> str:
    return format_for_display(
        place.hours_weekly,
        place.hours_text,
        place.hours_verified_at,
        at,
        exceptions,
    )


# MARK: Evaluation


def _evaluate(
    weekly: Sequence[str],
    hours_text: str | None,
    at: datetime,
    exceptions: Sequence[ExceptionRule],
) -> _Evaluation:
    rules = parse_weekly_rules(weekly, hours_text)
    if not rules and not exceptions:
        return _Evaluation(UnknownHours(), None)

    today = to_local(at).date()
    current_minutes = minutes_since_midnight(at)

    # The post-midnight part of an overnight window belongs to the day it started.
    yesterday = today - timedelta(days=1)
    yesterday_rule = resolve_rule(yesterday, rules, exceptions)
    if (
        yesterday_rule is not None
        and yesterday_rule.is_overnight
        and yesterday_rule.close_minutes is not None
        and current_minutes < yesterday_rule.close_minutes
    ):
        closes_at = local_instant(today, yesterday_rule.close_minutes)
        return _Evaluation(OpenNow(closes_at=closes_at), HoursChange(time=closes_at, type="closes"))

    today_rule = resolve_rule(today, rules, exceptions)
    if today_rule is not None and not today_rule.closed and _is_open_today(today_rule, current_minutes):
        close_day = today + timedelta(days=1) if today_rule.is_overnight else today
        closes_at = local_instant(close_day, today_rule.close_minutes)
        return _Evaluation(OpenNow(closes_at=closes_at), HoursChange(time=closes_at, type="closes"))

    opens_at = _next_open_time(today, current_minutes, rules, exceptions)
    if opens_at is not None:
        return _Evaluation(ClosedNow(opens_at=opens_at), HoursChange(time=opens_at, type="opens"))
    return _Evaluation(ClosedNow(opens_at=None), None)


def _is_open_today(rule: WeeklyRule, current_minutes: int) -> bool:
    if rule.open_minutes is None or rule.close_minutes is None:
        return False
    if rule.is_overnight:
        return current_minutes >= rule.open_minutes
    return rule.open_minutes <= current_minutes < rule.close_minutes


def _next_open_time(
    today: date,
    current_minutes: int,
    rules: list[WeeklyRule],
    exceptions: Sequence[ExceptionRule],
) -> datetime | None:
    for offset in range(SEARCH_HORIZON_DAYS):
        day = today + timedelta(days=offset)
        rule = resolve_rule(day, rules, exceptions)
        if rule is None or rule.closed or rule.open_minutes is None:
            continue
        if offset == 0 and current_minutes >= rule.open_minutes:
            continue
        return local_instant(day, rule.open_minutes)
    return None


# MARK: Rule resolution


def resolve_rule(
    day: date,
    rules: Sequence[WeeklyRule],
    exceptions: Sequence[ExceptionRule],
) -> WeeklyRule | None:
    """Effective rule for a local date: date exception, then period exception, then weekly."""
    weekday = calendar_weekday(day)
    exception = resolve_exception(day, exceptions)
    if exception is not None:
        return WeeklyRule(
            weekday=weekday,
            open_minutes=parse_time(exception.open),
            close_minutes=parse_time(exception.close),
            closed=exception.closed,
        )
    return next((rule for rule in rules if rule.weekday == weekday), None)


def resolve_exception(day: date, exceptions: Sequence[ExceptionRule]) -> ExceptionRule | None:
    if not exceptions:
        return None

    date_key = day.isoformat()
    specific = next((rule for rule in exceptions if rule.date == date_key), None)
    if specific is not None:
        return specific

    if is_ramadan(day):
        return next(
            (rule for rule in exceptions if rule.period is not None and rule.period.lower() == "ramadan"),
            None,
        )
    return None


def is_ramadan(day: date) -> bool:
    return RAMADAN_START <= day <= RAMADAN_END


def calendar_weekday(day: date) -> int:
    """Sunday = 1 ... Saturday = 7."""
    return day.isoweekday() % 7 + 1


# MARK: Formatting


def _closed_text(opens_at: datetime | None, at: datetime) -> str:
    if opens_at is None:
        return "Closed · Opening time unavailable"
    open_day = to_local(opens_at).date()
    reference_day = to_local(at).date()
    if open_day == reference_day:
        return f"Closed · Opens today {_format_time(opens_at)}"
    if open_day == reference_day + timedelta(days=1):
        return f"Closed · Opens tomorrow {_format_time(opens_at)}"
    weekday = _WEEKDAY_ABBREVIATIONS[open_day.weekday()]
    return f"Closed · Opens {weekday} {_format_time(opens_at)}"


def _format_time(value: datetime) -> str:
    return to_local(value).strftime("%H:%M")


def _sanitized(text: str | None) -> str | None:
    trimmed = (text or "").strip()
    return trimmed or None
