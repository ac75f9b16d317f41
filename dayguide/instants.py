"""Instant normalization and fixed-zone civil time helpers."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import dateparser


CITY_TIMEZONE = "Africa/Casablanca"
CITY_ZONE = ZoneInfo(CITY_TIMEZONE)


class InstantParseError(ValueError):
    """Raised when a time expression cannot be resolved to an instant."""


def as_instant(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_local(value: datetime) -> datetime:
    return as_instant(value).astimezone(CITY_ZONE)


def local_instant(day: date, minutes: int) -> datetime:
    """Instant of ``minutes`` after local midnight on ``day``."""
    local = datetime.combine(day, time(minutes // 60, minutes % 60), tzinfo=CITY_ZONE)
    return local.astimezone(timezone.utc)


def minutes_since_midnight(value: datetime) -> int:
    local = to_local(value)
    return local.hour * 60 + local.minute


def plus_minutes(value: datetime, minutes: int) -> datetime:
    return as_instant(value) + timedelta(minutes=minutes)


def format_local_minute(value: datetime) -> str:
    """Format an instant as ``YYYY-MM-DDTHH:MM`` in the city zone."""
    return to_local(value).strftime("%Y-%m-%dT%H:%M")


def clamped_date(year: int, month: int, day: int) -> date:
    """Build a date, pulling a day past the month end back to its last day."""
    if month == 12:
        next_month_start = date(year + 1, 1, 1)
    else:
        next_month_start = date(year, month + 1, 1)
    last_day = (next_month_start - timedelta(days=1)).day
    return date(year, month, min(day, last_day))


def subtract_months(day: date, months: int) -> date:
    """Calendar month subtraction, clamping the day to the target month length."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    return clamped_date(year, month + 1, day.day)


def parse_instant(value: str) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed) into a UTC instant."""
    text = value.strip()
    if not text:
        raise InstantParseError("Timestamp cannot be empty.")
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as exc:
        raise InstantParseError(f"Invalid ISO-8601 timestamp: '{value}'.") from exc
    return as_instant(parsed)


def parse_instant_expression(expression: str, now_ts: datetime) -> datetime:
    """Resolve ISO or relative expressions ("tomorrow 10:00") in the city zone."""
    text = expression.strip()
    if not text:
        raise InstantParseError("Time expression cannot be empty.")

    try:
        return parse_instant(text)
    except InstantParseError:
        pass

    local_now = to_local(now_ts).replace(tzinfo=None)
    parsed = dateparser.parse(
        text,
        settings={
            "RELATIVE_BASE": local_now,
            "TIMEZONE": CITY_TIMEZONE,
            "TO_TIMEZONE": "UTC",
            "RETURN_AS_TIMEZONE_AWARE": True,
            "PREFER_DATES_FROM": "future",
        },
    )
    if parsed is None:
        raise InstantParseError(f"Could not parse time expression: '{expression}'.")
    return as_instant(parsed)
