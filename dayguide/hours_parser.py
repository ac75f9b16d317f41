"""Free-text opening-hours parsing into per-weekday rules.

Schedule strings are human authored ("Mon-Fri 09:00-18:00", "Daily
08:00-20:00", "Sat closed", "Fri–Mon 18:00-02:00"). Parsing is a short
sequence of normalization steps followed by independent keyword and
pattern checks. A line that cannot be understood contributes no rule.

Weekdays use calendar numbering: 1 = Sunday ... 7 = Saturday.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Iterable


ALL_WEEKDAYS: tuple[int, ...] = (1, 2, 3, 4, 5, 6, 7)
LAST_MINUTE_OF_DAY = 23 * 60 + 59

_TIME_RANGE = re.compile(r"([0-2]?\d:[0-5]\d)\s*-\s*([0-2]?\d:[0-5]\d)", re.ASCII)
_INTEGER = re.compile(r"[+-]?\d+", re.ASCII)
_EVERY_DAY_PHRASES = ("daily", "every day", "everyday", "all week")
_WEEKDAY_PREFIXES = (
    ("sun", 1),
    ("mon", 2),
    ("tue", 3),
    ("wed", 4),
    ("thu", 5),
    ("fri", 6),
    ("sat", 7),
)


@dataclass(frozen=True)
class WeeklyRule:
    weekday: int
    open_minutes: int | None
    close_minutes: int | None
    closed: bool

    @property
    def is_overnight(self) -> bool:
        return (
            self.open_minutes is not None
            and self.close_minutes is not None
            and self.close_minutes <= self.open_minutes
        )


@dataclass(frozen=True)
class _TimeRange:
    open_minutes: int
    close_minutes: int
    prefix: str


def normalize_text(value: str) -> str:
    return (
        value.lower()
        .replace("\u2013", "-")
        .replace("\u2014", "-")
        .replace("\u00a0", " ")
        .strip()
    )


def parse_time(value: str | None) -> int | None:
    """Parse ``HH:MM`` into minutes since midnight, or None."""
    if value is None or not value.strip():
        return None
    parts = value.strip().split(":")
    if len(parts) != 2:
        return None
    if not all(_INTEGER.fullmatch(part) for part in parts):
        return None
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return hour * 60 + minute


def parse_weekly_rules(weekly: Iterable[str], hours_text: str | None) -> list[WeeklyRule]:
    """Parse weekly lines (falling back to free text) into one rule per weekday."""
    parsed: list[WeeklyRule] = []
    for line in weekly:
        parsed.extend(parse_weekly_line(line))
    if not parsed and hours_text and hours_text.strip():
        parsed = parse_weekly_line(hours_text)

    # First rule seen for a weekday wins.
    by_weekday: dict[int, WeeklyRule] = {}
    for rule in parsed:
        by_weekday.setdefault(rule.weekday, rule)
    return [by_weekday[weekday] for weekday in sorted(by_weekday)]


def parse_weekly_line(raw_line: str) -> list[WeeklyRule]:
    line = raw_line.strip()
    if not line:
        return []

    normalized = normalize_text(line)

    if "open all day" in normalized:
        return [
            WeeklyRule(weekday=weekday, open_minutes=0, close_minutes=LAST_MINUTE_OF_DAY, closed=False)
            for weekday in ALL_WEEKDAYS
        ]

    if "closed" in normalized:
        before_closed = normalized.split("closed", 1)[0]
        weekdays = parse_weekdays(before_closed)
        if not weekdays and "daily" in normalized:
            weekdays = list(ALL_WEEKDAYS)
        return [
            WeeklyRule(weekday=weekday, open_minutes=None, close_minutes=None, closed=True)
            for weekday in weekdays
        ]

    time_range = _extract_time_range(normalized)
    if time_range is None:
        return []

    weekdays = parse_weekdays(time_range.prefix)
    if not weekdays and "daily" in normalized:
        weekdays = list(ALL_WEEKDAYS)

    return [
        WeeklyRule(
            weekday=weekday,
            open_minutes=time_range.open_minutes,
            close_minutes=time_range.close_minutes,
            closed=False,
        )
        for weekday in weekdays
    ]


def parse_weekdays(raw_text: str) -> list[int]:
    """Parse a weekday list such as ``"mon-fri"``, ``"sat & sun"`` or ``"fri to mon"``."""
    text = normalize_text(raw_text)
    if any(phrase in text for phrase in _EVERY_DAY_PHRASES):
        return list(ALL_WEEKDAYS)

    cleaned = text.replace("to", "-").replace("&", ",").replace("/", ",").replace(":", " ")

    days: set[int] = set()
    for part in (piece.strip() for piece in cleaned.split(",")):
        if not part:
            continue
        if "-" in part:
            start_token, end_token = (piece.strip() for piece in part.split("-", 1))
            start = weekday_from_token(start_token)
            end = weekday_from_token(end_token)
            if start is not None and end is not None:
                days.update(weekday_range(start, end))
                continue
        single = weekday_from_token(part)
        if single is not None:
            days.add(single)
    return sorted(days)


def weekday_from_token(raw: str) -> int | None:
    token = normalize_text(raw).split(" ", 1)[0].strip()
    for prefix, weekday in _WEEKDAY_PREFIXES:
        if token.startswith(prefix):
            return weekday
    return None


def weekday_range(start: int, end: int) -> list[int]:
    """Inclusive weekday range, wrapping past Saturday (``fri-mon`` = fri, sat, sun, mon)."""
    if start <= end:
        return list(range(start, end + 1))
    return list(range(start, 8)) + list(range(1, end + 1))


def _extract_time_range(text: str) -> _TimeRange | None:
    match = _TIME_RANGE.search(text)
    if match is None:
        return None
    open_minutes = parse_time(match.group(1))
    close_minutes = parse_time(match.group(2))
    if open_minutes is None or close_minutes is None:
        return None
    return _TimeRange(open_minutes=open_minutes, close_minutes=close_minutes, prefix=text[: match.start()])
