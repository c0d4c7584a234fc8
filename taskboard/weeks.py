"""Week keys: mapping instants to canonical weeks and weeks to day labels.

A week key is the ISO date (``YYYY-MM-DD``, zero padded) of the first day of
a calendar week. The key is what tasks, week records and indices join on, so
every computation of "this week" or "today" goes through a single
:class:`WeekPolicy` (one zone, one first-day rule) and an injected ``now``.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from zoneinfo import ZoneInfo

from taskboard.errors import MalformedDate, MalformedWeekKey

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Indexed by date.weekday() (Monday == 0).
DAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class FirstDayOfWeek(str, Enum):
    sunday = "sunday"
    monday = "monday"


@dataclass(frozen=True)
class WeekPolicy:
    """The zone and first-day rule every week and day calculation uses."""
    timezone: ZoneInfo
    first_day: FirstDayOfWeek = FirstDayOfWeek.sunday

    @classmethod
    def from_names(cls, zone_name: str, first_day: str) -> "WeekPolicy":
        return cls(timezone=ZoneInfo(zone_name), first_day=FirstDayOfWeek(first_day))


# ─── Parsing ────────────────────────────────────────────────────────

def _parse_iso(value: object, error_cls: type) -> date:
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value):
        raise error_cls(value)
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise error_cls(value) from None


def parse_week_key(value: object) -> date:
    """Parse a stored week key, raising MalformedWeekKey instead of guessing."""
    return _parse_iso(value, MalformedWeekKey)


def parse_date(value: object) -> date:
    """Parse a ``YYYY-MM-DD`` calendar date, raising MalformedDate."""
    return _parse_iso(value, MalformedDate)


def format_key(day: date) -> str:
    return day.isoformat()


# ─── Instants ───────────────────────────────────────────────────────

def local_date(instant: datetime, policy: WeekPolicy) -> date:
    """Return the calendar date of ``instant`` in the policy zone.

    SQLite hands datetimes back without tzinfo; those are stored as UTC.
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(policy.timezone).date()


def day_name_for(instant: datetime, policy: WeekPolicy) -> str:
    """Lowercase weekday name of ``instant`` in the policy zone (a day status)."""
    return DAY_NAMES[local_date(instant, policy).weekday()]


def week_start(day: date, first_day: FirstDayOfWeek) -> date:
    if first_day == FirstDayOfWeek.sunday:
        offset = (day.weekday() + 1) % 7
    else:
        offset = day.weekday()
    return day - timedelta(days=offset)


def current_week_key(now: datetime, policy: WeekPolicy) -> str:
    """Week key of the week containing ``now``."""
    return format_key(week_start(local_date(now, policy), policy.first_day))


# ─── Week arithmetic ────────────────────────────────────────────────

def next_week_key(week_key: str) -> str:
    return format_key(parse_week_key(week_key) + timedelta(days=7))


def previous_week_key(week_key: str) -> str:
    return format_key(parse_week_key(week_key) - timedelta(days=7))


def week_end_date(week_key: str) -> str:
    """Last day (inclusive) of the week starting at ``week_key``."""
    return format_key(parse_week_key(week_key) + timedelta(days=6))


def week_dates(week_key: str) -> list[date]:
    start = parse_week_key(week_key)
    return [start + timedelta(days=offset) for offset in range(7)]


def display_date(day: date) -> str:
    """Short human-readable date, e.g. ``Jun 9``."""
    return f"{day:%b} {day.day}"


def day_labels_for_week(week_key: str) -> list[tuple[str, str]]:
    """The week's seven ``(day_name, display_date)`` pairs in calendar order."""
    return [(DAY_NAMES[day.weekday()], display_date(day)) for day in week_dates(week_key)]


def week_range_label(week_key: str) -> tuple[str, str]:
    days = week_dates(week_key)
    return display_date(days[0]), display_date(days[-1])
