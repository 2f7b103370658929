from __future__ import annotations

from calendar import month_name
from datetime import date, timedelta
import re

from ledger_analytics.records import parse_iso_date

MONTH_KEY_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")
WEEK_KEY_PATTERN = re.compile(r"^(\d{4})-W(\d{2})$")
YEAR_KEY_PATTERN = re.compile(r"^\d{4}$")
THURSDAY = 3


class Granularity:
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    values = {DAY, WEEK, MONTH, YEAR}

    @classmethod
    def validate(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in cls.values:
            raise ValueError("Granularity must be one of day, week, month, or year.")
        return normalized


def bucket_key(day: date, granularity: str) -> str:
    normalized = Granularity.validate(granularity)
    if normalized == Granularity.DAY:
        return day.isoformat()
    if normalized == Granularity.WEEK:
        return _week_key(day)
    if normalized == Granularity.MONTH:
        return f"{day.year:04d}-{day.month:02d}"
    return f"{day.year:04d}"


def bucket_label(key: str, granularity: str) -> str:
    normalized = Granularity.validate(granularity)
    if normalized == Granularity.DAY:
        return format_day_label(parse_iso_date(key))
    if normalized == Granularity.WEEK:
        return f"Week of {format_day_label(week_start(key))}"
    if normalized == Granularity.MONTH:
        return format_month_label(key)
    if not YEAR_KEY_PATTERN.match(key):
        raise ValueError(f"Invalid year key: {key!r}")
    return key


def week_start(key: str) -> date:
    """Return the Monday that opens the ISO week named by ``key`` (``YYYY-Www``).

    Jan 1 keeps its weekday when shifted by whole weeks, so the week-``ww``
    candidate is rolled back to its Monday when Jan 1 falls Monday to
    Thursday (Jan 1 is inside week 1) and forward to the next Monday
    otherwise (Jan 1 still belongs to the previous year's last week).
    """
    match = WEEK_KEY_PATTERN.match(key)
    if not match:
        raise ValueError(f"Invalid week key: {key!r}")
    year, week = int(match.group(1)), int(match.group(2))
    if week < 1 or week > 53:
        raise ValueError(f"Invalid week key: {key!r}")
    candidate = date(year, 1, 1) + timedelta(weeks=week - 1)
    weekday = candidate.weekday()
    if weekday <= THURSDAY:
        return candidate - timedelta(days=weekday)
    return candidate + timedelta(days=7 - weekday)


def format_day_label(day: date) -> str:
    return f"{month_name[day.month]} {day.day}, {day.year}"


def format_month_label(key: str) -> str:
    match = MONTH_KEY_PATTERN.match(key)
    if not match:
        raise ValueError(f"Invalid month key: {key!r}")
    year, month = int(match.group(1)), int(match.group(2))
    if month < 1 or month > 12:
        raise ValueError(f"Invalid month key: {key!r}")
    return f"{month_name[month]} {year}"


def _week_key(day: date) -> str:
    thursday = day + timedelta(days=THURSDAY - day.weekday())
    ordinal = thursday.timetuple().tm_yday
    week = (ordinal + 6) // 7
    return f"{thursday.year:04d}-W{week:02d}"
