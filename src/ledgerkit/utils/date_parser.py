"""Date parsing utilities."""

from datetime import date, datetime, timedelta, UTC
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Make ``value`` UTC-aware; naive values are taken to be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_datetime(value) -> datetime:
    """Parse a timestamp supplied by a caller (e.g. a bulk import row).

    Accepts ``datetime``/``date`` objects and any string python-dateutil
    understands ("2024-01-15", "2024-01-15T09:30:00Z", "Jan 15 2024").
    Naive values are taken to be UTC.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip() if value is not None else ""
        if not text:
            raise ValueError("Empty date string")
        try:
            dt = date_parser.parse(text)
        except (ValueError, OverflowError, TypeError) as e:
            raise ValueError(f"Could not parse date '{text}': {e}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates and a few relative forms used for statement
    ranges: "today", "yesterday", "this month", "last month", "this year",
    "last year".

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "this month": today.replace(day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "this year": today.replace(month=1, day=1),
        "last year": today.replace(month=1, day=1) - relativedelta(years=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    return parse_datetime(date_str).date()


def end_of_day(day: date) -> datetime:
    """Last instant of ``day`` in UTC, for inclusive range filters."""
    return datetime(day.year, day.month, day.day, 23, 59, 59, 999999, tzinfo=UTC)


def start_of_day(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=UTC)
