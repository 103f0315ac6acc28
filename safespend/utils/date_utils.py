"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, time
from typing import Optional, Tuple

from dateutil.relativedelta import relativedelta


def start_of_day(moment: datetime) -> datetime:
    """Local midnight of the given moment's day"""
    return datetime.combine(moment.date(), time.min)


def is_same_day(a: datetime, b: datetime) -> bool:
    return a.date() == b.date()


def at_time(day: date, hour: int, minute: int = 0) -> datetime:
    """Combine a calendar day with a wall-clock time"""
    return datetime.combine(day, time(hour, minute))


def parse_hhmm(value: str) -> Tuple[int, int]:
    """
    Parse an "HH:MM" string into (hour, minute).

    A bare hour ("7") is accepted with minute 0.

    Raises:
        ValueError: Not a wall-clock time (hour 0-23, minute 0-59)
    """
    hour, _, minute = value.strip().partition(":")
    h, m = int(hour), int(minute or 0)
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise ValueError(f"Invalid time of day: {value!r}")
    return h, m


def validate_hhmm(value: Optional[str]) -> Optional[str]:
    """Pass through an unset value or a valid "HH:MM" string"""
    if value:
        parse_hhmm(value)
    return value


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def first_of_month(day: date) -> date:
    return date(day.year, day.month, 1)


def previous_month(day: date) -> date:
    """First day of the month before the given day's month"""
    return first_of_month(day) - relativedelta(months=1)


def is_same_month(a: date, b: date) -> bool:
    return a.year == b.year and a.month == b.month


def month_key(day: date) -> str:
    """YYYY-MM key used in identifiers and storage"""
    return f"{day.year:04d}-{day.month:02d}"


def format_month_year(day: date) -> str:
    """Human label such as "September 2026" """
    return f"{calendar.month_name[day.month]} {day.year}"


def to_local_naive(moment: datetime) -> datetime:
    """Convert an aware datetime to naive local wall-clock time"""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)
