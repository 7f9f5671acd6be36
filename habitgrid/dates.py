"""Calendar helpers for HabitGrid.

Months are 0-indexed throughout (0 = January, 11 = December) so that
grid coordinates ``(year, month, day)`` map directly onto the UI columns.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from habitgrid.constants import DAYS_OF_WEEK, MONTHS


def _as_date(year: int, month: int, day: int) -> date:
    return date(year, month + 1, day)


def iso_day(year: int, month: int, day: int) -> str:
    """Return the record key for a grid cell, e.g. ``2026-10-05``."""
    return _as_date(year, month, day).isoformat()


def parse_iso_day(s: str) -> date:
    """Parse a record date. Accepts a full ISO timestamp as well."""
    return date.fromisoformat(s[:10])


def days_in_month(year: int, month: int) -> int:
    if not 0 <= month <= 11:
        raise ValueError(f"Invalid month index: {month}")
    return calendar.monthrange(year, month + 1)[1]


def next_month(year: int, month: int) -> tuple[int, int]:
    if month == 11:
        return year + 1, 0
    return year, month + 1


def prev_month(year: int, month: int) -> tuple[int, int]:
    if month == 0:
        return year - 1, 11
    return year, month - 1


def today_parts(today: date | None = None) -> tuple[int, int, int]:
    """(year, 0-indexed month, day) for today."""
    t = today or date.today()
    return t.year, t.month - 1, t.day


def day_of_week(year: int, month: int, day: int) -> str:
    # date.weekday() is Monday=0; the name table starts on Sunday.
    return DAYS_OF_WEEK[(_as_date(year, month, day).weekday() + 1) % 7]


def is_weekend(year: int, month: int, day: int) -> bool:
    return _as_date(year, month, day).weekday() >= 5


def is_today(year: int, month: int, day: int, today: date | None = None) -> bool:
    return (year, month, day) == today_parts(today)


def is_past(year: int, month: int, day: int, today: date | None = None) -> bool:
    return (year, month, day) < today_parts(today)


def is_future(year: int, month: int, day: int, today: date | None = None) -> bool:
    return (year, month, day) > today_parts(today)


def week_number(d: date) -> int:
    """ISO-8601 week number."""
    return d.isocalendar()[1]


def month_info(year: int, month: int) -> dict[str, Any]:
    n = days_in_month(year, month)
    return {
        "year": year,
        "month": month,
        "monthName": MONTHS[month],
        "daysInMonth": n,
        "firstDay": DAYS_OF_WEEK.index(day_of_week(year, month, 1)),
        "lastDay": DAYS_OF_WEEK.index(day_of_week(year, month, n)),
    }


@dataclass
class DayInfo:
    day: int
    day_of_week: str
    is_weekend: bool
    is_today: bool
    is_past: bool
    is_future: bool
    date: date

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day,
            "dayOfWeek": self.day_of_week,
            "isWeekend": self.is_weekend,
            "isToday": self.is_today,
            "isPast": self.is_past,
            "isFuture": self.is_future,
            "date": self.date.isoformat(),
        }


def generate_month_days(year: int, month: int, today: date | None = None) -> list[DayInfo]:
    days = []
    for day in range(1, days_in_month(year, month) + 1):
        days.append(DayInfo(
            day=day,
            day_of_week=day_of_week(year, month, day),
            is_weekend=is_weekend(year, month, day),
            is_today=is_today(year, month, day, today),
            is_past=is_past(year, month, day, today),
            is_future=is_future(year, month, day, today),
            date=_as_date(year, month, day),
        ))
    return days


def format_date(d: date | datetime | str, fmt: str = "short") -> str:
    """Format a date for display: ``short``, ``long``, ``month-year`` or ISO."""
    if isinstance(d, str):
        d = parse_iso_day(d)
    if fmt == "short":
        return f"{d.strftime('%b')} {d.day}, {d.year}"
    if fmt == "long":
        return f"{d.strftime('%A, %B')} {d.day}, {d.year}"
    if fmt == "month-year":
        return f"{MONTHS[d.month - 1]} {d.year}"
    if isinstance(d, datetime):
        d = d.date()
    return d.isoformat()


def format_relative_time(then: datetime, now: datetime | None = None) -> str:
    if now is None:
        now = datetime.now(then.tzinfo)
    secs = (now - then).total_seconds()
    mins = int(secs // 60)
    hours = int(secs // 3600)
    days = int(secs // 86400)

    if mins < 1:
        return "just now"
    if mins < 60:
        return f"{mins}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days == 1:
        return "yesterday"
    if days < 7:
        return f"{days}d ago"
    if days < 30:
        return f"{days // 7}w ago"
    if days < 365:
        return f"{days // 30}mo ago"
    return f"{days // 365}y ago"
