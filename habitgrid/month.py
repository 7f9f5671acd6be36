"""Month navigation for the habit grid."""

from __future__ import annotations

from datetime import date
from typing import Any

from habitgrid.calculations import percent
from habitgrid.dates import (
    DayInfo,
    format_date,
    generate_month_days,
    iso_day,
    next_month,
    prev_month,
    today_parts,
)
from habitgrid.models import Habit


class MonthView:
    """The month currently shown in the grid, with its day list."""

    def __init__(self, year: int, month: int, today: date | None = None) -> None:
        self.year = year
        self.month = month
        self.today = today
        self.days: list[DayInfo] = []
        self._update_days()

    @classmethod
    def current(cls, today: date | None = None) -> MonthView:
        year, month, _ = today_parts(today)
        return cls(year, month, today)

    def _update_days(self) -> None:
        self.days = generate_month_days(self.year, self.month, self.today)

    def next(self) -> dict[str, Any]:
        self.year, self.month = next_month(self.year, self.month)
        self._update_days()
        return self.info()

    def previous(self) -> dict[str, Any]:
        self.year, self.month = prev_month(self.year, self.month)
        self._update_days()
        return self.info()

    def set_month(self, year: int, month: int) -> dict[str, Any]:
        if not 0 <= month <= 11:
            raise ValueError(f"Invalid month index: {month}")
        self.year = year
        self.month = month
        self._update_days()
        return self.info()

    def info(self) -> dict[str, Any]:
        ty, tm, td = today_parts(self.today)
        return {
            "year": self.year,
            "month": self.month,
            "monthName": format_date(date(self.year, self.month + 1, 1), "month-year"),
            "days": [d.to_dict() for d in self.days],
            "daysInMonth": len(self.days),
            "today": {"year": ty, "month": tm, "day": td},
        }

    def day_status(self, day: int) -> str:
        """``past``, ``today`` or ``future`` for a day of this month."""
        cell = (self.year, self.month, day)
        now = today_parts(self.today)
        if cell > now:
            return "future"
        if cell < now:
            return "past"
        return "today"

    def is_current_month(self) -> bool:
        ty, tm, _ = today_parts(self.today)
        return self.year == ty and self.month == tm

    def week_ranges(self) -> list[list[DayInfo]]:
        """Days of the month split into weeks starting on Sunday."""
        weeks: list[list[DayInfo]] = []
        current: list[DayInfo] = []
        for day in self.days:
            if day.day_of_week == "Sun" and current:
                weeks.append(current)
                current = []
            current.append(day)
        if current:
            weeks.append(current)
        return weeks

    def week_completion(self, habits: list[Habit]) -> list[dict[str, Any]]:
        result = []
        for i, week in enumerate(self.week_ranges()):
            possible = 0
            completed = 0
            for day in week:
                key = iso_day(self.year, self.month, day.day)
                for habit in habits:
                    possible += 1
                    if habit.is_completed(key):
                        completed += 1
            result.append({
                "week": i + 1,
                "startDate": week[0].date.isoformat(),
                "endDate": week[-1].date.isoformat(),
                "completion": percent(completed, possible),
                "totalCompleted": completed,
                "totalPossible": possible,
            })
        return result
