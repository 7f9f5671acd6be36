"""Grid projection: habits x days of a month, ready for a front end to draw."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from habitgrid.calculations import calculate_streak
from habitgrid.dates import DayInfo, iso_day
from habitgrid.habits import get_habit_progress, get_overall_progress
from habitgrid.models import Habit, HabitProgress, HabitsFile, OverallProgress
from habitgrid.month import MonthView


@dataclass
class GridCell:
    day: int
    checked: bool = False
    state: str = "open"  # checked, missed, future, open
    today: bool = False

    @property
    def clickable(self) -> bool:
        return self.state != "future"

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day,
            "checked": self.checked,
            "state": self.state,
            "today": self.today,
            "clickable": self.clickable,
        }


@dataclass
class GridRow:
    habit: Habit
    progress: HabitProgress
    cells: list[GridCell] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.habit.id,
            "name": self.habit.name,
            "emoji": self.habit.emoji,
            "goal": self.habit.goal,
            "color": self.habit.color,
            "progress": self.progress.to_dict(),
            "cells": [c.to_dict() for c in self.cells],
        }


@dataclass
class GridView:
    year: int
    month: int
    month_name: str
    days: list[DayInfo]
    rows: list[GridRow]
    overall: OverallProgress
    max_streak: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "monthName": self.month_name,
            "days": [d.to_dict() for d in self.days],
            "rows": [r.to_dict() for r in self.rows],
            "stats": {
                "activeCount": len(self.rows),
                "overall": self.overall.to_dict(),
                "maxStreak": self.max_streak,
            },
        }


def cell_for(habit: Habit, year: int, month: int, day: DayInfo) -> GridCell:
    checked = habit.is_completed(iso_day(year, month, day.day))
    if day.is_future:
        state = "future"
    elif checked:
        state = "checked"
    elif day.is_past:
        state = "missed"
    else:
        state = "open"
    return GridCell(day=day.day, checked=checked, state=state, today=day.is_today)


def build_grid(habits_file: HabitsFile, year: int, month: int, today: date | None = None) -> GridView:
    view = MonthView(year, month, today)
    rows = []
    for habit in habits_file.habits:
        rows.append(GridRow(
            habit=habit,
            progress=get_habit_progress(habit, year, month),
            cells=[cell_for(habit, year, month, d) for d in view.days],
        ))
    streaks = [calculate_streak(h.records) for h in habits_file.habits]
    return GridView(
        year=year,
        month=month,
        month_name=view.info()["monthName"],
        days=view.days,
        rows=rows,
        overall=get_overall_progress(habits_file, year, month),
        max_streak=max(streaks) if streaks else 0,
    )
