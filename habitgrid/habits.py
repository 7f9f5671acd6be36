"""Habit CRUD, validation, day toggling and progress views for HabitGrid."""

from __future__ import annotations

import re
import secrets
import time
from datetime import date
from typing import Any

from habitgrid.calculations import (
    calculate_completion,
    calculate_overall_progress,
    calculate_streak,
)
from habitgrid.constants import DEFAULT_SETTINGS, MAX_HABITS
from habitgrid.dates import is_future, iso_day
from habitgrid.models import Habit, HabitProgress, HabitsFile, OverallProgress, Record, clamp_goal
from habitgrid.workspace import timestamp


# ── Validation ────────────────────────────────────────────────


EDITABLE_FIELDS = {"name", "emoji", "goal", "color"}
COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


def validate_habit(habit: dict[str, Any], partial: bool = False) -> list[str]:
    """Validate habit fields and return list of errors (empty if valid)."""
    errors = []
    if "name" in habit or not partial:
        name = habit.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.append("Missing required field: name")
        elif len(name) > 100:
            errors.append("name must be at most 100 characters")

    if "goal" in habit:
        goal = habit["goal"]
        if isinstance(goal, bool) or not isinstance(goal, (int, float, str)):
            errors.append("goal must be an integer")
        else:
            try:
                int(goal)
            except (TypeError, ValueError, OverflowError):
                errors.append("goal must be an integer")

    if "emoji" in habit and not isinstance(habit["emoji"], str):
        errors.append("emoji must be a string")

    if "color" in habit and not (isinstance(habit["color"], str) and COLOR_RE.match(habit["color"])):
        errors.append(f"Invalid color: {habit['color']}")

    return errors


def make_habit_id(name: str, taken: set[str]) -> str:
    """Slug of the name plus a millisecond timestamp, with a random suffix on collision."""
    slug = re.sub(r"\s+", "_", name.strip().lower())
    habit_id = f"{slug}_{int(time.time() * 1000)}"
    while habit_id in taken:
        habit_id = f"{slug}_{int(time.time() * 1000)}_{secrets.token_hex(3)}"
    return habit_id


# ── CRUD ──────────────────────────────────────────────────────


def find_habit(habits_file: HabitsFile, habit_id: str) -> Habit | None:
    for h in habits_file.habits:
        if h.id == habit_id:
            return h
    return None


def create_habit(
    habits_file: HabitsFile,
    habit_data: dict[str, Any],
    default_goal: int = DEFAULT_SETTINGS["defaultGoal"],
) -> tuple[Habit, list[str]]:
    """Create and add a new habit. Returns (habit, errors)."""
    if len(habits_file.habits) >= MAX_HABITS:
        return Habit(), [f"Habit limit reached: at most {MAX_HABITS} habits"]

    errors = validate_habit(habit_data)
    if errors:
        return Habit(), errors

    now = timestamp()
    data = {k: v for k, v in habit_data.items() if k in EDITABLE_FIELDS}
    data["name"] = data["name"].strip()
    data.setdefault("goal", default_goal)
    data["id"] = make_habit_id(data["name"], {h.id for h in habits_file.habits})
    data["createdAt"] = now
    data["updatedAt"] = now

    habit = Habit.from_dict(data)
    habits_file.habits.append(habit)
    return habit, []


def update_habit(
    habits_file: HabitsFile,
    habit_id: str,
    updates: dict[str, Any],
) -> tuple[Habit | None, list[str]]:
    """Update name/emoji/goal/color of a habit. Returns (updated_habit, errors)."""
    habit = find_habit(habits_file, habit_id)
    if not habit:
        return None, [f"Habit not found: {habit_id}"]

    unknown = set(updates) - EDITABLE_FIELDS
    if unknown:
        return None, [f"Field cannot be updated: {f}" for f in sorted(unknown)]

    errors = validate_habit(updates, partial=True)
    if errors:
        return None, errors

    if "name" in updates:
        habit.name = updates["name"].strip()
    if "emoji" in updates:
        habit.emoji = updates["emoji"]
    if "goal" in updates:
        habit.goal = clamp_goal(updates["goal"])
    if "color" in updates:
        habit.color = updates["color"]
    habit.updated_at = timestamp()
    return habit, []


def delete_habit(habits_file: HabitsFile, habit_id: str) -> bool:
    for i, h in enumerate(habits_file.habits):
        if h.id == habit_id:
            habits_file.habits.pop(i)
            return True
    return False


# ── Day toggling ──────────────────────────────────────────────


def toggle_day(
    habits_file: HabitsFile,
    habit_id: str,
    year: int,
    month: int,
    day: int,
    completed: bool | None = None,
) -> Record | None:
    """Flip one habit's completion for a day, or force it when *completed* is given.

    The record is created on the first toggle and mutated afterwards, so
    there is never more than one record per (habit, date).
    Raises ValueError for a day that does not exist in the month.
    """
    habit = find_habit(habits_file, habit_id)
    if not habit:
        return None

    key = iso_day(year, month, day)
    now = timestamp()
    record = habit.find_record(key)
    if record is None:
        record = Record(
            date=key,
            completed=True if completed is None else completed,
            created_at=now,
            updated_at=now,
        )
        habit.records.append(record)
    else:
        record.completed = (not record.completed) if completed is None else completed
        record.updated_at = now

    habit.updated_at = now
    return record


def toggle_all_for_day(
    habits_file: HabitsFile,
    year: int,
    month: int,
    day: int,
    today: date | None = None,
) -> list[Record]:
    """Column toggle: clear the day if any habit is done, otherwise mark all done.

    Future days are left untouched.
    """
    if is_future(year, month, day, today):
        return []

    key = iso_day(year, month, day)
    any_completed = any(h.is_completed(key) for h in habits_file.habits)
    records = []
    for habit in habits_file.habits:
        rec = toggle_day(habits_file, habit.id, year, month, day, completed=not any_completed)
        if rec is not None:
            records.append(rec)
    return records


# ── Progress views ────────────────────────────────────────────


def get_habit_progress(habit: Habit, year: int, month: int) -> HabitProgress:
    return calculate_completion(habit, year, month)


def get_overall_progress(habits_file: HabitsFile, year: int, month: int) -> OverallProgress:
    return calculate_overall_progress(habits_file.habits, year, month)


def get_habit_streaks(habits_file: HabitsFile) -> list[dict[str, Any]]:
    """Current streak of every habit over all its records, longest first."""
    streaks = [
        {
            "id": h.id,
            "name": h.name,
            "emoji": h.emoji,
            "streak": calculate_streak(h.records),
        }
        for h in habits_file.habits
    ]
    streaks.sort(key=lambda s: s["streak"], reverse=True)
    return streaks


def get_habits_with_progress(habits_file: HabitsFile, year: int, month: int) -> list[dict[str, Any]]:
    """Habits serialized with a computed ``progress`` block for the month."""
    result = []
    for habit in habits_file.habits:
        d = habit.to_dict()
        d["progress"] = get_habit_progress(habit, year, month).to_dict()
        result.append(d)
    return result


def get_top_habits(habits_file: HabitsFile, year: int, month: int, limit: int = 5) -> list[dict[str, Any]]:
    ranked = get_habits_with_progress(habits_file, year, month)
    ranked.sort(key=lambda d: d["progress"]["percentage"], reverse=True)
    return ranked[:limit]
