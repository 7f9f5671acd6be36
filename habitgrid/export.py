"""JSON and CSV snapshots of the habit list with derived progress fields."""

from __future__ import annotations

import csv
import io
import json
from typing import Any

from habitgrid.calculations import calculate_motivation_score
from habitgrid.constants import APP_NAME, EXPORT_TYPES
from habitgrid.habits import get_habit_progress, get_habits_with_progress, get_overall_progress
from habitgrid.models import HabitsFile
from habitgrid.workspace import timestamp

CSV_COLUMNS = [
    "id",
    "name",
    "emoji",
    "goal",
    "color",
    "completed",
    "percentage",
    "remaining",
    "streak",
    "consistency",
    "createdAt",
    "updatedAt",
]


def export_filename(kind: str, year: int, month: int) -> str:
    if kind not in EXPORT_TYPES:
        raise ValueError(f"Unsupported export type: {kind}")
    return f"{APP_NAME.lower()}-{year:04d}-{month + 1:02d}.{kind}"


def build_snapshot(habits_file: HabitsFile, year: int, month: int) -> dict[str, Any]:
    return {
        "app": APP_NAME,
        "exportedAt": timestamp(),
        "version": habits_file.version,
        "lastUpdated": habits_file.last_updated,
        "period": {"year": year, "month": month},
        "habits": get_habits_with_progress(habits_file, year, month),
        "overall": get_overall_progress(habits_file, year, month).to_dict(),
        "motivation": calculate_motivation_score(habits_file.habits, year, month).to_dict(),
    }


def export_json(habits_file: HabitsFile, year: int, month: int) -> str:
    return json.dumps(build_snapshot(habits_file, year, month), indent=2, ensure_ascii=False) + "\n"


def export_csv(habits_file: HabitsFile, year: int, month: int) -> str:
    """One row per habit; records are summarised, not listed."""
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for habit in habits_file.habits:
        progress = get_habit_progress(habit, year, month)
        writer.writerow({
            "id": habit.id,
            "name": habit.name,
            "emoji": habit.emoji,
            "goal": habit.goal,
            "color": habit.color,
            "completed": progress.completed,
            "percentage": progress.percentage,
            "remaining": progress.remaining,
            "streak": progress.streak,
            "consistency": progress.consistency,
            "createdAt": habit.created_at,
            "updatedAt": habit.updated_at,
        })
    return buf.getvalue()
