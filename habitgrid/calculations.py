"""Progress and statistics engine for HabitGrid.

Derives per-habit and overall monthly progress from the raw daily
records: completion percentage against the goal, current streak,
consistency across the month, and the aggregate views built on top of
them (weekly trends, best day, projections, motivation score).
"""

from __future__ import annotations

import math
from datetime import date
from typing import Any

from habitgrid.constants import MOTIVATION_LEVELS
from habitgrid.dates import days_in_month, iso_day, parse_iso_day, today_parts
from habitgrid.models import (
    Habit,
    HabitProgress,
    MotivationScore,
    OverallProgress,
    ProjectedCompletion,
    Record,
)


def round_half_up(x: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's)."""
    return int(math.floor(x + 0.5))


def percent(part: float, whole: float, cap: bool = False) -> int:
    if whole <= 0:
        return 0
    p = round_half_up(part / whole * 100)
    return min(p, 100) if cap else p


def month_records(habit: Habit, year: int, month: int) -> list[Record]:
    """Records of *habit* that fall inside the given month."""
    prefix = f"{year:04d}-{month + 1:02d}-"
    return [r for r in habit.records if r.date.startswith(prefix)]


# ── Per habit ─────────────────────────────────────────────────


def calculate_streak(records: list[Record]) -> int:
    """Length of the run of consecutive completed days ending at the latest one."""
    days = sorted(
        {parse_iso_day(r.date) for r in records if r.completed},
        reverse=True,
    )
    if not days:
        return 0

    streak = 1
    last = days[0]
    for d in days[1:]:
        if (last - d).days == 1:
            streak += 1
            last = d
        else:
            break
    return streak


def calculate_consistency(records: list[Record], year: int, month: int) -> int:
    completed = sum(1 for r in records if r.completed)
    return percent(completed, days_in_month(year, month))


def calculate_completion(habit: Habit, year: int, month: int) -> HabitProgress:
    records = month_records(habit, year, month)
    completed = sum(1 for r in records if r.completed)
    return HabitProgress(
        completed=completed,
        goal=habit.goal,
        percentage=percent(completed, habit.goal, cap=True),
        remaining=max(0, habit.goal - completed),
        streak=calculate_streak(records),
        consistency=calculate_consistency(records, year, month),
    )


# ── Across habits ─────────────────────────────────────────────


def calculate_overall_progress(habits: list[Habit], year: int, month: int) -> OverallProgress:
    """Aggregate progress: total completions over total goals, capped at 100%."""
    if not habits:
        return OverallProgress()

    total_completed = 0
    total_goal = 0
    pct_sum = 0
    habits_completed = 0
    for habit in habits:
        progress = calculate_completion(habit, year, month)
        total_completed += progress.completed
        total_goal += habit.goal
        pct_sum += progress.percentage
        if progress.percentage >= 100:
            habits_completed += 1

    return OverallProgress(
        percentage=percent(total_completed, total_goal, cap=True),
        average_percentage=round_half_up(pct_sum / len(habits)),
        total_completed=total_completed,
        total_goal=total_goal,
        habits_completed=habits_completed,
        total_habits=len(habits),
    )


def calculate_weekly_trends(habits: list[Habit], year: int, month: int) -> list[dict[str, Any]]:
    """Completion per 7-day bucket of the month (days 1-7, 8-14, ..., 29-31)."""
    n = days_in_month(year, month)
    weeks = []
    for week in range(5):
        done = 0
        total = 0
        for day in range(week * 7 + 1, min((week + 1) * 7, n) + 1):
            key = iso_day(year, month, day)
            for habit in habits:
                total += 1
                if habit.is_completed(key):
                    done += 1
        weeks.append({
            "week": week + 1,
            "completion": percent(done, total),
            "completed": done,
            "total": total,
        })
    return weeks


def calculate_day_completion(habits: list[Habit], year: int, month: int) -> list[dict[str, Any]]:
    """Per-day completion across all habits, with a heat-map status."""
    stats = []
    for day in range(1, days_in_month(year, month) + 1):
        key = iso_day(year, month, day)
        done = sum(1 for h in habits if h.is_completed(key))
        pct = percent(done, len(habits))
        if pct == 100:
            status = "completed"
        elif pct >= 50:
            status = "partial"
        elif pct > 0:
            status = "missed"
        else:
            status = "empty"
        stats.append({
            "day": day,
            "completed": done,
            "total": len(habits),
            "percentage": pct,
            "status": status,
        })
    return stats


def calculate_best_day(habits: list[Habit], year: int, month: int) -> dict[str, int]:
    best = {"day": 0, "completed": 0, "percentage": 0}
    for stat in calculate_day_completion(habits, year, month):
        if stat["completed"] > best["completed"]:
            best = {"day": stat["day"], "completed": stat["completed"], "percentage": stat["percentage"]}
    return best


def calculate_habit_frequency(habits: list[Habit], year: int, month: int) -> dict[str, int]:
    frequency = {
        "daily": 0,
        "3-4 times/week": 0,
        "1-2 times/week": 0,
        "few times/month": 0,
    }
    for habit in habits:
        per_week = calculate_completion(habit, year, month).completed / 4.3
        if per_week >= 6:
            frequency["daily"] += 1
        elif per_week >= 3.5:
            frequency["3-4 times/week"] += 1
        elif per_week >= 1.5:
            frequency["1-2 times/week"] += 1
        else:
            frequency["few times/month"] += 1
    return frequency


def calculate_projected_completion(
    habits: list[Habit],
    year: int,
    month: int,
    today: date | None = None,
) -> ProjectedCompletion:
    """Extrapolate each habit's daily rate so far to the end of the month.

    For a past month the projection is the actual result; for a future
    month nothing has elapsed yet, so the projection is zero.
    """
    n = days_in_month(year, month)
    ty, tm, td = today_parts(today)
    if (year, month) < (ty, tm):
        current_day, days_remaining = n, 0
    elif (year, month) > (ty, tm):
        current_day, days_remaining = 0, n
    else:
        current_day, days_remaining = td, n - td + 1

    projected = 0.0
    goal = 0
    for habit in habits:
        completed = calculate_completion(habit, year, month).completed
        daily = completed / current_day if current_day else 0.0
        projected += completed + daily * days_remaining
        goal += habit.goal

    pct = percent(projected, goal, cap=True)
    return ProjectedCompletion(
        projected_percentage=pct,
        projected_completed=round_half_up(projected),
        projected_goal=goal,
        days_remaining=days_remaining,
        on_track=pct >= 100,
    )


def motivation_level(score: int) -> str:
    for threshold, label in MOTIVATION_LEVELS:
        if score >= threshold:
            return label
    return MOTIVATION_LEVELS[-1][1]


def calculate_motivation_score(habits: list[Habit], year: int, month: int) -> MotivationScore:
    """Weighted score: 50% completion, 30% consistency, 20% average streak."""
    overall = calculate_overall_progress(habits, year, month)

    streaks = []
    consistency = []
    for habit in habits:
        records = month_records(habit, year, month)
        streaks.append(calculate_streak(records))
        consistency.append(calculate_consistency(records, year, month))

    avg_streak = sum(streaks) / len(streaks) if streaks else 0.0
    avg_consistency = sum(consistency) / len(consistency) if consistency else 0.0

    score = min(
        round_half_up(overall.percentage * 0.5 + avg_consistency * 0.3 + avg_streak * 0.2),
        100,
    )
    return MotivationScore(
        score=score,
        level=motivation_level(score),
        completion=overall.percentage,
        consistency=round_half_up(avg_consistency),
        average_streak=round_half_up(avg_streak),
    )
