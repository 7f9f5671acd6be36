"""Tests for habitgrid/calculations.py: percentages, streaks, aggregates."""

from datetime import date

from habitgrid.calculations import (
    calculate_best_day,
    calculate_completion,
    calculate_consistency,
    calculate_day_completion,
    calculate_habit_frequency,
    calculate_motivation_score,
    calculate_overall_progress,
    calculate_projected_completion,
    calculate_streak,
    calculate_weekly_trends,
    month_records,
    motivation_level,
    percent,
    round_half_up,
)
from habitgrid.models import Habit, Record

FEB = (2026, 1)


def _habit(days, goal=20, hid="h", month=2, missed=()):
    records = [Record(date=f"2026-{month:02d}-{d:02d}", completed=True) for d in days]
    records += [Record(date=f"2026-{month:02d}-{d:02d}", completed=False) for d in missed]
    return Habit(id=hid, name=hid, goal=goal, records=records)


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


def test_percent_zero_whole():
    assert percent(3, 0) == 0
    assert percent(150, 100) == 150
    assert percent(150, 100, cap=True) == 100


def test_completion_goal_30_with_15_done():
    h = _habit(range(1, 16), goal=30)
    p = calculate_completion(h, *FEB)
    assert p.completed == 15
    assert p.percentage == 50
    assert p.remaining == 15


def test_completion_rounds_half_up():
    h = _habit([1], goal=8)
    assert calculate_completion(h, *FEB).percentage == 13


def test_completion_capped_at_100():
    h = _habit(range(1, 8), goal=5)
    p = calculate_completion(h, *FEB)
    assert p.percentage == 100
    assert p.remaining == 0


def test_completion_ignores_other_months_and_unchecked():
    h = _habit([1, 2], goal=10, missed=[3])
    h.records.append(Record(date="2026-03-01", completed=True))
    p = calculate_completion(h, *FEB)
    assert p.completed == 2
    assert len(month_records(h, *FEB)) == 3


def test_streak_gap_terminates_run():
    h = _habit([1, 2, 3, 5, 6])
    assert calculate_streak(h.records) == 2


def test_streak_unsorted_and_unchecked_records():
    records = [
        Record(date="2026-02-04", completed=True),
        Record(date="2026-02-06", completed=False),
        Record(date="2026-02-05", completed=True),
        Record(date="2026-02-03", completed=True),
    ]
    assert calculate_streak(records) == 3


def test_streak_crosses_month_boundary():
    records = [
        Record(date="2026-01-31", completed=True),
        Record(date="2026-02-01", completed=True),
    ]
    assert calculate_streak(records) == 2


def test_streak_empty():
    assert calculate_streak([]) == 0
    assert calculate_streak([Record(date="2026-02-01", completed=False)]) == 0


def test_consistency():
    h = _habit(range(1, 15))
    assert calculate_consistency(h.records, *FEB) == 50


def test_overall_uses_totals_not_mean():
    a = _habit(range(1, 11), goal=20, hid="a")  # 50%
    b = _habit([1, 2, 3], goal=10, hid="b")  # 30%
    overall = calculate_overall_progress([a, b], *FEB)
    assert overall.total_completed == 13
    assert overall.total_goal == 30
    assert overall.percentage == 43
    assert overall.average_percentage == 40
    assert overall.habits_completed == 0
    assert overall.total_habits == 2


def test_overall_empty_list():
    overall = calculate_overall_progress([], *FEB)
    assert overall.percentage == 0
    assert overall.total_habits == 0


def test_overall_capped():
    a = _habit(range(1, 6), goal=1, hid="a")
    overall = calculate_overall_progress([a], *FEB)
    assert overall.percentage == 100
    assert overall.habits_completed == 1


def test_weekly_trends():
    a = _habit(range(1, 11), hid="a")
    b = _habit([1, 2, 5], hid="b")
    weeks = calculate_weekly_trends([a, b], *FEB)
    assert len(weeks) == 5
    assert weeks[0] == {"week": 1, "completion": 71, "completed": 10, "total": 14}
    assert weeks[1]["completion"] == 21
    # February 2026 has 28 days, so the fifth bucket is empty.
    assert weeks[4]["total"] == 0
    assert weeks[4]["completion"] == 0


def test_day_completion_statuses():
    a = _habit([1, 2, 3], hid="a")
    b = _habit([1, 2], hid="b")
    c = _habit([1], hid="c")
    stats = calculate_day_completion([a, b, c], *FEB)
    assert len(stats) == 28
    assert stats[0]["status"] == "completed"
    assert stats[1]["status"] == "partial"
    assert stats[2]["status"] == "missed"
    assert stats[3]["status"] == "empty"


def test_best_day_earliest_of_ties():
    a = _habit([3, 4, 9], hid="a")
    b = _habit([4, 9], hid="b")
    best = calculate_best_day([a, b], *FEB)
    assert best == {"day": 4, "completed": 2, "percentage": 100}


def test_best_day_no_habits():
    assert calculate_best_day([], *FEB)["day"] == 0


def test_habit_frequency_buckets():
    habits = [
        _habit(range(1, 27), hid="daily"),
        _habit(range(1, 17), hid="often"),
        _habit(range(1, 11), hid="weekly"),
        _habit([1, 2], hid="rare"),
    ]
    assert calculate_habit_frequency(habits, *FEB) == {
        "daily": 1,
        "3-4 times/week": 1,
        "1-2 times/week": 1,
        "few times/month": 1,
    }


def test_projection_current_month():
    h = _habit([1, 3, 5, 7, 9], goal=25)
    proj = calculate_projected_completion([h], *FEB, today=date(2026, 2, 10))
    # 0.5/day so far, 19 days left including today: 5 + 9.5 = 14.5 of 25.
    assert proj.days_remaining == 19
    assert proj.projected_completed == 15
    assert proj.projected_percentage == 58
    assert proj.on_track is False


def test_projection_on_track():
    h = _habit(range(1, 11), goal=20)
    proj = calculate_projected_completion([h], *FEB, today=date(2026, 2, 10))
    assert proj.projected_percentage == 100
    assert proj.on_track is True


def test_projection_past_month_is_actual():
    h = _habit(range(1, 11), goal=20)
    proj = calculate_projected_completion([h], *FEB, today=date(2026, 3, 15))
    assert proj.days_remaining == 0
    assert proj.projected_completed == 10
    assert proj.projected_percentage == 50


def test_projection_future_month():
    proj = calculate_projected_completion([_habit([], goal=20)], *FEB, today=date(2026, 1, 15))
    assert proj.days_remaining == 28
    assert proj.projected_percentage == 0


def test_projection_no_habits():
    proj = calculate_projected_completion([], *FEB, today=date(2026, 2, 10))
    assert proj.projected_percentage == 0
    assert proj.projected_goal == 0


def test_motivation_levels():
    assert motivation_level(80) == "Excellent"
    assert motivation_level(79) == "Good"
    assert motivation_level(60) == "Good"
    assert motivation_level(40) == "Fair"
    assert motivation_level(39) == "Needs Improvement"


def test_motivation_score_weights():
    a = _habit(range(1, 11), goal=20, hid="a")
    b = _habit([1, 2, 5], goal=10, hid="b")
    m = calculate_motivation_score([a, b], *FEB)
    # 43 * 0.5 + 23.5 * 0.3 + 5.5 * 0.2 = 29.65
    assert m.score == 30
    assert m.level == "Needs Improvement"
    assert m.completion == 43
    assert m.consistency == 24
    assert m.average_streak == 6


def test_motivation_score_empty():
    m = calculate_motivation_score([], *FEB)
    assert m.score == 0
    assert m.level == "Needs Improvement"
