"""Tests for habitgrid/models.py: dataclass serialization round-trips."""

from habitgrid.models import (
    Habit,
    HabitsFile,
    MotivationScore,
    OAuthClientConfig,
    Record,
    Settings,
    UserSession,
    clamp_goal,
)


def test_clamp_goal():
    assert clamp_goal(20) == 20
    assert clamp_goal(0) == 1
    assert clamp_goal(45) == 31
    assert clamp_goal("12") == 12
    assert clamp_goal("lots") == 1
    assert clamp_goal(float("inf")) == 1


def test_record_from_dict_trims_timestamp_date():
    r = Record.from_dict({"date": "2026-02-03T10:00:00Z", "completed": True})
    assert r.date == "2026-02-03"
    assert r.completed is True


def test_record_completed_only_true_for_real_true_values():
    assert Record.from_dict({"date": "2026-02-03", "completed": "false"}).completed is False
    assert Record.from_dict({"date": "2026-02-03", "completed": "true"}).completed is True
    assert Record.from_dict({"date": "2026-02-03", "completed": 0}).completed is False
    assert Record.from_dict({"date": "2026-02-03", "completed": 1}).completed is True
    assert Record.from_dict({"date": "2026-02-03", "completed": [True]}).completed is False


def test_habit_round_trip():
    d = {
        "id": "run_1",
        "name": "Run",
        "emoji": "🏃",
        "goal": 20,
        "color": "#34A853",
        "records": [{"date": "2026-02-01", "completed": True, "createdAt": "x", "updatedAt": "y"}],
        "createdAt": "2026-02-01T08:00:00+00:00",
        "updatedAt": "2026-02-01T08:00:00+00:00",
    }
    h = Habit.from_dict(d)
    assert h.records[0].created_at == "x"
    assert h.to_dict() == d


def test_habit_defaults():
    h = Habit.from_dict({"id": "a", "name": "A"})
    assert h.emoji == "🎯"
    assert h.goal == 20
    assert h.color == "#4285F4"
    assert h.records == []


def test_habit_goal_clamped_on_load():
    assert Habit.from_dict({"id": "a", "name": "A", "goal": 99}).goal == 31
    assert Habit.from_dict({"id": "a", "name": "A", "goal": -3}).goal == 1


def test_habit_duplicate_dates_collapse():
    h = Habit.from_dict({
        "id": "a",
        "name": "A",
        "records": [
            {"date": "2026-02-01", "completed": True},
            {"date": "2026-02-01", "completed": False},
        ],
    })
    assert len(h.records) == 1
    assert h.is_completed("2026-02-01") is False


def test_habit_drops_records_with_bad_dates():
    h = Habit.from_dict({
        "id": "a",
        "name": "A",
        "records": [
            {"date": "2026-02-01", "completed": True},
            {"date": "not-a-date", "completed": True},
            {"date": "2026-02-30", "completed": True},
        ],
    })
    assert [r.date for r in h.records] == ["2026-02-01"]


def test_habit_is_completed():
    h = Habit(id="a", records=[Record(date="2026-02-01", completed=True), Record(date="2026-02-02")])
    assert h.is_completed("2026-02-01") is True
    assert h.is_completed("2026-02-02") is False
    assert h.is_completed("2026-02-03") is False


def test_habits_file_from_bare_list():
    hf = HabitsFile.from_dict([{"id": "a", "name": "A"}])
    assert len(hf.habits) == 1
    assert hf.version == "1.0"


def test_habits_file_empty():
    hf = HabitsFile.from_dict({})
    assert hf.habits == []
    assert hf.last_updated == ""


def test_settings_merge_defaults():
    s = Settings.from_dict({"defaultGoal": 15, "theme": "neon"})
    assert s.default_goal == 15
    assert s.theme == "light"
    assert s.auto_save is True
    assert "timezone" not in s.to_dict()


def test_session_validity():
    s = UserSession.from_dict({"email": "a@b.c", "accessToken": "tok", "tokenExpiry": 2000})
    assert s.user.email == "a@b.c"
    assert s.is_valid(1000) is True
    assert s.is_valid(3000) is False
    assert UserSession().is_valid(0) is False


def test_session_to_dict_flattens_profile():
    s = UserSession.from_dict({"id": "u1", "name": "Ana", "accessToken": "tok", "tokenExpiry": 5})
    d = s.to_dict()
    assert d["id"] == "u1"
    assert d["accessToken"] == "tok"


def test_oauth_config_from_env(monkeypatch):
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "cid")
    monkeypatch.delenv("GOOGLE_CLIENT_SECRET", raising=False)
    cfg = OAuthClientConfig.from_env()
    assert cfg.client_id == "cid"
    assert cfg.is_configured() is False


def test_motivation_to_dict_breakdown():
    d = MotivationScore(score=70, level="Good", completion=80, consistency=50, average_streak=3).to_dict()
    assert d["breakdown"] == {"completion": 80, "consistency": 50, "averageStreak": 3}
