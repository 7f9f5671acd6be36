"""Tests for ui/app.py: HTTP API over the habit store."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from habitgrid.auth import GoogleAuth
from habitgrid.models import OAuthClientConfig, UserProfile, UserSession
from habitgrid.storage import load_habits
from ui.app import app, get_google_auth

FEB = {"year": 2026, "month": 1}


@pytest.fixture
def google(workspace):
    auth = GoogleAuth(
        config=OAuthClientConfig(client_id="cid", client_secret="secret"),
        root=workspace,
        http=MagicMock(),
    )
    app.dependency_overrides[get_google_auth] = lambda: auth
    yield auth
    app.dependency_overrides.clear()


@pytest.fixture
def client(google, monkeypatch):
    monkeypatch.delenv("HABITGRID_USERNAME", raising=False)
    monkeypatch.delenv("HABITGRID_PASSWORD", raising=False)
    return TestClient(app)


def test_healthz(client):
    assert client.get("/healthz").json() == {"ok": "true"}


def test_index_renders_grid(client):
    r = client.get("/", params=FEB)
    assert r.status_code == 200
    assert "February 2026" in r.text
    assert "Run" in r.text
    assert "Sign in with Google" in r.text


def test_stats_page(client):
    r = client.get("/stats", params=FEB)
    assert r.status_code == 200
    assert "Weekly trends" in r.text


def test_basic_auth_enforced(client, monkeypatch):
    monkeypatch.setenv("HABITGRID_USERNAME", "me")
    monkeypatch.setenv("HABITGRID_PASSWORD", "pw")
    assert client.get("/api/habits").status_code == 401
    assert client.get("/api/habits", auth=("me", "wrong")).status_code == 401
    assert client.get("/api/habits", auth=("me", "pw")).status_code == 200


def test_list_habits(client):
    data = client.get("/api/habits", params=FEB).json()
    assert data["count"] == 2
    assert data["max"] == 50
    assert data["habits"][0]["progress"]["percentage"] == 50


def test_invalid_month(client):
    r = client.get("/api/habits", params={"year": 2026, "month": 12})
    assert r.status_code == 400


def test_create_habit(client, workspace):
    r = client.post("/api/habits", json={"name": "Stretch", "emoji": "🧘", "goal": 15})
    assert r.status_code == 200
    assert r.json()["habit"]["goal"] == 15
    assert len(load_habits(workspace).habits) == 3


def test_create_habit_form_post(client, workspace):
    r = client.post("/habits", data={"name": "Journal", "goal": "8", "color": "#ec4899"}, follow_redirects=False)
    assert r.status_code == 303
    journal = load_habits(workspace).habits[-1]
    assert journal.name == "Journal"
    assert journal.goal == 8
    assert journal.color == "#EC4899"


def test_create_habit_invalid(client):
    r = client.post("/api/habits", json={"goal": 15})
    assert r.status_code == 400
    assert "name" in r.json()["detail"]


def test_create_habit_infinite_goal(client, workspace):
    r = client.post(
        "/api/habits",
        content='{"name": "x", "goal": 1e999}',
        headers={"content-type": "application/json"},
    )
    assert r.status_code == 400
    assert "goal" in r.json()["detail"]
    assert len(load_habits(workspace).habits) == 2


def test_bad_record_date_in_file_is_skipped(client, workspace):
    path = workspace / "habits.json"
    data = json.loads(path.read_text(encoding="utf-8"))
    data["habits"][0]["records"].append({"date": "not-a-date", "completed": True})
    path.write_text(json.dumps(data), encoding="utf-8")

    assert client.get("/", params=FEB).status_code == 200
    stats = client.get("/api/stats", params=FEB)
    assert stats.status_code == 200
    assert len(load_habits(workspace).habits[0].records) == 10


def test_create_habit_limit(client, workspace):
    for i in range(48):
        assert client.post("/api/habits", json={"name": f"Habit {i}"}).status_code == 200
    r = client.post("/api/habits", json={"name": "One too many"})
    assert r.status_code == 400
    assert "limit" in r.json()["detail"]
    assert len(load_habits(workspace).habits) == 50


def test_update_and_delete_habit(client, workspace):
    r = client.put("/api/habits/read_1770000000001", json={"goal": 12})
    assert r.status_code == 200
    assert r.json()["habit"]["goal"] == 12

    assert client.put("/api/habits/missing", json={"goal": 1}).status_code == 404
    assert client.put("/api/habits/read_1770000000001", json={"records": []}).status_code == 400

    assert client.delete("/api/habits/read_1770000000001").status_code == 200
    assert client.delete("/api/habits/read_1770000000001").status_code == 404
    assert [h.name for h in load_habits(workspace).habits] == ["Run"]


def test_toggle_day(client, workspace):
    body = {**FEB, "day": 11}
    r = client.post("/api/habits/run_1770000000000/toggle", json=body)
    assert r.status_code == 200
    data = r.json()
    assert data["record"]["completed"] is True
    assert data["progress"]["completed"] == 11
    assert data["progress"]["streak"] == 11

    r = client.post("/api/habits/run_1770000000000/toggle", json=body)
    assert r.json()["record"]["completed"] is False
    run = load_habits(workspace).habits[0]
    assert len([rec for rec in run.records if rec.date == "2026-02-11"]) == 1


def test_toggle_day_errors(client):
    assert client.post("/api/habits/missing/toggle", json={**FEB, "day": 3}).status_code == 404
    assert client.post("/api/habits/run_1770000000000/toggle", json={**FEB, "day": 30}).status_code == 400
    assert client.post("/api/habits/run_1770000000000/toggle", json=FEB).status_code == 400
    r = client.post("/api/habits/run_1770000000000/toggle", json={"year": 2100, "month": 0, "day": 1})
    assert r.status_code == 400
    assert "future" in r.json()["detail"]


def test_toggle_column(client, workspace):
    r = client.post("/api/days/20/toggle", json=FEB)
    assert r.json()["changed"] == 2
    assert all(h.is_completed("2026-02-20") for h in load_habits(workspace).habits)


def test_progress_and_stats(client):
    progress = client.get("/api/progress", params=FEB).json()
    assert progress["overall"]["percentage"] == 43
    assert progress["habits"]["read_1770000000001"]["completed"] == 3

    stats = client.get("/api/stats", params=FEB).json()
    assert stats["bestDay"]["day"] == 1
    assert len(stats["weeklyTrends"]) == 5
    assert stats["projection"]["daysRemaining"] == 0
    assert stats["motivation"]["level"] == "Needs Improvement"


def test_grid(client):
    grid = client.get("/api/grid", params=FEB).json()
    assert grid["monthName"] == "February 2026"
    assert grid["stats"]["maxStreak"] == 10
    assert grid["rows"][0]["cells"][0]["state"] == "checked"


def test_exports(client):
    r = client.get("/api/export.json", params=FEB)
    assert "habitgrid-2026-02.json" in r.headers["content-disposition"]
    assert json.loads(r.text)["overall"]["totalCompleted"] == 13

    r = client.get("/api/export.csv", params=FEB)
    assert r.headers["content-type"].startswith("text/csv")
    assert r.text.startswith("id,name,emoji")


def test_settings(client):
    assert client.get("/api/settings").json()["defaultGoal"] == 20
    r = client.put("/api/settings", json={"defaultGoal": 7})
    assert r.json()["settings"]["defaultGoal"] == 7
    habit = client.post("/api/habits", json={"name": "Floss"}).json()["habit"]
    assert habit["goal"] == 7


def test_google_login_redirect(client):
    r = client.get("/auth/google/login", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"].startswith("https://accounts.google.com/")
    assert "habitgrid_oauth_state" in r.headers["set-cookie"]


def test_google_login_unconfigured(client, google):
    google.config = OAuthClientConfig()
    assert client.get("/auth/google/login", follow_redirects=False).status_code == 503


def test_google_callback_rejects_bad_state(client):
    client.cookies.set("habitgrid_oauth_state", "expected")
    r = client.get("/auth/google/callback", params={"code": "c", "state": "other"}, follow_redirects=False)
    assert r.status_code == 400


def test_user_and_sync_require_login(client):
    assert client.get("/api/user").json() == {"authenticated": False, "user": None}
    assert client.post("/api/sync").status_code == 401


def test_user_signed_in_and_logout(client, google, workspace):
    google.session = UserSession(
        user=UserProfile(id="u1", email="ana@example.com", name="Ana"),
        access_token="tok",
        token_expiry=10**15,
    )
    data = client.get("/api/user").json()
    assert data["authenticated"] is True
    assert data["user"]["email"] == "ana@example.com"
    assert "Ana" in client.get("/", params=FEB).text

    assert client.post("/auth/logout").json() == {"ok": True}
    assert client.get("/api/user").json()["authenticated"] is False


def test_meta(client):
    meta = client.get("/api/meta").json()
    assert meta["maxHabits"] == 50
    assert meta["maxGoal"] == 31
    assert "🏃" in meta["emojis"]
    assert meta["categories"][0]["name"] == "Health & Fitness"
