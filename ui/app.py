from __future__ import annotations

import logging
import os
import secrets
from pathlib import Path
from typing import Any

from fastapi import Body, Depends, FastAPI, Form, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from fastapi.staticfiles import StaticFiles

from habitgrid import (
    AutoSaver,
    DriveStorage,
    GoogleAuth,
    HabitsFile,
    MAX_HABITS,
    build_grid,
    calculate_best_day,
    calculate_day_completion,
    calculate_habit_frequency,
    calculate_motivation_score,
    calculate_projected_completion,
    calculate_weekly_trends,
    configure_logging,
    create_habit,
    data_root,
    delete_habit,
    export_csv,
    export_filename,
    export_json,
    find_habit,
    get_habit_progress,
    get_habit_streaks,
    get_habits_with_progress,
    get_overall_progress,
    get_top_habits,
    load_habits,
    load_last_sync,
    load_settings,
    save_habits,
    today_date,
    today_parts,
    toggle_all_for_day,
    toggle_day,
    update_habit,
    update_settings,
)
from habitgrid.constants import DEFAULT_COLOR, EMOJIS, HABIT_CATEGORIES, MAX_GOAL, MIN_GOAL
from habitgrid.dates import is_future, prev_month, next_month
from habitgrid.errors import AuthError, DriveError

ASSET_V = "20261019-01"

configure_logging()
logger = logging.getLogger("habitgrid.ui")


# ── HTML helpers ──────────────────────────────────────────────

def _escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


# ── Auth ──────────────────────────────────────────────────────

app = FastAPI(title="HabitGrid", version="1.0.0")

static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

security = HTTPBasic(auto_error=False)


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("HABITGRID_USERNAME", "")
    expected_password = os.environ.get("HABITGRID_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


# ── Google session & cloud auto-save ──────────────────────────

_google_auth: GoogleAuth | None = None
_drive: DriveStorage | None = None
_autosaver: AutoSaver | None = None


def get_google_auth() -> GoogleAuth:
    global _google_auth
    if _google_auth is None:
        _google_auth = GoogleAuth(root=data_root())
        _google_auth.load_saved_session()
    return _google_auth


def _drive_for(auth: GoogleAuth) -> DriveStorage:
    global _drive
    if _drive is None or _drive.auth is not auth:
        _drive = DriveStorage(auth, root=data_root())
    return _drive


def _schedule_cloud_save(auth: GoogleAuth) -> None:
    """Debounced push to Drive after a local change, when signed in and enabled."""
    global _autosaver
    if not auth.is_authenticated() or not load_settings(data_root()).auto_save:
        return
    if _autosaver is None:
        _autosaver = AutoSaver(lambda: _drive_for(auth).save(load_habits(data_root())))
    _autosaver.touch()


@app.on_event("shutdown")
def _flush_autosave() -> None:
    if _autosaver is not None:
        _autosaver.flush()


# ── Helpers ───────────────────────────────────────────────────

def _period(year: int | None, month: int | None) -> tuple[int, int]:
    ty, tm, _ = today_parts(today_date())
    y = ty if year is None else year
    m = tm if month is None else month
    if not 0 <= m <= 11:
        raise HTTPException(status_code=400, detail=f"Invalid month: {m} (expected 0-11)")
    return y, m


def _load() -> HabitsFile:
    return load_habits(data_root())


def _save(habits_file: HabitsFile, auth: GoogleAuth) -> None:
    save_habits(habits_file, data_root())
    _schedule_cloud_save(auth)


# ── Page ──────────────────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/", response_class=HTMLResponse)
def index(
    year: int | None = None,
    month: int | None = None,
    username: str = Depends(get_current_user),
    auth: GoogleAuth = Depends(get_google_auth),
) -> HTMLResponse:
    y, m = _period(year, month)
    habits_file = _load()
    settings = load_settings(data_root())
    grid = build_grid(habits_file, y, m, today_date())
    py, pm = prev_month(y, m)
    ny, nm = next_month(y, m)

    header_cells = []
    for d in grid.days:
        classes = ["day-header"]
        if d.is_today:
            classes.append("today")
        if d.is_weekend:
            classes.append("weekend")
        header_cells.append(
            f'<th class="{" ".join(classes)}" data-day="{d.day}">'
            f'<span class="day-number">{d.day}</span><span class="day-name">{d.day_of_week}</span></th>'
        )

    rows = []
    for row in grid.rows:
        h = row.habit
        cells = []
        for c in row.cells:
            classes = ["day-cell", c.state]
            if c.today:
                classes.append("today")
            attrs = f'data-habit-id="{_escape(h.id)}" data-day="{c.day}"'
            if not c.clickable:
                attrs += " disabled"
            cells.append(
                f'<td><button class="{" ".join(classes)}" {attrs}>{"&#10003;" if c.checked else ""}</button></td>'
            )
        pct = f"{row.progress.percentage}%" if settings.show_percentages else ""
        rows.append(
            f"""<tr class="habit-row" data-habit-id="{_escape(h.id)}">
              <td class="habit-cell"><span class="habit-icon" style="color:{_escape(h.color)}">{_escape(h.emoji)}</span>
                <span class="habit-name">{_escape(h.name)}</span>
                <button class="delete-habit muted small" data-habit-id="{_escape(h.id)}" title="Delete">&times;</button></td>
              <td class="goal-cell">{h.goal}</td>
              <td class="progress-cell">{pct}</td>
              {''.join(cells)}
            </tr>"""
        )

    if not rows:
        rows.append(
            f'<tr><td colspan="{len(grid.days) + 3}" class="empty-grid-message">'
            'No habits yet. Add your first habit above.</td></tr>'
        )

    user = auth.user if auth.is_authenticated() else None
    if user:
        last_sync = load_last_sync(data_root())
        sync_txt = f"last sync {last_sync.isoformat(timespec='minutes')}" if last_sync else "not synced yet"
        user_html = (
            f'<span class="pill">{_escape(user.name or user.email)}</span> '
            f'<button id="syncNow">Sync</button> <span class="muted small">{_escape(sync_txt)}</span> '
            '<button id="logout">Sign out</button>'
        )
    else:
        user_html = '<a class="pill" href="/auth/google/login">Sign in with Google</a>'

    emoji_options = "".join(f'<option value="{_escape(e)}"></option>' for e in EMOJIS)
    overall = grid.overall
    html = f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>HabitGrid</title>
  <link rel="stylesheet" href="/static/style.css?v={ASSET_V}" />
</head>
<body class="theme-{_escape(settings.theme)}" data-year="{y}" data-month="{m}">
  <div class="container">
    <header class="top">
      <div>
        <h1>HabitGrid</h1>
        <div class="muted small">
          <a href="/?year={py}&month={pm}">&larr;</a>
          <b>{_escape(grid.month_name)}</b>
          <a href="/?year={ny}&month={nm}">&rarr;</a>
        </div>
      </div>
      <div id="user-section">{user_html}</div>
    </header>

    <section class="card stats">
      <div class="stat"><div class="muted small">Active habits</div><b>{len(grid.rows)}</b> / {MAX_HABITS}</div>
      <div class="stat"><div class="muted small">Overall</div><b>{overall.percentage}%</b>
        <div class="progress-bar"><div class="progress-fill" style="width:{overall.percentage}%"></div></div></div>
      <div class="stat"><div class="muted small">Best streak</div><b>{grid.max_streak}</b></div>
    </section>

    <section class="card">
      <form id="addHabit" class="row" method="post" action="/habits">
        <input name="emoji" placeholder="&#127919;" maxlength="4" size="3" list="emoji-options" />
        <datalist id="emoji-options">{emoji_options}</datalist>
        <input name="name" placeholder="New habit" required />
        <input name="goal" type="number" min="1" max="31" value="{settings.default_goal}" />
        <input name="color" type="color" value="{DEFAULT_COLOR}" />
        <button type="submit">Add</button>
      </form>
      <div class="grid-scroll">
        <table class="habit-grid">
          <thead><tr><th>Habit</th><th>Goal</th><th>%</th>{''.join(header_cells)}</tr></thead>
          <tbody id="grid-body">{''.join(rows)}</tbody>
        </table>
      </div>
    </section>

    <footer class="muted small">
      Export: <a href="/api/export.json?year={y}&month={m}">JSON</a> &middot;
      <a href="/api/export.csv?year={y}&month={m}">CSV</a> &middot;
      <a href="/stats?year={y}&month={m}">Stats</a>
    </footer>
  </div>

  <script src="/static/app.js?v={ASSET_V}"></script>
</body>
</html>"""
    return HTMLResponse(html)


@app.get("/stats", response_class=HTMLResponse)
def stats_page(
    year: int | None = None,
    month: int | None = None,
    username: str = Depends(get_current_user),
) -> HTMLResponse:
    y, m = _period(year, month)
    stats = _stats(_load(), y, m)
    motivation = stats["motivation"]
    best = stats["bestDay"]
    top = "".join(
        f'<li>{_escape(h["emoji"])} {_escape(h["name"])} <b>{h["progress"]["percentage"]}%</b></li>'
        for h in stats["topHabits"]
    )
    streaks = "".join(
        f'<li>{_escape(s["name"])} <b>{s["streak"]}</b></li>' for s in stats["streaks"] if s["streak"] > 0
    )
    weeks = "".join(f'<li>Week {w["week"]}: {w["completion"]}% ({w["completed"]}/{w["total"]})</li>' for w in stats["weeklyTrends"])
    calendar_cells = "".join(
        f'<div class="calendar-day {d["status"]}" title="{d["day"]}: {d["percentage"]}% ({d["completed"]}/{d["total"]})">{d["day"]}</div>'
        for d in stats["calendar"]
    )
    html = f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>HabitGrid stats</title>
  <link rel="stylesheet" href="/static/style.css?v={ASSET_V}" />
</head>
<body>
  <div class="container">
    <header class="top"><h1>Stats</h1><a class="pill" href="/?year={y}&month={m}">Back to grid</a></header>
    <section class="card stats">
      <div class="stat"><div class="muted small">Overall</div><b>{stats["overall"]["percentage"]}%</b></div>
      <div class="stat"><div class="muted small">Motivation</div><b>{motivation["score"]}</b> {_escape(motivation["level"])}</div>
      <div class="stat"><div class="muted small">Consistency</div><b>{motivation["breakdown"]["consistency"]}%</b></div>
      <div class="stat"><div class="muted small">Best day</div><b>{f'Day {best["day"]} ({best["percentage"]}%)' if best["day"] else "N/A"}</b></div>
      <div class="stat"><div class="muted small">Projected</div><b>{stats["projection"]["projectedPercentage"]}%</b></div>
    </section>
    <section class="card"><h2>Top habits</h2><ol>{top or '<li class="muted">(none)</li>'}</ol></section>
    <section class="card"><h2>Current streaks</h2><ul>{streaks or '<li class="muted">(none)</li>'}</ul></section>
    <section class="card"><h2>Weekly trends</h2><ul>{weeks}</ul></section>
    <section class="card"><h2>Calendar</h2><div class="calendar-grid">{calendar_cells}</div></section>
  </div>
</body>
</html>"""
    return HTMLResponse(html)


@app.post("/habits")
def add_habit_form(
    name: str = Form(...),
    emoji: str = Form(default=""),
    goal: int | None = Form(default=None),
    color: str = Form(default=""),
    username: str = Depends(get_current_user),
    auth: GoogleAuth = Depends(get_google_auth),
) -> RedirectResponse:
    """Plain form post for the add-habit row when scripts are off."""
    data: dict[str, Any] = {"name": name}
    if emoji:
        data["emoji"] = emoji
    if goal is not None:
        data["goal"] = goal
    if color:
        data["color"] = color.upper()
    habits_file = _load()
    _, errors = create_habit(habits_file, data, default_goal=load_settings(data_root()).default_goal)
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))
    _save(habits_file, auth)
    return RedirectResponse(url="/", status_code=303)


# ── Habits API ────────────────────────────────────────────────

@app.get("/api/habits")
def api_list_habits(
    year: int | None = None,
    month: int | None = None,
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    y, m = _period(year, month)
    habits_file = _load()
    return {
        "habits": get_habits_with_progress(habits_file, y, m),
        "count": len(habits_file.habits),
        "max": MAX_HABITS,
    }


@app.post("/api/habits")
def api_create_habit(
    payload: dict[str, Any] = Body(...),
    username: str = Depends(get_current_user),
    auth: GoogleAuth = Depends(get_google_auth),
) -> dict[str, Any]:
    habits_file = _load()
    settings = load_settings(data_root())
    habit, errors = create_habit(habits_file, payload, default_goal=settings.default_goal)
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))
    _save(habits_file, auth)
    return {"ok": True, "habit": habit.to_dict()}


@app.put("/api/habits/{habit_id}")
def api_update_habit(
    habit_id: str,
    payload: dict[str, Any] = Body(...),
    username: str = Depends(get_current_user),
    auth: GoogleAuth = Depends(get_google_auth),
) -> dict[str, Any]:
    habits_file = _load()
    if find_habit(habits_file, habit_id) is None:
        raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")
    updated, errors = update_habit(habits_file, habit_id, payload)
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))
    _save(habits_file, auth)
    return {"ok": True, "habit": updated.to_dict() if updated else None}


@app.delete("/api/habits/{habit_id}")
def api_delete_habit(
    habit_id: str,
    username: str = Depends(get_current_user),
    auth: GoogleAuth = Depends(get_google_auth),
) -> dict[str, Any]:
    habits_file = _load()
    if not delete_habit(habits_file, habit_id):
        raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")
    _save(habits_file, auth)
    return {"ok": True, "habit_id": habit_id}


@app.post("/api/habits/{habit_id}/toggle")
def api_toggle_day(
    habit_id: str,
    payload: dict[str, Any] = Body(...),
    username: str = Depends(get_current_user),
    auth: GoogleAuth = Depends(get_google_auth),
) -> dict[str, Any]:
    """Toggle one grid cell. Body: ``{year, month, day, completed?}``."""
    y, m = _period(payload.get("year"), payload.get("month"))
    day = payload.get("day")
    if not isinstance(day, int):
        raise HTTPException(status_code=400, detail="Missing day")
    completed = payload.get("completed")
    try:
        if is_future(y, m, day, today_date()):
            raise HTTPException(status_code=400, detail="Cannot toggle a future day")
        habits_file = _load()
        record = toggle_day(habits_file, habit_id, y, m, day, completed=completed if isinstance(completed, bool) else None)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid day: {day}")
    if record is None:
        raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")

    _save(habits_file, auth)
    habit = find_habit(habits_file, habit_id)
    return {
        "ok": True,
        "record": record.to_dict(),
        "progress": get_habit_progress(habit, y, m).to_dict() if habit else None,
        "overall": get_overall_progress(habits_file, y, m).to_dict(),
    }


@app.post("/api/days/{day}/toggle")
def api_toggle_all_for_day(
    day: int,
    payload: dict[str, Any] = Body(default={}),
    username: str = Depends(get_current_user),
    auth: GoogleAuth = Depends(get_google_auth),
) -> dict[str, Any]:
    """Column toggle for every habit on one day."""
    y, m = _period(payload.get("year"), payload.get("month"))
    habits_file = _load()
    try:
        records = toggle_all_for_day(habits_file, y, m, day, today_date())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid day: {day}")
    if records:
        _save(habits_file, auth)
    return {
        "ok": True,
        "changed": len(records),
        "overall": get_overall_progress(habits_file, y, m).to_dict(),
    }


# ── Progress & stats ──────────────────────────────────────────

def _stats(habits_file: HabitsFile, y: int, m: int) -> dict[str, Any]:
    habits = habits_file.habits
    return {
        "period": {"year": y, "month": m},
        "overall": get_overall_progress(habits_file, y, m).to_dict(),
        "motivation": calculate_motivation_score(habits, y, m).to_dict(),
        "projection": calculate_projected_completion(habits, y, m, today_date()).to_dict(),
        "weeklyTrends": calculate_weekly_trends(habits, y, m),
        "bestDay": calculate_best_day(habits, y, m),
        "frequency": calculate_habit_frequency(habits, y, m),
        "calendar": calculate_day_completion(habits, y, m),
        "topHabits": get_top_habits(habits_file, y, m, limit=5),
        "streaks": get_habit_streaks(habits_file)[:5],
    }


@app.get("/api/progress")
def api_progress(
    year: int | None = None,
    month: int | None = None,
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    y, m = _period(year, month)
    habits_file = _load()
    return {
        "overall": get_overall_progress(habits_file, y, m).to_dict(),
        "habits": {h.id: get_habit_progress(h, y, m).to_dict() for h in habits_file.habits},
    }


@app.get("/api/stats")
def api_stats(
    year: int | None = None,
    month: int | None = None,
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    y, m = _period(year, month)
    return _stats(_load(), y, m)


@app.get("/api/grid")
def api_grid(
    year: int | None = None,
    month: int | None = None,
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    y, m = _period(year, month)
    return build_grid(_load(), y, m, today_date()).to_dict()


# ── Export ────────────────────────────────────────────────────

@app.get("/api/export.json")
def api_export_json(
    year: int | None = None,
    month: int | None = None,
    username: str = Depends(get_current_user),
) -> Response:
    y, m = _period(year, month)
    return Response(
        content=export_json(_load(), y, m),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{export_filename("json", y, m)}"'},
    )


@app.get("/api/export.csv")
def api_export_csv(
    year: int | None = None,
    month: int | None = None,
    username: str = Depends(get_current_user),
) -> PlainTextResponse:
    y, m = _period(year, month)
    return PlainTextResponse(
        content=export_csv(_load(), y, m),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename("csv", y, m)}"'},
    )


# ── Settings ──────────────────────────────────────────────────

@app.get("/api/meta")
def api_meta(username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Pickers for the add-habit form: emojis, categories, limits."""
    return {
        "emojis": EMOJIS,
        "categories": HABIT_CATEGORIES,
        "defaultColor": DEFAULT_COLOR,
        "maxHabits": MAX_HABITS,
        "minGoal": MIN_GOAL,
        "maxGoal": MAX_GOAL,
    }


@app.get("/api/settings")
def api_get_settings(username: str = Depends(get_current_user)) -> dict[str, Any]:
    return load_settings(data_root()).to_dict()


@app.put("/api/settings")
def api_update_settings(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return {"ok": True, "settings": update_settings(payload, data_root()).to_dict()}


# ── Google sign-in & Drive sync ───────────────────────────────

STATE_COOKIE = "habitgrid_oauth_state"


@app.get("/auth/google/login")
def auth_google_login(
    username: str = Depends(get_current_user),
    auth: GoogleAuth = Depends(get_google_auth),
) -> RedirectResponse:
    state = secrets.token_urlsafe(16)
    try:
        url = auth.authorization_url(state)
    except AuthError as e:
        raise HTTPException(status_code=503, detail=str(e))
    resp = RedirectResponse(url=url, status_code=303)
    resp.set_cookie(STATE_COOKIE, state, httponly=True, samesite="lax", max_age=600)
    return resp


@app.get("/auth/google/callback")
def auth_google_callback(
    request: Request,
    code: str = Query(default=""),
    state: str = Query(default=""),
    error: str = Query(default=""),
    username: str = Depends(get_current_user),
    auth: GoogleAuth = Depends(get_google_auth),
) -> RedirectResponse:
    if error:
        raise HTTPException(status_code=401, detail=f"Google sign-in failed: {error}")
    expected = request.cookies.get(STATE_COOKIE, "")
    if not code or not expected or not secrets.compare_digest(state, expected):
        raise HTTPException(status_code=400, detail="Invalid OAuth callback")
    try:
        auth.exchange_code(code)
    except AuthError as e:
        logger.warning("Google callback rejected: %s", e)
        raise HTTPException(status_code=401, detail=str(e))
    resp = RedirectResponse(url="/", status_code=303)
    resp.delete_cookie(STATE_COOKIE)
    return resp


@app.post("/auth/logout")
def auth_logout(
    username: str = Depends(get_current_user),
    auth: GoogleAuth = Depends(get_google_auth),
) -> dict[str, Any]:
    if _autosaver is not None:
        _autosaver.cancel()
    auth.logout()
    return {"ok": True}


@app.get("/api/user")
def api_user(
    username: str = Depends(get_current_user),
    auth: GoogleAuth = Depends(get_google_auth),
) -> dict[str, Any]:
    if not auth.is_authenticated() or auth.user is None:
        return {"authenticated": False, "user": None}
    return {"authenticated": True, "user": auth.user.to_dict()}


@app.post("/api/sync")
def api_sync(
    username: str = Depends(get_current_user),
    auth: GoogleAuth = Depends(get_google_auth),
) -> dict[str, Any]:
    """Reconcile habits.json with the Drive copy (newer wins)."""
    if not auth.is_authenticated():
        raise HTTPException(status_code=401, detail="Not authenticated with Google")
    drive = _drive_for(auth)
    try:
        result = drive.sync(_load())
    except DriveError as e:
        logger.warning("Manual sync failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
    last_sync = drive.last_sync_time
    return {
        "ok": True,
        "count": len(result.habits),
        "lastUpdated": result.last_updated,
        "lastSync": last_sync.isoformat(timespec="seconds") if last_sync else None,
    }


def main() -> None:
    import uvicorn

    uvicorn.run(
        "ui.app:app",
        host=os.environ.get("HABITGRID_HOST", "127.0.0.1"),
        port=int(os.environ.get("HABITGRID_PORT", "8000")),
    )


if __name__ == "__main__":
    main()
