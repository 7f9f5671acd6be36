#!/usr/bin/env python3
"""HabitGrid TUI: interactive terminal habit grid powered by Textual."""

from __future__ import annotations

import logging
import re
import sys
from typing import Any

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.coordinate import Coordinate
from textual.widgets import DataTable, Footer, Header, Input, Label, Static

from habitgrid import (
    AutoSaver,
    DriveStorage,
    GoogleAuth,
    HabitGridError,
    build_grid,
    calculate_best_day,
    calculate_motivation_score,
    calculate_projected_completion,
    configure_logging,
    create_habit,
    data_root,
    delete_habit,
    get_habit_streaks,
    load_habits,
    load_settings,
    save_habits,
    today_date,
    today_parts,
    toggle_all_for_day,
    toggle_day,
)
from habitgrid.dates import next_month, prev_month
from habitgrid.storage import ensure_data_root

logger = logging.getLogger("habitgrid.cli")

INFO_COLUMNS = 3  # Habit, Goal, %
CELL_GLYPHS = {"checked": "✓", "missed": "·", "future": " ", "open": "○"}


def parse_habit_input(text: str) -> dict[str, Any]:
    """Parse ``[emoji] name [/ goal]`` typed into the add-habit box.

    '🏃 Morning run / 20' -> {'emoji': '🏃', 'name': 'Morning run', 'goal': 20}
    """
    text = text.strip()
    data: dict[str, Any] = {}
    m_goal = re.search(r"/\s*(\d+)\s*$", text)
    if m_goal:
        data["goal"] = int(m_goal.group(1))
        text = text[: m_goal.start()].strip()
    parts = text.split(maxsplit=1)
    if len(parts) == 2 and not re.search(r"\w", parts[0]):
        data["emoji"] = parts[0]
        text = parts[1]
    data["name"] = text.strip()
    return data


# ── Stylesheet ─────────────────────────────────────────────────

CSS = """
Screen {
    background: $surface;
}

#grid-table {
    height: 1fr;
}

#stats-panel {
    height: auto;
    padding: 0 1;
    border-top: tall $primary-background-darken-2;
    display: none;
}

#add-input {
    dock: bottom;
    display: none;
}

.section-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
    padding: 0 1;
}
"""


# ── Main app ───────────────────────────────────────────────────


class HabitGridApp(App):
    """HabitGrid: monthly habit tracking grid."""

    TITLE = "HabitGrid"
    CSS = CSS

    BINDINGS = [
        Binding("space", "toggle_cell", "Toggle"),
        Binding("t", "toggle_column", "Toggle day"),
        Binding("left_square_bracket", "prev_month", "Prev month"),
        Binding("right_square_bracket", "next_month", "Next month"),
        Binding("a", "add_habit", "Add"),
        Binding("x", "delete_habit", "Delete"),
        Binding("s", "toggle_stats", "Stats"),
        Binding("y", "sync", "Sync"),
        Binding("escape", "cancel_input", "Back", show=False),
        Binding("q", "quit_app", "Quit"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._root = data_root()
        self._habits = load_habits(self._root)
        self._settings = load_settings(self._root)
        self._auth = GoogleAuth(root=self._root)
        self._auth.load_saved_session()
        self._autosaver = AutoSaver(self._cloud_save)
        self.year, self.month, _ = today_parts(today_date(self._root))

    def compose(self) -> ComposeResult:
        yield Header()
        yield Vertical(
            Label("", id="month-label", classes="section-title"),
            DataTable(id="grid-table", cursor_type="cell", zebra_stripes=True),
            Static(id="stats-panel"),
        )
        yield Input(placeholder="emoji name / goal   e.g. 🏃 Morning run / 20", id="add-input")
        yield Footer()

    def on_mount(self) -> None:
        self._render_grid()

    # ── Rendering ──────────────────────────────────────────────

    def _render_grid(self, keep_cursor: bool = True) -> None:
        table = self.query_one("#grid-table", DataTable)
        cursor = table.cursor_coordinate if keep_cursor else Coordinate(0, INFO_COLUMNS)
        grid = build_grid(self._habits, self.year, self.month, today_date(self._root))

        table.clear(columns=True)
        table.add_column("Habit", key="habit")
        table.add_column("Goal", key="goal")
        table.add_column("%", key="pct")
        for d in grid.days:
            table.add_column(f"{d.day}\n{d.day_of_week[:2]}", key=f"day-{d.day}")

        for row in grid.rows:
            pct = f"{row.progress.percentage}%" if self._settings.show_percentages else ""
            cells = [CELL_GLYPHS[c.state] if not c.checked else CELL_GLYPHS["checked"] for c in row.cells]
            table.add_row(f"{row.habit.emoji} {row.habit.name}", str(row.habit.goal), pct, *cells, key=row.habit.id)

        if grid.rows:
            r = min(cursor.row, len(grid.rows) - 1)
            c = min(max(cursor.column, INFO_COLUMNS), INFO_COLUMNS + len(grid.days) - 1)
            table.move_cursor(row=r, column=c)

        self.query_one("#month-label", Label).update(grid.month_name)
        self.sub_title = (
            f"{len(grid.rows)} habits  ·  overall {grid.overall.percentage}%  ·  🔥 {grid.max_streak}"
        )
        self._render_stats()

    def _render_stats(self) -> None:
        habits = self._habits.habits
        motivation = calculate_motivation_score(habits, self.year, self.month)
        projection = calculate_projected_completion(habits, self.year, self.month, today_date(self._root))
        best = calculate_best_day(habits, self.year, self.month)
        streaks = [s for s in get_habit_streaks(self._habits) if s["streak"] > 0][:3]

        lines = [
            f"Motivation: {motivation.score} ({motivation.level})  "
            f"completion {motivation.completion}%, consistency {motivation.consistency}%, "
            f"avg streak {motivation.average_streak}",
            f"Projected: {projection.projected_percentage}% "
            f"({'on track' if projection.on_track else 'behind'}, {projection.days_remaining} days left)",
            "Best day: " + (f"Day {best['day']} ({best['percentage']}%)" if best["day"] else "N/A"),
        ]
        if streaks:
            lines.append("Streaks: " + ", ".join(f"{s['emoji']} {s['name']} {s['streak']}" for s in streaks))
        self.query_one("#stats-panel", Static).update("\n".join(lines))

    def _selected(self) -> tuple[str, int] | None:
        """(habit_id, day) under the cursor, or None outside the day columns."""
        table = self.query_one("#grid-table", DataTable)
        if not self._habits.habits or table.row_count == 0:
            return None
        coord = table.cursor_coordinate
        if coord.column < INFO_COLUMNS:
            return None
        row_key, _ = table.coordinate_to_cell_key(coord)
        return str(row_key.value), coord.column - INFO_COLUMNS + 1

    def _persist(self) -> None:
        try:
            save_habits(self._habits, self._root)
        except OSError as e:
            logger.error("Could not save habits: %s", e)
            self.notify(f"Could not save: {e}", title="Error", severity="error")
            return
        if self._settings.auto_save and self._auth.is_authenticated():
            self._autosaver.touch()

    def _cloud_save(self) -> None:
        """Push habits.json to Drive; runs on the auto-save timer thread."""
        DriveStorage(self._auth, root=self._root).save(load_habits(self._root))

    # ── Actions ────────────────────────────────────────────────

    def action_toggle_cell(self) -> None:
        selected = self._selected()
        if selected is None:
            return
        habit_id, day = selected
        grid_today = today_date(self._root)
        if (self.year, self.month, day) > today_parts(grid_today):
            self.notify("Future days cannot be checked off yet.", severity="warning")
            return
        toggle_day(self._habits, habit_id, self.year, self.month, day)
        self._persist()
        self._render_grid()

    def action_toggle_column(self) -> None:
        selected = self._selected()
        if selected is None:
            return
        _, day = selected
        if toggle_all_for_day(self._habits, self.year, self.month, day, today_date(self._root)):
            self._persist()
            self._render_grid()

    def action_prev_month(self) -> None:
        self.year, self.month = prev_month(self.year, self.month)
        self._render_grid()

    def action_next_month(self) -> None:
        self.year, self.month = next_month(self.year, self.month)
        self._render_grid()

    def action_toggle_stats(self) -> None:
        panel = self.query_one("#stats-panel", Static)
        panel.display = not panel.display

    def action_add_habit(self) -> None:
        box = self.query_one("#add-input", Input)
        box.display = True
        box.value = ""
        box.focus()

    def action_cancel_input(self) -> None:
        box = self.query_one("#add-input", Input)
        box.display = False
        self.query_one("#grid-table", DataTable).focus()

    @on(Input.Submitted, "#add-input")
    def _on_add_submitted(self, event: Input.Submitted) -> None:
        data = parse_habit_input(event.value)
        habit, errors = create_habit(self._habits, data, default_goal=self._settings.default_goal)
        if errors:
            self.notify("; ".join(errors), title="Cannot add habit", severity="warning")
            return
        self._persist()
        self.action_cancel_input()
        self._render_grid()
        self.notify(f"Added {habit.emoji} {habit.name}")

    def action_delete_habit(self) -> None:
        table = self.query_one("#grid-table", DataTable)
        if table.row_count == 0:
            return
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        if delete_habit(self._habits, str(row_key.value)):
            self._persist()
            self._render_grid()

    def action_sync(self) -> None:
        self._do_sync()

    @work(thread=True)
    def _do_sync(self) -> None:
        """Sync with Drive using the session saved by the web sign-in."""
        if self._auth.load_saved_session() is None:
            self.call_from_thread(self.notify,
                "Sign in with Google from the web app first.",
                title="Not signed in", severity="warning")
            return
        try:
            result = DriveStorage(self._auth, root=self._root).sync(self._habits)
        except HabitGridError as e:
            logger.warning("Drive sync failed: %s", e)
            self.call_from_thread(self.notify, str(e), title="Sync failed", severity="error")
            return
        self._habits = result
        self.call_from_thread(self._render_grid)
        self.call_from_thread(self.notify,
            f"Synced {len(result.habits)} habits", title="Google Drive", severity="information")

    def action_quit_app(self) -> None:
        self._autosaver.flush()
        self.exit()


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    configure_logging()
    root = data_root()
    if root.exists() and not root.is_dir():
        print(f"Data directory is not a directory: {root}")
        print("Set HABITGRID_ROOT to a directory.")
        sys.exit(1)
    ensure_data_root(root)

    app = HabitGridApp()
    app.run()


if __name__ == "__main__":
    main()
