"""Data directory, timezone, path and logging helpers for HabitGrid."""

from __future__ import annotations

import logging
import os
from datetime import date, datetime, timezone, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from habitgrid.fileio import read_yaml


def data_root() -> Path:
    """Get the data directory holding habits.json, settings.yaml and friends."""
    return Path(
        os.environ.get("HABITGRID_ROOT", str(Path.home() / "habitgrid"))
    ).expanduser().resolve()


def get_user_timezone(root: Path | None = None) -> tzinfo | None:
    """Timezone from settings.yaml, or None for the machine's local time."""
    if root is None:
        root = data_root()
    name = read_yaml(settings_path(root)).get("timezone")
    if not name:
        return None
    try:
        return ZoneInfo(str(name))
    except (ZoneInfoNotFoundError, ValueError):
        return None


def now_local(root: Path | None = None) -> datetime:
    tz = get_user_timezone(root)
    if tz is None:
        return datetime.now().astimezone()
    return datetime.now(tz)


def today_date(root: Path | None = None) -> date:
    return now_local(root).date()


def configure_logging(level: str | None = None) -> None:
    level_name = (level or os.environ.get("HABITGRID_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ── Path helpers ──────────────────────────────────────────────

def habits_path(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / "habits.json"


def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / "settings.yaml"


def session_path(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / "session.json"


def sync_state_path(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / "sync.json"


def timestamp() -> str:
    """UTC ISO-8601 timestamp used for createdAt/updatedAt/lastUpdated."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")
