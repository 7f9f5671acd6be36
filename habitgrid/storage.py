"""Local persistence for HabitGrid: habits blob, settings, session cache."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from habitgrid.fileio import quarantine, read_json, read_yaml, remove_file, write_json_atomic, write_yaml_atomic
from habitgrid.models import HabitsFile, Settings, UserSession
from habitgrid.workspace import (
    data_root,
    habits_path,
    session_path,
    settings_path,
    sync_state_path,
    timestamp,
)

logger = logging.getLogger(__name__)


def load_habits(root: Path | None = None) -> HabitsFile:
    """Load habits.json, falling back to an empty list if it cannot be read."""
    path = habits_path(root)
    try:
        data = read_json(path)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        moved = quarantine(path)
        logger.warning("Could not parse %s (moved to %s), starting with no habits: %s", path, moved, e)
        return HabitsFile()
    except OSError as e:
        logger.warning("Could not load %s, starting with no habits: %s", path, e)
        return HabitsFile()
    try:
        return HabitsFile.from_dict(data)
    except (TypeError, ValueError, AttributeError) as e:
        logger.warning("Malformed habit data in %s, starting with no habits: %s", path, e)
        return HabitsFile()


def save_habits(habits_file: HabitsFile, root: Path | None = None, touch: bool = True) -> None:
    """Write habits.json atomically, stamping ``lastUpdated`` unless *touch* is False."""
    if touch:
        habits_file.last_updated = timestamp()
    write_json_atomic(habits_path(root), habits_file.to_dict())
    logger.debug("Saved %d habits", len(habits_file.habits))


# ── Settings ──────────────────────────────────────────────────


def load_settings(root: Path | None = None) -> Settings:
    return Settings.from_dict(read_yaml(settings_path(root)))


def save_settings(settings: Settings, root: Path | None = None) -> None:
    write_yaml_atomic(settings_path(root), settings.to_dict())


def update_settings(updates: dict[str, Any], root: Path | None = None) -> Settings:
    """Merge *updates* (camelCase keys) into the saved settings."""
    current = load_settings(root).to_dict()
    current.update(updates)
    settings = Settings.from_dict(current)
    save_settings(settings, root)
    return settings


# ── Session cache ─────────────────────────────────────────────


def load_session(root: Path | None = None) -> UserSession | None:
    path = session_path(root)
    try:
        data = read_json(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Could not read saved session %s: %s", path, e)
        return None
    if not data:
        return None
    return UserSession.from_dict(data)


def save_session(session: UserSession, root: Path | None = None) -> None:
    write_json_atomic(session_path(root), session.to_dict())


def clear_session(root: Path | None = None) -> None:
    remove_file(session_path(root))


# ── Sync bookkeeping ──────────────────────────────────────────


def load_last_sync(root: Path | None = None) -> datetime | None:
    try:
        data = read_json(sync_state_path(root))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return None
    value = data.get("lastSync") if isinstance(data, dict) else None
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def save_last_sync(when: datetime, root: Path | None = None) -> None:
    write_json_atomic(sync_state_path(root), {"lastSync": when.isoformat(timespec="seconds")})


def ensure_data_root(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    root.mkdir(parents=True, exist_ok=True)
    return root
