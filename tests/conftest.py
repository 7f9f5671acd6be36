"""Shared test fixtures for HabitGrid tests."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
import yaml


def _record(day: str, completed: bool = True) -> dict:
    return {
        "date": day,
        "completed": completed,
        "createdAt": f"{day}T20:00:00+00:00",
        "updatedAt": f"{day}T20:00:00+00:00",
    }


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary data directory with two habits tracked in Feb 2026."""
    root = tmp_path / "habitgrid"
    root.mkdir(parents=True)

    habits = {
        "version": "1.0",
        "lastUpdated": "2026-02-10T21:00:00+00:00",
        "habits": [
            {
                "id": "run_1770000000000",
                "name": "Run",
                "emoji": "🏃",
                "goal": 20,
                "color": "#34A853",
                "records": [_record(f"2026-02-{d:02d}") for d in range(1, 11)],
                "createdAt": "2026-02-01T08:00:00+00:00",
                "updatedAt": "2026-02-10T20:00:00+00:00",
            },
            {
                "id": "read_1770000000001",
                "name": "Read",
                "emoji": "📚",
                "goal": 10,
                "color": "#4285F4",
                "records": [
                    _record("2026-02-01"),
                    _record("2026-02-02"),
                    _record("2026-02-05"),
                    _record("2026-02-06", completed=False),
                ],
                "createdAt": "2026-02-01T08:00:00+00:00",
                "updatedAt": "2026-02-06T20:00:00+00:00",
            },
        ],
    }
    (root / "habits.json").write_text(json.dumps(habits, indent=2), encoding="utf-8")

    settings = {
        "autoSave": True,
        "showPercentages": True,
        "notifications": True,
        "defaultGoal": 20,
        "theme": "light",
        "weekStartsOn": 0,
        "timezone": "UTC",
    }
    (root / "settings.yaml").write_text(
        yaml.dump(settings, default_flow_style=False), encoding="utf-8"
    )

    # Set env var
    os.environ["HABITGRID_ROOT"] = str(root)
    yield root
    # Cleanup
    if "HABITGRID_ROOT" in os.environ:
        del os.environ["HABITGRID_ROOT"]
