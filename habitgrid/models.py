"""Typed dataclasses for the HabitGrid data model.

All models use from_dict/to_dict for JSON/YAML serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any

from habitgrid.constants import (
    DATA_VERSION,
    DEFAULT_COLOR,
    DEFAULT_EMOJI,
    DEFAULT_SETTINGS,
    MAX_GOAL,
    MIN_GOAL,
)
from habitgrid.dates import parse_iso_day

logger = logging.getLogger(__name__)


def clamp_goal(goal: Any) -> int:
    """Coerce a goal to an int in [1, 31]."""
    try:
        g = int(goal)
    except (TypeError, ValueError, OverflowError):
        g = MIN_GOAL
    return max(MIN_GOAL, min(MAX_GOAL, g))


def parse_completed(value: Any) -> bool:
    """Only real booleans, 0/1 and "true"/"false" strings mark a day done."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return False


# ── Habits ────────────────────────────────────────────────────


@dataclass
class Record:
    date: str = ""  # YYYY-MM-DD
    completed: bool = False
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Record:
        return cls(
            date=str(d.get("date", ""))[:10],
            completed=parse_completed(d.get("completed", False)),
            created_at=str(d.get("createdAt", "")),
            updated_at=str(d.get("updatedAt", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "completed": self.completed,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class Habit:
    id: str = ""
    name: str = ""
    emoji: str = DEFAULT_EMOJI
    goal: int = 20
    color: str = DEFAULT_COLOR
    records: list[Record] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Habit:
        # Later duplicates of a date replace earlier ones.
        by_date: dict[str, Record] = {}
        for r in d.get("records") or []:
            if not isinstance(r, dict) or not r.get("date"):
                continue
            rec = Record.from_dict(r)
            try:
                parse_iso_day(rec.date)
            except ValueError:
                logger.warning("Dropping record with bad date %r from habit %s", r.get("date"), d.get("id"))
                continue
            by_date[rec.date] = rec
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            emoji=str(d.get("emoji") or DEFAULT_EMOJI),
            goal=clamp_goal(d.get("goal", 20)),
            color=str(d.get("color") or DEFAULT_COLOR),
            records=list(by_date.values()),
            created_at=str(d.get("createdAt", "")),
            updated_at=str(d.get("updatedAt", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "emoji": self.emoji,
            "goal": self.goal,
            "color": self.color,
            "records": [r.to_dict() for r in self.records],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def find_record(self, day: str) -> Record | None:
        for r in self.records:
            if r.date == day:
                return r
        return None

    def is_completed(self, day: str) -> bool:
        r = self.find_record(day)
        return bool(r and r.completed)


@dataclass
class HabitsFile:
    habits: list[Habit] = field(default_factory=list)
    version: str = DATA_VERSION
    last_updated: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any] | list[Any]) -> HabitsFile:
        # Very early saves stored the bare habit list.
        if isinstance(d, list):
            d = {"habits": d}
        if not d or not isinstance(d, dict):
            return cls()
        habits = [Habit.from_dict(h) for h in (d.get("habits") or []) if isinstance(h, dict)]
        return cls(
            habits=habits,
            version=str(d.get("version", DATA_VERSION)),
            last_updated=str(d.get("lastUpdated", "") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "habits": [h.to_dict() for h in self.habits],
            "version": self.version,
            "lastUpdated": self.last_updated,
        }


# ── Settings ──────────────────────────────────────────────────


@dataclass
class Settings:
    auto_save: bool = DEFAULT_SETTINGS["autoSave"]
    show_percentages: bool = DEFAULT_SETTINGS["showPercentages"]
    notifications: bool = DEFAULT_SETTINGS["notifications"]
    default_goal: int = DEFAULT_SETTINGS["defaultGoal"]
    theme: str = DEFAULT_SETTINGS["theme"]
    week_starts_on: int = DEFAULT_SETTINGS["weekStartsOn"]
    timezone: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        merged = {**DEFAULT_SETTINGS, **d}
        week_start = int(merged.get("weekStartsOn", 0) or 0)
        return cls(
            auto_save=bool(merged["autoSave"]),
            show_percentages=bool(merged["showPercentages"]),
            notifications=bool(merged["notifications"]),
            default_goal=clamp_goal(merged["defaultGoal"]),
            theme=str(merged["theme"]) if merged["theme"] in ("light", "dark") else "light",
            week_starts_on=week_start if week_start in (0, 1) else 0,
            timezone=d.get("timezone") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "autoSave": self.auto_save,
            "showPercentages": self.show_percentages,
            "notifications": self.notifications,
            "defaultGoal": self.default_goal,
            "theme": self.theme,
            "weekStartsOn": self.week_starts_on,
        }
        if self.timezone:
            d["timezone"] = self.timezone
        return d


# ── Identity ──────────────────────────────────────────────────


@dataclass
class UserProfile:
    id: str = ""
    email: str = ""
    name: str = ""
    picture: str = ""
    verified: bool = False

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> UserProfile:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            id=str(d.get("id", "")),
            email=str(d.get("email", "")),
            name=str(d.get("name", "")),
            picture=str(d.get("picture", "") or ""),
            verified=bool(d.get("verified", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "picture": self.picture,
            "verified": self.verified,
        }


@dataclass
class UserSession:
    user: UserProfile = field(default_factory=UserProfile)
    access_token: str = ""
    token_expiry: int = 0  # epoch milliseconds
    last_login: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> UserSession:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            user=UserProfile.from_dict(d),
            access_token=str(d.get("accessToken", "") or ""),
            token_expiry=int(d.get("tokenExpiry", 0) or 0),
            last_login=int(d.get("lastLogin", 0) or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        d = self.user.to_dict()
        d.update({
            "accessToken": self.access_token,
            "tokenExpiry": self.token_expiry,
            "lastLogin": self.last_login,
        })
        return d

    def is_valid(self, now_ms: int) -> bool:
        return bool(self.access_token) and self.token_expiry > now_ms


@dataclass
class OAuthClientConfig:
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "http://localhost:8000/auth/google/callback"

    @classmethod
    def from_env(cls) -> OAuthClientConfig:
        return cls(
            client_id=os.environ.get("GOOGLE_CLIENT_ID", ""),
            client_secret=os.environ.get("GOOGLE_CLIENT_SECRET", ""),
            redirect_uri=os.environ.get("GOOGLE_REDIRECT_URI", cls.redirect_uri),
        )

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


# ── Progress ──────────────────────────────────────────────────


@dataclass
class HabitProgress:
    completed: int = 0
    goal: int = 0
    percentage: int = 0
    remaining: int = 0
    streak: int = 0
    consistency: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "completed": self.completed,
            "goal": self.goal,
            "percentage": self.percentage,
            "remaining": self.remaining,
            "streak": self.streak,
            "consistency": self.consistency,
        }


@dataclass
class OverallProgress:
    percentage: int = 0
    average_percentage: int = 0
    total_completed: int = 0
    total_goal: int = 0
    habits_completed: int = 0
    total_habits: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "percentage": self.percentage,
            "averagePercentage": self.average_percentage,
            "totalCompleted": self.total_completed,
            "totalGoal": self.total_goal,
            "habitsCompleted": self.habits_completed,
            "totalHabits": self.total_habits,
        }


@dataclass
class MotivationScore:
    score: int = 0
    level: str = "Needs Improvement"
    completion: int = 0
    consistency: int = 0
    average_streak: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "level": self.level,
            "breakdown": {
                "completion": self.completion,
                "consistency": self.consistency,
                "averageStreak": self.average_streak,
            },
        }


@dataclass
class ProjectedCompletion:
    projected_percentage: int = 0
    projected_completed: int = 0
    projected_goal: int = 0
    days_remaining: int = 0
    on_track: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "projectedPercentage": self.projected_percentage,
            "projectedCompleted": self.projected_completed,
            "projectedGoal": self.projected_goal,
            "daysRemaining": self.days_remaining,
            "onTrack": self.on_track,
        }
