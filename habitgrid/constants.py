"""Application constants for HabitGrid."""

from __future__ import annotations

MAX_HABITS = 50
MIN_GOAL = 1
MAX_GOAL = 31
DATA_VERSION = "1.0"

APP_NAME = "HabitGrid"
DRIVE_FILE_NAME = "habitgrid-data.json"
DRIVE_FOLDER_NAME = "HabitGrid"

# ── Palette ───────────────────────────────────────────────────

COLORS = {
    "primary": "#4285F4",
    "secondary": "#34A853",
    "accent": "#FBBC05",
    "danger": "#EA4335",
    "gray": {
        100: "#F8F9FA",
        200: "#F1F3F4",
        300: "#E8EAED",
        400: "#DADCE0",
        500: "#BDC1C6",
        600: "#9AA0A6",
        700: "#80868B",
        800: "#5F6368",
        900: "#3C4043",
    },
}

DEFAULT_COLOR = COLORS["primary"]
DEFAULT_EMOJI = "🎯"

EMOJIS = [
    "🏃", "🏋️", "🧘", "💪", "🚴", "🤸",
    "📚", "✍️", "🎯", "💡", "🧠", "🎓",
    "💧", "🥗", "🍎", "🥦", "🥛", "💊",
    "😴", "🛌", "🌅", "🌙", "🧖", "🛀",
    "🎨", "🎵", "🎸", "📷", "🎮", "🎭",
    "💼", "💰", "📈", "🔄", "🎪", "🌟",
]

HABIT_CATEGORIES = [
    {"name": "Health & Fitness", "color": "#34A853", "icon": "💪"},
    {"name": "Learning", "color": "#4285F4", "icon": "📚"},
    {"name": "Productivity", "color": "#FBBC05", "icon": "🎯"},
    {"name": "Mindfulness", "color": "#8B5CF6", "icon": "🧘"},
    {"name": "Creativity", "color": "#EC4899", "icon": "🎨"},
    {"name": "Finance", "color": "#10B981", "icon": "💰"},
]

# ── Calendar ──────────────────────────────────────────────────

DAYS_OF_WEEK = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

# ── Google ────────────────────────────────────────────────────

GOOGLE_SCOPES = " ".join([
    "openid",
    "https://www.googleapis.com/auth/drive.file",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
])

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_REVOKE_URL = "https://oauth2.googleapis.com/revoke"
DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

# ── Settings ──────────────────────────────────────────────────

DEFAULT_SETTINGS = {
    "autoSave": True,
    "showPercentages": True,
    "notifications": True,
    "defaultGoal": 20,
    "theme": "light",
    "weekStartsOn": 0,  # 0 = Sunday, 1 = Monday
}

AUTO_SAVE_DELAY_SECONDS = 2.0

EXPORT_TYPES = {"json", "csv"}

MOTIVATION_LEVELS = [
    (80, "Excellent"),
    (60, "Good"),
    (40, "Fair"),
    (0, "Needs Improvement"),
]
