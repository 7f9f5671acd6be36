"""HabitGrid core library: shared data layer and progress engine.

Public API re-exports for convenient imports:
    from habitgrid import data_root, load_habits, toggle_day, ...
"""

# Constants
from habitgrid.constants import (
    APP_NAME,
    MAX_HABITS,
    MAX_GOAL,
    DEFAULT_SETTINGS,
)

# Data directory & paths
from habitgrid.workspace import (
    data_root,
    get_user_timezone,
    now_local,
    today_date,
    timestamp,
    configure_logging,
    habits_path,
    settings_path,
    session_path,
    sync_state_path,
)

# File I/O
from habitgrid.fileio import (
    read_text,
    read_json,
    read_yaml,
    write_json_atomic,
    write_yaml_atomic,
)

# Dates
from habitgrid.dates import (
    days_in_month,
    day_of_week,
    iso_day,
    is_today,
    is_past,
    is_future,
    today_parts,
    generate_month_days,
)

# Progress engine
from habitgrid.calculations import (
    calculate_completion,
    calculate_streak,
    calculate_consistency,
    calculate_overall_progress,
    calculate_weekly_trends,
    calculate_day_completion,
    calculate_best_day,
    calculate_habit_frequency,
    calculate_projected_completion,
    calculate_motivation_score,
)

# Habits
from habitgrid.habits import (
    validate_habit,
    find_habit,
    create_habit,
    update_habit,
    delete_habit,
    toggle_day,
    toggle_all_for_day,
    get_habit_progress,
    get_overall_progress,
    get_habit_streaks,
    get_habits_with_progress,
    get_top_habits,
)

# Month & grid
from habitgrid.month import MonthView
from habitgrid.grid import build_grid, GridView

# Persistence
from habitgrid.storage import (
    load_habits,
    save_habits,
    load_settings,
    save_settings,
    update_settings,
    load_session,
    load_last_sync,
)

# Cloud
from habitgrid.auth import GoogleAuth
from habitgrid.drive import DriveStorage, AutoSaver

# Export
from habitgrid.export import export_json, export_csv, export_filename

# Errors
from habitgrid.errors import HabitGridError, AuthError, DriveError

# Models
from habitgrid.models import (
    Habit,
    Record,
    HabitsFile,
    Settings,
    UserProfile,
    UserSession,
    OAuthClientConfig,
    HabitProgress,
    OverallProgress,
    MotivationScore,
    ProjectedCompletion,
)
