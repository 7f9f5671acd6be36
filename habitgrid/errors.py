"""Exceptions raised by HabitGrid's network-facing modules."""

from __future__ import annotations


class HabitGridError(Exception):
    """Base class for failures that should be shown to the user."""


class AuthError(HabitGridError):
    """Google sign-in or token exchange failed."""


class DriveError(HabitGridError):
    """A Google Drive request failed."""
