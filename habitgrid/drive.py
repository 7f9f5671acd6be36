"""Google Drive sync for HabitGrid.

The cloud copy is a single JSON file (same shape as habits.json) inside
a ``HabitGrid`` folder in the user's Drive. Both are found by name or
created on first use.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import requests

from habitgrid.auth import REQUEST_TIMEOUT, GoogleAuth
from habitgrid.constants import (
    AUTO_SAVE_DELAY_SECONDS,
    DRIVE_FILE_NAME,
    DRIVE_FILES_URL,
    DRIVE_FOLDER_NAME,
    DRIVE_UPLOAD_URL,
    FOLDER_MIME_TYPE,
)
from habitgrid.errors import AuthError, DriveError
from habitgrid.models import HabitsFile
from habitgrid.storage import save_habits, save_last_sync

logger = logging.getLogger(__name__)


def parse_timestamp(value: str) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class DriveStorage:
    """Find-or-create, read and overwrite the HabitGrid file in Drive."""

    def __init__(self, auth: GoogleAuth, root: Path | None = None) -> None:
        self.auth = auth
        self.root = root
        self.http: requests.Session = auth.http
        self.folder_id: str | None = None
        self.file_id: str | None = None
        self.last_sync_time: datetime | None = None

    # ── HTTP ──────────────────────────────────────────────────

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            headers = {**kwargs.pop("headers", {}), **self.auth.auth_headers()}
        except AuthError as e:
            raise DriveError(str(e)) from e
        try:
            resp = self.http.request(method, url, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as e:
            logger.error("Drive %s %s failed: %s", method, url, e)
            raise DriveError("Failed to reach Google Drive") from e
        if resp.status_code >= 400:
            logger.error("Drive %s %s returned HTTP %s: %s", method, url, resp.status_code, resp.text[:200])
            raise DriveError(f"Google Drive request failed (HTTP {resp.status_code})")
        return resp

    def _find(self, query: str) -> str | None:
        resp = self._request(
            "GET",
            DRIVE_FILES_URL,
            params={"q": query, "fields": "files(id, name)", "spaces": "drive"},
        )
        files = resp.json().get("files") or []
        return files[0]["id"] if files else None

    # ── Setup ─────────────────────────────────────────────────

    def initialize(self) -> str:
        """Make sure folder and data file exist; returns the file id."""
        if not self.auth.is_authenticated():
            raise DriveError("Not authenticated with Google")
        self.find_or_create_folder()
        return self.find_or_create_file()

    def find_or_create_folder(self) -> str:
        query = f"name='{DRIVE_FOLDER_NAME}' and mimeType='{FOLDER_MIME_TYPE}' and trashed=false"
        folder_id = self._find(query)
        if folder_id is None:
            resp = self._request(
                "POST",
                DRIVE_FILES_URL,
                params={"fields": "id"},
                json={"name": DRIVE_FOLDER_NAME, "mimeType": FOLDER_MIME_TYPE},
            )
            folder_id = resp.json()["id"]
            logger.info("Created Drive folder %s (%s)", DRIVE_FOLDER_NAME, folder_id)
        self.folder_id = folder_id
        return folder_id

    def find_or_create_file(self) -> str:
        if self.folder_id is None:
            self.find_or_create_folder()
        query = f"name='{DRIVE_FILE_NAME}' and '{self.folder_id}' in parents and trashed=false"
        file_id = self._find(query)
        if file_id is None:
            resp = self._request(
                "POST",
                DRIVE_FILES_URL,
                params={"fields": "id"},
                json={
                    "name": DRIVE_FILE_NAME,
                    "parents": [self.folder_id],
                    "mimeType": "application/json",
                },
            )
            file_id = resp.json()["id"]
            self.file_id = file_id
            self._upload(HabitsFile().to_dict())
            logger.info("Created Drive file %s (%s)", DRIVE_FILE_NAME, file_id)
        self.file_id = file_id
        return file_id

    # ── Read / write ──────────────────────────────────────────

    def _upload(self, payload: dict[str, Any]) -> None:
        self._request(
            "PATCH",
            f"{DRIVE_UPLOAD_URL}/{self.file_id}",
            params={"uploadType": "media"},
            headers={"Content-Type": "application/json"},
            data=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
        )

    def load(self) -> HabitsFile:
        if self.file_id is None:
            self.initialize()
        resp = self._request("GET", f"{DRIVE_FILES_URL}/{self.file_id}", params={"alt": "media"})
        if not resp.content.strip():
            return HabitsFile()
        try:
            data = resp.json()
        except ValueError as e:
            raise DriveError("Drive file does not contain valid JSON") from e
        return HabitsFile.from_dict(data)

    def save(self, habits_file: HabitsFile) -> None:
        if self.file_id is None:
            self.initialize()
        self._upload(habits_file.to_dict())
        self._mark_synced()

    def sync(self, local: HabitsFile) -> HabitsFile:
        """Reconcile local and cloud copies; the newer ``lastUpdated`` wins.

        Returns the winning copy. When the cloud copy wins it is also
        written to habits.json.
        """
        remote = self.load()
        local_ts = parse_timestamp(local.last_updated)
        remote_ts = parse_timestamp(remote.last_updated)

        if remote_ts is not None and (local_ts is None or remote_ts > local_ts):
            save_habits(remote, self.root, touch=False)
            self._mark_synced()
            logger.info("Pulled %d habits from Drive", len(remote.habits))
            return remote

        self.save(local)
        logger.info("Pushed %d habits to Drive", len(local.habits))
        return local

    def _mark_synced(self) -> None:
        self.last_sync_time = datetime.now(timezone.utc)
        save_last_sync(self.last_sync_time, self.root)


class AutoSaver:
    """Debounced saver: every touch() clears and reschedules one timer."""

    def __init__(self, save: Callable[[], None], delay: float = AUTO_SAVE_DELAY_SECONDS) -> None:
        self._save = save
        self.delay = delay
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def touch(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def flush(self) -> None:
        """Save immediately if a save is pending."""
        with self._lock:
            if self._timer is None:
                return
            self._timer.cancel()
            self._timer = None
        self._run()

    def _fire(self) -> None:
        with self._lock:
            if self._timer is threading.current_thread():
                self._timer = None
        self._run()

    def _run(self) -> None:
        try:
            self._save()
        except Exception as e:
            logger.error("Auto-save failed: %s", e)
