"""Locked, atomic reads and writes of the HabitGrid data files."""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml


def read_text(path: Path) -> str:
    """File contents, or "" when the file does not exist."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""


def read_json(path: Path) -> Any:
    """Parsed JSON, or {} for a missing or blank file.

    Parse errors propagate; callers decide whether to fall back.
    """
    text = read_text(path)
    return json.loads(text) if text.strip() else {}


def read_yaml(path: Path) -> dict[str, Any]:
    """A YAML mapping; anything unreadable or not a mapping reads as {}."""
    try:
        data = yaml.safe_load(read_text(path))
    except yaml.YAMLError:
        return {}
    return data if isinstance(data, dict) else {}


def _write_atomic(path: Path, content: str) -> None:
    """Write to a sibling temp file under flock, fsync, then rename over *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=".tmp_",
        suffix=path.suffix,
        delete=False,
    )
    tmp_path = Path(tmp.name)
    try:
        with tmp:
            fcntl.flock(tmp.fileno(), fcntl.LOCK_EX)
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def write_json_atomic(path: Path, data: Any) -> None:
    _write_atomic(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def write_yaml_atomic(path: Path, data: dict[str, Any]) -> None:
    _write_atomic(path, yaml.safe_dump(data, allow_unicode=True, sort_keys=False))


def quarantine(path: Path) -> Path | None:
    """Rename an unreadable file to ``<name>.corrupt-<stamp>`` so a later save cannot clobber it."""
    if not path.exists():
        return None
    target = path.with_name(f"{path.name}.corrupt-{datetime.now().strftime('%Y%m%d%H%M%S')}")
    os.replace(path, target)
    return target


def remove_file(path: Path) -> None:
    path.unlink(missing_ok=True)
