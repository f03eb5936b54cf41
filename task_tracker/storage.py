"""Key/value persistence helpers."""
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from PyQt6.QtCore import QSettings

from .models import Task

DEFAULT_STORAGE_KEY = "tasks"
_ORGANIZATION = "task_tracker"
_APPLICATION = "Task Tracker"


class KeyValueStorage(Protocol):
    """Opaque key -> string store (the desktop stand-in for localStorage)."""

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...


class MemoryStorage:
    """Dictionary backed storage, used for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


class FileStorage:
    """One UTF-8 file per key inside a data directory."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        """Write through a temp file so a crash never leaves a truncated value."""
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{key}.", suffix=".tmp")
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            tmp_path.replace(path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise


class SettingsStorage:
    """Storage on top of the platform's QSettings backend."""

    def __init__(self, settings: Optional[QSettings] = None) -> None:
        self.settings = settings if settings is not None else QSettings(_ORGANIZATION, _APPLICATION)

    def get_item(self, key: str) -> Optional[str]:
        value = self.settings.value(key)
        if value is None:
            return None
        return str(value)

    def set_item(self, key: str, value: str) -> None:
        self.settings.setValue(key, value)
        self.settings.sync()
        # QSettings reports write failures through its status, not by raising.
        status = self.settings.status()
        if status != QSettings.Status.NoError:
            raise OSError(f"Could not write {self.settings.fileName()}: {status.name}")


def save_tasks(storage: KeyValueStorage, tasks: Iterable[Task], key: str = DEFAULT_STORAGE_KEY) -> None:
    """Serialize the whole collection and overwrite the stored value."""
    payload = json.dumps([task.to_record() for task in tasks])
    storage.set_item(key, payload)


def load_tasks(storage: KeyValueStorage, key: str = DEFAULT_STORAGE_KEY) -> Optional[List[dict]]:
    """Return the raw task records, or None when nothing was stored.

    Raises ValueError when the stored value is not a JSON array of objects.
    """
    raw = storage.get_item(key)
    if raw is None:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid task data: {exc}") from exc
    if not isinstance(data, list):
        raise ValueError("Invalid task data: expected a list of tasks")
    if not all(isinstance(record, dict) for record in data):
        raise ValueError("Invalid task data: every task must be an object")
    return data
