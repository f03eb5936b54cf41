"""Settings loaded from environment variables."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .storage import DEFAULT_STORAGE_KEY, FileStorage, KeyValueStorage, MemoryStorage, SettingsStorage

ENV_PREFIX = "TASK_TRACKER"
STORAGE_BACKENDS = ("settings", "file", "memory")


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


@dataclass(frozen=True)
class Settings:
    storage_backend: str = "settings"
    data_dir: Path = Path("~/.task_tracker").expanduser()
    storage_key: str = DEFAULT_STORAGE_KEY
    log_level: int = logging.INFO


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read settings from `environ` (defaults to os.environ). Bad values fall back to defaults."""
    env = os.environ if environ is None else environ
    defaults = Settings()

    backend = env.get(_k("STORAGE"), "").strip().lower()
    if backend not in STORAGE_BACKENDS:
        backend = defaults.storage_backend

    raw_dir = env.get(_k("DATA_DIR"), "").strip()
    data_dir = Path(raw_dir).expanduser() if raw_dir else defaults.data_dir

    key = env.get(_k("STORAGE_KEY"), "").strip() or defaults.storage_key

    level_name = env.get(_k("LOG_LEVEL"), "").strip().upper()
    level = logging.getLevelName(level_name) if level_name else defaults.log_level
    if not isinstance(level, int):
        level = defaults.log_level

    return Settings(storage_backend=backend, data_dir=data_dir, storage_key=key, log_level=level)


def build_storage(settings: Settings) -> KeyValueStorage:
    """Instantiate the storage backend named by the settings."""
    if settings.storage_backend == "file":
        return FileStorage(settings.data_dir)
    if settings.storage_backend == "memory":
        return MemoryStorage()
    return SettingsStorage()
