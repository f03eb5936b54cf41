import logging
from pathlib import Path

from task_tracker.config import Settings, build_storage, load_settings
from task_tracker.storage import FileStorage, MemoryStorage


def test_defaults_when_environment_is_empty() -> None:
    assert load_settings({}) == Settings()


def test_reads_prefixed_variables(tmp_path: Path) -> None:
    settings = load_settings({
        "TASK_TRACKER_STORAGE": "File",
        "TASK_TRACKER_DATA_DIR": str(tmp_path),
        "TASK_TRACKER_STORAGE_KEY": "todo",
        "TASK_TRACKER_LOG_LEVEL": "debug",
    })

    assert settings.storage_backend == "file"
    assert settings.data_dir == tmp_path
    assert settings.storage_key == "todo"
    assert settings.log_level == logging.DEBUG


def test_invalid_values_fall_back_to_defaults() -> None:
    settings = load_settings({"TASK_TRACKER_STORAGE": "redis", "TASK_TRACKER_LOG_LEVEL": "chatty"})

    assert settings.storage_backend == "settings"
    assert settings.log_level == logging.INFO


def test_build_storage_picks_backend(tmp_path: Path) -> None:
    file_storage = build_storage(Settings(storage_backend="file", data_dir=tmp_path))
    assert isinstance(file_storage, FileStorage)
    assert file_storage.directory == tmp_path
    assert isinstance(build_storage(Settings(storage_backend="memory")), MemoryStorage)
