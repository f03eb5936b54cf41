import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt6.QtWidgets import QApplication

from task_tracker.storage import MemoryStorage
from task_tracker.store import TaskStore


@pytest.fixture(scope="session")
def qapp():
    """Provide a shared QApplication for tests that instantiate widgets."""
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def warnings_seen() -> list:
    return []


@pytest.fixture()
def store(storage: MemoryStorage, warnings_seen: list) -> TaskStore:
    """A store whose clock never advances, so every id comes from the bump path."""
    return TaskStore(storage, on_warning=warnings_seen.append, clock=lambda: 1_700_000_000.0)
