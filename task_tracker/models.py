"""Data models shared across the task tracker."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

# Field names written by the earliest builds of the tracker.
_LEGACY_FIELDS = {"name": "taskName", "status": "taskStatus", "completed": "isCompleted"}


class TaskStatus(str, Enum):
    """Lifecycle status of a task, in cycle order."""

    NEW = "New"
    ON_HOLD = "OnHold"
    COMPLETED = "Completed"

    def next(self) -> TaskStatus:
        """Return the following status in the New -> OnHold -> Completed cycle."""
        order = list(TaskStatus)
        return order[(order.index(self) + 1) % len(order)]

    @classmethod
    def parse(cls, raw: Any) -> Optional[TaskStatus]:
        """Match a status label ignoring case and spaces ("On Hold" -> OnHold)."""
        if not isinstance(raw, str):
            return None
        key = raw.replace(" ", "").lower()
        for status in cls:
            if status.value.lower() == key:
                return status
        return None


class Category(str, Enum):
    """Values offered by the status filter."""

    ALL = "All"
    NEW = "New"
    ON_HOLD = "OnHold"
    COMPLETED = "Completed"

    @property
    def status(self) -> Optional[TaskStatus]:
        if self is Category.ALL:
            return None
        return TaskStatus(self.value)

    @classmethod
    def parse(cls, raw: Any) -> Optional[Category]:
        if isinstance(raw, Category):
            return raw
        if isinstance(raw, str) and raw.strip().lower() == "all":
            return cls.ALL
        status = TaskStatus.parse(raw)
        return None if status is None else cls(status.value)


@dataclass
class Task:
    """A single to-do item."""

    id: int
    name: str
    status: TaskStatus = TaskStatus.NEW
    completed: bool = False

    def set_status(self, status: TaskStatus) -> None:
        """Change status and keep `completed` consistent with it."""
        self.status = status
        self.completed = status is TaskStatus.COMPLETED

    def matches(self, text: str) -> bool:
        """Return True when the name contains `text`, ignoring case."""
        return text.lower() in self.name.lower()

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "completed": self.completed,
        }


def record_value(record: Mapping[str, Any], field: str) -> Any:
    """Read a field, falling back to its legacy name."""
    if field in record:
        return record[field]
    return record.get(_LEGACY_FIELDS.get(field, field))


def record_id(record: Mapping[str, Any]) -> Optional[int]:
    """Return the stored id when it is usable as an integer id.

    Old builds derived ids from `timestamp + random()`, so integral floats are
    accepted and anything fractional is treated as missing.
    """
    raw = record.get("id")
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    return None


def task_from_record(record: Mapping[str, Any], task_id: int) -> Optional[Task]:
    """Build a Task from a stored record, applying the compatibility upgrade.

    Returns None for records without a usable name. `completed` is always
    derived from the status so the two never disagree.
    """
    name = record_value(record, "name")
    if not isinstance(name, str) or not name.strip():
        return None
    raw_status = record_value(record, "status")
    status = TaskStatus.parse(raw_status)
    if status is None:
        logger.warning("Unknown status %r for task %r, using New", raw_status, name)
        status = TaskStatus.NEW
    task = Task(id=task_id, name=name.strip(), status=status)
    task.set_status(status)
    return task
