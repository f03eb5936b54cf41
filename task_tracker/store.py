"""In-memory task collection mirrored to a key/value store."""
from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable, List, Optional, Set, Union

from .models import Category, Task, TaskStatus, record_id, task_from_record
from .storage import DEFAULT_STORAGE_KEY, KeyValueStorage, load_tasks, save_tasks

logger = logging.getLogger(__name__)

EMPTY_SELECTION_WARNING = "Please select at least one task to change status"
UNREADABLE_STORAGE_WARNING = "Saved tasks could not be read, starting with an empty list"
SAVE_FAILED_WARNING = "Tasks could not be saved"


class TaskStore:
    """Owns the task list, the filtered view and the bulk selection.

    View indices passed to the mutating operations refer to `filtered_tasks`
    and are resolved to tasks by id. Every mutation reapplies the active
    filter and rewrites the whole collection to storage. `add_task` is the
    exception to filter preservation: it always resets the view to All.

    Only one predicate is active at a time: a non-empty search replaces the
    category filter and choosing a category clears the search.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        key: str = DEFAULT_STORAGE_KEY,
        on_change: Optional[Callable[[], None]] = None,
        on_warning: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.storage = storage
        self.key = key
        self.on_change = on_change
        self.on_warning = on_warning
        self._clock = clock
        self._tasks: List[Task] = []
        self._view: List[Task] = []
        self._has_results = True
        self._selected: Set[int] = set()
        self._category = Category.ALL
        self._search = ""
        self._last_id = 0
        self.hydrate()

    # --- Read-only projections -------------------------------------------------

    @property
    def tasks(self) -> List[Task]:
        """Copies of the tasks; change them through the store operations."""
        return [replace(task) for task in self._tasks]

    @property
    def filtered_tasks(self) -> List[Task]:
        return [replace(task) for task in self._view]

    @property
    def has_results(self) -> bool:
        """False when the active filter matched nothing (the view stays frozen)."""
        return self._has_results

    @property
    def is_empty(self) -> bool:
        return not self._tasks

    @property
    def selected_ids(self) -> Set[int]:
        return set(self._selected)

    @property
    def active_filter(self) -> Union[str, Category]:
        """The search text when one is active, otherwise the category."""
        return self._search or self._category

    def task_at(self, view_index: int) -> Optional[Task]:
        """Resolve a filtered-view index to a copy of the task, or None."""
        task = self._live_task(view_index)
        return None if task is None else replace(task)

    def is_selected(self, view_index: int) -> bool:
        task = self._live_task(view_index)
        return task is not None and task.id in self._selected

    def _live_task(self, view_index: int) -> Optional[Task]:
        if view_index < 0 or view_index >= len(self._view):
            return None
        task_id = self._view[view_index].id
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    # --- Startup ---------------------------------------------------------------

    def hydrate(self) -> None:
        """Load the stored collection, upgrading legacy records on the way.

        Unreadable data is reported as a warning and treated as an empty list.
        """
        self._tasks = []
        self._selected.clear()
        self._reset_filter()
        try:
            records = load_tasks(self.storage, self.key)
        except (ValueError, OSError) as exc:
            logger.warning("Ignoring stored tasks under %r: %s", self.key, exc)
            self._warn(UNREADABLE_STORAGE_WARNING)
            records = None

        if records:
            # Claim valid stored ids first so fresh ids cannot collide with them.
            stored_ids: List[Optional[int]] = []
            seen: Set[int] = set()
            for record in records:
                rid = record_id(record)
                if rid is None or rid in seen:
                    stored_ids.append(None)
                    continue
                seen.add(rid)
                stored_ids.append(rid)
            self._last_id = max(seen, default=0)

            for record, rid in zip(records, stored_ids):
                task = task_from_record(record, rid if rid is not None else self._new_id())
                if task is None:
                    logger.warning("Skipping stored task without a name: %r", record)
                    continue
                self._tasks.append(task)

        self._view = list(self._tasks)
        logger.info("Loaded %d task(s) from storage key %r", len(self._tasks), self.key)
        self._notify()

    # --- Mutations -------------------------------------------------------------

    def add_task(self, name: str) -> bool:
        """Append a New task; blank names are ignored. Resets the view to All."""
        text = name.strip() if name else ""
        if not text:
            return False
        task = Task(id=self._new_id(), name=text)
        self._tasks.append(task)
        self._reset_filter()
        self._view = list(self._tasks)
        logger.debug("Added task %d %r", task.id, task.name)
        self.persist()
        self._notify()
        return True

    def delete_task(self, view_index: int) -> bool:
        task = self._resolve(view_index, "delete")
        if task is None:
            return False
        self._tasks.remove(task)
        self._selected.discard(task.id)
        logger.debug("Deleted task %d", task.id)
        self._apply_filter()
        self.persist()
        self._notify()
        return True

    def complete_task(self, view_index: int) -> bool:
        task = self._resolve(view_index, "complete")
        if task is None:
            return False
        task.set_status(TaskStatus.COMPLETED)
        self._apply_filter()
        self.persist()
        self._notify()
        return True

    def toggle_selection(self, view_index: int, selected: bool) -> bool:
        task = self._resolve(view_index, "select")
        if task is None:
            return False
        if selected:
            self._selected.add(task.id)
        else:
            self._selected.discard(task.id)
        self._notify()
        return True

    def cycle_status(self) -> bool:
        """Advance every selected task one step through the status cycle."""
        if not self._selected:
            logger.info("Status change requested with no tasks selected")
            self._warn(EMPTY_SELECTION_WARNING)
            return False
        for task in self._tasks:
            if task.id in self._selected:
                task.set_status(task.status.next())
        self._selected.clear()
        self._apply_filter()
        self.persist()
        self._notify()
        return True

    # --- Filtering -------------------------------------------------------------

    def set_search_text(self, text: str) -> None:
        if not text or not text.strip():
            self._reset_filter()
            self._view = list(self._tasks)
        else:
            self._search = text
            self._category = Category.ALL
            self._apply_filter()
        self._notify()

    def set_category_filter(self, category: Union[str, Category]) -> bool:
        parsed = Category.parse(category)
        if parsed is None:
            logger.warning("Ignoring unknown category %r", category)
            return False
        self._search = ""
        self._category = parsed
        self._apply_filter()
        self._notify()
        return True

    # --- Persistence -----------------------------------------------------------

    def persist(self) -> bool:
        """Overwrite the stored value with the current collection."""
        try:
            save_tasks(self.storage, self._tasks, self.key)
        except OSError as exc:
            logger.error("Failed to save tasks under %r: %s", self.key, exc)
            self._warn(SAVE_FAILED_WARNING)
            return False
        return True

    # --- Internals -------------------------------------------------------------

    def _new_id(self) -> int:
        candidate = max(int(self._clock() * 1000), self._last_id + 1)
        self._last_id = candidate
        return candidate

    def _resolve(self, view_index: int, action: str) -> Optional[Task]:
        task = self._live_task(view_index)
        if task is None:
            logger.warning("Cannot %s: view index %d does not resolve to a task", action, view_index)
        return task

    def _reset_filter(self) -> None:
        self._search = ""
        self._category = Category.ALL
        self._has_results = True

    def _matching(self) -> List[Task]:
        if self._search:
            return [task for task in self._tasks if task.matches(self._search)]
        status = self._category.status
        if status is None:
            return list(self._tasks)
        return [task for task in self._tasks if task.status is status]

    def _apply_filter(self) -> None:
        """Recompute the view. An empty match keeps the previous view, minus deleted tasks."""
        if not self._search and self._category is Category.ALL:
            self._has_results = True
            self._view = list(self._tasks)
            return
        matches = self._matching()
        if matches:
            self._has_results = True
            self._view = matches
            return
        self._has_results = False
        live = {task.id for task in self._tasks}
        self._view = [task for task in self._view if task.id in live]

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def _warn(self, message: str) -> None:
        if self.on_warning is not None:
            self.on_warning(message)
