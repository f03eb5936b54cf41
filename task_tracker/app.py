"""Main PyQt application entry point."""
from __future__ import annotations

import logging
import sys
from typing import Dict, List, Optional

from PyQt6.QtCore import Qt, QPoint
from PyQt6.QtGui import QAction, QColor, QKeySequence
from PyQt6.QtWidgets import (
    QAbstractItemView,
    QApplication,
    QComboBox,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMenu,
    QMessageBox,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from .config import build_storage, load_settings
from .logging_setup import setup_logging
from .models import Category, Task, TaskStatus
from .store import TaskStore

logger = logging.getLogger(__name__)

TASK_HEADERS = ["", "Task", "Status"]
_SELECT_COL = 0
_NAME_COL = 1
_STATUS_COL = 2

STATUS_LABELS: Dict[TaskStatus, str] = {
    TaskStatus.NEW: "New",
    TaskStatus.ON_HOLD: "On Hold",
    TaskStatus.COMPLETED: "Completed",
}
# (background, foreground)
STATUS_COLORS: Dict[TaskStatus, tuple[str, str]] = {
    TaskStatus.NEW: ("#eff6ff", "#1d4ed8"),
    TaskStatus.ON_HOLD: ("#fefce8", "#a16207"),
    TaskStatus.COMPLETED: ("#f0fdf4", "#15803d"),
}
EMPTY_LIST_TEXT = "No tasks yet. Type a name above and press Add."
NO_RESULTS_TEXT = "No tasks match the current filter."


class TaskListWidget(QTableWidget):
    """Table bound to a TaskStore's filtered view.

    Row numbers are view indices, so they can be handed to the store as-is.
    The first column carries the bulk-selection checkbox.
    """

    def __init__(self, store: TaskStore, parent: Optional[QWidget] = None) -> None:
        super().__init__(0, len(TASK_HEADERS), parent)
        self.store = store
        self._row_ids: List[int] = []
        self._block_cell = False
        self._setup_table()
        self.refresh()

    def _setup_table(self) -> None:
        self.setHorizontalHeaderLabels(TASK_HEADERS)
        self.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.customContextMenuRequested.connect(self._show_context_menu)
        self.itemChanged.connect(self._handle_item_changed)
        self.verticalHeader().setVisible(False)
        header = self.horizontalHeader()
        header.setSectionResizeMode(_SELECT_COL, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(_NAME_COL, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(_STATUS_COL, QHeaderView.ResizeMode.ResizeToContents)

    def refresh(self) -> None:
        """Mirror the store's filtered view.

        Rows are rebuilt only when the set of displayed tasks changed; otherwise
        the existing items are updated in place so a checkbox toggle never
        deletes the item that emitted it.
        """
        tasks = self.store.filtered_tasks
        ids = [task.id for task in tasks]
        self._block_cell = True
        if ids != self._row_ids:
            self.setRowCount(0)
            for row in range(len(tasks)):
                self.insertRow(row)
                self.setItem(row, _SELECT_COL, self._make_check_cell())
                self.setItem(row, _NAME_COL, QTableWidgetItem())
                self.setItem(row, _STATUS_COL, QTableWidgetItem())
            self._row_ids = ids
        for row, task in enumerate(tasks):
            self._fill_row(row, task)
        self._block_cell = False

    def _make_check_cell(self) -> QTableWidgetItem:
        item = QTableWidgetItem("")
        item.setFlags(Qt.ItemFlag.ItemIsUserCheckable | Qt.ItemFlag.ItemIsEnabled)
        return item

    def _fill_row(self, row: int, task: Task) -> None:
        checked = Qt.CheckState.Checked if self.store.is_selected(row) else Qt.CheckState.Unchecked
        self.item(row, _SELECT_COL).setCheckState(checked)

        name_item = self.item(row, _NAME_COL)
        name_item.setText(task.name)
        font = name_item.font()
        font.setStrikeOut(task.completed)
        name_item.setFont(font)

        status_item = self.item(row, _STATUS_COL)
        status_item.setText(STATUS_LABELS[task.status])
        status_item.setTextAlignment(Qt.AlignmentFlag.AlignCenter)
        background, foreground = STATUS_COLORS[task.status]
        for col in (_NAME_COL, _STATUS_COL):
            self.item(row, col).setBackground(QColor(background))
        status_item.setForeground(QColor(foreground))

    def _handle_item_changed(self, item: QTableWidgetItem) -> None:
        if self._block_cell or item.column() != _SELECT_COL:
            return
        self.store.toggle_selection(item.row(), item.checkState() == Qt.CheckState.Checked)

    def _show_context_menu(self, position: QPoint) -> None:
        """Provide the per-row actions (complete/delete)."""
        index = self.indexAt(position)
        if not index.isValid():
            return
        row = index.row()
        menu = QMenu(self)
        complete_action = menu.addAction("Complete")
        complete_action.setEnabled(not self.store.filtered_tasks[row].completed)
        delete_action = menu.addAction("Delete")
        action = menu.exec(self.viewport().mapToGlobal(position))
        if action == complete_action:
            self.complete_row(row)
        elif action == delete_action:
            self.delete_row(row)

    def complete_row(self, row: int) -> bool:
        return self.store.complete_task(row)

    def delete_row(self, row: int) -> bool:
        return self.store.delete_task(row)

    def current_view_row(self) -> Optional[int]:
        row = self.currentRow()
        return row if 0 <= row < self.rowCount() else None


class MainWindow(QMainWindow):
    """Primary window: entry/search box, filter, bulk action and the task table."""

    def __init__(self, store: TaskStore) -> None:
        super().__init__()
        self.setWindowTitle("Task Tracker")
        self.store = store
        self.task_input = QLineEdit()
        self.add_button = QPushButton("Add")
        self.filter_combo = QComboBox()
        self.change_status_button = QPushButton("Change Status")
        self.empty_label = QLabel()
        self.table = TaskListWidget(store)
        # Wire up the store so every mutation redraws the table. Callbacks the
        # store already had keep firing after the window's own handlers.
        self._chained_change = store.on_change
        self._chained_warning = store.on_warning
        self.store.on_change = self._handle_store_change
        self.store.on_warning = self._handle_store_warning
        self._build_layout()
        self._build_menu()
        self._connect_signals()
        self.refresh()
        self.resize(640, 520)

    def _build_layout(self) -> None:
        self.task_input.setPlaceholderText("Add a task or search...")
        for category in Category:
            label = "All" if category is Category.ALL else STATUS_LABELS[category.status]
            self.filter_combo.addItem(label, category.value)
        self.empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)

        entry_row = QHBoxLayout()
        entry_row.addWidget(self.task_input)
        entry_row.addWidget(self.add_button)

        action_row = QHBoxLayout()
        action_row.addWidget(QLabel("Filter:"))
        action_row.addWidget(self.filter_combo)
        action_row.addStretch(1)
        action_row.addWidget(self.change_status_button)

        container = QWidget()
        layout = QVBoxLayout(container)
        layout.addLayout(entry_row)
        layout.addLayout(action_row)
        layout.addWidget(self.table)
        layout.addWidget(self.empty_label)
        self.setCentralWidget(container)

    def _build_menu(self) -> None:
        """Create the Task menu along with shortcuts."""
        menu = self.menuBar()
        task_menu = menu.addMenu("Task")

        complete_action = QAction("Complete", self)
        complete_action.setShortcut("Ctrl+D")
        complete_action.triggered.connect(self.action_complete)
        task_menu.addAction(complete_action)

        delete_action = QAction("Delete", self)
        delete_action.setShortcut(QKeySequence.StandardKey.Delete)
        delete_action.triggered.connect(self.action_delete)
        task_menu.addAction(delete_action)

        change_status_action = QAction("Change Status", self)
        change_status_action.setShortcut("Ctrl+T")
        change_status_action.triggered.connect(self.action_change_status)
        task_menu.addAction(change_status_action)

        task_menu.addSeparator()
        quit_action = QAction("Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)
        task_menu.addAction(quit_action)

    def _connect_signals(self) -> None:
        self.task_input.textChanged.connect(self.store.set_search_text)
        self.task_input.returnPressed.connect(self.action_add)
        self.add_button.clicked.connect(self.action_add)
        self.filter_combo.currentIndexChanged.connect(self._handle_filter_changed)
        self.change_status_button.clicked.connect(self.action_change_status)

    def refresh(self) -> None:
        """Redraw the table and the empty-state message from the store."""
        self.table.refresh()
        self._sync_filter_combo()
        if self.store.is_empty:
            self.empty_label.setText(EMPTY_LIST_TEXT)
            self.empty_label.show()
        elif not self.store.has_results:
            self.empty_label.setText(NO_RESULTS_TEXT)
            self.empty_label.show()
        else:
            self.empty_label.hide()

    def _sync_filter_combo(self) -> None:
        """Typing a search resets the category, so the combo follows the store."""
        active = self.store.active_filter
        category = active if isinstance(active, Category) else Category.ALL
        index = self.filter_combo.findData(category.value)
        if index != self.filter_combo.currentIndex():
            self.filter_combo.blockSignals(True)
            self.filter_combo.setCurrentIndex(index)
            self.filter_combo.blockSignals(False)

    def _handle_filter_changed(self, index: int) -> None:
        self.store.set_category_filter(self.filter_combo.itemData(index))

    # Actions -------------------------------------------------------------
    def action_add(self) -> None:
        name = self.task_input.text()
        if not self.store.add_task(name):
            return
        self.task_input.clear()
        self.statusBar().showMessage(f"Added \"{name.strip()}\"", 3000)

    def action_complete(self) -> None:
        row = self.table.current_view_row()
        if row is not None and self.table.complete_row(row):
            self.statusBar().showMessage("Task completed", 3000)

    def action_delete(self) -> None:
        row = self.table.current_view_row()
        if row is not None and self.table.delete_row(row):
            self.statusBar().showMessage("Task deleted", 3000)

    def action_change_status(self) -> None:
        count = len(self.store.selected_ids)
        if self.store.cycle_status():
            self.statusBar().showMessage(f"Changed status of {count} task(s)", 3000)

    def _handle_store_change(self) -> None:
        self.refresh()
        if self._chained_change is not None:
            self._chained_change()

    def _handle_store_warning(self, message: str) -> None:
        self.show_warning(message)
        if self._chained_warning is not None:
            self._chained_warning(message)

    def show_warning(self, message: str) -> None:
        QMessageBox.warning(self, "Task Tracker", message)


def run() -> None:
    """Entry point used by `python -m task_tracker`."""
    settings = load_settings()
    setup_logging(settings.log_level)
    logger.info("Starting with %s storage", settings.storage_backend)
    app = QApplication(sys.argv)
    startup_warnings: List[str] = []
    store = TaskStore(
        build_storage(settings),
        key=settings.storage_key,
        on_warning=startup_warnings.append,
    )
    # Startup warnings are replayed once the window is visible.
    store.on_warning = None
    window = MainWindow(store)
    window.show()
    for message in startup_warnings:
        window.show_warning(message)
    app.exec()


if __name__ == "__main__":
    run()
