from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QApplication, QMessageBox

from task_tracker.app import EMPTY_LIST_TEXT, NO_RESULTS_TEXT, MainWindow, TaskListWidget
from task_tracker.models import Category, TaskStatus
from task_tracker.store import EMPTY_SELECTION_WARNING, TaskStore


def _row_names(table: TaskListWidget):
    return [table.item(row, 1).text() for row in range(table.rowCount())]


def test_table_mirrors_filtered_view(qapp: QApplication, store: TaskStore) -> None:
    for name in ("Buy milk", "Walk dog", "Buy bread"):
        store.add_task(name)
    store.complete_task(2)
    table = TaskListWidget(store)

    assert _row_names(table) == ["Buy milk", "Walk dog", "Buy bread"]
    assert table.item(2, 2).text() == "Completed"
    assert table.item(2, 1).font().strikeOut() is True

    store.set_search_text("buy")
    table.refresh()
    assert _row_names(table) == ["Buy milk", "Buy bread"]


def test_checkbox_toggles_store_selection(qapp: QApplication, store: TaskStore) -> None:
    store.add_task("a")
    store.add_task("b")
    table = TaskListWidget(store)

    table.item(1, 0).setCheckState(Qt.CheckState.Checked)

    assert store.selected_ids == {store.tasks[1].id}

    table.item(1, 0).setCheckState(Qt.CheckState.Unchecked)
    assert store.selected_ids == set()


def test_row_actions_use_view_indices(qapp: QApplication, store: TaskStore) -> None:
    for name in ("one", "two", "three"):
        store.add_task(name)
    store.set_search_text("t")
    table = TaskListWidget(store)

    assert table.complete_row(1) is True
    assert store.tasks[2].status is TaskStatus.COMPLETED

    assert table.delete_row(0) is True
    table.refresh()
    assert _row_names(table) == ["three"]


def test_window_adds_task_and_clears_entry(qapp: QApplication, store: TaskStore) -> None:
    window = MainWindow(store)
    assert window.empty_label.text() == EMPTY_LIST_TEXT

    window.task_input.setText("  Buy milk ")
    window.action_add()

    assert [task.name for task in store.tasks] == ["Buy milk"]
    assert window.task_input.text() == ""
    assert _row_names(window.table) == ["Buy milk"]
    assert window.empty_label.isHidden() is True


def test_window_shows_no_results_message(qapp: QApplication, store: TaskStore) -> None:
    store.add_task("Buy milk")
    window = MainWindow(store)

    window.task_input.setText("xyz")

    assert store.has_results is False
    assert window.empty_label.text() == NO_RESULTS_TEXT
    assert _row_names(window.table) == ["Buy milk"]


def test_search_resets_filter_combo(qapp: QApplication, store: TaskStore) -> None:
    store.add_task("Buy milk")
    window = MainWindow(store)

    window.filter_combo.setCurrentIndex(window.filter_combo.findData(Category.COMPLETED.value))
    assert store.active_filter is Category.COMPLETED

    window.task_input.setText("milk")
    assert window.filter_combo.currentData() == Category.ALL.value


def test_change_status_without_selection_shows_warning(qapp: QApplication, store: TaskStore, monkeypatch) -> None:
    shown = []
    monkeypatch.setattr(QMessageBox, "warning", lambda parent, title, text: shown.append(text))
    store.add_task("a")
    window = MainWindow(store)

    window.action_change_status()

    assert shown == [EMPTY_SELECTION_WARNING]
    assert store.tasks[0].status is TaskStatus.NEW


def test_window_keeps_existing_store_callbacks(qapp: QApplication, store: TaskStore, warnings_seen: list, monkeypatch) -> None:
    monkeypatch.setattr(QMessageBox, "warning", lambda parent, title, text: None)
    changes = []
    store.on_change = lambda: changes.append(True)
    window = MainWindow(store)

    store.add_task("a")
    store.cycle_status()

    assert changes == [True]
    assert warnings_seen == [EMPTY_SELECTION_WARNING]
    assert _row_names(window.table) == ["a"]
