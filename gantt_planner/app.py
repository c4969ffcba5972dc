"""Main PyQt application entry point."""
from __future__ import annotations

import logging
import sys
from datetime import date
from typing import Iterable, List, Optional, Set, Tuple

from PyQt6.QtCore import QDate, QPoint, QRectF, Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QAction, QColor, QCloseEvent, QKeySequence, QPainter, QPen, QTextCharFormat
from PyQt6.QtWidgets import (
    QAbstractItemView,
    QApplication,
    QCalendarWidget,
    QComboBox,
    QDateEdit,
    QDialog,
    QDialogButtonBox,
    QFileDialog,
    QFormLayout,
    QInputDialog,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMenu,
    QMessageBox,
    QSplitter,
    QToolBar,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from .config import load_config
from .errors import PlannerError
from .interaction import DragMode, InteractionController
from .interchange import ProjectSummary, summarize_csv, write_csv
from .logger import CrashHandler
from .models import Project, TaskPath
from .notifications import scan_due
from .state import PlannerState
from .storage import SnapshotStore
from .structure import DropIntent, drop_intent
from .timeline import BarGeometry, Viewport, timeline_ticks
from .views import (
    COMPLETED,
    INCOMPLETE,
    calendar_entries,
    filter_projects,
    gantt_rows,
    is_overdue,
    is_project_overdue,
    pic_overlaps,
    project_deadline,
)

logger = logging.getLogger(__name__)

TREE_HEADERS = ["Name", "Start", "Due", "Completion", "PIC", "Notes"]
_ROW_HEIGHT = 26
_HEADER_HEIGHT = 32
_DRAG_HANDLE_TOLERANCE = 6
_NOTIFICATION_INTERVAL_MS = 24 * 60 * 60 * 1000
_BAR_COLOR = QColor("#1976d2")
_DONE_COLOR = QColor("#43a047")
_OVERDUE_COLOR = QColor("#e53935")
_OVERLAP_COLOR = QColor("#fff3e0")

ItemKey = Tuple[str, TaskPath]


def _to_qdate(value: date) -> QDate:
    return QDate(value.year, value.month, value.day)


def _from_qdate(value: QDate) -> date:
    return date(value.year(), value.month(), value.day())


class DateRangeDialog(QDialog):
    """Start/due picker used for new tasks and date edits."""

    def __init__(self, title: str, start: date, due: date, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle(title)
        layout = QFormLayout(self)
        self.start_edit = QDateEdit(_to_qdate(start))
        self.due_edit = QDateEdit(_to_qdate(due))
        for edit in (self.start_edit, self.due_edit):
            edit.setCalendarPopup(True)
            edit.setDisplayFormat("yyyy-MM-dd")
        layout.addRow("Start date", self.start_edit)
        layout.addRow("Due date", self.due_edit)
        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addRow(buttons)

    def dates(self) -> Tuple[date, date]:
        return _from_qdate(self.start_edit.date()), _from_qdate(self.due_edit.date())


class ImportSelectionDialog(QDialog):
    """Checklist of the projects found in an import file; all ticked at first."""

    def __init__(self, summaries: Iterable[ProjectSummary], parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Select projects to import")
        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("Projects found in the file:"))
        self.list_widget = QListWidget()
        for summary in summaries:
            item = QListWidgetItem(
                f"{summary.name} (id {summary.id}, {summary.completion}% done, {summary.task_count} tasks)"
            )
            item.setFlags(item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
            item.setCheckState(Qt.CheckState.Checked)
            item.setData(Qt.ItemDataRole.UserRole, summary.id)
            self.list_widget.addItem(item)
        layout.addWidget(self.list_widget)
        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def selected_ids(self) -> List[str]:
        ids = []
        for row in range(self.list_widget.count()):
            item = self.list_widget.item(row)
            if item.checkState() == Qt.CheckState.Checked:
                ids.append(item.data(Qt.ItemDataRole.UserRole))
        return ids


class DueCalendarDialog(QDialog):
    """Month calendar of task due dates; picking a day lists what is due."""

    def __init__(self, state: PlannerState, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Due calendar")
        self.state = state
        layout = QVBoxLayout(self)
        self.calendar = QCalendarWidget()
        self.due_list = QListWidget()
        layout.addWidget(self.calendar)
        layout.addWidget(self.due_list)
        self.calendar.currentPageChanged.connect(lambda year, month: self.show_month(year, month))
        self.calendar.selectionChanged.connect(lambda: self.show_day(_from_qdate(self.calendar.selectedDate())))
        self._entries = {}
        self.show_month(self.calendar.yearShown(), self.calendar.monthShown())
        self.show_day(_from_qdate(self.calendar.selectedDate()))

    def show_month(self, year: int, month: int) -> None:
        self.calendar.setDateTextFormat(QDate(), QTextCharFormat())
        self._entries = calendar_entries(self.state.projects, year, month)
        marked = QTextCharFormat()
        marked.setBackground(_OVERLAP_COLOR)
        marked.setForeground(_OVERDUE_COLOR)
        for day in self._entries:
            self.calendar.setDateTextFormat(_to_qdate(day), marked)

    def show_day(self, day: date) -> None:
        if day.year != self.calendar.yearShown() or day.month != self.calendar.monthShown():
            self.show_month(day.year, day.month)
        self.due_list.clear()
        for entry in self._entries.get(day, []):
            self.due_list.addItem(f"{entry.project_name}: {entry.node.name} ({entry.node.completion}%)")


class ProjectTreeWidget(QTreeWidget):
    """Projects and their task trees, in manual order.

    Rows can be dragged onto one another; the pointer's third of the target
    row decides between dropping before, onto or after it.
    """

    selection_changed = pyqtSignal(object)
    edit_failed = pyqtSignal(str)

    def __init__(self, state: PlannerState, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.state = state
        self.today = date.today()
        self.show_archived = False
        self.pic_filter: Optional[str] = None
        self.overdue_filter: Optional[bool] = None
        self.completion_filter: Optional[str] = None
        self.setColumnCount(len(TREE_HEADERS))
        self.setHeaderLabels(TREE_HEADERS)
        self.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.setDragDropMode(QAbstractItemView.DragDropMode.InternalMove)
        self.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.customContextMenuRequested.connect(self._show_context_menu)
        self.itemSelectionChanged.connect(self._emit_selection)
        self.itemExpanded.connect(lambda item: self._remember_expanded(item, True))
        self.itemCollapsed.connect(lambda item: self._remember_expanded(item, False))
        self._refreshing = False
        self.refresh()

    # --- Population -------------------------------------------------------

    def refresh(self) -> None:
        """Rebuild every row from the state; keeps the current selection."""
        selected = self.selected_key()
        self._refreshing = True
        self.clear()
        visible = filter_projects(
            self.state.projects,
            today=self.today,
            pic=self.pic_filter,
            overdue=self.overdue_filter,
            completion=self.completion_filter,
            show_archived=self.show_archived,
        )
        for project in visible:
            item = self._project_item(project)
            self.addTopLevelItem(item)
            item.setExpanded(project.expanded)
            self._expand_children(item, project.children)
        self._refreshing = False
        if selected is not None:
            self.select_key(selected)

    def _project_item(self, project: Project) -> QTreeWidgetItem:
        deadline = project_deadline(project)
        name = f"{project.name} (Archived)" if project.archived else project.name
        item = QTreeWidgetItem([
            name,
            "",
            deadline.isoformat() if deadline else "N/A",
            f"{project.completion}%",
            project.person_in_charge or "",
            "",
        ])
        item.setData(0, Qt.ItemDataRole.UserRole, (project.id, ()))
        if is_project_overdue(project, self.today):
            item.setForeground(2, _OVERDUE_COLOR)
        overlapping: Set[TaskPath] = set()
        for first, second in pic_overlaps(project):
            overlapping.update((first, second))
        self._add_children(item, project.id, project.children, (), overlapping)
        return item

    def _add_children(
        self,
        parent_item: QTreeWidgetItem,
        project_id: str,
        children,
        prefix: TaskPath,
        overlapping: Set[TaskPath],
    ) -> None:
        for index, node in enumerate(children):
            path = prefix + (index,)
            item = QTreeWidgetItem([
                node.name,
                node.start_date.isoformat(),
                node.due_date.isoformat(),
                f"{node.completion}%",
                node.person_in_charge or "",
                node.notes,
            ])
            item.setData(0, Qt.ItemDataRole.UserRole, (project_id, path))
            if is_overdue(node, self.today):
                item.setForeground(2, _OVERDUE_COLOR)
            if path in overlapping:
                item.setBackground(4, _OVERLAP_COLOR)
                item.setToolTip(4, f"{node.person_in_charge} has overlapping tasks")
            parent_item.addChild(item)
            self._add_children(item, project_id, node.children, path, overlapping)

    def _expand_children(self, parent_item: QTreeWidgetItem, children) -> None:
        # Expansion only sticks once the items belong to the view.
        for index, node in enumerate(children):
            item = parent_item.child(index)
            item.setExpanded(node.expanded)
            self._expand_children(item, node.children)

    # --- Selection --------------------------------------------------------

    @staticmethod
    def item_key(item: Optional[QTreeWidgetItem]) -> Optional[ItemKey]:
        if item is None:
            return None
        data = item.data(0, Qt.ItemDataRole.UserRole)
        if data is None:
            return None
        project_id, path = data
        return project_id, tuple(path)

    def selected_key(self) -> Optional[ItemKey]:
        return self.item_key(self.currentItem())

    def select_key(self, key: ItemKey) -> None:
        project_id, path = key
        for row in range(self.topLevelItemCount()):
            item = self.topLevelItem(row)
            if self.item_key(item)[0] != project_id:
                continue
            for index in path:
                if item is None or index >= item.childCount():
                    return
                item = item.child(index)
            self.setCurrentItem(item)
            return

    def selected_project_id(self) -> Optional[str]:
        key = self.selected_key()
        return key[0] if key else None

    def _emit_selection(self) -> None:
        if not self._refreshing:
            self.selection_changed.emit(self.selected_key())

    def _remember_expanded(self, item: QTreeWidgetItem, expanded: bool) -> None:
        if self._refreshing:
            return
        key = self.item_key(item)
        if key is None:
            return
        project = self.state.project(key[0])
        target = project.node_at(key[1]) if key[1] else project
        # Flag only; presentation state is saved with the next edit.
        target.expanded = expanded

    # --- Drag and drop ----------------------------------------------------

    def dropEvent(self, event) -> None:  # type: ignore[override]
        source = self.selected_key()
        target_item = self.itemAt(event.position().toPoint())
        target = self.item_key(target_item)
        # The tree is rebuilt from the state; Qt must not move items itself.
        event.setDropAction(Qt.DropAction.IgnoreAction)
        event.accept()
        if source is None or target is None:
            return
        rect = self.visualItemRect(target_item)
        self.handle_drop(source, target, drop_intent(event.position().y() - rect.top(), rect.height()))

    def handle_drop(self, source: ItemKey, target: ItemKey, intent: DropIntent) -> None:
        """Apply a drop of one row onto another.

        Project rows only reorder among projects; task rows stay in their project.
        """
        try:
            if not source[1]:
                if target[1]:
                    return
                self.state.drop_project(source[0], target[0], intent)
                self.select_key((source[0], ()))
                return
            if source[0] != target[0]:
                return
            new_path = self.state.drop_task(source[0], source[1], target[1], intent)
        except PlannerError as exc:
            self.edit_failed.emit(str(exc))
            return
        self.select_key((source[0], new_path))

    # --- Context menu -----------------------------------------------------

    def _show_context_menu(self, position: QPoint) -> None:
        item = self.itemAt(position)
        key = self.item_key(item)
        if key is None:
            return
        project_id, path = key
        menu = QMenu(self)
        add_action = menu.addAction("Add sub-task" if path else "Add task")
        dates_action = menu.addAction("Edit dates") if path else None
        completion_action = menu.addAction("Set completion") if path else None
        notes_action = menu.addAction("Edit notes") if path else None
        rename_action = menu.addAction("Rename")
        pic_action = menu.addAction("Assign person in charge")
        menu.addSeparator()
        archive_action = None
        toggle_action = None
        if not path:
            project = self.state.project(project_id)
            archive_action = menu.addAction("Restore project" if project.archived else "Archive project")
            toggle_action = menu.addAction("Expand/collapse all tasks")
        delete_action = menu.addAction("Delete task" if path else "Delete project")
        action = menu.exec(self.viewport().mapToGlobal(position))
        if action is None:
            return
        try:
            if action == add_action:
                self.prompt_add_task(project_id, path)
            elif action == dates_action:
                self.prompt_edit_dates(project_id, path)
            elif action == completion_action:
                self.prompt_completion(project_id, path)
            elif action == notes_action:
                self.prompt_notes(project_id, path)
            elif action == rename_action:
                self.prompt_rename(project_id, path)
            elif action == pic_action:
                self.prompt_pic(project_id, path)
            elif action == archive_action:
                self.state.set_archived(project_id, not self.state.project(project_id).archived)
            elif action == toggle_action:
                self.state.toggle_all_tasks(project_id)
            elif action == delete_action:
                self.confirm_delete(project_id, path)
        except PlannerError as exc:
            self.edit_failed.emit(str(exc))

    def prompt_add_task(self, project_id: str, parent_path: TaskPath) -> None:
        name, ok = QInputDialog.getText(self, "Add task", "Task name")
        if not ok or not name.strip():
            return
        dialog = DateRangeDialog("Add task dates", date.today(), date.today(), self)
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return
        start, due = dialog.dates()
        path = self.state.add_task(project_id, parent_path, name, start, due)
        self.select_key((project_id, path))

    def prompt_edit_dates(self, project_id: str, path: TaskPath) -> None:
        node = self.state.node(project_id, path)
        dialog = DateRangeDialog("Edit dates", node.start_date, node.due_date, self)
        if dialog.exec() == QDialog.DialogCode.Accepted:
            start, due = dialog.dates()
            self.state.reschedule(project_id, path, start, due)

    def prompt_completion(self, project_id: str, path: TaskPath) -> None:
        node = self.state.node(project_id, path)
        value, ok = QInputDialog.getInt(self, "Completion", "Percent complete", node.completion, 0, 100)
        if ok:
            self.state.set_completion(project_id, path, value)

    def prompt_notes(self, project_id: str, path: TaskPath) -> None:
        node = self.state.node(project_id, path)
        text, ok = QInputDialog.getMultiLineText(self, "Notes", node.name, node.notes)
        if ok:
            self.state.set_notes(project_id, path, text)

    def prompt_rename(self, project_id: str, path: TaskPath) -> None:
        current = self.state.node(project_id, path).name if path else self.state.project(project_id).name
        name, ok = QInputDialog.getText(self, "Rename", "New name", text=current)
        if not ok:
            return
        if path:
            self.state.rename_task(project_id, path, name)
        else:
            self.state.rename_project(project_id, name)

    def prompt_pic(self, project_id: str, path: TaskPath) -> None:
        choices = ["None"] + list(self.state.pic_list)
        choice, ok = QInputDialog.getItem(self, "Person in charge", "Assign to", choices, 0, False)
        if not ok:
            return
        pic = None if choice == "None" else choice
        if path:
            self.state.assign_task_pic(project_id, path, pic)
        else:
            self.state.assign_project_pic(project_id, pic)

    def confirm_delete(self, project_id: str, path: TaskPath) -> None:
        label = self.state.node(project_id, path).name if path else self.state.project(project_id).name
        answer = QMessageBox.question(self, "Delete", f"Are you sure you want to delete {label!r}?")
        if answer != QMessageBox.StandardButton.Yes:
            return
        if path:
            self.state.delete_task(project_id, path)
        else:
            self.state.delete_project(project_id)


class GanttChartWidget(QWidget):
    """Draws one project's bars and turns pointer drags into date edits."""

    status_message = pyqtSignal(str)

    def __init__(self, state: PlannerState, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.state = state
        self.controller = InteractionController(state)
        self.project_id: Optional[str] = None
        self.setMouseTracking(True)
        self.setMinimumHeight(_HEADER_HEIGHT + _ROW_HEIGHT)

    def set_project(self, project_id: Optional[str]) -> None:
        self.project_id = project_id
        self.update()

    def _project(self) -> Optional[Project]:
        if self.project_id is None:
            return None
        for project in self.state.projects:
            if project.id == self.project_id:
                return project
        return None

    def _viewport(self, project: Project) -> Viewport:
        session = self.controller.session
        if session is not None and session.project_id == project.id:
            return session.viewport
        return Viewport.for_project(project)

    def _rows(self, project: Project):
        return gantt_rows(project, self._viewport(project))

    def _bar_rect(self, geometry: BarGeometry, row: int) -> QRectF:
        width = max(1, self.width())
        top = _HEADER_HEIGHT + row * _ROW_HEIGHT + 4
        return QRectF(geometry.left / 100 * width, top, geometry.width / 100 * width, _ROW_HEIGHT - 8)

    def paintEvent(self, event) -> None:  # pragma: no cover - requires UI
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor("white"))
        project = self._project()
        if project is None:
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "Select a project")
            painter.end()
            return
        viewport = self._viewport(project)
        painter.setPen(QPen(QColor("#9e9e9e")))
        for tick in timeline_ticks(viewport):
            x = tick.percent / 100 * self.width()
            painter.drawLine(int(x), 0, int(x), self.height())
            painter.drawText(int(x) + 2, _HEADER_HEIGHT - 10, tick.label)
        session = self.controller.session
        for row, entry in enumerate(gantt_rows(project, viewport)):
            geometry = entry.geometry
            if session is not None and session.path == entry.path:
                geometry = session.geometry
            color = _DONE_COLOR if entry.node.completion >= 100 else _BAR_COLOR
            rect = self._bar_rect(geometry, row)
            painter.fillRect(rect, color)
            painter.setPen(QPen(QColor("white")))
            painter.drawText(rect.adjusted(4, 0, -4, 0), Qt.AlignmentFlag.AlignVCenter, entry.node.name)
        today_percent = viewport.to_percent(date.today())
        if 0 <= today_percent <= 100:
            painter.setPen(QPen(_OVERDUE_COLOR))
            x = int(today_percent / 100 * self.width())
            painter.drawLine(x, _HEADER_HEIGHT, x, self.height())
        painter.end()

    def hit_test(self, x: float, y: float) -> Optional[Tuple[TaskPath, DragMode]]:
        """Find the bar under the pointer and which part of it was grabbed."""
        project = self._project()
        if project is None or y < _HEADER_HEIGHT:
            return None
        row = int((y - _HEADER_HEIGHT) // _ROW_HEIGHT)
        rows = self._rows(project)
        if row >= len(rows):
            return None
        rect = self._bar_rect(rows[row].geometry, row)
        if x < rect.left() - _DRAG_HANDLE_TOLERANCE or x > rect.right() + _DRAG_HANDLE_TOLERANCE:
            return None
        if abs(x - rect.left()) <= _DRAG_HANDLE_TOLERANCE:
            return rows[row].path, DragMode.RESIZE_START
        if abs(x - rect.right()) <= _DRAG_HANDLE_TOLERANCE:
            return rows[row].path, DragMode.RESIZE_END
        return rows[row].path, DragMode.MOVE_BAR

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if event.button() == Qt.MouseButton.LeftButton and self.project_id is not None:
            pos = event.position()
            hit = self.hit_test(pos.x(), pos.y())
            if hit is not None:
                path, mode = hit
                self.controller.press(self.project_id, path, mode, pos.x(), self.width())
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        if self.controller.active:
            self.controller.move(event.position().x())
            self.update()
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        if self.controller.active:
            session = self.controller.session
            try:
                self.controller.release(event.position().x())
            except PlannerError as exc:
                self.status_message.emit(str(exc))
            if session is not None and session.rescaled:
                self.status_message.emit(
                    f"Timeline expanded to {session.viewport.total_days} days to fit the new dates."
                )
            self.update()
        super().mouseReleaseEvent(event)


class MainWindow(QMainWindow):
    """Primary window with menus and central widgets."""

    def __init__(self, state: PlannerState) -> None:
        super().__init__()
        self.setWindowTitle("Gantt Planner")
        self.state = state
        self.tree = ProjectTreeWidget(state)
        self.gantt = GanttChartWidget(state)
        self.undo_action: QAction | None = None
        # Every state change redraws both views.
        self.state.subscribe(self._handle_state_changed)
        self.tree.selection_changed.connect(self._handle_selection)
        self.tree.edit_failed.connect(self._show_error)
        self.gantt.status_message.connect(lambda message: self.statusBar().showMessage(message, 5000))
        self._build_layout()
        self._build_menu()
        self._build_filters()
        self._notification_timer = QTimer(self)
        self._notification_timer.timeout.connect(self.check_notifications)
        self._notification_timer.start(_NOTIFICATION_INTERVAL_MS)
        self.check_notifications()
        self.resize(1200, 700)

    def _build_layout(self) -> None:
        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.addWidget(self.tree)
        splitter.addWidget(self.gantt)
        splitter.setStretchFactor(1, 2)
        self.setCentralWidget(splitter)

    def _build_menu(self) -> None:
        """Create File/Edit/Project menus along with shortcuts."""
        menu = self.menuBar()
        file_menu = menu.addMenu("File")

        import_action = QAction("Import CSV...", self)
        import_action.triggered.connect(self.action_import)
        file_menu.addAction(import_action)

        export_action = QAction("Export CSV...", self)
        export_action.triggered.connect(self.action_export)
        file_menu.addAction(export_action)

        file_menu.addSeparator()
        quit_action = QAction("Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

        edit_menu = menu.addMenu("Edit")
        undo_action = QAction("Undo delete", self)
        undo_action.setShortcut("Ctrl+Z")
        undo_action.setEnabled(self.state.undo.can_undo)
        undo_action.triggered.connect(self._handle_undo_request)
        edit_menu.addAction(undo_action)
        self.undo_action = undo_action

        view_menu = menu.addMenu("View")
        archived_action = QAction("Show archived projects", self)
        archived_action.setCheckable(True)
        archived_action.toggled.connect(self._handle_show_archived)
        view_menu.addAction(archived_action)

        calendar_action = QAction("Due calendar...", self)
        calendar_action.triggered.connect(self.action_due_calendar)
        view_menu.addAction(calendar_action)

        project_menu = menu.addMenu("Project")
        add_project_action = QAction("Add project...", self)
        add_project_action.triggered.connect(self.action_add_project)
        project_menu.addAction(add_project_action)

        add_pic_action = QAction("Add person in charge...", self)
        add_pic_action.triggered.connect(self.action_add_pic)
        project_menu.addAction(add_pic_action)

        remove_pic_action = QAction("Remove person in charge...", self)
        remove_pic_action.triggered.connect(self.action_remove_pic)
        project_menu.addAction(remove_pic_action)

    def _build_filters(self) -> None:
        toolbar = QToolBar("Filters", self)
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        toolbar.addWidget(QLabel("PIC "))
        self.pic_combo = QComboBox()
        self.pic_combo.currentIndexChanged.connect(self._apply_filters)
        toolbar.addWidget(self.pic_combo)

        toolbar.addWidget(QLabel(" Schedule "))
        self.overdue_combo = QComboBox()
        for label, value in (("All", None), ("Overdue", True), ("On track", False)):
            self.overdue_combo.addItem(label, value)
        self.overdue_combo.currentIndexChanged.connect(self._apply_filters)
        toolbar.addWidget(self.overdue_combo)

        toolbar.addWidget(QLabel(" Status "))
        self.completion_combo = QComboBox()
        for label, value in (("All", None), ("Completed", COMPLETED), ("Incomplete", INCOMPLETE)):
            self.completion_combo.addItem(label, value)
        self.completion_combo.currentIndexChanged.connect(self._apply_filters)
        toolbar.addWidget(self.completion_combo)

        self._sync_pic_filter()

    def _sync_pic_filter(self) -> None:
        """Rebuild the PIC choices after the roster changes, keeping the pick if it survives."""
        current = self.tree.pic_filter
        self.pic_combo.blockSignals(True)
        self.pic_combo.clear()
        self.pic_combo.addItem("Anyone", None)
        for name in self.state.pic_list:
            self.pic_combo.addItem(name, name)
        index = self.pic_combo.findData(current) if current else 0
        self.pic_combo.setCurrentIndex(max(index, 0))
        self.pic_combo.blockSignals(False)
        if current and index < 0:
            self._apply_filters()

    def _apply_filters(self) -> None:
        self.tree.pic_filter = self.pic_combo.currentData()
        self.tree.overdue_filter = self.overdue_combo.currentData()
        self.tree.completion_filter = self.completion_combo.currentData()
        self.tree.refresh()

    # Menu actions ------------------------------------------------------
    def action_add_project(self) -> None:
        name, ok = QInputDialog.getText(self, "Add project", "Project name")
        if ok and name.strip():
            project = self.state.add_project(name)
            self.tree.select_key((project.id, ()))

    def action_add_pic(self) -> None:
        name, ok = QInputDialog.getText(self, "Add person in charge", "Name")
        if ok:
            self._run(lambda: self.state.add_pic(name))

    def action_remove_pic(self) -> None:
        if not self.state.pic_list:
            return
        name, ok = QInputDialog.getItem(self, "Remove person in charge", "Name", self.state.pic_list, 0, False)
        if ok:
            self._run(lambda: self.state.remove_pic(name))

    def action_import(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Import projects", filter="CSV Files (*.csv)")
        if not path:
            return
        try:
            with open(path, "r", newline="", encoding="utf-8") as handle:
                text = handle.read()
            summaries = summarize_csv(text)
        except (OSError, PlannerError) as exc:
            logger.warning("Import of %s failed: %s", path, exc)
            QMessageBox.critical(self, "Import failed", str(exc))
            return
        dialog = ImportSelectionDialog(summaries, self)
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return
        imported = self._run(lambda: self.state.import_csv(text, dialog.selected_ids()))
        if imported is not None:
            self.statusBar().showMessage(f"Imported {len(imported)} projects from {path}", 3000)

    def action_due_calendar(self) -> None:
        DueCalendarDialog(self.state, self).exec()

    def action_export(self) -> None:
        path, _ = QFileDialog.getSaveFileName(
            self, "Export projects", "projects.csv", filter="CSV Files (*.csv)"
        )
        if not path:
            return
        write_csv(path, self.state.projects, self.state.pic_list)
        logger.info("Exported %d projects to %s", len(self.state.projects), path)
        self.statusBar().showMessage(f"Exported CSV to {path}", 3000)

    def check_notifications(self) -> None:
        notices = scan_due(self.state.projects)
        if notices:
            titles = "; ".join(notice.title for notice in notices[:3])
            more = f" (+{len(notices) - 3} more)" if len(notices) > 3 else ""
            self.statusBar().showMessage(titles + more, 10000)

    def _handle_state_changed(self) -> None:
        self._sync_pic_filter()
        self.tree.refresh()
        self.gantt.update()
        if self.undo_action is not None:
            self.undo_action.setEnabled(self.state.undo.can_undo)

    def _handle_show_archived(self, checked: bool) -> None:
        self.tree.show_archived = checked
        self.tree.refresh()

    def _handle_selection(self, key) -> None:
        self.gantt.set_project(key[0] if key else None)

    def _handle_undo_request(self) -> None:
        """Restore the most recent deletion."""
        if self._run(self.state.undo_last):
            self.statusBar().showMessage("Restored last deletion", 3000)

    def _run(self, operation):
        try:
            return operation()
        except PlannerError as exc:
            self._show_error(str(exc))
            return None

    def _show_error(self, message: str) -> None:
        QMessageBox.warning(self, "Edit rejected", message)

    def closeEvent(self, event: QCloseEvent) -> None:  # pragma: no cover - requires UI
        """Ask for confirmation before closing the application."""
        if QMessageBox.question(self, "Quit", "Close Gantt Planner?") == QMessageBox.StandardButton.Yes:
            event.accept()
        else:
            event.ignore()


def run() -> None:
    """Entry point used by `python -m gantt_planner`."""
    config = load_config()
    CrashHandler(config)
    app = QApplication(sys.argv)
    state = PlannerState.from_store(SnapshotStore(config.snapshot_path), config.default_pic_list)
    window = MainWindow(state)
    window.show()
    if state.load_error:
        QMessageBox.warning(window, "Saved data could not be read", state.load_error)
    app.exec()


if __name__ == "__main__":
    run()
